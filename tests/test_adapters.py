"""Tests for the source adapters."""

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from api_to_mcp.adapters import (
    OpenAPIFileAdapter,
    OpenAPIURLAdapter,
    PostmanAdapter,
    PostmanFileAdapter,
    create_adapter,
    detect_format,
)
from api_to_mcp.config import Settings
from api_to_mcp.exceptions import (
    MalformedSourceError,
    SourceUnavailableError,
    UnsupportedURLError,
)
from api_to_mcp.postman import Strategy

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def settings():
    return Settings(postman_api_key="env-key", request_timeout_seconds=5)


@pytest.fixture
def collection():
    with open(FIXTURES / "collection.json") as f:
        return json.load(f)


def mock_response(status_code=200, payload=None, content=b""):
    response = MagicMock()
    response.status_code = status_code
    response.reason = "OK" if status_code == 200 else "Unauthorized"
    response.content = content
    if payload is None:
        response.json.side_effect = ValueError("Expecting value")
    else:
        response.json.return_value = payload
    return response


def test_source_types(settings):
    assert OpenAPIFileAdapter("spec.yaml").get_source_type() == "oas31"
    assert OpenAPIURLAdapter("https://x/spec.yaml", settings=settings).get_source_type() == "oas31-url"
    assert PostmanAdapter("123", settings=settings).get_source_type() == "postman"
    assert PostmanFileAdapter("c.json").get_source_type() == "postman-file"


def test_openapi_file_adapter():
    data = OpenAPIFileAdapter(FIXTURES / "petstore.yaml").to_template_data()

    assert data.server_name == "Swagger Petstore"
    assert data.server_description == "A sample pet store"
    assert list(data.endpoints) == ["https://petstore.example.com/v1"]
    assert data.missing_base_url is False
    assert [tool.name for tool in data.tools] == [
        "get_pets",
        "post_pets",
        "get_pets_by_petId",
        "delete_pets_by_petId",
    ]
    assert len(data.resources) == 2
    assert len(data.prompts) == 2

    tools = {tool.name: tool for tool in data.tools}
    post = tools["post_pets"]
    assert [(a.name, a.required) for a in post.arguments] == [("name", True), ("tag", False)]
    assert post.arguments[0].description == "Name of the pet"
    assert tools["get_pets"].arguments[0].name == "limit"
    assert tools["get_pets_by_petId"].description == "Info for a specific pet"
    assert tools["delete_pets_by_petId"].description == "DELETE operation on /pets/{petId}"

    resources = {resource.uri: resource for resource in data.resources}
    assert resources["api-to-mcp://internal/pets"].mime_type == "application/json"
    assert resources["api-to-mcp://internal/pets_{petId}"].mime_type == "application/xml"


def test_openapi_file_adapter_rejects_urls():
    with pytest.raises(UnsupportedURLError):
        OpenAPIFileAdapter("https://example.com/spec.yaml").to_template_data()


@patch("api_to_mcp.loader.requests.get")
def test_openapi_url_adapter(mock_get, settings):
    mock_get.return_value = mock_response(
        content=b'{"openapi": "3.0.0", "info": {"title": "Remote", "version": "2"}, "paths": {}}'
    )

    data = OpenAPIURLAdapter("https://example.com/api/spec.json", settings=settings).to_template_data()

    assert data.server_name == "Remote"
    assert data.missing_base_url is True
    mock_get.assert_called_once_with("https://example.com/api/spec.json", headers=None, timeout=5)


@patch("api_to_mcp.loader.requests.get")
def test_postman_adapter_sends_api_key(mock_get, settings, collection):
    mock_get.return_value = mock_response(payload={"collection": collection})

    data = PostmanAdapter("abc-123", settings=settings).to_template_data()

    assert data.server_name == "User Service"
    mock_get.assert_called_once_with(
        "https://api.getpostman.com/collections/abc-123",
        headers={"X-API-Key": "env-key"},
        timeout=5,
    )


@patch("api_to_mcp.loader.requests.get")
def test_postman_adapter_explicit_key_wins(mock_get, settings, collection):
    mock_get.return_value = mock_response(payload={"collection": collection})

    PostmanAdapter("abc-123", api_key="explicit", settings=settings).to_template_data()

    assert mock_get.call_args.kwargs["headers"] == {"X-API-Key": "explicit"}


@patch("api_to_mcp.loader.requests.get")
def test_postman_adapter_direct_strategy(mock_get, settings, collection):
    mock_get.return_value = mock_response(payload={"collection": collection})

    data = PostmanAdapter("abc-123", strategy=Strategy.DIRECT, settings=settings).to_template_data()

    assert [tool.name for tool in data.tools] == ["post_users", "delete_users_by_id"]


@patch("api_to_mcp.loader.requests.get")
def test_postman_adapter_non_200(mock_get, settings):
    mock_get.return_value = mock_response(status_code=401, payload={"error": "unauthorized"})

    with pytest.raises(SourceUnavailableError) as exc_info:
        PostmanAdapter("abc-123", settings=settings).to_template_data()
    assert "401" in str(exc_info.value)


@patch("api_to_mcp.loader.requests.get")
def test_postman_adapter_invalid_json(mock_get, settings):
    mock_get.return_value = mock_response(payload=None)

    with pytest.raises(MalformedSourceError):
        PostmanAdapter("abc-123", settings=settings).to_template_data()


def test_postman_adapter_requires_id(settings):
    with pytest.raises(UnsupportedURLError):
        PostmanAdapter("", settings=settings).to_template_data()


def test_postman_file_adapter():
    data = PostmanFileAdapter(FIXTURES / "collection.json").to_template_data()

    assert list(data.endpoints) == ["https://api.example.com"]
    assert len(data.tools) == 4


@pytest.mark.parametrize(
    "data,expected",
    [
        ({"openapi": "3.1.0", "info": {}}, "openapi"),
        ({"swagger": "2.0"}, "openapi"),
        ({"info": {"_postman_id": "x", "name": "C"}, "item": []}, "postman"),
        ({"collection": {"info": {"name": "C"}, "item": []}}, "postman"),
        ({"info": {"schema": "https://schema.getpostman.com/json/collection/v2.1.0/"}}, "postman"),
        ({"name": "something else"}, None),
    ],
)
def test_detect_format(data, expected):
    assert detect_format(data) == expected


def test_create_adapter_detects_files():
    assert isinstance(create_adapter(str(FIXTURES / "petstore.yaml")), OpenAPIFileAdapter)
    adapter = create_adapter(str(FIXTURES / "collection.json"), strategy=Strategy.DIRECT)
    assert isinstance(adapter, PostmanFileAdapter)
    assert adapter.strategy is Strategy.DIRECT


def test_create_adapter_urls_and_ids():
    assert isinstance(create_adapter("https://example.com/spec.yaml"), OpenAPIURLAdapter)
    assert isinstance(create_adapter("abc-123", fmt="postman"), PostmanAdapter)
    assert isinstance(create_adapter("spec.yaml", fmt="openapi"), OpenAPIFileAdapter)


def test_create_adapter_missing_source():
    with pytest.raises(SourceUnavailableError):
        create_adapter("does-not-exist.yaml")


def test_create_adapter_undetectable(tmp_path):
    path = tmp_path / "unknown.json"
    path.write_text('{"name": "not an api"}')

    with pytest.raises(MalformedSourceError):
        create_adapter(str(path))


def test_create_adapter_unknown_format():
    with pytest.raises(ValueError):
        create_adapter("spec.yaml", fmt="raml")
