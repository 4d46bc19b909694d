"""Tests for the OpenAPI reference dereferencer."""

from pathlib import Path

import pytest
import yaml

from api_to_mcp.dereferencer import DereferenceError, PathDereferencer, load_openapi
from api_to_mcp.exceptions import MalformedSourceError

FIXTURES = Path(__file__).parent / "fixtures"


def load_petstore():
    with open(FIXTURES / "petstore.yaml") as f:
        return yaml.safe_load(f)


def test_petstore_dereferencing():
    """Test local and external references of the petstore document."""
    dereferencer = PathDereferencer(load_petstore(), base_path=FIXTURES)
    result = dereferencer.dereference()

    pets = result["paths"]["/pets"]
    assert pets["get"]["parameters"][0]["name"] == "limit"
    items = pets["get"]["responses"]["200"]["content"]["application/json"]["schema"]["items"]
    assert items["required"] == ["id", "name"]
    assert pets["post"]["requestBody"]["content"]["application/json"]["schema"]["required"] == ["name"]

    error = result["paths"]["/pets/{petId}"]["get"]["responses"]["default"]
    assert error["description"] == "Unexpected error"
    # The nested local $ref resolves against common.yaml, not the root document
    assert error["content"]["application/json"]["schema"]["properties"]["code"] == {"type": "integer"}


def test_load_openapi_resolves_relative_to_file():
    result = load_openapi(str(FIXTURES / "petstore.yaml"))

    error = result["paths"]["/pets/{petId}"]["get"]["responses"]["default"]
    assert error["description"] == "Unexpected error"
    assert "$ref" not in str(result["paths"])


def test_circular_references():
    """Test handling of circular references."""
    spec = {
        "paths": {
            "/nodes": {
                "get": {
                    "responses": {
                        "200": {
                            "description": "A node",
                            "content": {
                                "application/json": {"schema": {"$ref": "#/components/schemas/Node"}}
                            },
                        }
                    }
                }
            }
        },
        "components": {
            "schemas": {
                "Node": {
                    "type": "object",
                    "properties": {"child": {"$ref": "#/components/schemas/Node"}},
                }
            }
        },
    }

    result = PathDereferencer(spec).dereference()

    schema = result["paths"]["/nodes"]["get"]["responses"]["200"]["content"]["application/json"]["schema"]
    assert schema["type"] == "object"
    assert schema["properties"]["child"] == {"$$circular_ref": "#/components/schemas/Node"}


def test_invalid_path_ref_error():
    """Test that invalid path references raise appropriate errors."""
    spec = {"paths": {"/invalid": {"$ref": "#/paths/nonexistent"}}}

    dereferencer = PathDereferencer(spec)
    with pytest.raises(DereferenceError):
        dereferencer.dereference()


def test_missing_external_file_error(tmp_path):
    spec = {"paths": {"/a": {"$ref": "./missing.yaml#/paths/~1a"}}}

    dereferencer = PathDereferencer(spec, base_path=tmp_path)
    with pytest.raises(MalformedSourceError):
        dereferencer.dereference()


def test_additional_path_properties_preservation():
    """Test that additional properties alongside path $ref are preserved."""
    spec = {
        "paths": {
            "/base": {"get": {"summary": "Base endpoint"}},
            "/extended": {
                "$ref": "#/paths/~1base",
                "description": "Extended endpoint",
                "servers": [{"url": "https://api.example.com"}],
            },
        }
    }

    dereferencer = PathDereferencer(spec)
    result = dereferencer.dereference()

    extended = result["paths"]["/extended"]
    assert "get" in extended  # From base
    assert extended["description"] == "Extended endpoint"  # Additional property
    assert extended["servers"][0]["url"] == "https://api.example.com"


def test_list_index_pointer():
    spec = {
        "paths": {
            "/a": {"get": {"parameters": [{"name": "first"}, {"name": "second"}]}},
            "/b": {"get": {"parameters": [{"$ref": "#/paths/~1a/get/parameters/1"}]}},
        }
    }

    result = PathDereferencer(spec).dereference()

    assert result["paths"]["/b"]["get"]["parameters"] == [{"name": "second"}]


def test_non_path_content_preserved():
    """Test that non-path content in the document is preserved."""
    spec = {
        "openapi": "3.0.0",
        "info": {"title": "Test API", "version": "1.0.0"},
        "paths": {"/test": {"get": {"summary": "Test endpoint"}}},
        "components": {"schemas": {"Test": {"type": "object"}}},
    }

    dereferencer = PathDereferencer(spec)
    result = dereferencer.dereference()

    # Check that non-path content is unchanged
    assert result["openapi"] == "3.0.0"
    assert result["info"]["title"] == "Test API"
    assert result["components"]["schemas"]["Test"]["type"] == "object"
    assert spec["paths"]["/test"]["get"]["summary"] == "Test endpoint"
