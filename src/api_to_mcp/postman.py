"""
Conversion of Postman collections into the canonical template data.

Two strategies are available and are never mixed:

- ``synthesis`` (default) builds an OpenAPI 3.0 document out of the collection
  and hands it to the OpenAPI walker, so body properties become named arguments.
- ``direct`` builds resources and tools straight from the requests. JSON bodies
  are exposed as a single ``body`` argument and are not enumerated.
"""

import logging
import re
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple
from urllib.parse import urlsplit

from .models import Argument, Resource, TemplateData, Tool
from .naming import (
    clean_path,
    derive_tool_name,
    sanitize_description,
    sanitize_identifier,
    sanitize_operation_id,
    unique_name,
)
from .postman_models import Collection, Item, Request, Response, parse_collection
from .schema_inference import infer_schema_from_text
from .walker import RESOURCE_URI_PREFIX, walk

logger = logging.getLogger(__name__)

BASE_URL_VARIABLES = ("baseUrl", "base_url", "host")
OPENAPI_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS", "TRACE")

_VARIABLE = re.compile(r"{{\s*([A-Za-z0-9_.\-]+)\s*}}")
_VARIABLE_SEGMENT = re.compile(r"^{{\s*([A-Za-z0-9_.\-]+)\s*}}$")

LANGUAGE_MIME_TYPES = {
    "json": "application/json",
    "xml": "application/xml",
    "html": "text/html",
    "javascript": "application/javascript",
    "text": "text/plain",
}


class Strategy(str, Enum):
    SYNTHESIS = "synthesis"
    DIRECT = "direct"


def convert_path_params(path: str) -> str:
    """Translate Postman path syntax into an OpenAPI path template.

    ``/users/:id/posts/:postId`` becomes ``/users/{id}/posts/{postId}``; a
    whole-segment ``{{id}}`` variable becomes ``{id}`` as well.
    """
    segments = []
    for segment in path.split("/"):
        if not segment:
            continue
        if segment.startswith(":"):
            segments.append("{" + segment[1:] + "}")
            continue
        match = _VARIABLE_SEGMENT.match(segment)
        segments.append("{" + match.group(1) + "}" if match else segment)
    if not segments:
        return "/"
    return "/" + "/".join(segments)


def resolve_variables(text: str, variables: Dict[str, str]) -> str:
    """Substitute ``{{name}}`` placeholders that have a non-empty value."""
    return _VARIABLE.sub(lambda m: variables.get(m.group(1)) or m.group(0), text)


def has_base_url_variable(collection: Collection) -> bool:
    return any(name in collection.variables() for name in BASE_URL_VARIABLES)


def split_url(request: Request, variables: Dict[str, str]) -> Tuple[Optional[str], str]:
    """Split a request URL into its server (scheme and host) and its path.

    Returns:
        tuple: (server URL or None when no concrete host is known, path)
    """
    raw = resolve_variables(request.url.raw, variables)
    parsed = urlsplit(raw)
    if parsed.scheme in ("http", "https") and parsed.netloc and "{{" not in parsed.netloc:
        return f"{parsed.scheme}://{parsed.netloc}", parsed.path
    if request.url.path:
        return None, "/" + "/".join(request.url.path)
    if raw.startswith("{{"):
        raw = _VARIABLE.sub("", raw, count=1)
    return None, urlsplit(raw).path


def header_parameters(request: Request) -> List[Dict[str, Any]]:
    """Every enabled header except Content-Type becomes an optional header parameter."""
    return [
        {
            "name": header.key,
            "in": "header",
            "description": f"Header parameter {header.key}",
            "required": False,
            "schema": {"type": "string", "example": header.text},
        }
        for header in request.header
        if header.key and not header.disabled and header.key.lower() != "content-type"
    ]


def query_parameters(request: Request) -> List[Dict[str, Any]]:
    """Enabled query entries become optional query parameters."""
    return [
        {
            "name": query.key,
            "in": "query",
            "description": f"Query parameter {query.key}",
            "required": False,
            "schema": {"type": "string", "example": query.text},
        }
        for query in request.url.query
        if query.key and not query.disabled
    ]


def path_parameters(path_template: str, request: Request) -> List[Dict[str, Any]]:
    """Every ``{param}`` segment becomes a required path parameter.

    The default comes from the URL's path variables, then from a query entry
    with the same name, and is empty otherwise.
    """
    parameters = []
    for segment in path_template.split("/"):
        if not (segment.startswith("{") and segment.endswith("}")):
            continue
        name = segment.strip("{}")
        default = ""
        for candidate in request.url.variable + request.url.query:
            if candidate.key == name:
                default = candidate.text
                break
        parameters.append(
            {
                "name": name,
                "in": "path",
                "description": f"Path parameter {name}",
                "required": True,
                "schema": {"type": "string", "default": default},
            }
        )
    return parameters


def request_body(request: Request, warnings: List[str]) -> Optional[Dict[str, Any]]:
    """Build an OpenAPI request body from a raw Postman body.

    JSON bodies get an inferred schema; anything else is typed as a string.
    """
    body = request.body
    if body is None or body.mode != "raw" or not body.raw:
        return None

    content_type = request.header_value("Content-Type") or "text/plain"
    if body.language == "json":
        content_type = "application/json"

    schema, warning = infer_schema_from_text(body.raw, content_type)
    if warning:
        _warn(warnings, f"{request.method} {request.url.raw}: {warning}")
    return {
        "required": True,
        "content": {content_type: {"schema": schema, "example": body.raw}},
    }


def responses(examples: List[Response], warnings: List[str]) -> Dict[str, Any]:
    """Turn saved example responses into OpenAPI responses keyed by status code."""
    result: Dict[str, Any] = {}
    for example in examples:
        response: Dict[str, Any] = {"description": example.name, "content": {}}
        content_type = "text/plain"
        for header in example.header:
            if header.key.lower() == "content-type":
                content_type = header.text
                break
        if example.body:
            schema, warning = infer_schema_from_text(example.body, content_type)
            if warning:
                _warn(warnings, f"response {example.name!r}: {warning}")
            response["content"][content_type] = {"schema": schema, "example": example.body}
        result[str(example.code) if example.code is not None else "default"] = response
    return result


def _warn(warnings: List[str], message: str) -> None:
    logger.warning(message)
    warnings.append(message)


class OpenAPISynthesizer:
    """Builds an OpenAPI 3.0 document out of a Postman collection."""

    def __init__(self, collection: Collection):
        self.collection = collection
        self.variables = collection.variables()
        self.warnings: List[str] = []
        self.document: Dict[str, Any] = {
            "openapi": "3.0.0",
            "info": {
                "title": collection.info.name,
                "description": collection.info.description_text,
                "version": "1.0.0",
            },
            "servers": [],
            "tags": [],
            "paths": {},
            "components": {},
        }

    def build(self) -> Dict[str, Any]:
        self._process_items(self.collection.item, "")
        return self.document

    def _process_items(self, items: List[Item], parent_path: str) -> None:
        for item in items:
            if item.is_folder:
                if not any(tag["name"] == item.name for tag in self.document["tags"]):
                    self.document["tags"].append(
                        {"name": item.name, "description": f"Operations in {item.name}"}
                    )
                folder_path = f"{parent_path}.{item.name}" if parent_path else item.name
                self._process_items(item.item, folder_path)
            elif item.request is not None:
                self._process_request(item, parent_path)

    def _add_server(self, server: str) -> None:
        if not any(existing["url"] == server for existing in self.document["servers"]):
            self.document["servers"].append({"url": server})

    def _process_request(self, item: Item, folder_path: str) -> None:
        request = item.request
        method = request.method
        if method not in OPENAPI_METHODS:
            _warn(self.warnings, f"skipping {item.name!r}: unsupported method {method}")
            return

        server, raw_path = split_url(request, self.variables)
        if server:
            self._add_server(server)
        path_template = convert_path_params(raw_path)

        operation: Dict[str, Any] = {
            "summary": item.name,
            "description": item.name,
            "operationId": "_".join(
                [method.lower(), sanitize_operation_id(f"{path_template}_{item.name}")]
            ),
            "parameters": (
                header_parameters(request)
                + query_parameters(request)
                + path_parameters(path_template, request)
            ),
            "responses": responses(item.response, self.warnings),
        }
        if folder_path:
            operation["tags"] = folder_path.split(".")
        body = request_body(request, self.warnings)
        if body is not None:
            operation["requestBody"] = body

        self.document["paths"].setdefault(path_template, {})[method.lower()] = operation


def convert_to_openapi(collection: Any) -> Dict[str, Any]:
    """Synthesize an OpenAPI 3.0 document from a Postman collection."""
    return OpenAPISynthesizer(parse_collection(collection)).build()


def _direct_mime_type(request: Request) -> str:
    return LANGUAGE_MIME_TYPES.get(request.body.language, "application/json")


def _is_json_body(request: Request) -> bool:
    body = request.body
    if body is None or body.mode != "raw" or not body.raw:
        return False
    content_type = request.header_value("Content-Type") or ""
    return body.language == "json" or "json" in content_type


def convert_direct(collection: Any) -> TemplateData:
    """Build template data straight from the requests of a collection.

    A GET request carrying a body becomes a resource, every other method a
    tool whose arguments are its query parameters plus a placeholder ``body``
    argument for JSON bodies.
    """
    collection = parse_collection(collection)
    variables = collection.variables()
    endpoints: List[str] = []
    resources: List[Resource] = []
    tools: List[Tool] = []
    taken: Set[str] = set()

    def visit(items: List[Item]) -> None:
        for item in items:
            if item.is_folder:
                visit(item.item)
                continue
            if item.request is None:
                continue
            request = item.request
            endpoints.append(request.url.raw)
            _, raw_path = split_url(request, variables)
            path_template = convert_path_params(raw_path)
            cleaned = clean_path(path_template)
            description = sanitize_description(
                item.name or f"{request.method} operation on {path_template}"
            )

            if request.method == "GET":
                if request.body is not None and request.body.mode:
                    resources.append(
                        Resource(
                            name=sanitize_identifier(f"Resource: {cleaned}"),
                            description=description,
                            uri=f"{RESOURCE_URI_PREFIX}{cleaned}",
                            mime_type=_direct_mime_type(request),
                        )
                    )
                continue

            arguments = [
                Argument(
                    name=sanitize_identifier(query.key),
                    description=sanitize_description(f"Query parameter {query.key}"),
                    required=False,
                )
                for query in request.url.query
                if query.key and not query.disabled
            ]
            if _is_json_body(request):
                arguments.append(
                    Argument(name="body", description="JSON request body", required=True)
                )

            name = sanitize_identifier(derive_tool_name(request.method, cleaned))
            name = unique_name(name, taken)
            taken.add(name)
            tools.append(
                Tool(
                    name=name,
                    description=description,
                    arguments=arguments,
                    method=request.method,
                    path=path_template,
                )
            )

    visit(collection.item)

    return TemplateData(
        missing_base_url=not has_base_url_variable(collection),
        endpoints=endpoints,
        server_name=collection.info.name,
        server_version="1.0.0",
        server_description=sanitize_description(collection.info.description_text),
        resources=resources,
        tools=tools,
    )


def bridge(collection: Any, strategy: Strategy = Strategy.SYNTHESIS) -> TemplateData:
    """Convert a Postman collection into template data.

    Args:
        collection: A decoded collection, optionally wrapped as ``{"collection": ...}``
        strategy: ``synthesis`` or ``direct``

    Returns:
        TemplateData: The canonical model of the collection

    Raises:
        EmptyCollectionError: If ``collection`` is None
        MalformedSourceError: If the collection cannot be decoded
    """
    collection = parse_collection(collection)
    strategy = Strategy(strategy)

    if strategy is Strategy.DIRECT:
        return convert_direct(collection)

    synthesizer = OpenAPISynthesizer(collection)
    data = walk(synthesizer.build())
    return data.model_copy(
        update={
            "missing_base_url": not has_base_url_variable(collection),
            "warnings": tuple(synthesizer.warnings) + data.warnings,
        }
    )
