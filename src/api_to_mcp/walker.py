"""
Conversion of a loaded OpenAPI document into the canonical template data.
"""

import logging
from typing import Any, Dict, List, Optional, Set

from .exceptions import MissingMetadataError
from .models import Argument, Prompt, Resource, TemplateData, Tool
from .naming import (
    clean_path,
    derive_tool_name,
    sanitize_description,
    sanitize_identifier,
    unique_name,
)

logger = logging.getLogger(__name__)

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")
TOOL_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE")
RESOURCE_URI_PREFIX = "api-to-mcp://internal/"
DEFAULT_MIME_TYPE = "text/plain"


class OpenAPIWalker:
    """Walks the paths of an OpenAPI document and emits tools, resources and prompts."""

    def __init__(self, document: Optional[Dict[str, Any]]):
        """Initialize the walker with a dereferenced OpenAPI document.

        Args:
            document: The OpenAPI document, with $refs already resolved

        Raises:
            MissingMetadataError: If the document or its info block is missing
        """
        if document is None:
            raise MissingMetadataError("must provide an OpenAPI document")
        if not isinstance(document.get("info"), dict):
            raise MissingMetadataError("OpenAPI document has no info block")
        self.document = document
        self.warnings: List[str] = []

    def _warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)

    def _server_urls(self) -> List[str]:
        servers = self.document.get("servers") or []
        urls = [
            server["url"]
            for server in servers
            if isinstance(server, dict) and server.get("url")
        ]
        if len(urls) > 1:
            self._warn(
                f"multiple servers found in the document, "
                f"only the first ({urls[0]}) is used"
            )
        return urls

    def _convert_parameters(self, path_item: dict, operation: dict) -> List[Argument]:
        """Map path-level and operation-level parameters to arguments.

        An operation-level parameter replaces a path-level one with the same
        name and location. YAML may decode names such as ``on`` to non-strings,
        so names are converted with ``str`` first.
        """
        params = (path_item.get("parameters") or []) + (operation.get("parameters") or [])
        merged: Dict[tuple, dict] = {}
        for param in params:
            if not isinstance(param, dict) or param.get("name") in (None, ""):
                continue
            merged[(str(param["name"]), param.get("in"))] = param

        return [
            Argument(
                name=sanitize_identifier(str(param["name"])),
                description=sanitize_description(str(param.get("description") or "")),
                required=param.get("in") == "path" or bool(param.get("required", False)),
            )
            for param in merged.values()
        ]

    def _convert_request_body(self, operation: dict) -> List[Argument]:
        """Flatten the immediate properties of the first request body schema.

        Only the first declared content type is inspected.
        """
        request_body = operation.get("requestBody") or {}
        content = request_body.get("content") or {}
        for media_type in content.values():
            schema = (media_type or {}).get("schema") or {}
            required = {str(name) for name in schema.get("required") or []}
            arguments = []
            for prop_name, prop in (schema.get("properties") or {}).items():
                prop_name = str(prop_name)
                description = str((prop or {}).get("description") or "")
                arguments.append(
                    Argument(
                        name=sanitize_identifier(prop_name),
                        description=sanitize_description(description),
                        required=prop_name in required,
                    )
                )
            return arguments
        return []

    def _response_mime_type(self, operation: dict) -> str:
        responses = operation.get("responses") or {}
        response = responses.get("200") or responses.get(200) or {}
        for content_type in response.get("content") or {}:
            return content_type
        return DEFAULT_MIME_TYPE

    def walk(self) -> TemplateData:
        """Convert the document.

        Returns:
            TemplateData: The canonical model of the document
        """
        info = self.document["info"]
        endpoints = self._server_urls()

        resources: List[Resource] = []
        prompts: List[Prompt] = []
        tools: List[Tool] = []
        prompt_names: Set[str] = set()
        tool_names: Set[str] = set()

        for path, path_item in (self.document.get("paths") or {}).items():
            if not isinstance(path_item, dict):
                continue
            cleaned = clean_path(path)

            for method_key, operation in path_item.items():
                method = str(method_key).upper()
                if method.lower() not in HTTP_METHODS or not isinstance(operation, dict):
                    continue
                op_name = sanitize_identifier(derive_tool_name(method, cleaned))
                description = sanitize_description(
                    str(
                        operation.get("summary")
                        or operation.get("description")
                        or f"{method} operation on {path}"
                    )
                )

                arguments = self._convert_parameters(path_item, operation)

                if method == "GET":
                    resources.append(
                        Resource(
                            name=sanitize_identifier(f"Resource: {cleaned}"),
                            description=description,
                            uri=f"{RESOURCE_URI_PREFIX}{cleaned}",
                            mime_type=self._response_mime_type(operation),
                        )
                    )
                    prompt_name = self._claim(op_name, prompt_names, "prompt")
                    prompts.append(
                        Prompt(
                            name=prompt_name,
                            description=description,
                            arguments=list(arguments),
                        )
                    )

                if method in TOOL_METHODS:
                    arguments.extend(self._convert_request_body(operation))
                    tool_name = self._claim(op_name, tool_names, "tool")
                    tools.append(
                        Tool(
                            name=tool_name,
                            description=description,
                            arguments=arguments,
                            method=method,
                            path=path,
                        )
                    )

        return TemplateData(
            missing_base_url=not endpoints,
            endpoints=endpoints,
            server_name=str(info.get("title") or ""),
            server_version=str(info.get("version") or ""),
            server_description=sanitize_description(str(info.get("description") or "")),
            resources=resources,
            prompts=prompts,
            tools=tools,
            warnings=self.warnings,
        )

    def _claim(self, name: str, taken: Set[str], kind: str) -> str:
        unique = unique_name(name, taken)
        if unique != name:
            self._warn(f"duplicate {kind} name {name!r} renamed to {unique!r}")
        taken.add(unique)
        return unique


def walk(document: Optional[Dict[str, Any]]) -> TemplateData:
    """Convert a dereferenced OpenAPI document into template data."""
    return OpenAPIWalker(document).walk()
