"""Convert OpenAPI documents and Postman collections into MCP template data."""

from .adapters import (
    Adapter,
    OpenAPIFileAdapter,
    OpenAPIURLAdapter,
    PostmanAdapter,
    PostmanFileAdapter,
    create_adapter,
)
from .exceptions import (
    AdapterError,
    EmptyCollectionError,
    MalformedSourceError,
    MissingMetadataError,
    SourceUnavailableError,
    UnsupportedURLError,
)
from .models import Argument, Prompt, Resource, TemplateData, Tool
from .postman import Strategy, bridge
from .walker import walk

__version__ = "0.1.0"
__all__ = [
    "Adapter",
    "OpenAPIFileAdapter",
    "OpenAPIURLAdapter",
    "PostmanAdapter",
    "PostmanFileAdapter",
    "create_adapter",
    "AdapterError",
    "EmptyCollectionError",
    "MalformedSourceError",
    "MissingMetadataError",
    "SourceUnavailableError",
    "UnsupportedURLError",
    "Argument",
    "Prompt",
    "Resource",
    "TemplateData",
    "Tool",
    "Strategy",
    "bridge",
    "walk",
]
