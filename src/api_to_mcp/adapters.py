"""
Source adapters.

Each adapter owns the loading of one kind of source and delegates the
structural conversion to the OpenAPI walker or the Postman bridge.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .config import Settings, get_settings
from .dereferencer import load_openapi
from .exceptions import MalformedSourceError, SourceUnavailableError, UnsupportedURLError
from .loader import fetch, is_url, load_document
from .models import TemplateData
from .postman import Strategy, bridge
from .walker import walk

logger = logging.getLogger(__name__)


class Adapter(ABC):
    """Turns one API description source into template data."""

    @abstractmethod
    def to_template_data(self) -> TemplateData:
        """Load the source and convert it.

        Raises:
            AdapterError: If the source cannot be loaded or converted
        """

    @abstractmethod
    def get_source_type(self) -> str:
        """Return a fixed label identifying the kind of source."""


class OpenAPIFileAdapter(Adapter):
    """An OpenAPI 3.x document on the local filesystem."""

    def __init__(self, path: Union[str, Path]):
        self.path = str(path)

    def to_template_data(self) -> TemplateData:
        if is_url(self.path):
            raise UnsupportedURLError(f"Expected a filesystem path, got a URL: {self.path}")
        logger.info("Loading OpenAPI document from %s", self.path)
        return walk(load_openapi(self.path))

    def get_source_type(self) -> str:
        return "oas31"


class OpenAPIURLAdapter(Adapter):
    """An OpenAPI 3.x document fetched over http(s), or read from disk otherwise."""

    def __init__(
        self,
        location: str,
        timeout: Optional[float] = None,
        settings: Optional[Settings] = None,
    ):
        self.location = location
        settings = settings or get_settings()
        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds

    def to_template_data(self) -> TemplateData:
        logger.info("Loading OpenAPI document from %s", self.location)
        return walk(load_openapi(self.location, timeout=self.timeout))

    def get_source_type(self) -> str:
        return "oas31-url"


class PostmanAdapter(Adapter):
    """A collection fetched by ID from the Postman API."""

    def __init__(
        self,
        collection_id: str,
        api_key: Optional[str] = None,
        strategy: Strategy = Strategy.SYNTHESIS,
        settings: Optional[Settings] = None,
    ):
        settings = settings or get_settings()
        self.collection_id = collection_id
        self.api_key = api_key if api_key is not None else settings.postman_api_key
        self.strategy = Strategy(strategy)
        self.api_url = settings.postman_api_url
        self.timeout = settings.request_timeout_seconds

    def fetch_collection(self) -> Dict[str, Any]:
        """Fetch the collection from the Postman API.

        Raises:
            UnsupportedURLError: If the collection ID is empty
            SourceUnavailableError: If the request fails or does not return 200
            MalformedSourceError: If the response is not a JSON object
        """
        if not self.collection_id:
            raise UnsupportedURLError("A Postman collection ID is required")
        url = self.api_url.format(collection_id=self.collection_id)
        headers = {"X-API-Key": self.api_key} if self.api_key else {}

        response = fetch(url, timeout=self.timeout, headers=headers)
        try:
            data = response.json()
        except ValueError as e:
            raise MalformedSourceError(f"Postman API returned invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise MalformedSourceError("Postman API did not return a JSON object")
        return data

    def to_template_data(self) -> TemplateData:
        logger.info("Fetching Postman collection %s", self.collection_id)
        return bridge(self.fetch_collection(), strategy=self.strategy)

    def get_source_type(self) -> str:
        return "postman"


class PostmanFileAdapter(Adapter):
    """A collection exported from Postman to a local file."""

    def __init__(self, path: Union[str, Path], strategy: Strategy = Strategy.SYNTHESIS):
        self.path = str(path)
        self.strategy = Strategy(strategy)

    def to_template_data(self) -> TemplateData:
        logger.info("Loading Postman collection from %s", self.path)
        return bridge(load_document(self.path), strategy=self.strategy)

    def get_source_type(self) -> str:
        return "postman-file"


def detect_format(data: Dict[str, Any]) -> Optional[str]:
    """Detect the format of a decoded API description.

    Returns: 'openapi', 'postman', or None.
    """
    if "openapi" in data or "swagger" in data:
        return "openapi"
    if isinstance(data.get("collection"), dict):
        data = data["collection"]
    info = data.get("info")
    if isinstance(info, dict):
        if "_postman_id" in info or "getpostman.com" in str(info.get("schema", "")):
            return "postman"
    if isinstance(data.get("item"), list):
        return "postman"
    return None


def create_adapter(
    source: str,
    fmt: str = "auto",
    strategy: Strategy = Strategy.SYNTHESIS,
    api_key: Optional[str] = None,
    timeout: Optional[float] = None,
) -> Adapter:
    """Pick the adapter for a path, URL or Postman collection ID.

    Args:
        source: Filesystem path, http(s) URL, or Postman collection ID
        fmt: 'auto', 'openapi' or 'postman'
        strategy: Postman conversion strategy
        api_key: Postman API key, for collection IDs
        timeout: Timeout in seconds for network loads

    Raises:
        SourceUnavailableError: If an 'auto' source is neither a URL nor an existing file
        MalformedSourceError: If an 'auto' file is neither OpenAPI nor Postman
    """
    if fmt == "openapi":
        if is_url(source):
            return OpenAPIURLAdapter(source, timeout=timeout)
        return OpenAPIFileAdapter(source)

    if fmt == "postman":
        if Path(source).is_file():
            return PostmanFileAdapter(source, strategy=strategy)
        return PostmanAdapter(source, api_key=api_key, strategy=strategy)

    if fmt != "auto":
        raise ValueError(f"Unknown source format: {fmt}")

    if is_url(source):
        return OpenAPIURLAdapter(source, timeout=timeout)
    if not Path(source).is_file():
        raise SourceUnavailableError(f"Source not found: {source}")

    detected = detect_format(load_document(source))
    if detected == "openapi":
        return OpenAPIFileAdapter(source)
    if detected == "postman":
        return PostmanFileAdapter(source, strategy=strategy)
    raise MalformedSourceError(f"Could not detect the format of {source}")
