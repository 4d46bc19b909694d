"""
Loading of raw API descriptions from local files and http(s) URLs.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union
from urllib.parse import urlparse

import requests
import yaml

from .exceptions import MalformedSourceError, SourceUnavailableError, UnsupportedURLError

logger = logging.getLogger(__name__)


def is_url(location: str) -> bool:
    """Return True when ``location`` looks like an http or https URL."""
    return urlparse(location).scheme in ("http", "https")


def parse_content(content: Union[str, bytes], origin: str = "<string>") -> Dict[str, Any]:
    """Parse a JSON or YAML document.

    Args:
        content: Raw document text
        origin: Where the content came from, for error messages

    Returns:
        dict: The parsed document

    Raises:
        MalformedSourceError: If the content is neither JSON nor YAML, or is not a mapping
    """
    try:
        # Try JSON first
        data = json.loads(content)
    except ValueError:
        try:
            # Try YAML if JSON fails
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise MalformedSourceError(f"Failed to parse {origin}: {e}")

    if not isinstance(data, dict):
        raise MalformedSourceError(f"{origin} does not contain a JSON/YAML object")
    return data


def fetch(
    url: str,
    timeout: Optional[float] = None,
    headers: Optional[Dict[str, str]] = None,
) -> requests.Response:
    """GET a URL and return the response, which is guaranteed to be a 200.

    Raises:
        SourceUnavailableError: On network errors or a non-200 status
    """
    logger.debug("Fetching %s", url)
    try:
        response = requests.get(url, headers=headers, timeout=timeout)
    except requests.RequestException as e:
        raise SourceUnavailableError(f"Failed to fetch {url}: {e}") from e
    if response.status_code != 200:
        raise SourceUnavailableError(
            f"Failed to fetch {url}: "
            f"HTTP {response.status_code} {response.reason or ''}".rstrip()
        )
    return response


def _check_location(location: str) -> None:
    if not location or not location.strip():
        raise UnsupportedURLError("An empty source location was given")
    parsed = urlparse(location)
    if parsed.scheme in ("http", "https"):
        if not parsed.netloc:
            raise UnsupportedURLError(f"URL has no host: {location}")
        return
    # Single-letter schemes are Windows drive letters
    if parsed.scheme and len(parsed.scheme) > 1:
        raise UnsupportedURLError(f"Unsupported URL scheme '{parsed.scheme}': {location}")


def load_document(
    location: Union[str, Path], timeout: Optional[float] = None
) -> Dict[str, Any]:
    """Load a JSON or YAML document from a filesystem path or an http(s) URL.

    Args:
        location: Filesystem path or URL
        timeout: Timeout in seconds for network loads

    Returns:
        dict: The parsed document

    Raises:
        UnsupportedURLError: If the location is neither a path nor an http(s) URL
        SourceUnavailableError: If the document cannot be read or fetched
        MalformedSourceError: If the document cannot be parsed
    """
    location = str(location)
    _check_location(location)

    if is_url(location):
        return parse_content(fetch(location, timeout=timeout).content, location)

    path = Path(location)
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SourceUnavailableError(f"Failed to read {location}: {e}") from e
    return parse_content(content, location)
