"""
Reference dereferencer for OpenAPI documents.

The walker reads parameters, request bodies and schemas inline, so every $ref
in a loaded document is resolved first. Supported references:
- Local references (e.g. "#/components/schemas/Pet")
- File or URL references (e.g. "./common.yaml#/components/schemas/Error")

Circular references are cut with a ``{"$$circular_ref": ref}`` marker.
"""

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Set, Union
from urllib.parse import urljoin

from .exceptions import MalformedSourceError, SourceUnavailableError, UnsupportedURLError
from .loader import is_url, load_document

logger = logging.getLogger(__name__)


class DereferenceError(MalformedSourceError):
    """Raised when a reference cannot be resolved."""

    pass


class PathDereferencer:
    """Resolves references in an OpenAPI document."""

    def __init__(
        self,
        spec: Dict[str, Any],
        base_path: Optional[Union[str, Path]] = None,
        timeout: Optional[float] = None,
    ):
        """Initialize the dereferencer.

        Args:
            spec: The OpenAPI document
            base_path: Directory or URL that relative file references are resolved
                      against. Defaults to the current working directory.
            timeout: Timeout in seconds for references fetched over HTTP
        """
        self.spec = copy.deepcopy(spec)
        if base_path is None:
            self.base = str(Path.cwd())
        else:
            self.base = str(base_path)
        self.timeout = timeout
        self._cache: Dict[str, Any] = {}
        self._ref_stack: Set[str] = set()

    def _resolve_json_pointer(self, obj: Any, pointer: str) -> Any:
        """Resolve a JSON pointer within an object.

        Args:
            obj: The object to traverse
            pointer: JSON pointer (e.g. "/components/schemas/Pet")

        Returns:
            The referenced value

        Raises:
            DereferenceError: If the pointer cannot be resolved
        """
        if not pointer.startswith("/"):
            raise DereferenceError(f"Invalid JSON pointer: {pointer}")

        current = obj
        for part in pointer[1:].split("/"):
            part = part.replace("~1", "/").replace("~0", "~")
            if isinstance(current, list):
                try:
                    current = current[int(part)]
                    continue
                except (ValueError, IndexError):
                    raise DereferenceError(f"Could not resolve pointer {pointer}")
            try:
                current = current[part]
            except (KeyError, TypeError):
                raise DereferenceError(f"Could not resolve pointer {pointer}")

        return current

    def _locate(self, ref_path: str, source: str) -> str:
        """Turn a relative reference into an absolute file path or URL."""
        if is_url(ref_path):
            return ref_path
        base = source or self.base
        if is_url(base):
            if not source:
                base = base.rstrip("/") + "/"
            return urljoin(base, ref_path)
        base_dir = Path(base).parent if source else Path(base)
        return str((base_dir / ref_path).resolve())

    def _load_external_ref(self, location: str) -> Any:
        """Load an external document, caching it by location."""
        if location in self._cache:
            return self._cache[location]

        try:
            data = load_document(location, timeout=self.timeout)
        except (SourceUnavailableError, UnsupportedURLError) as e:
            raise DereferenceError(
                f"Failed to load external reference {location}: {str(e)}"
            ) from e

        self._cache[location] = data
        return data

    def _dereference_object(self, obj: Any, source: str = "") -> Any:
        """Recursively dereference a value.

        Args:
            obj: The value to dereference
            source: Location of the document ``obj`` belongs to; empty for the
                    root document

        Returns:
            The dereferenced value
        """
        if isinstance(obj, list):
            return [self._dereference_object(item, source) for item in obj]
        if not isinstance(obj, dict):
            return obj

        if isinstance(obj.get("$ref"), str):
            ref = obj["$ref"]
            file_part, _, pointer = ref.partition("#")
            target_source = self._locate(file_part, source) if file_part else source
            key = f"{target_source}#{pointer}"
            if key in self._ref_stack:
                logger.debug("Circular reference to %s", ref)
                return {"$$circular_ref": ref}

            document = self._load_external_ref(target_source) if target_source else self.spec
            target = self._resolve_json_pointer(document, pointer) if pointer else document

            self._ref_stack.add(key)
            try:
                resolved = self._dereference_object(target, target_source)
            finally:
                self._ref_stack.remove(key)

            if not isinstance(resolved, dict):
                return resolved
            # Sibling keys of a $ref win over the referenced content
            result = dict(resolved)
            for k, v in obj.items():
                if k != "$ref":
                    result[k] = self._dereference_object(v, source)
            return result

        return {key: self._dereference_object(value, source) for key, value in obj.items()}

    def dereference(self) -> Dict[str, Any]:
        """Dereference the paths and components of the document.

        Returns:
            A copy of the document with all references resolved

        Raises:
            DereferenceError: If any reference cannot be resolved
        """
        self._ref_stack.clear()
        result = copy.deepcopy(self.spec)

        for section in ("paths", "components"):
            if isinstance(result.get(section), dict):
                result[section] = self._dereference_object(result[section])

        return result


def load_openapi(location: str, timeout: Optional[float] = None) -> Dict[str, Any]:
    """Load an OpenAPI document from a file or URL and resolve its references.

    Args:
        location: Filesystem path or http(s) URL
        timeout: Timeout in seconds for network loads

    Returns:
        The dereferenced document
    """
    document = load_document(location, timeout=timeout)
    if is_url(location):
        base: Union[str, Path] = location.rsplit("/", 1)[0]
    else:
        base = Path(location).resolve().parent
    return PathDereferencer(document, base_path=base, timeout=timeout).dereference()

