"""
Name derivation and sanitization helpers used by every converter.
"""

import re
from typing import Container

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")


def derive_tool_name(method: str, path: str) -> str:
    """Generate a tool name from an HTTP method and a path.

    Args:
        method: HTTP method in any case
        path: Path template, with or without the leading slash

    Returns:
        str: e.g. ``get_user_by_username`` for ``("GET", "/user/{username}")``
    """
    method = method.lower()
    path = path[1:] if path.startswith("/") else path
    if not path:
        return method
    path = path.replace("/", "_")
    path = path.replace("_{", "_by_").replace("{", "_by_")
    path = path.replace("}", "")
    return f"{method}_{path}"


def clean_path(path: str) -> str:
    """Strip the leading slash and turn the remaining separators into underscores."""
    path = path[1:] if path.startswith("/") else path
    return path.replace("/", "_")


def sanitize_identifier(raw: str) -> str:
    """Make a name safe to use as an identifier in generated templates."""
    name = raw.replace("-", "_").replace(" ", "_")
    for char in ("\n", "[", "]", '"'):
        name = name.replace(char, "")
    return name


def sanitize_description(raw: str) -> str:
    return raw.replace('"', "")


def sanitize_operation_id(raw: str) -> str:
    """Collapse every run of non-alphanumeric characters into a single underscore.

    ``"Create User (POST)"`` becomes ``"Create_User_POST"``.
    """
    words = _NON_ALNUM.sub("_", raw).split("_")
    return "_".join(word for word in words if word)


def unique_name(name: str, taken: Container[str]) -> str:
    """Return ``name``, or ``name_2``, ``name_3``... if it is already taken."""
    if name not in taken:
        return name
    index = 2
    while f"{name}_{index}" in taken:
        index += 1
    return f"{name}_{index}"
