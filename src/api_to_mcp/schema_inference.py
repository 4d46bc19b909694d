"""
JSON Schema inference over untyped example payloads.

Postman collections carry example bodies instead of schemas, so the bridge
samples those values to build the schemas of the synthesized OpenAPI document.
"""

import json
import math
from typing import Any, Dict, Optional, Tuple

STRING_SCHEMA = {"type": "string"}


def infer_schema(value: Any) -> Dict[str, Any]:
    """Infer a JSON schema from a decoded JSON value.

    Only the first element of a list is sampled.

    Args:
        value: Any value produced by ``json.loads``

    Returns:
        dict: A schema node with ``type`` and, for containers, ``properties`` or ``items``
    """
    if isinstance(value, dict):
        return {
            "type": "object",
            "properties": {key: infer_schema(item) for key, item in value.items()},
        }
    if isinstance(value, list):
        if not value:
            return {"type": "array", "items": dict(STRING_SCHEMA)}
        return {"type": "array", "items": infer_schema(value[0])}
    if isinstance(value, bool):
        return {"type": "boolean"}
    if isinstance(value, int):
        return {"type": "integer"}
    if isinstance(value, float):
        if math.isfinite(value) and value == math.trunc(value):
            return {"type": "integer"}
        return {"type": "number"}
    if value is None:
        return {"type": "null"}
    return dict(STRING_SCHEMA)


def infer_schema_from_text(
    text: str, content_type: str
) -> Tuple[Dict[str, Any], Optional[str]]:
    """Infer a schema for an embedded body.

    Args:
        text: The raw body text
        content_type: Declared content type of the body

    Returns:
        tuple: (schema, warning). The warning is set when a JSON body could not be
        parsed, in which case the string schema is returned.
    """
    if "json" not in content_type:
        return dict(STRING_SCHEMA), None
    try:
        data = json.loads(text)
    except ValueError as e:
        return dict(STRING_SCHEMA), f"failed to parse JSON body: {e}"
    return infer_schema(data), None
