"""Scalar name to JSON Schema mappings."""

from __future__ import annotations

from typing import Any, Dict, Optional

from ..ast.types import Scalar

# name -> (type, format)
SCALAR_SCHEMAS: Dict[str, tuple] = {
    "string": ("string", None),
    "boolean": ("boolean", None),
    "int8": ("integer", None),
    "int16": ("integer", None),
    "int32": ("integer", "int32"),
    "int64": ("integer", "int64"),
    "uint8": ("integer", None),
    "uint16": ("integer", None),
    "uint32": ("integer", None),
    "uint64": ("integer", None),
    "integer": ("integer", None),
    "safeint": ("integer", None),
    "float": ("number", None),
    "float32": ("number", "float"),
    "float64": ("number", "double"),
    "decimal": ("number", None),
    "decimal128": ("number", None),
    "numeric": ("number", None),
    "bytes": ("string", "binary"),
    "utcDateTime": ("string", "date-time"),
    "offsetDateTime": ("string", "date-time"),
    "plainDate": ("string", "date"),
    "plainTime": ("string", "time"),
    "duration": ("string", "duration"),
    "url": ("string", "uri"),
}


def _lookup(scalar: Optional[Scalar]) -> Optional[tuple]:
    seen = set()
    while scalar is not None and id(scalar) not in seen:
        seen.add(id(scalar))
        entry = SCALAR_SCHEMAS.get(scalar.name)
        if entry is not None:
            return entry
        scalar = scalar.base
    return None


def scalar_schema(scalar: Scalar) -> Dict[str, Any]:
    """Return the schema for ``scalar``, following ``extends`` chains.

    Scalars with no known ancestor are emitted as plain strings.
    """

    schema_type, schema_format = _lookup(scalar) or ("string", None)
    schema: Dict[str, Any] = {"type": schema_type}
    if schema_format:
        schema["format"] = schema_format
    return schema


def is_known_scalar(scalar: Scalar) -> bool:
    return _lookup(scalar) is not None


__all__ = ["SCALAR_SCHEMAS", "is_known_scalar", "scalar_schema"]
