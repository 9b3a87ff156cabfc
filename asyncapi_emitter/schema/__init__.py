"""Type to JSON Schema conversion."""

from .converter import SCHEMA_REF_PREFIX, SchemaConverter, schema_ref, with_description
from .scalars import SCALAR_SCHEMAS, is_known_scalar, scalar_schema

__all__ = [
    "SCALAR_SCHEMAS",
    "SCHEMA_REF_PREFIX",
    "SchemaConverter",
    "is_known_scalar",
    "scalar_schema",
    "schema_ref",
    "with_description",
]
