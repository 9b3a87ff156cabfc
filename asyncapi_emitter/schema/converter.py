"""
Type to JSON Schema conversion.

Named models are stored once in a schema arena (``components.schemas``)
and every use site refers to them by ``$ref``. Anonymous models are
inlined. A model already on the expansion stack is never expanded again,
which closes self- and mutually-recursive graphs with a ``$ref`` edge.

Example:
    ```python
    converter = SchemaConverter()
    converter.convert(tree_node_model)
    # {"$ref": "#/components/schemas/TreeNode"}
    converter.schemas["TreeNode"]["properties"]["children"]["items"]
    # {"$ref": "#/components/schemas/TreeNode"}
    ```
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ..ast.types import (
    ArrayType,
    BooleanLiteral,
    EnumType,
    Intrinsic,
    Model,
    ModelProperty,
    NumberLiteral,
    RecordType,
    Scalar,
    StringLiteral,
    UnionType,
    type_name,
)
from ..diagnostics import DiagnosticCollector
from ..errors import SchemaRegistrationError
from .scalars import is_known_scalar, scalar_schema

logger = logging.getLogger(__name__)

SCHEMA_REF_PREFIX = "#/components/schemas/"


def schema_ref(name: str) -> Dict[str, str]:
    return {"$ref": f"{SCHEMA_REF_PREFIX}{name}"}


def with_description(schema: Dict[str, Any], description: str) -> Dict[str, Any]:
    """Attach ``description`` to ``schema``.

    Draft-07 ignores keywords beside ``$ref``, so references are wrapped in a
    single-entry ``allOf`` that carries the annotation instead.
    """

    if "$ref" in schema:
        return {"allOf": [dict(schema)], "description": description}
    return {**schema, "description": description}


class SchemaConverter:
    """Convert structural type nodes into JSON Schema dictionaries.

    Args:
        strict: Report each fallback to a generic object schema as an
            ``unsupported-type`` warning and each scalar without a known
            ancestor as ``unknown-scalar``.
        diagnostics: Sink for strict-mode warnings.
    """

    def __init__(self, *, strict: bool = False, diagnostics: Optional[DiagnosticCollector] = None):
        self.strict = strict
        self.diagnostics = diagnostics
        self.schemas: Dict[str, Dict[str, Any]] = {}
        self._owners: Dict[str, Model] = {}
        self._expanding: List[Model] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def convert(self, node: Any) -> Dict[str, Any]:
        """Convert ``node`` to a schema suitable for a use site."""

        if isinstance(node, Model):
            if node.is_anonymous:
                return self._object_schema(node)
            return self.register_model(node)
        if isinstance(node, Scalar):
            if self.strict and self.diagnostics is not None and not is_known_scalar(node):
                self.diagnostics.report("unknown-scalar", target=node.name, type=node.name)
            return scalar_schema(node)
        if isinstance(node, StringLiteral):
            return {"type": "string", "const": node.value}
        if isinstance(node, NumberLiteral):
            return {"type": _number_type([node.value]), "const": node.value}
        if isinstance(node, BooleanLiteral):
            return {"type": "boolean", "const": node.value}
        if isinstance(node, ArrayType):
            return {"type": "array", "items": self.convert(node.element)}
        if isinstance(node, RecordType):
            return {"type": "object", "additionalProperties": self.convert(node.value)}
        if isinstance(node, UnionType):
            return self._union_schema(node)
        if isinstance(node, EnumType):
            return self._enum_schema(node)
        if isinstance(node, Intrinsic) and node.name == "null":
            return {"type": "null"}
        return self._fallback(node)

    def register_model(self, model: Model) -> Dict[str, str]:
        """Register ``model`` under its name and return a ``$ref`` to it.

        Registering the same model again is a no-op.

        Raises:
            SchemaRegistrationError: A different model already owns the name.
        """

        name = model.name
        owner = self._owners.get(name)
        if owner is not None:
            if owner is not model:
                raise SchemaRegistrationError(name)
            return schema_ref(name)
        if model in self._expanding:
            return schema_ref(name)

        self._owners[name] = model
        # Reserve the slot so components keep first-encounter order.
        self.schemas[name] = {}
        self._expanding.append(model)
        try:
            self.schemas[name] = self.model_schema(model)
        except SchemaRegistrationError:
            del self.schemas[name]
            del self._owners[name]
            raise
        finally:
            self._expanding.pop()
        logger.debug("Registered schema component %s", name)
        return schema_ref(name)

    def model_schema(self, model: Model) -> Dict[str, Any]:
        """Full component schema for a named model."""

        own = self._object_schema(model)
        description = model.doc or f"Schema for {model.name}"
        if model.base is None:
            own["description"] = description
            return own
        base_schema = self.convert(model.base)
        return {"allOf": [base_schema, own], "description": description}

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _object_schema(self, model: Model) -> Dict[str, Any]:
        properties: Dict[str, Any] = {}
        required: List[str] = []
        for prop in model.properties:
            properties[prop.name] = self._property_schema(prop)
            if not prop.optional:
                required.append(prop.name)
        schema: Dict[str, Any] = {"type": "object", "properties": properties}
        if required:
            schema["required"] = required
        if model.is_anonymous and model.doc:
            schema["description"] = model.doc
        return schema

    def _property_schema(self, prop: ModelProperty) -> Dict[str, Any]:
        schema = with_description(self.convert(prop.type), prop.doc or f"Property {prop.name}")
        if prop.default is not None:
            schema["default"] = prop.default
        return schema

    def _union_schema(self, union: UnionType) -> Dict[str, Any]:
        variants = [
            v for v in union.variants if not (isinstance(v, Intrinsic) and v.name == "null")
        ]
        if not variants:
            return {"type": "null"}
        if all(isinstance(v, StringLiteral) for v in variants):
            return {"type": "string", "enum": [v.value for v in variants]}
        if all(isinstance(v, NumberLiteral) for v in variants):
            values = [v.value for v in variants]
            return {"type": _number_type(values), "enum": values}
        if all(isinstance(v, BooleanLiteral) for v in variants):
            return {"type": "boolean", "enum": [v.value for v in variants]}
        if len(variants) == 1:
            return self.convert(variants[0])
        return {"oneOf": [self.convert(v) for v in variants]}

    def _enum_schema(self, enum: EnumType) -> Dict[str, Any]:
        values = [m.value if m.value is not None else m.name for m in enum.members]
        if values and all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in values):
            schema: Dict[str, Any] = {"type": _number_type(values), "enum": values}
        else:
            schema = {"type": "string", "enum": [str(v) for v in values]}
        if enum.doc:
            schema["description"] = enum.doc
        return schema

    def _fallback(self, node: Any) -> Dict[str, Any]:
        name = type_name(node)
        logger.debug("No schema mapping for %s; using generic object", name)
        if self.strict and self.diagnostics is not None:
            self.diagnostics.report("unsupported-type", target=name, type=name)
        return {"type": "object"}


def _number_type(values: List[Any]) -> str:
    if all(isinstance(v, int) and not isinstance(v, bool) for v in values):
        return "integer"
    return "number"


__all__ = ["SCHEMA_REF_PREFIX", "SchemaConverter", "schema_ref", "with_description"]
