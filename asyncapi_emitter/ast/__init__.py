"""Typed input nodes supplied by the host compiler front end."""

from .program import Namespace, Operation, Program
from .types import (
    ArrayType,
    BooleanLiteral,
    EnumMember,
    EnumType,
    Intrinsic,
    Model,
    ModelProperty,
    NumberLiteral,
    RecordType,
    Scalar,
    StringLiteral,
    TypeNode,
    UnionType,
    type_name,
)

__all__ = [
    "ArrayType",
    "BooleanLiteral",
    "EnumMember",
    "EnumType",
    "Intrinsic",
    "Model",
    "ModelProperty",
    "Namespace",
    "NumberLiteral",
    "Operation",
    "Program",
    "RecordType",
    "Scalar",
    "StringLiteral",
    "TypeNode",
    "UnionType",
    "type_name",
]
