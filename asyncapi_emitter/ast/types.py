"""Structural type nodes consumed by the schema converter.

Nodes compare and hash by identity so they can key annotation state the
same way the host compiler's type objects do.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, Union


@dataclass(eq=False)
class Scalar:
    """A built-in or user-declared scalar such as ``string`` or ``int32``."""

    name: str
    base: Optional["Scalar"] = None
    doc: Optional[str] = None

    kind = "Scalar"


@dataclass(eq=False)
class StringLiteral:
    value: str

    kind = "String"


@dataclass(eq=False)
class NumberLiteral:
    value: Union[int, float]

    kind = "Number"


@dataclass(eq=False)
class BooleanLiteral:
    value: bool

    kind = "Boolean"


@dataclass(eq=False)
class Intrinsic:
    """``void``, ``null``, ``never`` or ``unknown``."""

    name: str

    kind = "Intrinsic"


@dataclass(eq=False)
class EnumMember:
    name: str
    value: Optional[Union[str, int, float]] = None


@dataclass(eq=False)
class EnumType:
    name: str
    members: List[EnumMember] = field(default_factory=list)
    doc: Optional[str] = None

    kind = "Enum"


@dataclass(eq=False)
class UnionType:
    variants: List["TypeNode"] = field(default_factory=list)
    name: str = ""
    doc: Optional[str] = None

    kind = "Union"


@dataclass(eq=False)
class ArrayType:
    element: "TypeNode"

    kind = "Array"


@dataclass(eq=False)
class RecordType:
    """A string-keyed map, ``Record<T>``."""

    value: "TypeNode"

    kind = "Record"


@dataclass(eq=False)
class ModelProperty:
    name: str
    type: "TypeNode"
    optional: bool = False
    doc: Optional[str] = None
    default: Optional[Any] = None

    kind = "ModelProperty"


@dataclass(eq=False)
class Model:
    """A named or anonymous record type.

    Anonymous models carry an empty ``name`` and are always inlined.
    """

    name: str = ""
    properties: List[ModelProperty] = field(default_factory=list)
    base: Optional["Model"] = None
    doc: Optional[str] = None
    namespace: Optional[str] = None

    kind = "Model"

    @property
    def is_anonymous(self) -> bool:
        return not self.name

    def get_property(self, name: str) -> Optional[ModelProperty]:
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None


TypeNode = Union[
    Scalar,
    StringLiteral,
    NumberLiteral,
    BooleanLiteral,
    Intrinsic,
    EnumType,
    UnionType,
    ArrayType,
    RecordType,
    Model,
]


def type_name(node: Any) -> str:
    """Human readable name for diagnostics."""

    name = getattr(node, "name", None)
    if name:
        return str(name)
    return str(getattr(node, "kind", type(node).__name__))


__all__ = [
    "ArrayType",
    "BooleanLiteral",
    "EnumMember",
    "EnumType",
    "Intrinsic",
    "Model",
    "ModelProperty",
    "NumberLiteral",
    "RecordType",
    "Scalar",
    "StringLiteral",
    "TypeNode",
    "UnionType",
    "type_name",
]
