"""Program-level nodes: namespaces and operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from .types import Model, ModelProperty, TypeNode


@dataclass(eq=False)
class Operation:
    """A named interface operation with parameters and a payload type."""

    name: str
    parameters: List[ModelProperty] = field(default_factory=list)
    return_type: Optional[TypeNode] = None
    doc: Optional[str] = None
    namespace: Optional[str] = None

    kind = "Operation"

    def get_parameter(self, name: str) -> Optional[ModelProperty]:
        for param in self.parameters:
            if param.name == name:
                return param
        return None


@dataclass(eq=False)
class Namespace:
    name: str = ""
    operations: List[Operation] = field(default_factory=list)
    namespaces: List["Namespace"] = field(default_factory=list)
    models: List[Model] = field(default_factory=list)
    doc: Optional[str] = None

    kind = "Namespace"


@dataclass
class Program:
    """A fully type-checked program handed over by the host compiler."""

    root: Namespace
    source_files: List[str] = field(default_factory=list)


__all__ = ["Namespace", "Operation", "Program"]
