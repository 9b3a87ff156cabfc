"""Per-emission descriptors produced by the walker and consumed by the assembler."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .ast import ModelProperty, Operation, TypeNode

_TEMPLATE_VARIABLE = re.compile(r"\{([^{}]+)\}")


class OperationAction(str, Enum):
    SEND = "send"
    RECEIVE = "receive"


@dataclass
class OperationDescriptor:
    """One discovered operation."""

    name: str
    action: OperationAction
    address: str
    node: Optional[Operation] = None
    parameters: List[ModelProperty] = field(default_factory=list)
    return_type: Optional[TypeNode] = None
    doc: Optional[str] = None
    namespace: Optional[str] = None
    explicit_address: bool = False

    @property
    def channel_key(self) -> str:
        return f"channel_{self.name}"

    @property
    def message_name(self) -> str:
        return f"{self.name}Message"

    def address_variables(self) -> List[str]:
        return _TEMPLATE_VARIABLE.findall(self.address)


@dataclass
class ChannelDescriptor:
    key: str
    address: str
    description: str
    messages: List[str] = field(default_factory=list)
    parameters: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    bindings: Dict[str, Any] = field(default_factory=dict)

    def to_asyncapi(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "address": self.address,
            "description": self.description,
            "messages": {
                name: {"$ref": f"#/components/messages/{name}"} for name in self.messages
            },
        }
        if self.parameters:
            data["parameters"] = dict(self.parameters)
        if self.bindings:
            data["bindings"] = dict(self.bindings)
        return data


@dataclass
class MessageDescriptor:
    name: str
    payload: Dict[str, Any]
    title: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    content_type: str = "application/json"
    examples: List[Dict[str, Any]] = field(default_factory=list)
    headers: Optional[Dict[str, Any]] = None
    correlation_id: Optional[Dict[str, Any]] = None
    bindings: Dict[str, Any] = field(default_factory=dict)

    def to_asyncapi(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "title": self.title or self.name,
            "contentType": self.content_type,
            "payload": self.payload,
        }
        if self.summary:
            data["summary"] = self.summary
        if self.description:
            data["description"] = self.description
        if self.headers:
            data["headers"] = self.headers
        if self.correlation_id:
            data["correlationId"] = self.correlation_id
        if self.examples:
            data["examples"] = list(self.examples)
        if self.bindings:
            data["bindings"] = dict(self.bindings)
        return data


__all__ = [
    "ChannelDescriptor",
    "MessageDescriptor",
    "OperationAction",
    "OperationDescriptor",
]
