"""Semantic validation rules applied after structural schema validation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterator, List, Tuple

from ..bindings import BindingLevel, SUPPORT_MATRIX
from .result import ValidationIssue, ValidationSeverity

_CHANNEL_PREFIX = "#/channels/"
_MESSAGE_PREFIX = "#/components/messages/"
_SCHEMA_PREFIX = "#/components/schemas/"


class ValidationRule(ABC):
    """Base class for document-level semantic rules."""

    def __init__(self, rule_id: str, description: str):
        self.rule_id = rule_id
        self.description = description

    @abstractmethod
    def check(self, document: Dict[str, Any]) -> List[ValidationIssue]:
        """
        Apply this rule to a document.

        Args:
            document: Parsed AsyncAPI document

        Returns:
            Issues found; empty when the rule passes
        """

    def issue(
        self,
        message: str,
        instance_path: str,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
        kind: str = "reference",
    ) -> ValidationIssue:
        return ValidationIssue(
            message=message,
            kind=kind,
            instance_path=instance_path,
            schema_path=f"#/x-rules/{self.rule_id}",
            severity=severity,
            rule_id=self.rule_id,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.rule_id!r})"


def _section(document: Dict[str, Any], *keys: str) -> Dict[str, Any]:
    current: Any = document
    for key in keys:
        if not isinstance(current, dict):
            return {}
        current = current.get(key)
    return current if isinstance(current, dict) else {}


def resolve_pointer(document: Dict[str, Any], ref: str) -> Tuple[bool, Any]:
    """Resolve a local ``#/a/b`` JSON pointer inside ``document``."""

    if not ref.startswith("#/"):
        return False, None
    current: Any = document
    for raw in ref[2:].split("/"):
        token = raw.replace("~1", "/").replace("~0", "~")
        if isinstance(current, dict) and token in current:
            current = current[token]
        elif isinstance(current, list) and token.isdigit() and int(token) < len(current):
            current = current[int(token)]
        else:
            return False, None
    return True, current


class ChannelReferenceRule(ValidationRule):
    """Every operation's channel ``$ref`` names a declared channel."""

    def __init__(self) -> None:
        super().__init__("valid-channel-references", "Operations must reference existing channels")

    def check(self, document: Dict[str, Any]) -> List[ValidationIssue]:
        channels = _section(document, "channels")
        issues: List[ValidationIssue] = []
        for name, operation in _section(document, "operations").items():
            if not isinstance(operation, dict):
                continue
            channel = operation.get("channel")
            ref = channel.get("$ref") if isinstance(channel, dict) else None
            if not isinstance(ref, str):
                continue
            channel_key = ref[len(_CHANNEL_PREFIX):] if ref.startswith(_CHANNEL_PREFIX) else None
            if channel_key is None or channel_key not in channels:
                issues.append(
                    self.issue(
                        f"Operation '{name}' references non-existent channel '{ref}'",
                        f"/operations/{name}/channel",
                    )
                )
        return issues


class MessageReferenceRule(ValidationRule):
    """Channel and operation message references resolve."""

    def __init__(self) -> None:
        super().__init__("valid-message-references", "Message references must resolve")

    def check(self, document: Dict[str, Any]) -> List[ValidationIssue]:
        messages = _section(document, "components", "messages")
        schemas = _section(document, "components", "schemas")
        issues: List[ValidationIssue] = []
        for key, channel in _section(document, "channels").items():
            if not isinstance(channel, dict):
                continue
            for name, message in _section(channel, "messages").items():
                ref = message.get("$ref") if isinstance(message, dict) else None
                if not isinstance(ref, str):
                    continue
                if ref.startswith(_MESSAGE_PREFIX) and ref[len(_MESSAGE_PREFIX):] in messages:
                    continue
                if ref.startswith(_SCHEMA_PREFIX) and ref[len(_SCHEMA_PREFIX):] in schemas:
                    continue
                issues.append(
                    self.issue(
                        f"Channel '{key}' references non-existent message '{ref}'",
                        f"/channels/{key}/messages/{name}",
                    )
                )
        for name, operation in _section(document, "operations").items():
            refs = operation.get("messages") if isinstance(operation, dict) else None
            if not isinstance(refs, list):
                continue
            for index, message in enumerate(refs):
                ref = message.get("$ref") if isinstance(message, dict) else None
                if isinstance(ref, str) and not resolve_pointer(document, ref)[0]:
                    issues.append(
                        self.issue(
                            f"Operation '{name}' references non-existent message '{ref}'",
                            f"/operations/{name}/messages/{index}",
                        )
                    )
        return issues


class InternalReferenceRule(ValidationRule):
    """Any other local ``$ref`` (schemas, security schemes) resolves."""

    _SKIP_PARENTS = (("operations", "*", "channel"), ("channels", "*", "messages", "*"), ("operations", "*", "messages", "*"))

    def __init__(self) -> None:
        super().__init__("valid-internal-references", "Local references must resolve")

    def check(self, document: Dict[str, Any]) -> List[ValidationIssue]:
        issues: List[ValidationIssue] = []
        for path, ref in _iter_refs(document, ()):
            if any(_matches(path, pattern) for pattern in self._SKIP_PARENTS):
                continue
            if ref.startswith("#") and not resolve_pointer(document, ref)[0]:
                pointer = "/" + "/".join(str(p) for p in path)
                issues.append(self.issue(f"Reference '{ref}' does not resolve", pointer))
        return issues


class ProtocolBindingCompatibilityRule(ValidationRule):
    """Warn on bindings placed at a level their protocol does not support."""

    def __init__(self) -> None:
        super().__init__(
            "protocol-binding-compatibility", "Bindings must be supported at their level"
        )

    def check(self, document: Dict[str, Any]) -> List[ValidationIssue]:
        issues: List[ValidationIssue] = []
        placements = (
            ("servers", BindingLevel.SERVER, _section(document, "servers")),
            ("channels", BindingLevel.CHANNEL, _section(document, "channels")),
            ("operations", BindingLevel.OPERATION, _section(document, "operations")),
            ("components/messages", BindingLevel.MESSAGE, _section(document, "components", "messages")),
        )
        for prefix, level, section in placements:
            for name, owner in section.items():
                for protocol in _section(owner, "bindings") if isinstance(owner, dict) else {}:
                    supported = SUPPORT_MATRIX.get(protocol)
                    if supported is None or level not in supported:
                        issues.append(
                            self.issue(
                                f"Protocol '{protocol}' does not support {level.value} bindings",
                                f"/{prefix}/{name}/bindings/{protocol}",
                                severity=ValidationSeverity.WARNING,
                                kind="binding",
                            )
                        )
        return issues


def _iter_refs(node: Any, path: Tuple[Any, ...]) -> Iterator[Tuple[Tuple[Any, ...], str]]:
    if isinstance(node, dict):
        ref = node.get("$ref")
        if isinstance(ref, str):
            yield path, ref
        for key, value in node.items():
            if key != "$ref":
                yield from _iter_refs(value, path + (key,))
    elif isinstance(node, list):
        for index, value in enumerate(node):
            yield from _iter_refs(value, path + (index,))


def _matches(path: Tuple[Any, ...], pattern: Tuple[str, ...]) -> bool:
    if len(path) != len(pattern):
        return False
    return all(p == "*" or p == str(actual) for actual, p in zip(path, pattern))


def default_rules() -> List[ValidationRule]:
    return [
        ChannelReferenceRule(),
        MessageReferenceRule(),
        InternalReferenceRule(),
        ProtocolBindingCompatibilityRule(),
    ]


__all__ = [
    "ChannelReferenceRule",
    "InternalReferenceRule",
    "MessageReferenceRule",
    "ProtocolBindingCompatibilityRule",
    "ValidationRule",
    "default_rules",
    "resolve_pointer",
]
