"""Diagnostic codes reported while emitting an AsyncAPI document."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

LIBRARY_NAME = "@asyncapi"


class DiagnosticSeverity(str, Enum):
    """Severity level for diagnostics."""
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class DiagnosticDefinition:
    code: str
    severity: DiagnosticSeverity
    message: str


def _define(code: str, severity: DiagnosticSeverity, message: str) -> DiagnosticDefinition:
    return DiagnosticDefinition(code=code, severity=severity, message=message)


_E = DiagnosticSeverity.ERROR
_W = DiagnosticSeverity.WARNING

DIAGNOSTICS: Dict[str, DiagnosticDefinition] = {
    d.code: d
    for d in (
        _define(
            "invalid-asyncapi-version",
            _E,
            "AsyncAPI version '{version}' is not supported. Only AsyncAPI 3.0.0 is supported.",
        ),
        _define(
            "missing-channel-path",
            _E,
            "Operation '{operation}' missing @channel decorator. Add @channel('/path') to specify the channel path.",
        ),
        _define(
            "invalid-channel-path",
            _E,
            "Channel path '{path}' is not valid: {reason}",
        ),
        _define(
            "missing-message-schema",
            _E,
            "Message '{message}' must have a schema. Provide a model type for the message payload.",
        ),
        _define(
            "conflicting-operation-type",
            _E,
            "Operation '{operation}' cannot be both @publish and @subscribe. Choose one operation type.",
        ),
        _define(
            "unsupported-protocol",
            _E,
            "Protocol '{protocol}' is not supported. Supported protocols: {supported}",
        ),
        _define(
            "missing-server-config",
            _W,
            "No server configuration found. Add at least one server definition for a complete AsyncAPI document.",
        ),
        _define(
            "invalid-server-config",
            _E,
            "Server '{server}' has invalid configuration: {reason}",
        ),
        _define(
            "duplicate-server-name",
            _E,
            "Server name '{server}' is already defined. Server names must be unique.",
        ),
        _define(
            "invalid-security-scheme",
            _E,
            "Security scheme '{scheme}' is invalid: {reason}",
        ),
        _define(
            "duplicate-channel-id",
            _E,
            "Channel ID '{channel}' is already defined. Channel IDs must be unique within an AsyncAPI specification.",
        ),
        _define(
            "duplicate-channel-address",
            _E,
            "Channel address '{address}' of operation '{operation}' is already used by channel '{channel}'. Channel addresses must be unique.",
        ),
        _define(
            "invalid-protocol-type",
            _E,
            "Protocol type '{protocol}' is not valid. Valid protocols: {supported}",
        ),
        _define(
            "invalid-binding",
            _E,
            "{protocol} {level} binding for '{owner}' is invalid: {reason}",
        ),
        _define(
            "binding-warning",
            _W,
            "{protocol} {level} binding for '{owner}': {reason}",
        ),
        _define(
            "unsupported-type",
            _W,
            "Type '{type}' has no AsyncAPI schema mapping; emitted as a generic object.",
        ),
        _define(
            "unknown-scalar",
            _W,
            "Scalar '{type}' does not extend a known scalar; emitted as a plain string.",
        ),
        _define(
            "duplicate-schema-name",
            _E,
            "Schema '{schema}' is already registered by a different model. Schema names must be unique.",
        ),
        _define(
            "orphaned-channel",
            _W,
            "Channel '{channel}' is not referenced by any operation",
        ),
        _define(
            "path-template-fallback",
            _W,
            "Output path template could not be resolved ({reason}); using '{fallback}'",
        ),
        _define(
            "validation-failed",
            _E,
            "Generated document failed validation at '{path}': {reason}",
        ),
    )
}


@dataclass
class Diagnostic:
    """A single diagnostic reported during emission."""
    code: str
    severity: DiagnosticSeverity
    message: str
    target: Optional[str] = None

    @property
    def qualified_code(self) -> str:
        return f"{LIBRARY_NAME}/{self.code}"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "code": self.qualified_code,
            "severity": self.severity.value,
            "message": self.message,
        }
        if self.target is not None:
            data["target"] = self.target
        return data


def create_diagnostic(code: str, *, target: Optional[str] = None, **params: Any) -> Diagnostic:
    """Build a :class:`Diagnostic` from a registered code and template parameters."""

    definition = DIAGNOSTICS.get(code)
    if definition is None:
        raise KeyError(f"Unknown diagnostic code '{code}'")
    return Diagnostic(
        code=code,
        severity=definition.severity,
        message=definition.message.format(**params),
        target=target,
    )


@dataclass
class DiagnosticCollector:
    """Sink collecting diagnostics for one emission pass."""
    diagnostics: List[Diagnostic] = field(default_factory=list)

    def report(self, code: str, *, target: Optional[str] = None, **params: Any) -> Diagnostic:
        diagnostic = create_diagnostic(code, target=target, **params)
        self.diagnostics.append(diagnostic)
        return diagnostic

    def extend(self, diagnostics: Iterable[Diagnostic]) -> None:
        self.diagnostics.extend(diagnostics)

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == DiagnosticSeverity.ERROR]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == DiagnosticSeverity.WARNING]

    def has_errors(self) -> bool:
        return any(d.severity == DiagnosticSeverity.ERROR for d in self.diagnostics)

    def codes(self) -> List[str]:
        return [d.code for d in self.diagnostics]


__all__ = [
    "DIAGNOSTICS",
    "Diagnostic",
    "DiagnosticCollector",
    "DiagnosticDefinition",
    "DiagnosticSeverity",
    "create_diagnostic",
]
