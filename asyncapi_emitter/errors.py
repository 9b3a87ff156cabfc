"""Unified error model for the AsyncAPI emitter."""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class AsyncAPIEmitterError(Exception):
    """Base class for all emitter errors surfaced to users."""

    code: Optional[str] = None
    hint: Optional[str] = None

    def __init__(
        self,
        message: str,
        *,
        path: Optional[str] = None,
        code: Optional[str] = None,
        hint: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.path = path
        self.details = details or {}
        if code is not None:
            self.code = code
        if hint is not None:
            self.hint = hint

    def format(self) -> str:
        components = [self.message]
        meta_parts = []
        if self.path:
            meta_parts.append(self.path)
        if self.code:
            meta_parts.append(self.code)
        if meta_parts:
            components[-1] = f"{components[-1]} ({'; '.join(meta_parts)})"
        if self.hint:
            components.append(f"Hint: {self.hint}")
        return " ".join(part for part in components if part)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to structured dictionary."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "details": self.details,
        }


class PathTemplateError(AsyncAPIEmitterError):
    """Raised when an output path template cannot be resolved."""

    code = "path-template"

    def __init__(self, message: str, unsupported: Optional[List[str]] = None) -> None:
        super().__init__(
            message,
            details={"unsupported_variables": list(unsupported or [])},
        )
        self.unsupported = list(unsupported or [])


class SchemaRegistrationError(AsyncAPIEmitterError):
    """Raised when two distinct models claim the same component name."""

    code = "schema-name-collision"

    def __init__(self, name: str) -> None:
        super().__init__(
            f"Schema '{name}' is already registered by a different model",
            hint="Rename one of the models or move it to a separate namespace.",
            details={"schema_name": name},
        )
        self.schema_name = name


class ConfigurationError(AsyncAPIEmitterError):
    """Raised when emitter options or a config file are invalid."""

    code = "invalid-config"


class ExtensionLifecycleError(AsyncAPIEmitterError):
    """Raised on an illegal extension lifecycle transition."""

    code = "extension-lifecycle"

    def __init__(self, extension_name: str, message: str) -> None:
        super().__init__(message, details={"extension": extension_name})
        self.extension_name = extension_name


class EmitError(AsyncAPIEmitterError):
    """Raised when the output document cannot be written."""

    code = "emit-failed"


__all__ = [
    "AsyncAPIEmitterError",
    "PathTemplateError",
    "SchemaRegistrationError",
    "ConfigurationError",
    "ExtensionLifecycleError",
    "EmitError",
]
