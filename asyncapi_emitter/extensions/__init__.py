"""Extension lifecycle support."""

from .base import (
    ALLOWED_TRANSITIONS,
    EXTENSION_KIND_DOCUMENT,
    EXTENSION_KIND_VALIDATION,
    Extension,
    ExtensionState,
    can_transition,
)
from .registry import ExtensionRegistry

__all__ = [
    "ALLOWED_TRANSITIONS",
    "EXTENSION_KIND_DOCUMENT",
    "EXTENSION_KIND_VALIDATION",
    "Extension",
    "ExtensionRegistry",
    "ExtensionState",
    "can_transition",
]
