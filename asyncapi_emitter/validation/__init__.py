"""Structural and semantic validation of AsyncAPI 3.0 documents."""

from .result import ValidationIssue, ValidationMetrics, ValidationResult, ValidationSeverity
from .rules import (
    ChannelReferenceRule,
    InternalReferenceRule,
    MessageReferenceRule,
    ProtocolBindingCompatibilityRule,
    ValidationRule,
    default_rules,
)
from .schema import ASYNCAPI_DOCUMENT_SCHEMA
from .validator import DocumentValidator, validate_document

__all__ = [
    "ASYNCAPI_DOCUMENT_SCHEMA",
    "ChannelReferenceRule",
    "DocumentValidator",
    "InternalReferenceRule",
    "MessageReferenceRule",
    "ProtocolBindingCompatibilityRule",
    "ValidationIssue",
    "ValidationMetrics",
    "ValidationResult",
    "ValidationRule",
    "ValidationSeverity",
    "default_rules",
    "validate_document",
]
