"""Result types produced by the document validator."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional


class ValidationSeverity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class ValidationIssue:
    """A single validation problem.

    ``kind`` is the failing JSON Schema keyword (``required``, ``const``,
    ``pattern``...) for structural problems, or a rule category such as
    ``reference``, ``parse-error`` or ``file-error``.
    """

    message: str
    kind: str
    instance_path: str = ""
    schema_path: str = ""
    severity: ValidationSeverity = ValidationSeverity.ERROR
    rule_id: Optional[str] = None

    @property
    def keyword(self) -> str:
        return self.kind

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "message": self.message,
            "keyword": self.kind,
            "instancePath": self.instance_path,
            "schemaPath": self.schema_path,
            "severity": self.severity.value,
        }
        if self.rule_id:
            data["ruleId"] = self.rule_id
        return data


@dataclass(frozen=True)
class ValidationMetrics:
    duration: float = 0.0
    document_size: int = 0
    channel_count: int = 0
    operation_count: int = 0
    schema_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "duration": self.duration,
            "documentSize": self.document_size,
            "channelCount": self.channel_count,
            "operationCount": self.operation_count,
            "schemaCount": self.schema_count,
        }


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one document."""

    valid: bool
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)
    metrics: ValidationMetrics = field(default_factory=ValidationMetrics)
    source: Optional[str] = None

    @property
    def summary(self) -> str:
        label = f"{self.source}: " if self.source else ""
        if self.valid:
            suffix = f" with {len(self.warnings)} warning(s)" if self.warnings else ""
            return f"{label}valid{suffix}"
        return f"{label}{len(self.errors)} error(s), {len(self.warnings)} warning(s)"

    @classmethod
    def failure(cls, issue: ValidationIssue, source: Optional[str] = None) -> "ValidationResult":
        return cls(valid=False, errors=[issue], source=source)

    def with_source(self, source: Optional[str]) -> "ValidationResult":
        return replace(self, source=source)

    def with_metrics(self, metrics: ValidationMetrics) -> "ValidationResult":
        return replace(self, metrics=metrics)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": [issue.to_dict() for issue in self.errors],
            "warnings": [issue.to_dict() for issue in self.warnings],
            "metrics": self.metrics.to_dict(),
            "summary": self.summary,
        }


__all__ = ["ValidationIssue", "ValidationMetrics", "ValidationResult", "ValidationSeverity"]
