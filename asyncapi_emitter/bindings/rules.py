"""Shared field rules used by the per-protocol binding validators."""

from __future__ import annotations

import re
from typing import Any, Iterable, List, Optional, Pattern

from .base import BindingValidation


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def validate_required_string(value: Any, field_name: str) -> List[str]:
    if _is_blank(value) or not isinstance(value, str):
        return [f"{field_name} is required"]
    return []


def validate_positive_integer(value: Any, field_name: str, max_value: Optional[int] = None) -> BindingValidation:
    """Positive integer check with a soft warning above ``max_value``."""

    result = BindingValidation()
    if value is None:
        return result
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        result.errors.append(f"{field_name} must be a positive integer")
    elif max_value and value > max_value:
        result.warnings.append(f"High {field_name.lower()} value may impact performance")
    return result


def validate_string_pattern(value: Any, field_name: str, pattern: Pattern[str], description: str) -> List[str]:
    if _is_blank(value):
        return []
    if not isinstance(value, str) or not pattern.fullmatch(value):
        return [f"{field_name} {description}"]
    return []


def validate_string_length(value: Any, field_name: str, max_length: int) -> List[str]:
    if isinstance(value, str) and len(value) > max_length:
        return [f"{field_name} cannot exceed {max_length} characters"]
    return []


def validate_enum_value(value: Any, field_name: str, allowed: Iterable[str]) -> List[str]:
    allowed = list(allowed)
    if value is not None and value not in allowed:
        return [f"{field_name} must be one of: {', '.join(allowed)}"]
    return []


def validate_http_status_code(value: Any, field_name: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, bool) or not isinstance(value, int) or value < 100 or value > 599:
        return [f"{field_name} must be a valid HTTP status code (100-599)"]
    return []


NAME_PATTERN = re.compile(r"^[a-zA-Z0-9._-]+$")
URL_PATTERN = re.compile(r"^https?://.+")

__all__ = [
    "NAME_PATTERN",
    "URL_PATTERN",
    "validate_enum_value",
    "validate_http_status_code",
    "validate_positive_integer",
    "validate_required_string",
    "validate_string_length",
    "validate_string_pattern",
]
