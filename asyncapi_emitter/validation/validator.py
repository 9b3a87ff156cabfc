"""
Two-phase AsyncAPI document validation.

Phase one checks the document against the machine schema in
:mod:`asyncapi_emitter.validation.schema` using ``jsonschema``. Phase two
applies the semantic rules from :mod:`asyncapi_emitter.validation.rules`.
Both phases feed one error list; a document is valid when that list is
empty. Validation never raises for a malformed document: parse and I/O
failures come back as results with a ``parse-error`` or ``file-error``
issue.
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
import time
from collections import OrderedDict
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

import yaml
from jsonschema import Draft7Validator

from ..config import ValidatorOptions
from .result import ValidationIssue, ValidationMetrics, ValidationResult, ValidationSeverity
from .rules import ValidationRule, default_rules
from .schema import ASYNCAPI_DOCUMENT_SCHEMA

BatchItem = Union[str, Path, Dict[str, Any]]


def _json_pointer(parts: Sequence[Any]) -> str:
    if not parts:
        return ""
    return "/" + "/".join(str(part).replace("~", "~0").replace("/", "~1") for part in parts)


def _count(document: Dict[str, Any], *keys: str) -> int:
    current: Any = document
    for key in keys:
        if not isinstance(current, dict):
            return 0
        current = current.get(key)
    return len(current) if isinstance(current, dict) else 0


def _canonical(document: Any) -> str:
    return json.dumps(document, sort_keys=True, separators=(",", ":"), default=str)


def _non_string_keys(node: Any, path: Tuple[Any, ...] = ()) -> Iterator[Tuple[Tuple[Any, ...], Any]]:
    if isinstance(node, dict):
        for key, value in node.items():
            if not isinstance(key, str):
                yield path, key
            yield from _non_string_keys(value, path + (key,))
    elif isinstance(node, list):
        for index, value in enumerate(node):
            yield from _non_string_keys(value, path + (index,))


class DocumentValidator:
    """
    Validate AsyncAPI 3.0 documents.

    Args:
        options: Validator behaviour; defaults to :class:`ValidatorOptions`.
        rules: Semantic rules for phase two; defaults to :func:`default_rules`.

    The result cache is keyed by a content hash and is safe to share between
    threads: concurrent misses on the same key compute the result once. It
    holds at most ``options.max_cache_entries`` results, evicting the least
    recently used.
    """

    def __init__(
        self,
        options: Optional[ValidatorOptions] = None,
        rules: Optional[List[ValidationRule]] = None,
    ):
        self.options = options or ValidatorOptions()
        self.rules = list(rules) if rules is not None else default_rules()
        self.logger = logging.getLogger(__name__)
        self._schema_validator = Draft7Validator(ASYNCAPI_DOCUMENT_SCHEMA)
        self._cache: "OrderedDict[str, Future]" = OrderedDict()
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Single documents
    # ------------------------------------------------------------------

    def validate(self, document: Any, source: Optional[str] = None) -> ValidationResult:
        """
        Validate one parsed document.

        Args:
            document: Parsed document (normally a ``dict``)
            source: Optional label carried into the result summary

        Returns:
            ValidationResult; never raises for malformed input
        """
        # JSON object keys are strings; anything else cannot be hashed or schema-checked.
        key_issues = [
            ValidationIssue(
                message=f"Mapping key {key!r} must be a string",
                kind="type",
                instance_path=_json_pointer(list(path)),
            )
            for path, key in _non_string_keys(document)
        ]
        if key_issues:
            doc = document if isinstance(document, dict) else {}
            metrics = ValidationMetrics(
                channel_count=_count(doc, "channels"),
                operation_count=_count(doc, "operations"),
                schema_count=_count(doc, "components", "schemas"),
            )
            return ValidationResult(valid=False, errors=key_issues, metrics=metrics, source=source)

        if not self.options.enable_cache:
            return self._compute(document).with_source(source)

        key = hashlib.sha256(_canonical(document).encode("utf-8")).hexdigest()
        with self._lock:
            future = self._cache.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._cache[key] = future
                while len(self._cache) > self.options.max_cache_entries:
                    self._cache.popitem(last=False)
            else:
                self._cache.move_to_end(key)

        if owner:
            try:
                future.set_result(self._compute(document))
            except Exception as exc:  # pragma: no cover - rules are expected not to raise
                with self._lock:
                    self._cache.pop(key, None)
                future.set_exception(exc)
                raise
            return future.result().with_source(source)

        cached: ValidationResult = future.result()
        self.logger.debug("Validation cache hit for %s", source or key[:12])
        return cached.with_metrics(
            ValidationMetrics(
                duration=0.0,
                document_size=cached.metrics.document_size,
                channel_count=cached.metrics.channel_count,
                operation_count=cached.metrics.operation_count,
                schema_count=cached.metrics.schema_count,
            )
        ).with_source(source)

    def _compute(self, document: Any) -> ValidationResult:
        started = time.perf_counter()
        issues = self._schema_issues(document)
        if isinstance(document, dict):
            for rule in self.rules:
                issues.extend(rule.check(document))

        errors = [i for i in issues if i.severity == ValidationSeverity.ERROR]
        warnings = [i for i in issues if i.severity == ValidationSeverity.WARNING]
        if self.options.strict_mode:
            errors.extend(warnings)
            warnings = []

        doc = document if isinstance(document, dict) else {}
        metrics = ValidationMetrics(
            duration=time.perf_counter() - started,
            document_size=len(_canonical(document)),
            channel_count=_count(doc, "channels"),
            operation_count=_count(doc, "operations"),
            schema_count=_count(doc, "components", "schemas"),
        )
        self.logger.debug(
            "Validated document: %d errors, %d warnings in %.4fs",
            len(errors),
            len(warnings),
            metrics.duration,
        )
        return ValidationResult(valid=not errors, errors=errors, warnings=warnings, metrics=metrics)

    def _schema_issues(self, document: Any) -> List[ValidationIssue]:
        issues = [
            ValidationIssue(
                message=error.message,
                kind=str(error.validator),
                instance_path=_json_pointer(list(error.absolute_path)),
                schema_path=_json_pointer(list(error.absolute_schema_path)),
            )
            for error in self._schema_validator.iter_errors(document)
        ]
        issues.sort(key=lambda i: (i.instance_path, i.kind, i.message))
        return issues

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    @property
    def cache_size(self) -> int:
        with self._lock:
            return len(self._cache)

    # ------------------------------------------------------------------
    # Files and batches
    # ------------------------------------------------------------------

    def validate_file(self, path: Union[str, Path]) -> ValidationResult:
        """Read, parse and validate a JSON or YAML document on disk."""

        path = Path(path)
        source = str(path)
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            self.logger.debug("Cannot read %s: %s", source, exc)
            return ValidationResult.failure(
                ValidationIssue(message=f"Failed to read file: {exc}", kind="file-error"), source
            )
        try:
            if path.suffix == ".json":
                document = json.loads(text)
            else:
                document = yaml.safe_load(text)
        except (json.JSONDecodeError, yaml.YAMLError) as exc:
            return ValidationResult.failure(
                ValidationIssue(message=f"Failed to parse document: {exc}", kind="parse-error"), source
            )
        return self.validate(document, source=source)

    def validate_batch(self, items: Sequence[BatchItem]) -> List[ValidationResult]:
        """Validate documents or file paths concurrently; results keep input order."""

        if not items:
            return []

        def run(item: BatchItem) -> ValidationResult:
            if isinstance(item, (str, Path)):
                return self.validate_file(item)
            return self.validate(item)

        workers = min(self.options.batch_concurrency, len(items))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(run, items))


def validate_document(document: Any, options: Optional[ValidatorOptions] = None) -> ValidationResult:
    """Validate ``document`` with a throwaway :class:`DocumentValidator`."""

    return DocumentValidator(options).validate(document)


__all__ = ["DocumentValidator", "validate_document"]
