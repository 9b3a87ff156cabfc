"""Namespace traversal and operation discovery."""

from __future__ import annotations

import logging
from typing import Any, Iterator, List, Optional, Tuple

from .ast import Namespace, Operation
from .descriptors import OperationAction, OperationDescriptor
from .diagnostics import DiagnosticCollector
from .state import AnnotationState, OperationRole, StateKey

logger = logging.getLogger(__name__)


def _children(node: Any, attr: str) -> List[Any]:
    # Malformed namespaces (missing or non-list collections) count as empty.
    value = getattr(node, attr, None)
    if not value:
        return []
    try:
        return list(value)
    except TypeError:
        return []


def iter_namespaces(root: Namespace, prefix: str = "") -> Iterator[Tuple[str, Namespace]]:
    """Yield ``(qualified_name, namespace)`` in pre-order."""

    if root is None:
        return
    name = getattr(root, "name", "") or ""
    qualified = f"{prefix}.{name}" if prefix and name else (name or prefix)
    yield qualified, root
    for child in _children(root, "namespaces"):
        yield from iter_namespaces(child, qualified)


def iter_operations(root: Namespace) -> Iterator[Tuple[str, Operation]]:
    """Yield every reachable operation with its qualified namespace name."""

    for qualified, namespace in iter_namespaces(root):
        for operation in _children(namespace, "operations"):
            yield qualified, operation


def resolve_action(
    operation: Operation, state: AnnotationState, diagnostics: Optional[DiagnosticCollector] = None
) -> OperationAction:
    """Map recorded roles to an action; ``send`` when none is recorded."""

    roles = state.operation_roles(operation)
    if not roles:
        return OperationAction.SEND
    if len(set(roles)) > 1 and diagnostics is not None:
        diagnostics.report("conflicting-operation-type", target=operation.name, operation=operation.name)
    if roles[0] == OperationRole.SUBSCRIBE:
        return OperationAction.RECEIVE
    return OperationAction.SEND


def default_address(operation: Operation) -> str:
    return f"/{operation.name.lower()}"


def discover_operations(
    root: Namespace,
    state: AnnotationState,
    diagnostics: Optional[DiagnosticCollector] = None,
) -> List[OperationDescriptor]:
    """Walk ``root`` and describe every operation in deterministic pre-order."""

    descriptors: List[OperationDescriptor] = []
    for namespace_name, operation in iter_operations(root):
        declared = state.channel_path(operation)
        if state.has(StateKey.CHANNEL_PATHS, operation) and not (declared or "").strip():
            declared = None
            if diagnostics is not None:
                diagnostics.report("missing-channel-path", target=operation.name, operation=operation.name)
        descriptor = OperationDescriptor(
            name=operation.name,
            action=resolve_action(operation, state, diagnostics),
            address=declared or default_address(operation),
            node=operation,
            parameters=list(getattr(operation, "parameters", None) or []),
            return_type=getattr(operation, "return_type", None),
            doc=getattr(operation, "doc", None),
            namespace=getattr(operation, "namespace", None) or namespace_name or None,
            explicit_address=bool(declared),
        )
        logger.debug("Discovered operation %s -> %s", descriptor.name, descriptor.address)
        descriptors.append(descriptor)
    logger.debug("Found %d operations", len(descriptors))
    return descriptors


__all__ = [
    "default_address",
    "discover_operations",
    "iter_namespaces",
    "iter_operations",
    "resolve_action",
]
