"""Server descriptors built from ``@server`` configuration."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from .bindings import BindingLevel, ProtocolBindingFactory
from .diagnostics import DiagnosticCollector
from .state import ServerConfig

logger = logging.getLogger(__name__)

SUPPORTED_SERVER_PROTOCOLS = ("kafka", "amqp", "mqtt", "websocket", "http", "https", "ws", "wss")


@dataclass
class ServerDescriptor:
    name: str
    url: str
    protocol: str
    description: Optional[str] = None
    bindings: Dict[str, Any] = field(default_factory=dict)

    def split_url(self) -> Tuple[str, Optional[str]]:
        """Return ``(host, pathname)`` with any scheme removed."""

        remainder = self.url.split("://", 1)[-1]
        host, sep, path = remainder.partition("/")
        return host, f"/{path}" if sep and path else None

    def to_asyncapi(self) -> Dict[str, Any]:
        host, pathname = self.split_url()
        data: Dict[str, Any] = {"host": host, "protocol": self.protocol}
        if pathname:
            data["pathname"] = pathname
        if self.description:
            data["description"] = self.description
        if self.bindings:
            data["bindings"] = dict(self.bindings)
        return data


def build_server(
    config: ServerConfig,
    diagnostics: DiagnosticCollector,
    factory: Optional[ProtocolBindingFactory] = None,
) -> Optional[ServerDescriptor]:
    """Validate ``config`` and build a descriptor, or report and return ``None``."""

    if not config.url:
        diagnostics.report("invalid-server-config", target=config.name, server=config.name, reason="URL is required")
        return None
    protocol = (config.protocol or "").lower()
    if protocol not in SUPPORTED_SERVER_PROTOCOLS:
        diagnostics.report(
            "unsupported-protocol",
            target=config.name,
            protocol=config.protocol,
            supported=", ".join(SUPPORTED_SERVER_PROTOCOLS),
        )
        return None

    factory = factory or ProtocolBindingFactory()
    bindings: Dict[str, Any] = {}
    if config.bindings and factory.supports_binding(protocol, BindingLevel.SERVER):
        outcome = factory.build(protocol, BindingLevel.SERVER, config.bindings)
        for error in outcome.validation.errors:
            diagnostics.report(
                "invalid-binding", target=config.name, owner=config.name, protocol=protocol,
                level="server", reason=error,
            )
        for warning in outcome.validation.warnings:
            diagnostics.report(
                "binding-warning", target=config.name, owner=config.name, protocol=protocol,
                level="server", reason=warning,
            )
        bindings.update(outcome.as_bindings_object() or {})

    logger.debug("Built server %s (%s)", config.name, protocol)
    return ServerDescriptor(
        name=config.name,
        url=config.url,
        protocol=protocol,
        description=config.description,
        bindings=bindings,
    )


__all__ = ["SUPPORTED_SERVER_PROTOCOLS", "ServerDescriptor", "build_server"]
