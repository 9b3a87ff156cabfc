"""
Document assembly.

Folds discovered operations, their channels, messages and schemas together
with servers and security schemes into a single AsyncAPI 3.0 document.

The assembler owns the per-emission schema arena (through
:class:`SchemaConverter`), so every named model appears exactly once under
``components.schemas`` no matter how many operations use it.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from .ast import Intrinsic, Model, Namespace
from .bindings import (
    BindingLevel,
    ProtocolBindingFactory,
    looks_like_kafka_topic,
    normalize_protocol,
    SUPPORTED_PROTOCOLS,
)
from .descriptors import ChannelDescriptor, MessageDescriptor, OperationDescriptor
from .diagnostics import DiagnosticCollector
from .errors import SchemaRegistrationError
from .schema import SchemaConverter, with_description
from .security import SCOPED_SCHEME_TYPES, build_security_scheme, validate_security_scheme
from .servers import ServerDescriptor, build_server
from .state import AnnotationState, ServerConfig, StateKey
from .walker import iter_namespaces

logger = logging.getLogger(__name__)

ASYNCAPI_VERSION = "3.0.0"
DEFAULT_TITLE = "AsyncAPI Specification"
DEFAULT_INFO_VERSION = "1.0.0"
DEFAULT_CONTENT_TYPE = "application/json"

_CHANNEL_LEVELS = (BindingLevel.CHANNEL, BindingLevel.OPERATION, BindingLevel.MESSAGE)


class DocumentAssembler:
    """Builds one AsyncAPI document per emission pass.

    Args:
        state: Annotation state recorded by the front end.
        diagnostics: Sink for reportable problems.
        title: ``info.title`` of the generated document.
        strict: Warn when a type falls back to a generic object schema.
        factory: Protocol binding factory; a default registry is used if omitted.
    """

    def __init__(
        self,
        state: AnnotationState,
        diagnostics: Optional[DiagnosticCollector] = None,
        *,
        title: Optional[str] = None,
        strict: bool = False,
        factory: Optional[ProtocolBindingFactory] = None,
    ):
        self.state = state
        self.diagnostics = diagnostics or DiagnosticCollector()
        self.title = title or DEFAULT_TITLE
        self.factory = factory or ProtocolBindingFactory()
        self.converter = SchemaConverter(strict=strict, diagnostics=self.diagnostics)
        self.channels: Dict[str, ChannelDescriptor] = {}
        self._channel_by_address: Dict[str, str] = {}
        self.operations: Dict[str, Dict[str, Any]] = {}
        self.messages: Dict[str, MessageDescriptor] = {}
        self.servers: Dict[str, ServerDescriptor] = {}
        self.security_schemes: Dict[str, Dict[str, Any]] = {}
        self.extensions: Dict[str, Any] = {}
        self._finalized: Optional[Dict[str, Any]] = None

    # ------------------------------------------------------------------
    # Schemas
    # ------------------------------------------------------------------

    def register_schema(self, model: Model) -> Optional[Dict[str, str]]:
        """Register a named model once; return its ``$ref`` or ``None`` on collision."""

        self._check_open()
        try:
            return self.converter.register_model(model)
        except SchemaRegistrationError as exc:
            self.diagnostics.report("duplicate-schema-name", target=exc.schema_name, schema=exc.schema_name)
            return None

    def register_namespace_models(self, root: Namespace) -> None:
        for _, namespace in iter_namespaces(root):
            for model in getattr(namespace, "models", None) or []:
                if isinstance(model, Model) and not model.is_anonymous:
                    self.register_schema(model)

    # ------------------------------------------------------------------
    # Servers and security
    # ------------------------------------------------------------------

    def add_server(self, config: ServerConfig) -> Optional[ServerDescriptor]:
        self._check_open()
        if config.name in self.servers:
            self.diagnostics.report("duplicate-server-name", target=config.name, server=config.name)
            return None
        server = build_server(config, self.diagnostics, self.factory)
        if server is not None:
            self.servers[server.name] = server
        return server

    def add_servers_from_state(self) -> None:
        for _, configs in self.state.all(StateKey.SERVER_CONFIGS):
            for config in configs:
                self.add_server(config)

    def add_security_scheme(self, name: str, scheme: Mapping[str, Any], scopes: Sequence[str] = ()) -> bool:
        """Validate and register a scheme. Re-adding an identical scheme is a no-op.

        ``scopes`` are merged into the scheme's ``scopes`` list for OAuth2 and
        OpenID Connect schemes; registrations that differ only in scopes combine.
        """

        self._check_open()
        validation = validate_security_scheme(scheme)
        if not validation.is_valid:
            self.diagnostics.report(
                "invalid-security-scheme",
                target=name,
                scheme=name,
                reason="; ".join(validation.errors),
            )
            return False
        for warning in validation.warnings:
            logger.warning("Security scheme %s: %s", name, warning)
        rendered = build_security_scheme(name, scheme).to_asyncapi()
        if scopes and rendered["type"] in SCOPED_SCHEME_TYPES:
            rendered["scopes"] = _merge_scopes(rendered.get("scopes"), scopes)
        existing = self.security_schemes.get(name)
        if existing is not None and _without_scopes(existing) != _without_scopes(rendered):
            self.diagnostics.report(
                "invalid-security-scheme",
                target=name,
                scheme=name,
                reason="a different scheme with this name is already defined",
            )
            return False
        if existing is not None:
            merged = _merge_scopes(existing.get("scopes"), rendered.get("scopes"))
            if merged:
                rendered["scopes"] = merged
        self.security_schemes[name] = rendered
        return True

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def add_operation(self, descriptor: OperationDescriptor) -> bool:
        """Fold one operation into the document. Returns ``False`` when skipped."""

        self._check_open()
        key = descriptor.channel_key
        if key in self.channels or descriptor.name in self.operations:
            self.diagnostics.report("duplicate-channel-id", target=descriptor.name, channel=key)
            return False
        existing = self._channel_by_address.get(descriptor.address)
        if existing is not None:
            self.diagnostics.report(
                "duplicate-channel-address",
                target=descriptor.name,
                address=descriptor.address,
                operation=descriptor.name,
                channel=existing,
            )
            return False

        channel = ChannelDescriptor(
            key=key,
            address=descriptor.address,
            description=descriptor.doc or f"Channel for {descriptor.name}",
            parameters=self._channel_parameters(descriptor),
        )
        message = self._build_message(descriptor)
        if message is not None:
            channel.messages.append(message.name)
            self.messages[message.name] = message

        operation: Dict[str, Any] = {
            "action": descriptor.action.value,
            "channel": {"$ref": f"#/channels/{key}"},
            "summary": descriptor.doc or f"Operation {descriptor.name}",
            "description": (
                f"Generated from TypeSpec operation with {len(descriptor.parameters)} parameters"
            ),
        }
        if message is not None:
            operation["messages"] = [{"$ref": f"#/channels/{key}/messages/{message.name}"}]

        bindings = self._bindings_for(descriptor)
        if bindings.get(BindingLevel.CHANNEL):
            channel.bindings.update(bindings[BindingLevel.CHANNEL])
        if bindings.get(BindingLevel.OPERATION):
            operation["bindings"] = bindings[BindingLevel.OPERATION]
        if message is not None and bindings.get(BindingLevel.MESSAGE):
            message.bindings.update(bindings[BindingLevel.MESSAGE])

        node = descriptor.node
        tags = self.state.tags(node) if node is not None else ()
        if tags:
            operation["tags"] = [{"name": tag} for tag in tags]
        security = self._operation_security(descriptor)
        if security:
            operation["security"] = security

        self.channels[key] = channel
        self._channel_by_address[channel.address] = key
        self.operations[descriptor.name] = operation
        logger.debug("Assembled operation %s on %s", descriptor.name, channel.address)
        return True

    def _channel_parameters(self, descriptor: OperationDescriptor) -> Dict[str, Dict[str, Any]]:
        parameters: Dict[str, Dict[str, Any]] = {}
        for variable in descriptor.address_variables():
            param = descriptor.node.get_parameter(variable) if descriptor.node is not None else None
            if param is None:
                self.diagnostics.report(
                    "invalid-channel-path",
                    target=descriptor.name,
                    path=descriptor.address,
                    reason=f"template variable '{variable}' does not match any parameter of '{descriptor.name}'",
                )
                continue
            parameters[variable] = {"description": param.doc or f"Parameter {variable}"}
        return parameters

    def _build_message(self, descriptor: OperationDescriptor) -> Optional[MessageDescriptor]:
        payload_type = descriptor.return_type
        if payload_type is None or (isinstance(payload_type, Intrinsic) and payload_type.name in ("void", "never")):
            self.diagnostics.report(
                "missing-message-schema", target=descriptor.name, message=descriptor.message_name
            )
            return None
        try:
            payload = self.converter.convert(payload_type)
        except SchemaRegistrationError as exc:
            self.diagnostics.report("duplicate-schema-name", target=exc.schema_name, schema=exc.schema_name)
            payload = {"type": "object"}

        message = MessageDescriptor(
            name=descriptor.message_name,
            title=f"{descriptor.name} message",
            payload=payload,
            content_type=DEFAULT_CONTENT_TYPE,
        )
        config = self.state.message_config(payload_type)
        if config is not None:
            message.title = config.title or config.name or message.title
            message.summary = config.summary
            message.description = config.description
            message.content_type = config.content_type or DEFAULT_CONTENT_TYPE
            message.examples = [dict(example) for example in config.examples]
            message.bindings.update(dict(config.bindings))
            if config.correlation_id:
                message.correlation_id = {"location": config.correlation_id}
        correlation = self.state.get(StateKey.CORRELATION_IDS, payload_type)
        if correlation and message.correlation_id is None:
            message.correlation_id = {"location": correlation}
        message.headers = self._message_headers(payload_type)
        return message

    def _message_headers(self, payload_type: Any) -> Optional[Dict[str, Any]]:
        if not isinstance(payload_type, Model):
            return None
        header_props = [p for p in payload_type.properties if self.state.has(StateKey.MESSAGE_HEADERS, p)]
        if not header_props:
            return None
        properties = {}
        for prop in header_props:
            declared = self.state.get(StateKey.MESSAGE_HEADERS, prop)
            header_name = declared if isinstance(declared, str) and declared else prop.name
            properties[header_name] = with_description(
                self.converter.convert(prop.type), prop.doc or f"Header {header_name}"
            )
        return {"type": "object", "properties": properties}

    def _bindings_for(self, descriptor: OperationDescriptor) -> Dict[BindingLevel, Dict[str, Any]]:
        result: Dict[BindingLevel, Dict[str, Any]] = {}
        node = descriptor.node
        config = self.state.protocol_config(node) if node is not None else None

        if config is None:
            if looks_like_kafka_topic(descriptor.address):
                outcome = self.factory.build("kafka", BindingLevel.CHANNEL, {"topic": descriptor.address})
                bindings = outcome.as_bindings_object()
                if bindings:
                    result[BindingLevel.CHANNEL] = bindings
            return result

        if normalize_protocol(config.protocol) is None:
            self.diagnostics.report(
                "invalid-protocol-type",
                target=descriptor.name,
                protocol=config.protocol,
                supported=", ".join(SUPPORTED_PROTOCOLS),
            )
            return result

        for level in _CHANNEL_LEVELS:
            entry = self.factory.registry.get(config.protocol)
            if entry is None or not entry.supports(level):
                continue
            level_config = config.for_level(level.value)
            if (
                level == BindingLevel.CHANNEL
                and entry.key == "kafka"
                and not level_config.get("topic")
                and looks_like_kafka_topic(descriptor.address)
            ):
                level_config["topic"] = descriptor.address
            outcome = self.factory.build(config.protocol, level, level_config)
            for error in outcome.validation.errors:
                self.diagnostics.report(
                    "invalid-binding", target=descriptor.name, owner=descriptor.name,
                    protocol=config.protocol, level=level.value, reason=error,
                )
            for warning in outcome.validation.warnings:
                self.diagnostics.report(
                    "binding-warning", target=descriptor.name, owner=descriptor.name,
                    protocol=config.protocol, level=level.value, reason=warning,
                )
            bindings = outcome.as_bindings_object()
            if bindings:
                result[level] = bindings
        return result

    def _operation_security(self, descriptor: OperationDescriptor) -> List[Dict[str, Any]]:
        node = descriptor.node
        if node is None:
            return []
        refs: List[Dict[str, Any]] = []
        for config in self.state.security_configs(node):
            if self.add_security_scheme(config.name, config.scheme, config.scopes):
                refs.append({"$ref": f"#/components/securitySchemes/{config.name}"})
        return refs

    # ------------------------------------------------------------------
    # Finalization
    # ------------------------------------------------------------------

    def assemble(self, descriptors: Iterable[OperationDescriptor]) -> Dict[str, Any]:
        for descriptor in descriptors:
            self.add_operation(descriptor)
        return self.finalize()

    def finalize(self) -> Dict[str, Any]:
        """Produce the document. Further mutation of this assembler is rejected."""

        if self._finalized is not None:
            return copy.deepcopy(self._finalized)

        if self.operations and not self.servers:
            self.diagnostics.report("missing-server-config")
        referenced = {op["channel"]["$ref"].rsplit("/", 1)[-1] for op in self.operations.values()}
        for key in self.channels:
            if key not in referenced:
                self.diagnostics.report("orphaned-channel", target=key, channel=key)

        document: Dict[str, Any] = {
            "asyncapi": ASYNCAPI_VERSION,
            "info": {
                "title": self.title,
                "version": DEFAULT_INFO_VERSION,
                "description": f"Found {len(self.operations)} operations",
            },
        }
        if self.servers:
            document["servers"] = {name: s.to_asyncapi() for name, s in self.servers.items()}
        document["channels"] = {key: c.to_asyncapi() for key, c in self.channels.items()}
        document["operations"] = copy.deepcopy(self.operations)

        components: Dict[str, Any] = {
            "schemas": copy.deepcopy(self.converter.schemas),
            "messages": {name: m.to_asyncapi() for name, m in self.messages.items()},
            "securitySchemes": copy.deepcopy(self.security_schemes),
        }
        components = {section: value for section, value in components.items() if value}
        if components:
            document["components"] = components
        for key, value in self.extensions.items():
            document[key if key.startswith("x-") else f"x-{key}"] = value

        self._finalized = document
        return copy.deepcopy(document)

    def _check_open(self) -> None:
        if self._finalized is not None:
            raise RuntimeError("Document already finalized")


def _merge_scopes(first: Optional[Sequence[str]], second: Optional[Sequence[str]]) -> List[str]:
    merged = list(first or [])
    merged.extend(scope for scope in second or [] if scope not in merged)
    return merged


def _without_scopes(scheme: Mapping[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in scheme.items() if key != "scopes"}


__all__ = [
    "ASYNCAPI_VERSION",
    "DEFAULT_CONTENT_TYPE",
    "DocumentAssembler",
]
