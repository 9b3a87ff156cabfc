"""
Kafka protocol bindings.

Builders stamp every binding object with ``bindingVersion`` 0.5.0. The
channel validator enforces topic naming (``^[a-zA-Z0-9._-]+$``, at most 249
characters) and positive partition/replica counts, warning above 1000
partitions or 10 replicas.
"""

from __future__ import annotations

import re
from typing import Any, Dict

from .base import BindingLevel, BindingValidation, ProtocolBinding, versioned
from .rules import (
    NAME_PATTERN,
    URL_PATTERN,
    validate_enum_value,
    validate_positive_integer,
    validate_required_string,
    validate_string_length,
    validate_string_pattern,
)

KAFKA_BINDING_VERSION = "0.5.0"
DEFAULT_TOPIC = "default-topic"
MAX_TOPIC_LENGTH = 249
MAX_PARTITIONS = 1000
MAX_REPLICAS = 10
MAX_CLIENT_ID_LENGTH = 255
MIN_AUTO_COMMIT_INTERVAL_MS = 100

SCHEMA_ID_LOCATIONS = ("header", "payload")
SCHEMA_LOOKUP_STRATEGIES = ("TopicIdStrategy", "RecordIdStrategy", "TopicRecordIdStrategy")

_INVALID_TOPIC_CHARS = re.compile(r"[^a-zA-Z0-9._-]")


def build_server_binding(config: Dict[str, Any]) -> Dict[str, Any]:
    return versioned(KAFKA_BINDING_VERSION, config)


def build_channel_binding(config: Dict[str, Any]) -> Dict[str, Any]:
    if not config.get("topic"):
        config = {**config, "topic": DEFAULT_TOPIC}
    return versioned(KAFKA_BINDING_VERSION, config)


def build_operation_binding(config: Dict[str, Any]) -> Dict[str, Any]:
    return versioned(KAFKA_BINDING_VERSION, config)


def build_message_binding(config: Dict[str, Any]) -> Dict[str, Any]:
    return versioned(KAFKA_BINDING_VERSION, config)


def validate_server_binding(binding: Dict[str, Any]) -> BindingValidation:
    result = BindingValidation()
    registry_url = binding.get("schemaRegistryUrl")
    if registry_url is not None:
        result.errors.extend(
            validate_string_pattern(
                registry_url, "Schema registry URL", URL_PATTERN, "must be an http(s) URL"
            )
        )
    return result


def validate_channel_binding(binding: Dict[str, Any]) -> BindingValidation:
    result = BindingValidation()
    topic = binding.get("topic")
    result.errors.extend(validate_required_string(topic, "Topic name"))
    if topic:
        result.errors.extend(
            validate_string_pattern(
                topic,
                "Topic name",
                NAME_PATTERN,
                "contains invalid characters. Use only letters, numbers, dots, underscores, and hyphens",
            )
        )
        result.errors.extend(validate_string_length(topic, "Topic name", MAX_TOPIC_LENGTH))
    result.merge(validate_positive_integer(binding.get("partitions"), "Partitions", MAX_PARTITIONS))
    result.merge(validate_positive_integer(binding.get("replicas"), "Replicas", MAX_REPLICAS))
    return result


def validate_operation_binding(binding: Dict[str, Any]) -> BindingValidation:
    result = BindingValidation()
    if "groupId" in binding:
        group_id = binding["groupId"]
        # Schema objects are allowed in place of a literal id.
        if not isinstance(group_id, dict):
            result.errors.extend(validate_required_string(group_id, "Group ID"))
            result.errors.extend(
                validate_string_pattern(group_id, "Group ID", NAME_PATTERN, "contains invalid characters")
            )
    if "clientId" in binding:
        client_id = binding["clientId"]
        if not isinstance(client_id, dict):
            result.errors.extend(validate_required_string(client_id, "Client ID"))
            result.errors.extend(validate_string_length(client_id, "Client ID", MAX_CLIENT_ID_LENGTH))
    interval = binding.get("autoCommitIntervalMs")
    interval_result = validate_positive_integer(interval, "Auto-commit interval")
    result.errors.extend(interval_result.errors)
    if interval_result.is_valid and interval is not None and interval < MIN_AUTO_COMMIT_INTERVAL_MS:
        result.warnings.append("Very low auto-commit interval may impact performance")
    return result


def validate_message_binding(binding: Dict[str, Any]) -> BindingValidation:
    result = BindingValidation()
    location = binding.get("schemaIdLocation")
    strategy = binding.get("schemaLookupStrategy")
    result.errors.extend(validate_enum_value(location, "Schema ID location", SCHEMA_ID_LOCATIONS))
    result.errors.extend(validate_enum_value(strategy, "Schema lookup strategy", SCHEMA_LOOKUP_STRATEGIES))
    if strategy is not None and location is None:
        result.warnings.append("Schema lookup strategy has no effect without schemaIdLocation")
    return result


def is_valid_topic_name(topic: str) -> bool:
    return 0 < len(topic) <= MAX_TOPIC_LENGTH and bool(NAME_PATTERN.fullmatch(topic))


def sanitize_topic_name(name: str) -> str:
    """Replace characters Kafka rejects and clamp to the topic length limit."""

    return _INVALID_TOPIC_CHARS.sub("_", name)[:MAX_TOPIC_LENGTH]


def generate_group_id(namespace: str, operation: str) -> str:
    return sanitize_topic_name(f"{namespace}_{operation}_consumer_group")


KAFKA = ProtocolBinding(
    key="kafka",
    version=KAFKA_BINDING_VERSION,
    builders={
        BindingLevel.SERVER: build_server_binding,
        BindingLevel.CHANNEL: build_channel_binding,
        BindingLevel.OPERATION: build_operation_binding,
        BindingLevel.MESSAGE: build_message_binding,
    },
    validators={
        BindingLevel.SERVER: validate_server_binding,
        BindingLevel.CHANNEL: validate_channel_binding,
        BindingLevel.OPERATION: validate_operation_binding,
        BindingLevel.MESSAGE: validate_message_binding,
    },
)

__all__ = [
    "DEFAULT_TOPIC",
    "KAFKA",
    "KAFKA_BINDING_VERSION",
    "generate_group_id",
    "is_valid_topic_name",
    "sanitize_topic_name",
    "validate_channel_binding",
    "validate_message_binding",
    "validate_operation_binding",
    "validate_server_binding",
]
