"""Protocol detection helpers: URL schemes, default ports, Kafka topic heuristic."""

from __future__ import annotations

import re
from typing import Dict, Optional

from .base import SUPPORTED_PROTOCOLS
from .kafka import is_valid_topic_name

DEFAULT_PORTS: Dict[str, int] = {
    "kafka": 9092,
    "amqp": 5672,
    "mqtt": 1883,
    "websocket": 80,
    "ws": 80,
    "wss": 443,
    "http": 80,
    "https": 443,
    "redis": 6379,
    "nats": 4222,
}

_SCHEME = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.-]*)://")


def protocol_from_url(url: str) -> Optional[str]:
    """Return the URL scheme when it names a known protocol."""

    match = _SCHEME.match(url or "")
    if not match:
        return None
    scheme = match.group(1).lower()
    return scheme if scheme in SUPPORTED_PROTOCOLS else None


def default_port(protocol: str) -> Optional[int]:
    return DEFAULT_PORTS.get((protocol or "").lower())


def looks_like_kafka_topic(address: str) -> bool:
    """Best-effort guess that a channel address is a Kafka topic name.

    True for addresses without a leading slash that contain ``.``, ``_`` or
    ``-`` and form a valid Kafka topic name (letters, digits and those
    separators, at most 249 characters), for example ``user.events``.
    Plain words and URL-style paths are rejected.
    """

    if not address or address.startswith("/"):
        return False
    if not any(sep in address for sep in "._-"):
        return False
    return is_valid_topic_name(address)


__all__ = ["DEFAULT_PORTS", "default_port", "looks_like_kafka_topic", "protocol_from_url"]
