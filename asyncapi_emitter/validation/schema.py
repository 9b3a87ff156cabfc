"""Machine-checkable JSON Schema (draft-07) for AsyncAPI 3.0.0 documents.

This is a structural subset of the official schema: required top-level
fields, the fixed version constant, the info block, server/channel/operation
shapes and the component sections.
"""

from __future__ import annotations

from typing import Any, Dict

ASYNCAPI_VERSION = "3.0.0"

_KEY_PATTERN = "^[a-zA-Z0-9._-]+$"

_OBJECT = {"type": "object"}
_STRING = {"type": "string"}
_ARRAY = {"type": "array"}

ASYNCAPI_DOCUMENT_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["asyncapi", "info"],
    "additionalProperties": False,
    "patternProperties": {"^x-": {}},
    "properties": {
        "asyncapi": {"type": "string", "const": ASYNCAPI_VERSION},
        "id": {"type": "string", "format": "uri"},
        "info": {
            "type": "object",
            "required": ["title", "version"],
            "properties": {
                "title": _STRING,
                "version": _STRING,
                "description": _STRING,
                "termsOfService": _STRING,
                "contact": {
                    "type": "object",
                    "properties": {
                        "name": _STRING,
                        "url": {"type": "string", "format": "uri"},
                        "email": {"type": "string", "format": "email"},
                    },
                },
                "license": {
                    "type": "object",
                    "required": ["name"],
                    "properties": {
                        "name": _STRING,
                        "url": {"type": "string", "format": "uri"},
                    },
                },
                "tags": _ARRAY,
            },
        },
        "servers": {
            "type": "object",
            "additionalProperties": False,
            "patternProperties": {
                _KEY_PATTERN: {
                    "type": "object",
                    "required": ["host", "protocol"],
                    "properties": {
                        "host": _STRING,
                        "protocol": _STRING,
                        "pathname": _STRING,
                        "description": _STRING,
                        "variables": _OBJECT,
                        "security": _ARRAY,
                        "bindings": _OBJECT,
                    },
                }
            },
        },
        "defaultContentType": _STRING,
        "channels": {
            "type": "object",
            "additionalProperties": False,
            "patternProperties": {
                _KEY_PATTERN: {
                    "type": "object",
                    "properties": {
                        "address": {"type": ["string", "null"]},
                        "description": _STRING,
                        "messages": _OBJECT,
                        "parameters": _OBJECT,
                        "bindings": _OBJECT,
                    },
                }
            },
        },
        "operations": {
            "type": "object",
            "additionalProperties": False,
            "patternProperties": {
                _KEY_PATTERN: {
                    "type": "object",
                    "required": ["action", "channel"],
                    "properties": {
                        "action": {"type": "string", "enum": ["send", "receive"]},
                        "channel": {
                            "type": "object",
                            "required": ["$ref"],
                            "properties": {
                                "$ref": {
                                    "type": "string",
                                    "pattern": "^#/channels/[a-zA-Z0-9._-]+$",
                                }
                            },
                        },
                        "title": _STRING,
                        "summary": _STRING,
                        "description": _STRING,
                        "security": _ARRAY,
                        "tags": _ARRAY,
                        "bindings": _OBJECT,
                        "traits": _ARRAY,
                        "messages": _ARRAY,
                        "reply": _OBJECT,
                    },
                }
            },
        },
        "components": {
            "type": "object",
            "properties": {
                section: _OBJECT
                for section in (
                    "schemas",
                    "servers",
                    "channels",
                    "operations",
                    "messages",
                    "securitySchemes",
                    "replies",
                    "parameters",
                    "correlationIds",
                    "operationTraits",
                    "messageTraits",
                    "serverBindings",
                    "channelBindings",
                    "operationBindings",
                    "messageBindings",
                )
            },
        },
    },
}

__all__ = ["ASYNCAPI_DOCUMENT_SCHEMA", "ASYNCAPI_VERSION"]
