import copy

import pytest

from asyncapi_emitter.ast import (
    ArrayType,
    Model,
    ModelProperty,
    Namespace,
    Operation,
    Program,
    Scalar,
    StringLiteral,
    UnionType,
)


def pytest_configure(config):
    """Register markers for pytest."""
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


def string():
    return Scalar("string")


@pytest.fixture
def user_event_model():
    """``UserEvent { id: string, status: "active" | "inactive" }``."""
    return Model(
        name="UserEvent",
        properties=[
            ModelProperty("id", string()),
            ModelProperty(
                "status",
                UnionType([StringLiteral("active"), StringLiteral("inactive")]),
            ),
        ],
    )


@pytest.fixture
def tree_node_model():
    """``TreeNode { value: string, children?: TreeNode[] }``."""
    node = Model(name="TreeNode")
    node.properties = [
        ModelProperty("value", string()),
        ModelProperty("children", ArrayType(node), optional=True),
    ]
    return node


@pytest.fixture
def user_events_program(user_event_model):
    """Program with one operation returning ``UserEvent`` inside ``Events``."""
    operation = Operation(name="userEvents", return_type=user_event_model)
    root = Namespace(
        name="Events",
        operations=[operation],
        models=[user_event_model],
    )
    return Program(root=root, source_files=["main.tsp"])


@pytest.fixture
def valid_document():
    """Smallest complete document that passes both validation phases."""
    return copy.deepcopy(
        {
            "asyncapi": "3.0.0",
            "info": {"title": "Orders", "version": "1.0.0"},
            "servers": {"production": {"host": "broker.example.com:9092", "protocol": "kafka"}},
            "channels": {
                "channel_orderCreated": {
                    "address": "orders.created",
                    "messages": {
                        "orderCreatedMessage": {"$ref": "#/components/messages/orderCreatedMessage"}
                    },
                }
            },
            "operations": {
                "orderCreated": {
                    "action": "send",
                    "channel": {"$ref": "#/channels/channel_orderCreated"},
                    "messages": [
                        {"$ref": "#/channels/channel_orderCreated/messages/orderCreatedMessage"}
                    ],
                }
            },
            "components": {
                "schemas": {"Order": {"type": "object", "properties": {"id": {"type": "string"}}}},
                "messages": {
                    "orderCreatedMessage": {
                        "name": "orderCreatedMessage",
                        "payload": {"$ref": "#/components/schemas/Order"},
                    }
                },
            },
        }
    )
