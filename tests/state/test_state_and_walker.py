"""Tests for annotation state and operation discovery."""

import pytest

from asyncapi_emitter.ast import Intrinsic, Namespace, Operation, Scalar
from asyncapi_emitter.descriptors import OperationAction
from asyncapi_emitter.diagnostics import DiagnosticCollector
from asyncapi_emitter.state import (
    AnnotationState,
    OperationRole,
    ProtocolConfig,
    SecurityConfig,
    StateKey,
)
from asyncapi_emitter.walker import discover_operations, iter_namespaces, iter_operations


class TestAnnotationState:
    """Identity-keyed, immutable annotation lookups."""

    def test_lookup_by_identity(self):
        """Equal-looking nodes do not share annotations."""
        first = Operation(name="send")
        twin = Operation(name="send")
        state = AnnotationState.builder().channel(first, "a.b").build()
        assert state.channel_path(first) == "a.b"
        assert state.channel_path(twin) is None
        assert state.has(StateKey.CHANNEL_PATHS, first)
        assert not state.has(StateKey.CHANNEL_PATHS, twin)

    def test_multi_valued_keys_accumulate(self):
        """Roles, tags and security configs keep every recorded value."""
        op = Operation(name="op")
        state = (
            AnnotationState.builder()
            .publish(op)
            .subscribe(op)
            .tag(op, "orders")
            .tag(op, "billing")
            .security(op, SecurityConfig("key", {"type": "apiKey", "in": "user"}))
            .build()
        )
        assert state.operation_roles(op) == (OperationRole.PUBLISH, OperationRole.SUBSCRIBE)
        assert state.tags(op) == ("orders", "billing")
        assert len(state.security_configs(op)) == 1

    def test_state_is_immutable(self):
        """Attributes cannot be reassigned after build."""
        state = AnnotationState.empty()
        with pytest.raises(AttributeError):
            state.anything = 1

    def test_builder_changes_do_not_leak(self):
        """Building freezes a snapshot of the builder."""
        op = Operation(name="op")
        builder = AnnotationState.builder().channel(op, "first")
        state = builder.build()
        builder.channel(op, "second")
        assert state.channel_path(op) == "first"

    def test_all_iterates_entries(self):
        """``all`` yields node/value pairs in insertion order."""
        a, b = Operation(name="a"), Operation(name="b")
        state = AnnotationState.builder().channel(a, "x").channel(b, "y").build()
        assert [(node.name, value) for node, value in state.all(StateKey.CHANNEL_PATHS)] == [
            ("a", "x"),
            ("b", "y"),
        ]

    def test_protocol_config_levels(self):
        """Level configs come back as fresh dictionaries."""
        config = ProtocolConfig("kafka", channel={"partitions": 3})
        assert config.for_level("channel") == {"partitions": 3}
        assert config.for_level("operation") == {}


class TestWalker:
    """Namespace traversal."""

    def test_pre_order_traversal(self):
        """Operations come out parent first, then children in order."""
        inner = Namespace("Inner", operations=[Operation("c")])
        other = Namespace("Other", operations=[Operation("d")])
        root = Namespace("Root", operations=[Operation("a"), Operation("b")], namespaces=[inner, other])
        assert [name for name, _ in iter_namespaces(root)] == ["Root", "Root.Inner", "Root.Other"]
        assert [op.name for _, op in iter_operations(root)] == ["a", "b", "c", "d"]

    def test_malformed_namespace_is_empty(self):
        """Missing or non-list collections are treated as empty."""
        root = Namespace("Root")
        root.operations = None
        root.namespaces = 5
        assert list(iter_operations(root)) == []

    def test_default_and_declared_addresses(self):
        """Undeclared channels default to ``/<name lowercased>``."""
        declared = Operation("OrderCreated", return_type=Scalar("string"))
        implicit = Operation("UserUpdated", return_type=Scalar("string"))
        state = AnnotationState.builder().channel(declared, "orders.created").build()
        descriptors = discover_operations(Namespace(operations=[declared, implicit]), state)
        assert [d.address for d in descriptors] == ["orders.created", "/userupdated"]
        assert descriptors[0].explicit_address and not descriptors[1].explicit_address

    def test_roles_map_to_actions(self):
        """Subscribe means receive; publish or nothing means send."""
        sub, pub, plain = Operation("sub"), Operation("pub"), Operation("plain")
        state = AnnotationState.builder().subscribe(sub).publish(pub).build()
        descriptors = discover_operations(Namespace(operations=[sub, pub, plain]), state)
        assert [d.action for d in descriptors] == [
            OperationAction.RECEIVE,
            OperationAction.SEND,
            OperationAction.SEND,
        ]

    def test_conflicting_roles(self):
        """Both roles report a conflict and keep the first one."""
        op = Operation("both", return_type=Intrinsic("void"))
        state = AnnotationState.builder().subscribe(op).publish(op).build()
        diagnostics = DiagnosticCollector()
        descriptors = discover_operations(Namespace(operations=[op]), state, diagnostics)
        assert descriptors[0].action == OperationAction.RECEIVE
        assert diagnostics.codes() == ["conflicting-operation-type"]
        assert "cannot be both @publish and @subscribe" in diagnostics.errors[0].message

    def test_blank_channel_path(self):
        """An empty declared path is reported and replaced by the default."""
        op = Operation("Blank")
        state = AnnotationState.builder().channel(op, "  ").build()
        diagnostics = DiagnosticCollector()
        descriptors = discover_operations(Namespace(operations=[op]), state, diagnostics)
        assert descriptors[0].address == "/blank"
        assert diagnostics.codes() == ["missing-channel-path"]
