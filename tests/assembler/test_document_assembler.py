"""Tests for document assembly."""

import pytest

from asyncapi_emitter.assembler import DocumentAssembler
from asyncapi_emitter.ast import (
    Intrinsic,
    Model,
    ModelProperty,
    Namespace,
    Operation,
    Scalar,
)
from asyncapi_emitter.diagnostics import DiagnosticCollector
from asyncapi_emitter.state import (
    AnnotationState,
    MessageConfig,
    ProtocolConfig,
    SecurityConfig,
    ServerConfig,
    StateKey,
)
from asyncapi_emitter.validation.rules import resolve_pointer
from asyncapi_emitter.walker import discover_operations


def assemble(root, state=None, **kwargs):
    state = state or AnnotationState.empty()
    diagnostics = DiagnosticCollector()
    assembler = DocumentAssembler(state, diagnostics, **kwargs)
    document = assembler.assemble(discover_operations(root, state, diagnostics))
    return document, diagnostics


def all_refs(node):
    if isinstance(node, dict):
        if isinstance(node.get("$ref"), str):
            yield node["$ref"]
        for value in node.values():
            yield from all_refs(value)
    elif isinstance(node, list):
        for value in node:
            yield from all_refs(value)


class TestChannelsAndOperations:
    """Channel keys, addresses, actions and messages."""

    def test_user_events_scenario(self, user_events_program):
        """Implicit address, message and enum schema for the union field."""
        document, diagnostics = assemble(user_events_program.root)
        channel = document["channels"]["channel_userEvents"]
        assert channel["address"] == "/userevents"
        assert channel["messages"] == {
            "userEventsMessage": {"$ref": "#/components/messages/userEventsMessage"}
        }
        status = document["components"]["schemas"]["UserEvent"]["properties"]["status"]
        assert status["type"] == "string"
        assert status["enum"] == ["active", "inactive"]

        operation = document["operations"]["userEvents"]
        assert operation["action"] == "send"
        assert operation["channel"] == {"$ref": "#/channels/channel_userEvents"}
        assert operation["messages"] == [
            {"$ref": "#/channels/channel_userEvents/messages/userEventsMessage"}
        ]
        assert operation["summary"] == "Operation userEvents"
        assert operation["description"] == "Generated from TypeSpec operation with 0 parameters"
        message = document["components"]["messages"]["userEventsMessage"]
        assert message["payload"] == {"$ref": "#/components/schemas/UserEvent"}
        assert message["contentType"] == "application/json"
        assert "missing-server-config" in diagnostics.codes()
        assert not diagnostics.has_errors()

    def test_declared_topic_address_gets_kafka_binding(self, user_event_model):
        """A topic-shaped address with no protocol suggests a Kafka channel binding."""
        op = Operation("userEvents", return_type=user_event_model)
        state = AnnotationState.builder().channel(op, "user.events").build()
        document, _ = assemble(Namespace(operations=[op]), state)
        channel = document["channels"]["channel_userEvents"]
        assert channel["address"] == "user.events"
        assert channel["bindings"] == {"kafka": {"bindingVersion": "0.5.0", "topic": "user.events"}}

    def test_subscribe_is_receive(self, user_event_model):
        """Subscribe role turns into the receive action."""
        op = Operation("onUser", return_type=user_event_model)
        state = AnnotationState.builder().subscribe(op).build()
        document, _ = assemble(Namespace(operations=[op]), state)
        assert document["operations"]["onUser"]["action"] == "receive"

    def test_duplicate_channel_key(self, user_event_model):
        """Two operations mapping to one channel key report duplicate-channel-id."""
        first = Operation("notify", return_type=user_event_model)
        second = Operation("notify", return_type=user_event_model)
        root = Namespace(namespaces=[Namespace("A", operations=[first]), Namespace("B", operations=[second])])
        document, diagnostics = assemble(root)
        assert "duplicate-channel-id" in diagnostics.codes()
        assert list(document["channels"]) == ["channel_notify"]

    def test_duplicate_channel_address(self, user_event_model):
        """Two operations declared on one address report duplicate-channel-address."""
        first = Operation("created", return_type=user_event_model)
        second = Operation("updated", return_type=user_event_model)
        state = AnnotationState.builder().channel(first, "/same").channel(second, "/same").build()
        document, diagnostics = assemble(Namespace(operations=[first, second]), state)
        assert diagnostics.codes() == ["duplicate-channel-address", "missing-server-config"]
        assert "already used by channel 'channel_created'" in diagnostics.errors[0].message
        assert [c["address"] for c in document["channels"].values()] == ["/same"]
        assert list(document["operations"]) == ["created"]

    def test_default_addresses_collide_case_insensitively(self, user_event_model):
        """Default addresses are lower-cased, so names differing in case collide."""
        ops = [
            Operation("userEvents", return_type=user_event_model),
            Operation("UserEvents", return_type=user_event_model),
        ]
        _, diagnostics = assemble(Namespace(operations=ops))
        assert "duplicate-channel-address" in diagnostics.codes()

    def test_void_return_has_no_message(self):
        """Operations without a payload type report missing-message-schema."""
        op = Operation("ping", return_type=Intrinsic("void"))
        document, diagnostics = assemble(Namespace(operations=[op]))
        assert "missing-message-schema" in diagnostics.codes()
        assert "messages" not in document["operations"]["ping"]
        assert document["channels"]["channel_ping"]["messages"] == {}

    def test_channel_parameters(self, user_event_model):
        """Address variables become channel parameters when they match a parameter."""
        op = Operation(
            "userById",
            parameters=[ModelProperty("userId", Scalar("string"), doc="The user")],
            return_type=user_event_model,
        )
        state = AnnotationState.builder().channel(op, "/users/{userId}/{tenant}").build()
        document, diagnostics = assemble(Namespace(operations=[op]), state)
        assert document["channels"]["channel_userById"]["parameters"] == {
            "userId": {"description": "The user"}
        }
        assert "invalid-channel-path" in diagnostics.codes()

    def test_tags_and_doc(self, user_event_model):
        """Operation docs become summaries and tags are listed."""
        op = Operation("tagged", return_type=user_event_model, doc="Tagged operation")
        state = AnnotationState.builder().tag(op, "users").build()
        document, _ = assemble(Namespace(operations=[op]), state)
        operation = document["operations"]["tagged"]
        assert operation["summary"] == "Tagged operation"
        assert operation["tags"] == [{"name": "users"}]

    def test_tags_come_from_the_operation(self, user_event_model):
        """Only the operation's own tags are emitted."""
        op = Operation("untagged", return_type=user_event_model)
        namespace = Namespace("Users", operations=[op])
        state = AnnotationState.builder().tag(namespace, "users").build()
        document, _ = assemble(Namespace(namespaces=[namespace]), state)
        assert "tags" not in document["operations"]["untagged"]


class TestSchemasAndMessages:
    """Component schema registration and message configuration."""

    def test_shared_model_registered_once(self, user_event_model):
        """Two operations returning one model produce one schema."""
        ops = [Operation("a", return_type=user_event_model), Operation("b", return_type=user_event_model)]
        document, _ = assemble(Namespace(operations=ops, models=[user_event_model]))
        assert list(document["components"]["schemas"]) == ["UserEvent"]

    def test_namespace_models_registered(self, tree_node_model):
        """Declared models are emitted even without an operation using them."""
        state = AnnotationState.empty()
        assembler = DocumentAssembler(state)
        assembler.register_namespace_models(Namespace(models=[tree_node_model]))
        document = assembler.finalize()
        items = document["components"]["schemas"]["TreeNode"]["properties"]["children"]["items"]
        assert items == {"$ref": "#/components/schemas/TreeNode"}

    def test_schema_name_collision(self):
        """Distinct models sharing a name report duplicate-schema-name."""
        first = Model("Event", [ModelProperty("a", Scalar("string"))])
        second = Model("Event", [ModelProperty("b", Scalar("string"))])
        ops = [Operation("one", return_type=first), Operation("two", return_type=second)]
        document, diagnostics = assemble(Namespace(operations=ops))
        assert "duplicate-schema-name" in diagnostics.codes()
        assert document["components"]["schemas"]["Event"]["properties"].keys() == {"a"}

    def test_message_config_and_headers(self):
        """Message annotations override defaults and header properties become headers."""
        trace = ModelProperty("traceId", Scalar("string"))
        payload = Model("Order", [ModelProperty("id", Scalar("string")), trace])
        op = Operation("orderPlaced", return_type=payload)
        state = (
            AnnotationState.builder()
            .message(
                payload,
                MessageConfig(
                    title="Order placed",
                    content_type="application/avro",
                    correlation_id="$message.header#/traceId",
                ),
            )
            .set(StateKey.MESSAGE_HEADERS, trace, "x-trace-id")
            .build()
        )
        document, _ = assemble(Namespace(operations=[op]), state)
        message = document["components"]["messages"]["orderPlacedMessage"]
        assert message["title"] == "Order placed"
        assert message["contentType"] == "application/avro"
        assert message["correlationId"] == {"location": "$message.header#/traceId"}
        assert set(message["headers"]["properties"]) == {"x-trace-id"}


class TestBindings:
    """Protocol configuration on operations."""

    def test_invalid_kafka_binding_not_attached(self, user_event_model):
        """A rejected channel binding is reported and left out."""
        op = Operation("orders", return_type=user_event_model)
        state = (
            AnnotationState.builder()
            .channel(op, "orders.created")
            .protocol(op, ProtocolConfig("kafka", channel={"partitions": -1}))
            .build()
        )
        document, diagnostics = assemble(Namespace(operations=[op]), state)
        assert "invalid-binding" in diagnostics.codes()
        assert "bindings" not in document["channels"]["channel_orders"]
        assert any("positive integer" in d.message for d in diagnostics.errors)

    def test_valid_kafka_bindings_attached(self, user_event_model):
        """Valid bindings land on channel, operation and message."""
        op = Operation("orders", return_type=user_event_model)
        state = (
            AnnotationState.builder()
            .channel(op, "orders.created")
            .protocol(
                op,
                ProtocolConfig(
                    "kafka",
                    channel={"partitions": 3},
                    operation={"groupId": "order-service"},
                ),
            )
            .build()
        )
        document, diagnostics = assemble(Namespace(operations=[op]), state)
        assert not diagnostics.has_errors()
        channel_binding = document["channels"]["channel_orders"]["bindings"]["kafka"]
        assert channel_binding == {"bindingVersion": "0.5.0", "topic": "orders.created", "partitions": 3}
        assert document["operations"]["orders"]["bindings"]["kafka"]["groupId"] == "order-service"
        message = document["components"]["messages"]["ordersMessage"]
        assert message["bindings"]["kafka"]["bindingVersion"] == "0.5.0"

    def test_websocket_binding(self, user_event_model):
        """WebSocket bindings use the ``ws`` key."""
        op = Operation("live", return_type=user_event_model)
        state = AnnotationState.builder().protocol(op, ProtocolConfig("websocket", channel={"method": "GET"})).build()
        document, _ = assemble(Namespace(operations=[op]), state)
        assert document["channels"]["channel_live"]["bindings"]["ws"]["bindingVersion"] == "0.1.0"
        assert "bindings" not in document["operations"]["live"]

    def test_unknown_protocol(self, user_event_model):
        """Unknown protocol tags report invalid-protocol-type."""
        op = Operation("odd", return_type=user_event_model)
        state = AnnotationState.builder().protocol(op, ProtocolConfig("smoke-signal")).build()
        _, diagnostics = assemble(Namespace(operations=[op]), state)
        assert "invalid-protocol-type" in diagnostics.codes()


class TestServersAndSecurity:
    """Servers and security schemes."""

    def test_servers_from_state(self, user_event_model):
        """Server annotations become AsyncAPI 3 servers with host/pathname."""
        op = Operation("a", return_type=user_event_model)
        root = Namespace("Shop", operations=[op])
        state = (
            AnnotationState.builder()
            .server(root, ServerConfig("production", "kafka://broker.example.com:9092/v1", "kafka"))
            .server(root, ServerConfig("production", "kafka://other:9092", "kafka"))
            .build()
        )
        diagnostics = DiagnosticCollector()
        assembler = DocumentAssembler(state, diagnostics)
        assembler.add_servers_from_state()
        document = assembler.assemble(discover_operations(root, state, diagnostics))
        assert document["servers"] == {
            "production": {"host": "broker.example.com:9092", "protocol": "kafka", "pathname": "/v1"}
        }
        assert "duplicate-server-name" in diagnostics.codes()
        assert "missing-server-config" not in diagnostics.codes()

    def test_server_validation(self):
        """Servers need a URL and a supported protocol."""
        diagnostics = DiagnosticCollector()
        assembler = DocumentAssembler(AnnotationState.empty(), diagnostics)
        assert assembler.add_server(ServerConfig("nourl", "", "kafka")) is None
        assert assembler.add_server(ServerConfig("odd", "x://host", "gopher")) is None
        assert diagnostics.codes() == ["invalid-server-config", "unsupported-protocol"]

    def test_security_schemes(self, user_event_model):
        """Valid schemes are referenced; invalid ones are reported and skipped."""
        op = Operation("secure", return_type=user_event_model)
        state = (
            AnnotationState.builder()
            .security(op, SecurityConfig("userPass", {"type": "userPassword"}))
            .security(op, SecurityConfig("broken", {"type": "telepathy"}))
            .build()
        )
        document, diagnostics = assemble(Namespace(operations=[op]), state)
        assert document["operations"]["secure"]["security"] == [
            {"$ref": "#/components/securitySchemes/userPass"}
        ]
        assert document["components"]["securitySchemes"] == {"userPass": {"type": "userPassword"}}
        assert "invalid-security-scheme" in diagnostics.codes()

    def test_security_scheme_redefinition(self):
        """Same name and content is a no-op; different content is an error."""
        diagnostics = DiagnosticCollector()
        assembler = DocumentAssembler(AnnotationState.empty(), diagnostics)
        scheme = {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"}
        assert assembler.add_security_scheme("jwt", scheme)
        assert assembler.add_security_scheme("jwt", dict(scheme))
        assert not assembler.add_security_scheme("jwt", {"type": "http", "scheme": "basic"})
        assert diagnostics.codes() == ["invalid-security-scheme"]

    def test_oauth_scopes_are_merged(self):
        """Scopes requested by different operations combine on one scheme."""
        oauth = {
            "type": "oauth2",
            "flows": {"clientCredentials": {"tokenUrl": "https://auth.example.com/token"}},
        }
        read = Operation("readOrders", return_type=Intrinsic("void"))
        write = Operation("writeOrders", return_type=Intrinsic("void"))
        state = (
            AnnotationState.builder()
            .security(read, SecurityConfig("oauth", oauth, scopes=("orders:read",)))
            .security(write, SecurityConfig("oauth", oauth, scopes=("orders:read", "orders:write")))
            .build()
        )
        document, diagnostics = assemble(Namespace(operations=[read, write]), state)
        assert document["components"]["securitySchemes"]["oauth"]["scopes"] == ["orders:read", "orders:write"]
        assert "invalid-security-scheme" not in diagnostics.codes()
        assert document["operations"]["writeOrders"]["security"] == [
            {"$ref": "#/components/securitySchemes/oauth"}
        ]

    def test_scopes_ignored_for_unscoped_types(self):
        """Only OAuth2 and OpenID Connect schemes list scopes."""
        assembler = DocumentAssembler(AnnotationState.empty())
        assert assembler.add_security_scheme("pw", {"type": "userPassword"}, scopes=("admin",))
        assert assembler.security_schemes["pw"] == {"type": "userPassword"}


class TestFinalization:
    """The finished document."""

    def test_document_shape(self, user_events_program):
        """Version, info block and key order."""
        document, _ = assemble(user_events_program.root, title="User API")
        assert document["asyncapi"] == "3.0.0"
        assert document["info"] == {
            "title": "User API",
            "version": "1.0.0",
            "description": "Found 1 operations",
        }
        assert list(document) == ["asyncapi", "info", "channels", "operations", "components"]

    def test_empty_program(self):
        """No operations means no components section and no server warning."""
        document, diagnostics = assemble(Namespace())
        assert document["channels"] == {} and document["operations"] == {}
        assert "components" not in document
        assert diagnostics.diagnostics == []

    def test_references_resolve(self, user_event_model, tree_node_model):
        """Every ``$ref`` in an assembled document points at something."""
        ops = [
            Operation("a", return_type=user_event_model),
            Operation("b", return_type=tree_node_model),
        ]
        state = AnnotationState.builder().security(ops[0], SecurityConfig("pw", {"type": "userPassword"})).build()
        document, _ = assemble(Namespace(operations=ops), state)
        refs = list(all_refs(document))
        assert refs
        for ref in refs:
            assert resolve_pointer(document, ref)[0], ref

    def test_finalized_assembler_is_closed(self):
        """After finalize the assembler refuses changes and returns copies."""
        assembler = DocumentAssembler(AnnotationState.empty())
        first = assembler.finalize()
        first["info"]["title"] = "mutated"
        assert assembler.finalize()["info"]["title"] == "AsyncAPI Specification"
        with pytest.raises(RuntimeError):
            assembler.add_security_scheme("x", {"type": "plain"})

    def test_extensions_are_prefixed(self):
        """Additional properties are emitted as ``x-`` fields."""
        assembler = DocumentAssembler(AnnotationState.empty())
        assembler.extensions.update({"team": "payments", "x-owner": "ops"})
        document = assembler.finalize()
        assert document["x-team"] == "payments"
        assert document["x-owner"] == "ops"
