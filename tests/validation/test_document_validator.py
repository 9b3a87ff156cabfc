"""Tests for the two-phase document validator."""

import json
import threading

import pytest
import yaml

from asyncapi_emitter.config import ValidatorOptions
from asyncapi_emitter.validation import (
    DocumentValidator,
    ValidationSeverity,
    validate_document,
)
from asyncapi_emitter.validation.rules import ValidationRule


class TestStructuralPhase:
    """Machine schema checks."""

    def test_valid_document(self, valid_document):
        """The fixture document passes with metrics filled in."""
        result = validate_document(valid_document)
        assert result.valid, [e.message for e in result.errors]
        assert result.errors == []
        assert result.metrics.channel_count == 1
        assert result.metrics.operation_count == 1
        assert result.metrics.schema_count == 1
        assert result.metrics.document_size > 0

    def test_missing_version_is_required_error(self, valid_document):
        """Dropping ``asyncapi`` yields a ``required`` error naming the key."""
        del valid_document["asyncapi"]
        result = validate_document(valid_document)
        assert not result.valid
        required = [e for e in result.errors if e.kind == "required"]
        assert required
        assert "asyncapi" in required[0].message

    def test_wrong_version_is_const_error(self, valid_document):
        """Any version other than 3.0.0 is rejected."""
        valid_document["asyncapi"] = "2.6.0"
        result = validate_document(valid_document)
        assert [e.kind for e in result.errors] == ["const"]
        assert result.errors[0].instance_path == "/asyncapi"

    def test_invalid_action(self, valid_document):
        """Operation actions are limited to send and receive."""
        valid_document["operations"]["orderCreated"]["action"] = "publish"
        result = validate_document(valid_document)
        assert not result.valid
        assert result.errors[0].kind == "enum"
        assert result.errors[0].instance_path == "/operations/orderCreated/action"

    def test_unknown_top_level_field(self, valid_document):
        """Unknown root fields fail, ``x-`` extensions pass."""
        valid_document["x-team"] = "payments"
        assert validate_document(valid_document).valid
        valid_document["extra"] = True
        assert not validate_document(valid_document).valid

    def test_non_mapping_document(self):
        """Non-object documents fail without raising."""
        result = validate_document(["not", "a", "document"])
        assert not result.valid
        assert result.errors[0].kind == "type"

    def test_errors_are_sorted(self, valid_document):
        """Errors come back in a stable order."""
        del valid_document["asyncapi"]
        valid_document["info"] = {}
        first = [e.message for e in validate_document(valid_document).errors]
        second = [e.message for e in validate_document(valid_document).errors]
        assert first == second
        assert len(first) == 3


class TestSemanticPhase:
    """Reference integrity and binding placement."""

    def test_dangling_channel_reference(self, valid_document):
        """Operations must point at a declared channel."""
        valid_document["operations"]["orderCreated"]["channel"]["$ref"] = "#/channels/missing"
        result = validate_document(valid_document)
        assert not result.valid
        kinds = {e.rule_id for e in result.errors}
        assert "valid-channel-references" in kinds
        assert any("missing" in e.message for e in result.errors)

    def test_dangling_message_reference(self, valid_document):
        """Channel messages must point at declared component messages."""
        channel = valid_document["channels"]["channel_orderCreated"]
        channel["messages"]["orderCreatedMessage"]["$ref"] = "#/components/messages/gone"
        result = validate_document(valid_document)
        assert not result.valid
        assert {e.rule_id for e in result.errors} == {"valid-message-references"}
        assert all(e.kind == "reference" for e in result.errors)

    def test_dangling_schema_reference(self, valid_document):
        """Schema refs inside messages must resolve."""
        message = valid_document["components"]["messages"]["orderCreatedMessage"]
        message["payload"] = {"$ref": "#/components/schemas/Nope"}
        result = validate_document(valid_document)
        assert [e.rule_id for e in result.errors] == ["valid-internal-references"]
        assert result.errors[0].instance_path == "/components/messages/orderCreatedMessage/payload"

    def test_misplaced_binding_warns(self, valid_document):
        """An HTTP channel binding is a warning, not an error."""
        valid_document["channels"]["channel_orderCreated"]["bindings"] = {"http": {}}
        result = validate_document(valid_document)
        assert result.valid
        assert [w.rule_id for w in result.warnings] == ["protocol-binding-compatibility"]
        assert result.warnings[0].severity == ValidationSeverity.WARNING

    def test_strict_mode_promotes_warnings(self, valid_document):
        """Strict mode turns warnings into errors."""
        valid_document["channels"]["channel_orderCreated"]["bindings"] = {"http": {}}
        result = DocumentValidator(ValidatorOptions(strict_mode=True)).validate(valid_document)
        assert not result.valid
        assert result.warnings == []

    def test_custom_rules(self, valid_document):
        """Callers can supply their own rule list."""

        class NoTitleRule(ValidationRule):
            def __init__(self):
                super().__init__("no-title", "Title must not be Orders")

            def check(self, document):
                if document["info"]["title"] == "Orders":
                    return [self.issue("Title is Orders", "/info/title", kind="custom")]
                return []

        result = DocumentValidator(rules=[NoTitleRule()]).validate(valid_document)
        assert [e.kind for e in result.errors] == ["custom"]


class TestCache:
    """Content-keyed result cache."""

    def test_cache_hit_has_zero_duration(self, valid_document):
        """A repeated document is served from the cache."""
        validator = DocumentValidator()
        first = validator.validate(valid_document)
        second = validator.validate(dict(valid_document))
        assert validator.cache_size == 1
        assert second.metrics.duration == 0.0
        assert second.valid == first.valid
        assert second.metrics.channel_count == first.metrics.channel_count

    def test_cache_can_be_disabled(self, valid_document):
        """Without the cache nothing is stored."""
        validator = DocumentValidator(ValidatorOptions(enable_cache=False))
        validator.validate(valid_document)
        assert validator.cache_size == 0

    def test_concurrent_misses_compute_once(self, valid_document):
        """Parallel lookups of one document run the rules once."""
        calls = []

        class CountingRule(ValidationRule):
            def __init__(self):
                super().__init__("counting", "Counts invocations")

            def check(self, document):
                calls.append(1)
                return []

        validator = DocumentValidator(rules=[CountingRule()])
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            validator.validate(valid_document)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert len(calls) == 1

    def test_clear_cache(self, valid_document):
        """Clearing empties the cache."""
        validator = DocumentValidator()
        validator.validate(valid_document)
        validator.clear_cache()
        assert validator.cache_size == 0


class TestFilesAndBatches:
    """File and batch validation."""

    def test_yaml_and_json_files(self, tmp_path, valid_document):
        """Both formats are parsed by extension."""
        json_file = tmp_path / "api.json"
        json_file.write_text(json.dumps(valid_document))
        yaml_file = tmp_path / "api.yaml"
        yaml_file.write_text(yaml.safe_dump(valid_document))
        validator = DocumentValidator()
        assert validator.validate_file(json_file).valid
        result = validator.validate_file(yaml_file)
        assert result.valid
        assert result.source == str(yaml_file)

    def test_parse_error(self, tmp_path):
        """Malformed text becomes a parse-error result."""
        broken = tmp_path / "broken.json"
        broken.write_text("{not json")
        result = DocumentValidator().validate_file(broken)
        assert not result.valid
        assert result.errors[0].kind == "parse-error"

    def test_missing_file(self, tmp_path):
        """Unreadable files become a file-error result."""
        result = DocumentValidator().validate_file(tmp_path / "absent.yaml")
        assert not result.valid
        assert result.errors[0].kind == "file-error"

    def test_batch_keeps_order(self, tmp_path, valid_document):
        """Batch results line up with their inputs."""
        good = tmp_path / "good.json"
        good.write_text(json.dumps(valid_document))
        bad = dict(valid_document)
        bad.pop("info")
        results = DocumentValidator(ValidatorOptions(batch_concurrency=2)).validate_batch(
            [good, bad, tmp_path / "missing.json"]
        )
        assert [r.valid for r in results] == [True, False, False]
        assert results[2].errors[0].kind == "file-error"

    def test_empty_batch(self):
        """An empty batch returns no results."""
        assert DocumentValidator().validate_batch([]) == []

    def test_result_serialization(self, valid_document):
        """Results convert to plain dictionaries."""
        del valid_document["asyncapi"]
        data = validate_document(valid_document).to_dict()
        assert data["valid"] is False
        assert data["errors"][0]["keyword"] == "required"
        assert "error(s)" in data["summary"]

    def test_invalid_concurrency(self):
        """Batch concurrency must be positive."""
        from asyncapi_emitter.errors import ConfigurationError

        with pytest.raises(ConfigurationError):
            ValidatorOptions(batch_concurrency=0)


class TestMalformedInput:
    """Shapes that are not valid JSON documents still produce results."""

    def test_non_string_mapping_key(self, valid_document):
        """Integer keys are reported instead of raising."""
        valid_document["channels"][1] = {"address": "numbered"}
        result = DocumentValidator().validate(valid_document)
        assert not result.valid
        assert [(e.kind, e.instance_path) for e in result.errors] == [("type", "/channels")]
        assert "1" in result.errors[0].message
        assert result.metrics.channel_count == 2

    def test_non_string_key_in_yaml_file(self, tmp_path):
        """YAML can produce integer keys; validate_file reports them."""
        path = tmp_path / "numbered.yaml"
        path.write_text("asyncapi: 3.0.0\ninfo: {title: T, version: '1'}\nchannels:\n  1: {address: x}\n")
        result = DocumentValidator().validate_file(path)
        assert not result.valid
        assert result.errors[0].kind == "type"
        assert result.source == str(path)

    def test_operation_messages_not_a_list(self, valid_document):
        """A scalar ``messages`` field fails the schema phase without crashing the rules."""
        valid_document["operations"]["orderCreated"]["messages"] = 5
        result = validate_document(valid_document)
        assert not result.valid
        assert [(e.kind, e.instance_path) for e in result.errors] == [
            ("type", "/operations/orderCreated/messages")
        ]

    def test_sections_of_the_wrong_type(self, valid_document):
        """Scalar sections are schema errors, not exceptions."""
        valid_document["channels"]["channel_orderCreated"]["messages"] = "oops"
        valid_document["servers"]["production"]["bindings"] = ["kafka"]
        result = validate_document(valid_document)
        assert not result.valid
        type_errors = {e.instance_path for e in result.errors if e.kind == "type"}
        assert type_errors == {
            "/channels/channel_orderCreated/messages",
            "/servers/production/bindings",
        }


class TestCacheBounds:
    """The result cache keeps a bounded number of entries."""

    def test_least_recently_used_is_evicted(self, valid_document):
        """Only the most recently used documents stay cached."""
        computed = []

        class RecordingRule(ValidationRule):
            def __init__(self):
                super().__init__("recording", "Records validated titles")

            def check(self, document):
                computed.append(document["info"]["title"])
                return []

        validator = DocumentValidator(ValidatorOptions(max_cache_entries=2), rules=[RecordingRule()])
        documents = []
        for title in ("A", "B", "C"):
            document = json.loads(json.dumps(valid_document))
            document["info"]["title"] = title
            documents.append(document)
        validator.validate(documents[0])
        validator.validate(documents[1])
        validator.validate(documents[0])
        validator.validate(documents[2])
        assert validator.cache_size == 2
        validator.validate(documents[0])
        validator.validate(documents[1])
        assert computed == ["A", "B", "C", "B"]

    def test_cache_limit_must_be_positive(self):
        """A zero-sized cache is a configuration error."""
        from asyncapi_emitter.errors import ConfigurationError

        with pytest.raises(ConfigurationError):
            ValidatorOptions(max_cache_entries=0)
