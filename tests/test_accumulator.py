"""Tests for envelope parsing and MessageAccumulator state."""

import json

import pytest

from codegen_stream.accumulator import MessageAccumulator
from codegen_stream.envelope import DataType, EnvelopeType, MalformedEnvelopeError, parse_envelope


def env(**obj):
    return parse_envelope(json.dumps(obj))


def creation(mid, data_type="text", result=None, error=None, final=False):
    data = {"type": data_type}
    if result is not None:
        data["result"] = result
    if error is not None:
        data["error"] = error
    return env(messageId=mid, type="creation", data=data, isFinal=final)


def update(mid, result=None, error=None, final=False):
    delta = {}
    if result is not None:
        delta["result"] = result
    if error is not None:
        delta["error"] = error
    return env(messageId=mid, type="update", delta=delta, isFinal=final)


class TestParseEnvelope:
    def test_creation(self):
        e = creation("m1", "tool_result", result="ok")
        assert e.message_id == "m1"
        assert e.type is EnvelopeType.CREATION
        assert e.data_type == DataType.TOOL_RESULT
        assert e.is_final is False

    def test_update_has_no_data_type(self):
        e = update("m1", result="x", final=True)
        assert e.type is EnvelopeType.UPDATE
        assert e.data_type is None
        assert e.delta.result == "x"
        assert e.delta.error is None
        assert e.is_final is True

    def test_unknown_data_type_kept_as_string(self):
        e = creation("m1", "image")
        assert e.data_type == "image"

    def test_aliases_and_extra_keys(self):
        e = parse_envelope('{"messageId": "m1", "type": "creation", "isFinal": true, "data": {"type": "text"}, "seq": 3}')
        assert e.message_id == "m1"
        assert e.is_final is True
        assert e.model_dump(by_alias=True, exclude_none=True) == {
            "messageId": "m1",
            "type": "creation",
            "isFinal": True,
            "data": {"type": "text"},
            "delta": {},
        }

    @pytest.mark.parametrize(
        "payload",
        [
            "not json",
            "[1, 2]",
            '{"type": "creation"}',
            '{"messageId": 5, "type": "creation"}',
            '{"messageId": "m1"}',
            '{"messageId": "m1", "type": "delete"}',
            '{"messageId": "m1", "type": "update", "delta": {"result": 5}}',
            '{"messageId": "m1", "type": "creation", "data": null}',
        ],
    )
    def test_malformed(self, payload):
        with pytest.raises(MalformedEnvelopeError):
            parse_envelope(payload)

    def test_missing_is_final_defaults_false(self):
        e = parse_envelope('{"messageId": "m1", "type": "update"}')
        assert e.is_final is False
        assert e.delta.result is None
        assert e.data_type is None


class TestMessageAccumulator:
    def test_creation_then_updates_concatenate(self):
        acc = MessageAccumulator()
        acc.apply(creation("m1", result="ab", error="e"))
        for part in ("cd", "", "ef"):
            acc.apply(update("m1", result=part))
        acc.apply(update("m1", error="rr", final=True))
        msg = acc.get("m1")
        assert msg.result == "abcdef"
        assert msg.error == "err"
        assert msg.is_final is True
        assert msg.data_type == DataType.TEXT

    def test_absent_fields_are_empty(self):
        acc = MessageAccumulator()
        acc.apply(creation("m1"))
        acc.apply(update("m1"))
        msg = acc.get("m1")
        assert msg.result == ""
        assert msg.error == ""

    def test_update_for_unknown_id_is_noop(self):
        acc = MessageAccumulator()
        acc.apply(creation("m1", result="a"))
        before = acc.snapshot()
        assert acc.apply(update("ghost", result="x", final=True)) is None
        assert acc.snapshot() == before
        assert "ghost" not in acc
        assert list(acc.terminal_messages()) == []

    def test_no_mutation_after_final(self):
        acc = MessageAccumulator()
        acc.apply(creation("m1", result="done", final=True))
        assert acc.apply(update("m1", result="more", error="bad", final=False)) is None
        msg = acc.get("m1")
        assert (msg.result, msg.error, msg.is_final) == ("done", "", True)

    def test_second_creation_overwrites(self):
        acc = MessageAccumulator()
        acc.apply(creation("m1", result="old", final=True))
        acc.apply(creation("m1", "tool_call", result="new"))
        msg = acc.get("m1")
        assert msg.result == "new"
        assert msg.data_type == DataType.TOOL_CALL
        assert msg.is_final is False
        assert list(acc.terminal_messages()) == []
        assert len(acc) == 1

    def test_terminal_order_is_order_of_becoming_final(self):
        acc = MessageAccumulator()
        acc.apply(creation("a"))
        acc.apply(creation("b"))
        acc.apply(creation("c", final=True))
        acc.apply(update("b", final=True))
        acc.apply(update("a", result="x"))
        assert [m.message_id for m in acc.terminal_messages()] == ["c", "b"]

    def test_never_final_message_not_terminal(self):
        acc = MessageAccumulator()
        acc.apply(creation("m1", result="x"))
        acc.apply(update("m1", result="y"))
        assert list(acc.terminal_messages()) == []

    def test_get_unknown(self):
        acc = MessageAccumulator()
        assert acc.get("nope") is None
        assert len(acc) == 0

    def test_snapshot_uses_wire_names(self):
        acc = MessageAccumulator()
        acc.apply(creation("m1", "artifact_output", result="{}", final=True))
        assert acc.snapshot() == {
            "m1": {"messageId": "m1", "dataType": "artifact_output", "result": "{}", "error": "", "isFinal": True}
        }

    def test_post_final_update_logged(self, caplog):
        acc = MessageAccumulator()
        acc.apply(creation("m1", final=True))
        with caplog.at_level("WARNING", logger="codegen-stream"):
            acc.apply(update("m1", result="x"))
        assert "update after final" in caplog.text
