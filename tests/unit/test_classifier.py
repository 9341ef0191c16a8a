"""
BIDI Record Classifier Tests

Tests for record categorization and the audio/text part splitter.
"""

import base64

import pytest

from live_stream_protocol.protocol.classifier import (
    RecordCategory,
    classify_record,
    is_audio_part,
    record_category,
    split_parts,
)
from live_stream_protocol.protocol.events import (
    AudioEvent,
    ContentEvent,
    EventName,
    InterruptedEvent,
    SetupCompleteEvent,
    ToolCallCancelledEvent,
    ToolCallEvent,
    TurnCompleteEvent,
)


PCM_BYTES = b"\x00\x01\x02\x03\xfe\xff"


def _audio_part(data: bytes = PCM_BYTES, mime_type: str = "audio/pcm;rate=24000") -> dict:
    return {"inlineData": {"mimeType": mime_type, "data": base64.b64encode(data).decode()}}


# ============================================================
# Category priority
# ============================================================


class TestRecordCategory:
    def test_tool_call_wins_over_everything(self) -> None:
        # given
        record = {
            "serverContent": {"turnComplete": True},
            "setupComplete": {},
            "toolCallCancellation": {"ids": ["a"]},
            "toolCall": {"functionCalls": []},
        }

        # when / then
        assert record_category(record) is RecordCategory.TOOL_CALL

    def test_cancellation_wins_over_setup_and_content(self) -> None:
        record = {"toolCallCancellation": {"ids": ["a"]}, "setupComplete": {}, "serverContent": {}}

        assert record_category(record) is RecordCategory.TOOL_CALL_CANCELLATION

    def test_setup_complete_wins_over_server_content(self) -> None:
        record = {"setupComplete": {}, "serverContent": {"turnComplete": True}}

        assert record_category(record) is RecordCategory.SETUP_COMPLETE

    def test_null_keys_do_not_count(self) -> None:
        record = {"toolCall": None, "serverContent": {"turnComplete": True}}

        assert record_category(record) is RecordCategory.SERVER_CONTENT

    @pytest.mark.parametrize("record", [{}, {"usageMetadata": {"totalTokenCount": 5}}, {"foo": 1}])
    def test_unmatched(self, record: dict) -> None:
        assert record_category(record) is RecordCategory.UNMATCHED


# ============================================================
# split_parts
# ============================================================


class TestSplitParts:
    def test_audio_and_text(self) -> None:
        # given
        parts = [_audio_part(), {"text": "hi"}]

        # when
        audio, others = split_parts(parts)

        # then
        assert audio == [PCM_BYTES]
        assert others == [{"text": "hi"}]

    def test_partition_is_total_and_keeps_order(self) -> None:
        # given
        image = {"inlineData": {"mimeType": "image/png", "data": "iVBORw0KGgo="}}
        parts = [
            {"text": "one"},
            _audio_part(b"\x01"),
            image,
            _audio_part(b"\x02"),
            {"functionCall": {"name": "x"}},
            {"text": "two"},
        ]

        # when
        audio, others = split_parts(parts)

        # then
        assert audio == [b"\x01", b"\x02"]
        assert others == [parts[0], image, parts[4], parts[5]]
        assert len(audio) + len(others) == len(parts)

    def test_audio_parts_are_matched_by_mime_prefix(self) -> None:
        # given
        parts = [_audio_part(mime_type="audio/pcm"), _audio_part(mime_type="audio/wav")]

        # when
        audio, others = split_parts(parts)

        # then
        assert audio == [PCM_BYTES]
        assert others == [parts[1]]

    @pytest.mark.parametrize("data", [None, "", "!!not-base64!!"])
    def test_audio_part_without_usable_data_is_dropped(self, data: str | None) -> None:
        # given
        parts = [{"inlineData": {"mimeType": "audio/pcm", "data": data}}, {"text": "kept"}]

        # when
        audio, others = split_parts(parts)

        # then
        assert audio == []
        assert others == [{"text": "kept"}]

    def test_empty(self) -> None:
        assert split_parts([]) == ([], [])

    @pytest.mark.parametrize(
        "part",
        ["text", None, {"text": "x"}, {"inlineData": "x"}, {"inlineData": {"mimeType": 5}}],
    )
    def test_is_audio_part_rejects_other_shapes(self, part: object) -> None:
        assert is_audio_part(part) is False


# ============================================================
# classify_record
# ============================================================


class TestClassifyRecord:
    def test_audio_then_content(self) -> None:
        # given
        record = {"serverContent": {"modelTurn": {"parts": [_audio_part(), {"text": "hi"}]}}}

        # when
        classified = classify_record(record)

        # then
        assert classified.category is RecordCategory.SERVER_CONTENT
        assert classified.events == [
            AudioEvent(data=PCM_BYTES),
            ContentEvent(parts=[{"text": "hi"}]),
        ]

    def test_interrupted_suppresses_everything_else(self) -> None:
        # given
        record = {
            "serverContent": {
                "interrupted": True,
                "turnComplete": True,
                "modelTurn": {"parts": [{"text": "x"}]},
            }
        }

        # when
        classified = classify_record(record)

        # then
        assert classified.events == [InterruptedEvent()]

    def test_turn_complete_precedes_content(self) -> None:
        # given
        record = {
            "serverContent": {
                "turnComplete": True,
                "modelTurn": {"parts": [{"text": "done"}]},
            }
        }

        # when
        names = [event.name for event in classify_record(record).events]

        # then
        assert names == [EventName.TURN_COMPLETE, EventName.CONTENT]

    def test_turn_complete_alone(self) -> None:
        classified = classify_record({"serverContent": {"turnComplete": True}})

        assert classified.events == [TurnCompleteEvent()]

    def test_audio_only_turn_has_no_content_event(self) -> None:
        # given
        record = {"serverContent": {"modelTurn": {"parts": [_audio_part(b"a"), _audio_part(b"b")]}}}

        # when
        classified = classify_record(record)

        # then
        assert classified.events == [AudioEvent(data=b"a"), AudioEvent(data=b"b")]

    def test_server_content_without_model_turn(self) -> None:
        classified = classify_record({"serverContent": {"generationComplete": True}})

        assert classified.category is RecordCategory.SERVER_CONTENT
        assert classified.events == []

    def test_non_mapping_server_content(self) -> None:
        classified = classify_record({"serverContent": "oops"})

        assert classified.category is RecordCategory.SERVER_CONTENT
        assert classified.events == []

    def test_tool_call(self) -> None:
        # given
        tool_call = {"functionCalls": [{"id": "c1", "name": "lookup", "args": {}}]}

        # when
        classified = classify_record({"toolCall": tool_call})

        # then
        assert classified.events == [ToolCallEvent(tool_call=tool_call)]

    def test_tool_call_cancellation(self) -> None:
        classified = classify_record({"toolCallCancellation": {"ids": ["c1"]}})

        assert classified.events == [ToolCallCancelledEvent(cancellation={"ids": ["c1"]})]

    def test_setup_complete(self) -> None:
        classified = classify_record({"setupComplete": {}})

        assert classified.events == [SetupCompleteEvent()]

    def test_unmatched_has_no_events(self) -> None:
        classified = classify_record({"usageMetadata": {}})

        assert classified.category is RecordCategory.UNMATCHED
        assert classified.events == []
