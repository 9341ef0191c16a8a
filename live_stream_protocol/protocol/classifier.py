"""
BIDI Record Classifier

Turns one decoded server record into the client event vocabulary.

A record belongs to exactly one category, checked in this order
(first match wins):

    toolCall             → ToolCallEvent
    toolCallCancellation → ToolCallCancelledEvent
    setupComplete        → SetupCompleteEvent
    serverContent        → InterruptedEvent
                           | TurnCompleteEvent? + AudioEvent* + ContentEvent?
    (anything else)      → UNMATCHED, no events

Everything here is a pure function of its input. Side effects that follow
from a classification (tool execution, logging, emission) belong to the client.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from ..result import Error, Ok
from ..utils import base64_to_bytes
from .events import (
    AudioEvent,
    ContentEvent,
    InterruptedEvent,
    LiveEvent,
    SetupCompleteEvent,
    ToolCallCancelledEvent,
    ToolCallEvent,
    TurnCompleteEvent,
)


AUDIO_MIME_PREFIX = "audio/pcm"


class RecordCategory(str, enum.Enum):
    TOOL_CALL = "toolCall"
    TOOL_CALL_CANCELLATION = "toolCallCancellation"
    SETUP_COMPLETE = "setupComplete"
    SERVER_CONTENT = "serverContent"
    UNMATCHED = "unmatched"


# Priority order of top-level keys
_CATEGORY_ORDER: tuple[RecordCategory, ...] = (
    RecordCategory.TOOL_CALL,
    RecordCategory.TOOL_CALL_CANCELLATION,
    RecordCategory.SETUP_COMPLETE,
    RecordCategory.SERVER_CONTENT,
)


@dataclass(frozen=True)
class ClassifiedRecord:
    """Category of a record plus the events it yields, in emission order."""

    category: RecordCategory
    events: list[LiveEvent] = field(default_factory=list)


def record_category(record: Mapping[str, Any]) -> RecordCategory:
    for category in _CATEGORY_ORDER:
        if record.get(category.value) is not None:
            return category
    return RecordCategory.UNMATCHED


def is_audio_part(part: Any) -> bool:
    if not isinstance(part, Mapping):
        return False
    inline_data = part.get("inlineData")
    if not isinstance(inline_data, Mapping):
        return False
    mime_type = inline_data.get("mimeType")
    return isinstance(mime_type, str) and mime_type.startswith(AUDIO_MIME_PREFIX)


def split_parts(parts: Sequence[Any]) -> tuple[list[bytes], list[Any]]:
    """
    Partition model-turn parts into decoded audio buffers and everything else.

    Audio parts (inlineData with an audio/pcm MIME type) are base64-decoded in
    order. An audio part without decodable data lands in neither list.
    Non-audio parts keep their relative order and are passed through unchanged.

    Returns:
        (audio_buffers, other_parts)
    """
    audio_buffers: list[bytes] = []
    other_parts: list[Any] = []

    for part in parts:
        if not is_audio_part(part):
            other_parts.append(part)
            continue

        match base64_to_bytes(part["inlineData"].get("data")):
            case Ok(buffer):
                audio_buffers.append(buffer)
            case Error(msg):
                logger.debug(f"[CLASSIFIER] Skipping audio part without usable data: {msg}")

    return audio_buffers, other_parts


def classify_server_content(server_content: Mapping[str, Any]) -> list[LiveEvent]:
    """Events for a serverContent payload, in emission order."""
    if server_content.get("interrupted"):
        # An interrupted turn carries no usable content
        return [InterruptedEvent()]

    events: list[LiveEvent] = []

    if server_content.get("turnComplete"):
        events.append(TurnCompleteEvent())

    model_turn = server_content.get("modelTurn")
    if isinstance(model_turn, Mapping):
        parts = model_turn.get("parts") or []
        audio_buffers, other_parts = split_parts(parts)
        events.extend(AudioEvent(data=buffer) for buffer in audio_buffers)
        if other_parts:
            events.append(ContentEvent(parts=list(other_parts)))

    return events


def classify_record(record: Mapping[str, Any]) -> ClassifiedRecord:
    """Classify one decoded record. Pure; never raises on unexpected shapes."""
    category = record_category(record)

    match category:
        case RecordCategory.TOOL_CALL:
            return ClassifiedRecord(category, [ToolCallEvent(tool_call=record["toolCall"])])
        case RecordCategory.TOOL_CALL_CANCELLATION:
            return ClassifiedRecord(
                category,
                [ToolCallCancelledEvent(cancellation=record["toolCallCancellation"])],
            )
        case RecordCategory.SETUP_COMPLETE:
            return ClassifiedRecord(category, [SetupCompleteEvent()])
        case RecordCategory.SERVER_CONTENT:
            server_content = record["serverContent"]
            if not isinstance(server_content, Mapping):
                return ClassifiedRecord(category)
            return ClassifiedRecord(category, classify_server_content(server_content))
        case _:
            return ClassifiedRecord(RecordCategory.UNMATCHED)
