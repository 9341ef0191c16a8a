"""
Protocol Layer - inbound framing/classification and outbound payloads.

Components:
- classify_record / split_parts: BIDI record → events
- SseStreamParser / feed_chunk: SSE body chunks → lines → ContentEvent
- EventEmitter and the event variants shared by both modes
- normalize_parts / build_chat_completion_request: outbound payloads
"""

from .classifier import (
    AUDIO_MIME_PREFIX,
    ClassifiedRecord,
    RecordCategory,
    classify_record,
    classify_server_content,
    is_audio_part,
    record_category,
    split_parts,
)
from .events import (
    AudioEvent,
    CloseEvent,
    ContentEvent,
    ErrorEvent,
    EventEmitter,
    EventName,
    InterruptedEvent,
    LiveEvent,
    LogEvent,
    OpenEvent,
    SetupCompleteEvent,
    ToolCallCancelledEvent,
    ToolCallEvent,
    TurnCompleteEvent,
)
from .message_types import ChatCompletionRequest, ChatMessage, RealtimeInputChunk
from .payloads import (
    RealtimeInputSummary,
    build_chat_completion_request,
    build_tool_error_response,
    build_tool_response_message,
    describe_realtime_input,
    flatten_text,
    normalize_parts,
)
from .stream_parser import (
    DATA_PREFIX,
    DONE_SENTINEL,
    LineKind,
    ParserPhase,
    SseStreamParser,
    StreamLine,
    StreamState,
    extract_delta,
    feed_chunk,
    parse_stream_line,
)


__all__ = [
    "AUDIO_MIME_PREFIX",
    "DATA_PREFIX",
    "DONE_SENTINEL",
    "AudioEvent",
    "ChatCompletionRequest",
    "ChatMessage",
    "ClassifiedRecord",
    "CloseEvent",
    "ContentEvent",
    "ErrorEvent",
    "EventEmitter",
    "EventName",
    "InterruptedEvent",
    "LineKind",
    "LiveEvent",
    "LogEvent",
    "OpenEvent",
    "ParserPhase",
    "RealtimeInputChunk",
    "RealtimeInputSummary",
    "RecordCategory",
    "SetupCompleteEvent",
    "SseStreamParser",
    "StreamLine",
    "StreamState",
    "ToolCallCancelledEvent",
    "ToolCallEvent",
    "TurnCompleteEvent",
    "build_chat_completion_request",
    "build_tool_error_response",
    "build_tool_response_message",
    "classify_record",
    "classify_server_content",
    "describe_realtime_input",
    "extract_delta",
    "feed_chunk",
    "flatten_text",
    "is_audio_part",
    "normalize_parts",
    "parse_stream_line",
    "record_category",
    "split_parts",
]
