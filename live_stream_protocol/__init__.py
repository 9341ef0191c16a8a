"""
Live Stream Protocol

Client-side adapter for a generative model endpoint reachable over a
bidirectional event protocol (BIDI mode) or a request/streaming-response
protocol (SSE mode), surfacing both through one event vocabulary.

Layers:
    - MultimodalLiveClient: operations and event façade
    - protocol: record classification, SSE stream framing, outbound payloads
    - transport: SSE HTTP transport and BIDI connection pump
    - tools: client-side tool registry
"""

from .chunk_logger import ChunkLogger, Mode, chunk_logger
from .client import MultimodalLiveClient
from .config import ClientSettings, SessionConfig
from .errors import LiveClientError, NotConnectedError, TransportError, TurnInProgressError
from .logging_config import configure_logging
from .protocol import (
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
    RecordCategory,
    SetupCompleteEvent,
    SseStreamParser,
    StreamState,
    ToolCallCancelledEvent,
    ToolCallEvent,
    TurnCompleteEvent,
    classify_record,
    feed_chunk,
    normalize_parts,
    split_parts,
)
from .result import Error, Ok, Result
from .tools import ToolManager
from .transport import BidiChannel, SseTransport


__all__ = [
    "AudioEvent",
    "BidiChannel",
    "ChunkLogger",
    "ClientSettings",
    "CloseEvent",
    "ContentEvent",
    "Error",
    "ErrorEvent",
    "EventEmitter",
    "EventName",
    "InterruptedEvent",
    "LiveClientError",
    "LiveEvent",
    "LogEvent",
    "Mode",
    "MultimodalLiveClient",
    "NotConnectedError",
    "Ok",
    "OpenEvent",
    "RecordCategory",
    "Result",
    "SessionConfig",
    "SetupCompleteEvent",
    "SseStreamParser",
    "SseTransport",
    "StreamState",
    "ToolCallCancelledEvent",
    "ToolCallEvent",
    "ToolManager",
    "TransportError",
    "TurnCompleteEvent",
    "TurnInProgressError",
    "chunk_logger",
    "classify_record",
    "configure_logging",
    "feed_chunk",
    "normalize_parts",
    "split_parts",
]
