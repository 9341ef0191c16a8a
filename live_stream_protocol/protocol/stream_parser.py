"""
SSE Stream Parser (SSE mode: HTTP body chunks → ContentEvent)

Reassembles `data: ` lines from a chat-completion response body that arrives
as arbitrary byte chunks. Chunk boundaries may fall anywhere, including
inside a line or inside a multi-byte UTF-8 character.

The framing step is a pure function over an explicit, immutable StreamState:

    state, lines = feed_chunk(state, chunk)

`pending_bytes + pending_fragment` always holds exactly the part of the
stream that has not yet been returned as a complete line.

SseStreamParser wraps that step in the Idle/Streaming lifecycle of one turn:

    begin() → feed(chunk)* → end()     (normal completion)
    begin() → feed(chunk)* → cancel()  (transport error or caller abort)
"""

from __future__ import annotations

import codecs
import enum
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from loguru import logger

from ..result import Error, Ok
from ..utils import _parse_json_safely
from .events import ContentEvent


DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"
LINE_TERMINATOR = "\n"


@dataclass(frozen=True)
class StreamState:
    """Unterminated tail of the stream seen so far."""

    pending_fragment: str = ""
    # Incomplete UTF-8 sequence carried into the next chunk
    pending_bytes: bytes = b""

    @property
    def is_empty(self) -> bool:
        return not self.pending_fragment and not self.pending_bytes


def feed_chunk(state: StreamState, chunk: bytes) -> tuple[StreamState, list[str]]:
    """
    Append one raw chunk and split off every complete line.

    Args:
        state: State returned by the previous call (or StreamState())
        chunk: Raw bytes exactly as delivered by the transport

    Returns:
        (new_state, complete_lines) - lines have the terminator (and any
        trailing carriage return) removed
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    decoder.setstate((state.pending_bytes, 0))
    text = decoder.decode(chunk, final=False)
    pending_bytes, _ = decoder.getstate()

    buffer = state.pending_fragment + text
    *complete, pending_fragment = buffer.split(LINE_TERMINATOR)
    lines = [line.removesuffix("\r") for line in complete]

    return StreamState(pending_fragment=pending_fragment, pending_bytes=pending_bytes), lines


class LineKind(str, enum.Enum):
    IGNORED = "ignored"  # not a data line (comments, event:, blank separators)
    DONE = "done"  # end-of-stream sentinel
    MALFORMED = "malformed"  # data line whose payload is not valid JSON
    RECORD = "record"  # parsed JSON payload


@dataclass(frozen=True)
class StreamLine:
    kind: LineKind
    raw: str
    record: Any = None
    error: str | None = None


def parse_stream_line(line: str) -> StreamLine:
    """Classify one complete line of the event stream."""
    if not line.startswith(DATA_PREFIX):
        return StreamLine(LineKind.IGNORED, line)

    data = line[len(DATA_PREFIX) :]
    if data == DONE_SENTINEL:
        return StreamLine(LineKind.DONE, line)

    match _parse_json_safely(data):
        case Ok(record):
            return StreamLine(LineKind.RECORD, line, record=record)
        case Error(msg):
            return StreamLine(LineKind.MALFORMED, line, error=msg)


def extract_delta(record: Any) -> str | None:
    """Return choices[0].delta.content when it is a non-empty string."""
    if not isinstance(record, Mapping):
        return None
    choices = record.get("choices")
    if not isinstance(choices, Sequence) or isinstance(choices, str) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, Mapping):
        return None
    delta = first.get("delta")
    if not isinstance(delta, Mapping):
        return None
    content = delta.get("content")
    if isinstance(content, str) and content:
        return content
    return None


class ParserPhase(str, enum.Enum):
    IDLE = "idle"
    STREAMING = "streaming"


class SseStreamParser:
    """
    Stateful wrapper around feed_chunk() for one turn at a time.

    Not re-entrant: one turn streams through a parser instance at a time and
    only feed() mutates the state while streaming.
    """

    def __init__(self) -> None:
        self._state = StreamState()
        self._phase = ParserPhase.IDLE
        self.lines_seen = 0
        self.malformed_lines = 0

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def phase(self) -> ParserPhase:
        return self._phase

    @property
    def is_streaming(self) -> bool:
        return self._phase is ParserPhase.STREAMING

    def begin(self) -> None:
        """Idle → Streaming with an empty buffer."""
        if self.is_streaming:
            logger.warning("[SSE] begin() while streaming - discarding previous turn state")
        self._state = StreamState()
        self._phase = ParserPhase.STREAMING
        self.lines_seen = 0
        self.malformed_lines = 0

    def feed(self, chunk: bytes) -> list[ContentEvent]:
        """Consume one raw chunk and return the content events it completes."""
        if not self.is_streaming:
            logger.debug(f"[SSE] Ignoring {len(chunk)} bytes received while idle")
            return []

        self._state, lines = feed_chunk(self._state, chunk)

        events: list[ContentEvent] = []
        for line in lines:
            self.lines_seen += 1
            parsed = parse_stream_line(line)
            match parsed.kind:
                case LineKind.IGNORED | LineKind.DONE:
                    continue
                case LineKind.MALFORMED:
                    self.malformed_lines += 1
                    logger.error(f"[SSE] Error parsing SSE data: {parsed.error}")
                    logger.error(f"[SSE] Raw SSE data: {parsed.raw}")
                case LineKind.RECORD:
                    delta = extract_delta(parsed.record)
                    if delta is not None:
                        events.append(ContentEvent.from_text(delta))
        return events

    def end(self) -> str:
        """
        Streaming → Idle after the byte source completed.

        Returns:
            Discarded residue (empty when the stream ended on a line boundary)
        """
        residue = self._state.pending_fragment
        if self._state.pending_bytes:
            residue += self._state.pending_bytes.decode("utf-8", errors="replace")
        if residue:
            logger.warning(
                f"[SSE] Stream ended with {len(residue)} chars of unterminated data - discarded: "
                f"{residue[:100]!r}"
            )
        self._state = StreamState()
        self._phase = ParserPhase.IDLE
        return residue

    def cancel(self) -> None:
        """Drop partial state; later feed() calls produce nothing until begin()."""
        if self.is_streaming and not self._state.is_empty:
            logger.debug("[SSE] Cancelling turn with pending partial data")
        self._state = StreamState()
        self._phase = ParserPhase.IDLE
