"""
Client Event Vocabulary

Both protocol modes surface the same events:

    BIDI mode: inbound record → classifier → events
    SSE mode:  inbound chunk  → stream parser → ContentEvent

Each event is a small frozen dataclass tagged with an EventName. The
EventEmitter delivers them synchronously, in the order they are raised,
to the handlers registered for that name (and to catch-all handlers).
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar, TypeAlias

from loguru import logger


class EventName(str, enum.Enum):
    """Names under which handlers are registered."""

    OPEN = "open"
    CLOSE = "close"
    LOG = "log"
    CONTENT = "content"
    AUDIO = "audio"
    TOOL_CALL = "tool-call"
    TOOL_CALL_CANCELLED = "tool-call-cancelled"
    SETUP_COMPLETE = "setup-complete"
    TURN_COMPLETE = "turn-complete"
    INTERRUPTED = "interrupted"
    ERROR = "error"


@dataclass(frozen=True)
class OpenEvent:
    name: ClassVar[EventName] = EventName.OPEN

    @property
    def payload(self) -> None:
        return None


@dataclass(frozen=True)
class CloseEvent:
    name: ClassVar[EventName] = EventName.CLOSE

    code: int
    reason: str

    @property
    def payload(self) -> dict[str, Any]:
        return {"code": self.code, "reason": self.reason}


@dataclass(frozen=True)
class LogEvent:
    name: ClassVar[EventName] = EventName.LOG

    type: str
    message: Any
    date: datetime = field(default_factory=datetime.now)

    @property
    def payload(self) -> dict[str, Any]:
        return {"date": self.date, "type": self.type, "message": self.message}


@dataclass(frozen=True)
class ContentEvent:
    """Non-audio model output: `{"modelTurn": {"parts": [...]}}`."""

    name: ClassVar[EventName] = EventName.CONTENT

    parts: list[Any]

    @classmethod
    def from_text(cls, text: str) -> ContentEvent:
        return cls(parts=[{"text": text}])

    @property
    def text(self) -> str:
        return "".join(
            part["text"]
            for part in self.parts
            if isinstance(part, Mapping) and isinstance(part.get("text"), str)
        )

    @property
    def payload(self) -> dict[str, Any]:
        return {"modelTurn": {"parts": self.parts}}


@dataclass(frozen=True)
class AudioEvent:
    """One decoded PCM buffer from an inline audio part."""

    name: ClassVar[EventName] = EventName.AUDIO

    data: bytes

    @property
    def payload(self) -> bytes:
        return self.data


@dataclass(frozen=True)
class ToolCallEvent:
    name: ClassVar[EventName] = EventName.TOOL_CALL

    tool_call: dict[str, Any]

    @property
    def payload(self) -> dict[str, Any]:
        return self.tool_call


@dataclass(frozen=True)
class ToolCallCancelledEvent:
    name: ClassVar[EventName] = EventName.TOOL_CALL_CANCELLED

    cancellation: dict[str, Any]

    @property
    def payload(self) -> dict[str, Any]:
        return self.cancellation


@dataclass(frozen=True)
class SetupCompleteEvent:
    name: ClassVar[EventName] = EventName.SETUP_COMPLETE

    @property
    def payload(self) -> None:
        return None


@dataclass(frozen=True)
class TurnCompleteEvent:
    name: ClassVar[EventName] = EventName.TURN_COMPLETE

    @property
    def payload(self) -> None:
        return None


@dataclass(frozen=True)
class InterruptedEvent:
    name: ClassVar[EventName] = EventName.INTERRUPTED

    @property
    def payload(self) -> None:
        return None


@dataclass(frozen=True)
class ErrorEvent:
    name: ClassVar[EventName] = EventName.ERROR

    error: BaseException

    @property
    def payload(self) -> BaseException:
        return self.error


LiveEvent: TypeAlias = (
    OpenEvent
    | CloseEvent
    | LogEvent
    | ContentEvent
    | AudioEvent
    | ToolCallEvent
    | ToolCallCancelledEvent
    | SetupCompleteEvent
    | TurnCompleteEvent
    | InterruptedEvent
    | ErrorEvent
)

EventHandler = Callable[[Any], None]


class EventEmitter:
    """
    Synchronous, in-order event dispatch.

    Handlers receive the event object. Exceptions raised by a handler
    propagate to whoever emitted the event.
    """

    def __init__(self) -> None:
        self._handlers: dict[EventName, list[EventHandler]] = {}
        self._any_handlers: list[EventHandler] = []

    def on(self, name: EventName | str, handler: EventHandler | None = None) -> Any:
        """
        Register a handler for `name`.

        Works both as a call and as a decorator:

            emitter.on("content", handle_content)

            @emitter.on(EventName.AUDIO)
            def handle_audio(event): ...
        """
        event_name = EventName(name)

        def register(func: EventHandler) -> EventHandler:
            self._handlers.setdefault(event_name, []).append(func)
            return func

        if handler is None:
            return register
        return register(handler)

    def off(self, name: EventName | str, handler: EventHandler) -> bool:
        handlers = self._handlers.get(EventName(name), [])
        if handler in handlers:
            handlers.remove(handler)
            return True
        return False

    def on_any(self, handler: EventHandler) -> EventHandler:
        """Register a handler that receives every event."""
        self._any_handlers.append(handler)
        return handler

    def listener_count(self, name: EventName | str) -> int:
        return len(self._handlers.get(EventName(name), []))

    def emit(self, event: LiveEvent) -> None:
        if event.name is not EventName.LOG:
            logger.trace(f"[EVENT] {event.name.value}")
        for handler in list(self._handlers.get(event.name, [])):
            handler(event)
        for handler in list(self._any_handlers):
            handler(event)
