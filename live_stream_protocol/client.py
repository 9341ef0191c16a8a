"""
Multimodal Live Client

The façade callers talk to. It exposes one set of operations and one event
vocabulary for both protocol modes:

    BIDI mode: receive(message) for each unit of an open bidirectional
               connection (see transport.BidiChannel)
    SSE mode:  send(parts) streams one chat completion per turn
               (see transport.SseTransport)

Operations:
    connect / disconnect / send / send_tool_response / send_realtime_input

Events (see protocol.events.EventName):
    open, close, log, content, audio, tool-call, tool-call-cancelled,
    setup-complete, turn-complete, interrupted, error

Emission is synchronous: handlers run inside the call that raised the event,
in the order the events are raised.
"""

import asyncio
import contextlib
from collections.abc import AsyncGenerator, Mapping
from typing import Any

from loguru import logger

from .chunk_logger import ChunkLogger, chunk_logger
from .config import ClientSettings, SessionConfig
from .errors import NotConnectedError, TransportError, TurnInProgressError
from .protocol.classifier import ClassifiedRecord, RecordCategory, classify_record
from .protocol.events import (
    CloseEvent,
    ContentEvent,
    ErrorEvent,
    EventEmitter,
    EventHandler,
    EventName,
    InterruptedEvent,
    LiveEvent,
    LogEvent,
    OpenEvent,
    TurnCompleteEvent,
)
from .protocol.payloads import (
    build_chat_completion_request,
    build_tool_error_response,
    build_tool_response_message,
    describe_realtime_input,
    normalize_parts,
)
from .protocol.stream_parser import SseStreamParser
from .result import Error, Ok
from .tools import ToolManager
from .transport.sse_transport import SseTransport
from .utils import decode_record, truncate_for_log


class MultimodalLiveClient:
    """
    Client for a generative model endpoint reachable over BIDI or SSE.

    Not re-entrant for SSE turns: a second send() while a turn is streaming
    raises TurnInProgressError.
    """

    def __init__(
        self,
        settings: ClientSettings | None = None,
        tool_manager: ToolManager | None = None,
        transport: SseTransport | None = None,
        recorder: ChunkLogger | None = None,
    ) -> None:
        """
        Args:
            settings: Endpoint settings (defaults to ClientSettings.from_env())
            tool_manager: Tools offered to the model in BIDI mode
            transport: SSE transport (defaults to SseTransport(settings))
            recorder: Chunk logger (defaults to the global chunk_logger)
        """
        self._settings = settings or ClientSettings.from_env()
        self.tool_manager = tool_manager or ToolManager()
        self._transport = transport or SseTransport(self._settings)
        self._recorder = recorder or chunk_logger
        self.events = EventEmitter()

        self.config: SessionConfig | None = None
        self._api_key: str | None = None

        self._parser = SseStreamParser()
        self._turn_active = False
        self._outbox: asyncio.Queue[dict[str, Any]] | None = None

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on(self, name: EventName | str, handler: EventHandler | None = None) -> Any:
        """Register an event handler (call or decorator form)."""
        return self.events.on(name, handler)

    def off(self, name: EventName | str, handler: EventHandler) -> bool:
        return self.events.off(name, handler)

    def log(self, type: str, message: Any) -> None:  # noqa: A002
        """Emit a `log` event and mirror it to loguru."""
        logger.debug(f"[CLIENT] {type}: {message}")
        self.events.emit(LogEvent(type=type, message=message))

    def _emit(self, event: LiveEvent) -> None:
        self._recorder.log_chunk(
            location="client-event",
            direction="out",
            chunk={"name": event.name.value, "payload": event.payload},
            mode="sse" if self._turn_active else "bidi",
        )
        self.events.emit(event)

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    @property
    def settings(self) -> ClientSettings:
        return self._settings

    @property
    def is_connected(self) -> bool:
        return self.config is not None

    @property
    def turn_active(self) -> bool:
        return self._turn_active

    def connect(self, config: SessionConfig | Mapping[str, Any], api_key: str | None = None) -> bool:
        """
        Store the session config and credential, then emit `open`.

        Registered tool declarations are placed ahead of the config's own tools.
        """
        session_config = (
            config if isinstance(config, SessionConfig) else SessionConfig.model_validate(config)
        )
        self.config = session_config.with_tools(self.tool_manager.get_tool_declarations())
        self._api_key = api_key or self._settings.api_key

        logger.info(
            f"[CLIENT] Connected: model={self.config.model}, tools={len(self.config.tools)}"
        )
        self.log("client.open", "Connected to socket")
        self._emit(OpenEvent())
        return True

    def disconnect(self) -> bool:
        """Drop config and credential, abandon any turn, then emit `close`."""
        if self._turn_active:
            self.cancel_turn()
        self.config = None
        self._api_key = None

        self.log("client.close", "Disconnected")
        self._emit(CloseEvent(code=0, reason="Client disconnected"))
        return True

    async def aclose(self) -> None:
        """Release transport resources."""
        await self._transport.aclose()

    # ------------------------------------------------------------------
    # BIDI mode (inbound records)
    # ------------------------------------------------------------------

    def attach_outbox(self, outbox: asyncio.Queue[dict[str, Any]]) -> None:
        """Route send_tool_response() messages into an open BIDI connection."""
        self._outbox = outbox

    def detach_outbox(self) -> None:
        self._outbox = None

    def handle_connection_closed(self, code: int, reason: str) -> None:
        self.log("client.close", reason)
        self._emit(CloseEvent(code=code, reason=reason))

    def handle_transport_error(self, error: BaseException) -> None:
        self._emit(ErrorEvent(error=error))

    async def receive(self, message: bytes | str | Mapping[str, Any]) -> None:
        """
        Process one inbound BIDI message unit.

        Malformed units and unmatched records are logged and dropped; they
        never raise.
        """
        self._recorder.log_chunk(
            location="bidi-message",
            direction="in",
            chunk=dict(message) if isinstance(message, Mapping) else message,
            mode="bidi",
        )

        match decode_record(message):
            case Ok(record):
                pass
            case Error(msg):
                logger.error(f"[BIDI] Dropping malformed message: {msg}")
                return

        classified = classify_record(record)

        match classified.category:
            case RecordCategory.TOOL_CALL:
                self.log("server.toolCall", truncate_for_log(record))
                self._emit_all(classified)
                await self._handle_tool_call(record["toolCall"])
            case RecordCategory.TOOL_CALL_CANCELLATION:
                self.log("receive.toolCallCancellation", record)
                self._emit_all(classified)
            case RecordCategory.SETUP_COMPLETE:
                self.log("server.send", "setupComplete")
                self._emit_all(classified)
            case RecordCategory.SERVER_CONTENT:
                self._dispatch_server_content(classified, record)
            case RecordCategory.UNMATCHED:
                logger.warning(f"[BIDI] Received unmatched message: {truncate_for_log(record)}")

    def _emit_all(self, classified: ClassifiedRecord) -> None:
        for event in classified.events:
            self._emit(event)

    def _dispatch_server_content(self, classified: ClassifiedRecord, record: dict[str, Any]) -> None:
        for event in classified.events:
            match event:
                case InterruptedEvent():
                    self.log("receive.serverContent", "interrupted")
                case TurnCompleteEvent():
                    self.log("server.send", "turnComplete")
            self._emit(event)
            if isinstance(event, ContentEvent):
                self.log("server.content", truncate_for_log(record))

    async def _handle_tool_call(self, tool_call: Any) -> None:
        function_calls = tool_call.get("functionCalls") if isinstance(tool_call, Mapping) else None
        if not function_calls or not isinstance(function_calls[0], Mapping):
            logger.warning(f"[TOOLS] toolCall without a usable function call: {tool_call}")
            return

        if len(function_calls) > 1:
            logger.warning(
                f"[TOOLS] toolCall carries {len(function_calls)} function calls; "
                "only the first is executed"
            )

        function_call = function_calls[0]
        match await self.tool_manager.handle_tool_call(function_call):
            case Ok(response):
                self.send_tool_response(response)
            case Error(msg):
                logger.error(f"[TOOLS] Tool call failed: {msg}")
                self.send_tool_response(build_tool_error_response(function_call.get("id"), msg))

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    def send_tool_response(self, tool_response: Any) -> None:
        """Send `{"toolResponse": ...}` over the BIDI connection when one is attached."""
        message = build_tool_response_message(tool_response)
        if self._outbox is not None:
            self._outbox.put_nowait(message)
        else:
            logger.warning("[CLIENT] Tool response is not supported with REST API")
        self.log("client.toolResponse", message)

    def send_realtime_input(self, chunks: Any) -> None:
        """Validate and summarize realtime media chunks. Unsupported in SSE mode."""
        summary = describe_realtime_input(chunks)
        logger.debug(f"[CLIENT] Sending realtime input: {summary.label} ({summary.size_kb}KB)")
        if summary.rejected:
            logger.warning(f"[CLIENT] {summary.rejected} realtime input chunk(s) were invalid")
        logger.warning("[CLIENT] Realtime input is not supported with REST API")

    def cancel_turn(self) -> bool:
        """
        Abandon the in-flight SSE turn.

        Pending partial data is dropped and no further events are emitted for
        the turn. The send() call returns once the transport yields again or
        its task is cancelled.
        """
        if not self._turn_active:
            return False
        self._parser.cancel()
        logger.info("[CLIENT] Turn cancelled by caller")
        return True

    async def _raw_chunks(self, payload: dict[str, Any]) -> AsyncGenerator[bytes]:
        """Transport chunks, with any failure to obtain one reported as TransportError."""
        stream = self._transport.stream_chat(payload, self._api_key)
        async with contextlib.aclosing(stream) as chunks:
            try:
                async for chunk in chunks:
                    yield chunk
            except TransportError:
                raise
            except Exception as e:
                raise TransportError(None, f"Fetch error: {e!r}") from e

    async def send(self, parts: Any, turn_complete: bool = True) -> None:
        """
        Send one turn in SSE mode and emit a `content` event per text delta.

        Args:
            parts: str, Part mapping, other object, or a list of those
            turn_complete: Whether this message completes the user's turn

        Raises:
            NotConnectedError: connect() has not been called
            TurnInProgressError: a previous turn is still streaming

        Transport failures are not raised; they are emitted once as `error`.
        """
        if self.config is None:
            msg = "connect() must be called before send()"
            raise NotConnectedError(msg)
        if self._turn_active:
            msg = "A turn is already streaming; wait for it to finish or cancel_turn()"
            raise TurnInProgressError(msg)

        formatted_parts = normalize_parts(parts)
        payload = build_chat_completion_request(self.config, formatted_parts).to_payload()
        self._recorder.log_chunk(location="sse-request", direction="out", chunk=payload, mode="sse")

        self._turn_active = True
        self._parser.begin()
        delta_count = 0
        try:
            async with contextlib.aclosing(self._raw_chunks(payload)) as chunks:
                async for chunk in chunks:
                    if not self._parser.is_streaming:
                        break
                    self._recorder.log_chunk(
                        location="sse-raw-chunk", direction="in", chunk=chunk, mode="sse"
                    )
                    for event in self._parser.feed(chunk):
                        # A handler may have cancelled the turn
                        if not self._parser.is_streaming:
                            break
                        delta_count += 1
                        self._emit(event)
            if self._parser.is_streaming:
                self._parser.end()
        except TransportError as e:
            logger.error(f"[CLIENT] Failed to send message: {e} (status={e.status_code})")
            self._parser.cancel()
            self._emit(ErrorEvent(error=e))
        finally:
            if self._parser.is_streaming:
                self._parser.cancel()
            self._turn_active = False

        logger.info(f"[CLIENT] Turn finished with {delta_count} content deltas")
        self.log("client.send", {"content": formatted_parts, "turnComplete": turn_complete})
