"""
BIDI Channel (BIDI mode: already-open connection ↔ client)

Pumps both directions of an established bidirectional connection:

    inbound:  connection messages → MultimodalLiveClient.receive()
    outbound: client outbox (tool responses) → connection.send()

Any object that async-iterates inbound messages and has an async send()
works, e.g. a `websockets` client connection. Opening and authenticating
the connection is the caller's job.
"""

import asyncio
import contextlib
import json
from typing import TYPE_CHECKING, Any, NoReturn, Protocol

from loguru import logger

from ..chunk_logger import chunk_logger


if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from ..client import MultimodalLiveClient


NORMAL_CLOSURE = 1000


class BidiConnection(Protocol):
    def __aiter__(self) -> "AsyncIterator[bytes | str]": ...

    async def send(self, message: str) -> None: ...


class BidiChannel:
    """Runs one BIDI connection against one client until the connection ends."""

    def __init__(self, client: "MultimodalLiveClient", connection: BidiConnection) -> None:
        self._client = client
        self._connection = connection
        self._outbox: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        self.received_count = 0
        self.sent_count = 0

    async def run(self) -> None:
        """
        Pump messages until the inbound side is exhausted.

        Tool responses still queued when the inbound side ends are sent
        before `close` is emitted. A failure in either direction emits
        `error` (and no `close`) and propagates.
        """
        self._client.attach_outbox(self._outbox)
        inbound = asyncio.create_task(self._pump_inbound())
        outbound = asyncio.create_task(self._pump_outbox())
        try:
            await asyncio.wait({inbound, outbound}, return_when=asyncio.FIRST_COMPLETED)
            # The outbound pump only stops by failing
            if outbound.done():
                self._fail("send", outbound.exception())
            if (error := inbound.exception()) is not None:
                self._fail("receive", error)

            drained = asyncio.create_task(self._outbox.join())
            try:
                await asyncio.wait({drained, outbound}, return_when=asyncio.FIRST_COMPLETED)
            finally:
                await _stop(drained)
            if outbound.done():
                self._fail("send", outbound.exception())
        finally:
            await _stop(inbound)
            await _stop(outbound)
            self._client.detach_outbox()

        logger.info(
            f"[BIDI] Connection closed after {self.received_count} received, "
            f"{self.sent_count} sent"
        )
        self._client.handle_connection_closed(NORMAL_CLOSURE, "Connection closed")

    def _fail(self, direction: str, error: BaseException | None) -> NoReturn:
        if error is None:
            error = RuntimeError(f"{direction} pump stopped unexpectedly")
        logger.error(
            f"[BIDI] {direction} failed after {self.received_count} received, "
            f"{self.sent_count} sent: {error!r}"
        )
        self._client.handle_transport_error(error)
        raise error

    async def _pump_inbound(self) -> None:
        logger.info("[BIDI] Starting to receive messages")
        async for message in self._connection:
            self.received_count += 1
            await self._client.receive(message)

    async def _pump_outbox(self) -> None:
        while True:
            message = await self._outbox.get()
            chunk_logger.log_chunk(location="bidi-outbound", direction="out", chunk=message, mode="bidi")
            await self._connection.send(json.dumps(message))
            self.sent_count += 1
            # Left unfinished when send() fails
            self._outbox.task_done()


async def _stop(task: "asyncio.Task[Any]") -> None:
    if task.done():
        if not task.cancelled():
            # Mark any exception as retrieved
            task.exception()
        return
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task
