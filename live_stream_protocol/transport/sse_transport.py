"""
SSE Transport (SSE mode: one HTTP request per turn)

POSTs the chat completion request and yields the response body as raw byte
chunks, exactly as the network delivers them. Framing is left to
SseStreamParser.

Failures surface as TransportError:
- non-2xx status: message taken from the JSON error body when present
- aiohttp.ClientError / timeouts: wrapped with status_code=None
"""

import json
from collections.abc import AsyncGenerator
from typing import Any

import aiohttp
from loguru import logger

from ..config import ClientSettings
from ..errors import TransportError
from ..utils import mask_api_key


def _extract_error_message(status: int, raw: bytes) -> str:
    """Prefer `error.message` from a JSON body, fall back to the raw text."""
    text = raw.decode("utf-8", errors="replace")
    try:  # nosemgrep: forbid-try-except
        payload = json.loads(text)
    except json.JSONDecodeError:
        logger.error(f"[SSE] Error parsing error response, raw body: {text!r}")
        return f"Failed to send message: {status} {text}"

    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return "Failed to send message"


class SseTransport:
    """Streams chat completion bodies from the configured endpoint."""

    def __init__(
        self,
        settings: ClientSettings,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """
        Args:
            settings: Endpoint settings
            session: Shared aiohttp session. When omitted, one is created lazily
                and closed by aclose().
        """
        self._settings = settings
        self._session = session
        self._owns_session = session is None

    @property
    def url(self) -> str:
        return self._settings.chat_completions_url

    def _headers(self, api_key: str | None) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "text/event-stream",
        }
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        return headers

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self._settings.request_timeout)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._owns_session = True
        return self._session

    async def stream_chat(
        self, payload: dict[str, Any], api_key: str | None
    ) -> AsyncGenerator[bytes]:
        """
        Send one request and yield raw body chunks.

        Closing the generator early releases the response.
        """
        session = self._get_session()
        logger.info(f"[SSE] Sending request to: {self.url} (key={mask_api_key(api_key)})")

        try:
            async with session.post(self.url, headers=self._headers(api_key), json=payload) as response:
                logger.info(f"[SSE] Response status: {response.status}")
                if not 200 <= response.status < 300:
                    body = await response.read()
                    raise TransportError(response.status, _extract_error_message(response.status, body))

                async for chunk in response.content.iter_any():
                    if chunk:
                        yield chunk
                logger.debug("[SSE] Streaming done")
        except aiohttp.ClientError as exc:
            raise TransportError(None, f"Fetch error: {exc}") from exc
        except TimeoutError as exc:
            raise TransportError(None, "Request timed out") from exc

    async def aclose(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
