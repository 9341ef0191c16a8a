"""
Wire message types.

Pydantic models for the outbound messages the client builds:

- ChatMessage / ChatCompletionRequest: SSE mode request body
  (OpenAI-compatible chat completions with `stream: true`)
- RealtimeInputChunk: one media chunk handed to send_realtime_input()

Inbound records stay untyped dicts; the classifier and the stream parser only
look at the handful of keys they dispatch on.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator


class ChatMessage(BaseModel):
    """One message of a chat completion request."""

    role: Literal["system", "user", "assistant"]
    content: str


class ChatCompletionRequest(BaseModel):
    """Request body for POST /v1/chat/completions."""

    model: str
    messages: list[ChatMessage]
    stream: bool = True

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump()


class RealtimeInputChunk(BaseModel):
    """
    Media chunk for realtime input.

    Corresponds to: {"mimeType": "audio/pcm;rate=16000", "data": "<base64>"}
    """

    model_config = {"populate_by_name": True}

    mime_type: str = Field(alias="mimeType")
    data: str

    @field_validator("mime_type")
    @classmethod
    def validate_mime_type(cls, value: str) -> str:
        if "/" not in value:
            msg = f"Invalid MIME type: {value!r}"
            raise ValueError(msg)
        return value

    @property
    def is_audio(self) -> bool:
        return "audio" in self.mime_type

    @property
    def is_image(self) -> bool:
        return "image" in self.mime_type
