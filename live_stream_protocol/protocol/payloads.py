"""
Outbound payload construction.

- normalize_parts(): caller input → ordered list of Parts
- build_chat_completion_request(): Parts + SessionConfig → SSE mode request body
- build_tool_response_message() / build_tool_error_response(): tool response envelopes
- describe_realtime_input(): validation summary for realtime media chunks
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from loguru import logger
from pydantic import BaseModel, ValidationError

from ..config import SessionConfig
from .message_types import ChatCompletionRequest, ChatMessage, RealtimeInputChunk


def _is_part(value: Mapping[str, Any]) -> bool:
    return bool(value.get("text")) or bool(value.get("inlineData"))


def _normalize_part(part: Any) -> dict[str, Any]:
    if isinstance(part, str):
        return {"text": part}
    if isinstance(part, BaseModel):
        part = part.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(part, Mapping):
        if _is_part(part):
            return dict(part)
        return {"text": json.dumps(part, ensure_ascii=False, default=str)}
    return {"text": json.dumps(part, ensure_ascii=False, default=str)}


def normalize_parts(parts: Any) -> list[dict[str, Any]]:
    """
    Normalize caller input into an ordered list of Parts.

    Args:
        parts: A single part or a list of parts. Each item may be
            a string ({"text": ...}), a mapping with non-empty `text` or
            `inlineData` (kept as is),
            or any other JSON-serializable object ({"text": <JSON>}).
    """
    items = parts if isinstance(parts, list | tuple) else [parts]
    return [_normalize_part(part) for part in items]


def flatten_text(parts: Sequence[Mapping[str, Any]]) -> str:
    """Join the text of text-bearing parts with single spaces."""
    texts = [part["text"] for part in parts if isinstance(part.get("text"), str)]
    skipped = len(parts) - len(texts)
    if skipped:
        logger.debug(f"[PAYLOAD] {skipped} non-text part(s) omitted from chat completion text")
    return " ".join(texts)


def system_instruction_text(config: SessionConfig) -> str | None:
    """Text of the first system instruction part (later parts are not sent)."""
    instruction_parts = config.system_instruction_parts
    if not instruction_parts:
        return None
    if len(instruction_parts) > 1:
        logger.warning(
            f"[PAYLOAD] System instruction has {len(instruction_parts)} parts; "
            "only the first is sent in SSE mode"
        )
    text = instruction_parts[0].get("text")
    return text if isinstance(text, str) else None


def build_chat_completion_request(
    config: SessionConfig, parts: Sequence[Mapping[str, Any]]
) -> ChatCompletionRequest:
    """
    Build the SSE mode request body for one turn.

    Produces a system message from the session's system instruction (when it
    has text) followed by one user message carrying the flattened part text.
    """
    messages: list[ChatMessage] = []
    system_text = system_instruction_text(config)
    if system_text is not None:
        messages.append(ChatMessage(role="system", content=system_text))
    messages.append(ChatMessage(role="user", content=flatten_text(parts)))

    return ChatCompletionRequest(model=config.model, messages=messages, stream=True)


def build_tool_response_message(response: Any) -> dict[str, Any]:
    """Wrap a tool response as {"toolResponse": ...}."""
    if isinstance(response, BaseModel):
        response = response.model_dump(mode="json", by_alias=True, exclude_none=True)
    return {"toolResponse": response}


def build_tool_error_response(call_id: str | None, message: str) -> dict[str, Any]:
    """Tool response reporting a failed call, correlated by function call id."""
    return {
        "functionResponses": [
            {
                "response": {"error": message},
                "id": call_id,
            }
        ]
    }


@dataclass(frozen=True)
class RealtimeInputSummary:
    """What a batch of realtime input chunks contains."""

    audio_chunks: int = 0
    image_chunks: int = 0
    total_size: int = 0
    rejected: int = 0

    @property
    def has_audio(self) -> bool:
        return self.audio_chunks > 0

    @property
    def has_video(self) -> bool:
        return self.image_chunks > 0

    @property
    def label(self) -> str:
        if self.has_audio and self.has_video:
            return "audio + video"
        if self.has_audio:
            return "audio"
        if self.has_video:
            return "video"
        return "unknown"

    @property
    def size_kb(self) -> int:
        return round(self.total_size / 1024)


def describe_realtime_input(chunks: Any) -> RealtimeInputSummary:
    """
    Validate and summarize realtime input chunks. Never raises.

    Invalid chunks (wrong shape, missing fields, bad MIME type) are counted
    in `rejected` and otherwise ignored.
    """
    if chunks is None:
        return RealtimeInputSummary()
    items = chunks if isinstance(chunks, list | tuple) else [chunks]

    audio_chunks = image_chunks = total_size = rejected = 0
    for item in items:
        try:  # nosemgrep: forbid-try-except
            chunk = (
                item
                if isinstance(item, RealtimeInputChunk)
                else RealtimeInputChunk.model_validate(item)
            )
        except ValidationError as e:
            rejected += 1
            logger.warning(f"[PAYLOAD] Rejected realtime input chunk: {e.error_count()} error(s)")
            continue

        total_size += len(chunk.data)
        if chunk.is_audio:
            audio_chunks += 1
        if chunk.is_image:
            image_chunks += 1

    return RealtimeInputSummary(
        audio_chunks=audio_chunks,
        image_chunks=image_chunks,
        total_size=total_size,
        rejected=rejected,
    )
