"""SSE (Server-Sent Events) test utilities.

Builders for chat-completion event streams and helpers to cut them
into arbitrary chunks.
"""

import json
from typing import Any


def sse_data_line(payload: dict[str, Any] | str) -> str:
    """Format one `data: ...` line (terminated by a newline)."""
    data = payload if isinstance(payload, str) else json.dumps(payload, ensure_ascii=False)
    return f"data: {data}\n"


def sse_delta_line(content: str) -> str:
    """Chat-completion chunk line carrying one text delta."""
    return sse_data_line({"choices": [{"delta": {"content": content}}]})


def split_every(data: bytes, size: int) -> list[bytes]:
    """Cut `data` into chunks of `size` bytes (last chunk may be shorter)."""
    return [data[i : i + size] for i in range(0, len(data), size)]


def split_at(data: bytes, *offsets: int) -> list[bytes]:
    """Cut `data` at the given byte offsets."""
    bounds = [0, *offsets, len(data)]
    return [data[start:end] for start, end in zip(bounds, bounds[1:], strict=False)]
