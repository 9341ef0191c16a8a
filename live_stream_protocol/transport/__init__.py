"""
Transport Layer

Thin adapters between the client and an already-chosen wire.

Components:
    - SseTransport: one HTTP request per turn, raw body chunks out (SSE mode)
    - BidiChannel: pumps an open bidirectional connection (BIDI mode)
"""

from .bidi_channel import BidiChannel, BidiConnection
from .sse_transport import SseTransport


__all__ = [
    "BidiChannel",
    "BidiConnection",
    "SseTransport",
]
