"""Shared test utilities for unit tests."""

from tests.utils.events import EventRecorder
from tests.utils.sse import sse_data_line, sse_delta_line, split_every

__all__ = ["EventRecorder", "split_every", "sse_data_line", "sse_delta_line"]
