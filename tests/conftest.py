"""Pytest configuration and shared fixtures for tests."""

import pytest

from live_stream_protocol import ChunkLogger, ClientSettings, MultimodalLiveClient, SessionConfig
from tests.utils.events import EventRecorder
from tests.utils.mocks import FakeTransport


# ============================================================
# Configuration Fixtures
# ============================================================


@pytest.fixture
def settings() -> ClientSettings:
    return ClientSettings(api_base_url="https://models.example.test/", api_key="sk-test-0123456789")


@pytest.fixture
def session_config() -> SessionConfig:
    return SessionConfig.model_validate(
        {
            "model": "gemini-2.0-flash-exp",
            "generationConfig": {"responseModalities": ["text"]},
            "systemInstruction": {"parts": [{"text": "You are a helpful assistant."}]},
        }
    )


@pytest.fixture
def disabled_recorder() -> ChunkLogger:
    return ChunkLogger(enabled=False)


# ============================================================
# Client Fixtures
# ============================================================


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def client(
    settings: ClientSettings, transport: FakeTransport, disabled_recorder: ChunkLogger
) -> MultimodalLiveClient:
    return MultimodalLiveClient(settings=settings, transport=transport, recorder=disabled_recorder)


@pytest.fixture
def recorder(client: MultimodalLiveClient) -> EventRecorder:
    return EventRecorder(client.events)
