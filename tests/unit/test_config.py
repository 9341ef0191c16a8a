"""
Client configuration tests.

ClientSettings (endpoint, credential, timeout) and SessionConfig
(per-session model configuration).
"""

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from live_stream_protocol.config import ClientSettings, SessionConfig


class TestClientSettings:
    def test_defaults(self) -> None:
        settings = ClientSettings()

        assert settings.api_base_url == "http://localhost:8000"
        assert settings.api_key is None
        assert settings.request_timeout == 60.0

    def test_chat_completions_url_strips_trailing_slash(self) -> None:
        settings = ClientSettings(api_base_url="https://example.test/")

        assert settings.chat_completions_url == "https://example.test/v1/chat/completions"

    def test_non_positive_timeout_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ClientSettings(request_timeout=0)

    def test_from_env(self) -> None:
        # given
        env = {
            "LIVE_API_BASE_URL": "https://proxy.example.test",
            "LIVE_API_KEY": "sk-env",
            "LIVE_REQUEST_TIMEOUT": "15",
        }

        # when
        with patch.dict(os.environ, env):
            settings = ClientSettings.from_env(env_file=None)

        # then
        assert settings.api_base_url == "https://proxy.example.test"
        assert settings.api_key == "sk-env"
        assert settings.request_timeout == 15.0

    def test_from_env_defaults(self) -> None:
        # given
        with patch.dict(os.environ, {}, clear=False):
            for name in ("LIVE_API_BASE_URL", "LIVE_API_KEY", "LIVE_REQUEST_TIMEOUT"):
                os.environ.pop(name, None)

            # when
            settings = ClientSettings.from_env(env_file=None)

        # then
        assert settings == ClientSettings()

    def test_from_env_loads_dotenv_file(self, tmp_path: Path) -> None:
        # given
        env_file = tmp_path / ".env.local"
        env_file.write_text("LIVE_API_KEY=sk-from-file\n")

        # when
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("LIVE_API_KEY", None)
            settings = ClientSettings.from_env(env_file=str(env_file))

        # then
        assert settings.api_key == "sk-from-file"


class TestSessionConfig:
    def test_wire_field_names(self) -> None:
        # when
        config = SessionConfig.model_validate(
            {
                "model": "gemini-2.0-flash-exp",
                "generationConfig": {"responseModalities": ["audio"]},
                "systemInstruction": {"parts": [{"text": "Speak slowly."}]},
            }
        )

        # then
        assert config.generation_config == {"responseModalities": ["audio"]}
        assert config.system_instruction_parts == [{"text": "Speak slowly."}]

    def test_to_wire_uses_aliases(self) -> None:
        config = SessionConfig(model="m", generation_config={"temperature": 0.5})

        assert config.to_wire() == {
            "model": "m",
            "generationConfig": {"temperature": 0.5},
            "tools": [],
        }

    def test_with_tools_prepends_declarations(self) -> None:
        # given
        config = SessionConfig(model="m", tools=[{"googleSearch": {}}])
        declarations = [{"functionDeclarations": [{"name": "f"}]}]

        # when
        updated = config.with_tools(declarations)

        # then
        assert updated.tools == [{"functionDeclarations": [{"name": "f"}]}, {"googleSearch": {}}]
        assert config.tools == [{"googleSearch": {}}]

    def test_is_frozen(self) -> None:
        config = SessionConfig(model="m")

        with pytest.raises(ValidationError):
            config.model = "other"  # type: ignore[misc]

    def test_no_system_instruction(self) -> None:
        assert SessionConfig(model="m").system_instruction_parts == []
