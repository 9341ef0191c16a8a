"""
Client configuration.

Two layers:
    - ClientSettings: where the endpoint lives and how long to wait for it.
      Loaded from the environment (optionally from .env.local via python-dotenv).
    - SessionConfig: what the model should do for one connected session
      (model name, generation config, system instruction, tool declarations).
      Replaced wholesale on connect() and cleared on disconnect().

Environment Variables:
    LIVE_API_BASE_URL: Base URL of the endpoint (default: http://localhost:8000)
    LIVE_API_KEY: Bearer credential used when none is passed to connect()
    LIVE_REQUEST_TIMEOUT: Total request timeout in seconds (default: 60)
"""

from __future__ import annotations

import os
from typing import Any

from dotenv import load_dotenv
from loguru import logger
from pydantic import BaseModel, Field, field_validator


DEFAULT_API_BASE_URL = "http://localhost:8000"
DEFAULT_REQUEST_TIMEOUT = 60.0

CHAT_COMPLETIONS_PATH = "/v1/chat/completions"


class ClientSettings(BaseModel):
    """Endpoint settings shared by both protocol modes."""

    api_base_url: str = DEFAULT_API_BASE_URL
    api_key: str | None = None
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("request_timeout")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            msg = "request_timeout must be positive"
            raise ValueError(msg)
        return value

    @property
    def chat_completions_url(self) -> str:
        """SSE mode endpoint (OpenAI-compatible chat completions)."""
        return f"{self.api_base_url}{CHAT_COMPLETIONS_PATH}"

    @classmethod
    def from_env(cls, env_file: str | None = ".env.local") -> ClientSettings:
        """
        Build settings from environment variables.

        Args:
            env_file: dotenv file loaded first (missing files are ignored).
                Existing environment variables win over the file.
        """
        if env_file:
            loaded = load_dotenv(env_file)
            logger.debug(f"[CONFIG] load_dotenv({env_file!r}) -> {loaded}")

        return cls(
            api_base_url=os.getenv("LIVE_API_BASE_URL", DEFAULT_API_BASE_URL),
            api_key=os.getenv("LIVE_API_KEY") or None,
            request_timeout=float(os.getenv("LIVE_REQUEST_TIMEOUT", str(DEFAULT_REQUEST_TIMEOUT))),
        )


class SessionConfig(BaseModel):
    """
    Per-session model configuration.

    Accepts the wire (camelCase) field names as well as snake_case:

        SessionConfig.model_validate({
            "model": "gemini-2.0-flash-exp",
            "generationConfig": {"responseModalities": ["text"]},
            "systemInstruction": {"parts": [{"text": "You are helpful."}]},
        })
    """

    model_config = {"populate_by_name": True, "frozen": True}

    model: str
    generation_config: dict[str, Any] = Field(default_factory=dict, alias="generationConfig")
    system_instruction: dict[str, Any] | None = Field(default=None, alias="systemInstruction")
    tools: list[dict[str, Any]] = Field(default_factory=list)

    @property
    def system_instruction_parts(self) -> list[dict[str, Any]]:
        if not self.system_instruction:
            return []
        parts = self.system_instruction.get("parts") or []
        return [part for part in parts if isinstance(part, dict)]

    def with_tools(self, declarations: list[dict[str, Any]]) -> SessionConfig:
        """Return a copy whose tools are `declarations` followed by the configured tools."""
        return self.model_copy(update={"tools": [*declarations, *self.tools]})

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
