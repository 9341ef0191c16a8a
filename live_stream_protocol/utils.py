import base64
import binascii
import json
from collections.abc import Mapping
from typing import Any

from .result import Error, Ok, Result


# Log truncation threshold for base64 and long content fields
LOG_FIELD_TRUNCATE_THRESHOLD = 20


def _parse_json_safely(json_str: str) -> Result[Any, str]:
    """
    Safely parse JSON string, returning Result instead of raising.

    Args:
        json_str: JSON string to parse

    Returns:
        Ok(value) if parsing succeeds, Error(str) if parsing fails
    """
    try:  # nosemgrep: forbid-try-except
        return Ok(json.loads(json_str))
    except json.JSONDecodeError as e:
        return Error(f"JSON decode error: {e!s}")


def decode_record(message: bytes | bytearray | str | Mapping[str, Any]) -> Result[dict[str, Any], str]:
    """
    Decode one inbound BIDI message unit into a record.

    The unit is a binary blob holding UTF-8 JSON, the same JSON already decoded
    to text, or a mapping that was parsed upstream.

    Args:
        message: One message unit as delivered by the transport

    Returns:
        Ok(record) for a JSON object, Error(str) otherwise
    """
    if isinstance(message, Mapping):
        return Ok(dict(message))

    if isinstance(message, bytes | bytearray):
        try:  # nosemgrep: forbid-try-except
            text = bytes(message).decode("utf-8")
        except UnicodeDecodeError as e:
            return Error(f"UTF-8 decode error: {e!s}")
    else:
        text = message

    match _parse_json_safely(text):
        case Ok(value) if isinstance(value, dict):
            return Ok(value)
        case Ok(value):
            return Error(f"Expected JSON object, got {type(value).__name__}")
        case Error(msg):
            return Error(msg)


def base64_to_bytes(data: str | None) -> Result[bytes, str]:
    """
    Decode a base64 payload (inlineData.data) into raw bytes.

    Empty or missing payloads are reported as Error so callers can skip them.
    """
    if not data:
        return Error("Empty base64 payload")
    try:  # nosemgrep: forbid-try-except
        return Ok(base64.b64decode(data, validate=True))
    except (binascii.Error, ValueError) as e:
        return Error(f"Base64 decode error: {e!s}")


def truncate_for_log(value: Any) -> Any:
    """Return a copy of a record with long base64 `data` fields shortened for logging."""
    if isinstance(value, dict):
        truncated: dict[str, Any] = {}
        for key, item in value.items():
            if (
                key == "data"
                and isinstance(item, str)
                and len(item) > LOG_FIELD_TRUNCATE_THRESHOLD
            ):
                truncated[key] = f"{item[:LOG_FIELD_TRUNCATE_THRESHOLD]}... (truncated {len(item)} chars)"
            else:
                truncated[key] = truncate_for_log(item)
        return truncated
    if isinstance(value, list):
        return [truncate_for_log(item) for item in value]
    return value


def mask_api_key(api_key: str | None) -> str:
    """Show only the first 10 characters of a credential."""
    if not api_key:
        return "<none>"
    return f"{api_key[:10]}..."
