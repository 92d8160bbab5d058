from __future__ import annotations

from typing import Any
from urllib.parse import urlparse


def _ensure_api_key(value: str, *, name: str) -> str:
    if not value:
        msg = f"{name} API key is required"
        raise ValueError(msg)
    value = value.strip()
    if not value:
        msg = f"{name} API key is required"
        raise ValueError(msg)
    if len(value) > 500:
        msg = f"{name} API key appears to be too long"
        raise ValueError(msg)
    if any(char in value for char in [" ", "\n", "\t"]):
        msg = f"{name} API key contains invalid characters"
        raise ValueError(msg)
    return value


def _validate_bot_token(value: Any) -> str:
    token = str(value or "").strip()
    if not token:
        return ""
    parts = token.split(":")
    if len(parts) != 2:
        msg = "Bot token format appears invalid"
        raise ValueError(msg)
    if not parts[0].isdigit():
        msg = "Bot token ID part appears invalid"
        raise ValueError(msg)
    if len(parts[1]) < 30:
        msg = "Bot token secret part appears too short"
        raise ValueError(msg)
    return token


def _validate_http_url(value: Any, *, name: str) -> str:
    """Accept an empty value or an absolute http(s) URL without trailing slash."""
    raw = str(value or "").strip()
    if not raw:
        return ""
    parsed = urlparse(raw)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        msg = f"{name} must be an absolute http(s) URL"
        raise ValueError(msg)
    return raw.rstrip("/")


def _parse_bool(value: Any, *, default: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    if value in (None, ""):
        return default
    lowered = str(value).strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    msg = f"Invalid boolean value: {value}"
    raise ValueError(msg)
