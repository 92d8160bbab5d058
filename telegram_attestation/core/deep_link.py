"""Telegram deep-link payloads carrying the pairing correlation data.

The ``/start`` parameter is ``base64(percent-encode("a=<device>&i=<prefix>"))``.
Telegram only accepts ``[A-Za-z0-9_-]`` (max 64 chars) there, so encoding uses
the URL-safe alphabet without padding. Decoding accepts either alphabet.
"""

from __future__ import annotations

import base64
import binascii
import re
from urllib.parse import parse_qsl, quote, unquote, urlencode

from telegram_attestation.domain.exceptions.domain_exceptions import PayloadDecodeError
from telegram_attestation.domain.models.attestation import StartPayload

TELEGRAM_BASE_URL = "https://t.me/"
SESSION_PREFIX_LENGTH = 4
MAX_START_PARAMETER_LENGTH = 64

# encodeURIComponent leaves these unescaped
_URI_COMPONENT_SAFE = "-_.!~*'()"
_MALFORMED_PERCENT_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def session_prefix(session_id: str | None) -> str:
    """Truncated session token embedded in deep links."""
    return (session_id or "")[:SESSION_PREFIX_LENGTH]


def encode_start_payload(device_address: str, session_token: str) -> str:
    query = urlencode({"a": device_address, "i": session_prefix(session_token)})
    encoded = quote(query, safe=_URI_COMPONENT_SAFE)
    raw = base64.urlsafe_b64encode(encoded.encode("utf-8")).decode("ascii")
    payload = raw.rstrip("=")
    if len(payload) > MAX_START_PARAMETER_LENGTH:
        msg = (
            f"start payload is {len(payload)} chars, "
            f"Telegram allows {MAX_START_PARAMETER_LENGTH}"
        )
        raise ValueError(msg)
    return payload


def decode_start_payload(payload: str) -> StartPayload:
    """Decode a ``/start`` parameter.

    Raises:
        PayloadDecodeError: the payload is not valid base64, UTF-8 or
            percent-encoding.
    """
    text = (payload or "").strip()
    if not text:
        raise PayloadDecodeError("Empty start payload")

    normalized = text.replace("-", "+").replace("_", "/")
    normalized += "=" * (-len(normalized) % 4)
    try:
        decoded = base64.b64decode(normalized, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
        raise PayloadDecodeError("Start payload is not valid base64", {"error": str(exc)}) from exc

    if _MALFORMED_PERCENT_RE.search(decoded):
        raise PayloadDecodeError("Start payload contains a malformed escape sequence")
    try:
        query = unquote(decoded, errors="strict")
    except UnicodeDecodeError as exc:
        raise PayloadDecodeError("Start payload is not valid UTF-8", {"error": str(exc)}) from exc

    params = dict(parse_qsl(query, keep_blank_values=True))
    return StartPayload(device_address=params.get("a"), session_id=params.get("i"))


def build_start_link(bot_username: str, payload: str) -> str:
    return f"{TELEGRAM_BASE_URL}{bot_username}?start={payload}"
