"""Rotating QR tokens: base64("<session_id>:<unix minutes>").

The token only proves the scanner saw the lecturer's screen recently; it is
not signed.
"""

from __future__ import annotations

import base64
import binascii
from datetime import datetime
from typing import Union

from ..core.constants import QR_TOKEN_FUTURE_SKEW_MINUTES, QR_TOKEN_MAX_AGE_MINUTES
from ..core.exceptions import InvalidTokenError


def unix_minutes(at: datetime) -> int:
    return int(at.timestamp() // 60)


def encode_token(session_id: Union[int, str], issued_at: datetime) -> str:
    raw = f"{session_id}:{unix_minutes(issued_at)}"
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def decode_token(token: str) -> tuple[str, int]:
    try:
        decoded = base64.b64decode(token.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError):
        raise InvalidTokenError("Invalid QR code. Please scan the current code from the lecturer screen.")

    session_part, sep, minutes_part = decoded.rpartition(":")
    if not sep or not session_part or not minutes_part.isdigit():
        raise InvalidTokenError("Invalid QR code. Please scan the current code from the lecturer screen.")
    return session_part, int(minutes_part)


def validate_token(
    token: str,
    *,
    session_id: Union[int, str],
    now: datetime,
    max_age_minutes: int = QR_TOKEN_MAX_AGE_MINUTES,
    future_skew_minutes: int = QR_TOKEN_FUTURE_SKEW_MINUTES,
) -> int:
    """Check a token against the session and clock; returns its age in seconds."""

    token_session, minutes = decode_token(token)
    if token_session != str(session_id):
        raise InvalidTokenError("This QR code belongs to a different session.")

    age_seconds = int(now.timestamp() - minutes * 60)
    if age_seconds > max_age_minutes * 60:
        raise InvalidTokenError(
            f"QR code expired ({age_seconds}s old). Please scan the current QR code from the lecturer screen."
        )
    if age_seconds < -future_skew_minutes * 60:
        raise InvalidTokenError("QR code is not valid yet. Check the time on your device.")
    return age_seconds
