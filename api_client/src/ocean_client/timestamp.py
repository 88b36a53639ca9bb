"""
timestamp.py

Conversions between the API's wire representations of time and timezone-aware
datetimes. The API sends either Unix epoch integers (rate limit headers, some
payload fields) or RFC3339 strings (most payload fields).

Functions:
- from_unix / to_unix: epoch seconds <-> datetime
- parse_rfc3339 / format_rfc3339: RFC3339 string <-> datetime

Types:
- Timestamp: annotated datetime for pydantic models accepting both wire forms
"""

from datetime import datetime, timezone
from typing import Annotated, Any

from pydantic import BeforeValidator, PlainSerializer


def from_unix(seconds: int) -> datetime:
    """Convert epoch seconds to an aware UTC datetime."""
    if isinstance(seconds, bool) or not isinstance(seconds, int):
        raise TypeError(f"epoch seconds must be an int, got {seconds!r}")
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def to_unix(value: datetime) -> int:
    """Convert a datetime to epoch seconds. Naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp())


def parse_rfc3339(text: str) -> datetime:
    """
    Parse an RFC3339 timestamp such as ``2024-01-02T03:04:05Z``.

    :param text: timestamp string, must carry a UTC offset or ``Z``
    :return: aware datetime
    :raises ValueError: if the string is not RFC3339
    """
    text = text.strip()
    if text[-1:] in ("Z", "z"):
        text = text[:-1] + "+00:00"
    value = datetime.fromisoformat(text)
    if value.tzinfo is None:
        raise ValueError(f"RFC3339 timestamp needs an offset: {text!r}")
    return value


def format_rfc3339(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _coerce_timestamp(value: Any) -> Any:
    if isinstance(value, bool):
        raise ValueError("booleans are not timestamps")
    if isinstance(value, int):
        return from_unix(value)
    if isinstance(value, str):
        return parse_rfc3339(value)
    return value


Timestamp = Annotated[
    datetime,
    BeforeValidator(_coerce_timestamp),
    PlainSerializer(format_rfc3339, return_type=str),
]
