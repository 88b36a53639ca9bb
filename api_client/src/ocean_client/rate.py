"""
rate.py

Server-declared rate limit state.

The API reports its quota on every response through three headers. The client
keeps the most recently observed values in a RateStore so that it can refuse
to send requests while the quota is known to be exhausted. A RateStore is owned
by exactly one client and may be read and written by many threads at once;
all access goes through a single lock, and the stored Rate is immutable so a
snapshot can never be observed half-updated.

Classes:
- Rate: the (limit, remaining, reset) triple
- RateStore: lock-guarded holder of the current Rate for one client

Functions:
- parse_rate_headers: best-effort extraction of Rate fields from headers
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from .timestamp import Timestamp, from_unix

logger = logging.getLogger(__name__)

HEADER_RATE_LIMIT = "RateLimit-Limit"
HEADER_RATE_REMAINING = "RateLimit-Remaining"
HEADER_RATE_RESET = "RateLimit-Reset"


class Rate(BaseModel):
    """
    Rate limit for the current client.

    The zero value (``Rate()``) means no rate information has been observed
    yet and never throttles.
    """
    model_config = ConfigDict(frozen=True)

    # The number of requests per hour the client is currently limited to.
    limit: int = Field(default=0, ge=0)
    # The number of remaining requests the client can make this hour.
    remaining: int = Field(default=0, ge=0)
    # The time at which the current rate limit will reset.
    reset: Optional[Timestamp] = None

    def is_exhausted(self, now: Optional[datetime] = None) -> bool:
        """True when the quota is used up and the reset time is still ahead."""
        if self.remaining != 0 or self.reset is None:
            return False
        now = now or datetime.now(timezone.utc)
        return now < self.reset


def _parse_count(headers: Mapping[str, str], name: str) -> Optional[int]:
    raw = headers.get(name)
    if raw is None:
        return None
    try:
        value = int(raw.strip())
    except ValueError:
        logger.warning(f"Ignoring unparseable {name} header: {raw!r}")
        return None
    if value < 0:
        logger.warning(f"Ignoring negative {name} header: {raw!r}")
        return None
    return value


def parse_rate_headers(headers: Mapping[str, str]) -> Dict[str, Any]:
    """
    Parse the rate limit headers of a response.

    Only headers that are present and parse cleanly contribute a field;
    everything else is left out so callers can keep their previous value
    (or the zero value).

    :param headers: response headers (case-insensitive mapping)
    :return: dict with any of the keys ``limit``, ``remaining``, ``reset``
    """
    fields: Dict[str, Any] = {}

    limit = _parse_count(headers, HEADER_RATE_LIMIT)
    if limit is not None:
        fields["limit"] = limit

    remaining = _parse_count(headers, HEADER_RATE_REMAINING)
    if remaining is not None:
        fields["remaining"] = remaining

    reset = headers.get(HEADER_RATE_RESET)
    if reset is not None:
        try:
            fields["reset"] = from_unix(int(reset.strip()))
        except (ValueError, OverflowError, OSError):
            logger.warning(
                f"Ignoring unparseable {HEADER_RATE_RESET} header: {reset!r}"
            )

    return fields


class RateStore:
    """
    Holds the current Rate of one client.

    Updates are last-write-wins in completion order; no attempt is made to
    match a response back to the order in which requests were sent.
    """

    def __init__(self, rate: Optional[Rate] = None):
        self._lock = threading.Lock()
        self._rate = rate or Rate()

    def snapshot(self) -> Rate:
        with self._lock:
            return self._rate

    def update(self, rate: Rate) -> None:
        """Replace the stored Rate."""
        with self._lock:
            self._rate = rate

    def merge(self, fields: Dict[str, Any]) -> Rate:
        """
        Overwrite only the given fields of the stored Rate, atomically.

        :param fields: output of ``parse_rate_headers``
        :return: the Rate now stored
        """
        with self._lock:
            if fields:
                self._rate = self._rate.model_copy(update=fields)
            return self._rate
