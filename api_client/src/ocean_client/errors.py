"""
errors.py

Error taxonomy of the client core.

Every error raised by the core derives from ClientError and carries a ``kind``
tag so callers can branch on the outcome without isinstance chains:

    try:
        tags, resp = client.tags.list()
    except ClientError as e:
        if e.kind is ErrorKind.RATE_LIMITED:
            time.sleep(e.retry_after().total_seconds())

Build-time errors (MalformedURLError, EncodingError) and TransportError carry
no response. Everything derived from a real or synthesized response is an
APIError and carries the response envelope, so rate and pagination state stay
inspectable on failure.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import TYPE_CHECKING, Optional

import httpx

if TYPE_CHECKING:
    from .response import Response


class ErrorKind(str, Enum):
    MALFORMED_URL = "malformed_url"
    ENCODING = "encoding"
    TRANSPORT = "transport"
    DECODING = "decoding"
    ACCEPTED = "accepted"
    RATE_LIMITED = "rate_limited"
    GENERIC = "generic"


class TransportFailure(str, Enum):
    CONNECTION = "connection"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


class ClientError(Exception):
    """Base class of every error raised by the client core."""
    kind: ErrorKind

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class MalformedURLError(ClientError):
    """The request path could not be resolved against the base URL."""
    kind = ErrorKind.MALFORMED_URL


class EncodingError(ClientError):
    """The request body could not be serialized to JSON."""
    kind = ErrorKind.ENCODING


class TransportError(ClientError):
    """The exchange never completed: connection failure, timeout or cancellation."""
    kind = ErrorKind.TRANSPORT

    def __init__(
        self,
        message: str,
        *,
        reason: TransportFailure,
        request: Optional[httpx.Request] = None,
    ):
        super().__init__(message)
        self.reason = reason
        self.request = request

    def __str__(self) -> str:
        if self.request is None:
            return f"{self.reason.value}: {self.message}"
        return (
            f"{self.request.method} {self.request.url}: "
            f"{self.reason.value}: {self.message}"
        )

    @classmethod
    def from_httpx(
        cls, exc: httpx.RequestError, request: httpx.Request
    ) -> "TransportError":
        """Map an httpx request exception onto a TransportError."""
        if isinstance(exc, httpx.TimeoutException):
            reason = TransportFailure.TIMEOUT
        else:
            reason = TransportFailure.CONNECTION
        return cls(str(exc) or type(exc).__name__, reason=reason, request=request)

    @classmethod
    def cancelled(cls, request: httpx.Request) -> "TransportError":
        return cls(
            "request cancelled", reason=TransportFailure.CANCELLED, request=request
        )

    @classmethod
    def deadline_exceeded(cls, request: httpx.Request) -> "TransportError":
        return cls(
            "deadline exceeded", reason=TransportFailure.TIMEOUT, request=request
        )


class APIError(ClientError):
    """Base class of errors derived from a (possibly synthesized) response."""

    def __init__(self, response: "Response", message: str = ""):
        super().__init__(message)
        self.response = response

    @property
    def status_code(self) -> int:
        return self.response.status_code

    def _prefix(self) -> str:
        request = self.response.http.request
        return f"{request.method} {request.url}: {self.status_code}"

    def __str__(self) -> str:
        if self.message:
            return f"{self._prefix()} {self.message}"
        return self._prefix()


class DecodingError(APIError):
    """A success body did not match the expected payload shape."""
    kind = ErrorKind.DECODING


class AcceptedError(APIError):
    """
    The API accepted the request for later processing (202).

    Neither a success nor a failure: the work has been queued and its result
    is not in this response.
    """
    kind = ErrorKind.ACCEPTED


class ErrorResponse(APIError):
    """Any other non-2xx response."""
    kind = ErrorKind.GENERIC

    def __init__(
        self,
        response: "Response",
        message: str = "",
        *,
        error_id: str = "",
        request_id: str = "",
    ):
        super().__init__(response, message)
        self.error_id = error_id
        self.request_id = request_id

    def __str__(self) -> str:
        out = self._prefix()
        if self.request_id:
            out += f' (request "{self.request_id}")'
        if self.message:
            out += f" {self.message}"
        return out


def _format_rate_reset(delta: timedelta) -> str:
    seconds = int(delta.total_seconds())
    ago = seconds < 0
    seconds = abs(seconds)
    minutes, seconds = divmod(seconds, 60)
    if minutes:
        span = f"{minutes}m{seconds:02d}s"
    else:
        span = f"{seconds}s"
    if ago:
        return f"[rate limit was reset {span} ago]"
    return f"[rate reset in {span}]"


class RateLimitError(APIError):
    """The API quota is exhausted (403 with no remaining requests)."""
    kind = ErrorKind.RATE_LIMITED

    @property
    def rate(self):
        return self.response.rate

    def retry_after(self, now: Optional[datetime] = None) -> timedelta:
        """Time left until the quota resets; zero if unknown or already past."""
        if self.rate.reset is None:
            return timedelta(0)
        now = now or datetime.now(timezone.utc)
        return max(self.rate.reset - now, timedelta(0))

    def __str__(self) -> str:
        out = super().__str__()
        if self.rate.reset is not None:
            delta = self.rate.reset - datetime.now(timezone.utc)
            out += f" {_format_rate_reset(delta)}"
        return out
