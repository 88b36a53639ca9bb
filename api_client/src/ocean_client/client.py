"""
client.py

API client and its request execution pipeline.

BaseClient holds everything the synchronous and asynchronous clients share:
configuration, the rate state, request construction, the client-side rate
guard, and the handling of a completed exchange (envelope, rate update,
classification, decoding). Client runs the pipeline on an httpx.Client.

A client is safe to share between threads. The rate state is the only thing
calls have in common; requests, bodies and envelopes belong to one call.

    with Client(token="...") as client:
        tags, resp = client.tags.list(ListOptions(page=2))
        print(resp.rate.remaining)
"""

import logging
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Any, Optional, Tuple

import httpx
from pydantic import TypeAdapter, ValidationError

from .classifier import check_response
from .config import ClientConfig
from .context import Context
from .errors import DecodingError, RateLimitError, TransportError
from .rate import Rate, RateStore, parse_rate_headers
from .request import build_request
from .response import Response, new_response
from .services.tags import TagsServiceOp
from .timestamp import format_rfc3339

logger = logging.getLogger(__name__)


@lru_cache(maxsize=None)
def _adapter(into: Any) -> TypeAdapter:
    return TypeAdapter(into)


class BaseClient(ABC):
    """Shared core of the synchronous and asynchronous clients."""

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        base_url: Optional[str] = None,
        user_agent: Optional[str] = None,
        headers: Optional[dict] = None,
        token: Optional[str] = None,
    ):
        """
        :param config: base configuration, defaults to ClientConfig()
        :param base_url: override the API base URL
        :param user_agent: prepended to the library user agent
        :param headers: extra headers to set on every request
        :param token: bearer token sent as the Authorization header
        """
        config = config or ClientConfig()
        config = config.with_options(
            base_url=base_url, user_agent=user_agent, headers=headers
        )
        if token is not None:
            config = config.model_copy(update={"token": token})
        self.config = config
        self.rate_store = RateStore()

    @property
    def rate(self) -> Rate:
        """Rate limit state as of the most recently completed call."""
        return self.rate_store.snapshot()

    def new_request(self, method: str, path: str, body: Any = None) -> httpx.Request:
        """Build a request for ``path`` relative to the base URL."""
        return build_request(self.config, method, path, body)

    # ---------------- Pipeline stages ----------------

    def _check_rate_limit_before_do(self, request: httpx.Request) -> None:
        """
        Refuse to send while the cached quota is exhausted.

        Raises a RateLimitError around a synthesized 403 so callers see the
        same outcome they would get from the server, without a round trip.
        """
        rate = self.rate_store.snapshot()
        if not rate.is_exhausted():
            return
        logger.info(
            f"Not sending {request.method} {request.url}: rate limit of "
            f"{rate.limit} exhausted until {format_rfc3339(rate.reset)}"
        )
        raw = httpx.Response(403, request=request, content=b"")
        response = new_response(raw, rate=rate)
        raise RateLimitError(
            response,
            f"API rate limit of {rate.limit} still exceeded until "
            f"{format_rfc3339(rate.reset)}, not making remote request.",
        )

    def _check_context(self, request: httpx.Request, ctx: Context) -> None:
        if ctx.cancelled:
            raise TransportError.cancelled(request)
        if ctx.expired():
            raise TransportError.deadline_exceeded(request)
        remaining = ctx.remaining()
        if remaining is not None:
            # The deadline only tightens the configured timeouts.
            timeout = request.extensions.get("timeout") or httpx.Timeout(None).as_dict()
            request.extensions["timeout"] = {
                key: remaining if value is None else min(value, remaining)
                for key, value in timeout.items()
            }

    def _body_read_failed(self, raw: httpx.Response, exc: httpx.RequestError) -> bytes:
        """A payload we cannot read is a transport failure; an error body is optional."""
        if raw.is_success:
            raise TransportError.from_httpx(exc, raw.request) from exc
        logger.warning(
            f"Could not read {raw.status_code} response body from "
            f"{raw.request.method} {raw.request.url}: {exc}"
        )
        return b""

    def _complete(
        self, raw: httpx.Response, body: bytes, into: Any
    ) -> Tuple[Any, Response]:
        fields = parse_rate_headers(raw.headers)
        response = new_response(raw, body, rate=Rate(**fields))
        rate = self.rate_store.merge(fields)
        logger.debug(
            f"{raw.request.method} {raw.request.url} -> {raw.status_code} "
            f"(remaining={rate.remaining}/{rate.limit})"
        )

        error = check_response(response, body)
        if error is not None:
            raise error
        return self._decode(response, body, into), response

    def _decode(self, response: Response, body: bytes, into: Any) -> Any:
        if into is None or not body.strip():
            return None
        try:
            return _adapter(into).validate_json(body)
        except ValidationError as e:
            name = getattr(into, "__name__", repr(into))
            raise DecodingError(
                response, f"cannot decode response body into {name}: {e}"
            ) from e

    @abstractmethod
    def do(self, request: httpx.Request, into: Any = None, *, ctx: Optional[Context] = None):
        pass


class Client(BaseClient):
    """Synchronous API client."""

    def __init__(
        self,
        http_client: Optional[httpx.Client] = None,
        *,
        config: Optional[ClientConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
        **options: Any,
    ):
        """
        :param http_client: httpx client used to perform all requests; one is
            created (and closed with this client) when omitted
        :param config: base configuration
        :param transport: transport for the internally created httpx client
        :param options: base_url, user_agent, headers, token
        """
        super().__init__(config, **options)
        self._owns_http = http_client is None
        self._http = http_client or httpx.Client(transport=transport)

        # Services used for communicating with the API
        self.tags = TagsServiceOp(self)

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def do(
        self,
        request: httpx.Request,
        into: Any = None,
        *,
        ctx: Optional[Context] = None,
    ) -> Tuple[Any, Response]:
        """
        Send a request and decode the response.

        :param request: request built by ``new_request``
        :param into: type the success body is decoded into (a pydantic model,
            or anything ``pydantic.TypeAdapter`` accepts); None skips decoding
        :param ctx: cancellation/deadline for this call. A blocking send
            cannot be interrupted: cancellation is checked before sending and
            a response that arrives after it is discarded, while the deadline
            caps the transport timeouts. Use ``AsyncClient`` to abort a send
            that is in flight.
        :return: ``(payload, response)``; payload is None without ``into`` or
            for an empty body
        :raises RateLimitError: quota exhausted, locally or per the server
        :raises TransportError: the exchange did not complete
        :raises AcceptedError, ErrorResponse, DecodingError: see classifier
        """
        ctx = ctx or Context()
        self._check_rate_limit_before_do(request)
        self._check_context(request, ctx)

        try:
            raw = self._http.send(request, stream=True)
        except httpx.RequestError as e:
            raise TransportError.from_httpx(e, request) from e

        # The body is read in full and the response closed on every path so
        # the connection goes back to the pool.
        try:
            if ctx.cancelled:
                raise TransportError.cancelled(request)
            try:
                body = raw.read()
            except httpx.RequestError as e:
                body = self._body_read_failed(raw, e)
            return self._complete(raw, body, into)
        finally:
            raw.close()
