"""
aio.py

Asynchronous API client.

Runs the same pipeline as ``client.Client`` on an httpx.AsyncClient. The send
is started as its own task so that a Context can abort it while it is in
flight: cancelling the Context (from any thread) cancels the send task and the
call fails with a cancellation TransportError. Cancelling the calling task
itself is not converted and propagates as asyncio.CancelledError.
"""

import asyncio
import logging
from typing import Any, Optional, Tuple

import httpx

from .client import BaseClient
from .config import ClientConfig
from .context import Context
from .errors import TransportError
from .response import Response

logger = logging.getLogger(__name__)


class AsyncClient(BaseClient):
    """Asynchronous API client."""

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        *,
        config: Optional[ClientConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **options: Any,
    ):
        super().__init__(config, **options)
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(transport=transport)

    async def __aenter__(self) -> "AsyncClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def _send(self, request: httpx.Request, ctx: Context) -> httpx.Response:
        loop = asyncio.get_running_loop()
        task = asyncio.ensure_future(self._http.send(request, stream=True))
        remove = ctx.on_cancel(lambda: loop.call_soon_threadsafe(task.cancel))
        try:
            done, _ = await asyncio.wait({task}, timeout=ctx.remaining())
        finally:
            remove()
            if not task.done():
                task.cancel()
                await asyncio.wait({task})

        if not done:
            logger.debug(f"Deadline exceeded for {request.method} {request.url}")
            raise TransportError.deadline_exceeded(request)
        try:
            return task.result()
        except asyncio.CancelledError:
            if ctx.cancelled:
                raise TransportError.cancelled(request) from None
            raise
        except httpx.RequestError as e:
            raise TransportError.from_httpx(e, request) from e

    async def do(
        self,
        request: httpx.Request,
        into: Any = None,
        *,
        ctx: Optional[Context] = None,
    ) -> Tuple[Any, Response]:
        """Asynchronous counterpart of ``Client.do``."""
        ctx = ctx or Context()
        self._check_rate_limit_before_do(request)
        self._check_context(request, ctx)

        raw = await self._send(request, ctx)
        try:
            if ctx.cancelled:
                raise TransportError.cancelled(request)
            try:
                body = await raw.aread()
            except httpx.RequestError as e:
                body = self._body_read_failed(raw, e)
            return self._complete(raw, body, into)
        finally:
            await raw.aclose()
