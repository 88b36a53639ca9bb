"""
response.py

Response envelope returned next to every decoded payload.

The envelope decorates the raw httpx response with the rate limit state the
server declared on it and, for list endpoints, the pagination metadata found
in the JSON body. It is built once per completed exchange and never changes.

Classes:
- Pages, LinkAction, Links, Meta: pagination metadata models
- Response: the envelope

Functions:
- new_response: build an envelope from a raw response and its body
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from .rate import Rate, parse_rate_headers

logger = logging.getLogger(__name__)


def _page_for_url(url: str) -> int:
    values = httpx.URL(url).params.get_list("page")
    if not values:
        raise ValueError(f"no page parameter in {url!r}")
    return int(values[0])


class Pages(BaseModel):
    first: Optional[str] = None
    prev: Optional[str] = None
    last: Optional[str] = None
    next: Optional[str] = None


class LinkAction(BaseModel):
    id: Optional[int] = None
    rel: Optional[str] = None
    href: Optional[str] = None


class Links(BaseModel):
    """Links to related pages of a paginated listing."""
    pages: Optional[Pages] = None
    actions: List[LinkAction] = []

    def current_page(self) -> int:
        """
        Page number of the listing this link set came from.

        Derived from the previous/next page URLs: no pages at all, or only a
        next page, means page 1.
        """
        p = self.pages
        if p is None or (not p.prev and p.next):
            return 1
        if p.prev:
            return _page_for_url(p.prev) + 1
        return 0

    def next_page(self) -> Optional[int]:
        if self.pages is None or not self.pages.next:
            return None
        return _page_for_url(self.pages.next)

    def is_last_page(self) -> bool:
        if self.pages is None:
            return True
        return not self.pages.last


class Meta(BaseModel):
    total: int = 0


class Response(BaseModel):
    """Raw response plus the rate and pagination state derived from it."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    http: httpx.Response
    rate: Rate = Rate()
    links: Optional[Links] = None
    meta: Optional[Meta] = None

    @property
    def status_code(self) -> int:
        return self.http.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self.http.headers

    @property
    def request(self) -> httpx.Request:
        return self.http.request


def _pagination_from_body(body: bytes) -> Dict[str, Any]:
    """Best-effort extraction of ``links``/``meta`` from a JSON object body."""
    if not body:
        return {}
    try:
        document = json.loads(body)
    except ValueError:
        return {}
    if not isinstance(document, dict):
        return {}

    out: Dict[str, Any] = {}
    for key, model in (("links", Links), ("meta", Meta)):
        if document.get(key) is None:
            continue
        try:
            out[key] = model.model_validate(document[key])
        except ValidationError as e:
            logger.debug(f"Ignoring malformed {key!r} in response body: {e}")
    return out


def new_response(
    raw: httpx.Response,
    body: bytes = b"",
    *,
    rate: Optional[Rate] = None,
) -> Response:
    """
    Wrap a raw response.

    :param raw: response received from (or synthesized for) the transport
    :param body: the already-read response body
    :param rate: rate state to attach; parsed from the headers when omitted,
        with absent or unparseable headers left at their zero value
    :return: immutable envelope
    """
    if rate is None:
        rate = Rate(**parse_rate_headers(raw.headers))
    pagination: Dict[str, Any] = {}
    if raw.is_success:
        pagination = _pagination_from_body(body)
    return Response(http=raw, rate=rate, **pagination)
