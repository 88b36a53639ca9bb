"""
request.py

Construction of outbound requests.

Building a request is pure: nothing here touches the network. Resource
services build a request with ``build_request`` (usually through
``Client.new_request``) and hand it to the execution pipeline.

Classes:
- ListOptions: page/per_page options for paginated listings

Functions:
- build_request: resolve a path and serialize a body into an httpx.Request
- add_options: append list options to a path as query parameters
"""

import logging
from typing import Any, Optional

import httpx
from pydantic import BaseModel, Field
from pydantic_core import PydanticSerializationError, to_json

from .config import MEDIA_TYPE, ClientConfig
from .errors import EncodingError, MalformedURLError

logger = logging.getLogger(__name__)

# Retrieval-style methods never carry a body.
BODYLESS_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


class ListOptions(BaseModel):
    """Options for paginated result sets."""
    # Page of results to retrieve.
    page: int = Field(default=0, ge=0)
    # Number of results to include per page.
    per_page: int = Field(default=0, ge=0)


def add_options(path: str, opt: Optional[ListOptions]) -> str:
    """
    Add list options to a path as query parameters.

    Zero values are left out entirely, and parameters already present in the
    path's query string are kept.
    """
    if opt is None:
        return path
    params = {
        key: value
        for key, value in opt.model_dump().items()
        if value
    }
    if not params:
        return path
    try:
        return str(httpx.URL(path).copy_merge_params(params))
    except httpx.InvalidURL as e:
        raise MalformedURLError(f"cannot add options to {path!r}: {e}") from e


def _encode_body(body: Any) -> bytes:
    try:
        if isinstance(body, BaseModel):
            return body.model_dump_json(by_alias=True, exclude_none=True).encode()
        return to_json(body, by_alias=True, exclude_none=True)
    except (PydanticSerializationError, TypeError, ValueError) as e:
        raise EncodingError(
            f"cannot encode {type(body).__name__} request body: {e}"
        ) from e


def build_request(
    config: ClientConfig,
    method: str,
    path: str,
    body: Any = None,
) -> httpx.Request:
    """
    Create an API request.

    :param config: client configuration (base URL, user agent, headers)
    :param method: HTTP method
    :param path: path relative to the base URL, or an absolute URL
    :param body: value serialized to JSON as the request body; ignored for
        GET, HEAD and OPTIONS
    :return: request ready to be sent by the execution pipeline
    :raises MalformedURLError: if the path cannot be resolved
    :raises EncodingError: if the body cannot be serialized
    """
    method = method.upper()
    try:
        url = httpx.URL(config.base_url).join(path)
    except httpx.InvalidURL as e:
        raise MalformedURLError(f"cannot resolve {path!r}: {e}") from e

    headers = httpx.Headers(config.headers)
    content: Optional[bytes] = None
    if method in BODYLESS_METHODS:
        if body is not None:
            logger.debug(f"Ignoring body passed to {method} {url}")
    elif body is not None:
        content = _encode_body(body)
        headers["Content-Type"] = MEDIA_TYPE

    headers["Accept"] = MEDIA_TYPE
    headers["User-Agent"] = config.user_agent
    if config.token:
        headers["Authorization"] = f"Bearer {config.token}"

    return httpx.Request(
        method,
        url,
        headers=headers,
        content=content,
        extensions={"timeout": httpx.Timeout(config.timeout).as_dict()},
    )
