"""
tags.py

Tags resource service.

Thin layer over the client core: each method builds a request, runs it
through the client's execution pipeline and unwraps the response body. All
rate limiting, classification and decoding happens in the core.

Classes:
- TagsService: interface of the tags endpoints
- TagsServiceOp: implementation bound to a client
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple
from urllib.parse import quote

from ..context import Context
from ..data_structure.models import (
    Resource,
    Tag,
    TagCreateRequest,
    TagResourcesRequest,
    TagRoot,
    TagsRoot,
    UntagResourcesRequest,
)
from ..request import ListOptions, add_options
from ..response import Response

if TYPE_CHECKING:
    from ..client import Client

TAGS_BASE_PATH = "v2/tags"


def _tag_path(name: str, *parts: str) -> str:
    if not name:
        raise ValueError("tag name must not be empty")
    return "/".join([TAGS_BASE_PATH, quote(name, safe=""), *parts])


class TagsService(ABC):
    """Interface for the tags endpoints of the API."""

    @abstractmethod
    def list(
        self, opt: Optional[ListOptions] = None, *, ctx: Optional[Context] = None
    ) -> Tuple[List[Tag], Response]:
        pass

    @abstractmethod
    def get(
        self, name: str, *, ctx: Optional[Context] = None
    ) -> Tuple[Optional[Tag], Response]:
        pass

    @abstractmethod
    def create(
        self, name: str, *, ctx: Optional[Context] = None
    ) -> Tuple[Optional[Tag], Response]:
        pass

    @abstractmethod
    def delete(self, name: str, *, ctx: Optional[Context] = None) -> Response:
        pass

    @abstractmethod
    def tag_resources(
        self, name: str, resources: Sequence[Resource], *, ctx: Optional[Context] = None
    ) -> Response:
        pass

    @abstractmethod
    def untag_resources(
        self, name: str, resources: Sequence[Resource], *, ctx: Optional[Context] = None
    ) -> Response:
        pass


class TagsServiceOp(TagsService):
    """Handles communication with the tag related methods of the API."""

    def __init__(self, client: "Client"):
        self.client = client

    def list(
        self, opt: Optional[ListOptions] = None, *, ctx: Optional[Context] = None
    ) -> Tuple[List[Tag], Response]:
        """List all tags; pagination state is available on the response."""
        path = add_options(TAGS_BASE_PATH, opt)
        req = self.client.new_request("GET", path)
        root, resp = self.client.do(req, TagsRoot, ctx=ctx)
        return (root.tags if root else []), resp

    def get(
        self, name: str, *, ctx: Optional[Context] = None
    ) -> Tuple[Optional[Tag], Response]:
        req = self.client.new_request("GET", _tag_path(name))
        root, resp = self.client.do(req, TagRoot, ctx=ctx)
        return (root.tag if root else None), resp

    def create(
        self, name: str, *, ctx: Optional[Context] = None
    ) -> Tuple[Optional[Tag], Response]:
        if not name:
            raise ValueError("tag name must not be empty")
        req = self.client.new_request(
            "POST", TAGS_BASE_PATH, TagCreateRequest(name=name)
        )
        root, resp = self.client.do(req, TagRoot, ctx=ctx)
        return (root.tag if root else None), resp

    def delete(self, name: str, *, ctx: Optional[Context] = None) -> Response:
        req = self.client.new_request("DELETE", _tag_path(name))
        _, resp = self.client.do(req, ctx=ctx)
        return resp

    def tag_resources(
        self, name: str, resources: Sequence[Resource], *, ctx: Optional[Context] = None
    ) -> Response:
        """Associate resources with an existing tag."""
        body = TagResourcesRequest(resources=list(resources))
        req = self.client.new_request("POST", _tag_path(name, "resources"), body)
        _, resp = self.client.do(req, ctx=ctx)
        return resp

    def untag_resources(
        self, name: str, resources: Sequence[Resource], *, ctx: Optional[Context] = None
    ) -> Response:
        """Dissociate resources from a tag."""
        body = UntagResourcesRequest(resources=list(resources))
        req = self.client.new_request("DELETE", _tag_path(name, "resources"), body)
        _, resp = self.client.do(req, ctx=ctx)
        return resp
