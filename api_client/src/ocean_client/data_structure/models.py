"""
models.py

Pydantic models for the payloads exchanged with the tags endpoints.
Field names follow the wire format; aliases are used where the API's names
are awkward in Python.

Classes:
- ResourceType: kinds of resources that can be tagged
- Resource: a reference to one taggable resource
- Tag: a tag and the resources carrying it
- TagCreateRequest, TagResourcesRequest, UntagResourcesRequest: request bodies
- TagsRoot, TagRoot: response body wrappers
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..response import Links, Meta


class ResourceType(str, Enum):
    DROPLET = "droplet"
    IMAGE = "image"
    VOLUME = "volume"
    VOLUME_SNAPSHOT = "volume_snapshot"
    DATABASE = "database"


class Resource(BaseModel):
    """
    Reference to a taggable resource, e.g.
    ``{"resource_id": "1234", "resource_type": "droplet"}``.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(default=None, alias="resource_id")
    type: Optional[ResourceType] = Field(default=None, alias="resource_type")


class Tag(BaseModel):
    name: Optional[str] = None
    resources: List[Resource] = []


class TagCreateRequest(BaseModel):
    name: str


class TagResourcesRequest(BaseModel):
    resources: List[Resource]


class UntagResourcesRequest(BaseModel):
    resources: List[Resource]


class TagsRoot(BaseModel):
    tags: List[Tag] = []
    links: Optional[Links] = None
    meta: Optional[Meta] = None


class TagRoot(BaseModel):
    tag: Tag
