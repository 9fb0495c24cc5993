"""
Album-related Pydantic schemas for request/response validation.
"""
from typing import List

from pydantic import Field

from gallery_api.models.media import MediaItem
from gallery_api.schemas.base import ApiModel


class AlbumCreate(ApiModel):
    """Schema for album creation. The name is trimmed by the service."""

    name: str = Field(..., max_length=255)


class AlbumRename(ApiModel):
    name: str = Field(..., max_length=255)


class AlbumItemsAdd(ApiModel):
    """Schema for adding gallery items to an album."""

    item_ids: List[str] = Field(..., min_length=1)


class AlbumItemsAdded(ApiModel):
    success: bool = True
    added_count: int


class AlbumWithItems(ApiModel):
    """Album with its ids resolved against the owner's gallery."""

    id: str
    owner_user_id: str
    name: str
    item_ids: List[str]
    items: List[MediaItem]
