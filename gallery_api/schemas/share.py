"""
Share link and direct share schemas.
"""
from typing import Optional

from pydantic import Field

from gallery_api.models.media import MediaItem
from gallery_api.schemas.base import ApiModel


class ShareLinkCreate(ApiModel):
    """Schema for creating a public link to a gallery item."""

    item_id: str


class ShareLinkResponse(ApiModel):
    """Public link, with its item when the item is still in the gallery."""

    share_id: str
    owner_user_id: str
    item_id: str
    creation_timestamp: str
    is_active: bool
    item: Optional[MediaItem] = None


class SharedItemView(ApiModel):
    """What an anonymous visitor of a share link sees."""

    share_id: str
    item: MediaItem
    owner_name: Optional[str] = None


class DirectShareCreate(ApiModel):
    """Schema for sharing an item with another user."""

    item_id: str
    target_user_id: str
    message: Optional[str] = Field(None, max_length=500)


class DirectShareResponse(ApiModel):
    share_instance_id: str
    owner_user_id: str
    item_id: str
    target_user_id: str
    share_timestamp: str
    message: Optional[str] = None
    status: str
    item: Optional[MediaItem] = None
    owner_name: Optional[str] = None
    target_name: Optional[str] = None
