"""
Media (gallery / private folder / trash) request and response schemas.
"""
from typing import List, Optional

from pydantic import Field

from gallery_api.models.media import MediaItem, TrashItem
from gallery_api.schemas.base import ApiModel


class ItemIdsRequest(ApiModel):
    """Bulk operation on a selection of items."""

    item_ids: List[str] = Field(default_factory=list)


class MoveResult(ApiModel):
    """
    Outcome of moving items between gallery, private folder and trash.

    ``error`` is informational when ``success`` is true (e.g. nothing matched).
    """

    success: bool
    moved_count: int = 0
    error: Optional[str] = None


class DeleteResult(ApiModel):
    """Outcome of a permanent deletion."""

    success: bool
    deleted_count: int = 0
    error: Optional[str] = None
    errors: List[str] = Field(default_factory=list)


class UploadResult(ApiModel):
    """Items created by an upload plus the names of skipped files."""

    success: bool
    items: List[MediaItem] = Field(default_factory=list)
    skipped: List[str] = Field(default_factory=list)


class MediaGroup(ApiModel):
    """Items sharing one calendar date (YYYY-MM-DD, UTC)."""

    date: str
    items: List[MediaItem]


class MediaPage(ApiModel):
    """One page of an owner's gallery."""

    items: List[MediaItem]
    page: int
    per_page: int
    total_pages: int
    total_count: int
    groups: Optional[List[MediaGroup]] = None


class TrashGroup(ApiModel):
    date: str
    items: List[TrashItem]


class TrashList(ApiModel):
    """Trash contents, newest deletion first."""

    items: List[TrashItem]
    retention_days: int
    groups: Optional[List[TrashGroup]] = None
