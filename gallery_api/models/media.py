"""
Media item records (gallery.json, private_folder.json, trash.json).
"""
from typing import Literal

from gallery_api.models.base import Record

MediaType = Literal["image", "video"]


class MediaItem(Record):
    """An uploaded photo or video owned by one user."""

    id: str
    owner_user_id: str
    original_filename: str
    filename: str
    file_path: str
    upload_timestamp: str
    type: MediaType
    adult_content: bool = False


class TrashItem(MediaItem):
    """A media item waiting in the trash."""

    deletion_timestamp: str
