"""
Record models package.
All models are exported here for easy import.
"""
from gallery_api.models.base import Record, utc_now_iso, parse_timestamp
from gallery_api.models.user import (
    User,
    UserPreferences,
    PrivatePassword,
    ALL_ITEMS_PER_PAGE,
    DEFAULT_ITEMS_PER_PAGE,
)
from gallery_api.models.media import MediaItem, TrashItem
from gallery_api.models.album import Album
from gallery_api.models.share import SharedLink, UserSpecificShare
from gallery_api.models.session import ActiveSession

__all__ = [
    "Record",
    "utc_now_iso",
    "parse_timestamp",
    "User",
    "UserPreferences",
    "PrivatePassword",
    "ALL_ITEMS_PER_PAGE",
    "DEFAULT_ITEMS_PER_PAGE",
    "MediaItem",
    "TrashItem",
    "Album",
    "SharedLink",
    "UserSpecificShare",
    "ActiveSession",
]
