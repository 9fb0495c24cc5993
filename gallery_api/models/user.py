"""
User and preference records (users.json, private_passwords.json).
"""
from typing import Literal, Optional

from pydantic import Field, field_validator

from gallery_api.models.base import Record

GallerySort = Literal["chronological_asc", "chronological_desc", "name_asc", "name_desc"]

DEFAULT_ITEMS_PER_PAGE = 26
# Page size meaning "everything on one page"
ALL_ITEMS_PER_PAGE = 999999


class UserPreferences(Record):
    """Behavioral preferences. Missing keys fall back to these defaults."""

    confirm_move_to_trash: bool = True
    confirm_move_to_private: bool = False
    default_gallery_sort: GallerySort = "chronological_desc"
    gallery_items_per_page: int = DEFAULT_ITEMS_PER_PAGE
    lightbox_video_autoplay: bool = True
    remember_last_section: bool = True
    language_preference: str = "es"
    camera_device_id: Optional[str] = None
    download_only_on_wifi: bool = True
    auto_update_offline_content: bool = False

    @field_validator("gallery_items_per_page", mode="before")
    @classmethod
    def coerce_items_per_page(cls, v):
        # 폼에서 문자열로 들어오는 경우가 있음
        if isinstance(v, bool):
            return DEFAULT_ITEMS_PER_PAGE
        try:
            value = int(str(v).strip())
        except (TypeError, ValueError):
            return DEFAULT_ITEMS_PER_PAGE
        return value if value > 0 else DEFAULT_ITEMS_PER_PAGE

    @field_validator("default_gallery_sort", mode="before")
    @classmethod
    def coerce_sort(cls, v):
        if v not in ("chronological_asc", "chronological_desc", "name_asc", "name_desc"):
            return "chronological_desc"
        return v


class User(Record):
    """
    Registered user.

    ``id`` is a decimal string assigned as max existing id + 1.
    ``password`` holds the hash; neither it nor the salt leaves the service.
    """

    id: str
    username: str
    email: str
    password: Optional[str] = None
    password_salt: Optional[str] = None
    name: str
    avatar_letter: str = ""
    preferences: UserPreferences = Field(default_factory=UserPreferences)


class PrivatePassword(Record):
    """Private folder password entry, keyed by user id in private_passwords.json."""

    hash: str
    salt: str
