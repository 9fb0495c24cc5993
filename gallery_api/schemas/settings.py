"""
Settings page schemas: preferences, sessions, private folder password,
offline markers, storage usage.
"""
from typing import List, Literal, Optional, Union

from pydantic import Field

from gallery_api.schemas.base import ApiModel


class PreferencesUpdate(ApiModel):
    """Partial preference update. Unset fields keep their stored value."""

    confirm_move_to_trash: Optional[bool] = None
    confirm_move_to_private: Optional[bool] = None
    default_gallery_sort: Optional[
        Literal["chronological_asc", "chronological_desc", "name_asc", "name_desc"]
    ] = None
    # 문자열도 허용, 서비스에서 정수로 변환
    gallery_items_per_page: Optional[Union[int, str]] = None
    lightbox_video_autoplay: Optional[bool] = None
    remember_last_section: Optional[bool] = None
    language_preference: Optional[str] = Field(None, min_length=2, max_length=10)
    camera_device_id: Optional[str] = None
    download_only_on_wifi: Optional[bool] = None
    auto_update_offline_content: Optional[bool] = None


class LanguageUpdate(ApiModel):
    language: str = Field(..., min_length=2, max_length=10)


class SessionResponse(ApiModel):
    session_id: str
    device_info: str
    ip_address: Optional[str] = None
    login_timestamp: str
    last_active_timestamp: str
    is_current: bool = False


class SessionsRemoved(ApiModel):
    success: bool = True
    removed_count: int


class StorageUsage(ApiModel):
    size_bytes: int
    formatted: str


class ToggleResult(ApiModel):
    """New state of a favorite or offline marker."""

    item_id: str
    active: bool


class ItemIdList(ApiModel):
    item_ids: List[str]


class PrivatePasswordStatus(ApiModel):
    is_set: bool


class PrivatePasswordSet(ApiModel):
    password: str


class PrivatePasswordVerify(ApiModel):
    password: str


class PrivatePasswordChange(ApiModel):
    current_password: str
    new_password: str


class PrivateUnlock(ApiModel):
    """Token for the X-Private-Token header."""

    private_token: str
    expires_in: int
