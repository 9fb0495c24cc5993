"""
Pydantic schemas package.
All schemas are exported here for easy import.
"""
from gallery_api.schemas.user import (
    UserCreate,
    UserLogin,
    UserResponse,
    UserSummary,
    ProfileUpdate,
    Token,
    TokenPayload,
)
from gallery_api.schemas.media import (
    ItemIdsRequest,
    MoveResult,
    DeleteResult,
    UploadResult,
    MediaGroup,
    MediaPage,
    TrashGroup,
    TrashList,
)
from gallery_api.schemas.album import (
    AlbumCreate,
    AlbumRename,
    AlbumItemsAdd,
    AlbumItemsAdded,
    AlbumWithItems,
)
from gallery_api.schemas.share import (
    ShareLinkCreate,
    ShareLinkResponse,
    SharedItemView,
    DirectShareCreate,
    DirectShareResponse,
)
from gallery_api.schemas.account import ImportResult

__all__ = [
    # User schemas
    "UserCreate",
    "UserLogin",
    "UserResponse",
    "UserSummary",
    "ProfileUpdate",
    "Token",
    "TokenPayload",
    # Media schemas
    "ItemIdsRequest",
    "MoveResult",
    "DeleteResult",
    "UploadResult",
    "MediaGroup",
    "MediaPage",
    "TrashGroup",
    "TrashList",
    # Album schemas
    "AlbumCreate",
    "AlbumRename",
    "AlbumItemsAdd",
    "AlbumItemsAdded",
    "AlbumWithItems",
    # Share schemas
    "ShareLinkCreate",
    "ShareLinkResponse",
    "SharedItemView",
    "DirectShareCreate",
    "DirectShareResponse",
    # Account schemas
    "ImportResult",
]
