"""
Private folder router.

Password management only needs the login token; listing, serving and
moving private items also need the X-Private-Token from /private/unlock.
"""
from typing import List

from fastapi import APIRouter, Depends, status
from fastapi.responses import FileResponse

from gallery_api.config import get_settings
from gallery_api.dependencies.auth import get_current_user, require_private_access
from gallery_api.exceptions import NotFoundError
from gallery_api.models.media import MediaItem
from gallery_api.models.user import User
from gallery_api.routers.gallery import media_file_response
from gallery_api.schemas.media import ItemIdsRequest, MoveResult
from gallery_api.schemas.settings import (
    PrivatePasswordChange,
    PrivatePasswordSet,
    PrivatePasswordStatus,
    PrivatePasswordVerify,
    PrivateUnlock,
)
from gallery_api.services.media_files import MediaFileStorage
from gallery_api.services.private_folder import PrivateFolderService
from gallery_api.store import JsonDocumentStore, get_store

router = APIRouter(prefix="/private", tags=["Private Folder"])


# ============== Password ==============

@router.get(
    "/password",
    response_model=PrivatePasswordStatus,
    summary="Check whether a private folder password is set",
)
async def password_status(
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> PrivatePasswordStatus:
    is_set = await PrivateFolderService(store).is_password_set(current_user.id)
    return PrivatePasswordStatus(is_set=is_set)


@router.post(
    "/password",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Set the private folder password",
)
async def set_password(
    body: PrivatePasswordSet,
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> None:
    await PrivateFolderService(store).set_password(current_user.id, body.password)


@router.post(
    "/password/verify",
    summary="Verify the private folder password",
)
async def verify_password(
    body: PrivatePasswordVerify,
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> dict:
    valid = await PrivateFolderService(store).verify_password(current_user.id, body.password)
    return {"valid": valid}


@router.put(
    "/password",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Change the private folder password",
)
async def change_password(
    body: PrivatePasswordChange,
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> None:
    await PrivateFolderService(store).change_password(
        current_user.id, body.current_password, body.new_password
    )


@router.post(
    "/password/remove",
    response_model=MoveResult,
    summary="Remove the private folder password",
)
async def remove_password(
    body: PrivatePasswordVerify,
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> MoveResult:
    """
    Remove the password. Every private item goes back to the gallery.
    """
    return await PrivateFolderService(store).remove_password(current_user.id, body.password)


@router.post(
    "/unlock",
    response_model=PrivateUnlock,
    summary="Unlock the private folder",
)
async def unlock(
    body: PrivatePasswordVerify,
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> PrivateUnlock:
    """
    Exchange the folder password for a short-lived token.

    Send the token in the `X-Private-Token` header on /private/items requests.
    """
    token = await PrivateFolderService(store).unlock(current_user.id, body.password)
    return PrivateUnlock(
        private_token=token,
        expires_in=get_settings().private_token_expire_seconds,
    )


# ============== Items ==============

@router.get(
    "/items",
    response_model=List[MediaItem],
    summary="List private items",
)
async def list_items(
    current_user: User = Depends(require_private_access),
    store: JsonDocumentStore = Depends(get_store),
) -> List[MediaItem]:
    return await PrivateFolderService(store).list_items(current_user.id)


@router.get(
    "/items/{item_id}/file",
    summary="Download a private media file",
)
async def get_item_file(
    item_id: str,
    current_user: User = Depends(require_private_access),
    store: JsonDocumentStore = Depends(get_store),
) -> FileResponse:
    item = await PrivateFolderService(store).get_item(current_user.id, item_id)
    path = MediaFileStorage().resolve(item.file_path)
    if path is None or not path.is_file():
        raise NotFoundError("File not found")
    return media_file_response(path, item)


@router.post(
    "/move-to-gallery",
    response_model=MoveResult,
    summary="Move private items back to the gallery",
)
async def move_to_gallery(
    body: ItemIdsRequest,
    current_user: User = Depends(require_private_access),
    store: JsonDocumentStore = Depends(get_store),
) -> MoveResult:
    return await PrivateFolderService(store).move_to_gallery(current_user.id, body.item_ids)


@router.post(
    "/move-to-trash",
    response_model=MoveResult,
    summary="Move private items to trash",
)
async def move_to_trash(
    body: ItemIdsRequest,
    current_user: User = Depends(require_private_access),
    store: JsonDocumentStore = Depends(get_store),
) -> MoveResult:
    return await PrivateFolderService(store).move_to_trash(current_user.id, body.item_ids)
