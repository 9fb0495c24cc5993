"""
Albums router for album management.
"""
from typing import List

from fastapi import APIRouter, Depends, status

from gallery_api.dependencies.auth import get_current_user
from gallery_api.exceptions import GalleryError
from gallery_api.models.album import Album
from gallery_api.models.user import User
from gallery_api.schemas.album import (
    AlbumCreate,
    AlbumItemsAdd,
    AlbumItemsAdded,
    AlbumRename,
    AlbumWithItems,
)
from gallery_api.services.album import AlbumService
from gallery_api.store import JsonDocumentStore, get_store
from gallery_api.utils.prometheus_metrics import album_operations_total

router = APIRouter(prefix="/albums", tags=["Albums"])


@router.post(
    "",
    response_model=Album,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new album",
)
async def create_album(
    album_data: AlbumCreate,
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> Album:
    """
    Create a new album.

    - **name**: Album name, unique per user (case-insensitive)
    """
    try:
        album = await AlbumService(store).create_album(current_user.id, album_data.name)
    except GalleryError:
        # 메트릭 수집: 앨범 생성 실패
        album_operations_total.labels(operation="create", result="failure").inc()
        raise
    album_operations_total.labels(operation="create", result="success").inc()
    return album


@router.get(
    "",
    response_model=List[Album],
    summary="Get user's albums",
)
async def get_albums(
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> List[Album]:
    return await AlbumService(store).list_albums(current_user.id)


@router.get(
    "/{album_id}",
    response_model=AlbumWithItems,
    summary="Get album with items",
)
async def get_album(
    album_id: str,
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> AlbumWithItems:
    """
    Get an album with its items.

    Ids of items that left the gallery stay in `itemIds` but are not
    returned in `items`.
    """
    album, items = await AlbumService(store).get_with_items(current_user.id, album_id)
    return AlbumWithItems(
        id=album.id,
        owner_user_id=album.owner_user_id,
        name=album.name,
        item_ids=album.item_ids,
        items=items,
    )


@router.patch(
    "/{album_id}",
    response_model=Album,
    summary="Rename an album",
)
async def rename_album(
    album_id: str,
    body: AlbumRename,
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> Album:
    try:
        album = await AlbumService(store).rename_album(current_user.id, album_id, body.name)
    except GalleryError:
        album_operations_total.labels(operation="rename", result="failure").inc()
        raise
    album_operations_total.labels(operation="rename", result="success").inc()
    return album


@router.delete(
    "/{album_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an album",
)
async def delete_album(
    album_id: str,
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> None:
    """
    Delete an album. The items stay in the gallery.
    """
    try:
        await AlbumService(store).delete_album(current_user.id, album_id)
    except GalleryError:
        album_operations_total.labels(operation="delete", result="failure").inc()
        raise
    album_operations_total.labels(operation="delete", result="success").inc()


@router.post(
    "/{album_id}/items",
    response_model=AlbumItemsAdded,
    summary="Add items to album",
)
async def add_items(
    album_id: str,
    body: AlbumItemsAdd,
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> AlbumItemsAdded:
    """
    Add gallery items to an album.

    Items not in the gallery or already in the album are ignored.
    """
    added = await AlbumService(store).add_items(current_user.id, album_id, body.item_ids)
    album_operations_total.labels(operation="add_items", result="success").inc()
    return AlbumItemsAdded(added_count=added)


@router.delete(
    "/{album_id}/items/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove an item from album",
)
async def remove_item(
    album_id: str,
    item_id: str,
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> None:
    await AlbumService(store).remove_item(current_user.id, album_id, item_id)
    album_operations_total.labels(operation="remove_item", result="success").inc()
