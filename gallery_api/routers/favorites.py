"""
Favorites router.
"""
from typing import List

from fastapi import APIRouter, Depends

from gallery_api.dependencies.auth import get_current_user
from gallery_api.models.media import MediaItem
from gallery_api.models.user import User
from gallery_api.schemas.settings import ItemIdList, ToggleResult
from gallery_api.services.favorites import FavoritesService
from gallery_api.store import JsonDocumentStore, get_store

router = APIRouter(prefix="/favorites", tags=["Favorites"])


@router.get(
    "",
    response_model=List[MediaItem],
    summary="List favorite items",
)
async def list_favorites(
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> List[MediaItem]:
    """Favorites that are still in the gallery, newest upload first."""
    return await FavoritesService(store).items(current_user.id)


@router.get(
    "/ids",
    response_model=ItemIdList,
    summary="List favorite item ids",
)
async def favorite_ids(
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> ItemIdList:
    return ItemIdList(item_ids=await FavoritesService(store).ids(current_user.id))


@router.get(
    "/{item_id}",
    response_model=ToggleResult,
    summary="Check whether an item is a favorite",
)
async def is_favorite(
    item_id: str,
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> ToggleResult:
    active = await FavoritesService(store).contains(current_user.id, item_id)
    return ToggleResult(item_id=item_id, active=active)


@router.post(
    "/{item_id}/toggle",
    response_model=ToggleResult,
    summary="Toggle favorite",
)
async def toggle_favorite(
    item_id: str,
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> ToggleResult:
    active = await FavoritesService(store).toggle(current_user.id, item_id)
    return ToggleResult(item_id=item_id, active=active)
