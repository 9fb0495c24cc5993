"""
Trash router: list, restore and permanently delete trashed items.
"""
from fastapi import APIRouter, Depends

from gallery_api.config import get_settings
from gallery_api.dependencies.auth import get_current_user
from gallery_api.models.user import User
from gallery_api.schemas.media import DeleteResult, ItemIdsRequest, MoveResult, TrashGroup, TrashList
from gallery_api.services.ordering import group_by_date
from gallery_api.services.trash import TrashService
from gallery_api.store import JsonDocumentStore, get_store

router = APIRouter(prefix="/trash", tags=["Trash"])


@router.get(
    "",
    response_model=TrashList,
    summary="List trash items",
)
async def list_trash(
    group: bool = False,
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> TrashList:
    """
    Get the current user's trash, newest deletion first.

    Items older than the retention period are purged before listing.

    - **group**: Also group items by deletion date
    """
    items = await TrashService(store).list_items(current_user.id)
    groups = None
    if group:
        docs = [item.to_doc() for item in items]
        groups = [
            TrashGroup(date=g["date"], items=g["items"])
            for g in group_by_date(docs, "deletionTimestamp")
        ]
    return TrashList(
        items=items,
        retention_days=get_settings().trash_retention_days,
        groups=groups,
    )


@router.post(
    "/restore",
    response_model=MoveResult,
    summary="Restore trash items to the gallery",
)
async def restore_items(
    body: ItemIdsRequest,
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> MoveResult:
    return await TrashService(store).restore_many(current_user.id, body.item_ids)


@router.post(
    "/delete",
    response_model=DeleteResult,
    summary="Permanently delete trash items",
)
async def delete_items(
    body: ItemIdsRequest,
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> DeleteResult:
    """
    Delete the selected items and their files.

    Records are removed even if a file could not be deleted; such items are
    listed in `errors`.
    """
    return await TrashService(store).delete_permanently(current_user.id, body.item_ids)


@router.post(
    "/empty",
    response_model=DeleteResult,
    summary="Empty the trash",
)
async def empty_trash(
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> DeleteResult:
    return await TrashService(store).empty(current_user.id)


@router.post(
    "/{item_id}/restore",
    response_model=MoveResult,
    summary="Restore one trash item",
)
async def restore_item(
    item_id: str,
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> MoveResult:
    return await TrashService(store).restore(current_user.id, item_id)
