"""
Share router: public links and direct user-to-user shares.
"""
from typing import List

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import FileResponse

from gallery_api.config import get_settings
from gallery_api.dependencies.auth import get_current_user
from gallery_api.exceptions import GalleryError
from gallery_api.middlewares.rate_limit_middleware import rate_limit
from gallery_api.models.user import User
from gallery_api.routers.gallery import media_file_response
from gallery_api.schemas.share import (
    DirectShareCreate,
    DirectShareResponse,
    ShareLinkCreate,
    ShareLinkResponse,
    SharedItemView,
)
from gallery_api.services.gallery import GalleryService
from gallery_api.services.share import ShareService
from gallery_api.store import JsonDocumentStore, get_store
from gallery_api.utils.prometheus_metrics import share_operations_total

router = APIRouter(prefix="/share", tags=["Share"])

settings = get_settings()


# ============== Public links ==============

@router.post(
    "/links",
    response_model=ShareLinkResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a public share link",
)
async def create_link(
    body: ShareLinkCreate,
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> ShareLinkResponse:
    """
    Create a public link to one of your gallery items.

    Anyone with the link can view the item at /share/public/{shareId}
    while it stays in your gallery.
    """
    try:
        link = await ShareService(store).create_link(current_user.id, body.item_id)
    except GalleryError:
        share_operations_total.labels(kind="link", operation="create", result="failure").inc()
        raise
    share_operations_total.labels(kind="link", operation="create", result="success").inc()
    return ShareLinkResponse.model_validate(link.to_doc())


@router.get(
    "/links",
    response_model=List[ShareLinkResponse],
    summary="List your active share links",
)
async def list_links(
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> List[ShareLinkResponse]:
    links = await ShareService(store).list_links(current_user.id)
    return [ShareLinkResponse.model_validate({**link.to_doc(), "item": item}) for link, item in links]


@router.delete(
    "/links/{share_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Revoke a share link",
)
async def revoke_link(
    share_id: str,
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> None:
    await ShareService(store).revoke_link(current_user.id, share_id)
    share_operations_total.labels(kind="link", operation="revoke", result="success").inc()


@router.get(
    "/public/{share_id}",
    response_model=SharedItemView,
    summary="View a shared item (no auth)",
)
@rate_limit(f"{settings.rate_limit_share_per_minute}/minute")
async def view_shared(
    request: Request,
    share_id: str,
    store: JsonDocumentStore = Depends(get_store),
) -> SharedItemView:
    """
    Resolve a public link. No authentication required.

    Returns 404 for unknown or revoked links and 410 when the item has left
    the owner's gallery.
    """
    link, item, owner_name = await ShareService(store).view_link(share_id)
    return SharedItemView(share_id=link.share_id, item=item, owner_name=owner_name)


@router.get(
    "/public/{share_id}/file",
    summary="Download a shared media file (no auth)",
)
@rate_limit(f"{settings.rate_limit_share_per_minute}/minute")
async def view_shared_file(
    request: Request,
    share_id: str,
    store: JsonDocumentStore = Depends(get_store),
) -> FileResponse:
    _, item, _ = await ShareService(store).view_link(share_id)
    return media_file_response(GalleryService(store).file_for(item), item)


# ============== Direct shares ==============

@router.post(
    "/direct",
    response_model=DirectShareResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Share an item with another user",
)
async def share_with_user(
    body: DirectShareCreate,
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> DirectShareResponse:
    """
    Share one of your gallery items with another registered user.

    - **itemId**: Gallery item to share
    - **targetUserId**: Recipient
    - **message**: Optional note, up to 500 characters
    """
    try:
        share = await ShareService(store).share_with_user(
            current_user.id, body.item_id, body.target_user_id, body.message
        )
    except GalleryError:
        share_operations_total.labels(kind="direct", operation="create", result="failure").inc()
        raise
    share_operations_total.labels(kind="direct", operation="create", result="success").inc()
    return DirectShareResponse.model_validate(share.to_doc())


@router.get(
    "/direct/received",
    response_model=List[DirectShareResponse],
    summary="Items shared with me",
)
async def shared_with_me(
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> List[DirectShareResponse]:
    shares = await ShareService(store).shared_with_me(current_user.id)
    return [
        DirectShareResponse.model_validate(
            {**share.to_doc(), "item": item, "ownerName": owner_name}
        )
        for share, item, owner_name in shares
    ]


@router.get(
    "/direct/sent",
    response_model=List[DirectShareResponse],
    summary="Items I shared",
)
async def shared_by_me(
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> List[DirectShareResponse]:
    shares = await ShareService(store).shared_by_me(current_user.id)
    return [
        DirectShareResponse.model_validate(
            {**share.to_doc(), "item": item, "targetName": target_name}
        )
        for share, item, target_name in shares
    ]


@router.delete(
    "/direct/{share_instance_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Revoke a direct share",
)
async def revoke_direct_share(
    share_instance_id: str,
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> None:
    await ShareService(store).revoke_direct_share(current_user.id, share_instance_id)
    share_operations_total.labels(kind="direct", operation="revoke", result="success").inc()


@router.get(
    "/direct/{share_instance_id}/file",
    summary="Download an item shared with me",
)
async def shared_file(
    share_instance_id: str,
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> FileResponse:
    item = await ShareService(store).shared_item_for_target(current_user.id, share_instance_id)
    return media_file_response(GalleryService(store).file_for(item), item)
