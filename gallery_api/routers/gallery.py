"""
Gallery router: upload, browse, serve and move media items.
"""
import mimetypes
from pathlib import Path
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import FileResponse

from gallery_api.dependencies.auth import get_current_user
from gallery_api.models.media import MediaItem
from gallery_api.models.user import User
from gallery_api.schemas.media import DeleteResult, ItemIdsRequest, MediaPage, MoveResult, UploadResult
from gallery_api.services.gallery import GalleryService
from gallery_api.store import JsonDocumentStore, get_store

router = APIRouter(prefix="/gallery", tags=["Gallery"])


def media_file_response(path: Path, item: MediaItem) -> FileResponse:
    """Serve a media file inline under its original name."""
    media_type, _ = mimetypes.guess_type(item.original_filename)
    if media_type is None:
        media_type, _ = mimetypes.guess_type(path.name)
    return FileResponse(
        path,
        media_type=media_type or "application/octet-stream",
        filename=item.original_filename,
        content_disposition_type="inline",
    )


@router.post(
    "/upload",
    response_model=UploadResult,
    status_code=status.HTTP_201_CREATED,
    summary="Upload photos and videos",
)
async def upload_media(
    files: List[UploadFile] = File(...),
    adult_content: bool = Form(False, alias="adultContent"),
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> UploadResult:
    """
    Upload one or more media files.

    - **files**: JPEG, PNG, GIF, WebP images or MP4, WebM, MOV, MKV, AVI, FLV videos
    - **adultContent**: Flag stored on every created item

    Unsupported files are skipped and listed in `skipped`.
    """
    items, skipped = await GalleryService(store).upload(current_user.id, files, adult_content)
    return UploadResult(success=True, items=items, skipped=skipped)


@router.get(
    "",
    response_model=MediaPage,
    summary="List gallery items",
)
async def list_gallery(
    sort: Optional[Literal["chronological_asc", "chronological_desc", "name_asc", "name_desc"]] = None,
    media_type: Optional[Literal["image", "video"]] = Query(None, alias="type"),
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None, alias="perPage", ge=1),
    group: bool = False,
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> MediaPage:
    """
    Get one page of the current user's gallery.

    - **sort**: Defaults to the user's `defaultGallerySort`
    - **type**: Only images or only videos
    - **page**: 1-based page number
    - **perPage**: Defaults to the user's `galleryItemsPerPage`
    - **group**: Also group the page by upload date
    """
    return await GalleryService(store).get_page(
        current_user.id,
        current_user.preferences,
        sort=sort,
        media_type=media_type,
        page=page,
        per_page=per_page,
        group_by_day=group,
    )


@router.post(
    "/move-to-trash",
    response_model=MoveResult,
    summary="Move gallery items to trash",
)
async def move_to_trash(
    body: ItemIdsRequest,
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> MoveResult:
    return await GalleryService(store).move_to_trash(current_user.id, body.item_ids)


@router.post(
    "/move-to-private",
    response_model=MoveResult,
    summary="Move gallery items to the private folder",
)
async def move_to_private(
    body: ItemIdsRequest,
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> MoveResult:
    return await GalleryService(store).move_to_private(current_user.id, body.item_ids)


@router.get(
    "/{item_id}",
    response_model=MediaItem,
    summary="Get a gallery item",
)
async def get_item(
    item_id: str,
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> MediaItem:
    return await GalleryService(store).get_item(current_user.id, item_id)


@router.get(
    "/{item_id}/file",
    summary="Download the media file",
)
async def get_item_file(
    item_id: str,
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> FileResponse:
    """Stream the file of one of the current user's gallery items."""
    service = GalleryService(store)
    item = await service.get_item(current_user.id, item_id)
    return media_file_response(service.file_for(item), item)


@router.delete(
    "/{item_id}",
    response_model=DeleteResult,
    summary="Delete a gallery item permanently",
)
async def delete_item(
    item_id: str,
    current_user: User = Depends(get_current_user),
    store: JsonDocumentStore = Depends(get_store),
) -> DeleteResult:
    """
    Delete an item and its file without going through the trash.
    """
    return await GalleryService(store).delete_permanently(current_user.id, item_id)
