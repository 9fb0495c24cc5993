"""
Gallery service: uploads, listing and single item operations.
"""
import math
import uuid
from pathlib import Path
from typing import List, Optional, Tuple

from fastapi import UploadFile

from gallery_api.config import get_settings
from gallery_api.exceptions import NotFoundError, PayloadTooLargeError, ValidationError
from gallery_api.models.base import utc_now_iso
from gallery_api.models.media import MediaItem
from gallery_api.models.user import ALL_ITEMS_PER_PAGE, UserPreferences
from gallery_api.schemas.media import DeleteResult, MediaPage, MoveResult
from gallery_api.services.media_files import MediaFileStorage
from gallery_api.services.ordering import by_upload_desc, group_by_date, sort_media
from gallery_api.services.workflows import GALLERY, MediaWorkflows
from gallery_api.store import JsonDocumentStore
from gallery_api.utils.logger import log_info, log_warning
from gallery_api.utils.prometheus_metrics import media_upload_file_size_bytes, media_upload_total
from gallery_api.utils.security import generate_unique_filename

ACCEPTED_IMAGE_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp")
ACCEPTED_VIDEO_TYPES = (
    "video/mp4",
    "video/webm",
    "video/quicktime",
    "video/mov",
    "video/x-matroska",
    "video/x-msvideo",
    "video/x-flv",
)


def media_type_for(content_type: Optional[str]) -> Optional[str]:
    """Return "image", "video" or None for an unsupported MIME type."""
    if content_type in ACCEPTED_IMAGE_TYPES:
        return "image"
    if content_type in ACCEPTED_VIDEO_TYPES:
        return "video"
    return None


class GalleryService:
    """
    Service for handling gallery operations.
    Every read and write is scoped to the calling user.
    """

    def __init__(self, store: JsonDocumentStore, files: Optional[MediaFileStorage] = None):
        self.store = store
        self.files = files or MediaFileStorage()
        self.workflows = MediaWorkflows(store)

    # ============== Upload ==============

    async def upload(
        self,
        user_id: str,
        uploads: List[UploadFile],
        adult_content: bool = False,
    ) -> Tuple[List[MediaItem], List[str]]:
        """
        Store uploaded files and prepend their records to the gallery.

        Args:
            user_id: Owner of the new items
            uploads: Multipart files; unsupported types are skipped
            adult_content: Flag stored on every created item

        Returns:
            (created items, names of skipped files)

        Raises:
            ValidationError: If no file had a supported type
            PayloadTooLargeError: If a file exceeds MAX_UPLOAD_SIZE_MB
        """
        max_bytes = get_settings().max_upload_size_bytes
        created: List[MediaItem] = []
        skipped: List[str] = []

        try:
            for upload in uploads:
                original_name = upload.filename or "upload"
                media_type = media_type_for(upload.content_type)
                if media_type is None:
                    media_upload_total.labels(media_type="unsupported", result="skipped").inc()
                    log_warning(
                        "Skipping unsupported file type",
                        event="media",
                        user_id=user_id,
                        content_type=upload.content_type,
                    )
                    skipped.append(original_name)
                    continue

                stored_name = generate_unique_filename(original_name)
                size = await self.files.save(upload, stored_name, max_bytes=max_bytes)
                media_upload_file_size_bytes.labels(media_type=media_type).observe(size)
                created.append(
                    MediaItem(
                        id=str(uuid.uuid4()),
                        owner_user_id=user_id,
                        original_filename=original_name,
                        filename=stored_name,
                        file_path=self.files.public_path(stored_name),
                        upload_timestamp=utc_now_iso(),
                        type=media_type,
                        adult_content=adult_content,
                    )
                )
        except PayloadTooLargeError:
            # 같은 요청에서 이미 저장한 파일 정리
            for item in created:
                await self.files.delete(item.file_path)
            media_upload_total.labels(media_type="unknown", result="failure").inc()
            raise

        if not created:
            raise ValidationError("No valid files were processed.", details={"skipped": skipped})

        async with self.store.session(GALLERY) as docs:
            docs[GALLERY] = [item.to_doc() for item in created] + docs[GALLERY]

        for item in created:
            media_upload_total.labels(media_type=item.type, result="success").inc()
        log_info(
            "Media uploaded",
            event="media",
            user_id=user_id,
            item_count=len(created),
            skipped_count=len(skipped),
        )
        return created, skipped

    # ============== Read ==============

    async def list_items(self, user_id: str) -> List[MediaItem]:
        """All gallery items of the user, newest upload first."""
        gallery = await self.store.read(GALLERY)
        owned = [doc for doc in gallery if doc.get("ownerUserId") == user_id]
        return [MediaItem.model_validate(doc) for doc in by_upload_desc(owned)]

    async def get_page(
        self,
        user_id: str,
        preferences: UserPreferences,
        sort: Optional[str] = None,
        media_type: Optional[str] = None,
        page: int = 1,
        per_page: Optional[int] = None,
        group_by_day: bool = False,
    ) -> MediaPage:
        """
        One page of the user's gallery.

        Args:
            user_id: Owner
            preferences: Supplies the default sort and page size
            sort: Overrides ``defaultGallerySort``
            media_type: "image" or "video" filter
            page: 1-based page number, clamped to the last page
            per_page: Overrides ``galleryItemsPerPage`` (999999 = single page)
            group_by_day: Also return the page grouped by upload date

        Returns:
            MediaPage
        """
        gallery = await self.store.read(GALLERY)
        owned = [
            doc for doc in gallery
            if doc.get("ownerUserId") == user_id
            and (media_type is None or doc.get("type") == media_type)
        ]
        ordered = sort_media(owned, sort or preferences.default_gallery_sort)

        size = per_page or preferences.gallery_items_per_page
        if size <= 0 or size >= ALL_ITEMS_PER_PAGE:
            size = max(len(ordered), 1)
        total_pages = max(1, math.ceil(len(ordered) / size))
        page = min(max(page, 1), total_pages)
        window = ordered[(page - 1) * size: page * size]

        groups = None
        if group_by_day:
            groups = [
                {"date": g["date"], "items": [MediaItem.model_validate(d) for d in g["items"]]}
                for g in group_by_date(window, "uploadTimestamp")
            ]

        return MediaPage(
            items=[MediaItem.model_validate(doc) for doc in window],
            page=page,
            per_page=size,
            total_pages=total_pages,
            total_count=len(ordered),
            groups=groups,
        )

    async def get_item(self, user_id: str, item_id: str) -> MediaItem:
        """
        Get one gallery item of the user.

        Raises:
            NotFoundError: If the item is not in the user's gallery
        """
        gallery = await self.store.read(GALLERY)
        for doc in gallery:
            if doc.get("id") == item_id and doc.get("ownerUserId") == user_id:
                return MediaItem.model_validate(doc)
        raise NotFoundError("Item not found")

    def file_for(self, item: MediaItem) -> Path:
        """
        On-disk file of an item.

        Raises:
            NotFoundError: If the file is missing
        """
        path = self.files.resolve(item.file_path)
        if path is None or not path.is_file():
            raise NotFoundError("File not found")
        return path

    # ============== Moves / delete ==============

    async def move_to_trash(self, user_id: str, item_ids: List[str]) -> MoveResult:
        return await self.workflows.gallery_to_trash(user_id, item_ids)

    async def move_to_private(self, user_id: str, item_ids: List[str]) -> MoveResult:
        return await self.workflows.gallery_to_private(user_id, item_ids)

    async def delete_permanently(self, user_id: str, item_id: str) -> DeleteResult:
        """
        Remove an item and its file directly from the gallery, skipping the trash.

        Raises:
            NotFoundError: If the item is not in the user's gallery
        """
        async with self.store.session(GALLERY) as docs:
            target = next(
                (doc for doc in docs[GALLERY]
                 if doc.get("id") == item_id and doc.get("ownerUserId") == user_id),
                None,
            )
            if target is None:
                raise NotFoundError("Item not found")
            docs[GALLERY] = [doc for doc in docs[GALLERY] if doc is not target]

        # 레코드가 저장된 뒤에만 파일 삭제
        file_deleted = await self.files.delete(target.get("filePath"))

        log_info("Gallery item deleted", event="media", user_id=user_id, item_id=item_id)
        if not file_deleted:
            return DeleteResult(
                success=False,
                deleted_count=0,
                error="The file could not be deleted from the server, but its metadata was removed.",
            )
        return DeleteResult(success=True, deleted_count=1)
