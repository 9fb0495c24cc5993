"""
Trash service: listing, restore, permanent deletion and retention purge.
"""
import asyncio
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from gallery_api.config import get_settings
from gallery_api.exceptions import NotFoundError, StoreError
from gallery_api.models.base import utc_now_iso
from gallery_api.models.media import MediaItem, TrashItem
from gallery_api.schemas.media import DeleteResult, MoveResult
from gallery_api.services.media_files import MediaFileStorage
from gallery_api.services.ordering import by_deletion_desc, timestamp_of
from gallery_api.services.workflows import TRASH, MediaWorkflows, stamp_deletion
from gallery_api.store import JsonDocumentStore
from gallery_api.utils.logger import log_error, log_info, log_warning
from gallery_api.utils.prometheus_metrics import trash_purged_items_total


class TrashService:
    """
    Service for handling the trash of every user.
    Trash items keep the full media record plus ``deletionTimestamp``.
    """

    def __init__(self, store: JsonDocumentStore, files: Optional[MediaFileStorage] = None):
        self.store = store
        self.files = files or MediaFileStorage()
        self.workflows = MediaWorkflows(store)

    async def list_items(self, user_id: str, purge: bool = True) -> List[TrashItem]:
        """
        Get the user's trash, newest deletion first.

        Args:
            user_id: Owner
            purge: Run the user's retention purge first

        Returns:
            List of TrashItem
        """
        if purge:
            await self.auto_purge(user_id=user_id)
        trash = await self.store.read(TRASH)
        owned = [doc for doc in trash if doc.get("ownerUserId") == user_id]
        return [TrashItem.model_validate(doc) for doc in by_deletion_desc(owned)]

    async def add_items(self, items: List[MediaItem]) -> int:
        """
        Put media records into the trash with one shared deletion timestamp.

        The records must already be removed from their previous location;
        MediaWorkflows does both in one step for gallery and private items.
        """
        if not items:
            return 0
        stamp = stamp_deletion(utc_now_iso())
        async with self.store.session(TRASH) as docs:
            present = {(doc.get("ownerUserId"), doc.get("id")) for doc in docs[TRASH]}
            new_docs = [
                stamp(item.to_doc())
                for item in items
                if (item.owner_user_id, item.id) not in present
            ]
            docs[TRASH] = by_deletion_desc(new_docs + docs[TRASH])
        return len(new_docs)

    async def restore(self, user_id: str, item_id: str) -> MoveResult:
        """
        Restore one item to the gallery.

        Raises:
            NotFoundError: If the item is not in the user's trash
        """
        result = await self.workflows.restore_from_trash(user_id, [item_id])
        if result.success and result.moved_count == 0:
            raise NotFoundError("Trash item not found")
        return result

    async def restore_many(self, user_id: str, item_ids: List[str]) -> MoveResult:
        return await self.workflows.restore_from_trash(user_id, item_ids)

    async def delete_permanently(
        self,
        user_id: str,
        item_ids: List[str],
        reason: str = "manual",
    ) -> DeleteResult:
        """
        Delete files and records of the selected trash items.

        Metadata is removed even when deleting a file fails; such failures
        are reported in ``errors`` and make the result unsuccessful.
        """
        if not item_ids:
            return DeleteResult(success=True, deleted_count=0)

        wanted = set(item_ids)
        errors: List[str] = []
        deleted = 0

        async with self.store.session(TRASH) as docs:
            selected = [
                doc for doc in docs[TRASH]
                if doc.get("id") in wanted and doc.get("ownerUserId") == user_id
            ]
            docs[TRASH] = [
                doc for doc in docs[TRASH]
                if not (doc.get("id") in wanted and doc.get("ownerUserId") == user_id)
            ]

        # 레코드가 저장된 뒤에만 파일 삭제
        for doc in selected:
            if await self.files.delete(doc.get("filePath")):
                deleted += 1
            else:
                errors.append(
                    f"Failed to delete file for item {doc.get('originalFilename')} (ID: {doc.get('id')})."
                )

        trash_purged_items_total.labels(reason=reason).inc(len(selected))
        log_info(
            "Trash items deleted",
            event="trash",
            user_id=user_id,
            reason=reason,
            deleted_count=deleted,
            selected_count=len(selected),
        )

        if errors:
            log_warning("Some trash files could not be deleted", event="trash", user_id=user_id, errors=errors)
            return DeleteResult(
                success=False,
                deleted_count=deleted,
                error="Some files could not be deleted from the server, but their metadata was removed.",
                errors=errors,
            )
        if deleted < len(wanted):
            return DeleteResult(
                success=False,
                deleted_count=deleted,
                error="Not all selected items were found or belonged to the user.",
            )
        return DeleteResult(success=True, deleted_count=deleted)

    async def empty(self, user_id: str) -> DeleteResult:
        """Permanently delete every trash item of the user."""
        items = await self.list_items(user_id, purge=False)
        return await self.delete_permanently(user_id, [item.id for item in items], reason="empty")

    async def auto_purge(
        self,
        user_id: Optional[str] = None,
        retention_days: Optional[int] = None,
    ) -> int:
        """
        Permanently delete items older than the retention period.

        Args:
            user_id: Only purge this user's items; None purges everyone's
            retention_days: Defaults to TRASH_RETENTION_DAYS

        Returns:
            Number of purged items
        """
        if retention_days is None:
            retention_days = get_settings().trash_retention_days
        cutoff = datetime.now(timezone.utc) - timedelta(days=retention_days)

        def expired(doc) -> bool:
            if user_id is not None and doc.get("ownerUserId") != user_id:
                return False
            # 타임스탬프가 없거나 깨진 레코드는 보존
            if not doc.get("deletionTimestamp"):
                return False
            ts = timestamp_of(doc, "deletionTimestamp")
            return ts.year > 1 and ts <= cutoff

        if not any(expired(doc) for doc in await self.store.read(TRASH)):
            return 0

        async with self.store.session(TRASH) as docs:
            purged = [doc for doc in docs[TRASH] if expired(doc)]
            docs[TRASH] = [doc for doc in docs[TRASH] if not expired(doc)]

        for doc in purged:
            await self.files.delete(doc.get("filePath"))

        trash_purged_items_total.labels(reason="retention").inc(len(purged))
        log_info(
            "Old trash items purged",
            event="trash",
            user_id=user_id,
            purged_count=len(purged),
            retention_days=retention_days,
        )
        return len(purged)


async def trash_purge_loop(store: JsonDocumentStore) -> None:
    """
    Background loop: purge expired trash of every user at the configured interval.
    Returns immediately when TRASH_PURGE_INTERVAL_SECONDS is 0.
    """
    interval = get_settings().trash_purge_interval_seconds
    if interval <= 0:
        return
    service = TrashService(store)
    while True:
        try:
            await service.auto_purge()
        except StoreError as e:
            log_error("Scheduled trash purge failed", event="trash", error_message=e.message)
        await asyncio.sleep(interval)
