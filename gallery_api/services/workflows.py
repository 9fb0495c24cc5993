"""
Cross-collection workflows: moving items between gallery, private folder
and trash.

데이터 일관성 규칙:
- 한 아이템은 소유자 기준으로 gallery / private_folder / trash 중 한 곳에만 존재
- 이동은 삭제 + 삽입, 대상에 같은 id가 이미 있으면 중복 삽입하지 않음
- 다른 사용자의 레코드는 건드리지 않음
- 대상 컬렉션을 먼저 기록 (쓰기 실패 시 아이템이 사라지지 않도록)
"""
from typing import Any, Callable, Dict, Iterable, List, Optional

from gallery_api.exceptions import StoreError
from gallery_api.models.base import utc_now_iso
from gallery_api.schemas.media import MoveResult
from gallery_api.services.ordering import by_deletion_desc, by_upload_desc
from gallery_api.store import JsonDocumentStore
from gallery_api.utils.logger import log_error, log_info
from gallery_api.utils.prometheus_metrics import media_moves_total

GALLERY = "gallery"
PRIVATE = "private_folder"
TRASH = "trash"

Doc = Dict[str, Any]

_ORDERING: Dict[str, Callable[[List[Doc]], List[Doc]]] = {
    GALLERY: by_upload_desc,
    PRIVATE: by_upload_desc,
    TRASH: by_deletion_desc,
}

_NOTHING_MATCHED = {
    GALLERY: "No items found for this user in the gallery matching the provided IDs.",
    PRIVATE: "No items found in this user's private folder matching the provided IDs.",
    TRASH: "No items found in this user's trash matching the provided IDs.",
}


def strip_deletion(doc: Doc) -> Doc:
    """Media document without its trash timestamp."""
    return {k: v for k, v in doc.items() if k != "deletionTimestamp"}


def stamp_deletion(timestamp: str) -> Callable[[Doc], Doc]:
    """All items of one trash operation share a single deletion timestamp."""
    def _stamp(doc: Doc) -> Doc:
        return {**doc, "deletionTimestamp": timestamp}
    return _stamp


def transfer(
    docs: Dict[str, List[Doc]],
    user_id: str,
    source: str,
    destination: str,
    item_ids: Optional[Iterable[str]] = None,
    transform: Callable[[Doc], Doc] = strip_deletion,
) -> int:
    """
    Move the owner's documents from one loaded collection to another.

    Operates on collections already loaded by ``store.session``.

    Args:
        docs: Loaded collections, mutated in place
        user_id: Owner; other users' documents are never selected
        source: Collection to take documents from
        destination: Collection to insert into (re-sorted by its ordering rule)
        item_ids: Ids to move; None moves every document of the owner
        transform: Applied to each moved document

    Returns:
        Number of documents taken from the source
    """
    wanted = None if item_ids is None else set(item_ids)

    def selected(doc: Doc) -> bool:
        if doc.get("ownerUserId") != user_id:
            return False
        return wanted is None or doc.get("id") in wanted

    moving = [doc for doc in docs[source] if selected(doc)]
    if not moving:
        return 0

    docs[source] = [doc for doc in docs[source] if not selected(doc)]

    already_there = {
        doc.get("id") for doc in docs[destination] if doc.get("ownerUserId") == user_id
    }
    incoming = [transform(doc) for doc in moving if doc.get("id") not in already_there]
    docs[destination] = _ORDERING[destination](incoming + docs[destination])
    return len(moving)


class MediaWorkflows:
    """
    Moves between gallery, private folder and trash.

    Each move loads source and destination in one store session, so the
    read-modify-write is serialized and nothing is written on failure.
    """

    def __init__(self, store: JsonDocumentStore):
        self.store = store

    async def _move(
        self,
        user_id: str,
        item_ids: List[str],
        source: str,
        destination: str,
        transform: Callable[[Doc], Doc] = strip_deletion,
    ) -> MoveResult:
        if not item_ids:
            return MoveResult(success=True, moved_count=0)

        try:
            async with self.store.session(destination, source) as docs:
                moved = transfer(docs, user_id, source, destination, item_ids, transform)
        except StoreError as e:
            log_error(
                "Move failed",
                event="media",
                user_id=user_id,
                source=source,
                destination=destination,
                error_message=e.message,
            )
            return MoveResult(success=False, moved_count=0, error=f"Error processing move: {e.message}")

        if moved == 0:
            return MoveResult(success=True, moved_count=0, error=_NOTHING_MATCHED[source])

        media_moves_total.labels(source=source, destination=destination).inc(moved)
        log_info(
            "Items moved",
            event="media",
            user_id=user_id,
            source=source,
            destination=destination,
            moved_count=moved,
        )
        return MoveResult(success=True, moved_count=moved)

    async def gallery_to_trash(self, user_id: str, item_ids: List[str]) -> MoveResult:
        return await self._move(user_id, item_ids, GALLERY, TRASH, stamp_deletion(utc_now_iso()))

    async def gallery_to_private(self, user_id: str, item_ids: List[str]) -> MoveResult:
        return await self._move(user_id, item_ids, GALLERY, PRIVATE)

    async def private_to_gallery(self, user_id: str, item_ids: List[str]) -> MoveResult:
        return await self._move(user_id, item_ids, PRIVATE, GALLERY)

    async def private_to_trash(self, user_id: str, item_ids: List[str]) -> MoveResult:
        return await self._move(user_id, item_ids, PRIVATE, TRASH, stamp_deletion(utc_now_iso()))

    async def restore_from_trash(self, user_id: str, item_ids: List[str]) -> MoveResult:
        """Trash -> gallery. The deletion timestamp is dropped."""
        return await self._move(user_id, item_ids, TRASH, GALLERY)
