"""
Per-user id lists: favorites (favorites.json) and offline markers
(offline_items.json).

Both are maps of {userId: {"itemIds": [...]}}. Markers are resolved
against the user's gallery at read time.
"""
from typing import List

from gallery_api.exceptions import NotFoundError
from gallery_api.models.media import MediaItem
from gallery_api.services.ordering import by_upload_desc
from gallery_api.services.workflows import GALLERY
from gallery_api.store import JsonDocumentStore
from gallery_api.utils.logger import log_info
from gallery_api.utils.prometheus_metrics import favorite_toggles_total


class ItemMarkerService:
    """Toggleable per-user marker list stored in one map collection."""

    collection = ""
    # 토글 시 아이템이 갤러리에 있어야 하는지
    require_gallery_item = False

    def __init__(self, store: JsonDocumentStore):
        self.store = store

    async def ids(self, user_id: str) -> List[str]:
        data = await self.store.read(self.collection)
        entry = data.get(user_id) or {}
        return list(entry.get("itemIds", []))

    async def contains(self, user_id: str, item_id: str) -> bool:
        return item_id in await self.ids(user_id)

    async def toggle(self, user_id: str, item_id: str) -> bool:
        """
        Flip the marker of one item.

        Returns:
            The new state (True = marked)

        Raises:
            NotFoundError: If the item must be in the gallery and is not
        """
        names = (self.collection, GALLERY) if self.require_gallery_item else (self.collection,)
        async with self.store.session(*names) as docs:
            if self.require_gallery_item and not any(
                doc.get("id") == item_id and doc.get("ownerUserId") == user_id
                for doc in docs[GALLERY]
            ):
                raise NotFoundError("Item not found")
            entry = docs[self.collection].setdefault(user_id, {"itemIds": []})
            item_ids = entry.setdefault("itemIds", [])
            if item_id in item_ids:
                entry["itemIds"] = [i for i in item_ids if i != item_id]
                state = False
            else:
                item_ids.append(item_id)
                state = True
        log_info(
            "Marker toggled",
            event=self.collection,
            user_id=user_id,
            item_id=item_id,
            state=state,
        )
        return state

    async def items(self, user_id: str) -> List[MediaItem]:
        """Marked items still in the user's gallery, newest upload first."""
        marked = set(await self.ids(user_id))
        gallery = await self.store.read(GALLERY)
        resolved = [
            doc for doc in gallery
            if doc.get("ownerUserId") == user_id and doc.get("id") in marked
        ]
        return [MediaItem.model_validate(doc) for doc in by_upload_desc(resolved)]


class FavoritesService(ItemMarkerService):
    collection = "favorites"
    require_gallery_item = True

    async def toggle(self, user_id: str, item_id: str) -> bool:
        state = await super().toggle(user_id, item_id)
        favorite_toggles_total.labels(state="on" if state else "off").inc()
        return state
