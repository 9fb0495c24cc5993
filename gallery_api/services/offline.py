"""
Offline availability markers. Only the markers are stored; caching the
files is left to the client.
"""
from gallery_api.services.favorites import ItemMarkerService
from gallery_api.utils.logger import log_info


class OfflineService(ItemMarkerService):
    collection = "offline_items"

    async def clear_all(self, user_id: str) -> None:
        """Drop every offline marker of the user."""
        async with self.store.session(self.collection) as docs:
            if user_id in docs[self.collection]:
                docs[self.collection][user_id]["itemIds"] = []
        log_info("Offline markers cleared", event="offline", user_id=user_id)
