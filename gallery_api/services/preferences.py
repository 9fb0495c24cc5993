"""
User preferences and storage usage.
"""
import logging
from typing import Any, Dict, Tuple

from pydantic import ValidationError as PydanticValidationError

from gallery_api.exceptions import NotFoundError, ValidationError
from gallery_api.models.user import UserPreferences
from gallery_api.services.media_files import MediaFileStorage, format_bytes
from gallery_api.store import JsonDocumentStore
from gallery_api.utils.logger import log_info

logger = logging.getLogger("gallery_api.preferences")

USERS = "users"


def merge_preferences(stored: Any) -> UserPreferences:
    """
    Stored preferences merged over the defaults.
    Unreadable stored values fall back to the defaults.
    """
    if not isinstance(stored, dict):
        return UserPreferences()
    try:
        return UserPreferences.model_validate(stored)
    except PydanticValidationError:
        logger.warning("Invalid stored preferences, using defaults", extra={"event": "settings"})
        return UserPreferences()


class PreferencesService:
    """Service for reading and updating the preferences of a user."""

    def __init__(self, store: JsonDocumentStore):
        self.store = store

    async def get(self, user_id: str) -> UserPreferences:
        users = await self.store.read(USERS)
        for doc in users:
            if str(doc.get("id")) == user_id:
                return merge_preferences(doc.get("preferences"))
        raise NotFoundError("User not found")

    async def update(self, user_id: str, changes: Dict[str, Any]) -> UserPreferences:
        """
        Apply a partial update.

        Args:
            user_id: User to update
            changes: camelCase or snake_case keys; a string page size is
                coerced to int, invalid values fall back to the default

        Returns:
            The merged preferences

        Raises:
            NotFoundError: If the user does not exist
            ValidationError: If a value is not acceptable
        """
        async with self.store.session(USERS) as docs:
            doc = next((u for u in docs[USERS] if str(u.get("id")) == user_id), None)
            if doc is None:
                raise NotFoundError("User not found")
            current = merge_preferences(doc.get("preferences"))
            merged = {**current.model_dump(), **changes}
            try:
                updated = UserPreferences.model_validate(merged)
            except PydanticValidationError as e:
                raise ValidationError("Invalid preferences", details={"errors": e.errors(include_url=False)})
            doc["preferences"] = updated.to_doc()

        log_info("Preferences updated", event="settings", user_id=user_id, changed=sorted(changes))
        return updated

    async def update_language(self, user_id: str, language: str) -> UserPreferences:
        return await self.update(user_id, {"language_preference": language})

    @staticmethod
    def storage_usage(files: MediaFileStorage = None) -> Tuple[int, str]:
        """Bytes used by UPLOADS_DIR and the human readable form."""
        used = (files or MediaFileStorage()).directory_size()
        return used, format_bytes(used)
