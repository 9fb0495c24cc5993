"""
Private folder service: password management, unlocking and item moves.

The folder password is separate from the login password and stored as
{hash, salt} per user in private_passwords.json.
"""
from typing import List

from gallery_api.config import get_settings
from gallery_api.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from gallery_api.models.media import MediaItem
from gallery_api.models.user import PrivatePassword
from gallery_api.schemas.media import MoveResult
from gallery_api.services.ordering import by_upload_desc
from gallery_api.services.workflows import GALLERY, PRIVATE, MediaWorkflows, transfer
from gallery_api.store import JsonDocumentStore
from gallery_api.utils.logger import log_info, log_warning
from gallery_api.utils.prometheus_metrics import media_moves_total
from gallery_api.utils.security import (
    create_private_access_token,
    generate_salt,
    hash_password,
    verify_password,
)

PASSWORDS = "private_passwords"


class PrivateFolderService:
    """Service for the password protected private folder."""

    def __init__(self, store: JsonDocumentStore):
        self.store = store
        self.workflows = MediaWorkflows(store)

    # ============== Password ==============

    @staticmethod
    def _check_length(password: str) -> None:
        min_length = get_settings().private_password_min_length
        if len(password) < min_length:
            raise ValidationError(f"Password must be at least {min_length} characters long")

    @staticmethod
    def _hashed(password: str) -> dict:
        salt = generate_salt()
        return PrivatePassword(hash=hash_password(password, salt), salt=salt).to_doc()

    async def is_password_set(self, user_id: str) -> bool:
        passwords = await self.store.read(PASSWORDS)
        return user_id in passwords

    async def set_password(self, user_id: str, password: str) -> None:
        """
        Set the folder password for the first time.

        Raises:
            ValidationError: If the password is too short
            ConflictError: If a password is already set (use change_password)
        """
        self._check_length(password)
        async with self.store.session(PASSWORDS) as docs:
            if user_id in docs[PASSWORDS]:
                raise ConflictError("A private folder password is already set")
            docs[PASSWORDS][user_id] = self._hashed(password)
        log_info("Private password set", event="private", user_id=user_id)

    async def verify_password(self, user_id: str, password: str) -> bool:
        """
        Check the folder password.

        Raises:
            NotFoundError: If no password is set
        """
        passwords = await self.store.read(PASSWORDS)
        entry = passwords.get(user_id)
        if not entry:
            raise NotFoundError("No private folder password is set")
        ok = verify_password(password, entry.get("hash"), entry.get("salt"))
        if not ok:
            log_warning("Private password rejected", event="private", user_id=user_id)
        return ok

    async def unlock(self, user_id: str, password: str) -> str:
        """
        Verify the folder password and issue a short-lived private token.

        Raises:
            PermissionDeniedError: If the password is wrong
        """
        if not await self.verify_password(user_id, password):
            raise PermissionDeniedError("Incorrect password")
        return create_private_access_token(user_id)

    async def change_password(self, user_id: str, current_password: str, new_password: str) -> None:
        """
        Replace the folder password. Requires the current one.

        Raises:
            ValidationError: If the new password is too short
            NotFoundError: If no password is set
            PermissionDeniedError: If the current password is wrong
        """
        self._check_length(new_password)
        async with self.store.session(PASSWORDS) as docs:
            entry = docs[PASSWORDS].get(user_id)
            if not entry:
                raise NotFoundError("No private folder password is set")
            if not verify_password(current_password, entry.get("hash"), entry.get("salt")):
                raise PermissionDeniedError("The current password is incorrect")
            docs[PASSWORDS][user_id] = self._hashed(new_password)
        log_info("Private password changed", event="private", user_id=user_id)

    async def remove_password(self, user_id: str, password: str) -> MoveResult:
        """
        Remove the folder password and move every private item back to the gallery.

        Both happen in one store session.

        Raises:
            NotFoundError: If no password is set
            PermissionDeniedError: If the password is wrong
        """
        async with self.store.session(GALLERY, PRIVATE, PASSWORDS) as docs:
            entry = docs[PASSWORDS].get(user_id)
            if not entry:
                raise NotFoundError("No private folder password is set")
            if not verify_password(password, entry.get("hash"), entry.get("salt")):
                raise PermissionDeniedError("Incorrect password")
            del docs[PASSWORDS][user_id]
            moved = transfer(docs, user_id, PRIVATE, GALLERY)

        if moved:
            media_moves_total.labels(source=PRIVATE, destination=GALLERY).inc(moved)
        log_info("Private password removed", event="private", user_id=user_id, moved_count=moved)
        return MoveResult(success=True, moved_count=moved)

    # ============== Items ==============

    async def list_items(self, user_id: str) -> List[MediaItem]:
        """Private items of the user, newest upload first."""
        items = await self.store.read(PRIVATE)
        owned = [doc for doc in items if doc.get("ownerUserId") == user_id]
        return [MediaItem.model_validate(doc) for doc in by_upload_desc(owned)]

    async def get_item(self, user_id: str, item_id: str) -> MediaItem:
        items = await self.store.read(PRIVATE)
        for doc in items:
            if doc.get("id") == item_id and doc.get("ownerUserId") == user_id:
                return MediaItem.model_validate(doc)
        raise NotFoundError("Item not found")

    async def move_to_gallery(self, user_id: str, item_ids: List[str]) -> MoveResult:
        return await self.workflows.private_to_gallery(user_id, item_ids)

    async def move_to_trash(self, user_id: str, item_ids: List[str]) -> MoveResult:
        return await self.workflows.private_to_trash(user_id, item_ids)
