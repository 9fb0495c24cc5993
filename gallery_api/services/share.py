"""
Share service: public links and direct user-to-user shares.

Revocation is soft: links get ``isActive=false``, direct shares get
``status="revoked"`` and the records are kept.
"""
import uuid
from typing import Dict, List, Optional, Tuple

from gallery_api.exceptions import ConflictError, GoneError, NotFoundError, ValidationError
from gallery_api.models.base import utc_now_iso
from gallery_api.models.media import MediaItem
from gallery_api.models.share import SharedLink, UserSpecificShare
from gallery_api.services.ordering import timestamp_of
from gallery_api.services.workflows import GALLERY
from gallery_api.store import JsonDocumentStore
from gallery_api.utils.logger import log_info, log_warning
from gallery_api.utils.prometheus_metrics import share_link_access_total
from gallery_api.utils.security import generate_share_id

LINKS = "shared_links"
DIRECT = "user_specific_shares"
USERS = "users"


def _owned_gallery_item(gallery: List[dict], user_id: str, item_id: str) -> Optional[dict]:
    for doc in gallery:
        if doc.get("id") == item_id and doc.get("ownerUserId") == user_id:
            return doc
    return None


class ShareService:
    """
    Service for sharing gallery items.
    Only items in the owner's gallery can be shared or viewed through a share.
    """

    def __init__(self, store: JsonDocumentStore):
        self.store = store

    async def _gallery_index(self) -> Dict[Tuple[str, str], dict]:
        gallery = await self.store.read(GALLERY)
        return {(doc.get("ownerUserId"), doc.get("id")): doc for doc in gallery}

    async def _user_names(self) -> Dict[str, str]:
        users = await self.store.read(USERS)
        return {str(u.get("id")): u.get("name", "") for u in users}

    # ============== Public links ==============

    async def create_link(self, user_id: str, item_id: str) -> SharedLink:
        """
        Create a public link to one of the user's gallery items.

        Raises:
            NotFoundError: If the item is not in the user's gallery
        """
        async with self.store.session(LINKS, GALLERY) as docs:
            if _owned_gallery_item(docs[GALLERY], user_id, item_id) is None:
                raise NotFoundError("Item not found")
            link = SharedLink(
                share_id=generate_share_id(),
                owner_user_id=user_id,
                item_id=item_id,
                creation_timestamp=utc_now_iso(),
                is_active=True,
            )
            docs[LINKS].append(link.to_doc())
        log_info("Share link created", event="share", user_id=user_id, item_id=item_id)
        return link

    async def list_links(self, user_id: str) -> List[Tuple[SharedLink, Optional[MediaItem]]]:
        """Active links of the user, newest first, each with its item if still shared."""
        links = await self.store.read(LINKS)
        index = await self._gallery_index()
        owned = [
            doc for doc in links
            if doc.get("ownerUserId") == user_id and doc.get("isActive")
        ]
        owned.sort(key=lambda d: timestamp_of(d, "creationTimestamp"), reverse=True)
        result = []
        for doc in owned:
            item_doc = index.get((user_id, doc.get("itemId")))
            result.append((
                SharedLink.model_validate(doc),
                MediaItem.model_validate(item_doc) if item_doc else None,
            ))
        return result

    async def revoke_link(self, user_id: str, share_id: str) -> None:
        """
        Deactivate a link. The record is kept.

        Raises:
            NotFoundError: If the link does not exist or belongs to someone else
        """
        async with self.store.session(LINKS) as docs:
            doc = next(
                (d for d in docs[LINKS]
                 if d.get("shareId") == share_id and d.get("ownerUserId") == user_id),
                None,
            )
            if doc is None:
                raise NotFoundError("Share link not found")
            doc["isActive"] = False
        log_info("Share link revoked", event="share", user_id=user_id)

    async def view_link(self, share_id: str) -> Tuple[SharedLink, MediaItem, Optional[str]]:
        """
        Resolve a public link for an anonymous visitor.

        If the item left the owner's gallery the link is revoked.

        Returns:
            (link, item, owner name)

        Raises:
            NotFoundError: If the link is unknown or inactive
            GoneError: If the item is no longer available
        """
        links = await self.store.read(LINKS)
        doc = next((d for d in links if d.get("shareId") == share_id), None)
        if doc is None or not doc.get("isActive"):
            share_link_access_total.labels(result="not_found").inc()
            raise NotFoundError("Invalid or revoked link")

        owner_id = doc.get("ownerUserId")
        gallery = await self.store.read(GALLERY)
        item_doc = _owned_gallery_item(gallery, owner_id, doc.get("itemId"))
        if item_doc is None:
            async with self.store.session(LINKS) as docs:
                for d in docs[LINKS]:
                    if d.get("shareId") == share_id:
                        d["isActive"] = False
            share_link_access_total.labels(result="gone").inc()
            log_warning("Shared item no longer available, link revoked", event="share")
            raise GoneError("The shared item is no longer available")

        share_link_access_total.labels(result="success").inc()
        names = await self._user_names()
        return SharedLink.model_validate(doc), MediaItem.model_validate(item_doc), names.get(owner_id)

    # ============== Direct shares ==============

    async def share_with_user(
        self,
        user_id: str,
        item_id: str,
        target_user_id: str,
        message: Optional[str] = None,
    ) -> UserSpecificShare:
        """
        Share a gallery item with another registered user.

        Raises:
            ValidationError: If sharing with oneself
            NotFoundError: If the item or the target user does not exist
            ConflictError: If the item is already actively shared with the target
        """
        if user_id == target_user_id:
            raise ValidationError("You cannot share an item with yourself")

        async with self.store.session(DIRECT, GALLERY, USERS) as docs:
            if _owned_gallery_item(docs[GALLERY], user_id, item_id) is None:
                raise NotFoundError("Item not found")
            if not any(str(u.get("id")) == target_user_id for u in docs[USERS]):
                raise NotFoundError("Target user not found")
            if any(
                s.get("itemId") == item_id
                and s.get("ownerUserId") == user_id
                and s.get("targetUserId") == target_user_id
                and s.get("status") == "active"
                for s in docs[DIRECT]
            ):
                raise ConflictError("This item has already been shared with this user")

            share = UserSpecificShare(
                share_instance_id=str(uuid.uuid4()),
                owner_user_id=user_id,
                item_id=item_id,
                target_user_id=target_user_id,
                share_timestamp=utc_now_iso(),
                message=(message or "").strip() or None,
                status="active",
            )
            docs[DIRECT].append(share.to_doc())

        log_info("Item shared with user", event="share", user_id=user_id, target_user_id=target_user_id)
        return share

    async def _active_direct(self, predicate) -> List[dict]:
        shares = await self.store.read(DIRECT)
        selected = [s for s in shares if s.get("status") == "active" and predicate(s)]
        selected.sort(key=lambda d: timestamp_of(d, "shareTimestamp"), reverse=True)
        return selected

    async def shared_with_me(self, user_id: str) -> List[Tuple[UserSpecificShare, MediaItem, Optional[str]]]:
        """
        Active shares targeting the user, newest first, with item and owner name.
        Shares whose item left the owner's gallery are skipped.
        """
        shares = await self._active_direct(lambda s: s.get("targetUserId") == user_id)
        index = await self._gallery_index()
        names = await self._user_names()
        result = []
        for doc in shares:
            item_doc = index.get((doc.get("ownerUserId"), doc.get("itemId")))
            if item_doc is None:
                continue
            result.append((
                UserSpecificShare.model_validate(doc),
                MediaItem.model_validate(item_doc),
                names.get(doc.get("ownerUserId")),
            ))
        return result

    async def shared_by_me(self, user_id: str) -> List[Tuple[UserSpecificShare, Optional[MediaItem], Optional[str]]]:
        """Active shares initiated by the user, newest first, with item and target name."""
        shares = await self._active_direct(lambda s: s.get("ownerUserId") == user_id)
        index = await self._gallery_index()
        names = await self._user_names()
        result = []
        for doc in shares:
            item_doc = index.get((user_id, doc.get("itemId")))
            result.append((
                UserSpecificShare.model_validate(doc),
                MediaItem.model_validate(item_doc) if item_doc else None,
                names.get(doc.get("targetUserId")),
            ))
        return result

    async def revoke_direct_share(self, user_id: str, share_instance_id: str) -> None:
        """
        Revoke a direct share. Only its owner may revoke it.

        Raises:
            NotFoundError: If the share does not exist or was made by someone else
        """
        async with self.store.session(DIRECT) as docs:
            doc = next(
                (s for s in docs[DIRECT]
                 if s.get("shareInstanceId") == share_instance_id and s.get("ownerUserId") == user_id),
                None,
            )
            if doc is None:
                raise NotFoundError("Share not found")
            doc["status"] = "revoked"
        log_info("Direct share revoked", event="share", user_id=user_id)

    async def shared_item_for_target(self, user_id: str, share_instance_id: str) -> MediaItem:
        """
        Item behind an active direct share addressed to the user.

        Raises:
            NotFoundError: If there is no such share or its item is gone
        """
        shares = await self._active_direct(
            lambda s: s.get("shareInstanceId") == share_instance_id and s.get("targetUserId") == user_id
        )
        if not shares:
            raise NotFoundError("Share not found")
        index = await self._gallery_index()
        item_doc = index.get((shares[0].get("ownerUserId"), shares[0].get("itemId")))
        if item_doc is None:
            raise NotFoundError("Item not found")
        return MediaItem.model_validate(item_doc)
