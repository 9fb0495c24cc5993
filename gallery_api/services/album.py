"""
Album service for managing albums.

Albums only hold item ids. Ids whose item left the owner's gallery are
filtered out when the album is read and never deleted from the album.
"""
import uuid
from typing import List, Tuple

from gallery_api.exceptions import ConflictError, NotFoundError, ValidationError
from gallery_api.models.album import Album
from gallery_api.models.media import MediaItem
from gallery_api.services.ordering import by_upload_desc
from gallery_api.services.workflows import GALLERY
from gallery_api.store import JsonDocumentStore
from gallery_api.utils.logger import log_info

ALBUMS = "albums"


def _clean_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Album name cannot be empty")
    return cleaned


def _name_taken(albums: List[dict], user_id: str, name: str, exclude_id: str = None) -> bool:
    """Album names are unique per owner, case-insensitively."""
    lowered = name.lower()
    return any(
        a.get("ownerUserId") == user_id
        and a.get("id") != exclude_id
        and str(a.get("name", "")).lower() == lowered
        for a in albums
    )


def _find(albums: List[dict], album_id: str, user_id: str) -> dict:
    for doc in albums:
        if doc.get("id") == album_id and doc.get("ownerUserId") == user_id:
            return doc
    raise NotFoundError("Album not found")


class AlbumService:
    """
    Service for handling album operations.
    Every album belongs to exactly one user.
    """

    def __init__(self, store: JsonDocumentStore):
        self.store = store

    # ============== Album CRUD ==============

    async def list_albums(self, user_id: str) -> List[Album]:
        """Albums of the user sorted by name."""
        albums = await self.store.read(ALBUMS)
        owned = [doc for doc in albums if doc.get("ownerUserId") == user_id]
        owned.sort(key=lambda d: str(d.get("name", "")).lower())
        return [Album.model_validate(doc) for doc in owned]

    async def create_album(self, user_id: str, name: str) -> Album:
        """
        Create a new, empty album.

        Raises:
            ValidationError: If the name is blank
            ConflictError: If the user already has an album with that name
        """
        name = _clean_name(name)
        album = Album(id=str(uuid.uuid4()), owner_user_id=user_id, name=name, item_ids=[])
        async with self.store.session(ALBUMS) as docs:
            if _name_taken(docs[ALBUMS], user_id, name):
                raise ConflictError("An album with this name already exists")
            docs[ALBUMS].append(album.to_doc())
        log_info("Album created", event="album", user_id=user_id, album_id=album.id)
        return album

    async def get_album(self, user_id: str, album_id: str) -> Album:
        albums = await self.store.read(ALBUMS)
        return Album.model_validate(_find(albums, album_id, user_id))

    async def rename_album(self, user_id: str, album_id: str, name: str) -> Album:
        """
        Rename an album.

        Raises:
            ValidationError: If the name is blank
            NotFoundError: If the album does not exist for the user
            ConflictError: If another album of the user has that name
        """
        name = _clean_name(name)
        async with self.store.session(ALBUMS) as docs:
            doc = _find(docs[ALBUMS], album_id, user_id)
            if _name_taken(docs[ALBUMS], user_id, name, exclude_id=album_id):
                raise ConflictError("Another album with this name already exists")
            doc["name"] = name
            album = Album.model_validate(doc)
        log_info("Album renamed", event="album", user_id=user_id, album_id=album_id)
        return album

    async def delete_album(self, user_id: str, album_id: str) -> None:
        """Delete an album. Its items stay in the gallery."""
        async with self.store.session(ALBUMS) as docs:
            _find(docs[ALBUMS], album_id, user_id)
            docs[ALBUMS] = [
                doc for doc in docs[ALBUMS]
                if not (doc.get("id") == album_id and doc.get("ownerUserId") == user_id)
            ]
        log_info("Album deleted", event="album", user_id=user_id, album_id=album_id)

    # ============== Album Items ==============

    async def add_items(self, user_id: str, album_id: str, item_ids: List[str]) -> int:
        """
        Add gallery items to an album.

        Only ids in the user's gallery are added, duplicates are skipped.

        Returns:
            Number of ids added
        """
        async with self.store.session(ALBUMS, GALLERY) as docs:
            doc = _find(docs[ALBUMS], album_id, user_id)
            owned_ids = {
                g.get("id") for g in docs[GALLERY] if g.get("ownerUserId") == user_id
            }
            current = doc.setdefault("itemIds", [])
            added = 0
            for item_id in item_ids:
                if item_id in owned_ids and item_id not in current:
                    current.append(item_id)
                    added += 1
        log_info("Items added to album", event="album", user_id=user_id, album_id=album_id, added_count=added)
        return added

    async def remove_item(self, user_id: str, album_id: str, item_id: str) -> None:
        """
        Remove one id from an album.

        Raises:
            NotFoundError: If the album or the id in it does not exist
        """
        async with self.store.session(ALBUMS) as docs:
            doc = _find(docs[ALBUMS], album_id, user_id)
            current = doc.get("itemIds", [])
            if item_id not in current:
                raise NotFoundError("Item not found in this album")
            doc["itemIds"] = [i for i in current if i != item_id]

    async def get_with_items(self, user_id: str, album_id: str) -> Tuple[Album, List[MediaItem]]:
        """
        Album with its items resolved against the user's gallery, newest first.
        """
        album = await self.get_album(user_id, album_id)
        gallery = await self.store.read(GALLERY)
        by_id = {
            doc.get("id"): doc for doc in gallery if doc.get("ownerUserId") == user_id
        }
        resolved = [by_id[i] for i in dict.fromkeys(album.item_ids) if i in by_id]
        return album, [MediaItem.model_validate(doc) for doc in by_upload_desc(resolved)]
