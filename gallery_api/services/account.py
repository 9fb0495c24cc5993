"""
Full-account export and import.

The export document is keyed by collection file name ("gallery.json", ...)
and holds only the caller's slice of each collection. Import validates
every file first and then replaces that slice in one store session,
leaving other users' records as they were. Checks that need the stored
data (user name clashes, an item in two locations) run inside that
session, so a rejected import writes nothing.
"""
from typing import Any, Dict, List, Optional, Type

from pydantic import ValidationError as PydanticValidationError

from gallery_api.exceptions import StoreError, ValidationError
from gallery_api.models.album import Album
from gallery_api.models.base import Record
from gallery_api.models.media import MediaItem, TrashItem
from gallery_api.models.session import ActiveSession
from gallery_api.models.share import SharedLink, UserSpecificShare
from gallery_api.models.user import PrivatePassword, User
from gallery_api.services.workflows import GALLERY, PRIVATE, TRASH
from gallery_api.store import COLLECTIONS, FILENAME_TO_COLLECTION, JsonDocumentStore
from gallery_api.utils.logger import log_info, log_warning
from gallery_api.utils.prometheus_metrics import account_transfer_total

# collection -> record model of the caller's entries
_LIST_MODELS: Dict[str, Type[Record]] = {
    "gallery": MediaItem,
    "trash": TrashItem,
    "private_folder": MediaItem,
    "albums": Album,
    "shared_links": SharedLink,
    "user_specific_shares": UserSpecificShare,
    "active_sessions": ActiveSession,
}
_MAP_COLLECTIONS = ("favorites", "private_passwords", "offline_items")
_MARKER_COLLECTIONS = ("favorites", "offline_items")

# Credentials are never exported and never overwritten by an import
_CREDENTIAL_KEYS = ("password", "passwordSalt")

# An item id lives in exactly one of these per owner
_LOCATIONS = (GALLERY, PRIVATE, TRASH)
_COLLECTION_FILENAMES = {name: filename for name, (filename, _) in COLLECTIONS.items()}


def _belongs_to(name: str, doc: Dict[str, Any], user_id: str) -> bool:
    """Whether a list record is part of the user's slice."""
    if name == "active_sessions":
        return doc.get("userId") == user_id
    if name == "user_specific_shares":
        return doc.get("ownerUserId") == user_id or doc.get("targetUserId") == user_id
    return doc.get("ownerUserId") == user_id


def _map_default(name: str) -> Dict[str, Any]:
    return {"itemIds": []} if name in _MARKER_COLLECTIONS else {}


def _user_record_error(users: List[Dict[str, Any]], imported: Dict[str, Any], user_id: str) -> Optional[str]:
    """
    Check the imported user record against the stored users.

    The merged record must still be a valid user, and its username and
    email must not belong to anyone else (case-insensitive).
    """
    current = next((u for u in users if str(u.get("id")) == user_id), {})
    incoming = {k: v for k, v in imported.items() if k not in _CREDENTIAL_KEYS}
    merged = {**current, **incoming, "id": user_id}
    try:
        User.model_validate(merged)
    except PydanticValidationError as e:
        return f"users.json is not a valid user record: {e.error_count()} error(s)."

    username = merged["username"].strip().lower()
    email = merged["email"].strip().lower()
    for other in users:
        if str(other.get("id")) == user_id:
            continue
        if str(other.get("username", "")).strip().lower() == username:
            return "users.json username is already taken by another user."
        if str(other.get("email", "")).strip().lower() == email:
            return "users.json email is already registered to another user."
    return None


def _items_in_several_locations(docs: Dict[str, Any], user_id: str) -> List[str]:
    """Ids of the user's items found more than once across gallery, private folder and trash."""
    seen = set()
    duplicated = set()
    for name in _LOCATIONS:
        for doc in docs[name]:
            if doc.get("ownerUserId") != user_id:
                continue
            item_id = doc.get("id")
            if item_id in seen:
                duplicated.add(str(item_id))
            seen.add(item_id)
    return sorted(duplicated)


class AccountTransferService:
    """Export and import everything one user owns."""

    def __init__(self, store: JsonDocumentStore):
        self.store = store

    # ============== Export ==============

    def _slice(self, name: str, data: Any, user_id: str) -> Any:
        if name == "users":
            return [
                {k: v for k, v in u.items() if k not in _CREDENTIAL_KEYS}
                for u in data
                if str(u.get("id")) == user_id
            ]
        if name in _MAP_COLLECTIONS:
            entry = data.get(user_id)
            return {user_id: entry if entry is not None else _map_default(name)}
        return [doc for doc in data if isinstance(doc, dict) and _belongs_to(name, doc, user_id)]

    async def export(self, user_id: str) -> Dict[str, Any]:
        """
        Export the user's slice of every collection.

        A collection that cannot be loaded exports its empty default and
        the export still succeeds.
        """
        result: Dict[str, Any] = {}
        for name, (filename, factory) in COLLECTIONS.items():
            try:
                data = await self.store.read(name)
            except StoreError:
                log_warning("Collection skipped in export", event="account", user_id=user_id, collection=name)
                data = factory()
            result[filename] = self._slice(name, data, user_id)

        account_transfer_total.labels(operation="export", result="success").inc()
        log_info("Account exported", event="account", user_id=user_id)
        return result

    # ============== Import ==============

    def _validate_file(self, filename: str, content: Any, user_id: str) -> Optional[str]:
        """Return an error message for one imported file, None when valid."""
        name = FILENAME_TO_COLLECTION.get(filename)
        if name is None:
            return f"{filename} is not a known data file."
        if content is None:
            return "File content is null or undefined."

        if name == "users":
            if not isinstance(content, list) or not all(
                isinstance(u, dict) and u.get("id") and u.get("username") for u in content
            ):
                return f"{filename} must be an array of users with id and username."
            if len(content) != 1 or str(content[0].get("id")) != user_id:
                return f"{filename} must only contain the current user's data."
            return None

        if name in _MAP_COLLECTIONS:
            if not isinstance(content, dict) or not isinstance(content.get(user_id), dict):
                return f"{filename} must be an object with an entry for user {user_id}."
            entry = content[user_id]
            if name in _MARKER_COLLECTIONS and not isinstance(entry.get("itemIds", []), list):
                return f"{filename} itemIds must be an array."
            if name == "private_passwords" and entry:
                try:
                    PrivatePassword.model_validate(entry)
                except PydanticValidationError:
                    return f"{filename} entry must contain hash and salt."
            return None

        if not isinstance(content, list):
            return f"{filename} must be an array."
        model = _LIST_MODELS[name]
        for index, doc in enumerate(content):
            if not isinstance(doc, dict):
                return f"{filename}[{index}] must be an object."
            if not _belongs_to(name, doc, user_id):
                continue
            try:
                model.model_validate(doc)
            except PydanticValidationError as e:
                return f"{filename}[{index}] is not a valid record: {e.error_count()} error(s)."
        return None

    def _reject(self, user_id: str, errors: Dict[str, str]) -> None:
        account_transfer_total.labels(operation="import", result="failure").inc()
        log_warning("Account import rejected", event="account", user_id=user_id, files=sorted(errors))
        raise ValidationError("Data validation failed for one or more files.", details=errors)

    async def import_data(
        self,
        data: Dict[str, Any],
        user_id: str,
        current_session_id: Optional[str] = None,
    ) -> List[str]:
        """
        Replace the user's slice of every provided collection.

        Args:
            data: Export document (any subset of the data files)
            user_id: The importing user; the imported record keeps this id
            current_session_id: Session of the caller, kept so the import
                does not sign the caller out

        Returns:
            File names that were imported

        Raises:
            ValidationError: If any file fails validation, the imported user
                record clashes with another user, or an item would end up in
                more than one location (nothing is written)
        """
        errors = {}
        for filename, content in data.items():
            message = self._validate_file(filename, content, user_id)
            if message:
                errors[filename] = message
        if errors:
            self._reject(user_id, errors)

        names = [FILENAME_TO_COLLECTION[filename] for filename in data]
        if not names:
            return []

        # 위치 컬렉션은 가져오지 않아도 중복 검사를 위해 함께 잠금
        async with self.store.session(*names, *_LOCATIONS) as docs:
            for filename, content in data.items():
                name = FILENAME_TO_COLLECTION[filename]
                if name == "users":
                    message = _user_record_error(docs["users"], content[0], user_id)
                    if message:
                        self._reject(user_id, {filename: message})
                    self._import_user(docs, content[0], user_id)
                elif name in _MAP_COLLECTIONS:
                    entry = content[user_id]
                    if name == "private_passwords" and not entry:
                        docs[name].pop(user_id, None)
                    else:
                        docs[name][user_id] = entry
                else:
                    self._import_list(docs, name, content, user_id, current_session_id)

            duplicated = _items_in_several_locations(docs, user_id)
            if duplicated:
                message = f"Items appear in more than one location: {', '.join(duplicated)}."
                files = [_COLLECTION_FILENAMES[name] for name in _LOCATIONS if name in names]
                self._reject(user_id, {filename: message for filename in files or [_COLLECTION_FILENAMES[GALLERY]]})

        account_transfer_total.labels(operation="import", result="success").inc()
        log_info("Account imported", event="account", user_id=user_id, files=list(data))
        return list(data)

    @staticmethod
    def _import_user(docs: Dict[str, Any], imported: Dict[str, Any], user_id: str) -> None:
        incoming = {k: v for k, v in imported.items() if k not in _CREDENTIAL_KEYS}
        incoming["id"] = user_id
        users = docs["users"]
        for index, doc in enumerate(users):
            if str(doc.get("id")) == user_id:
                users[index] = {**doc, **incoming}
                return
        users.append(incoming)

    @staticmethod
    def _import_list(
        docs: Dict[str, Any],
        name: str,
        content: List[Dict[str, Any]],
        user_id: str,
        current_session_id: Optional[str],
    ) -> None:
        others = [doc for doc in docs[name] if not _belongs_to(name, doc, user_id)]
        mine = [doc for doc in content if _belongs_to(name, doc, user_id)]
        if name == "active_sessions" and current_session_id:
            current = [
                doc for doc in docs[name]
                if doc.get("userId") == user_id and doc.get("sessionId") == current_session_id
            ]
            mine = current + [doc for doc in mine if doc.get("sessionId") != current_session_id]
        docs[name] = others + mine
