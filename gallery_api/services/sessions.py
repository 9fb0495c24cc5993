"""
Active session service (active_sessions.json).

A JWT is only honored while its session record exists, so removing a
session signs that device out.
"""
import uuid
from typing import List, Optional

from gallery_api.exceptions import NotFoundError
from gallery_api.models.base import utc_now_iso
from gallery_api.models.session import ActiveSession
from gallery_api.services.ordering import timestamp_of
from gallery_api.store import JsonDocumentStore
from gallery_api.utils.logger import log_info

SESSIONS = "active_sessions"


class SessionService:
    """Service for recording and revoking login sessions."""

    def __init__(self, store: JsonDocumentStore):
        self.store = store

    async def add(self, user_id: str, device_info: str, ip_address: Optional[str] = None) -> ActiveSession:
        """Record a new login."""
        now = utc_now_iso()
        session = ActiveSession(
            session_id=str(uuid.uuid4()),
            user_id=user_id,
            device_info=device_info,
            ip_address=ip_address,
            login_timestamp=now,
            last_active_timestamp=now,
        )
        async with self.store.session(SESSIONS) as docs:
            docs[SESSIONS].append(session.to_doc())
        log_info("Session created", event="auth", user_id=user_id, session_id=session.session_id)
        return session

    async def list_for_user(self, user_id: str) -> List[ActiveSession]:
        """The user's sessions, newest login first."""
        sessions = await self.store.read(SESSIONS)
        owned = [doc for doc in sessions if doc.get("userId") == user_id]
        owned.sort(key=lambda d: timestamp_of(d, "loginTimestamp"), reverse=True)
        return [ActiveSession.model_validate(doc) for doc in owned]

    async def touch(self, session_id: str, user_id: str) -> bool:
        """
        Refresh ``lastActiveTimestamp``.

        Returns:
            False when the session no longer exists
        """
        async with self.store.session(SESSIONS) as docs:
            for doc in docs[SESSIONS]:
                if doc.get("sessionId") == session_id and doc.get("userId") == user_id:
                    doc["lastActiveTimestamp"] = utc_now_iso()
                    return True
        return False

    async def remove(self, user_id: str, session_id: str) -> None:
        """
        Remove one of the user's sessions.

        Raises:
            NotFoundError: If the session does not exist or belongs to someone else
        """
        async with self.store.session(SESSIONS) as docs:
            before = len(docs[SESSIONS])
            docs[SESSIONS] = [
                doc for doc in docs[SESSIONS]
                if not (doc.get("sessionId") == session_id and doc.get("userId") == user_id)
            ]
            if len(docs[SESSIONS]) == before:
                raise NotFoundError("Session not found")
        log_info("Session removed", event="auth", user_id=user_id, session_id=session_id)

    async def remove_others(self, user_id: str, current_session_id: str) -> int:
        """Remove every session of the user except the current one."""
        async with self.store.session(SESSIONS) as docs:
            kept = [
                doc for doc in docs[SESSIONS]
                if doc.get("userId") != user_id or doc.get("sessionId") == current_session_id
            ]
            removed = len(docs[SESSIONS]) - len(kept)
            docs[SESSIONS] = kept
        log_info("Other sessions removed", event="auth", user_id=user_id, removed_count=removed)
        return removed

