"""
Share records (shared_links.json, user_specific_shares.json).

Revocation is soft: links become inactive and direct shares become
"revoked", the records are kept.
"""
from typing import Literal, Optional

from gallery_api.models.base import Record


class SharedLink(Record):
    """Public link to one item, viewable without authentication."""

    share_id: str
    owner_user_id: str
    item_id: str
    creation_timestamp: str
    is_active: bool = True


class UserSpecificShare(Record):
    """An item shared directly with another registered user."""

    share_instance_id: str
    owner_user_id: str
    item_id: str
    target_user_id: str
    share_timestamp: str
    message: Optional[str] = None
    status: Literal["active", "revoked"] = "active"
