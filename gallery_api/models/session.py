"""
Active login session record (active_sessions.json).
"""
from typing import Optional

from gallery_api.models.base import Record


class ActiveSession(Record):
    session_id: str
    user_id: str
    device_info: str
    ip_address: Optional[str] = None
    login_timestamp: str
    last_active_timestamp: str
