"""
Album record (albums.json).
"""
from typing import List

from pydantic import Field

from gallery_api.models.base import Record


class Album(Record):
    """Named list of gallery item ids. Ids are resolved at read time."""

    id: str
    owner_user_id: str
    name: str
    item_ids: List[str] = Field(default_factory=list)
