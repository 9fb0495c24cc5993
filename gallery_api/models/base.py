"""
Base record for documents stored in the JSON collections.
"""
from datetime import datetime, timezone
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """
    Parse a stored ISO-8601 timestamp.
    Naive values are treated as UTC.
    """
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class Record(BaseModel):
    """
    On-disk record.

    Attributes are snake_case in Python and camelCase in the JSON documents.
    Unknown keys are kept so documents written by other versions survive a
    load/save cycle.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_doc(self) -> Dict[str, Any]:
        """Serialize for storage."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
