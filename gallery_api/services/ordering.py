"""
Ordering and grouping of media documents.

Gallery and private folder lists are kept newest upload first, trash newest
deletion first. Documents with missing or malformed timestamps sort last.
"""
from datetime import datetime, timezone
from itertools import groupby
from typing import Any, Dict, List

from gallery_api.models.base import parse_timestamp

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def timestamp_of(doc: Dict[str, Any], key: str) -> datetime:
    value = doc.get(key)
    if not isinstance(value, str):
        return _OLDEST
    try:
        return parse_timestamp(value)
    except ValueError:
        return _OLDEST


def by_upload_desc(docs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(docs, key=lambda d: timestamp_of(d, "uploadTimestamp"), reverse=True)


def by_deletion_desc(docs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(docs, key=lambda d: timestamp_of(d, "deletionTimestamp"), reverse=True)


def sort_media(docs: List[Dict[str, Any]], order: str) -> List[Dict[str, Any]]:
    """
    Sort gallery documents by a gallery sort preference.

    name_* compares original filenames case-insensitively.
    """
    if order == "chronological_asc":
        return sorted(docs, key=lambda d: timestamp_of(d, "uploadTimestamp"))
    if order == "name_asc":
        return sorted(docs, key=lambda d: str(d.get("originalFilename", "")).lower())
    if order == "name_desc":
        return sorted(docs, key=lambda d: str(d.get("originalFilename", "")).lower(), reverse=True)
    return by_upload_desc(docs)


def group_by_date(docs: List[Dict[str, Any]], key: str) -> List[Dict[str, Any]]:
    """
    Group consecutive documents by the UTC calendar date of ``key``.
    Input order is preserved.
    """
    def date_of(doc):
        ts = timestamp_of(doc, key)
        return "unknown" if ts == _OLDEST else ts.date().isoformat()

    return [
        {"date": date, "items": list(items)}
        for date, items in groupby(docs, key=date_of)
    ]
