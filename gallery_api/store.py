"""
JSON document store.

Every collection lives in its own JSON document under ``DATA_DIR``.
Reads load the whole document, writes replace it atomically.

동시성:
- 컬렉션마다 asyncio.Lock 하나
- session()은 락을 정렬된 순서로 잡아 교착 상태를 피함
- 예외가 나면 아무것도 쓰지 않음
"""
import asyncio
import json
import logging
import os
import tempfile
from contextlib import asynccontextmanager
from functools import lru_cache
from pathlib import Path
from typing import Any, AsyncGenerator, Dict, Union

import aiofiles

from gallery_api.config import get_settings
from gallery_api.exceptions import StoreError
from gallery_api.utils.prometheus_metrics import store_errors_total

_logger = logging.getLogger("gallery_api.store")

Document = Union[list, dict]

# collection name -> (file name, default factory)
COLLECTIONS: Dict[str, tuple] = {
    "users": ("users.json", list),
    "gallery": ("gallery.json", list),
    "trash": ("trash.json", list),
    "albums": ("albums.json", list),
    "favorites": ("favorites.json", dict),
    "private_folder": ("private_folder.json", list),
    "private_passwords": ("private_passwords.json", dict),
    "active_sessions": ("active_sessions.json", list),
    "shared_links": ("shared_links.json", list),
    "user_specific_shares": ("user_specific_shares.json", list),
    "offline_items": ("offline_items.json", dict),
}

FILENAME_TO_COLLECTION = {filename: name for name, (filename, _) in COLLECTIONS.items()}


def _default_for(name: str) -> Document:
    return COLLECTIONS[name][1]()


class JsonDocumentStore:
    """Read/write access to the JSON collections of one data directory."""

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self._locks: Dict[str, asyncio.Lock] = {name: asyncio.Lock() for name in COLLECTIONS}

    def path_for(self, name: str) -> Path:
        if name not in COLLECTIONS:
            raise KeyError(f"Unknown collection: {name}")
        return self.data_dir / COLLECTIONS[name][0]

    # ============== Raw IO (callers hold the lock) ==============

    async def _read(self, name: str) -> Document:
        path = self.path_for(name)
        default = _default_for(name)
        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                raw = await f.read()
        except FileNotFoundError:
            await self._write(name, default)
            return default
        except OSError as e:
            self._fail("read", name, e)

        if not raw.strip():
            await self._write(name, default)
            return default

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            self._fail("parse", name, e)

        if not isinstance(data, type(default)):
            self._fail("parse", name, TypeError(f"expected {type(default).__name__}, got {type(data).__name__}"))
        return data

    async def _write(self, name: str, data: Document) -> None:
        path = self.path_for(name)
        payload = json.dumps(data, indent=2, ensure_ascii=False)
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.data_dir, prefix=f".{path.name}.", suffix=".tmp")
            os.close(fd)
            try:
                async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                    await f.write(payload)
                os.replace(tmp_path, path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            self._fail("write", name, e)

    def _fail(self, operation: str, name: str, exc: Exception):
        store_errors_total.labels(operation=operation).inc()
        _logger.error(
            "Store error",
            extra={
                "event": "store",
                "collection": name,
                "operation": operation,
                "error_type": type(exc).__name__,
                "error": str(exc)[:200],
            },
        )
        raise StoreError(f"Could not {operation} {COLLECTIONS[name][0]}") from exc

    # ============== Public API ==============

    async def read(self, name: str) -> Document:
        """Load one collection."""
        async with self._locks[name]:
            return await self._read(name)

    async def write(self, name: str, data: Document) -> None:
        """Replace one collection."""
        async with self._locks[name]:
            await self._write(name, data)

    @asynccontextmanager
    async def session(self, *names: str) -> AsyncGenerator[Dict[str, Any], None]:
        """
        Load several collections under their locks and write them back on success.

        Usage:
            async with store.session("gallery", "trash") as docs:
                docs["trash"].extend(...)

        The yielded dict may be mutated in place or have entries reassigned.
        Collections are written back in the order they were named.
        """
        ordered = list(dict.fromkeys(names))
        for name in ordered:
            if name not in COLLECTIONS:
                raise KeyError(f"Unknown collection: {name}")

        acquired = []
        try:
            for name in sorted(ordered):
                await self._locks[name].acquire()
                acquired.append(name)

            docs = {name: await self._read(name) for name in ordered}
            yield docs
            for name in ordered:
                await self._write(name, docs[name])
        finally:
            for name in reversed(acquired):
                self._locks[name].release()

    async def ensure_collections(self) -> None:
        """Create every missing collection file with its default content."""
        for name in COLLECTIONS:
            if not self.path_for(name).exists():
                await self.write(name, _default_for(name))

    def is_writable(self) -> bool:
        """Used by health checks."""
        return self.data_dir.is_dir() and os.access(self.data_dir, os.W_OK)


@lru_cache()
def get_store() -> JsonDocumentStore:
    """Process-wide store bound to the configured data directory."""
    return JsonDocumentStore(get_settings().data_dir)
