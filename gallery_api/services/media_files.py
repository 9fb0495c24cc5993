"""
Uploaded media files on local disk.

Records only keep ``filePath`` (``/uploads/<filename>``); the file itself
lives in UPLOADS_DIR under its basename.
"""
import logging
import math
import os
from pathlib import Path
from typing import Optional

import aiofiles
import aiofiles.os
from fastapi import UploadFile

from gallery_api.config import get_settings
from gallery_api.exceptions import PayloadTooLargeError

logger = logging.getLogger("gallery_api.media_files")

# 업로드 스트리밍 단위
CHUNK_SIZE = 1024 * 1024

PUBLIC_PREFIX = "/uploads"

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB", "TB")


def format_bytes(size: int, decimals: int = 2) -> str:
    """
    Human readable size, base 1024.

    Example:
        format_bytes(0) -> "0 Bytes", format_bytes(1536) -> "1.5 KB"
    """
    if size <= 0:
        return "0 Bytes"
    index = min(int(math.floor(math.log(size, 1024))), len(_SIZE_UNITS) - 1)
    value = round(size / (1024 ** index), decimals)
    text = f"{value:.{decimals}f}".rstrip("0").rstrip(".") if decimals > 0 else str(int(value))
    return f"{text} {_SIZE_UNITS[index]}"


class MediaFileStorage:
    """Save, resolve and delete media files under UPLOADS_DIR."""

    def __init__(self, uploads_dir: Optional[Path] = None):
        self.uploads_dir = Path(uploads_dir) if uploads_dir else get_settings().uploads_dir

    @staticmethod
    def public_path(filename: str) -> str:
        return f"{PUBLIC_PREFIX}/{filename}"

    def resolve(self, file_path: Optional[str]) -> Optional[Path]:
        """
        Map a stored ``filePath`` to the file on disk.

        Only the basename is used; paths containing ".." are refused.
        """
        if not file_path or ".." in file_path:
            return None
        name = Path(file_path).name
        if not name:
            return None
        return self.uploads_dir / name

    async def save(self, upload: UploadFile, filename: str, max_bytes: Optional[int] = None) -> int:
        """
        Stream an upload to disk.

        Args:
            upload: Incoming multipart file
            filename: Target basename (already unique)
            max_bytes: Size limit; the partial file is removed when exceeded

        Returns:
            Number of bytes written

        Raises:
            PayloadTooLargeError: If the file exceeds max_bytes
        """
        self.uploads_dir.mkdir(parents=True, exist_ok=True)
        target = self.uploads_dir / filename
        written = 0
        try:
            async with aiofiles.open(target, "wb") as out:
                while True:
                    chunk = await upload.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if max_bytes is not None and written > max_bytes:
                        raise PayloadTooLargeError(
                            f"File {upload.filename} exceeds {max_bytes} bytes"
                        )
                    await out.write(chunk)
        except BaseException:
            if target.exists():
                target.unlink()
            raise
        return written

    async def delete(self, file_path: Optional[str]) -> bool:
        """
        Delete the file behind a ``filePath``.

        Returns:
            True when the file is gone (including when it never existed),
            False when the path was refused or the deletion failed.
        """
        target = self.resolve(file_path)
        if target is None:
            logger.error(
                "Refused to delete file outside uploads directory",
                extra={"event": "media", "file_path": file_path},
            )
            return False
        try:
            await aiofiles.os.remove(target)
        except FileNotFoundError:
            logger.warning(
                "File already missing, treating as deleted",
                extra={"event": "media", "file_path": file_path},
            )
            return True
        except OSError as e:
            logger.error(
                "File deletion failed",
                extra={"event": "media", "file_path": file_path, "error": str(e)},
            )
            return False
        return True

    def directory_size(self) -> int:
        """Total size of every file under UPLOADS_DIR (recursive)."""
        if not self.uploads_dir.is_dir():
            return 0
        total = 0
        for root, _dirs, files in os.walk(self.uploads_dir):
            for name in files:
                try:
                    total += os.path.getsize(os.path.join(root, name))
                except OSError:
                    continue
        return total
