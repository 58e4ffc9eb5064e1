"""Media intake: admission check on type/size, then write to the upload dir."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from timecapsule.security.sanitizer import InputSanitizer

logger = logging.getLogger(__name__)

UPLOADS_URL_PREFIX = "/uploads"
_CHUNK_SIZE = 1024 * 1024


class UploadRejected(ValueError):
    pass


@dataclass(frozen=True)
class StoredFile:
    filename: str
    url: str
    content_type: str
    size: int
    path: Path


def _format_limit(max_bytes: int) -> str:
    if max_bytes % (1024 * 1024) == 0:
        return f"{max_bytes // (1024 * 1024)} MB"
    return f"{max_bytes} bytes"


async def save_upload(file: UploadFile, upload_dir: Path, max_bytes: int) -> StoredFile:
    content_type = (file.content_type or "").strip().lower()
    if not InputSanitizer.is_allowed_media_type(content_type):
        raise UploadRejected("Only images/audio/video allowed")

    # the multipart parser has already spooled the body; this caps the in-memory copy
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await file.read(_CHUNK_SIZE)
        if not chunk:
            break
        total += len(chunk)
        if total > max_bytes:
            raise UploadRejected(f"File too large (max {_format_limit(max_bytes)})")
        chunks.append(chunk)

    if total == 0:
        raise UploadRejected("Uploaded file is empty")

    filename = f"{int(time.time() * 1000)}-{InputSanitizer.sanitize_filename(file.filename)}"
    path = upload_dir / filename

    await run_in_threadpool(_write_file, path, b"".join(chunks))
    logger.info("Stored upload %s (%d bytes, %s)", filename, total, content_type)

    return StoredFile(
        filename=filename,
        url=f"{UPLOADS_URL_PREFIX}/{filename}",
        content_type=content_type,
        size=total,
        path=path,
    )


def _write_file(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)


def remove_file(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass


def remove_media_files(upload_dir: Path, urls) -> None:
    """Delete the files behind /uploads/<name> URLs; other URLs are ignored."""
    prefix = UPLOADS_URL_PREFIX + "/"
    for url in urls:
        if url.startswith(prefix):
            remove_file(upload_dir / url[len(prefix):])
