"""
Cover image storage on the local filesystem.

Files land in ``config.upload_dir`` as ``<epoch-millis>-<name>`` where the
name is the client's basename, lowercased, with spaces replaced by dashes.
"""

from __future__ import annotations

import asyncio
import logging
import pathlib
import time

from fastapi import HTTPException, UploadFile, status

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 1024 * 1024


class UploadTooLargeError(Exception):
    pass


def stored_filename(original: str, now_ms: int | None = None) -> str:
    """Build the on-disk name for an uploaded file."""
    # Drop any client-supplied directory components (both separators).
    base = original.replace("\\", "/").rsplit("/", 1)[-1].strip()
    base = "-".join(base.lower().split(" ")) or "upload"
    if base in (".", ".."):
        base = "upload"
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{stamp}-{base}"


async def save_image(file: UploadFile, upload_dir: str, max_bytes: int) -> str:
    """
    Stream ``file`` into ``upload_dir`` and return its ``uploads/...`` URL path.

    Raises ``HTTPException(413)`` when the file exceeds ``max_bytes``; the
    partial file is removed.
    """
    root = pathlib.Path(upload_dir)
    root.mkdir(parents=True, exist_ok=True)
    name = stored_filename(file.filename or "upload")
    target = root / name

    written = 0
    try:
        with open(target, "wb") as fh:
            while True:
                chunk = await file.read(_CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > max_bytes:
                    raise UploadTooLargeError(name)
                await asyncio.to_thread(fh.write, chunk)
    except UploadTooLargeError:
        target.unlink(missing_ok=True)
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds the {max_bytes} byte limit",
        )

    logger.info("Stored upload %s (%d bytes)", name, written)
    return f"uploads/{name}"


def discard_image(image_path: str, upload_dir: str) -> None:
    """Remove a stored upload given the ``uploads/...`` path ``save_image`` returned."""
    target = pathlib.Path(upload_dir) / image_path.rsplit("/", 1)[-1]
    target.unlink(missing_ok=True)
    logger.info("Discarded upload %s", target.name)
