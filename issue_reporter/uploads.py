"""Writing submitted attachments to the upload directory."""

import logging
import os
import random
import time
from dataclasses import dataclass
from typing import Optional

from fastapi import Request, UploadFile

from issue_reporter import config

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = frozenset({
    "image/jpeg", "image/png", "image/gif",
    "video/mp4", "video/webm", "video/quicktime",
    "audio/mpeg", "audio/wav", "audio/ogg", "audio/webm",
    "application/pdf", "text/plain", "text/csv",
    "application/zip", "application/x-zip-compressed",
})

CHUNK_SIZE = 1024 * 1024


class UploadRejectedError(Exception):
    """Raised when an upload has a disallowed type or exceeds the size cap."""

    pass


@dataclass
class StoredUpload:
    filename: str  # as sent by the client
    path: str
    mime_type: str
    size: int


# Dependency to get the upload directory configured for this app
def get_upload_dir(request: Request) -> str:
    return request.app.state.upload_dir


def _base_mime_type(content_type: Optional[str]) -> str:
    # "video/webm;codecs=vp9,opus" -> "video/webm"
    return (content_type or "application/octet-stream").split(";")[0].strip().lower()


def unique_name(original: str) -> str:
    """Timestamp plus random suffix, keeping the original extension."""
    suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
    return suffix + os.path.splitext(original)[1]


async def save_upload(
    upload: UploadFile,
    upload_dir: str,
    max_size: int = config.MAX_UPLOAD_SIZE,
) -> StoredUpload:
    """Stream one upload to disk, removing the partial file on failure."""
    original = upload.filename or "upload"
    mime_type = _base_mime_type(upload.content_type)
    if mime_type not in ALLOWED_MIME_TYPES:
        raise UploadRejectedError(
            "Invalid file type. Only images, videos, audios, and specific "
            "document types are allowed."
        )

    path = os.path.join(upload_dir, unique_name(original))
    size = 0
    try:
        with open(path, "wb") as f:
            while chunk := await upload.read(CHUNK_SIZE):
                size += len(chunk)
                if size > max_size:
                    raise UploadRejectedError(f"File {original} exceeds the maximum upload size")
                f.write(chunk)
    except BaseException:
        remove_files([path])
        raise

    return StoredUpload(filename=original, path=path, mime_type=mime_type, size=size)


async def save_uploads(uploads: list[UploadFile], upload_dir: str, written: list[str]) -> list[StoredUpload]:
    """Save uploads in order, appending each written path to ``written``."""
    stored = []
    for upload in uploads:
        item = await save_upload(upload, upload_dir)
        written.append(item.path)
        stored.append(item)
    logger.info("Stored %d upload(s)", len(stored), extra={"upload_dir": upload_dir})
    return stored


def remove_files(paths: list[str]) -> None:
    """Best-effort deletion; failures are logged and never raised."""
    for path in paths:
        try:
            os.remove(path)
        except FileNotFoundError:
            continue
        except OSError:
            logger.exception("Error deleting file", extra={"path": path})
