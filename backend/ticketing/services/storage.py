"""
Disk storage for uploaded event images.

Files land in ``UPLOAD_DIR/events`` as ``event-<epoch_ms>-<random><ext>``;
events keep only the public reference path (``/uploads/events/<name>``).
"""

import os
import secrets
import shutil
import time
from pathlib import Path

from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from ticketing.core.config import get_settings
from ticketing.core.errors import EventValidationError
from ticketing.core.logging import get_logger

logger = get_logger(__name__)

EVENT_IMAGE_SUBDIR = "events"


def generate_image_name(original_name: str) -> str:
    ext = os.path.splitext(original_name or "")[1].lower()
    unique_suffix = f"{int(time.time() * 1000)}-{secrets.randbelow(10**9)}"
    return f"event-{unique_suffix}{ext}"


def _write_file(upload: UploadFile, destination: Path) -> int:
    destination.parent.mkdir(parents=True, exist_ok=True)
    upload.file.seek(0)
    with destination.open("wb") as out:
        shutil.copyfileobj(upload.file, out)
    return destination.stat().st_size


async def save_event_image(upload: UploadFile) -> str:
    """Persist ``upload`` and return its reference path."""
    settings = get_settings()
    ext = os.path.splitext(upload.filename or "")[1].lower()
    if ext not in settings.ALLOWED_IMAGE_EXTENSIONS:
        raise EventValidationError.single(
            "image",
            "Image must be one of: " + ", ".join(settings.ALLOWED_IMAGE_EXTENSIONS),
        )

    name = generate_image_name(upload.filename)
    destination = Path(settings.UPLOAD_DIR) / EVENT_IMAGE_SUBDIR / name
    size = await run_in_threadpool(_write_file, upload, destination)

    logger.info("event_image_stored", filename=name, size_bytes=size)
    return f"{settings.UPLOAD_URL_PREFIX}/{EVENT_IMAGE_SUBDIR}/{name}"


def delete_event_image(reference: str) -> None:
    """Remove a stored image by reference path; missing files are ignored."""
    settings = get_settings()
    prefix = f"{settings.UPLOAD_URL_PREFIX}/"
    if not reference.startswith(prefix):
        return
    path = Path(settings.UPLOAD_DIR) / reference[len(prefix):]
    try:
        path.unlink()
    except FileNotFoundError:
        logger.warning("event_image_missing", path=str(path))
