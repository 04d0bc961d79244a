"""Avatar image storage on the local filesystem.

Learn: Uploads are written under <media_dir>/avatars with a random name
(the client's filename is never used on disk) and served back through
the /media static mount. Only a few image types are accepted.
"""

import uuid
from pathlib import Path
from typing import Optional

import structlog
from fastapi import UploadFile
from starlette.concurrency import run_in_threadpool

from tasktracker.config import settings
from tasktracker.errors import FieldValidationError

logger = structlog.get_logger()

ALLOWED_TYPES: dict[str, str] = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


def avatar_dir() -> Path:
    return Path(settings.media_dir) / "avatars"


async def save_avatar(upload: UploadFile) -> str:
    """Validate and store an uploaded avatar. Returns its public URL.

    Raises:
        FieldValidationError: on an unsupported type, an empty file,
            or a file larger than settings.avatar_max_bytes
    """
    ext = ALLOWED_TYPES.get((upload.content_type or "").lower())
    if not ext:
        raise FieldValidationError("avatar", "Avatar must be a PNG, JPEG, GIF or WebP image")

    # Read one byte past the limit to detect oversize files without loading more.
    data = await upload.read(settings.avatar_max_bytes + 1)
    if not data:
        raise FieldValidationError("avatar", "Avatar file is empty")
    if len(data) > settings.avatar_max_bytes:
        raise FieldValidationError("avatar", "Avatar file is too large")

    filename = f"{uuid.uuid4().hex}{ext}"
    target = avatar_dir() / filename

    def _write() -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)

    await run_in_threadpool(_write)
    logger.info("avatars.stored", filename=filename, size=len(data))
    return f"{settings.media_url.rstrip('/')}/avatars/{filename}"


def _stored_path(url: str) -> Optional[Path]:
    """Map a public avatar URL back to its file, or None if it isn't one of ours."""
    prefix = f"{settings.media_url.rstrip('/')}/avatars/"
    if not url or not url.startswith(prefix):
        return None
    name = url[len(prefix):]
    if not name or "/" in name or name.startswith("."):
        return None
    return avatar_dir() / name


async def delete_avatar(url: Optional[str]) -> None:
    """Remove a stored avatar. Unknown URLs and missing files are ignored."""
    path = _stored_path(url)
    if path is None:
        return
    await run_in_threadpool(path.unlink, missing_ok=True)
    logger.info("avatars.deleted", filename=path.name)
