"""Storage key generation for uploaded screenshots."""

import re
from datetime import datetime, timezone
from pathlib import PurePosixPath
from uuid import uuid4

DEFAULT_EXTENSION = "jpg"

_EXTENSION_PATTERN = re.compile(r"[A-Za-z0-9]{1,10}")


def file_extension(filename: str) -> str:
    """Extension of the original filename without the dot, or ``jpg``."""
    ext = PurePosixPath(filename.replace("\\", "/")).suffix.lstrip(".")
    if not _EXTENSION_PATTERN.fullmatch(ext):
        return DEFAULT_EXTENSION
    return ext


def generate_storage_key(filename: str, now: datetime | None = None) -> str:
    """
    Build a fresh blob key: ``screenshots/{year}/{month}/{uuid}.{ext}``.

    Every call draws a new UUID, so keys are never reused even for the same
    filename uploaded twice in the same month.

    Args:
        filename: Original upload filename (used for the extension only)
        now: Upload time (defaults to current UTC time)

    Returns:
        Storage key
    """
    now = now or datetime.now(timezone.utc)
    return f"screenshots/{now.year}/{now.month:02d}/{uuid4()}.{file_extension(filename)}"
