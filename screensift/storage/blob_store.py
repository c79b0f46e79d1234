"""Blob storage for screenshot bytes."""

import asyncio
import hashlib
import json
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Protocol

import structlog

from screensift.utils.exceptions import BlobNotFoundError, BlobStorageError

logger = structlog.get_logger(__name__)

METADATA_SUFFIX = ".meta.json"


@dataclass
class StoredBlob:
    """Bytes plus the HTTP metadata stored with them."""

    data: bytes
    content_type: str
    cache_control: str | None = None
    etag: str | None = None
    custom_metadata: dict[str, str] = field(default_factory=dict)

    @property
    def size(self) -> int:
        return len(self.data)


class BlobStore(Protocol):
    """Key/value byte store."""

    async def put(
        self,
        key: str,
        data: bytes,
        content_type: str,
        cache_control: str | None = None,
        custom_metadata: dict[str, str] | None = None,
    ) -> StoredBlob:
        """Store bytes under key, replacing any existing object."""
        ...

    async def get(self, key: str) -> StoredBlob:
        """Fetch the object stored under key. Raises BlobNotFoundError."""
        ...

    async def delete(self, key: str) -> None:
        """Delete the object under key. Missing keys are ignored."""
        ...


def compute_etag(data: bytes) -> str:
    """Quoted MD5 hex digest, as used in the ETag header."""
    return f'"{hashlib.md5(data).hexdigest()}"'  # noqa: S324


class LocalBlobStore:
    """
    Blob store backed by a local directory.

    Keys map to relative paths under the root; HTTP metadata is kept in a
    ``<file>.meta.json`` sidecar next to the data file.
    """

    def __init__(self, root: Path) -> None:
        """
        Initialize local blob store.

        Args:
            root: Directory holding all blobs
        """
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path_for(self, key: str) -> Path:
        """Resolve key to a path inside the root, rejecting traversal."""
        relative = PurePosixPath(key)
        if relative.is_absolute() or ".." in relative.parts or not relative.parts:
            raise BlobStorageError(f"Invalid blob key: {key!r}")
        return self.root.joinpath(*relative.parts)

    @staticmethod
    def _metadata_path(path: Path) -> Path:
        return path.with_name(path.name + METADATA_SUFFIX)

    async def put(
        self,
        key: str,
        data: bytes,
        content_type: str,
        cache_control: str | None = None,
        custom_metadata: dict[str, str] | None = None,
    ) -> StoredBlob:
        path = self._path_for(key)
        blob = StoredBlob(
            data=data,
            content_type=content_type,
            cache_control=cache_control,
            etag=compute_etag(data),
            custom_metadata=dict(custom_metadata or {}),
        )
        metadata = {
            "content_type": blob.content_type,
            "cache_control": blob.cache_control,
            "etag": blob.etag,
            "custom_metadata": blob.custom_metadata,
        }

        def _write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
            self._metadata_path(path).write_text(json.dumps(metadata), encoding="utf-8")

        try:
            await asyncio.to_thread(_write)
        except OSError as e:
            raise BlobStorageError(f"Failed to write blob {key}: {e}") from e

        logger.debug("blob_stored", key=key, size=len(data))
        return blob

    async def get(self, key: str) -> StoredBlob:
        path = self._path_for(key)

        def _read() -> StoredBlob:
            data = path.read_bytes()
            metadata_path = self._metadata_path(path)
            metadata = (
                json.loads(metadata_path.read_text(encoding="utf-8"))
                if metadata_path.exists()
                else {}
            )
            return StoredBlob(
                data=data,
                content_type=metadata.get("content_type") or "application/octet-stream",
                cache_control=metadata.get("cache_control"),
                etag=metadata.get("etag") or compute_etag(data),
                custom_metadata=metadata.get("custom_metadata") or {},
            )

        try:
            return await asyncio.to_thread(_read)
        except FileNotFoundError as e:
            raise BlobNotFoundError(key) from e
        except OSError as e:
            raise BlobStorageError(f"Failed to read blob {key}: {e}") from e

    async def delete(self, key: str) -> None:
        path = self._path_for(key)

        def _remove() -> None:
            path.unlink(missing_ok=True)
            self._metadata_path(path).unlink(missing_ok=True)

        try:
            await asyncio.to_thread(_remove)
        except OSError as e:
            raise BlobStorageError(f"Failed to delete blob {key}: {e}") from e

        logger.debug("blob_deleted", key=key)
