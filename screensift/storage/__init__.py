"""Blob storage backends."""

from screensift.storage.blob_store import BlobStore, LocalBlobStore, StoredBlob

__all__ = ["BlobStore", "LocalBlobStore", "StoredBlob"]
