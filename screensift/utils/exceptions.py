"""Custom exceptions for ScreenSift application."""


class ScreenSiftError(Exception):
    """Base exception for all ScreenSift errors."""

    pass


class ValidationError(ScreenSiftError):
    """Exception raised when a request carries unusable input."""

    pass


class InvalidUploadError(ValidationError):
    """Exception raised when an upload is missing, empty, too large or not an image."""

    pass


class NotFoundError(ScreenSiftError):
    """Base exception for missing resources."""

    pass


class ScreenshotNotFoundError(NotFoundError):
    """Exception raised when no screenshot row exists for an id."""

    def __init__(self, screenshot_id: object) -> None:
        self.screenshot_id = screenshot_id
        super().__init__(f"Screenshot {screenshot_id} not found")


class BlobNotFoundError(NotFoundError):
    """Exception raised when the blob store has no object for a key."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"File not found in storage: {key}")


class ClassificationError(ScreenSiftError):
    """Exception raised when the vision classifier call fails."""

    pass


class StorageError(ScreenSiftError):
    """Base exception for storage failures."""

    pass


class BlobStorageError(StorageError):
    """Exception raised when the blob store cannot read, write or delete."""

    pass
