"""
Domain errors for the product photo set and carousel.

Every error carries a stable ``code`` plus keyword context; ``to_dict()`` is
what the API layer and the logs see.

Usage:
    raise ImageLimitExceeded(limit=5, attempted=6)
"""
from __future__ import annotations

from typing import Any, Dict


class PhotoSetError(Exception):
    """Base class for photo set and carousel failures."""

    code = "photo_set_error"
    default_message = "Photo set operation failed."

    def __init__(self, message: str | None = None, **context: Any) -> None:
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "detail": self.message, **self.context}


# ---------------------------------------------------------------------------
# Validation (recoverable, no state change)
# ---------------------------------------------------------------------------

class ValidationError(PhotoSetError):
    code = "validation_error"
    default_message = "Request failed validation."

    def __init__(self, message: str | None = None, *, field: str | None = None, **context: Any) -> None:
        if field is not None:
            context["field"] = field
        super().__init__(message, **context)
        self.field = field


class InvalidFormat(ValidationError):
    code = "invalid_format"
    default_message = "Only JPEG, PNG and WebP images are allowed."


class FileTooLarge(ValidationError):
    code = "file_too_large"
    default_message = "Image file is larger than the upload limit."


class DecodeError(ValidationError):
    code = "decode_error"
    default_message = "Uploaded bytes are not a readable image."


class ImageLimitExceeded(ValidationError):
    code = "image_limit_exceeded"
    default_message = "A product cannot hold more photos."


class UnknownImageReference(ValidationError):
    code = "unknown_image_reference"
    default_message = "Photo reference is not part of the current photo set."


class SessionClosedError(ValidationError):
    code = "session_closed"
    default_message = "The edit session is no longer open."


# ---------------------------------------------------------------------------
# Conflicts (caller must refresh and retry)
# ---------------------------------------------------------------------------

class ConflictError(PhotoSetError):
    code = "conflict"
    default_message = "The resource changed since it was read."


class StaleSnapshotError(ConflictError):
    code = "stale_snapshot"
    default_message = "The photo set was changed by another commit; reopen the session."


class SlotTaken(ConflictError):
    code = "slot_taken"
    default_message = "Carousel position is already assigned to another product."

    def __init__(self, holder_id: int, position: int | None = None, message: str | None = None) -> None:
        super().__init__(message, holder_id=holder_id, position=position)
        self.holder_id = holder_id
        self.position = position


# ---------------------------------------------------------------------------
# Storage / lookup
# ---------------------------------------------------------------------------

class StorageError(PhotoSetError):
    code = "storage_error"
    default_message = "Rendition storage is unavailable."


class StorageWriteError(StorageError):
    code = "storage_write_error"
    default_message = "Could not write image renditions."


class NotFoundError(PhotoSetError):
    code = "not_found"
    default_message = "Requested object does not exist."
