"""Error types raised by the task pipeline."""

from __future__ import annotations

from typing import Optional


class ImageTaskError(Exception):
    """Base class for pipeline errors."""


class ValidationError(ImageTaskError):
    """Input rejected before any I/O happened."""


class SourceLoadError(ImageTaskError):
    """The source image could not be read."""


class FetchError(SourceLoadError):
    """A remote source could not be downloaded."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransformError(ImageTaskError):
    """The source bytes could not be decoded, resized or encoded."""


class StorageError(ImageTaskError):
    """A resized image could not be written."""


class NotFoundError(ImageTaskError):
    """A referenced task or image does not exist."""
