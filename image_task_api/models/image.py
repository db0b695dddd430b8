"""Models describing source images, resized outputs and their metadata records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class ImageSource:
    """Raw bytes of a loaded source plus what we learned about it."""

    buffer: bytes
    name: str
    ext: str
    mime_type: str


@dataclass(frozen=True)
class ProcessedImage:
    """One resized variant, ready to be written to ``output_path``."""

    buffer: bytes
    resolution: str
    fingerprint: str
    format: str
    output_path: str


class ImageRecord(BaseModel):
    """Bookkeeping entry for a persisted derived image."""

    model_config = ConfigDict(frozen=True)

    id: str = ""
    task_id: str
    name: str
    mime_type: str
    resolution: str
    fingerprint: str
    path: str
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @classmethod
    def create(
        cls,
        task_id: str,
        name: str,
        mime_type: str,
        resolution: str,
        fingerprint: str,
        path: str,
    ) -> "ImageRecord":
        return cls(
            task_id=task_id,
            name=name,
            mime_type=mime_type,
            resolution=resolution,
            fingerprint=fingerprint,
            path=path,
        )

    def with_id(self, image_id: str) -> "ImageRecord":
        return self.model_copy(update={"id": image_id})
