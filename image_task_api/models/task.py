"""Task entity and its lifecycle transitions."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class TaskStatus(str, Enum):
    """Possible states for an image processing task."""

    pending = "pending"
    completed = "completed"
    failed = "failed"


class TaskImage(BaseModel):
    """A derived variant as reported on the task."""

    model_config = ConfigDict(frozen=True)

    resolution: str
    path: str


class Task(BaseModel):
    """One request to derive resized variants from a source image.

    Instances are immutable; transitions return a new value and leave the
    original untouched. ``id`` stays empty until a repository saves the task.
    """

    model_config = ConfigDict(frozen=True)

    id: str = ""
    status: TaskStatus = TaskStatus.pending
    price: float
    original_path: str
    images: List[TaskImage] = Field(default_factory=list)
    error: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @classmethod
    def create(cls, original_path: str, price: float) -> "Task":
        """Build a pending task. Inputs are validated by the caller."""

        now = datetime.utcnow()
        return cls(
            status=TaskStatus.pending,
            price=price,
            original_path=original_path,
            images=[],
            error=None,
            created_at=now,
            updated_at=now,
        )

    def mark_as_completed(self, images: List[TaskImage]) -> "Task":
        """Return a completed copy carrying the generated images."""

        return self.model_copy(
            update={
                "status": TaskStatus.completed,
                "images": list(images),
                "error": None,
                "updated_at": datetime.utcnow(),
            }
        )

    def mark_as_failed(self, error: str) -> "Task":
        """Return a failed copy carrying the error message."""

        return self.model_copy(
            update={
                "status": TaskStatus.failed,
                "images": [],
                "error": error,
                "updated_at": datetime.utcnow(),
            }
        )

    def with_id(self, task_id: str) -> "Task":
        return self.model_copy(update={"id": task_id})

    def is_pending(self) -> bool:
        return self.status == TaskStatus.pending

    def is_completed(self) -> bool:
        return self.status == TaskStatus.completed

    def is_failed(self) -> bool:
        return self.status == TaskStatus.failed


class CreateTaskRequest(BaseModel):
    """Payload accepted by the task creation endpoint."""

    source: str = Field(..., description="URL or local path of the image to process.")


class TaskResponse(BaseModel):
    """API representation of a task."""

    task_id: str
    status: TaskStatus
    price: float
    images: Optional[List[TaskImage]] = None
    error: Optional[str] = None

    @classmethod
    def from_task(cls, task: Task) -> "TaskResponse":
        """Expose images only for completed tasks and the error only for failed ones."""

        return cls(
            task_id=task.id,
            status=task.status,
            price=task.price,
            images=list(task.images) if task.is_completed() else None,
            error=task.error if task.is_failed() else None,
        )
