"""Persistence ports used by the use cases."""

from __future__ import annotations

from typing import List, Optional, Protocol

from image_task_api.models.image import ImageRecord
from image_task_api.models.task import Task


class TaskRepository(Protocol):
    def save(self, task: Task) -> Task:
        """Persist a new task and return it with an assigned id."""

    def find_by_id(self, task_id: str) -> Optional[Task]:
        ...

    def update(self, task: Task) -> Task:
        """Overwrite a stored task; raises ``NotFoundError`` for unknown ids."""

    def update_if_pending(self, task: Task) -> Optional[Task]:
        """Atomically overwrite a task only while its stored status is pending.

        Returns the stored value, or ``None`` when the task is missing or already terminal.
        """

    def delete(self, task_id: str) -> bool:
        ...

    def find_all(self) -> List[Task]:
        ...


class ImageRepository(Protocol):
    def save(self, image: ImageRecord) -> ImageRecord:
        """Persist an image record and return it with an assigned id."""

    def find_by_id(self, image_id: str) -> Optional[ImageRecord]:
        ...

    def find_by_task_id(self, task_id: str) -> List[ImageRecord]:
        ...

    def delete_by_task_id(self, task_id: str) -> int:
        """Remove every record of a task and return how many were removed."""
