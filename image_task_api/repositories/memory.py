"""In-memory repositories for local runs and tests."""

from __future__ import annotations

from itertools import count
from threading import Lock
from typing import Dict, List, Optional

from image_task_api.core.errors import NotFoundError
from image_task_api.models.image import ImageRecord
from image_task_api.models.task import Task


class InMemoryTaskRepository:
    """Thread-safe task registry. State is lost when the process exits."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._tasks: Dict[str, Task] = {}
        self._ids = count(1)

    def save(self, task: Task) -> Task:
        with self._lock:
            saved = task if task.id else task.with_id(str(next(self._ids)))
            self._tasks[saved.id] = saved
            return saved

    def find_by_id(self, task_id: str) -> Optional[Task]:
        with self._lock:
            return self._tasks.get(task_id)

    def update(self, task: Task) -> Task:
        with self._lock:
            if task.id not in self._tasks:
                raise NotFoundError(f"Task {task.id} not found")
            self._tasks[task.id] = task
            return task

    def update_if_pending(self, task: Task) -> Optional[Task]:
        with self._lock:
            current = self._tasks.get(task.id)
            if current is None or not current.is_pending():
                return None
            self._tasks[task.id] = task
            return task

    def delete(self, task_id: str) -> bool:
        with self._lock:
            return self._tasks.pop(task_id, None) is not None

    def find_all(self) -> List[Task]:
        with self._lock:
            return list(self._tasks.values())


class InMemoryImageRepository:
    """Thread-safe image metadata registry keyed by image id."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._images: Dict[str, ImageRecord] = {}
        self._ids = count(1)

    def save(self, image: ImageRecord) -> ImageRecord:
        with self._lock:
            saved = image if image.id else image.with_id(str(next(self._ids)))
            self._images[saved.id] = saved
            return saved

    def find_by_id(self, image_id: str) -> Optional[ImageRecord]:
        with self._lock:
            return self._images.get(image_id)

    def find_by_task_id(self, task_id: str) -> List[ImageRecord]:
        with self._lock:
            return [image for image in self._images.values() if image.task_id == task_id]

    def delete_by_task_id(self, task_id: str) -> int:
        with self._lock:
            doomed = [image_id for image_id, image in self._images.items() if image.task_id == task_id]
            for image_id in doomed:
                del self._images[image_id]
            return len(doomed)
