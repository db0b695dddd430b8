"""Fire-and-forget launching of the image pipeline."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from image_task_api.core.logging import get_logger
from image_task_api.services.use_cases import ProcessImageUseCase

logger = get_logger(__name__)


class TaskDispatcher:
    """Hands ``(task_id, source)`` to a background worker without waiting for it.

    ``thread`` mode runs the pipeline on a local thread pool; ``celery`` mode
    enqueues it for a Celery worker. Nothing is persisted in ``thread`` mode, so
    work in flight at shutdown is lost.
    """

    def __init__(self, process_image: ProcessImageUseCase, mode: str = "thread", max_workers: int = 4) -> None:
        if mode not in ("thread", "celery"):
            raise ValueError(f"Unknown dispatch mode: {mode}")
        self.mode = mode
        self._process_image = process_image
        self._executor: Optional[ThreadPoolExecutor] = None
        if mode == "thread":
            self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="image-task")

    def dispatch(self, task_id: str, source: str) -> None:
        if self._executor is not None:
            self._executor.submit(self._run, task_id, source)
        else:
            from image_task_api.tasks.image_tasks import process_task

            process_task.delay(task_id=task_id, source=source)
        logger.info("image_processing_dispatched", task_id=task_id, mode=self.mode)

    def shutdown(self, wait: bool = True) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait)

    def _run(self, task_id: str, source: str) -> None:
        try:
            self._process_image.execute(task_id, source)
        except Exception as exc:
            # Already recorded on the task; nothing retries it.
            logger.exception("image_processing_failed", task_id=task_id, error=str(exc))
