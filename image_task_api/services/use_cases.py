"""Application use cases: create a task, look it up, process its image."""

from __future__ import annotations

from typing import List, Optional, Sequence

from image_task_api.core.errors import NotFoundError, ValidationError
from image_task_api.core.logging import get_logger
from image_task_api.models.image import ImageRecord
from image_task_api.models.task import Task, TaskImage
from image_task_api.repositories.base import ImageRepository, TaskRepository
from image_task_api.services.image_processor import ImageProcessor
from image_task_api.services.pricing import PriceCalculator

logger = get_logger(__name__)

DEFAULT_RESOLUTIONS = (1024, 800)


class CreateTaskUseCase:
    """Price and persist a new pending task."""

    def __init__(self, task_repository: TaskRepository, price_calculator: PriceCalculator) -> None:
        self.task_repository = task_repository
        self.price_calculator = price_calculator

    def execute(self, source: str) -> Task:
        if not source or not source.strip():
            raise ValidationError("Source is required")

        price = self.price_calculator.calculate()
        task = self.task_repository.save(Task.create(source, price))
        logger.info("task_created", task_id=task.id, price=task.price, source=source)
        return task


class GetTaskUseCase:
    def __init__(self, task_repository: TaskRepository) -> None:
        self.task_repository = task_repository

    def execute(self, task_id: str) -> Optional[Task]:
        if not task_id or not task_id.strip():
            raise ValidationError("Task id is required")
        return self.task_repository.find_by_id(task_id)


class ProcessImageUseCase:
    """Run the resize pipeline for one task and record its outcome.

    The task ends up completed with one image per configured resolution, or failed
    with the message of the error that stopped the pipeline. Errors are re-raised
    after the failure has been recorded.
    """

    def __init__(
        self,
        task_repository: TaskRepository,
        image_repository: ImageRepository,
        image_processor: ImageProcessor,
        resolutions: Sequence[int] = DEFAULT_RESOLUTIONS,
    ) -> None:
        self.task_repository = task_repository
        self.image_repository = image_repository
        self.image_processor = image_processor
        self.resolutions = list(resolutions)

    def execute(self, task_id: str, source: str) -> None:
        logger.info("image_processing_started", task_id=task_id, source=source)
        try:
            images = self._run_pipeline(task_id, source)
            task = self.task_repository.find_by_id(task_id)
            if task is None:
                raise NotFoundError(f"Task {task_id} not found")
            self._transition(task, task.mark_as_completed(images))
        except Exception as exc:
            self._record_failure(task_id, exc)
            raise

        logger.info("image_processing_completed", task_id=task_id, images=len(images))

    def _run_pipeline(self, task_id: str, source: str) -> List[TaskImage]:
        image_source = self.image_processor.load_image_buffer(source)
        processed_images = self.image_processor.process_image(image_source, self.resolutions)

        images: List[TaskImage] = []
        for processed in processed_images:
            saved_path = self.image_processor.save_image(processed)
            self.image_repository.save(
                ImageRecord.create(
                    task_id=task_id,
                    name=image_source.name,
                    mime_type=image_source.mime_type,
                    resolution=processed.resolution,
                    fingerprint=processed.fingerprint,
                    path=saved_path,
                )
            )
            images.append(TaskImage(resolution=processed.resolution, path=saved_path))
        return images

    def _record_failure(self, task_id: str, error: Exception) -> None:
        try:
            task = self.task_repository.find_by_id(task_id)
            if task is None:
                logger.warning("image_processing_task_missing", task_id=task_id, error=str(error))
                return
            self._transition(task, task.mark_as_failed(str(error)))
        except Exception as exc:
            # The pipeline error is what the caller sees; this one is only logged.
            logger.exception("task_failure_not_recorded", task_id=task_id, error=str(exc))

    def _transition(self, current: Task, updated: Task) -> None:
        # Terminal states are final; the repository only writes while the stored task is pending.
        if self.task_repository.update_if_pending(updated) is None:
            logger.warning(
                "task_transition_skipped",
                task_id=current.id,
                observed_status=current.status.value,
                requested_status=updated.status.value,
            )
