"""Celery tasks for image processing."""

from __future__ import annotations

from image_task_api.core.container import get_container
from image_task_api.core.logging import configure_logging, get_logger
from image_task_api.worker.celery_app import celery_app

configure_logging()
logger = get_logger(__name__)


@celery_app.task(name="image.process_task")
def process_task(task_id: str, source: str) -> None:
    """Run the resize pipeline for a task created by the API."""

    logger.info("image_task_started", task_id=task_id)
    try:
        get_container().process_image.execute(task_id, source)
        logger.info("image_task_completed", task_id=task_id)
    except Exception as exc:  # pragma: no cover - defensive logging
        logger.exception("image_task_failed", task_id=task_id, error=str(exc))
        raise
