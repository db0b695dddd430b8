"""Celery application used when ``task_dispatch`` is ``celery``."""

from celery import Celery

from image_task_api.core.config import settings

celery_app = Celery("image_task_api", include=["image_task_api.tasks.image_tasks"])

# Outcomes live on the task record, so a result backend is optional.
celery_app.conf.update(
    broker_url=settings.celery_broker_url or settings.redis_url,
    result_backend=settings.celery_result_backend,
    task_ignore_result=settings.celery_result_backend is None,
    task_default_queue="image_tasks",
    task_soft_time_limit=120,
    task_time_limit=180,
    worker_max_tasks_per_child=100,
    task_track_started=True,
)
