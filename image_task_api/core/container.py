"""Construct the pipeline's collaborators once and hand them to the use cases."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from image_task_api.core.config import Settings, get_settings
from image_task_api.core.logging import get_logger
from image_task_api.repositories.base import ImageRepository, TaskRepository
from image_task_api.repositories.memory import InMemoryImageRepository, InMemoryTaskRepository
from image_task_api.services.dispatcher import TaskDispatcher
from image_task_api.services.image_processor import ImageProcessor, PillowImageProcessor
from image_task_api.services.pricing import PriceCalculator, RandomPriceCalculator
from image_task_api.services.use_cases import CreateTaskUseCase, GetTaskUseCase, ProcessImageUseCase

logger = get_logger(__name__)


@dataclass
class Container:
    settings: Settings
    task_repository: TaskRepository
    image_repository: ImageRepository
    image_processor: ImageProcessor
    price_calculator: PriceCalculator
    create_task: CreateTaskUseCase
    get_task: GetTaskUseCase
    process_image: ProcessImageUseCase
    dispatcher: TaskDispatcher


def build_container(
    settings: Settings,
    task_repository: Optional[TaskRepository] = None,
    image_repository: Optional[ImageRepository] = None,
    image_processor: Optional[ImageProcessor] = None,
    price_calculator: Optional[PriceCalculator] = None,
) -> Container:
    """Wire adapters and use cases; any adapter may be supplied by the caller."""

    if task_repository is None or image_repository is None:
        default_tasks, default_images = _build_repositories(settings)
        task_repository = task_repository or default_tasks
        image_repository = image_repository or default_images

    image_processor = image_processor or PillowImageProcessor(
        output_dir=settings.output_dir,
        timeout=settings.http_timeout_seconds,
        allow_upscale=settings.allow_upscale,
    )
    price_calculator = price_calculator or RandomPriceCalculator(
        settings.min_price, settings.max_price, settings.price_decimals
    )

    process_image = ProcessImageUseCase(task_repository, image_repository, image_processor, settings.resolutions)
    return Container(
        settings=settings,
        task_repository=task_repository,
        image_repository=image_repository,
        image_processor=image_processor,
        price_calculator=price_calculator,
        create_task=CreateTaskUseCase(task_repository, price_calculator),
        get_task=GetTaskUseCase(task_repository),
        process_image=process_image,
        dispatcher=TaskDispatcher(process_image, mode=settings.task_dispatch, max_workers=settings.max_workers),
    )


def _build_repositories(settings: Settings) -> tuple[TaskRepository, ImageRepository]:
    if settings.persistence_backend == "sql":
        from image_task_api.repositories.sql import SqlImageRepository, SqlTaskRepository, init_db, make_engine

        engine = make_engine(settings.database_url)
        init_db(engine)
        return SqlTaskRepository(engine), SqlImageRepository(engine)

    if settings.task_dispatch == "celery":
        logger.warning("celery_with_memory_backend", detail="worker will not see tasks created by the API")
    return InMemoryTaskRepository(), InMemoryImageRepository()


@lru_cache
def get_container() -> Container:
    """Return the process-wide container."""

    return build_container(get_settings())
