"""Shared API dependencies."""

from fastapi import Depends

from image_task_api.core.container import Container, get_container
from image_task_api.services.dispatcher import TaskDispatcher
from image_task_api.services.use_cases import CreateTaskUseCase, GetTaskUseCase


def get_create_task(container: Container = Depends(get_container)) -> CreateTaskUseCase:
    """Expose the task creation use case to routers."""

    return container.create_task


def get_get_task(container: Container = Depends(get_container)) -> GetTaskUseCase:
    """Expose the task lookup use case to routers."""

    return container.get_task


def get_dispatcher(container: Container = Depends(get_container)) -> TaskDispatcher:
    """Expose the background dispatcher to routers."""

    return container.dispatcher
