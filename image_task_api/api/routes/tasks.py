"""Routes for image processing tasks."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from image_task_api.api.dependencies import get_create_task, get_dispatcher, get_get_task
from image_task_api.models.task import CreateTaskRequest, TaskResponse
from image_task_api.services.dispatcher import TaskDispatcher
from image_task_api.services.use_cases import CreateTaskUseCase, GetTaskUseCase

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=TaskResponse,
    response_model_exclude_none=True,
    summary="Create an image processing task",
)
def create_task(
    payload: CreateTaskRequest,
    create_task_use_case: CreateTaskUseCase = Depends(get_create_task),
    dispatcher: TaskDispatcher = Depends(get_dispatcher),
) -> TaskResponse:
    """Create a pending task and start resizing its source in the background."""

    task = create_task_use_case.execute(payload.source)
    dispatcher.dispatch(task.id, payload.source)
    return TaskResponse.from_task(task)


@router.get(
    "/{task_id}",
    response_model=TaskResponse,
    response_model_exclude_none=True,
    summary="Retrieve a task",
)
def get_task(task_id: str, get_task_use_case: GetTaskUseCase = Depends(get_get_task)) -> TaskResponse:
    """Return status and price, plus images or error once the task has finished."""

    task = get_task_use_case.execute(task_id)
    if task is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    return TaskResponse.from_task(task)
