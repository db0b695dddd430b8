"""API router aggregator."""

from fastapi import APIRouter

from image_task_api.api.routes import tasks

api_router = APIRouter()
api_router.include_router(tasks.router)
