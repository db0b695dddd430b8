"""FastAPI application entrypoint."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from image_task_api.api import router as api_router
from image_task_api.core.config import settings
from image_task_api.core.container import get_container
from image_task_api.core.errors import ValidationError
from image_task_api.core.logging import configure_logging, get_logger

configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("app_started", environment=settings.environment, dispatch=settings.task_dispatch)
    yield
    container = get_container()
    container.dispatcher.shutdown()
    container.image_processor.close()
    logger.info("app_stopped")


app = FastAPI(
    title=settings.app_name,
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


app.include_router(api_router.api_router, prefix=settings.api_v1_prefix)

# Task image paths are relative to the working directory, e.g. /output/photo/800/<md5>.jpg
output_mount = "/" + settings.output_dir.strip("/")
app.mount(output_mount, StaticFiles(directory=settings.output_dir, check_dir=False), name="output")


@app.get("/healthz", tags=["health"])
def health_check() -> dict:
    """Simple health check endpoint."""

    logger.debug("health_check_invoked")
    return {"status": "ok", "environment": settings.environment}
