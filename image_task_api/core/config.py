"""Application configuration using Pydantic settings."""

from functools import lru_cache
from typing import List, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central application configuration."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    app_name: str = "Image Task API"
    environment: str = "development"
    debug: bool = True

    api_v1_prefix: str = ""
    cors_allowed_origins: List[str] = ["*"]

    output_dir: str = "output"
    resolutions: List[int] = [1024, 800]
    allow_upscale: bool = True
    http_timeout_seconds: float = 30.0

    min_price: float = 5.0
    max_price: float = 50.0
    price_decimals: int = 1

    persistence_backend: Literal["memory", "sql"] = "memory"
    database_url: str = "sqlite:///./image_tasks.db"

    task_dispatch: Literal["thread", "celery"] = "thread"
    max_workers: int = 4

    redis_url: str = "redis://localhost:6379/0"
    celery_broker_url: str | None = None
    celery_result_backend: str | None = None


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()


settings = get_settings()
