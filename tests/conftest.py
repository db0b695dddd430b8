"""Shared fixtures for the image task test suite."""

from pathlib import Path
from typing import Callable

import pytest
from PIL import Image

from image_task_api.repositories.memory import InMemoryImageRepository, InMemoryTaskRepository
from image_task_api.services.image_processor import PillowImageProcessor


class FixedPriceCalculator:
    def __init__(self, price: float = 25.5) -> None:
        self.price = price
        self.calls = 0

    def calculate(self) -> float:
        self.calls += 1
        return self.price


@pytest.fixture
def make_image(tmp_path: Path) -> Callable[..., Path]:
    """Write a solid-colour test image and return its path."""

    def _make(name: str = "photo.jpg", size=(2000, 2000), fmt: str = "JPEG", mode: str = "RGB") -> Path:
        path = tmp_path / "sources" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        color = (200, 120, 40, 255)[: len(mode)] if mode != "L" else 128
        Image.new(mode, size, color).save(path, format=fmt)
        return path

    return _make


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    return tmp_path / "output"


@pytest.fixture
def processor(output_dir: Path) -> PillowImageProcessor:
    return PillowImageProcessor(output_dir=str(output_dir))


@pytest.fixture
def task_repository() -> InMemoryTaskRepository:
    return InMemoryTaskRepository()


@pytest.fixture
def image_repository() -> InMemoryImageRepository:
    return InMemoryImageRepository()


@pytest.fixture
def price_calculator() -> FixedPriceCalculator:
    return FixedPriceCalculator()
