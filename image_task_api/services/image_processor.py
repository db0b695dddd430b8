"""Pillow-based loading, resizing and storage of task images."""

from __future__ import annotations

import hashlib
import re
import secrets
from io import BytesIO
from pathlib import Path, PurePath, PurePosixPath
from typing import Iterable, List, Protocol, Tuple

import httpx
from PIL import Image

from image_task_api.core.errors import FetchError, SourceLoadError, StorageError, TransformError
from image_task_api.core.logging import get_logger
from image_task_api.models.image import ImageSource, ProcessedImage

logger = get_logger(__name__)

REMOTE_SOURCE = re.compile(r"^https?://", re.IGNORECASE)
DEFAULT_MIME_TYPE = "image/jpeg"
DEFAULT_EXTENSION = ".jpg"

FORMAT_MAP = {
    "image/jpeg": "JPEG",
    "image/jpg": "JPEG",
    "image/png": "PNG",
    "image/webp": "WEBP",
    "image/gif": "GIF",
    "image/tiff": "TIFF",
}

_PIL_ERRORS = (OSError, ValueError, Image.DecompressionBombError)


class ImageProcessor(Protocol):
    def load_image_buffer(self, source: str) -> ImageSource:
        ...

    def process_image(self, image_source: ImageSource, resolutions: Iterable[int]) -> List[ProcessedImage]:
        ...

    def save_image(self, processed_image: ProcessedImage) -> str:
        ...

    def close(self) -> None:
        ...


class PillowImageProcessor:
    """Loads sources from HTTP or disk, resizes them with Pillow and writes the results."""

    def __init__(
        self,
        output_dir: str = "output",
        client: httpx.Client | None = None,
        timeout: float = 30.0,
        allow_upscale: bool = True,
    ) -> None:
        self.output_dir = output_dir
        self.allow_upscale = allow_upscale
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=True)

    def load_image_buffer(self, source: str) -> ImageSource:
        """Read the source into memory and work out its name, extension and MIME type."""

        try:
            if REMOTE_SOURCE.match(source):
                buffer, path, mime_type = self._fetch_remote(source)
            else:
                buffer, path, mime_type = self._read_local(source)
        except FetchError as exc:
            raise FetchError(
                f"Failed to load image from source '{source}': {exc}", status_code=exc.status_code
            ) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise FetchError(f"Failed to load image from source '{source}': {exc}") from exc
        except _PIL_ERRORS as exc:
            raise SourceLoadError(f"Failed to load image from source '{source}': {exc}") from exc

        name = path.stem or f"image_{secrets.token_hex(8)}"
        ext = path.suffix or DEFAULT_EXTENSION

        logger.debug("image_source_loaded", source=source, name=name, mime_type=mime_type, size=len(buffer))
        return ImageSource(buffer=buffer, name=name, ext=ext, mime_type=mime_type)

    def process_image(self, image_source: ImageSource, resolutions: Iterable[int]) -> List[ProcessedImage]:
        """Resize the source to every width, in the order given.

        Output keeps the source format when it is one we can encode, JPEG otherwise.
        Either every width succeeds or ``TransformError`` is raised.
        """

        fmt = FORMAT_MAP.get(image_source.mime_type.lower(), "JPEG")
        ext = DEFAULT_EXTENSION if fmt == "JPEG" else f".{fmt.lower()}"

        try:
            with Image.open(BytesIO(image_source.buffer)) as original:
                original.load()
                return [self._resize(original, width, fmt, ext, image_source.name) for width in resolutions]
        except _PIL_ERRORS as exc:
            raise TransformError(f"Image processing failed: {exc}") from exc

    def save_image(self, processed_image: ProcessedImage) -> str:
        """Write the variant to disk and return its public, forward-slash path."""

        target = Path(processed_image.output_path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(processed_image.buffer)
        except OSError as exc:
            raise StorageError(f"Failed to save image: {exc}") from exc

        return "/" + PurePath(processed_image.output_path).as_posix().lstrip("/")

    def close(self) -> None:
        self._client.close()

    def _fetch_remote(self, source: str) -> Tuple[bytes, PurePosixPath, str]:
        response = self._client.get(source)
        if not response.is_success:
            raise FetchError(
                f"Failed to fetch image: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )

        content_type = response.headers.get("content-type", "")
        mime_type = content_type.split(";", 1)[0].strip().lower() or DEFAULT_MIME_TYPE
        return response.content, PurePosixPath(httpx.URL(source).path), mime_type

    @staticmethod
    def _read_local(source: str) -> Tuple[bytes, Path, str]:
        path = Path(source)
        buffer = path.read_bytes()

        # Trust the decoded header, not the file extension.
        with Image.open(BytesIO(buffer)) as img:
            detected = img.format

        mime_type = Image.MIME.get(detected, f"image/{detected.lower()}") if detected else DEFAULT_MIME_TYPE
        return buffer, path, mime_type

    def _resize(self, original: Image.Image, width: int, fmt: str, ext: str, name: str) -> ProcessedImage:
        if width <= 0:
            raise ValueError(f"width must be positive, got {width}")

        target_width = width if self.allow_upscale else min(width, original.width)
        target_height = max(1, round(original.height * target_width / original.width))
        resized = original.resize((target_width, target_height), Image.Resampling.LANCZOS)
        if fmt == "JPEG" and resized.mode not in ("RGB", "L", "CMYK"):
            resized = resized.convert("RGB")

        out = BytesIO()
        resized.save(out, format=fmt)
        buffer = out.getvalue()
        fingerprint = hashlib.md5(buffer).hexdigest()

        return ProcessedImage(
            buffer=buffer,
            resolution=str(width),
            fingerprint=fingerprint,
            format=fmt.lower(),
            output_path=str(Path(self.output_dir) / name / str(width) / f"{fingerprint}{ext}"),
        )
