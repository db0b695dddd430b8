"""Create, get and process use case tests."""

import threading
from typing import List

import pytest

from image_task_api.core.errors import FetchError, StorageError, ValidationError
from image_task_api.models.image import ImageSource, ProcessedImage
from image_task_api.models.task import Task, TaskImage, TaskStatus
from image_task_api.repositories.memory import InMemoryTaskRepository
from image_task_api.services.use_cases import CreateTaskUseCase, GetTaskUseCase, ProcessImageUseCase


class StubProcessor:
    """Image processor double that records calls and can fail at any step."""

    def __init__(self, fail_on: str = "", error: Exception | None = None) -> None:
        self.fail_on = fail_on
        self.error = error or RuntimeError(f"{fail_on} failed")
        self.saved: List[ProcessedImage] = []

    def load_image_buffer(self, source: str) -> ImageSource:
        if self.fail_on == "load":
            raise self.error
        return ImageSource(buffer=b"raw", name="photo", ext=".jpg", mime_type="image/jpeg")

    def process_image(self, image_source, resolutions):
        if self.fail_on == "process":
            raise self.error
        return [
            ProcessedImage(b"resized", str(width), f"md5{width}", "jpeg", f"output/photo/{width}/md5{width}.jpg")
            for width in resolutions
        ]

    def save_image(self, processed_image: ProcessedImage) -> str:
        if self.fail_on == "save":
            raise self.error
        self.saved.append(processed_image)
        return "/" + processed_image.output_path


@pytest.fixture
def pending_task(task_repository) -> Task:
    return task_repository.save(Task.create("https://example.com/photo.jpg", 25.5))


def _use_case(task_repository, image_repository, processor, resolutions=(1024, 800)) -> ProcessImageUseCase:
    return ProcessImageUseCase(task_repository, image_repository, processor, resolutions)


# ---------------------------------------------------------------------------
# Create / Get
# ---------------------------------------------------------------------------

class TestCreateTask:
    @pytest.mark.parametrize("source", ["", "   "])
    def test_empty_source_rejected_without_side_effects(self, task_repository, price_calculator, source):
        use_case = CreateTaskUseCase(task_repository, price_calculator)
        with pytest.raises(ValidationError):
            use_case.execute(source)

        assert task_repository.find_all() == []
        assert price_calculator.calls == 0

    def test_creates_pending_task(self, task_repository, price_calculator):
        task = CreateTaskUseCase(task_repository, price_calculator).execute("https://example.com/photo.jpg")

        assert task.id
        assert task.status == TaskStatus.pending
        assert task.price == 25.5
        assert task.original_path == "https://example.com/photo.jpg"
        assert task.images == []
        assert task_repository.find_by_id(task.id) == task


class TestGetTask:
    def test_returns_task(self, task_repository, pending_task):
        assert GetTaskUseCase(task_repository).execute(pending_task.id) == pending_task

    def test_unknown_id_returns_none(self, task_repository):
        assert GetTaskUseCase(task_repository).execute("404") is None

    def test_empty_id_rejected(self, task_repository):
        with pytest.raises(ValidationError):
            GetTaskUseCase(task_repository).execute("")


# ---------------------------------------------------------------------------
# Process
# ---------------------------------------------------------------------------

class TestProcessImage:
    def test_completes_with_images_in_configured_order(self, task_repository, image_repository, pending_task):
        _use_case(task_repository, image_repository, StubProcessor()).execute(pending_task.id, pending_task.original_path)

        task = task_repository.find_by_id(pending_task.id)
        assert task.status == TaskStatus.completed
        assert task.error is None
        assert task.images == [
            TaskImage(resolution="1024", path="/output/photo/1024/md51024.jpg"),
            TaskImage(resolution="800", path="/output/photo/800/md5800.jpg"),
        ]

        records = image_repository.find_by_task_id(pending_task.id)
        assert [r.resolution for r in records] == ["1024", "800"]
        assert {r.task_id for r in records} == {pending_task.id}
        assert records[0].name == "photo"
        assert records[0].mime_type == "image/jpeg"
        assert records[0].fingerprint == "md51024"

    def test_real_pipeline_end_to_end(self, task_repository, image_repository, processor, make_image, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        source = str(make_image("landscape.jpg", size=(2000, 2000)))
        task = task_repository.save(Task.create(source, 10.0))

        _use_case(task_repository, image_repository, processor).execute(task.id, source)

        done = task_repository.find_by_id(task.id)
        assert done.status == TaskStatus.completed
        assert [i.resolution for i in done.images] == ["1024", "800"]
        assert all(i.path.startswith("/") and "/landscape/" in i.path for i in done.images)
        assert len(image_repository.find_by_task_id(task.id)) == 2

    def test_no_resolutions_completes_empty(self, task_repository, image_repository, pending_task):
        _use_case(task_repository, image_repository, StubProcessor(), resolutions=[]).execute(pending_task.id, "x")

        task = task_repository.find_by_id(pending_task.id)
        assert task.status == TaskStatus.completed
        assert task.images == []

    def test_fetch_error_fails_task_and_reraises(self, task_repository, image_repository, pending_task):
        processor = StubProcessor("load", FetchError("404 Not Found", status_code=404))

        with pytest.raises(FetchError):
            _use_case(task_repository, image_repository, processor).execute(pending_task.id, pending_task.original_path)

        task = task_repository.find_by_id(pending_task.id)
        assert task.status == TaskStatus.failed
        assert "404 Not Found" in task.error
        assert task.images == []

    @pytest.mark.parametrize("step", ["process", "save"])
    def test_failure_in_later_steps_fails_task(self, task_repository, image_repository, pending_task, step):
        processor = StubProcessor(step, StorageError("disk full") if step == "save" else None)

        with pytest.raises(Exception) as excinfo:
            _use_case(task_repository, image_repository, processor).execute(pending_task.id, "x")

        task = task_repository.find_by_id(pending_task.id)
        assert task.status == TaskStatus.failed
        assert task.error == str(excinfo.value)

    def test_missing_task_skips_reconciliation_and_reraises(self, task_repository, image_repository):
        processor = StubProcessor("load")
        with pytest.raises(RuntimeError, match="load failed"):
            _use_case(task_repository, image_repository, processor).execute("ghost", "x")
        assert task_repository.find_all() == []

    def test_reconciliation_failure_still_reraises_original(self, task_repository, image_repository, pending_task, monkeypatch):
        def broken_update(task):
            raise ConnectionError("store unreachable")

        monkeypatch.setattr(task_repository, "update_if_pending", broken_update)

        with pytest.raises(RuntimeError, match="load failed"):
            _use_case(task_repository, image_repository, StubProcessor("load")).execute(pending_task.id, "x")
        assert task_repository.find_by_id(pending_task.id).status == TaskStatus.pending

    def test_terminal_task_is_not_overwritten(self, task_repository, image_repository, pending_task):
        use_case = _use_case(task_repository, image_repository, StubProcessor())
        use_case.execute(pending_task.id, "x")
        completed = task_repository.find_by_id(pending_task.id)

        with pytest.raises(RuntimeError):
            _use_case(task_repository, image_repository, StubProcessor("load")).execute(pending_task.id, "x")
        use_case.execute(pending_task.id, "x")

        assert task_repository.find_by_id(pending_task.id) == completed

    def test_overlapping_runs_write_one_terminal_state(self, image_repository):
        tasks = RacingTaskRepository(parties=2)
        task = tasks.save(Task.create("https://example.com/photo.jpg", 25.5))
        tasks.armed = True
        runs = [
            _use_case(tasks, image_repository, StubProcessor()),
            _use_case(tasks, image_repository, StubProcessor("load")),
        ]
        errors: List[Exception] = []

        def run(use_case):
            try:
                use_case.execute(task.id, "x")
            except RuntimeError as exc:
                errors.append(exc)

        threads = [threading.Thread(target=run, args=(use_case,)) for use_case in runs]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)
        tasks.armed = False

        assert len(errors) == 1
        assert len(tasks.terminal_writes) == 1
        assert tasks.find_by_id(task.id).status == tasks.terminal_writes[0]


class RacingTaskRepository(InMemoryTaskRepository):
    """Holds every reader at ``find_by_id`` until all runs have seen the pending task."""

    def __init__(self, parties: int) -> None:
        super().__init__()
        self.armed = False
        self.terminal_writes: List[TaskStatus] = []
        self._barrier = threading.Barrier(parties, timeout=5)

    def find_by_id(self, task_id):
        task = super().find_by_id(task_id)
        if self.armed:
            self._barrier.wait()
        return task

    def update_if_pending(self, task):
        stored = super().update_if_pending(task)
        if stored is not None:
            self.terminal_writes.append(stored.status)
        return stored
