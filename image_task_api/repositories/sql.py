"""SQLModel-backed repositories.

Used when the API and a Celery worker have to see the same tasks; the in-memory
repositories cannot be shared across processes.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, Column
from sqlalchemy import update as sa_update
from sqlalchemy.engine import Engine
from sqlmodel import Field, Session, SQLModel, create_engine, select

from image_task_api.core.errors import NotFoundError
from image_task_api.models.image import ImageRecord
from image_task_api.models.task import Task, TaskImage, TaskStatus


class TaskRow(SQLModel, table=True):
    __tablename__ = "tasks"

    id: str = Field(primary_key=True, nullable=False)
    status: str = Field(default=TaskStatus.pending.value, index=True, nullable=False)
    price: float = Field(nullable=False)
    original_path: str = Field(nullable=False)
    images: List[dict] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    error: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class ImageRow(SQLModel, table=True):
    __tablename__ = "images"

    id: Optional[int] = Field(default=None, primary_key=True)
    task_id: str = Field(index=True, nullable=False)
    name: str = Field(nullable=False)
    mime_type: str = Field(nullable=False)
    resolution: str = Field(nullable=False)
    fingerprint: str = Field(index=True, nullable=False)
    path: str = Field(nullable=False)
    created_at: datetime = Field(default_factory=datetime.utcnow)


def make_engine(database_url: str) -> Engine:
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    return create_engine(database_url, echo=False, connect_args=connect_args)


def init_db(engine: Engine) -> None:
    SQLModel.metadata.create_all(engine)


def _task_from_row(row: TaskRow) -> Task:
    return Task(
        id=row.id,
        status=TaskStatus(row.status),
        price=row.price,
        original_path=row.original_path,
        images=[TaskImage(**image) for image in row.images or []],
        error=row.error,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _image_from_row(row: ImageRow) -> ImageRecord:
    return ImageRecord(
        id=str(row.id),
        task_id=row.task_id,
        name=row.name,
        mime_type=row.mime_type,
        resolution=row.resolution,
        fingerprint=row.fingerprint,
        path=row.path,
        created_at=row.created_at,
    )


class SqlTaskRepository:
    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def save(self, task: Task) -> Task:
        row = TaskRow(
            id=task.id or uuid.uuid4().hex,
            status=task.status.value,
            price=task.price,
            original_path=task.original_path,
            images=[image.model_dump() for image in task.images],
            error=task.error,
            created_at=task.created_at,
            updated_at=task.updated_at,
        )
        with Session(self._engine) as session:
            session.add(row)
            session.commit()
            session.refresh(row)
            return _task_from_row(row)

    def find_by_id(self, task_id: str) -> Optional[Task]:
        with Session(self._engine) as session:
            row = session.get(TaskRow, task_id)
            return _task_from_row(row) if row else None

    def update(self, task: Task) -> Task:
        with Session(self._engine) as session:
            row = session.get(TaskRow, task.id)
            if row is None:
                raise NotFoundError(f"Task {task.id} not found")
            row.status = task.status.value
            row.images = [image.model_dump() for image in task.images]
            row.error = task.error
            row.updated_at = task.updated_at
            session.add(row)
            session.commit()
            session.refresh(row)
            return _task_from_row(row)

    def update_if_pending(self, task: Task) -> Optional[Task]:
        statement = (
            sa_update(TaskRow)
            .where(TaskRow.id == task.id, TaskRow.status == TaskStatus.pending.value)
            .values(
                status=task.status.value,
                images=[image.model_dump() for image in task.images],
                error=task.error,
                updated_at=task.updated_at,
            )
        )
        with Session(self._engine) as session:
            result = session.execute(statement)
            session.commit()
            if result.rowcount != 1:
                return None
            row = session.get(TaskRow, task.id)
            return _task_from_row(row) if row else None

    def delete(self, task_id: str) -> bool:
        with Session(self._engine) as session:
            row = session.get(TaskRow, task_id)
            if row is None:
                return False
            session.delete(row)
            session.commit()
            return True

    def find_all(self) -> List[Task]:
        with Session(self._engine) as session:
            rows = session.exec(select(TaskRow).order_by(TaskRow.created_at)).all()
            return [_task_from_row(row) for row in rows]


class SqlImageRepository:
    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def save(self, image: ImageRecord) -> ImageRecord:
        row = ImageRow(
            id=int(image.id) if image.id else None,
            task_id=image.task_id,
            name=image.name,
            mime_type=image.mime_type,
            resolution=image.resolution,
            fingerprint=image.fingerprint,
            path=image.path,
            created_at=image.created_at,
        )
        with Session(self._engine) as session:
            session.add(row)
            session.commit()
            session.refresh(row)
            return _image_from_row(row)

    def find_by_id(self, image_id: str) -> Optional[ImageRecord]:
        if not image_id.isdigit():
            return None
        with Session(self._engine) as session:
            row = session.get(ImageRow, int(image_id))
            return _image_from_row(row) if row else None

    def find_by_task_id(self, task_id: str) -> List[ImageRecord]:
        with Session(self._engine) as session:
            statement = select(ImageRow).where(ImageRow.task_id == task_id).order_by(ImageRow.id)
            return [_image_from_row(row) for row in session.exec(statement).all()]

    def delete_by_task_id(self, task_id: str) -> int:
        with Session(self._engine) as session:
            rows = session.exec(select(ImageRow).where(ImageRow.task_id == task_id)).all()
            for row in rows:
                session.delete(row)
            session.commit()
            return len(rows)
