from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Optional, List

from sqlalchemy import Integer, String, Text, DateTime, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.ext.asyncio import AsyncSession

from task_service.domain.errors import NotFound, StorageError
from task_service.domain.task_models import Task, TaskCreate
from task_service.infra.db.database import Base

logger = logging.getLogger("tasks.db")


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite drops the offset on write and hands back naive values, so
    # everything is stored as UTC and naive reads are taken as UTC.
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class TaskRow(Base):
    __tablename__ = "tasks"
    # Without AUTOINCREMENT SQLite hands a deleted max id out again.
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def to_domain(self) -> Task:
        return Task(
            id=self.id,
            title=self.title,
            description=self.description,
            status=self.status,
            due_date=_as_utc(self.due_date),
            created_at=_as_utc(self.created_at),
            updated_at=_as_utc(self.updated_at),
        )


class SQLTaskRepo:
    def __init__(self, sessionmaker):
        self.sessionmaker = sessionmaker

    @asynccontextmanager
    async def _session(self, op: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self.sessionmaker() as session:
                yield session
        except (SQLAlchemyError, OverflowError) as exc:
            # Drivers raise OverflowError for integers the column type cannot hold.
            logger.exception("db.error", extra={"category": "db", "event": "db.error", "op": op})
            raise StorageError(f"{op} failed") from exc

    @staticmethod
    def _filtered(stmt, status: Optional[str]):
        if status:
            stmt = stmt.where(TaskRow.status == status)
        return stmt

    async def list(self, offset: int, limit: int, status: Optional[str] = None) -> List[Task]:
        stmt = self._filtered(select(TaskRow), status)
        stmt = stmt.order_by(TaskRow.created_at.desc(), TaskRow.id.desc()).offset(offset).limit(limit)
        async with self._session("list") as session:
            res = await session.execute(stmt)
            return [r.to_domain() for r in res.scalars().all()]

    async def count(self, status: Optional[str] = None) -> int:
        stmt = self._filtered(select(func.count()).select_from(TaskRow), status)
        async with self._session("count") as session:
            res = await session.execute(stmt)
            return int(res.scalar_one())

    async def get(self, task_id: int) -> Task:
        async with self._session("get") as session:
            row = await session.get(TaskRow, task_id)
            if row is None:
                raise NotFound(task_id)
            return row.to_domain()

    async def create(self, data: TaskCreate) -> Task:
        now = datetime.now(timezone.utc)
        row = TaskRow(
            title=data.title,
            description=data.description,
            status=data.status,
            due_date=_as_utc(data.due_date),
            created_at=now,
            updated_at=now,
        )
        async with self._session("create") as session:
            session.add(row)
            await session.commit()
            return row.to_domain()

    async def update(self, task: Task) -> Task:
        async with self._session("update") as session:
            row = await session.get(TaskRow, task.id)
            if row is None:
                raise StorageError(f"task {task.id} no longer exists")
            row.title = task.title
            row.description = task.description
            row.status = task.status
            row.due_date = _as_utc(task.due_date)
            row.updated_at = datetime.now(timezone.utc)
            await session.commit()
            return row.to_domain()

    async def delete(self, task: Task) -> None:
        async with self._session("delete") as session:
            row = await session.get(TaskRow, task.id)
            if row is not None:
                await session.delete(row)
                await session.commit()
