import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ..core.errors import InvalidField, NotFound, PersistenceError
from .models import Task, TaskCategory, as_utc, utcnow

logger = logging.getLogger(__name__)

TIME_FIELDS = ("start_time", "end_time")

class TaskRepository:
    """Owner-scoped access to the task table.

    Every lookup filters on ``owner_id``; a task owned by someone else is
    indistinguishable from one that does not exist.
    """

    def __init__(self, session: Session):
        self.session = session

    def create(self, task: Task) -> Task:
        _check_interval(task.start_time, task.end_time)
        now = utcnow()
        task.id = str(uuid4())
        task.created_at = now
        task.updated_at = now
        self.session.add(task)
        self._commit("create")
        self.session.refresh(task)
        return task

    def get_by_id(self, owner_id: str, task_id: str) -> Task:
        stmt = select(Task).where(Task.owner_id == owner_id, Task.id == task_id)
        task = self._first(stmt)
        if task is None:
            raise NotFound()
        return task

    def list_by_range(
        self,
        owner_id: str,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        category: Optional[TaskCategory] = None,
    ) -> List[Task]:
        """Tasks whose start falls in [start_date, end_date]; either bound may be open."""
        stmt = select(Task).where(Task.owner_id == owner_id)
        if start_date is not None:
            stmt = stmt.where(Task.start_time >= start_date)
        if end_date is not None:
            stmt = stmt.where(Task.start_time <= end_date)
        if category is not None:
            stmt = stmt.where(Task.category == category)
        # Two tasks of one owner can only share a start if they overlap, so
        # created_at is enough to keep ties in insertion order.
        stmt = stmt.order_by(Task.start_time, Task.created_at)
        return self._all(stmt)

    def find_overlapping(
        self,
        owner_id: str,
        start: datetime,
        end: datetime,
        exclude_id: Optional[str] = None,
    ) -> Optional[Task]:
        """First owned task intersecting the half-open interval [start, end)."""
        stmt = select(Task).where(
            Task.owner_id == owner_id,
            Task.start_time < end,
            Task.end_time > start,
        )
        if exclude_id is not None:
            stmt = stmt.where(Task.id != exclude_id)
        stmt = stmt.order_by(Task.start_time, Task.created_at).limit(1)
        return self._first(stmt)

    def update(self, owner_id: str, task_id: str, patch: Dict[str, Any]) -> Task:
        task = self.get_by_id(owner_id, task_id)
        if any(f in patch for f in TIME_FIELDS):
            _check_interval(
                patch.get("start_time", task.start_time),
                patch.get("end_time", task.end_time),
            )
        for key, value in patch.items():
            setattr(task, key, value)
        task.updated_at = utcnow()
        self.session.add(task)
        self._commit("update")
        self.session.refresh(task)
        return task

    def delete(self, owner_id: str, task_id: str) -> None:
        task = self.get_by_id(owner_id, task_id)
        self.session.delete(task)
        self._commit("delete")

    # ---- helpers ----

    def _first(self, stmt) -> Optional[Task]:
        try:
            return self.session.exec(stmt).first()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.exception("Task query failed")
            raise PersistenceError() from e

    def _all(self, stmt) -> List[Task]:
        try:
            return list(self.session.exec(stmt).all())
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.exception("Task query failed")
            raise PersistenceError() from e

    def _commit(self, action: str) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.exception("Task %s failed", action)
            raise PersistenceError() from e

def _check_interval(start: datetime, end: datetime) -> None:
    if as_utc(end) <= as_utc(start):
        raise InvalidField("endTime", "End time must be after start time")
