import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from ..db.models import Task, TaskCategory
from ..db.repository import TaskRepository
from . import overlap
from .validation import check_interval, validate, validate_patch

logger = logging.getLogger(__name__)

class OwnerLocks:
    """One lock per owner, dropped again once nobody holds or waits on it.

    Serialises the overlap check and the write that follows it within this
    process. Separate processes sharing a store are not covered.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, Tuple[threading.Lock, int]] = {}

    @contextmanager
    def hold(self, owner_id: str) -> Iterator[None]:
        with self._guard:
            lock, users = self._locks.get(owner_id, (threading.Lock(), 0))
            self._locks[owner_id] = (lock, users + 1)
        try:
            with lock:
                yield
        finally:
            with self._guard:
                lock, users = self._locks[owner_id]
                if users <= 1:
                    del self._locks[owner_id]
                else:
                    self._locks[owner_id] = (lock, users - 1)

    def __len__(self) -> int:
        return len(self._locks)

OWNER_LOCKS = OwnerLocks()

class TaskService:
    def __init__(self, repo: TaskRepository, locks: OwnerLocks = OWNER_LOCKS):
        self.repo = repo
        self.locks = locks

    def list_tasks(
        self,
        owner_id: str,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        category: Optional[TaskCategory] = None,
    ) -> List[Task]:
        return self.repo.list_by_range(owner_id, start_date, end_date, category)

    def get_task(self, owner_id: str, task_id: str) -> Task:
        return self.repo.get_by_id(owner_id, task_id)

    def create_task(self, owner_id: str, candidate: Mapping[str, Any]) -> Task:
        fields = validate(candidate)
        with self.locks.hold(owner_id):
            overlap.ensure_no_conflict(self.repo, owner_id, fields["start_time"], fields["end_time"])
            task = self.repo.create(Task(owner_id=owner_id, **fields))
        logger.info("Task created id=%s owner=%s", task.id, owner_id)
        return task

    def update_task(self, owner_id: str, task_id: str, patch: Mapping[str, Any]) -> Task:
        changes = validate_patch(patch)
        with self.locks.hold(owner_id):
            existing = self.repo.get_by_id(owner_id, task_id)
            if "start_time" in changes or "end_time" in changes:
                start = changes.get("start_time", existing.start_time)
                end = changes.get("end_time", existing.end_time)
                check_interval(start, end)
                overlap.ensure_no_conflict(self.repo, owner_id, start, end, exclude_id=task_id)
            task = self.repo.update(owner_id, task_id, changes)
        logger.info("Task updated id=%s owner=%s fields=%s", task_id, owner_id, sorted(changes))
        return task

    def delete_task(self, owner_id: str, task_id: str) -> None:
        self.repo.delete(owner_id, task_id)
        logger.info("Task deleted id=%s owner=%s", task_id, owner_id)

    def find_conflicts(self, owner_id: str) -> List[Tuple[Task, Task]]:
        pairs = overlap.find_overlapping_pairs(self.repo.list_by_range(owner_id))
        if pairs:
            logger.warning("Owner %s has %d overlapping task pair(s)", owner_id, len(pairs))
        return pairs
