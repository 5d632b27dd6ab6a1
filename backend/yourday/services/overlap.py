# Intervals are half-open [start, end): touching edges do not overlap.
import logging
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from ..core.errors import ConflictError
from ..db.models import Task
from ..db.repository import TaskRepository

logger = logging.getLogger(__name__)

def intervals_overlap(s1: datetime, e1: datetime, s2: datetime, e2: datetime) -> bool:
    return s1 < e2 and s2 < e1

def find_conflict(
    repo: TaskRepository,
    owner_id: str,
    start: datetime,
    end: datetime,
    exclude_id: Optional[str] = None,
) -> Optional[Task]:
    """First of the owner's tasks overlapping [start, end), or None.

    ``exclude_id`` is the task being updated. Other owners are never consulted.
    """
    return repo.find_overlapping(owner_id, start, end, exclude_id=exclude_id)

def ensure_no_conflict(
    repo: TaskRepository,
    owner_id: str,
    start: datetime,
    end: datetime,
    exclude_id: Optional[str] = None,
) -> None:
    blocking = find_conflict(repo, owner_id, start, end, exclude_id=exclude_id)
    if blocking is not None:
        logger.info(
            "Rejected interval %s..%s for owner=%s: overlaps task=%s",
            start.isoformat(),
            end.isoformat(),
            owner_id,
            blocking.id,
        )
        raise ConflictError.from_task(blocking)

def find_overlapping_pairs(tasks: Iterable[Task]) -> List[Tuple[Task, Task]]:
    """Every pair of overlapping tasks, earlier start first.

    Only meaningful for tasks of a single owner. Overlaps can only exist after
    concurrent writes from separate processes slipped past the write-time check.
    """
    ordered = sorted(tasks, key=lambda t: (t.start_time, t.created_at))
    active: List[Task] = []
    pairs: List[Tuple[Task, Task]] = []
    for task in ordered:
        active = [a for a in active if a.end_time > task.start_time]
        for other in active:
            pairs.append((other, task))
        active.append(task)
    return pairs
