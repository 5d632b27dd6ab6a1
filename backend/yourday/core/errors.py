from datetime import datetime
from typing import Optional

class YourDayError(Exception):
    message = "Server error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        self.message = message or self.message

class ValidationError(YourDayError):
    """Malformed or missing input. Never retried automatically."""

    message = "Invalid task"
    field: Optional[str] = None

class InvalidField(ValidationError):
    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field

class ConflictError(YourDayError):
    """The candidate interval overlaps one of the owner's existing tasks."""

    message = "Task overlaps with existing task"

    def __init__(
        self,
        blocking_task_id: str,
        blocking_title: str,
        blocking_start: datetime,
        blocking_end: datetime,
    ):
        super().__init__()
        self.blocking_task_id = blocking_task_id
        self.blocking_title = blocking_title
        self.blocking_start = blocking_start
        self.blocking_end = blocking_end

    @classmethod
    def from_task(cls, task) -> "ConflictError":
        return cls(
            blocking_task_id=task.id,
            blocking_title=task.title,
            blocking_start=task.start_time,
            blocking_end=task.end_time,
        )

class NotFound(YourDayError):
    # Also used for tasks owned by someone else.
    message = "Task not found"

class PersistenceError(YourDayError):
    """The store failed. A write may or may not have happened; re-read to reconcile."""

    message = "Server error"

class Unauthenticated(YourDayError):
    message = "Token is not valid"
