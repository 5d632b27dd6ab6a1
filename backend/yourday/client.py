import logging
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import requests

from .core.config import settings
from .core.errors import ConflictError, InvalidField, NotFound, PersistenceError, Unauthenticated, ValidationError
from .schemas.tasks import CategoryOut, ConflictingTask, TaskOut

logger = logging.getLogger(__name__)

FIELD_NAMES = {
    "title": "title",
    "description": "description",
    "start_time": "startTime",
    "end_time": "endTime",
    "category": "category",
    "notes": "notes",
    "reminder": "reminder",
}

def _wire_value(value: Any) -> Any:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return value

def day_bounds(day: date, tz: tzinfo = timezone.utc) -> Tuple[datetime, datetime]:
    """First and last instant of ``day`` in ``tz`` (UTC unless given)."""
    return datetime.combine(day, time.min, tzinfo=tz), datetime.combine(day, time.max, tzinfo=tz)

def week_bounds(day: date, tz: tzinfo = timezone.utc) -> Tuple[datetime, datetime]:
    """Monday 00:00 to Sunday 23:59:59.999999 in ``tz`` of the week containing ``day``."""
    monday = day - timedelta(days=day.weekday())
    sunday = monday + timedelta(days=6)
    return datetime.combine(monday, time.min, tzinfo=tz), datetime.combine(sunday, time.max, tzinfo=tz)

class TasksClient:
    def __init__(
        self,
        token: str,
        base_url: str = settings.API_BASE_URL,
        timeout: float = settings.REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()

    def list_tasks(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        category: Optional[str] = None,
    ) -> List[TaskOut]:
        params = {}
        if start_date is not None:
            params["startDate"] = _wire_value(start_date)
        if end_date is not None:
            params["endDate"] = _wire_value(end_date)
        if category is not None:
            params["category"] = _wire_value(category)
        data = self._request("GET", "/tasks", params=params)
        return [TaskOut.model_validate(t) for t in data["tasks"]]

    def get_task(self, task_id: str) -> TaskOut:
        return TaskOut.model_validate(self._request("GET", f"/tasks/{task_id}")["task"])

    def create_task(self, title: str, start_time: datetime, end_time: datetime, **fields) -> TaskOut:
        body = self._body(dict(fields, title=title, start_time=start_time, end_time=end_time))
        return TaskOut.model_validate(self._request("POST", "/tasks", json=body)["task"])

    def update_task(self, task_id: str, **fields) -> TaskOut:
        body = self._body(fields)
        return TaskOut.model_validate(self._request("PUT", f"/tasks/{task_id}", json=body)["task"])

    def delete_task(self, task_id: str) -> None:
        self._request("DELETE", f"/tasks/{task_id}")

    def find_conflicts(self) -> List[Tuple[TaskOut, TaskOut]]:
        data = self._request("GET", "/tasks/conflicts")
        return [
            (TaskOut.model_validate(p["first"]), TaskOut.model_validate(p["second"]))
            for p in data["conflicts"]
        ]

    def categories(self) -> List[CategoryOut]:
        data = self._request("GET", "/tasks/categories")
        return [CategoryOut.model_validate(c) for c in data["categories"]]

    def tasks_for_date(self, day: date, tz: tzinfo = timezone.utc) -> List[TaskOut]:
        start, end = day_bounds(day, tz)
        return self.list_tasks(start_date=start, end_date=end)

    def tasks_for_week(self, day: date, tz: tzinfo = timezone.utc) -> List[TaskOut]:
        start, end = week_bounds(day, tz)
        return self.list_tasks(start_date=start, end_date=end)

    # ---- transport ----

    @staticmethod
    def _body(fields: Dict[str, Any]) -> Dict[str, Any]:
        unknown = set(fields) - set(FIELD_NAMES)
        if unknown:
            raise TypeError(f"Unknown task fields: {', '.join(sorted(unknown))}")
        return {FIELD_NAMES[k]: _wire_value(v) for k, v in fields.items()}

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        headers = {"Authorization": f"Bearer {self.token}"}
        try:
            r = self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.Timeout as e:
            # A write may still have happened; callers should re-read.
            logger.warning("%s %s timed out after %ss", method, path, self.timeout)
            raise PersistenceError(f"Request timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise PersistenceError(f"Request failed: {e}") from e

        try:
            data = r.json()
        except ValueError:
            data = {}
        if r.status_code < 400:
            return data
        raise _error_from_response(r.status_code, data)

def _error_from_response(status: int, data: Dict[str, Any]) -> Exception:
    message = data.get("message") or f"HTTP error! status: {status}"
    if status == 400 and data.get("conflictingTask"):
        blocking = ConflictingTask.model_validate(data["conflictingTask"])
        return ConflictError(blocking.id, blocking.title, blocking.start_time, blocking.end_time)
    if status == 400:
        field = data.get("field")
        return InvalidField(field, message) if field else ValidationError(message)
    if status == 401:
        return Unauthenticated(message)
    if status == 404:
        return NotFound(message)
    return PersistenceError(message)
