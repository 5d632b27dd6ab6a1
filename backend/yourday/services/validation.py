# Timestamps without an offset are read as UTC. Errors use wire field names.
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from dateutil import parser as dtparser

from ..core.errors import InvalidField
from ..db.models import TaskCategory, as_utc

TITLE_MAX_LENGTH = 255

WIRE_NAMES = {
    "title": "title",
    "description": "description",
    "start_time": "startTime",
    "end_time": "endTime",
    "category": "category",
    "notes": "notes",
    "reminder": "reminder",
}

def clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None

def clean_title(value: Any) -> str:
    title = clean_text(value)
    if not title:
        raise InvalidField("title", "Title is required")
    if len(title) > TITLE_MAX_LENGTH:
        raise InvalidField("title", f"Title must be at most {TITLE_MAX_LENGTH} characters")
    return title

def parse_timestamp(field: str, value: Any) -> Optional[datetime]:
    name = WIRE_NAMES[field]
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    if not isinstance(value, str):
        raise InvalidField(name, "Invalid date format")
    try:
        return as_utc(dtparser.isoparse(value.strip()))
    except (ValueError, OverflowError):
        raise InvalidField(name, "Invalid date format")

def required_timestamp(field: str, value: Any) -> datetime:
    parsed = parse_timestamp(field, value)
    if parsed is None:
        label = "Start time" if field == "start_time" else "End time"
        raise InvalidField(WIRE_NAMES[field], f"{label} is required")
    return parsed

def parse_category(value: Any) -> TaskCategory:
    if isinstance(value, TaskCategory):
        return value
    try:
        return TaskCategory(value)
    except ValueError:
        allowed = ", ".join(c.value for c in TaskCategory)
        raise InvalidField("category", f"Category must be one of: {allowed}")

def check_interval(start: datetime, end: datetime) -> None:
    if end <= start:
        raise InvalidField("endTime", "End time must be after start time")

def validate(candidate: Mapping[str, Any]) -> Dict[str, Any]:
    """Clean a create request into the fields of a new task."""
    title = clean_title(candidate.get("title"))
    start = required_timestamp("start_time", candidate.get("start_time"))
    end = required_timestamp("end_time", candidate.get("end_time"))
    check_interval(start, end)

    category = candidate.get("category")
    return {
        "title": title,
        "description": clean_text(candidate.get("description")),
        "start_time": start,
        "end_time": end,
        "category": TaskCategory.other if category is None else parse_category(category),
        "notes": clean_text(candidate.get("notes")),
        "reminder": parse_timestamp("reminder", candidate.get("reminder")),
    }

def validate_patch(patch: Mapping[str, Any]) -> Dict[str, Any]:
    """Clean the fields present in an update request.

    The merged time range is checked by the caller, which knows the stored values.
    """
    changes: Dict[str, Any] = {}
    for field, value in patch.items():
        if field == "title":
            changes[field] = clean_title(value)
        elif field in ("start_time", "end_time"):
            changes[field] = required_timestamp(field, value)
        elif field == "category":
            if value is None:
                raise InvalidField("category", "Category cannot be empty")
            changes[field] = parse_category(value)
        elif field in ("description", "notes"):
            changes[field] = clean_text(value)
        elif field == "reminder":
            changes[field] = parse_timestamp(field, value)
    return changes
