from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from sqlalchemy.types import DateTime, TypeDecorator
from sqlmodel import Field, SQLModel

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def as_utc(value: datetime) -> datetime:
    """Naive timestamps are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

class UTCDateTime(TypeDecorator):
    """Stores UTC, always loads timezone-aware values.

    SQLite drops offsets on write, so everything is converted to UTC first.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        value = as_utc(value)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return as_utc(value)

class TaskCategory(str, Enum):
    meeting = "meeting"
    personal = "personal"
    other = "other"
    weekend = "weekend"
    cooking = "cooking"

CATEGORY_LABELS = {
    TaskCategory.meeting: "Meeting",
    TaskCategory.personal: "Outing",
    TaskCategory.other: "Other",
    TaskCategory.weekend: "Weekend",
    TaskCategory.cooking: "Cooking",
}

CATEGORY_COLORS = {
    TaskCategory.meeting: "#3B82F6",
    TaskCategory.personal: "#06B6D4",
    TaskCategory.other: "#8B5CF6",
    TaskCategory.weekend: "#F59E0B",
    TaskCategory.cooking: "#EF4444",
}

class Task(SQLModel, table=True):
    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    owner_id: str = Field(index=True, nullable=False)
    title: str = Field(max_length=255, nullable=False)
    description: Optional[str] = None
    start_time: datetime = Field(sa_type=UTCDateTime, index=True, nullable=False)
    end_time: datetime = Field(sa_type=UTCDateTime, nullable=False)
    category: TaskCategory = Field(default=TaskCategory.other, index=True, nullable=False)
    notes: Optional[str] = None
    reminder: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime, nullable=False)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime, nullable=False)
