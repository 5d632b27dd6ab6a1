from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from ..db.models import TaskCategory

class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True

class TaskIn(CamelModel):
    # Kept loose on purpose: services.validation owns the field rules and the
    # error messages, including timestamp parsing.
    title: Optional[str] = None
    description: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    category: Optional[str] = None
    notes: Optional[str] = None
    reminder: Optional[str] = None

class TaskPatch(TaskIn):
    """Only fields present in the request body are applied."""

class TaskOut(CamelModel):
    id: str
    title: str
    description: Optional[str] = None
    start_time: datetime
    end_time: datetime
    category: TaskCategory
    notes: Optional[str] = None
    reminder: Optional[datetime] = None
    owner_id: str
    created_at: datetime
    updated_at: datetime

class TaskEnvelope(CamelModel):
    message: Optional[str] = None
    task: TaskOut

class TaskList(CamelModel):
    tasks: List[TaskOut]

class ConflictingTask(CamelModel):
    id: str
    title: str
    start_time: datetime
    end_time: datetime

class ConflictBody(CamelModel):
    message: str
    conflicting_task: ConflictingTask

class ConflictPair(CamelModel):
    first: TaskOut
    second: TaskOut

class ConflictReport(CamelModel):
    conflicts: List[ConflictPair]

class Message(CamelModel):
    message: str
    field: Optional[str] = None

class CategoryOut(CamelModel):
    value: TaskCategory
    label: str
    color: str

class CategoryList(CamelModel):
    categories: List[CategoryOut]
