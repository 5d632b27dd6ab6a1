from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..deps import get_owner_id, get_task_service
from ...db.models import CATEGORY_COLORS, CATEGORY_LABELS, TaskCategory
from ...schemas.tasks import (
    CategoryList,
    CategoryOut,
    ConflictPair,
    ConflictReport,
    Message,
    TaskEnvelope,
    TaskIn,
    TaskList,
    TaskOut,
    TaskPatch,
)
from ...services.tasks import TaskService

router = APIRouter(tags=["tasks"])

@router.get("/tasks", response_model=TaskList)
def list_tasks(
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    category: Optional[TaskCategory] = Query(None),
    owner_id: str = Depends(get_owner_id),
    service: TaskService = Depends(get_task_service),
):
    tasks = service.list_tasks(owner_id, start_date, end_date, category)
    return TaskList(tasks=[TaskOut.model_validate(t) for t in tasks])

@router.get("/tasks/conflicts", response_model=ConflictReport)
def list_conflicts(
    owner_id: str = Depends(get_owner_id),
    service: TaskService = Depends(get_task_service),
):
    pairs = service.find_conflicts(owner_id)
    return ConflictReport(conflicts=[
        ConflictPair(first=TaskOut.model_validate(a), second=TaskOut.model_validate(b))
        for a, b in pairs
    ])

@router.get("/tasks/categories", response_model=CategoryList)
def list_categories():
    return CategoryList(categories=[
        CategoryOut(value=c, label=CATEGORY_LABELS[c], color=CATEGORY_COLORS[c])
        for c in TaskCategory
    ])

@router.get("/tasks/{task_id}", response_model=TaskEnvelope)
def get_task(
    task_id: str,
    owner_id: str = Depends(get_owner_id),
    service: TaskService = Depends(get_task_service),
):
    task = service.get_task(owner_id, task_id)
    return TaskEnvelope(task=TaskOut.model_validate(task))

@router.post("/tasks", response_model=TaskEnvelope, status_code=201)
def create_task(
    body: TaskIn,
    owner_id: str = Depends(get_owner_id),
    service: TaskService = Depends(get_task_service),
):
    task = service.create_task(owner_id, body.model_dump(exclude_unset=True))
    return TaskEnvelope(message="Task created successfully", task=TaskOut.model_validate(task))

@router.put("/tasks/{task_id}", response_model=TaskEnvelope)
def update_task(
    task_id: str,
    body: TaskPatch,
    owner_id: str = Depends(get_owner_id),
    service: TaskService = Depends(get_task_service),
):
    task = service.update_task(owner_id, task_id, body.model_dump(exclude_unset=True))
    return TaskEnvelope(message="Task updated successfully", task=TaskOut.model_validate(task))

@router.delete("/tasks/{task_id}", response_model=Message, response_model_exclude_none=True)
def delete_task(
    task_id: str,
    owner_id: str = Depends(get_owner_id),
    service: TaskService = Depends(get_task_service),
):
    service.delete_task(owner_id, task_id)
    return Message(message="Task deleted successfully")
