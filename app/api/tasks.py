"""
Task and task list API endpoints.
"""

from typing import Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import Field
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.common import CamelModel
from app.db.database import get_db
from app.db.models import Task, TaskList
from app.exceptions import NotFound, ValidationError

router = APIRouter()
lists_router = APIRouter()

Priority = Literal["Urgent", "High", "Medium", "Low", "None"]
Status = Literal["active", "complete"]


class TaskListCreate(CamelModel):
    name: str
    created_by: Optional[str] = None


class TaskListResponse(CamelModel):
    id: str
    name: str
    created_by: Optional[str] = None
    created_at: Optional[str] = None


class TaskCreate(CamelModel):
    """Schema for creating a task."""

    name: str
    list_id: Optional[str] = Field(default=None, alias="list")
    due_date: Optional[str] = None
    priority: Priority = "None"
    assigned_to: Optional[str] = None
    status: Status = "active"
    notes: Optional[str] = None


class TaskUpdate(CamelModel):
    """Schema for updating a task."""

    name: Optional[str] = None
    list_id: Optional[str] = Field(default=None, alias="list")
    due_date: Optional[str] = None
    priority: Optional[Priority] = None
    assigned_to: Optional[str] = None
    status: Optional[Status] = None
    notes: Optional[str] = None


class TaskResponse(CamelModel):
    id: str
    name: str
    list: TaskListResponse
    due_date: Optional[str] = None
    priority: str
    assigned_to: Optional[str] = None
    status: str
    notes: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


def task_list_to_response(task_list: TaskList) -> TaskListResponse:
    return TaskListResponse(
        id=task_list.id,
        name=task_list.name,
        created_by=task_list.created_by,
        created_at=task_list.created_at.isoformat() if task_list.created_at else None,
    )


def task_to_response(task: Task) -> TaskResponse:
    """Convert Task model to response schema, embedding its list."""
    return TaskResponse(
        id=task.id,
        name=task.name,
        list=task_list_to_response(task.task_list),
        due_date=task.due_date,
        priority=task.priority,
        assigned_to=task.assigned_to,
        status=task.status,
        notes=task.notes,
        created_at=task.created_at.isoformat() if task.created_at else None,
        updated_at=task.updated_at.isoformat() if task.updated_at else None,
    )


def _get_task_list(db: Session, list_id: str) -> TaskList:
    task_list = db.query(TaskList).filter(TaskList.id == list_id).first()
    if not task_list:
        raise NotFound("Task list not found")
    return task_list


# ============================================================================
# TASKS
# ============================================================================


@router.post("/", response_model=TaskResponse, status_code=201)
async def create_task(data: TaskCreate, db: Session = Depends(get_db)):
    """Create a task on an existing list."""
    if not data.list_id:
        raise ValidationError("Task list is required")
    _get_task_list(db, data.list_id)

    task = Task(**data.model_dump())
    db.add(task)
    db.commit()
    db.refresh(task)
    return task_to_response(task)


@router.get("/", response_model=List[TaskResponse])
async def list_tasks(
    list_id: Optional[str] = Query(default=None, alias="list"),
    db: Session = Depends(get_db),
):
    """List tasks, oldest first, optionally for one list."""
    query = db.query(Task)
    if list_id:
        query = query.filter(Task.list_id == list_id)
    tasks = query.order_by(Task.created_at).all()
    return [task_to_response(t) for t in tasks]


@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(task_id: str, data: TaskUpdate, db: Session = Depends(get_db)):
    """Update a task."""
    task = db.query(Task).filter(Task.id == task_id).first()
    if not task:
        raise NotFound("Task not found")

    update_data = data.model_dump(exclude_unset=True)
    if update_data.get("list_id"):
        _get_task_list(db, update_data["list_id"])
    elif "list_id" in update_data:
        raise ValidationError("Task list is required")

    for field, value in update_data.items():
        setattr(task, field, value)

    db.commit()
    db.refresh(task)
    return task_to_response(task)


@router.delete("/{task_id}")
async def delete_task(task_id: str, db: Session = Depends(get_db)):
    """Delete a task."""
    task = db.query(Task).filter(Task.id == task_id).first()
    if not task:
        raise NotFound("Task not found")

    db.delete(task)
    db.commit()
    return {"message": "Task deleted"}


# ============================================================================
# TASK LISTS
# ============================================================================


@lists_router.post("/", response_model=TaskListResponse, status_code=201)
async def create_task_list(data: TaskListCreate, db: Session = Depends(get_db)):
    """Create a task list; names are unique."""
    task_list = TaskList(name=data.name, created_by=data.created_by)
    db.add(task_list)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationError(f"Task list '{data.name}' already exists")
    db.refresh(task_list)
    return task_list_to_response(task_list)


@lists_router.get("/", response_model=List[TaskListResponse])
async def list_task_lists(db: Session = Depends(get_db)):
    """List task lists, oldest first."""
    lists = db.query(TaskList).order_by(TaskList.created_at).all()
    return [task_list_to_response(tl) for tl in lists]


@lists_router.get("/counts")
async def get_task_counts(db: Session = Depends(get_db)) -> Dict[str, int]:
    """Number of tasks on each list."""
    counts = dict(
        db.query(Task.list_id, func.count(Task.id)).group_by(Task.list_id).all()
    )
    return {tl.id: counts.get(tl.id, 0) for tl in db.query(TaskList).all()}


@lists_router.delete("/{list_id}")
async def delete_task_list(list_id: str, db: Session = Depends(get_db)):
    """Delete a task list and its tasks."""
    task_list = _get_task_list(db, list_id)
    db.delete(task_list)
    db.commit()
    return {"message": "Task list deleted"}
