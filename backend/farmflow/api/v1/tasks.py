"""
API Endpoints für Aufgaben
"""
from datetime import date, datetime
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, status, Query, Path

from farmflow.api.deps import DBSession, CurrentUser, Pagination
from farmflow.models.enums import TaskStatus, TaskType
from farmflow.schemas.task import (
    TaskCreate, TaskUpdate, TaskBulkStatusUpdate,
    TaskResponse, TaskListResponse, TaskCounts, WeeklyTasksResponse, MonthlyTasksResponse,
)
from farmflow.services.tasks import TaskService

router = APIRouter()


@router.get("", response_model=TaskListResponse)
async def list_tasks(
    db: DBSession,
    user: CurrentUser,
    pagination: Pagination,
    status_filter: Optional[TaskStatus] = Query(None, alias="status"),
    task_type: Optional[TaskType] = Query(None, alias="type"),
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    batch_id: Optional[UUID] = None,
    order_id: Optional[UUID] = None,
    category: Optional[str] = None,
):
    tasks, total = TaskService(db).list_tasks(
        user["tenant_id"],
        status=status_filter,
        task_type=task_type,
        start=start_date,
        end=end_date,
        batch_id=batch_id,
        order_id=order_id,
        category=category,
        skip=pagination.offset,
        limit=pagination.page_size,
    )
    return TaskListResponse(items=[TaskResponse.model_validate(t) for t in tasks], total=total)


@router.get("/daily/{day}", response_model=list[TaskResponse])
async def daily_tasks(day: date, db: DBSession, user: CurrentUser):
    return TaskService(db).daily(user["tenant_id"], day)


@router.get("/weekly/{day}", response_model=WeeklyTasksResponse)
async def weekly_tasks(day: date, db: DBSession, user: CurrentUser):
    """Aufgaben der Woche (Montag bis Sonntag), die den Tag enthält."""
    start, end, grouped = TaskService(db).weekly(user["tenant_id"], day)
    return WeeklyTasksResponse(
        week_start=start,
        week_end=end,
        days={
            iso_day: [TaskResponse.model_validate(t) for t in tasks]
            for iso_day, tasks in grouped.items()
        },
    )


@router.get("/monthly/{year}/{month}", response_model=MonthlyTasksResponse)
async def monthly_tasks(
    db: DBSession,
    user: CurrentUser,
    year: int = Path(..., ge=2000, le=2100),
    month: int = Path(..., ge=1, le=12),
):
    """Aufgaben eines Kalendermonats, nur Tage mit Aufgaben."""
    start, end, grouped = TaskService(db).monthly(user["tenant_id"], year, month)
    return MonthlyTasksResponse(
        year=year,
        month=month,
        month_start=start,
        month_end=end,
        days={
            iso_day: [TaskResponse.model_validate(t) for t in tasks]
            for iso_day, tasks in grouped.items()
        },
    )


@router.get("/overdue", response_model=list[TaskResponse])
async def overdue_tasks(db: DBSession, user: CurrentUser, today: Optional[date] = None):
    return TaskService(db).overdue(user["tenant_id"], today or date.today())


@router.get("/counts/{day}", response_model=TaskCounts)
async def task_counts(day: date, db: DBSession, user: CurrentUser):
    return TaskService(db).counts(user["tenant_id"], day)


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(data: TaskCreate, db: DBSession, user: CurrentUser):
    """Manuelle Aufgabe anlegen."""
    return TaskService(db).create_task(user["tenant_id"], data, user_id=user["id"])


@router.patch("/{task_id}", response_model=TaskResponse)
async def update_task(task_id: UUID, data: TaskUpdate, db: DBSession, user: CurrentUser):
    """
    Aufgabe aktualisieren.

    COMPLETED/SKIPPED setzt completed_at und completed_by, PENDING/IN_PROGRESS
    entfernt beide wieder.
    """
    return TaskService(db).update_task(
        user["tenant_id"], task_id, data, user_id=user["id"], now=datetime.utcnow()
    )


@router.post("/bulk-status")
async def bulk_update_status(data: TaskBulkStatusUpdate, db: DBSession, user: CurrentUser):
    updated = TaskService(db).bulk_update_status(
        user["tenant_id"], data.task_ids, data.status, user_id=user["id"], now=datetime.utcnow()
    )
    return {"updated": updated}


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(task_id: UUID, db: DBSession, user: CurrentUser):
    TaskService(db).delete_task(user["tenant_id"], task_id)
