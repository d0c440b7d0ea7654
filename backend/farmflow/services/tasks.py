"""
Aufgaben-Service - Tages-, Wochen- und Monatsansichten, Statuspflege
"""
import logging
from datetime import date, datetime
from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from farmflow.core.dates import date_range, format_iso_date, month_bounds, week_bounds
from farmflow.core.exceptions import NotFoundError
from farmflow.database import unit_of_work
from farmflow.models.enums import TaskStatus, TaskType, TaskSource
from farmflow.models.task import Task
from farmflow.schemas.task import TaskCreate, TaskUpdate

logger = logging.getLogger(__name__)

_OPEN_STATUSES = (TaskStatus.PENDING, TaskStatus.IN_PROGRESS)


def apply_status(task: Task, status: TaskStatus, user_id: Optional[UUID], now: datetime) -> None:
    """Setzt den Status; completed_at/completed_by werden gemeinsam gepflegt"""
    task.status = status
    if status.is_done:
        task.completed_at = now
        task.completed_by = user_id
    else:
        task.completed_at = None
        task.completed_by = None


class TaskService:
    """Service für operative Aufgaben"""

    def __init__(self, db: Session):
        self.db = db

    def get_task(self, tenant_id: UUID, task_id: UUID) -> Task:
        task = self.db.execute(
            select(Task).where(Task.id == task_id, Task.tenant_id == tenant_id)
        ).scalar_one_or_none()
        if not task:
            raise NotFoundError("Aufgabe", task_id)
        return task

    def list_tasks(
        self,
        tenant_id: UUID,
        status: Optional[TaskStatus] = None,
        task_type: Optional[TaskType] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
        batch_id: Optional[UUID] = None,
        order_id: Optional[UUID] = None,
        category: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> tuple[list[Task], int]:
        query = select(Task).where(Task.tenant_id == tenant_id)
        if status:
            query = query.where(Task.status == status)
        if task_type:
            query = query.where(Task.type == task_type)
        if start:
            query = query.where(Task.due_date >= start)
        if end:
            query = query.where(Task.due_date <= end)
        if batch_id:
            query = query.where(Task.batch_id == batch_id)
        if order_id:
            query = query.where(Task.order_id == order_id)
        if category:
            query = query.where(Task.category == category)

        total = self.db.execute(select(func.count()).select_from(query.subquery())).scalar()
        tasks = self.db.execute(
            query.order_by(Task.due_date, Task.created_at)
            .offset(skip)
            .limit(limit)
        ).scalars().all()
        return list(tasks), total

    def daily(self, tenant_id: UUID, day: date) -> list[Task]:
        tasks, _ = self.list_tasks(tenant_id, start=day, end=day, limit=1000)
        return tasks

    def weekly(self, tenant_id: UUID, day: date) -> tuple[date, date, dict[str, list[Task]]]:
        """Aufgaben der Woche (Montag bis Sonntag), gruppiert nach ISO-Datum"""
        start, end = week_bounds(day)
        tasks, _ = self.list_tasks(tenant_id, start=start, end=end, limit=5000)
        grouped: dict[str, list[Task]] = {format_iso_date(d): [] for d in date_range(start, end)}
        for task in tasks:
            grouped[format_iso_date(task.due_date)].append(task)
        return start, end, grouped

    def monthly(
        self, tenant_id: UUID, year: int, month: int
    ) -> tuple[date, date, dict[str, list[Task]]]:
        """Aufgaben des Monats, gruppiert nach ISO-Datum; Tage ohne Aufgaben fehlen"""
        start, end = month_bounds(date(year, month, 1))
        tasks, _ = self.list_tasks(tenant_id, start=start, end=end, limit=20000)
        grouped: dict[str, list[Task]] = {}
        for task in tasks:
            grouped.setdefault(format_iso_date(task.due_date), []).append(task)
        return start, end, grouped

    def overdue(self, tenant_id: UUID, today: date) -> list[Task]:
        """Offene Aufgaben mit Fälligkeit vor heute"""
        return list(self.db.execute(
            select(Task)
            .where(
                Task.tenant_id == tenant_id,
                Task.due_date < today,
                Task.status.in_(_OPEN_STATUSES),
            )
            .order_by(Task.due_date)
        ).scalars().all())

    def counts(self, tenant_id: UUID, day: date) -> dict[str, int]:
        rows = self.db.execute(
            select(Task.status, func.count())
            .where(Task.tenant_id == tenant_id, Task.due_date == day)
            .group_by(Task.status)
        ).all()
        by_status = {status: count for status, count in rows}
        overdue = self.db.execute(
            select(func.count(Task.id)).where(
                Task.tenant_id == tenant_id,
                Task.due_date < day,
                Task.status.in_(_OPEN_STATUSES),
            )
        ).scalar()
        return {
            "day": day,
            "total": sum(by_status.values()),
            "pending": by_status.get(TaskStatus.PENDING, 0),
            "in_progress": by_status.get(TaskStatus.IN_PROGRESS, 0),
            "completed": by_status.get(TaskStatus.COMPLETED, 0),
            "skipped": by_status.get(TaskStatus.SKIPPED, 0),
            "overdue": overdue,
        }

    def create_task(
        self, tenant_id: UUID, data: TaskCreate, user_id: Optional[UUID] = None
    ) -> Task:
        with unit_of_work(self.db):
            task = Task(
                tenant_id=tenant_id,
                source=TaskSource.MANUAL,
                status=TaskStatus.PENDING,
                created_by=user_id,
                **data.model_dump(),
            )
            self.db.add(task)
            self.db.flush()
        return task

    def update_task(
        self,
        tenant_id: UUID,
        task_id: UUID,
        data: TaskUpdate,
        user_id: Optional[UUID],
        now: datetime,
    ) -> Task:
        task = self.get_task(tenant_id, task_id)
        fields = data.model_dump(exclude_unset=True)
        with unit_of_work(self.db):
            if data.status is not None:
                apply_status(task, data.status, user_id, now)
            if "notes" in fields:
                task.notes = data.notes
            if data.priority is not None:
                task.priority = data.priority
            if data.due_date is not None:
                task.due_date = data.due_date
            if data.details is not None:
                task.details = data.details.model_dump(mode="json")
        return task

    def bulk_update_status(
        self,
        tenant_id: UUID,
        task_ids: Iterable[UUID],
        status: TaskStatus,
        user_id: Optional[UUID],
        now: datetime,
    ) -> int:
        tasks = self.db.execute(
            select(Task).where(Task.tenant_id == tenant_id, Task.id.in_(list(task_ids)))
        ).scalars().all()
        with unit_of_work(self.db):
            for task in tasks:
                apply_status(task, status, user_id, now)
        logger.info(f"{len(tasks)} Aufgaben auf {status.value} gesetzt")
        return len(tasks)

    def delete_task(self, tenant_id: UUID, task_id: UUID) -> None:
        """Löscht nur die Aufgabe, verknüpfte Chargen bleiben bestehen"""
        task = self.get_task(tenant_id, task_id)
        with unit_of_work(self.db):
            self.db.delete(task)
