"""
Aufgaben-Model: operative Tagesaufgaben (Einweichen, Säen, Ernten, Liefern ...)
"""
import uuid
from datetime import datetime, date
from typing import Optional
from sqlalchemy import String, Integer, DateTime, Date, ForeignKey, Text, Enum as SQLEnum
from sqlalchemy.types import Uuid, JSON
from sqlalchemy.orm import Mapped, mapped_column

from farmflow.database import Base
from farmflow.models.enums import TaskType, TaskStatus, TaskSource, TaskPriority


class Task(Base):
    """
    Aufgabe mit Fälligkeitsdatum.

    Verweise auf Charge und Bestellung sind schwach: das Löschen einer
    Aufgabe löscht nie die Charge. completed_at und completed_by werden
    immer gemeinsam gesetzt bzw. gelöscht.
    """
    __tablename__ = "tasks"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)

    type: Mapped[TaskType] = mapped_column(SQLEnum(TaskType), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(50))
    due_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    status: Mapped[TaskStatus] = mapped_column(
        SQLEnum(TaskStatus), default=TaskStatus.PENDING, index=True
    )
    priority: Mapped[TaskPriority] = mapped_column(
        SQLEnum(TaskPriority), default=TaskPriority.MEDIUM
    )
    source: Mapped[TaskSource] = mapped_column(
        SQLEnum(TaskSource), default=TaskSource.MANUAL
    )
    estimated_minutes: Mapped[Optional[int]] = mapped_column(Integer)

    # Typisierte Nutzlast (siehe farmflow.schemas.task.TaskDetails)
    details: Mapped[Optional[dict]] = mapped_column(JSON)
    notes: Mapped[Optional[str]] = mapped_column(Text)

    # ==================== VERKNÜPFUNGEN ====================
    batch_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("production_batches.id", ondelete="SET NULL"), index=True
    )
    order_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("orders.id", ondelete="SET NULL"), index=True
    )
    crop_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("crops.id", ondelete="SET NULL")
    )
    location_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("locations.id", ondelete="SET NULL")
    )

    # ==================== ERLEDIGUNG ====================
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    completed_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)

    def __repr__(self) -> str:
        return f"<Task(type={self.type.value}, due={self.due_date}, status={self.status.value})>"
