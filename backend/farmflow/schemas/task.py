"""
Pydantic Schemas für Aufgaben

Die Nutzlast `details` ist eine Discriminated Union über das Feld `kind`
und wird als JSON in der Aufgabe gespeichert.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Literal, Union
from uuid import UUID
from pydantic import BaseModel, Field, ConfigDict, TypeAdapter

from farmflow.models.enums import TaskType, TaskStatus, TaskSource, TaskPriority


# ==================== DETAILS ====================

class SoakDetails(BaseModel):
    """Einweichen von Saatgut"""
    kind: Literal["soak"] = "soak"
    crop_name: str
    variety: str | None = None
    trays: int
    seed_weight: Decimal | None = None
    seed_unit: str = "oz"
    soak_hours: Decimal
    soak_rate: Decimal | None = None
    quantity: Decimal
    unit: str = "oz"


class PlantDetails(BaseModel):
    """Aussaat auf Trays, Beginn der Blackout-Phase"""
    kind: Literal["plant"] = "plant"
    crop_name: str
    variety: str | None = None
    trays: int
    seed_weight: Decimal | None = None
    seed_unit: str = "oz"
    blackout_days: int = 0
    quantity: Decimal
    unit: str = "oz"


class UncoverDetails(BaseModel):
    """Ende der Blackout-Phase, Trays ins Licht"""
    kind: Literal["uncover"] = "uncover"
    crop_name: str
    variety: str | None = None
    trays: int
    quantity: Decimal
    unit: str = "oz"


class HarvestDetails(BaseModel):
    kind: Literal["harvest"] = "harvest"
    crop_name: str
    variety: str | None = None
    units: int
    quantity: Decimal
    expected_yield: Decimal
    unit: str = "oz"
    customer_name: str | None = None


class IntroduceDetails(BaseModel):
    """Pilzblöcke in den Fruchtraum einbringen"""
    kind: Literal["introduce"] = "introduce"
    crop_name: str
    variety: str | None = None
    blocks: int
    quantity: Decimal
    unit: str = "oz"
    fruiting_temp: str | None = None
    humidity: str | None = None


class DeliveryDetails(BaseModel):
    kind: Literal["delivery"] = "delivery"
    order_number: str
    customer_name: str | None = None
    customer_address: str | None = None
    item_count: int
    total: Decimal


class BatchStepDetails(BaseModel):
    """Arbeitsschritt einer Charge aus der Chargenvorlage"""
    kind: Literal["batch_step"] = "batch_step"
    batch_code: str
    crop_name: str
    units: int
    day_offset: int


TaskDetails = Annotated[
    Union[
        SoakDetails,
        PlantDetails,
        UncoverDetails,
        HarvestDetails,
        IntroduceDetails,
        DeliveryDetails,
        BatchStepDetails,
    ],
    Field(discriminator="kind"),
]

task_details_adapter = TypeAdapter(TaskDetails)


def parse_task_details(raw: dict | None):
    """Liest gespeichertes JSON wieder als typisierte Details ein"""
    if raw is None:
        return None
    return task_details_adapter.validate_python(raw)


# ==================== AUFGABEN ====================

class TaskBase(BaseModel):
    """Basis-Schema für Aufgaben"""
    type: TaskType = Field(default=TaskType.CUSTOM)
    title: str = Field(..., min_length=1, max_length=200)
    category: str | None = Field(None, max_length=50)
    due_date: date
    priority: TaskPriority = TaskPriority.MEDIUM
    estimated_minutes: int | None = Field(None, ge=0)
    notes: str | None = None


class TaskCreate(TaskBase):
    """Manuelle Aufgabe"""
    batch_id: UUID | None = None
    order_id: UUID | None = None
    crop_id: UUID | None = None
    location_id: UUID | None = None


class TaskUpdate(BaseModel):
    """Statuswechsel und Notizen; details ersetzt die Nutzlast komplett"""
    status: TaskStatus | None = None
    notes: str | None = None
    priority: TaskPriority | None = None
    due_date: date | None = None
    details: TaskDetails | None = None


class TaskBulkStatusUpdate(BaseModel):
    task_ids: list[UUID] = Field(..., min_length=1)
    status: TaskStatus


class TaskResponse(TaskBase):
    """Schema für Aufgaben-Antwort"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    status: TaskStatus
    source: TaskSource
    details: dict | None = None
    batch_id: UUID | None = None
    order_id: UUID | None = None
    crop_id: UUID | None = None
    location_id: UUID | None = None
    completed_at: datetime | None = None
    completed_by: UUID | None = None
    created_at: datetime


class TaskListResponse(BaseModel):
    items: list[TaskResponse]
    total: int


class TaskCounts(BaseModel):
    """Aufgabenzähler für einen Tag"""
    day: date
    total: int = 0
    pending: int = 0
    in_progress: int = 0
    completed: int = 0
    skipped: int = 0
    overdue: int = 0


class WeeklyTasksResponse(BaseModel):
    """Aufgaben einer Woche, gruppiert nach ISO-Datum (Montag bis Sonntag)"""
    week_start: date
    week_end: date
    days: dict[str, list[TaskResponse]]


class MonthlyTasksResponse(BaseModel):
    """Aufgaben eines Monats, gruppiert nach ISO-Datum"""
    year: int
    month: int
    month_start: date
    month_end: date
    days: dict[str, list[TaskResponse]]
