"""
Pydantic Schemas für Produktion
"""
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID
from pydantic import BaseModel, Field, ConfigDict

from farmflow.models.enums import BatchStatus, ProductionType, QualityGrade, TaskSource


class BatchBase(BaseModel):
    """Basis-Schema für Produktionscharge"""
    crop_id: UUID = Field(..., description="Kultur-ID")
    quantity: int = Field(..., ge=1, description="Anzahl Trays bzw. Blöcke")
    planned_sow_date: date = Field(..., description="Geplanter Aussaat- bzw. Starttag")
    location_id: UUID | None = Field(None, description="Standort")
    notes: str | None = Field(None, description="Zusätzliche Notizen")


class BatchCreate(BatchBase):
    """Schema zum Erstellen einer Charge"""
    # Ohne Angabe aus der Kulturkategorie abgeleitet
    production_type: ProductionType | None = None
    order_id: UUID | None = None
    expected_yield: Decimal | None = Field(None, ge=0)
    generate_tasks: bool = True


class BatchStatusUpdate(BaseModel):
    status: BatchStatus
    effective_date: date | None = Field(None, description="Stichtag für Ist-Termine")


class BatchResponse(BatchBase):
    """Schema für Chargen-Antwort"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    batch_code: str
    order_id: UUID | None
    production_type: ProductionType
    status: BatchStatus
    source: TaskSource
    planned_harvest_date: date
    actual_sow_date: date | None
    actual_harvest_date: date | None
    expected_yield: Decimal
    actual_yield: Decimal
    yield_unit: str
    current_flush: int
    max_flushes: int
    created_at: datetime
    updated_at: datetime


class BatchListResponse(BaseModel):
    items: list[BatchResponse]
    total: int


# Harvest Schemas

class HarvestCreate(BaseModel):
    """Schema zum Erfassen einer Ernte"""
    harvest_date: date = Field(..., description="Erntedatum")
    quantity: Decimal = Field(..., gt=0, description="Geerntete Menge")
    unit: str | None = Field(None, max_length=10, description="Einheit, Standard aus Charge")
    quality_grade: QualityGrade = QualityGrade.A
    notes: str | None = None


class HarvestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    batch_id: UUID
    harvest_date: date
    quantity: Decimal
    unit: str
    quality_grade: QualityGrade
    flush_number: int
    notes: str | None
    harvested_by: UUID | None


class HarvestResult(BaseModel):
    """Ernte plus neuer Chargenzustand"""
    harvest: HarvestResponse
    batch: BatchResponse


# Movement Schemas

class MovementCreate(BaseModel):
    to_location_id: UUID
    reason: str | None = Field(None, max_length=200)


class MovementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    batch_id: UUID
    from_location_id: UUID | None
    to_location_id: UUID
    reason: str | None
    moved_at: datetime
    moved_by: UUID | None
