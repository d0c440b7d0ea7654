"""
Pydantic Schemas für Aussaatplanung und Prognosen
"""
from datetime import date
from decimal import Decimal
from uuid import UUID
from pydantic import BaseModel, Field, ConfigDict

from farmflow.models.enums import CropCategory


class PlanOrderRefSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    order_id: UUID | None = None
    order_number: str | None = None
    standing_order_id: UUID | None = None
    quantity: Decimal


class SowingPlanItemSchema(BaseModel):
    """Eine Zeile des Aussaatplans: Kultur und Liefertag"""
    model_config = ConfigDict(from_attributes=True)

    crop_id: UUID
    crop_name: str
    category: CropCategory
    sow_date: date
    harvest_date: date
    demand_quantity: Decimal
    projected_quantity: Decimal = Decimal("0")
    required_quantity: Decimal
    yield_per_unit: Decimal
    units_needed: int
    existing_batches: int
    additional_units_needed: int
    orders: list[PlanOrderRefSchema] = []


class SowingPlanResponse(BaseModel):
    start_date: date
    end_date: date
    waste_buffer: float
    items: list[SowingPlanItemSchema]
    total_additional_units: int


class MaterializeRequest(BaseModel):
    """Übernimmt Planzeilen als neue Chargen"""
    items: list[SowingPlanItemSchema] = Field(..., min_length=1)
    location_id: UUID | None = None


class ForecastEntry(BaseModel):
    expected_yield: Decimal
    unit: str
    units: int
    batches: int


class CapacityEntry(BaseModel):
    location_id: UUID
    location_name: str
    capacity: int
    used: int
    available: int
    utilization_percent: int


class DemandSupplyEntry(BaseModel):
    demand: Decimal
    supply: Decimal
    balance: Decimal
