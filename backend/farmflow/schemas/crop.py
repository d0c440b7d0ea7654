"""
Pydantic Schemas für Kulturen
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field, ConfigDict

from farmflow.models.enums import CropCategory


class CropBase(BaseModel):
    """Basis-Schema für Kulturen"""
    name: str = Field(..., min_length=1, max_length=100)
    variety: Optional[str] = Field(None, max_length=100)
    category: CropCategory
    growth_days: int = Field(..., ge=0, description="Tage von Aussaat bis Ernte inkl. Blackout")
    blackout_days: int = Field(default=0, ge=0)
    soak_hours: Decimal = Field(default=Decimal("0"), ge=0)
    soak_rate: Optional[Decimal] = Field(None, ge=0, description="Saatgut pro Tray")
    soak_rate_unit: str = Field(default="oz", max_length=10)
    yield_per_unit: Optional[Decimal] = Field(None, gt=0, description="Ertrag pro Tray/Block")
    unit: str = Field(default="oz", max_length=10)
    flush_count: int = Field(default=1, ge=1)
    days_per_flush: Optional[int] = Field(None, ge=1)
    fruiting_temp: Optional[str] = Field(None, max_length=50)
    humidity: Optional[str] = Field(None, max_length=50)


class CropCreate(CropBase):
    pass


class CropUpdate(BaseModel):
    """Schema für Kultur-Updates (alle Felder optional)"""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    variety: Optional[str] = None
    growth_days: Optional[int] = Field(None, ge=0)
    blackout_days: Optional[int] = Field(None, ge=0)
    soak_hours: Optional[Decimal] = Field(None, ge=0)
    soak_rate: Optional[Decimal] = Field(None, ge=0)
    yield_per_unit: Optional[Decimal] = Field(None, gt=0)
    flush_count: Optional[int] = Field(None, ge=1)
    days_per_flush: Optional[int] = Field(None, ge=1)
    fruiting_temp: Optional[str] = None
    humidity: Optional[str] = None
    is_active: Optional[bool] = None


class CropResponse(CropBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    is_active: bool
    created_at: datetime


class CropListResponse(BaseModel):
    items: list[CropResponse]
    total: int
    page: int
    page_size: int
