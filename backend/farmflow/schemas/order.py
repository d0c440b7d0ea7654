"""
Pydantic Schemas für Bestellungen und Daueraufträge
"""
from datetime import date, datetime, time
from decimal import Decimal
from uuid import UUID
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional

from farmflow.models.enums import DateType, OrderStatus, OrderSource, RecurrenceFrequency


# ==================== ORDER ITEM SCHEMAS ====================

class OrderItemCreate(BaseModel):
    """Schema für eine Bestellposition"""
    # Ohne Angabe werden Kultur und Preis aus dem Produkt übernommen;
    # fehlt die Kultur danach noch, lehnt der Service die Bestellung ab
    crop_id: Optional[UUID] = Field(None, description="Kultur-ID")
    product_id: Optional[UUID] = Field(None, description="Produkt-ID")
    quantity: Decimal = Field(..., gt=0, description="Menge in Ernteeinheit")
    unit_price: Optional[Decimal] = Field(None, ge=0, description="Einzelpreis, Standard: Basispreis des Produkts")


class OrderItemResponse(BaseModel):
    """Schema für Bestellposition-Antwort"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    position: int
    crop_id: UUID
    product_id: Optional[UUID]
    quantity: Decimal
    unit_price: Decimal
    line_total: Decimal


# ==================== ORDER SCHEMAS ====================

class OrderCreate(BaseModel):
    """Schema zum Erstellen einer Bestellung"""
    customer_id: UUID = Field(..., description="Kunden-ID")
    date_type: DateType = Field(default=DateType.HARVEST, description="Bezug des Zieldatums")
    target_date: date = Field(..., description="Ernte- bzw. Starttermin")
    delivery_offset: Optional[int] = Field(None, ge=0, description="Tage zwischen Ernte und Lieferung")
    items: list[OrderItemCreate] = Field(..., min_length=1, description="Bestellpositionen")
    notes: Optional[str] = None

    # Wiederholung
    is_recurring: bool = False
    frequency: Optional[RecurrenceFrequency] = None
    recurring_end_date: Optional[date] = None


class OrderUpdate(BaseModel):
    """
    Schema zum Aktualisieren einer Bestellung.
    Änderungen an Positionen, Terminen oder Kunde erzeugen alle Chargen
    und Aufgaben neu.
    """
    customer_id: Optional[UUID] = None
    date_type: Optional[DateType] = None
    target_date: Optional[date] = None
    delivery_offset: Optional[int] = Field(None, ge=0)
    items: Optional[list[OrderItemCreate]] = Field(None, min_length=1)
    status: Optional[OrderStatus] = None
    notes: Optional[str] = None


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class OrderBulkDelete(BaseModel):
    order_ids: list[UUID] = Field(..., min_length=1)


class OrderResponse(BaseModel):
    """Schema für Bestellung-Antwort"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    order_number: str
    customer_id: UUID
    customer_name: Optional[str]
    date_type: DateType
    target_date: date
    delivery_offset: int
    harvest_date: date
    delivery_date: date
    status: OrderStatus
    source: OrderSource
    total: Decimal
    is_recurring: bool
    frequency: Optional[RecurrenceFrequency]
    recurring_end_date: Optional[date]
    recurrence_group_id: Optional[UUID]
    standing_order_id: Optional[UUID]
    notes: Optional[str]
    items: list[OrderItemResponse] = []
    created_at: datetime
    updated_at: datetime


class OrderListResponse(BaseModel):
    items: list[OrderResponse]
    total: int


class OrderCreatedResponse(BaseModel):
    """Angelegte Bestellungen (bei Wiederholung mehrere)"""
    orders: list[OrderResponse]
    count: int


# ==================== STANDING ORDER SCHEMAS ====================

class StandingOrderItemCreate(BaseModel):
    product_id: UUID
    quantity: Decimal = Field(..., gt=0)


class StandingOrderItemResponse(StandingOrderItemCreate):
    model_config = ConfigDict(from_attributes=True)

    id: UUID


class StandingOrderBase(BaseModel):
    """Basis-Schema für Dauerauftrag"""
    name: str = Field(..., min_length=1, max_length=200)
    delivery_days: list[int] = Field(..., min_length=1, description="Wochentage, 0=Montag")
    delivery_time: Optional[time] = None
    generate_days_ahead: int = Field(default=7, ge=0, le=60)
    auto_generate: bool = True
    start_date: date
    end_date: Optional[date] = None
    notes: Optional[str] = None

    @field_validator("delivery_days")
    @classmethod
    def validate_delivery_days(cls, v: list[int]) -> list[int]:
        if any(day < 0 or day > 6 for day in v):
            raise ValueError("Wochentage müssen zwischen 0 (Montag) und 6 (Sonntag) liegen")
        return sorted(set(v))


class StandingOrderCreate(StandingOrderBase):
    customer_id: UUID
    items: list[StandingOrderItemCreate] = Field(..., min_length=1)


class StandingOrderUpdate(BaseModel):
    """Positionen werden bei Angabe komplett ersetzt"""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    delivery_days: Optional[list[int]] = Field(None, min_length=1)
    delivery_time: Optional[time] = None
    generate_days_ahead: Optional[int] = Field(None, ge=0, le=60)
    auto_generate: Optional[bool] = None
    is_active: Optional[bool] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    notes: Optional[str] = None
    items: Optional[list[StandingOrderItemCreate]] = Field(None, min_length=1)

    @field_validator("delivery_days")
    @classmethod
    def validate_delivery_days(cls, v: Optional[list[int]]) -> Optional[list[int]]:
        if v is None:
            return v
        if any(day < 0 or day > 6 for day in v):
            raise ValueError("Wochentage müssen zwischen 0 (Montag) und 6 (Sonntag) liegen")
        return sorted(set(v))


class StandingOrderPause(BaseModel):
    paused_until: Optional[date] = None


class StandingOrderResponse(StandingOrderBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    customer_id: UUID
    is_active: bool
    is_paused: bool
    paused_until: Optional[date]
    last_generated_at: Optional[datetime]
    items: list[StandingOrderItemResponse] = []
    created_at: datetime


class GenerateRequest(BaseModel):
    for_date: date


class GenerateResponse(BaseModel):
    for_date: date
    generated: int
    orders: list[OrderResponse]
