"""
Bestell-Models: Order (Header) und OrderItem (Positionen)

Eine Bestellung besitzt ihre Positionen sowie die daraus generierten
Produktionschargen und Aufgaben. Gelöscht wird explizit über
OrderSchedulerService.cascade_delete_order.
"""
import uuid
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, TYPE_CHECKING
from sqlalchemy import (
    String, Integer, Numeric, DateTime, Date, ForeignKey, Text, Boolean,
    Enum as SQLEnum, UniqueConstraint,
)
from sqlalchemy.types import Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from farmflow.database import Base
from farmflow.models.enums import DateType, OrderStatus, OrderSource, RecurrenceFrequency

if TYPE_CHECKING:
    from farmflow.models.customer import Customer
    from farmflow.models.crop import Crop


class Order(Base):
    """
    Kundenbestellung mit abgeleiteten Ernte- und Lieferdaten.

    Geschäftsregeln:
    - Zieldatum bezieht sich je nach date_type auf Ernte oder Start
    - total ist immer die Summe aus Menge × Stückpreis aller Positionen
    - Pro Dauerauftrag und Liefertag existiert höchstens eine Bestellung
    """
    __tablename__ = "orders"
    __table_args__ = (
        UniqueConstraint("tenant_id", "order_number", name="uq_orders_tenant_number"),
        UniqueConstraint("standing_order_id", "delivery_date", name="uq_orders_standing_delivery"),
    )

    # ==================== IDENTIFIKATION ====================
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)

    # Sequentielle Bestellnummer (z.B. "ORD-20240612-0001")
    order_number: Mapped[str] = mapped_column(String(30), nullable=False, index=True)

    # ==================== KUNDENREFERENZ ====================
    customer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("customers.id"), nullable=False, index=True
    )
    # Snapshot des Kundennamens für Aufgaben und Listen
    customer_name: Mapped[Optional[str]] = mapped_column(String(200))

    # ==================== DATUM ====================
    date_type: Mapped[DateType] = mapped_column(
        SQLEnum(DateType), default=DateType.HARVEST, nullable=False
    )
    target_date: Mapped[date] = mapped_column(Date, nullable=False)
    delivery_offset: Mapped[int] = mapped_column(Integer, default=1)
    harvest_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    delivery_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    # ==================== STATUS ====================
    status: Mapped[OrderStatus] = mapped_column(
        SQLEnum(OrderStatus), default=OrderStatus.PENDING, index=True
    )
    source: Mapped[OrderSource] = mapped_column(
        SQLEnum(OrderSource), default=OrderSource.MANUAL
    )

    # ==================== BETRÄGE ====================
    total: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=Decimal("0.00"), nullable=False
    )

    # ==================== WIEDERHOLUNG ====================
    is_recurring: Mapped[bool] = mapped_column(Boolean, default=False)
    frequency: Mapped[Optional[RecurrenceFrequency]] = mapped_column(
        SQLEnum(RecurrenceFrequency)
    )
    recurring_end_date: Mapped[Optional[date]] = mapped_column(Date)
    recurrence_group_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, index=True)

    # Herkunft aus Dauerauftrag
    standing_order_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("standing_orders.id", ondelete="SET NULL"), index=True
    )

    # ==================== NOTIZEN ====================
    notes: Mapped[Optional[str]] = mapped_column(Text)

    # ==================== AUDIT FIELDS ====================
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)

    # ==================== BEZIEHUNGEN ====================
    customer: Mapped["Customer"] = relationship("Customer")
    items: Mapped[list["OrderItem"]] = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.position",
    )

    def calculate_total(self) -> Decimal:
        """Berechnet die Summe aller Positionen neu"""
        self.total = sum((item.line_total for item in self.items), Decimal("0.00"))
        return self.total

    @property
    def item_count(self) -> int:
        return len(self.items)

    def __repr__(self) -> str:
        return f"<Order(number='{self.order_number}', delivery={self.delivery_date})>"


class OrderItem(Base):
    """Bestellposition - eine Kultur mit Menge und Preis"""
    __tablename__ = "order_items"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, default=1)

    crop_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("crops.id"), nullable=False, index=True
    )
    product_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("products.id", ondelete="SET NULL")
    )

    quantity: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0.00"))
    line_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0.00"))

    # Beziehungen
    order: Mapped["Order"] = relationship("Order", back_populates="items")
    crop: Mapped["Crop"] = relationship("Crop")

    def calculate_line_total(self) -> Decimal:
        self.line_total = (Decimal(self.quantity) * Decimal(self.unit_price)).quantize(Decimal("0.01"))
        return self.line_total

    def __repr__(self) -> str:
        return f"<OrderItem(crop_id={self.crop_id}, quantity={self.quantity})>"
