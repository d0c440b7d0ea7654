"""
Dauerauftrag-Models: StandingOrder (Vorlage) und StandingOrderItem
"""
import uuid
from datetime import datetime, date, time
from decimal import Decimal
from typing import Optional, TYPE_CHECKING
from sqlalchemy import String, Integer, Numeric, DateTime, Date, Time, ForeignKey, Text, Boolean
from sqlalchemy.types import Uuid, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from farmflow.core.dates import is_delivery_day
from farmflow.database import Base

if TYPE_CHECKING:
    from farmflow.models.customer import Customer, Product


class StandingOrder(Base):
    """
    Dauerauftrag - Vorlage, aus der täglich Bestellungen generiert werden.

    delivery_days enthält Wochentage nach date.weekday() (0=Montag).
    Ein pausierter Auftrag generiert nichts; paused_until ist nur ein Hinweis
    und hebt die Pause nicht automatisch auf.
    """
    __tablename__ = "standing_orders"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    customer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("customers.id"), nullable=False, index=True
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text)

    # ==================== LIEFERRHYTHMUS ====================
    delivery_days: Mapped[list[int]] = mapped_column(JSON, default=list)
    delivery_time: Mapped[Optional[time]] = mapped_column(Time)
    generate_days_ahead: Mapped[int] = mapped_column(Integer, default=7)

    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[Optional[date]] = mapped_column(Date)

    # ==================== STATUS ====================
    auto_generate: Mapped[bool] = mapped_column(Boolean, default=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_paused: Mapped[bool] = mapped_column(Boolean, default=False)
    paused_until: Mapped[Optional[date]] = mapped_column(Date)
    last_generated_at: Mapped[Optional[datetime]] = mapped_column(DateTime)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)

    # Beziehungen
    customer: Mapped["Customer"] = relationship("Customer")
    items: Mapped[list["StandingOrderItem"]] = relationship(
        "StandingOrderItem",
        back_populates="standing_order",
        cascade="all, delete-orphan",
    )

    def is_due(self, for_date: date) -> bool:
        """Prüft ob für das Datum eine Bestellung generiert werden muss"""
        if not (self.is_active and self.auto_generate) or self.is_paused:
            return False
        if self.start_date > for_date:
            return False
        if self.end_date is not None and self.end_date < for_date:
            return False
        return is_delivery_day(for_date, self.delivery_days or [])

    def __repr__(self) -> str:
        return f"<StandingOrder(name='{self.name}', days={self.delivery_days})>"


class StandingOrderItem(Base):
    """Position eines Dauerauftrags - Produkt und Menge, Preis wird bei Generierung gelesen"""
    __tablename__ = "standing_order_items"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    standing_order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("standing_orders.id", ondelete="CASCADE"), nullable=False
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("products.id"), nullable=False
    )
    quantity: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    standing_order: Mapped["StandingOrder"] = relationship(
        "StandingOrder", back_populates="items"
    )
    product: Mapped["Product"] = relationship("Product")
