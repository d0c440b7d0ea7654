"""
Stammdaten für die Planung: Customer, Product und Location.
Die Pflege dieser Daten erfolgt außerhalb des Planungskerns.
"""
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlalchemy import String, Integer, Numeric, Boolean, DateTime, ForeignKey, Text
from sqlalchemy.types import Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from farmflow.database import Base
from farmflow.models.crop import Crop


class Customer(Base):
    """Kunde - Empfänger von Lieferungen"""
    __tablename__ = "customers"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)

    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    email: Mapped[Optional[str]] = mapped_column(String(200))
    phone: Mapped[Optional[str]] = mapped_column(String(50))
    address: Mapped[Optional[str]] = mapped_column(Text)
    delivery_instructions: Mapped[Optional[str]] = mapped_column(Text)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<Customer(name='{self.name}')>"


class Product(Base):
    """
    Verkaufsprodukt. Verknüpft eine Kultur mit ihrem aktuellen Basispreis.
    Daueraufträge lesen den Preis bei jeder Generierung neu.
    """
    __tablename__ = "products"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    sku: Mapped[Optional[str]] = mapped_column(String(50), index=True)
    crop_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("crops.id", ondelete="SET NULL")
    )
    base_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0.00"))

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    crop: Mapped[Optional["Crop"]] = relationship("Crop")

    def __repr__(self) -> str:
        return f"<Product(name='{self.name}', price={self.base_price})>"


class Location(Base):
    """Standort (Regal, Raum) mit Kapazität in Trays/Blöcken"""
    __tablename__ = "locations"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[Optional[str]] = mapped_column(String(50))
    capacity: Mapped[int] = mapped_column(Integer, default=100)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    def __repr__(self) -> str:
        return f"<Location(name='{self.name}', capacity={self.capacity})>"
