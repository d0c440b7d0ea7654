"""
Kultur-Model: Crop mit Wachstums- und Ertragsparametern
"""
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlalchemy import String, Integer, Numeric, Boolean, DateTime, Enum as SQLEnum
from sqlalchemy.types import Uuid
from sqlalchemy.orm import Mapped, mapped_column


from farmflow.database import Base
from farmflow.models.enums import CropCategory


class Crop(Base):
    """
    Kultur (Microgreen-Sorte oder Pilzart) mit Wachstumsparametern.
    Grundlage für Aufgabenplanung und Aussaatplan.
    """
    __tablename__ = "crops"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)

    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    variety: Mapped[Optional[str]] = mapped_column(String(100))
    category: Mapped[CropCategory] = mapped_column(
        SQLEnum(CropCategory), nullable=False
    )

    # Wachstumsparameter (growth_days umfasst die Blackout-Phase)
    growth_days: Mapped[int] = mapped_column(Integer, nullable=False)
    blackout_days: Mapped[int] = mapped_column(Integer, default=0)

    # Einweichen (nur Microgreens)
    soak_hours: Mapped[Decimal] = mapped_column(Numeric(5, 1), default=Decimal("0"))
    soak_rate: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))  # Saatgut pro Tray
    soak_rate_unit: Mapped[str] = mapped_column(String(10), default="oz")

    # Ertrag pro Tray bzw. Block
    yield_per_unit: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))
    unit: Mapped[str] = mapped_column(String(10), default="oz")

    # Pilz-spezifisch
    flush_count: Mapped[int] = mapped_column(Integer, default=1)
    days_per_flush: Mapped[Optional[int]] = mapped_column(Integer)
    fruiting_temp: Mapped[Optional[str]] = mapped_column(String(50))
    humidity: Mapped[Optional[str]] = mapped_column(String(50))

    # Status
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    @property
    def is_microgreen(self) -> bool:
        return self.category == CropCategory.MICROGREENS

    def __repr__(self) -> str:
        return f"<Crop(name='{self.name}', category={self.category.value})>"
