"""
Produktions-Models: ProductionBatch, BatchHarvest und BatchMovement
"""
import uuid
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, TYPE_CHECKING
from sqlalchemy import String, Integer, Numeric, DateTime, Date, ForeignKey, Text, Enum as SQLEnum
from sqlalchemy.types import Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from farmflow.database import Base
from farmflow.models.enums import BatchStatus, ProductionType, QualityGrade, TaskSource

if TYPE_CHECKING:
    from farmflow.models.crop import Crop
    from farmflow.models.customer import Location


class ProductionBatch(Base):
    """
    Produktionscharge - Trays (Microgreens) oder Blöcke (Pilze) einer Kultur.
    Verfolgt den Zyklus von der Planung bis zur letzten Ernte.
    """
    __tablename__ = "production_batches"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)

    # Chargencode (z.B. "MG-20240610-001")
    batch_code: Mapped[str] = mapped_column(String(30), nullable=False, index=True)

    crop_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("crops.id"), nullable=False, index=True
    )
    order_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("orders.id", ondelete="SET NULL"), index=True
    )
    location_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("locations.id", ondelete="SET NULL")
    )

    production_type: Mapped[ProductionType] = mapped_column(
        SQLEnum(ProductionType), nullable=False
    )
    status: Mapped[BatchStatus] = mapped_column(
        SQLEnum(BatchStatus), default=BatchStatus.PLANNED, index=True
    )
    source: Mapped[TaskSource] = mapped_column(
        SQLEnum(TaskSource), default=TaskSource.MANUAL
    )

    # ==================== TERMINE ====================
    planned_sow_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    planned_harvest_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    actual_sow_date: Mapped[Optional[date]] = mapped_column(Date)
    actual_harvest_date: Mapped[Optional[date]] = mapped_column(Date)

    # ==================== MENGEN ====================
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)  # Trays bzw. Blöcke
    expected_yield: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    actual_yield: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    yield_unit: Mapped[str] = mapped_column(String(10), default="oz")

    # Pilze: Flush-Zähler
    current_flush: Mapped[int] = mapped_column(Integer, default=1)
    max_flushes: Mapped[int] = mapped_column(Integer, default=1)

    notes: Mapped[Optional[str]] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)

    # Beziehungen
    crop: Mapped["Crop"] = relationship("Crop")
    location: Mapped[Optional["Location"]] = relationship("Location")
    harvests: Mapped[list["BatchHarvest"]] = relationship(
        "BatchHarvest", back_populates="batch", cascade="all, delete-orphan",
        order_by="BatchHarvest.harvest_date",
    )
    movements: Mapped[list["BatchMovement"]] = relationship(
        "BatchMovement", back_populates="batch", cascade="all, delete-orphan",
        order_by="BatchMovement.moved_at",
    )

    @property
    def is_active(self) -> bool:
        return not self.status.is_terminal

    def __repr__(self) -> str:
        return f"<ProductionBatch(code='{self.batch_code}', status={self.status.value})>"


class BatchHarvest(Base):
    """Ernteeintrag - eine Ernte (bei Pilzen ein Flush) einer Charge"""
    __tablename__ = "batch_harvests"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    batch_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("production_batches.id", ondelete="CASCADE"), nullable=False, index=True
    )

    harvest_date: Mapped[date] = mapped_column(Date, nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    unit: Mapped[str] = mapped_column(String(10), default="oz")
    quality_grade: Mapped[QualityGrade] = mapped_column(
        SQLEnum(QualityGrade), default=QualityGrade.A
    )
    flush_number: Mapped[int] = mapped_column(Integer, default=1)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    harvested_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    batch: Mapped["ProductionBatch"] = relationship("ProductionBatch", back_populates="harvests")


class BatchMovement(Base):
    """Standortwechsel einer Charge"""
    __tablename__ = "batch_movements"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    batch_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("production_batches.id", ondelete="CASCADE"), nullable=False, index=True
    )
    from_location_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)
    to_location_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(String(200))
    moved_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    moved_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid)

    batch: Mapped["ProductionBatch"] = relationship("ProductionBatch", back_populates="movements")
