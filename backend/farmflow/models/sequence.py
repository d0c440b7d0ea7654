"""
Nummernkreise für Bestellnummern und Chargencodes
"""
import uuid
from sqlalchemy import String, Integer, UniqueConstraint
from sqlalchemy.types import Uuid
from sqlalchemy.orm import Mapped, mapped_column

from farmflow.database import Base


class SequenceCounter(Base):
    """Zählerstand je Mandant, Nummernkreis und Periode (z.B. Tag "20240612")"""
    __tablename__ = "sequence_counters"
    __table_args__ = (
        UniqueConstraint("tenant_id", "kind", "period", name="uq_sequence_counter"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    period: Mapped[str] = mapped_column(String(20), nullable=False)
    value: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    def __repr__(self) -> str:
        return f"<SequenceCounter({self.kind}/{self.period}={self.value})>"
