"""
Nummernkreise - Bestellnummern und Chargencodes je Mandant und Tag
"""
import logging
import uuid
from datetime import date
from typing import Callable
from uuid import UUID

from sqlalchemy import select, update, exists
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from farmflow.config import get_settings
from farmflow.core.exceptions import IntegrityConflict
from farmflow.models.enums import ProductionType
from farmflow.models.order import Order
from farmflow.models.production import ProductionBatch
from farmflow.models.sequence import SequenceCounter

logger = logging.getLogger(__name__)

settings = get_settings()


_UPSERT_DIALECTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def _insert_counter(db: Session, tenant_id: UUID, kind: str, period: str) -> None:
    """Legt den Zähler an, falls er noch nicht existiert"""
    values = {"tenant_id": tenant_id, "kind": kind, "period": period, "value": 0}
    insert = _UPSERT_DIALECTS.get(db.get_bind().dialect.name)
    if insert is not None:
        stmt = insert(SequenceCounter).values(id=uuid.uuid4(), **values)
        db.execute(stmt.on_conflict_do_nothing(index_elements=["tenant_id", "kind", "period"]))
        return

    found = db.execute(
        select(SequenceCounter.id).where(
            SequenceCounter.tenant_id == tenant_id,
            SequenceCounter.kind == kind,
            SequenceCounter.period == period,
        )
    ).scalar_one_or_none()
    if found is None:
        db.add(SequenceCounter(**values))
        db.flush()


class SequenceService:
    """
    Vergibt fortlaufende Nummern über eine Zählerzeile pro (Mandant, Kreis, Tag).

    Das Hochzählen erfolgt atomar per UPDATE value = value + 1. Existiert
    der erzeugte Code bereits (z.B. nach Datenimport), wird weitergezählt,
    höchstens sequence_max_retries mal.
    """

    def __init__(self, db: Session):
        self.db = db

    def next_value(self, tenant_id: UUID, kind: str, period: str) -> int:
        _insert_counter(self.db, tenant_id, kind, period)
        self.db.execute(
            update(SequenceCounter)
            .where(
                SequenceCounter.tenant_id == tenant_id,
                SequenceCounter.kind == kind,
                SequenceCounter.period == period,
            )
            .values(value=SequenceCounter.value + 1)
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(
            select(SequenceCounter.value).where(
                SequenceCounter.tenant_id == tenant_id,
                SequenceCounter.kind == kind,
                SequenceCounter.period == period,
            )
        ).scalar_one()

    def _allocate(
        self,
        tenant_id: UUID,
        kind: str,
        period: str,
        render: Callable[[int], str],
        taken: Callable[[str], bool],
    ) -> str:
        for _ in range(settings.sequence_max_retries + 1):
            candidate = render(self.next_value(tenant_id, kind, period))
            if not taken(candidate):
                return candidate
            logger.warning(f"Nummer {candidate} bereits vergeben, zähle weiter")
        raise IntegrityConflict(
            f"Keine freie Nummer im Kreis {kind}/{period} nach "
            f"{settings.sequence_max_retries} Versuchen"
        )

    def next_order_number(self, tenant_id: UUID, day: date) -> str:
        """Bestellnummer im Format ORD-YYYYMMDD-NNNN"""
        period = day.strftime("%Y%m%d")

        def taken(code: str) -> bool:
            return self.db.execute(
                select(exists().where(Order.tenant_id == tenant_id, Order.order_number == code))
            ).scalar()

        return self._allocate(
            tenant_id, "ORD", period, lambda n: f"ORD-{period}-{n:04d}", taken
        )

    def next_batch_code(self, tenant_id: UUID, production_type: ProductionType, day: date) -> str:
        """Chargencode im Format MG-YYYYMMDD-NNN bzw. MU-YYYYMMDD-NNN"""
        prefix = production_type.code_prefix
        period = day.strftime("%Y%m%d")

        def taken(code: str) -> bool:
            return self.db.execute(
                select(exists().where(
                    ProductionBatch.tenant_id == tenant_id,
                    ProductionBatch.batch_code == code,
                ))
            ).scalar()

        return self._allocate(
            tenant_id, prefix, period, lambda n: f"{prefix}-{period}-{n:03d}", taken
        )
