"""
Produktions-Service - Lebenszyklus von Produktionschargen
"""
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy import select, delete, func
from sqlalchemy.orm import Session

from farmflow.core.dates import add_days
from farmflow.core.exceptions import NotFoundError, ValidationError, InvalidStatusTransition
from farmflow.database import unit_of_work
from farmflow.models.customer import Location
from farmflow.models.enums import (
    BatchStatus,
    ProductionType,
    TaskSource,
    TERMINAL_BATCH_STATUSES,
)
from farmflow.models.production import ProductionBatch, BatchHarvest, BatchMovement
from farmflow.models.task import Task
from farmflow.schemas.production import BatchCreate, HarvestCreate
from farmflow.services import task_templates
from farmflow.services.crop_parameters import CropParameterService
from farmflow.services.sequences import SequenceService

logger = logging.getLogger(__name__)


# ==================== ZUSTANDSAUTOMAT ====================

MICROGREEN_TRANSITIONS: dict[BatchStatus, set[BatchStatus]] = {
    BatchStatus.PLANNED: {BatchStatus.SOAKING, BatchStatus.PLANTED},
    BatchStatus.SOAKING: {BatchStatus.PLANTED},
    BatchStatus.PLANTED: {BatchStatus.BLACKOUT, BatchStatus.GROWING},
    BatchStatus.BLACKOUT: {BatchStatus.GROWING},
    BatchStatus.GROWING: {BatchStatus.READY_TO_HARVEST, BatchStatus.HARVESTING},
    BatchStatus.READY_TO_HARVEST: {BatchStatus.HARVESTING, BatchStatus.HARVESTED},
    BatchStatus.HARVESTING: {BatchStatus.HARVESTED},
}

MUSHROOM_TRANSITIONS: dict[BatchStatus, set[BatchStatus]] = {
    BatchStatus.PLANNED: {BatchStatus.INOCULATED},
    BatchStatus.INOCULATED: {BatchStatus.INCUBATING},
    BatchStatus.INCUBATING: {BatchStatus.FRUITING},
    BatchStatus.FRUITING: {BatchStatus.FRUITING, BatchStatus.HARVESTED},
}

READY_TO_FRUIT_TRANSITIONS: dict[BatchStatus, set[BatchStatus]] = {
    BatchStatus.PLANNED: {BatchStatus.FRUITING},
    BatchStatus.FRUITING: {BatchStatus.FRUITING, BatchStatus.HARVESTED},
}

TRANSITIONS: dict[ProductionType, dict[BatchStatus, set[BatchStatus]]] = {
    ProductionType.MICROGREENS_TRAY: MICROGREEN_TRANSITIONS,
    ProductionType.MUSHROOM_IN_HOUSE: MUSHROOM_TRANSITIONS,
    ProductionType.MUSHROOM_READY_TO_FRUIT: READY_TO_FRUIT_TRANSITIONS,
}

# Erster Schritt nach PLANNED setzt den Ist-Starttermin
_START_STATUSES = {
    BatchStatus.SOAKING,
    BatchStatus.PLANTED,
    BatchStatus.INOCULATED,
    BatchStatus.FRUITING,
}

HARVESTABLE_MICROGREEN = {BatchStatus.GROWING, BatchStatus.READY_TO_HARVEST, BatchStatus.HARVESTING}
HARVESTABLE_MUSHROOM = {BatchStatus.FRUITING}


def allowed_transitions(production_type: ProductionType, status: BatchStatus) -> set[BatchStatus]:
    """Erlaubte Folgezustände; DISPOSED und CANCELLED aus jedem aktiven Zustand"""
    if status in TERMINAL_BATCH_STATUSES:
        return set()
    allowed = set(TRANSITIONS[production_type].get(status, set()))
    return allowed | {BatchStatus.DISPOSED, BatchStatus.CANCELLED}


class BatchService:
    """Service für Produktionschargen"""

    def __init__(self, db: Session):
        self.db = db
        self.crops = CropParameterService(db)
        self.sequences = SequenceService(db)

    def get_batch(self, tenant_id: UUID, batch_id: UUID) -> ProductionBatch:
        batch = self.db.execute(
            select(ProductionBatch).where(
                ProductionBatch.id == batch_id,
                ProductionBatch.tenant_id == tenant_id,
            )
        ).scalar_one_or_none()
        if not batch:
            raise NotFoundError("Charge", batch_id)
        return batch

    def list_batches(
        self,
        tenant_id: UUID,
        status: Optional[BatchStatus] = None,
        crop_id: Optional[UUID] = None,
        location_id: Optional[UUID] = None,
        production_type: Optional[ProductionType] = None,
        active_only: bool = False,
        skip: int = 0,
        limit: int = 50,
    ) -> tuple[list[ProductionBatch], int]:
        query = select(ProductionBatch).where(ProductionBatch.tenant_id == tenant_id)
        if status:
            query = query.where(ProductionBatch.status == status)
        if crop_id:
            query = query.where(ProductionBatch.crop_id == crop_id)
        if location_id:
            query = query.where(ProductionBatch.location_id == location_id)
        if production_type:
            query = query.where(ProductionBatch.production_type == production_type)
        if active_only:
            query = query.where(ProductionBatch.status.notin_(TERMINAL_BATCH_STATUSES))

        total = self.db.execute(select(func.count()).select_from(query.subquery())).scalar()
        batches = self.db.execute(
            query.order_by(ProductionBatch.planned_sow_date.desc(), ProductionBatch.batch_code)
            .offset(skip)
            .limit(limit)
        ).scalars().all()
        return list(batches), total

    # ==================== ANLEGEN ====================

    def create_batch(
        self,
        tenant_id: UUID,
        data: BatchCreate,
        user_id: Optional[UUID] = None,
        source: TaskSource = TaskSource.MANUAL,
    ) -> ProductionBatch:
        """
        Legt eine Charge an und erzeugt ihre Aufgaben aus der Chargenvorlage.
        Der Erntetermin ergibt sich aus dem Versatz der Ernteaufgabe.
        """
        crop = self.crops.get(tenant_id, data.crop_id)
        production_type = data.production_type or ProductionType.for_category(crop.category)
        if production_type.is_mushroom == crop.is_microgreen:
            raise ValidationError(
                f"Produktionsart {production_type.value} passt nicht zur Kultur {crop.name}"
            )
        if data.location_id:
            self._get_location(tenant_id, data.location_id)

        harvest_offset = task_templates.batch_harvest_offset(production_type, crop)
        expected_yield = data.expected_yield
        if expected_yield is None:
            expected_yield = Decimal(data.quantity) * crop.yield_per_unit

        with unit_of_work(self.db):
            batch = ProductionBatch(
                tenant_id=tenant_id,
                batch_code=self.sequences.next_batch_code(
                    tenant_id, production_type, data.planned_sow_date
                ),
                crop_id=crop.crop_id,
                order_id=data.order_id,
                location_id=data.location_id,
                production_type=production_type,
                status=BatchStatus.PLANNED,
                source=source,
                planned_sow_date=data.planned_sow_date,
                planned_harvest_date=add_days(data.planned_sow_date, harvest_offset),
                quantity=data.quantity,
                expected_yield=expected_yield,
                yield_unit=crop.unit,
                current_flush=1,
                max_flushes=crop.flush_count if production_type.is_mushroom else 1,
                notes=data.notes,
                created_by=user_id,
            )
            self.db.add(batch)
            self.db.flush()

            if data.generate_tasks:
                for spec in task_templates.expand_batch(
                    production_type, crop, batch.batch_code, batch.quantity
                ):
                    self.db.add(Task(
                        tenant_id=tenant_id,
                        type=spec.type,
                        title=spec.title,
                        category=spec.category,
                        due_date=spec.due_on(batch.planned_sow_date),
                        priority=spec.priority,
                        source=TaskSource.AUTO_BATCH,
                        estimated_minutes=spec.estimated_minutes,
                        details=spec.details.model_dump(mode="json"),
                        batch_id=batch.id,
                        crop_id=crop.crop_id,
                        location_id=batch.location_id,
                        created_by=user_id,
                    ))
                self.db.flush()

        logger.info(
            f"Charge {batch.batch_code} angelegt: {batch.quantity} × {crop.name}, "
            f"Aussaat {batch.planned_sow_date}, Ernte {batch.planned_harvest_date}"
        )
        return batch

    # ==================== STATUS ====================

    def update_status(
        self,
        tenant_id: UUID,
        batch_id: UUID,
        status: BatchStatus,
        effective_date: date,
    ) -> ProductionBatch:
        batch = self.get_batch(tenant_id, batch_id)
        if status not in allowed_transitions(batch.production_type, batch.status):
            raise InvalidStatusTransition("Charge", batch.status.value, status.value)

        with unit_of_work(self.db):
            if batch.status == BatchStatus.PLANNED and status in _START_STATUSES:
                batch.actual_sow_date = batch.actual_sow_date or effective_date
            if status == BatchStatus.HARVESTED and batch.actual_harvest_date is None:
                batch.actual_harvest_date = effective_date
            batch.status = status
        return batch

    def record_harvest(
        self,
        tenant_id: UUID,
        batch_id: UUID,
        data: HarvestCreate,
        user_id: Optional[UUID] = None,
    ) -> BatchHarvest:
        """
        Erfasst eine Ernte und summiert actual_yield auf.

        Microgreens sind danach geerntet. Pilze bleiben im Fruchten, solange
        current_flush < max_flushes, und zählen den Flush weiter.
        """
        batch = self.get_batch(tenant_id, batch_id)
        if batch.production_type.is_mushroom:
            harvestable = HARVESTABLE_MUSHROOM
        else:
            harvestable = HARVESTABLE_MICROGREEN
        if batch.status not in harvestable:
            raise InvalidStatusTransition("Charge", batch.status.value, BatchStatus.HARVESTED.value)

        with unit_of_work(self.db):
            harvest = BatchHarvest(
                batch_id=batch.id,
                harvest_date=data.harvest_date,
                quantity=data.quantity,
                unit=data.unit or batch.yield_unit,
                quality_grade=data.quality_grade,
                flush_number=batch.current_flush,
                notes=data.notes,
                harvested_by=user_id,
            )
            self.db.add(harvest)

            batch.actual_yield = Decimal(batch.actual_yield or 0) + data.quantity
            batch.actual_harvest_date = data.harvest_date
            if batch.production_type.is_mushroom and batch.current_flush < batch.max_flushes:
                batch.current_flush += 1
                batch.status = BatchStatus.FRUITING
            else:
                batch.status = BatchStatus.HARVESTED
            self.db.flush()

        logger.info(
            f"Ernte {data.quantity} {harvest.unit} für Charge {batch.batch_code} "
            f"(Flush {harvest.flush_number}), Status {batch.status.value}"
        )
        return harvest

    def move_batch(
        self,
        tenant_id: UUID,
        batch_id: UUID,
        to_location_id: UUID,
        now: datetime,
        reason: Optional[str] = None,
        user_id: Optional[UUID] = None,
    ) -> BatchMovement:
        batch = self.get_batch(tenant_id, batch_id)
        if batch.status.is_terminal:
            raise ValidationError(f"Charge {batch.batch_code} ist abgeschlossen")
        self._get_location(tenant_id, to_location_id)

        with unit_of_work(self.db):
            movement = BatchMovement(
                batch_id=batch.id,
                from_location_id=batch.location_id,
                to_location_id=to_location_id,
                reason=reason,
                moved_at=now,
                moved_by=user_id,
            )
            self.db.add(movement)
            batch.location_id = to_location_id
            self.db.flush()
        return movement

    def delete_batch(self, tenant_id: UUID, batch_id: UUID) -> None:
        """Löscht die Charge samt ihren Aufgaben, Ernten und Bewegungen"""
        batch = self.get_batch(tenant_id, batch_id)
        with unit_of_work(self.db):
            self.db.execute(delete(Task).where(Task.batch_id == batch.id))
            self.db.delete(batch)
        logger.info(f"Charge {batch_id} gelöscht")

    # ==================== ÜBERSICHTEN ====================

    def ready_to_harvest(self, tenant_id: UUID, today: date) -> list[ProductionBatch]:
        """Aktive Chargen mit geplantem Erntetermin bis einschließlich heute"""
        return list(self.db.execute(
            select(ProductionBatch)
            .where(
                ProductionBatch.tenant_id == tenant_id,
                ProductionBatch.planned_harvest_date <= today,
                ProductionBatch.status.notin_(TERMINAL_BATCH_STATUSES),
            )
            .order_by(ProductionBatch.planned_harvest_date)
        ).scalars().all())

    def status_counts(self, tenant_id: UUID) -> dict[str, int]:
        rows = self.db.execute(
            select(ProductionBatch.status, func.count())
            .where(ProductionBatch.tenant_id == tenant_id)
            .group_by(ProductionBatch.status)
        ).all()
        return {status.value: count for status, count in rows}

    def _get_location(self, tenant_id: UUID, location_id: UUID) -> Location:
        location = self.db.execute(
            select(Location).where(Location.id == location_id, Location.tenant_id == tenant_id)
        ).scalar_one_or_none()
        if not location:
            raise NotFoundError("Standort", location_id)
        return location
