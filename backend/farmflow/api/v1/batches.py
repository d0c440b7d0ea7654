"""
API Endpoints für Produktionschargen
"""
from datetime import date, datetime
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, status, Query

from farmflow.api.deps import DBSession, CurrentUser, Pagination
from farmflow.models.enums import BatchStatus, ProductionType
from farmflow.schemas.production import (
    BatchCreate, BatchStatusUpdate, BatchResponse, BatchListResponse,
    HarvestCreate, HarvestResponse, HarvestResult,
    MovementCreate, MovementResponse,
)
from farmflow.services.production import BatchService

router = APIRouter()


@router.get("", response_model=BatchListResponse)
async def list_batches(
    db: DBSession,
    user: CurrentUser,
    pagination: Pagination,
    status_filter: Optional[BatchStatus] = Query(None, alias="status"),
    crop_id: Optional[UUID] = None,
    location_id: Optional[UUID] = None,
    production_type: Optional[ProductionType] = None,
    active_only: bool = False,
):
    """
    Liste aller Chargen.

    Filter:
    - **status**: z.B. PLANNED, GROWING, FRUITING, HARVESTED
    - **active_only**: nur nicht abgeschlossene Chargen
    """
    batches, total = BatchService(db).list_batches(
        user["tenant_id"],
        status=status_filter,
        crop_id=crop_id,
        location_id=location_id,
        production_type=production_type,
        active_only=active_only,
        skip=pagination.offset,
        limit=pagination.page_size,
    )
    return BatchListResponse(
        items=[BatchResponse.model_validate(b) for b in batches], total=total
    )


@router.get("/ready-to-harvest", response_model=list[BatchResponse])
async def ready_to_harvest(
    db: DBSession, user: CurrentUser, today: Optional[date] = None
):
    return BatchService(db).ready_to_harvest(user["tenant_id"], today or date.today())


@router.get("/status-counts")
async def batch_status_counts(db: DBSession, user: CurrentUser):
    return BatchService(db).status_counts(user["tenant_id"])


@router.get("/{batch_id}", response_model=BatchResponse)
async def get_batch(batch_id: UUID, db: DBSession, user: CurrentUser):
    return BatchService(db).get_batch(user["tenant_id"], batch_id)


@router.post("", response_model=BatchResponse, status_code=status.HTTP_201_CREATED)
async def create_batch(data: BatchCreate, db: DBSession, user: CurrentUser):
    """
    Neue Charge anlegen.

    Berechnet automatisch den Erntetermin und erzeugt die Aufgaben aus der
    Chargenvorlage der Produktionsart.
    """
    return BatchService(db).create_batch(user["tenant_id"], data, user_id=user["id"])


@router.post("/{batch_id}/status", response_model=BatchResponse)
async def update_batch_status(
    batch_id: UUID, data: BatchStatusUpdate, db: DBSession, user: CurrentUser
):
    return BatchService(db).update_status(
        user["tenant_id"], batch_id, data.status, data.effective_date or date.today()
    )


@router.post("/{batch_id}/harvest", response_model=HarvestResult, status_code=status.HTTP_201_CREATED)
async def record_harvest(
    batch_id: UUID, data: HarvestCreate, db: DBSession, user: CurrentUser
):
    """
    Ernte erfassen.

    Bei Pilzen mit weiteren Flushes bleibt die Charge im Status FRUITING.
    """
    service = BatchService(db)
    harvest = service.record_harvest(user["tenant_id"], batch_id, data, user_id=user["id"])
    batch = service.get_batch(user["tenant_id"], batch_id)
    return HarvestResult(
        harvest=HarvestResponse.model_validate(harvest),
        batch=BatchResponse.model_validate(batch),
    )


@router.post("/{batch_id}/move", response_model=MovementResponse, status_code=status.HTTP_201_CREATED)
async def move_batch(
    batch_id: UUID, data: MovementCreate, db: DBSession, user: CurrentUser
):
    return BatchService(db).move_batch(
        user["tenant_id"],
        batch_id,
        data.to_location_id,
        now=datetime.utcnow(),
        reason=data.reason,
        user_id=user["id"],
    )


@router.delete("/{batch_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_batch(batch_id: UUID, db: DBSession, user: CurrentUser):
    BatchService(db).delete_batch(user["tenant_id"], batch_id)
