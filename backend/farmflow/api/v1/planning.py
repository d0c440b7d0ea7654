"""
API Endpoints für Aussaatplanung
"""
from datetime import date
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Query, status

from farmflow.api.deps import DBSession, CurrentUser
from farmflow.config import get_settings
from farmflow.core.dates import add_days
from farmflow.schemas.planning import (
    SowingPlanItemSchema, SowingPlanResponse, MaterializeRequest,
    ForecastEntry, CapacityEntry, DemandSupplyEntry,
)
from farmflow.schemas.production import BatchResponse
from farmflow.services.planning import SowingPlannerService

router = APIRouter()
settings = get_settings()


@router.get("/sowing-plan", response_model=SowingPlanResponse)
async def sowing_plan(
    db: DBSession,
    user: CurrentUser,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    waste_buffer: float = Query(default=settings.default_waste_buffer, ge=0, le=1),
    include_buffer: bool = True,
    include_standing_orders: bool = True,
):
    """
    Aussaatplan für den Zeitraum (Standard: heute plus Planungshorizont).

    Je Kultur und Liefertag: Nachfrage, benötigte Trays/Blöcke und Zusatzbedarf
    nach Abzug bereits geplanter Chargen.
    """
    start = start_date or date.today()
    end = end_date or add_days(start, settings.planning_horizon_days)
    items = SowingPlannerService(db).plan(
        user["tenant_id"],
        start,
        end,
        waste_buffer=waste_buffer,
        include_buffer=include_buffer,
        include_standing_orders=include_standing_orders,
    )
    return SowingPlanResponse(
        start_date=start,
        end_date=end,
        waste_buffer=waste_buffer,
        items=[SowingPlanItemSchema.model_validate(item) for item in items],
        total_additional_units=sum(item.additional_units_needed for item in items),
    )


@router.post("/sowing-plan/materialize", response_model=list[BatchResponse],
             status_code=status.HTTP_201_CREATED)
async def materialize_plan(data: MaterializeRequest, db: DBSession, user: CurrentUser):
    """Planzeilen mit Zusatzbedarf als Chargen anlegen."""
    return SowingPlannerService(db).materialize(
        user["tenant_id"], data.items, location_id=data.location_id, user_id=user["id"]
    )


@router.get("/forecast", response_model=dict[str, dict[str, ForecastEntry]])
async def production_forecast(
    db: DBSession,
    user: CurrentUser,
    start_date: Optional[date] = None,
    days: int = Query(default=settings.planning_horizon_days, ge=1, le=90),
):
    return SowingPlannerService(db).production_forecast(
        user["tenant_id"], start_date or date.today(), days
    )


@router.get("/capacity", response_model=list[CapacityEntry])
async def capacity_utilization(
    db: DBSession, user: CurrentUser, location_id: Optional[UUID] = None
):
    return SowingPlannerService(db).capacity_utilization(user["tenant_id"], location_id)


@router.get("/demand-supply/{product_id}", response_model=dict[str, DemandSupplyEntry])
async def demand_supply(
    product_id: UUID,
    db: DBSession,
    user: CurrentUser,
    start_date: Optional[date] = None,
    days: int = Query(default=30, ge=1, le=90),
):
    return SowingPlannerService(db).demand_supply(
        user["tenant_id"], product_id, start_date or date.today(), days
    )
