"""
API Endpoints für Daueraufträge
"""
from datetime import datetime
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, status

from farmflow.api.deps import DBSession, CurrentUser, require_role
from farmflow.schemas.order import (
    StandingOrderCreate, StandingOrderUpdate, StandingOrderPause, StandingOrderResponse,
    GenerateRequest, GenerateResponse, OrderResponse,
)
from farmflow.services.standing_orders import StandingOrderService

router = APIRouter()


@router.get("", response_model=list[StandingOrderResponse])
async def list_standing_orders(
    db: DBSession,
    user: CurrentUser,
    customer_id: Optional[UUID] = None,
    active_only: bool = False,
):
    return StandingOrderService(db).list_standing_orders(
        user["tenant_id"], customer_id=customer_id, active_only=active_only
    )


@router.get("/{standing_order_id}", response_model=StandingOrderResponse)
async def get_standing_order(standing_order_id: UUID, db: DBSession, user: CurrentUser):
    return StandingOrderService(db).get(user["tenant_id"], standing_order_id)


@router.post("", response_model=StandingOrderResponse, status_code=status.HTTP_201_CREATED)
async def create_standing_order(data: StandingOrderCreate, db: DBSession, user: CurrentUser):
    """
    Neuen Dauerauftrag anlegen.

    - **delivery_days**: Wochentage 0 (Montag) bis 6 (Sonntag)
    - **generate_days_ahead**: Vorlauf zwischen Generierung und Lieferung
    """
    return StandingOrderService(db).create(user["tenant_id"], data, user_id=user["id"])


@router.patch("/{standing_order_id}", response_model=StandingOrderResponse)
async def update_standing_order(
    standing_order_id: UUID, data: StandingOrderUpdate, db: DBSession, user: CurrentUser
):
    return StandingOrderService(db).update(user["tenant_id"], standing_order_id, data)


@router.post("/{standing_order_id}/pause", response_model=StandingOrderResponse)
async def pause_standing_order(
    standing_order_id: UUID, data: StandingOrderPause, db: DBSession, user: CurrentUser
):
    """Pausieren. paused_until ist nur ein Hinweis, die Pause endet erst mit resume."""
    return StandingOrderService(db).pause(user["tenant_id"], standing_order_id, data.paused_until)


@router.post("/{standing_order_id}/resume", response_model=StandingOrderResponse)
async def resume_standing_order(standing_order_id: UUID, db: DBSession, user: CurrentUser):
    return StandingOrderService(db).resume(user["tenant_id"], standing_order_id)


@router.delete("/{standing_order_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_standing_order(standing_order_id: UUID, db: DBSession, user: CurrentUser):
    StandingOrderService(db).delete(user["tenant_id"], standing_order_id)


@router.post(
    "/generate",
    response_model=GenerateResponse,
    dependencies=[Depends(require_role(["admin", "planner"]))],
)
async def generate_orders(data: GenerateRequest, db: DBSession, user: CurrentUser):
    """
    Bestellungen für einen Stichtag generieren (sonst täglich per Celery Beat).
    Mehrfacher Aufruf für denselben Tag erzeugt keine Duplikate.
    """
    orders = StandingOrderService(db).generate(
        user["tenant_id"], data.for_date, now=datetime.utcnow()
    )
    return GenerateResponse(
        for_date=data.for_date,
        generated=len(orders),
        orders=[OrderResponse.model_validate(o) for o in orders],
    )
