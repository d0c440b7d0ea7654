"""
API Endpoints für Bestellungen
"""
from datetime import date, datetime
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, status, Query

from farmflow.api.deps import DBSession, CurrentUser, Pagination
from farmflow.models.enums import OrderStatus
from farmflow.schemas.order import (
    OrderCreate, OrderUpdate, OrderStatusUpdate, OrderBulkDelete,
    OrderResponse, OrderListResponse, OrderCreatedResponse,
)
from farmflow.services.order_scheduler import OrderSchedulerService

router = APIRouter()


@router.get("", response_model=OrderListResponse)
async def list_orders(
    db: DBSession,
    user: CurrentUser,
    pagination: Pagination,
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    customer_id: Optional[UUID] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    recurrence_group_id: Optional[UUID] = None,
):
    """
    Liste der Bestellungen.

    Filter:
    - **status**: PENDING, CONFIRMED, IN_PROGRESS, DELIVERED, CANCELLED
    - **start_date / end_date**: Liefertag im Zeitraum
    """
    orders, total = OrderSchedulerService(db).list_orders(
        user["tenant_id"],
        status=status_filter,
        customer_id=customer_id,
        start=start_date,
        end=end_date,
        recurrence_group_id=recurrence_group_id,
        skip=pagination.offset,
        limit=pagination.page_size,
    )
    return OrderListResponse(
        items=[OrderResponse.model_validate(o) for o in orders], total=total
    )


@router.get("/by-date/{day}", response_model=list[OrderResponse])
async def orders_for_date(day: date, db: DBSession, user: CurrentUser):
    """Alle Lieferungen eines Tages."""
    return OrderSchedulerService(db).orders_for_date(user["tenant_id"], day)


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: UUID, db: DBSession, user: CurrentUser):
    return OrderSchedulerService(db).get_order(user["tenant_id"], order_id)


@router.post("", response_model=OrderCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_order(data: OrderCreate, db: DBSession, user: CurrentUser):
    """
    Neue Bestellung anlegen.

    Erzeugt automatisch:
    - Eine Produktionscharge je Position mit Aussaat-, Aufdeck- und Ernteaufgaben
    - Eine Lieferaufgabe
    - Bei Wiederholung alle Folgetermine bis zum Enddatum
    """
    orders = OrderSchedulerService(db).create_order(
        user["tenant_id"], data, user_id=user["id"], now=datetime.utcnow()
    )
    return OrderCreatedResponse(
        orders=[OrderResponse.model_validate(o) for o in orders], count=len(orders)
    )


@router.patch("/{order_id}", response_model=OrderResponse)
async def update_order(order_id: UUID, data: OrderUpdate, db: DBSession, user: CurrentUser):
    """
    Bestellung ändern.

    Achtung: Änderungen an Positionen, Terminen oder Kunde erzeugen Chargen
    und Aufgaben neu. Erledigte Aufgaben gehen dabei verloren.
    """
    return OrderSchedulerService(db).update_order(
        user["tenant_id"], order_id, data, user_id=user["id"], now=datetime.utcnow()
    )


@router.post("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: UUID, data: OrderStatusUpdate, db: DBSession, user: CurrentUser
):
    """Statuswechsel; CANCELLED entfernt generierte Chargen und Aufgaben."""
    return OrderSchedulerService(db).update_status(user["tenant_id"], order_id, data.status)


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_order(order_id: UUID, db: DBSession, user: CurrentUser):
    """Bestellung inkl. Chargen und Aufgaben löschen."""
    OrderSchedulerService(db).delete_order(user["tenant_id"], order_id)


@router.post("/bulk-delete")
async def bulk_delete_orders(data: OrderBulkDelete, db: DBSession, user: CurrentUser):
    deleted = OrderSchedulerService(db).bulk_delete(user["tenant_id"], data.order_ids)
    return {"deleted": deleted}


@router.delete("/recurrence/{group_id}")
async def delete_recurrence_group(group_id: UUID, db: DBSession, user: CurrentUser):
    """Alle Termine einer wiederkehrenden Bestellung löschen."""
    deleted = OrderSchedulerService(db).delete_recurrence_group(user["tenant_id"], group_id)
    return {"deleted": deleted}
