"""
Aussaatplanung - aggregiert Nachfrage und leitet Aussaattermine ab.

Nachfrage = offene Bestellungen im Zeitraum plus noch nicht generierte
Termine aus Daueraufträgen. Der Plan wird nicht gespeichert; erst
materialize() legt daraus Chargen an.
"""
import logging
import math
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.orm import Session, selectinload

from farmflow.config import get_settings
from farmflow.core.dates import add_days, date_range, format_iso_date
from farmflow.core.exceptions import NotFoundError
from farmflow.database import unit_of_work
from farmflow.models.customer import Location, Product
from farmflow.models.enums import (
    CropCategory,
    OrderStatus,
    ProductionType,
    TaskSource,
    TERMINAL_BATCH_STATUSES,
)
from farmflow.models.order import Order, OrderItem
from farmflow.models.production import ProductionBatch
from farmflow.models.standing_order import StandingOrder, StandingOrderItem
from farmflow.schemas.production import BatchCreate
from farmflow.services.crop_parameters import CropParameters, CropParameterService
from farmflow.services.production import BatchService
from farmflow.services.standing_orders import projected_deliveries

logger = logging.getLogger(__name__)

settings = get_settings()

_CENT = Decimal("0.01")


@dataclass(frozen=True)
class PlanOrderRef:
    """Herkunft einer Nachfrage: Bestellung oder projizierter Dauerauftrag"""
    quantity: Decimal
    order_id: Optional[UUID] = None
    order_number: Optional[str] = None
    standing_order_id: Optional[UUID] = None


@dataclass(frozen=True)
class SowingPlanItem:
    crop_id: UUID
    crop_name: str
    category: CropCategory
    sow_date: date
    harvest_date: date
    demand_quantity: Decimal
    required_quantity: Decimal
    yield_per_unit: Decimal
    units_needed: int
    existing_batches: int
    additional_units_needed: int
    projected_quantity: Decimal = Decimal("0")
    orders: tuple[PlanOrderRef, ...] = ()


@dataclass
class _Demand:
    crop_id: UUID
    delivery_date: date
    quantity: Decimal = Decimal("0")
    projected: Decimal = Decimal("0")
    refs: list[PlanOrderRef] = field(default_factory=list)


def required_quantity(demand: Decimal, waste_buffer: float, include_buffer: bool = True) -> Decimal:
    """Nachfrage inkl. Verlustpuffer, auf Hundertstel gerundet"""
    required = Decimal(demand)
    if include_buffer:
        required = required * (Decimal("1") + Decimal(str(waste_buffer)))
    return required.quantize(_CENT, rounding=ROUND_HALF_UP)


def grow_days(crop: CropParameters) -> int:
    """Tage von der Aussaat bis zur Lieferung (Blackout zählt nur bei Microgreens)"""
    return crop.effective_blackout_days + crop.growth_days


class SowingPlannerService:
    """Service für Aussaatplan, Produktionsprognose und Auslastung"""

    def __init__(self, db: Session):
        self.db = db
        self.crops = CropParameterService(db)
        self.batches = BatchService(db)

    def plan(
        self,
        tenant_id: UUID,
        start: date,
        end: date,
        waste_buffer: Optional[float] = None,
        include_buffer: bool = True,
        include_standing_orders: bool = True,
    ) -> list[SowingPlanItem]:
        """
        Aussaatplan für alle Liefertage in [start, end].

        Sortiert nach Aussaattag, dann Kulturname, dann Erntetag.
        """
        if waste_buffer is None:
            waste_buffer = settings.default_waste_buffer

        demand: dict[tuple[UUID, date], _Demand] = {}
        self._collect_orders(tenant_id, start, end, demand)
        if include_standing_orders:
            self._collect_standing_orders(tenant_id, start, end, demand)

        crops = self.crops.get_many(tenant_id, {crop_id for crop_id, _ in demand})
        plan = []
        for (crop_id, delivery), entry in demand.items():
            crop = crops.get(crop_id)
            if crop is None:
                logger.warning(f"Kultur {crop_id} nicht gefunden, Nachfrage wird ignoriert")
                continue

            sow = add_days(delivery, -grow_days(crop))
            required = required_quantity(entry.quantity, waste_buffer, include_buffer)
            units = math.ceil(required / crop.yield_per_unit)
            existing = self._existing_batches(tenant_id, crop_id, sow)

            plan.append(SowingPlanItem(
                crop_id=crop_id,
                crop_name=crop.name,
                category=crop.category,
                sow_date=sow,
                harvest_date=delivery,
                demand_quantity=entry.quantity,
                projected_quantity=entry.projected,
                required_quantity=required,
                yield_per_unit=crop.yield_per_unit,
                units_needed=units,
                existing_batches=existing,
                additional_units_needed=max(0, units - existing),
                orders=tuple(entry.refs),
            ))

        plan.sort(key=lambda item: (item.sow_date, item.crop_name, item.harvest_date))
        logger.info(f"Aussaatplan {start} bis {end}: {len(plan)} Positionen")
        return plan

    def materialize(
        self,
        tenant_id: UUID,
        plan_items: Iterable,
        location_id: Optional[UUID] = None,
        user_id: Optional[UUID] = None,
    ) -> list[ProductionBatch]:
        """Legt je Planzeile mit Zusatzbedarf eine Charge samt Aufgaben an"""
        created = []
        with unit_of_work(self.db):
            for item in plan_items:
                if item.additional_units_needed <= 0:
                    continue
                batch = self.batches.create_batch(
                    tenant_id,
                    BatchCreate(
                        crop_id=item.crop_id,
                        production_type=ProductionType.for_category(item.category),
                        quantity=item.additional_units_needed,
                        planned_sow_date=item.sow_date,
                        location_id=location_id,
                        notes=f"Automatisch aus Aussaatplan für {len(item.orders)} Bestellungen",
                    ),
                    user_id=user_id,
                    source=TaskSource.AUTO_BATCH,
                )
                created.append(batch)
        logger.info(f"{len(created)} Chargen aus Aussaatplan angelegt")
        return created

    # ==================== PROGNOSEN ====================

    def production_forecast(
        self, tenant_id: UUID, start: date, days: Optional[int] = None
    ) -> dict[str, dict[str, dict]]:
        """Erwarteter Ertrag je Erntetag und Kultur"""
        if days is None:
            days = settings.planning_horizon_days
        end = add_days(start, days)
        batches = self.db.execute(
            select(ProductionBatch)
            .options(selectinload(ProductionBatch.crop))
            .where(
                ProductionBatch.tenant_id == tenant_id,
                ProductionBatch.planned_harvest_date >= start,
                ProductionBatch.planned_harvest_date <= end,
                ProductionBatch.status.notin_(TERMINAL_BATCH_STATUSES),
            )
        ).scalars().all()

        forecast: dict[str, dict[str, dict]] = {}
        for batch in batches:
            by_crop = forecast.setdefault(format_iso_date(batch.planned_harvest_date), {})
            entry = by_crop.setdefault(batch.crop.name, {
                "expected_yield": Decimal("0"),
                "unit": batch.yield_unit,
                "units": 0,
                "batches": 0,
            })
            entry["expected_yield"] += Decimal(batch.expected_yield)
            entry["units"] += batch.quantity
            entry["batches"] += 1
        return dict(sorted(forecast.items()))

    def capacity_utilization(
        self, tenant_id: UUID, location_id: Optional[UUID] = None
    ) -> list[dict]:
        """Belegte Trays/Blöcke aktiver Chargen je Standort"""
        query = select(Location).where(Location.tenant_id == tenant_id, Location.is_active.is_(True))
        if location_id:
            query = query.where(Location.id == location_id)
        locations = self.db.execute(query.order_by(Location.name)).scalars().all()
        if location_id and not locations:
            raise NotFoundError("Standort", location_id)

        used_by_location = dict(self.db.execute(
            select(ProductionBatch.location_id, func.sum(ProductionBatch.quantity))
            .where(
                ProductionBatch.tenant_id == tenant_id,
                ProductionBatch.location_id.is_not(None),
                ProductionBatch.status.notin_(TERMINAL_BATCH_STATUSES),
            )
            .group_by(ProductionBatch.location_id)
        ).all())

        result = []
        for location in locations:
            capacity = location.capacity or 100
            used = int(used_by_location.get(location.id) or 0)
            result.append({
                "location_id": location.id,
                "location_name": location.name,
                "capacity": capacity,
                "used": used,
                "available": capacity - used,
                "utilization_percent": round(used / capacity * 100) if capacity else 0,
            })
        return result

    def demand_supply(
        self, tenant_id: UUID, product_id: UUID, start: date, days: int = 30
    ) -> dict[str, dict[str, Decimal]]:
        """Nachfrage (Bestellungen) gegen Angebot (erwartete Ernte) je Tag"""
        product = self.db.execute(
            select(Product).where(Product.id == product_id, Product.tenant_id == tenant_id)
        ).scalar_one_or_none()
        if not product or not product.crop_id:
            raise NotFoundError("Produkt mit Kultur", product_id)
        end = add_days(start, days)

        analysis = {
            format_iso_date(day): {"demand": Decimal("0"), "supply": Decimal("0")}
            for day in date_range(start, end)
        }
        demand_rows = self.db.execute(
            select(Order.delivery_date, OrderItem.quantity)
            .join(OrderItem, OrderItem.order_id == Order.id)
            .where(
                Order.tenant_id == tenant_id,
                OrderItem.product_id == product_id,
                Order.delivery_date >= start,
                Order.delivery_date <= end,
                Order.status != OrderStatus.CANCELLED,
            )
        ).all()
        for day, quantity in demand_rows:
            analysis[format_iso_date(day)]["demand"] += Decimal(quantity)

        supply_rows = self.db.execute(
            select(ProductionBatch.planned_harvest_date, ProductionBatch.expected_yield)
            .where(
                ProductionBatch.tenant_id == tenant_id,
                ProductionBatch.crop_id == product.crop_id,
                ProductionBatch.planned_harvest_date >= start,
                ProductionBatch.planned_harvest_date <= end,
                ProductionBatch.status.notin_(TERMINAL_BATCH_STATUSES),
            )
        ).all()
        for day, expected in supply_rows:
            analysis[format_iso_date(day)]["supply"] += Decimal(expected)

        for entry in analysis.values():
            entry["balance"] = entry["supply"] - entry["demand"]
        return analysis

    # ==================== INTERN ====================

    def _collect_orders(
        self, tenant_id: UUID, start: date, end: date, demand: dict
    ) -> None:
        orders = self.db.execute(
            select(Order)
            .options(selectinload(Order.items))
            .where(
                Order.tenant_id == tenant_id,
                Order.delivery_date >= start,
                Order.delivery_date <= end,
                Order.status.notin_([OrderStatus.CANCELLED, OrderStatus.DELIVERED]),
            )
        ).scalars().all()

        for order in orders:
            for item in order.items:
                key = (item.crop_id, order.delivery_date)
                entry = demand.setdefault(key, _Demand(item.crop_id, order.delivery_date))
                entry.quantity += Decimal(item.quantity)
                entry.refs.append(PlanOrderRef(
                    quantity=Decimal(item.quantity),
                    order_id=order.id,
                    order_number=order.order_number,
                    standing_order_id=order.standing_order_id,
                ))

    def _collect_standing_orders(
        self, tenant_id: UUID, start: date, end: date, demand: dict
    ) -> None:
        """Projizierte Liefertermine, für die noch keine Bestellung existiert"""
        templates = self.db.execute(
            select(StandingOrder)
            .options(selectinload(StandingOrder.items).selectinload(StandingOrderItem.product))
            .where(
                StandingOrder.tenant_id == tenant_id,
                StandingOrder.is_active.is_(True),
                StandingOrder.auto_generate.is_(True),
                StandingOrder.is_paused.is_(False),
            )
        ).scalars().all()

        for template in templates:
            deliveries = projected_deliveries(template, start, end)
            if not deliveries:
                continue
            generated = set(self.db.execute(
                select(Order.delivery_date).where(
                    Order.standing_order_id == template.id,
                    Order.delivery_date >= start,
                    Order.delivery_date <= end,
                )
            ).scalars().all())

            for delivery in deliveries:
                if delivery in generated:
                    continue
                for item in template.items:
                    crop_id = item.product.crop_id if item.product else None
                    if crop_id is None:
                        continue
                    key = (crop_id, delivery)
                    entry = demand.setdefault(key, _Demand(crop_id, delivery))
                    entry.quantity += Decimal(item.quantity)
                    entry.projected += Decimal(item.quantity)
                    entry.refs.append(PlanOrderRef(
                        quantity=Decimal(item.quantity),
                        standing_order_id=template.id,
                    ))

    def _existing_batches(self, tenant_id: UUID, crop_id: UUID, sow_date: date) -> int:
        return self.db.execute(
            select(func.count(ProductionBatch.id)).where(
                ProductionBatch.tenant_id == tenant_id,
                ProductionBatch.crop_id == crop_id,
                ProductionBatch.planned_sow_date == sow_date,
                ProductionBatch.status.notin_(TERMINAL_BATCH_STATUSES),
            )
        ).scalar()
