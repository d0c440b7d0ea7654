"""
Bestellplanung - Bestellungen anlegen und in Chargen und Aufgaben expandieren.

Je Position entsteht eine Produktionscharge (Rückverfolgbarkeit) mit ihren
Aufgaben, je Bestellung genau eine Lieferaufgabe. Alle Schreibzugriffe einer
Operation laufen in einer Unit of Work: entweder entsteht alles oder nichts.
"""
import logging
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy import select, delete, func
from sqlalchemy.orm import Session, selectinload

from farmflow.config import get_settings
from farmflow.core.dates import add_days
from farmflow.core.exceptions import (
    NotFoundError,
    ValidationError,
    InvalidStatusTransition,
    PartialExpansionFailure,
)
from farmflow.database import unit_of_work
from farmflow.models.customer import Customer, Product
from farmflow.models.enums import (
    BatchStatus,
    DateType,
    OrderSource,
    OrderStatus,
    ProductionType,
    TaskSource,
)
from farmflow.models.order import Order, OrderItem
from farmflow.models.production import ProductionBatch
from farmflow.models.task import Task
from farmflow.schemas.order import OrderCreate, OrderItemCreate, OrderUpdate
from farmflow.services import task_templates
from farmflow.services.crop_parameters import (
    CropParameters,
    CropParameterService,
    max_growth_days,
)
from farmflow.services.sequences import SequenceService

logger = logging.getLogger(__name__)

settings = get_settings()


ORDER_TRANSITIONS: dict[OrderStatus, set[OrderStatus]] = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.IN_PROGRESS, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.IN_PROGRESS, OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.IN_PROGRESS: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}

# Felder, deren Änderung Chargen und Aufgaben neu erzeugt
_REGENERATING_FIELDS = {"customer_id", "date_type", "target_date", "delivery_offset", "items"}


def schedule_dates(
    date_type: DateType,
    target_date: date,
    delivery_offset: int,
    crops: Iterable[CropParameters],
) -> tuple[date, date]:
    """
    Leitet (Erntetag, Liefertag) aus dem Zieldatum ab.

    HARVEST: Ernte = Ziel, Lieferung = Ernte - Versatz.
    START: Ernte = Ziel + längste Wachstumsdauer, Lieferung = Ernte - Versatz.
    """
    if date_type == DateType.START:
        harvest = add_days(target_date, max_growth_days(crops))
    else:
        harvest = target_date
    return harvest, add_days(harvest, -delivery_offset)


def cascade_delete_order(db: Session, order: Order) -> None:
    """Löscht Aufgaben, dann Chargen, dann die Bestellung selbst"""
    delete_generated_work(db, order)
    db.delete(order)
    db.flush()


def delete_generated_work(db: Session, order: Order) -> None:
    """Entfernt alle aus der Bestellung generierten Aufgaben und Chargen"""
    batches = db.execute(
        select(ProductionBatch).where(ProductionBatch.order_id == order.id)
    ).scalars().all()
    batch_ids = [batch.id for batch in batches]

    db.execute(delete(Task).where(Task.order_id == order.id))
    if batch_ids:
        db.execute(delete(Task).where(Task.batch_id.in_(batch_ids)))
    for batch in batches:
        db.delete(batch)
    db.flush()


class OrderSchedulerService:
    """Service für Bestellungen inkl. Aufgaben- und Chargengenerierung"""

    def __init__(self, db: Session):
        self.db = db
        self.crops = CropParameterService(db)
        self.sequences = SequenceService(db)

    # ==================== LESEN ====================

    def get_order(self, tenant_id: UUID, order_id: UUID) -> Order:
        order = self.db.execute(
            select(Order)
            .options(selectinload(Order.items))
            .where(Order.id == order_id, Order.tenant_id == tenant_id)
        ).scalar_one_or_none()
        if not order:
            raise NotFoundError("Bestellung", order_id)
        return order

    def list_orders(
        self,
        tenant_id: UUID,
        status: Optional[OrderStatus] = None,
        customer_id: Optional[UUID] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
        recurrence_group_id: Optional[UUID] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> tuple[list[Order], int]:
        """Bestellungen nach Liefertag gefiltert, mit Gesamtanzahl"""
        query = select(Order).where(Order.tenant_id == tenant_id)
        if status:
            query = query.where(Order.status == status)
        if customer_id:
            query = query.where(Order.customer_id == customer_id)
        if start:
            query = query.where(Order.delivery_date >= start)
        if end:
            query = query.where(Order.delivery_date <= end)
        if recurrence_group_id:
            query = query.where(Order.recurrence_group_id == recurrence_group_id)

        total = self.db.execute(
            select(func.count()).select_from(query.subquery())
        ).scalar()
        orders = self.db.execute(
            query.options(selectinload(Order.items))
            .order_by(Order.delivery_date, Order.order_number)
            .offset(skip)
            .limit(limit)
        ).scalars().all()
        return list(orders), total

    def orders_for_date(self, tenant_id: UUID, day: date) -> list[Order]:
        """Alle nicht stornierten Lieferungen eines Tages"""
        return list(self.db.execute(
            select(Order)
            .where(
                Order.tenant_id == tenant_id,
                Order.delivery_date == day,
                Order.status != OrderStatus.CANCELLED,
            )
            .order_by(Order.order_number)
        ).scalars().all())

    # ==================== ANLEGEN ====================

    def create_order(
        self,
        tenant_id: UUID,
        data: OrderCreate,
        user_id: Optional[UUID],
        now: datetime,
        source: OrderSource = OrderSource.MANUAL,
        standing_order_id: Optional[UUID] = None,
    ) -> list[Order]:
        """
        Legt eine Bestellung (bei Wiederholung alle Termine) an.

        Validierung und Kulturauflösung erfolgen vor dem ersten Schreibzugriff.
        """
        customer = self._get_customer(tenant_id, data.customer_id)
        items = self._resolve_items(tenant_id, data.items)
        crops = self._resolve_crops(tenant_id, items)
        offset = data.delivery_offset
        if offset is None:
            offset = settings.default_delivery_offset

        harvest, delivery = schedule_dates(data.date_type, data.target_date, offset, crops)
        target = data.target_date

        step = None
        group_id = None
        if data.is_recurring:
            if not data.frequency or not data.recurring_end_date:
                raise ValidationError("Wiederkehrende Bestellung benötigt Intervall und Enddatum")
            if data.recurring_end_date < delivery:
                raise ValidationError("Enddatum der Wiederholung liegt vor dem ersten Liefertermin")
            step = data.frequency.step_days
            group_id = uuid.uuid4()
            if source == OrderSource.MANUAL:
                source = OrderSource.RECURRING

        orders = []
        with unit_of_work(self.db):
            while True:
                order = Order(
                    tenant_id=tenant_id,
                    order_number=self.sequences.next_order_number(tenant_id, now.date()),
                    customer_id=customer.id,
                    customer_name=customer.name,
                    date_type=data.date_type,
                    target_date=target,
                    delivery_offset=offset,
                    harvest_date=harvest,
                    delivery_date=delivery,
                    status=OrderStatus.PENDING,
                    source=source,
                    is_recurring=data.is_recurring,
                    frequency=data.frequency if data.is_recurring else None,
                    recurring_end_date=data.recurring_end_date if data.is_recurring else None,
                    recurrence_group_id=group_id,
                    standing_order_id=standing_order_id,
                    notes=data.notes,
                    created_by=user_id,
                )
                self._set_items(order, items)
                self.db.add(order)
                self.db.flush()

                self._generate_work(tenant_id, order, customer, crops, user_id)
                orders.append(order)
                logger.info(
                    f"Bestellung {order.order_number} angelegt: Ernte {harvest}, "
                    f"Lieferung {delivery}, {len(order.items)} Positionen"
                )

                if step is None:
                    break
                target = add_days(target, step)
                harvest = add_days(harvest, step)
                delivery = add_days(delivery, step)
                if delivery > data.recurring_end_date:
                    break

        if group_id:
            logger.info(f"Wiederholungsgruppe {group_id}: {len(orders)} Bestellungen")
        return orders

    # ==================== ÄNDERN ====================

    def update_order(
        self,
        tenant_id: UUID,
        order_id: UUID,
        patch: OrderUpdate,
        user_id: Optional[UUID],
        now: datetime,
    ) -> Order:
        """
        Ändert eine Bestellung.

        Positionen, Termine oder Kunde: alle generierten Chargen und Aufgaben
        werden gelöscht und neu erzeugt (manuelle Änderungen daran gehen
        verloren). Status CANCELLED entfernt die generierte Arbeit.
        """
        order = self.get_order(tenant_id, order_id)
        fields = patch.model_dump(exclude_unset=True)
        new_status = fields.pop("status", None)
        regenerate = bool(_REGENERATING_FIELDS & fields.keys())

        if regenerate and order.status.is_terminal:
            raise ValidationError(
                f"Bestellung {order.order_number} ist {order.status.value} und kann nicht geändert werden"
            )
        if new_status is not None and new_status != order.status:
            self._check_transition(order, new_status)

        # Alles auflösen, bevor geschrieben wird
        customer = None
        if "customer_id" in fields:
            customer = self._get_customer(tenant_id, patch.customer_id)
        items = None
        if "items" in fields and patch.items is not None:
            items = self._resolve_items(tenant_id, patch.items)
        crops = None
        if regenerate:
            if items is not None:
                crops = self._resolve_crops(tenant_id, items)
            else:
                crops = self._resolve_crops(tenant_id, order.items)

        with unit_of_work(self.db):
            if customer is not None:
                order.customer_id = customer.id
                order.customer_name = customer.name
            if "date_type" in fields and patch.date_type is not None:
                order.date_type = patch.date_type
            if "target_date" in fields and patch.target_date is not None:
                order.target_date = patch.target_date
            if "delivery_offset" in fields and patch.delivery_offset is not None:
                order.delivery_offset = patch.delivery_offset
            if "notes" in fields:
                order.notes = patch.notes
            if items is not None:
                order.items.clear()
                self.db.flush()
                self._set_items(order, items)
            order.calculate_total()

            if regenerate:
                order.harvest_date, order.delivery_date = schedule_dates(
                    order.date_type, order.target_date, order.delivery_offset, crops
                )
                delete_generated_work(self.db, order)
                if new_status != OrderStatus.CANCELLED:
                    customer = customer or self._get_customer(tenant_id, order.customer_id)
                    self._generate_work(tenant_id, order, customer, crops, user_id)
                logger.info(f"Bestellung {order.order_number} neu geplant")

            if new_status is not None and new_status != order.status:
                self._apply_status(order, new_status)
            self.db.flush()

        self.db.refresh(order)
        return order

    def update_status(self, tenant_id: UUID, order_id: UUID, status: OrderStatus) -> Order:
        """Statuswechsel nach Zustandsautomat; Stornierung entfernt die generierte Arbeit"""
        order = self.get_order(tenant_id, order_id)
        if status == order.status:
            return order
        self._check_transition(order, status)
        with unit_of_work(self.db):
            self._apply_status(order, status)
        self.db.refresh(order)
        return order

    # ==================== LÖSCHEN ====================

    def delete_order(self, tenant_id: UUID, order_id: UUID) -> None:
        order = self.get_order(tenant_id, order_id)
        with unit_of_work(self.db):
            cascade_delete_order(self.db, order)
        logger.info(f"Bestellung {order_id} inkl. Chargen und Aufgaben gelöscht")

    def bulk_delete(self, tenant_id: UUID, order_ids: Iterable[UUID]) -> int:
        """Löscht mehrere Bestellungen atomar; unbekannte IDs werden ignoriert"""
        orders = self.db.execute(
            select(Order).where(Order.tenant_id == tenant_id, Order.id.in_(list(order_ids)))
        ).scalars().all()
        with unit_of_work(self.db):
            for order in orders:
                cascade_delete_order(self.db, order)
        return len(orders)

    def delete_recurrence_group(self, tenant_id: UUID, group_id: UUID) -> int:
        orders = self.db.execute(
            select(Order).where(
                Order.tenant_id == tenant_id,
                Order.recurrence_group_id == group_id,
            )
        ).scalars().all()
        if not orders:
            raise NotFoundError("Wiederholungsgruppe", group_id)
        with unit_of_work(self.db):
            for order in orders:
                cascade_delete_order(self.db, order)
        logger.info(f"Wiederholungsgruppe {group_id}: {len(orders)} Bestellungen gelöscht")
        return len(orders)

    # ==================== INTERN ====================

    def _get_customer(self, tenant_id: UUID, customer_id: UUID) -> Customer:
        customer = self.db.execute(
            select(Customer).where(Customer.id == customer_id, Customer.tenant_id == tenant_id)
        ).scalar_one_or_none()
        if not customer:
            raise NotFoundError("Kunde", customer_id)
        return customer

    def _resolve_items(self, tenant_id: UUID, items: list[OrderItemCreate]) -> list[OrderItemCreate]:
        """
        Ergänzt Positionen aus dem Produktkatalog: fehlende Kultur aus
        Product.crop_id, fehlender Preis aus Product.base_price.
        """
        product_ids = {item.product_id for item in items if item.product_id}
        products = {}
        if product_ids:
            products = {
                product.id: product
                for product in self.db.execute(
                    select(Product).where(Product.tenant_id == tenant_id, Product.id.in_(product_ids))
                ).scalars()
            }

        resolved = []
        for index, item in enumerate(items):
            update = {}
            if item.product_id:
                product = products.get(item.product_id)
                if product is None:
                    raise PartialExpansionFailure(
                        index, item.crop_id, f"Produkt {item.product_id} nicht gefunden"
                    )
                if item.crop_id is None:
                    update["crop_id"] = product.crop_id
                if item.unit_price is None:
                    update["unit_price"] = product.base_price
            elif item.unit_price is None:
                update["unit_price"] = Decimal("0")
            resolved.append(item.model_copy(update=update) if update else item)
        return resolved

    def _resolve_crops(self, tenant_id: UUID, items) -> list[CropParameters]:
        """
        Kulturparameter je Position in Positionsreihenfolge.
        Fehlende Kulturreferenz ist ein ValidationError, eine unbekannte oder
        ungültige Kultur bricht die ganze Expansion ab.
        """
        if not items:
            raise ValidationError("Bestellung benötigt mindestens eine Position")
        cache: dict[UUID, CropParameters] = {}
        crops = []
        for index, item in enumerate(items):
            crop_id = item.crop_id
            if crop_id is None:
                raise ValidationError(f"Position {index + 1}: Kultur fehlt")
            if crop_id not in cache:
                try:
                    cache[crop_id] = self.crops.get(tenant_id, crop_id)
                except NotFoundError:
                    raise PartialExpansionFailure(index, crop_id, "Kultur nicht gefunden")
                except ValidationError as e:
                    raise PartialExpansionFailure(index, crop_id, e.message)
            crops.append(cache[crop_id])
        return crops

    def _set_items(self, order: Order, items: Iterable[OrderItemCreate]) -> None:
        for position, data in enumerate(items, start=1):
            item = OrderItem(
                position=position,
                crop_id=data.crop_id,
                product_id=data.product_id,
                quantity=Decimal(data.quantity),
                unit_price=Decimal(data.unit_price),
            )
            item.calculate_line_total()
            order.items.append(item)
        order.calculate_total()

    def _generate_work(
        self,
        tenant_id: UUID,
        order: Order,
        customer: Customer,
        crops: list[CropParameters],
        user_id: Optional[UUID],
    ) -> None:
        """Eine Charge mit Aufgaben pro Position, dann die Lieferaufgabe"""
        for item, crop in zip(order.items, crops):
            production_type = ProductionType.for_category(crop.category)
            specs = task_templates.expand(production_type, crop, item.quantity, customer.name)
            sow_date = specs[0].due_on(order.harvest_date)
            units = crop.units_for(item.quantity)

            batch = ProductionBatch(
                tenant_id=tenant_id,
                batch_code=self.sequences.next_batch_code(tenant_id, production_type, sow_date),
                crop_id=crop.crop_id,
                order_id=order.id,
                production_type=production_type,
                status=BatchStatus.PLANNED,
                source=TaskSource.AUTO_ORDER,
                planned_sow_date=sow_date,
                planned_harvest_date=order.harvest_date,
                quantity=units,
                expected_yield=Decimal(units) * crop.yield_per_unit,
                yield_unit=crop.unit,
                current_flush=1,
                max_flushes=crop.flush_count if production_type.is_mushroom else 1,
                created_by=user_id,
            )
            self.db.add(batch)
            self.db.flush()

            for spec in specs:
                self.db.add(Task(
                    tenant_id=tenant_id,
                    type=spec.type,
                    title=spec.title,
                    category=spec.category,
                    due_date=spec.due_on(order.harvest_date),
                    priority=spec.priority,
                    source=TaskSource.AUTO_ORDER,
                    estimated_minutes=spec.estimated_minutes,
                    details=spec.details.model_dump(mode="json"),
                    batch_id=batch.id,
                    order_id=order.id,
                    crop_id=crop.crop_id,
                    created_by=user_id,
                ))

        spec = task_templates.delivery_task(
            order.order_number,
            customer.name,
            customer.address,
            len(order.items),
            order.total,
        )
        self.db.add(Task(
            tenant_id=tenant_id,
            type=spec.type,
            title=spec.title,
            category=spec.category,
            due_date=order.delivery_date,
            priority=spec.priority,
            source=TaskSource.AUTO_ORDER,
            details=spec.details.model_dump(mode="json"),
            order_id=order.id,
            created_by=user_id,
        ))
        self.db.flush()

    def _check_transition(self, order: Order, status: OrderStatus) -> None:
        if status not in ORDER_TRANSITIONS[order.status]:
            raise InvalidStatusTransition("Bestellung", order.status.value, status.value)

    def _apply_status(self, order: Order, status: OrderStatus) -> None:
        if status == OrderStatus.CANCELLED:
            delete_generated_work(self.db, order)
            logger.info(f"Bestellung {order.order_number} storniert, Aufgaben und Chargen entfernt")
        order.status = status
