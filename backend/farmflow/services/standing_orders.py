"""
Daueraufträge - generiert Bestellungen aus wiederkehrenden Vorlagen.

Der Aufruf erfolgt von außen (Celery Beat oder API) mit dem Stichtag.
Pro Dauerauftrag und Liefertag entsteht höchstens eine Bestellung; ein
bereits generierter Termin wird stillschweigend übersprungen.
"""
import logging
from datetime import date, datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import select, exists
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from farmflow.core.dates import add_days, date_range
from farmflow.core.exceptions import FarmFlowError, NotFoundError, ValidationError
from farmflow.database import unit_of_work
from farmflow.models.customer import Customer, Product
from farmflow.models.enums import DateType, OrderSource
from farmflow.models.order import Order
from farmflow.models.standing_order import StandingOrder, StandingOrderItem
from farmflow.schemas.order import (
    OrderCreate,
    OrderItemCreate,
    StandingOrderCreate,
    StandingOrderUpdate,
)
from farmflow.services.order_scheduler import OrderSchedulerService

logger = logging.getLogger(__name__)


def projected_deliveries(template: StandingOrder, start: date, end: date) -> list[date]:
    """
    Liefertage im Zeitraum, die der Auftrag generieren wird.

    Ein Liefertag d entsteht am Stichtag d - generate_days_ahead, sofern der
    Auftrag an diesem Stichtag fällig ist.
    """
    return [
        day for day in date_range(start, end)
        if template.is_due(add_days(day, -template.generate_days_ahead))
    ]


class StandingOrderService:
    """Service für Daueraufträge und deren Bestellgenerierung"""

    def __init__(self, db: Session):
        self.db = db
        self.scheduler = OrderSchedulerService(db)

    # ==================== GENERIERUNG ====================

    def generate(self, tenant_id: UUID, for_date: date, now: datetime) -> list[Order]:
        """
        Generiert für alle fälligen Daueraufträge des Mandanten die Bestellung
        für den Liefertag for_date + generate_days_ahead.

        Jeder Auftrag läuft in einem eigenen Savepoint. Ein fehlerhafter oder
        parallel generierter Auftrag wird protokolliert und übersprungen, die
        übrigen Bestellungen des Mandanten bleiben bestehen.
        """
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

        generated = []
        with unit_of_work(self.db):
            for template in templates:
                if not template.is_due(for_date):
                    continue
                try:
                    with self.db.begin_nested():
                        order = self._generate_one(tenant_id, template, for_date, now)
                except IntegrityError as e:
                    logger.warning(
                        f"Dauerauftrag {template.name}: Liefertermin wurde parallel "
                        f"generiert, übersprungen ({e.orig})"
                    )
                    continue
                except FarmFlowError as e:
                    logger.error(f"Dauerauftrag {template.name} übersprungen: {e.message}")
                    continue
                if order is not None:
                    generated.append(order)

        logger.info(
            f"Daueraufträge für {for_date}: {len(generated)} Bestellungen generiert "
            f"(Mandant {tenant_id})"
        )
        return generated

    def _generate_one(
        self,
        tenant_id: UUID,
        template: StandingOrder,
        for_date: date,
        now: datetime,
    ) -> Optional[Order]:
        delivery = add_days(for_date, template.generate_days_ahead)

        if self._already_generated(template, delivery):
            logger.debug(f"Dauerauftrag {template.name}: {delivery} bereits generiert")
            return None

        items = []
        for item in template.items:
            product = item.product
            if product is None or product.crop_id is None:
                raise ValidationError(
                    f"Dauerauftrag {template.name}: Produkt {item.product_id} ohne Kultur"
                )
            items.append(OrderItemCreate(
                crop_id=product.crop_id,
                product_id=product.id,
                quantity=item.quantity,
                unit_price=product.base_price,
            ))
        if not items:
            logger.warning(f"Dauerauftrag {template.name} hat keine Positionen")
            return None

        data = OrderCreate(
            customer_id=template.customer_id,
            date_type=DateType.HARVEST,
            target_date=delivery,
            delivery_offset=0,
            items=items,
            notes=template.notes,
        )
        orders = self.scheduler.create_order(
            tenant_id,
            data,
            user_id=template.created_by,
            now=now,
            source=OrderSource.STANDING_ORDER,
            standing_order_id=template.id,
        )
        template.last_generated_at = now
        return orders[0]

    def _already_generated(self, template: StandingOrder, delivery: date) -> bool:
        return self.db.execute(
            select(exists().where(
                Order.standing_order_id == template.id,
                Order.delivery_date == delivery,
            ))
        ).scalar()

    def tenants_with_active_templates(self) -> list[UUID]:
        return list(self.db.execute(
            select(StandingOrder.tenant_id)
            .where(StandingOrder.is_active.is_(True), StandingOrder.auto_generate.is_(True))
            .distinct()
        ).scalars().all())

    # ==================== VERWALTUNG ====================

    def get(self, tenant_id: UUID, standing_order_id: UUID) -> StandingOrder:
        template = self.db.execute(
            select(StandingOrder)
            .options(selectinload(StandingOrder.items))
            .where(StandingOrder.id == standing_order_id, StandingOrder.tenant_id == tenant_id)
        ).scalar_one_or_none()
        if not template:
            raise NotFoundError("Dauerauftrag", standing_order_id)
        return template

    def list_standing_orders(
        self,
        tenant_id: UUID,
        customer_id: Optional[UUID] = None,
        active_only: bool = False,
    ) -> list[StandingOrder]:
        query = select(StandingOrder).where(StandingOrder.tenant_id == tenant_id)
        if customer_id:
            query = query.where(StandingOrder.customer_id == customer_id)
        if active_only:
            query = query.where(StandingOrder.is_active.is_(True))
        return list(self.db.execute(
            query.options(selectinload(StandingOrder.items)).order_by(StandingOrder.name)
        ).scalars().all())

    def create(
        self, tenant_id: UUID, data: StandingOrderCreate, user_id: Optional[UUID] = None
    ) -> StandingOrder:
        customer = self.db.execute(
            select(Customer).where(Customer.id == data.customer_id, Customer.tenant_id == tenant_id)
        ).scalar_one_or_none()
        if not customer:
            raise NotFoundError("Kunde", data.customer_id)
        if data.end_date and data.end_date < data.start_date:
            raise ValidationError("Enddatum liegt vor dem Startdatum")
        self._check_products(tenant_id, [item.product_id for item in data.items])

        with unit_of_work(self.db):
            template = StandingOrder(
                tenant_id=tenant_id,
                customer_id=customer.id,
                name=data.name,
                delivery_days=list(data.delivery_days),
                delivery_time=data.delivery_time,
                generate_days_ahead=data.generate_days_ahead,
                auto_generate=data.auto_generate,
                start_date=data.start_date,
                end_date=data.end_date,
                notes=data.notes,
                created_by=user_id,
            )
            for item in data.items:
                template.items.append(
                    StandingOrderItem(product_id=item.product_id, quantity=item.quantity)
                )
            self.db.add(template)
            self.db.flush()

        logger.info(f"Dauerauftrag {template.name} angelegt (Tage {template.delivery_days})")
        return template

    def update(
        self, tenant_id: UUID, standing_order_id: UUID, data: StandingOrderUpdate
    ) -> StandingOrder:
        """Aktualisiert den Auftrag; übergebene Positionen ersetzen die bisherigen"""
        template = self.get(tenant_id, standing_order_id)
        fields = data.model_dump(exclude_unset=True)
        items = fields.pop("items", None)
        if items is not None:
            self._check_products(tenant_id, [item.product_id for item in data.items])

        start = fields.get("start_date", template.start_date)
        end = fields.get("end_date", template.end_date)
        if end and start and end < start:
            raise ValidationError("Enddatum liegt vor dem Startdatum")

        with unit_of_work(self.db):
            for field, value in fields.items():
                setattr(template, field, value)
            if items is not None:
                template.items.clear()
                self.db.flush()
                for item in data.items:
                    template.items.append(
                        StandingOrderItem(product_id=item.product_id, quantity=item.quantity)
                    )
            self.db.flush()
        return template

    def pause(
        self, tenant_id: UUID, standing_order_id: UUID, paused_until: Optional[date] = None
    ) -> StandingOrder:
        """Pausiert den Auftrag; paused_until wird nur vermerkt"""
        template = self.get(tenant_id, standing_order_id)
        with unit_of_work(self.db):
            template.is_paused = True
            template.paused_until = paused_until
        logger.info(f"Dauerauftrag {template.name} pausiert bis {paused_until}")
        return template

    def resume(self, tenant_id: UUID, standing_order_id: UUID) -> StandingOrder:
        template = self.get(tenant_id, standing_order_id)
        with unit_of_work(self.db):
            template.is_paused = False
            template.paused_until = None
        return template

    def delete(self, tenant_id: UUID, standing_order_id: UUID) -> None:
        """Löscht die Vorlage; bereits generierte Bestellungen bleiben bestehen"""
        template = self.get(tenant_id, standing_order_id)
        with unit_of_work(self.db):
            self.db.delete(template)

    def _check_products(self, tenant_id: UUID, product_ids: list[UUID]) -> None:
        """Alle Produkte müssen existieren und einer Kultur zugeordnet sein"""
        crops = dict(self.db.execute(
            select(Product.id, Product.crop_id)
            .where(Product.tenant_id == tenant_id, Product.id.in_(product_ids))
        ).all())
        for product_id in product_ids:
            if product_id not in crops:
                raise NotFoundError("Produkt", product_id)
            if crops[product_id] is None:
                raise ValidationError(f"Produkt {product_id} ist keiner Kultur zugeordnet")
