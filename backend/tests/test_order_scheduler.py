"""
Tests für die Bestellplanung
"""
import uuid
import pytest
from datetime import date
from decimal import Decimal

from sqlalchemy import select, func

from farmflow.core.exceptions import (
    NotFoundError,
    ValidationError,
    InvalidStatusTransition,
    PartialExpansionFailure,
)
from farmflow.models import Order, Product, ProductionBatch, Task
from farmflow.models.enums import (
    DateType,
    OrderSource,
    OrderStatus,
    RecurrenceFrequency,
    TaskStatus,
    TaskType,
)
from farmflow.schemas.order import OrderCreate, OrderItemCreate, OrderUpdate
from farmflow.services.order_scheduler import OrderSchedulerService, schedule_dates
from farmflow.services.tasks import apply_status


def item(crop, quantity="50", price="0.50"):
    return OrderItemCreate(crop_id=crop.id, quantity=Decimal(quantity), unit_price=Decimal(price))


def count_tasks(db, order_id):
    return db.execute(select(func.count(Task.id)).where(Task.order_id == order_id)).scalar()


def count_batches(db, order_id):
    return db.execute(
        select(func.count(ProductionBatch.id)).where(ProductionBatch.order_id == order_id)
    ).scalar()


class TestScheduleDates:
    """Tests für die Ableitung von Ernte- und Liefertag"""

    def test_harvest_mode(self):
        harvest, delivery = schedule_dates(DateType.HARVEST, date(2024, 6, 20), 1, [])
        assert harvest == date(2024, 6, 20)
        assert delivery == date(2024, 6, 19)


class TestCreateOrder:
    """Tests für das Anlegen von Bestellungen"""

    def test_create_generates_batch_and_tasks(self, db, tenant_id, user_id, now, customer, microgreen_crop):
        """Test: Eine Charge je Position, Aufgaben rückwärts, eine Lieferaufgabe"""
        data = OrderCreate(
            customer_id=customer.id,
            date_type=DateType.HARVEST,
            target_date=date(2024, 6, 20),
            delivery_offset=1,
            items=[item(microgreen_crop)],
        )
        [order] = OrderSchedulerService(db).create_order(tenant_id, data, user_id, now)

        assert order.order_number == "ORD-20240601-0001"
        assert order.harvest_date == date(2024, 6, 20)
        assert order.delivery_date == date(2024, 6, 19)
        assert order.source == OrderSource.MANUAL
        assert order.customer_name == "Restaurant Schumann"

        tasks = db.execute(
            select(Task).where(Task.order_id == order.id).order_by(Task.due_date)
        ).scalars().all()
        types = [t.type for t in tasks]
        assert types.count(TaskType.DELIVERY) == 1
        assert len(tasks) == 5
        by_type = {t.type: t for t in tasks}
        assert by_type[TaskType.SOAK].due_date == date(2024, 6, 9)
        assert by_type[TaskType.PLANT].due_date == date(2024, 6, 10)
        assert by_type[TaskType.UNCOVER].due_date == date(2024, 6, 14)
        assert by_type[TaskType.HARVEST].due_date == date(2024, 6, 20)
        assert by_type[TaskType.DELIVERY].due_date == date(2024, 6, 19)
        assert by_type[TaskType.DELIVERY].details["item_count"] == 1

        batch = db.execute(
            select(ProductionBatch).where(ProductionBatch.order_id == order.id)
        ).scalar_one()
        assert batch.quantity == 7
        assert batch.planned_sow_date == date(2024, 6, 9)
        assert batch.planned_harvest_date == date(2024, 6, 20)
        assert batch.batch_code == "MG-20240609-001"

    def test_start_mode_uses_slowest_crop(self, db, tenant_id, user_id, now, customer, crop_factory):
        """Test: growth 7 und 12, Start 01.06., Versatz 1 → Ernte 13.06., Lieferung 12.06."""
        fast = crop_factory(name="Erbse", growth_days=7, blackout_days=2)
        slow = crop_factory(name="Koriander", growth_days=12, blackout_days=5)
        data = OrderCreate(
            customer_id=customer.id,
            date_type=DateType.START,
            target_date=date(2024, 6, 1),
            delivery_offset=1,
            items=[item(fast), item(slow)],
        )
        [order] = OrderSchedulerService(db).create_order(tenant_id, data, user_id, now)

        assert order.harvest_date == date(2024, 6, 13)
        assert order.delivery_date == date(2024, 6, 12)
        assert count_batches(db, order.id) == 2

    def test_default_delivery_offset(self, db, tenant_id, user_id, now, customer, microgreen_crop):
        data = OrderCreate(
            customer_id=customer.id,
            target_date=date(2024, 6, 20),
            items=[item(microgreen_crop)],
        )
        [order] = OrderSchedulerService(db).create_order(tenant_id, data, user_id, now)
        assert order.delivery_offset == 1
        assert order.delivery_date == date(2024, 6, 19)

    def test_total_is_sum_of_lines(self, db, tenant_id, user_id, now, customer, microgreen_crop, mushroom_crop):
        data = OrderCreate(
            customer_id=customer.id,
            target_date=date(2024, 6, 30),
            items=[item(microgreen_crop, "2", "3.50"), item(mushroom_crop, "1.5", "10.00")],
        )
        [order] = OrderSchedulerService(db).create_order(tenant_id, data, user_id, now)

        assert order.total == Decimal("22.00")
        assert order.total == sum(i.quantity * i.unit_price for i in order.items)
        assert [i.position for i in order.items] == [1, 2]

    def test_order_numbers_are_sequential(self, db, tenant_id, user_id, now, customer, microgreen_crop):
        service = OrderSchedulerService(db)
        data = OrderCreate(customer_id=customer.id, target_date=date(2024, 6, 20), items=[item(microgreen_crop)])
        first = service.create_order(tenant_id, data, user_id, now)[0]
        second = service.create_order(tenant_id, data, user_id, now)[0]
        assert first.order_number == "ORD-20240601-0001"
        assert second.order_number == "ORD-20240601-0002"

    def test_unknown_customer(self, db, tenant_id, user_id, now, microgreen_crop):
        data = OrderCreate(customer_id=uuid.uuid4(), target_date=date(2024, 6, 20), items=[item(microgreen_crop)])
        with pytest.raises(NotFoundError):
            OrderSchedulerService(db).create_order(tenant_id, data, user_id, now)


class TestExpansionFailure:
    """Tests für Alles-oder-nichts bei fehlerhaften Positionen"""

    def test_unknown_crop_rolls_back_everything(self, db, tenant_id, user_id, now, customer, microgreen_crop):
        """Test: Unbekannte Kultur in Position 2 → keine Bestellung, keine Aufgaben"""
        data = OrderCreate(
            customer_id=customer.id,
            target_date=date(2024, 6, 20),
            items=[
                item(microgreen_crop),
                OrderItemCreate(crop_id=uuid.uuid4(), quantity=Decimal("10")),
            ],
        )
        with pytest.raises(PartialExpansionFailure) as exc_info:
            OrderSchedulerService(db).create_order(tenant_id, data, user_id, now)

        assert exc_info.value.item_index == 1
        assert db.execute(select(func.count(Order.id))).scalar() == 0
        assert db.execute(select(func.count(Task.id))).scalar() == 0
        assert db.execute(select(func.count(ProductionBatch.id))).scalar() == 0

    def test_other_tenant_cannot_use_master_data(self, db, other_tenant_id, user_id, now, customer, microgreen_crop):
        data = OrderCreate(customer_id=customer.id, target_date=date(2024, 6, 20), items=[item(microgreen_crop)])
        with pytest.raises(NotFoundError):
            OrderSchedulerService(db).create_order(other_tenant_id, data, user_id, now)

    def test_missing_crop_is_validation_error(self, db, tenant_id, user_id, now, customer):
        data = OrderCreate(
            customer_id=customer.id,
            target_date=date(2024, 6, 20),
            items=[OrderItemCreate(quantity=Decimal("10"))],
        )
        with pytest.raises(ValidationError):
            OrderSchedulerService(db).create_order(tenant_id, data, user_id, now)


class TestCatalogItems:
    """Tests für Positionen mit Produktbezug"""

    def test_price_defaults_to_base_price(self, db, tenant_id, user_id, now, customer, microgreen_crop, product):
        data = OrderCreate(
            customer_id=customer.id,
            target_date=date(2024, 6, 20),
            items=[OrderItemCreate(crop_id=microgreen_crop.id, product_id=product.id, quantity=Decimal("10"))],
        )
        [order] = OrderSchedulerService(db).create_order(tenant_id, data, user_id, now)

        assert order.items[0].unit_price == Decimal("4.00")
        assert order.total == Decimal("40.00")

    def test_crop_taken_from_product(self, db, tenant_id, user_id, now, customer, microgreen_crop, product):
        data = OrderCreate(
            customer_id=customer.id,
            target_date=date(2024, 6, 20),
            items=[OrderItemCreate(product_id=product.id, quantity=Decimal("10"))],
        )
        [order] = OrderSchedulerService(db).create_order(tenant_id, data, user_id, now)

        assert order.items[0].crop_id == microgreen_crop.id
        assert count_batches(db, order.id) == 1

    def test_explicit_price_wins(self, db, tenant_id, user_id, now, customer, product):
        data = OrderCreate(
            customer_id=customer.id,
            target_date=date(2024, 6, 20),
            items=[OrderItemCreate(product_id=product.id, quantity=Decimal("10"), unit_price=Decimal("3"))],
        )
        [order] = OrderSchedulerService(db).create_order(tenant_id, data, user_id, now)
        assert order.total == Decimal("30.00")

    def test_unknown_product_reports_position(self, db, tenant_id, user_id, now, customer, microgreen_crop):
        data = OrderCreate(
            customer_id=customer.id,
            target_date=date(2024, 6, 20),
            items=[item(microgreen_crop), OrderItemCreate(product_id=uuid.uuid4(), quantity=Decimal("1"))],
        )
        with pytest.raises(PartialExpansionFailure) as exc_info:
            OrderSchedulerService(db).create_order(tenant_id, data, user_id, now)

        assert exc_info.value.item_index == 1
        assert db.execute(select(func.count(Order.id))).scalar() == 0

    def test_product_without_crop_rejected(self, db, tenant_id, user_id, now, customer):
        loose = Product(tenant_id=tenant_id, name="Geschenkgutschein", base_price=Decimal("20.00"))
        db.add(loose)
        db.commit()
        data = OrderCreate(
            customer_id=customer.id,
            target_date=date(2024, 6, 20),
            items=[OrderItemCreate(product_id=loose.id, quantity=Decimal("1"))],
        )
        with pytest.raises(ValidationError):
            OrderSchedulerService(db).create_order(tenant_id, data, user_id, now)

    def test_update_items_use_catalog(self, db, tenant_id, user_id, now, customer, microgreen_crop, product):
        service = OrderSchedulerService(db)
        data = OrderCreate(customer_id=customer.id, target_date=date(2024, 6, 20), items=[item(microgreen_crop)])
        [order] = service.create_order(tenant_id, data, user_id, now)

        updated = service.update_order(
            tenant_id,
            order.id,
            OrderUpdate(items=[OrderItemCreate(product_id=product.id, quantity=Decimal("5"))]),
            user_id,
            now,
        )
        assert updated.total == Decimal("20.00")


class TestRecurrence:
    """Tests für wiederkehrende Bestellungen"""

    def test_weekly_recurrence_creates_four_orders(self, db, tenant_id, user_id, now, customer, microgreen_crop):
        """Test: Wöchentlich 01.01. bis 22.01. → genau 4 Bestellungen im 7-Tage-Abstand"""
        data = OrderCreate(
            customer_id=customer.id,
            date_type=DateType.HARVEST,
            target_date=date(2024, 1, 2),
            delivery_offset=1,
            items=[item(microgreen_crop)],
            is_recurring=True,
            frequency=RecurrenceFrequency.WEEKLY,
            recurring_end_date=date(2024, 1, 22),
        )
        orders = OrderSchedulerService(db).create_order(tenant_id, data, user_id, now)

        assert [o.delivery_date for o in orders] == [
            date(2024, 1, 1), date(2024, 1, 8), date(2024, 1, 15), date(2024, 1, 22),
        ]
        assert len({o.recurrence_group_id for o in orders}) == 1
        assert len({o.order_number for o in orders}) == 4
        assert all(o.source == OrderSource.RECURRING for o in orders)
        for order in orders:
            assert count_tasks(db, order.id) == 5
            assert count_batches(db, order.id) == 1

    def test_monthly_is_fixed_thirty_days(self, db, tenant_id, user_id, now, customer, microgreen_crop):
        data = OrderCreate(
            customer_id=customer.id,
            target_date=date(2024, 1, 31),
            delivery_offset=0,
            items=[item(microgreen_crop)],
            is_recurring=True,
            frequency=RecurrenceFrequency.MONTHLY,
            recurring_end_date=date(2024, 3, 31),
        )
        orders = OrderSchedulerService(db).create_order(tenant_id, data, user_id, now)
        assert [o.delivery_date for o in orders] == [
            date(2024, 1, 31), date(2024, 3, 1), date(2024, 3, 31),
        ]

    def test_end_before_first_delivery_rejected(self, db, tenant_id, user_id, now, customer, microgreen_crop):
        data = OrderCreate(
            customer_id=customer.id,
            target_date=date(2024, 6, 20),
            items=[item(microgreen_crop)],
            is_recurring=True,
            frequency=RecurrenceFrequency.WEEKLY,
            recurring_end_date=date(2024, 6, 1),
        )
        with pytest.raises(ValidationError):
            OrderSchedulerService(db).create_order(tenant_id, data, user_id, now)

    def test_delete_recurrence_group(self, db, tenant_id, user_id, now, customer, microgreen_crop):
        data = OrderCreate(
            customer_id=customer.id,
            target_date=date(2024, 1, 2),
            items=[item(microgreen_crop)],
            is_recurring=True,
            frequency=RecurrenceFrequency.BIWEEKLY,
            recurring_end_date=date(2024, 2, 28),
        )
        service = OrderSchedulerService(db)
        orders = service.create_order(tenant_id, data, user_id, now)
        group_id = orders[0].recurrence_group_id

        assert service.delete_recurrence_group(tenant_id, group_id) == len(orders)
        assert db.execute(select(func.count(Order.id))).scalar() == 0
        assert db.execute(select(func.count(Task.id))).scalar() == 0


class TestUpdateOrder:
    """Tests für Änderungen mit vollständiger Neugenerierung"""

    def test_changed_items_replace_all_tasks(
        self, db, tenant_id, user_id, now, customer, microgreen_crop, mushroom_crop
    ):
        """
        Test: Geänderte Positionen ersetzen Chargen und Aufgaben vollständig.
        Bewusster Kompromiss: erledigte Aufgaben gehen dabei verloren.
        """
        service = OrderSchedulerService(db)
        data = OrderCreate(customer_id=customer.id, target_date=date(2024, 6, 30), items=[item(microgreen_crop)])
        [order] = service.create_order(tenant_id, data, user_id, now)
        old_task_ids = set(db.execute(select(Task.id).where(Task.order_id == order.id)).scalars().all())

        done = db.execute(
            select(Task).where(Task.order_id == order.id, Task.type == TaskType.PLANT)
        ).scalar_one()
        apply_status(done, TaskStatus.COMPLETED, user_id, now)
        db.commit()

        patch = OrderUpdate(items=[item(microgreen_crop, "16", "1.00"), item(mushroom_crop, "32", "2.00")])
        order = service.update_order(tenant_id, order.id, patch, user_id, now)

        new_task_ids = set(db.execute(select(Task.id).where(Task.order_id == order.id)).scalars().all())
        # 4 Microgreen-Aufgaben + 2 Pilz-Aufgaben + Lieferung
        assert len(new_task_ids) == 7
        assert not (old_task_ids & new_task_ids)
        assert count_batches(db, order.id) == 2
        assert order.total == Decimal("80.00")
        completed = db.execute(
            select(func.count(Task.id)).where(Task.status == TaskStatus.COMPLETED)
        ).scalar()
        assert completed == 0

    def test_changed_target_date_moves_tasks(self, db, tenant_id, user_id, now, customer, microgreen_crop):
        service = OrderSchedulerService(db)
        data = OrderCreate(customer_id=customer.id, target_date=date(2024, 6, 20), items=[item(microgreen_crop)])
        [order] = service.create_order(tenant_id, data, user_id, now)

        order = service.update_order(
            tenant_id, order.id, OrderUpdate(target_date=date(2024, 6, 27)), user_id, now
        )
        assert order.harvest_date == date(2024, 6, 27)
        assert order.delivery_date == date(2024, 6, 26)
        harvest = db.execute(
            select(Task).where(Task.order_id == order.id, Task.type == TaskType.HARVEST)
        ).scalar_one()
        assert harvest.due_date == date(2024, 6, 27)

    def test_notes_only_keeps_tasks(self, db, tenant_id, user_id, now, customer, microgreen_crop):
        service = OrderSchedulerService(db)
        data = OrderCreate(customer_id=customer.id, target_date=date(2024, 6, 20), items=[item(microgreen_crop)])
        [order] = service.create_order(tenant_id, data, user_id, now)
        before = set(db.execute(select(Task.id).where(Task.order_id == order.id)).scalars().all())

        order = service.update_order(tenant_id, order.id, OrderUpdate(notes="Bitte klingeln"), user_id, now)

        after = set(db.execute(select(Task.id).where(Task.order_id == order.id)).scalars().all())
        assert before == after
        assert order.notes == "Bitte klingeln"


class TestStatusAndDelete:
    """Tests für Statuswechsel und Kaskadenlöschung"""

    def test_delete_removes_tasks_and_batches(self, db, tenant_id, user_id, now, customer, microgreen_crop):
        service = OrderSchedulerService(db)
        data = OrderCreate(customer_id=customer.id, target_date=date(2024, 6, 20), items=[item(microgreen_crop)])
        [order] = service.create_order(tenant_id, data, user_id, now)
        order_id = order.id

        service.delete_order(tenant_id, order_id)

        assert count_tasks(db, order_id) == 0
        assert count_batches(db, order_id) == 0
        assert db.execute(select(func.count(Task.id))).scalar() == 0
        with pytest.raises(NotFoundError):
            service.get_order(tenant_id, order_id)

    def test_cancel_removes_generated_work(self, db, tenant_id, user_id, now, customer, microgreen_crop):
        service = OrderSchedulerService(db)
        data = OrderCreate(customer_id=customer.id, target_date=date(2024, 6, 20), items=[item(microgreen_crop)])
        [order] = service.create_order(tenant_id, data, user_id, now)

        order = service.update_status(tenant_id, order.id, OrderStatus.CANCELLED)

        assert order.status == OrderStatus.CANCELLED
        assert count_tasks(db, order.id) == 0
        assert count_batches(db, order.id) == 0

    def test_invalid_transition(self, db, tenant_id, user_id, now, customer, microgreen_crop):
        service = OrderSchedulerService(db)
        data = OrderCreate(customer_id=customer.id, target_date=date(2024, 6, 20), items=[item(microgreen_crop)])
        [order] = service.create_order(tenant_id, data, user_id, now)
        service.update_status(tenant_id, order.id, OrderStatus.CANCELLED)

        with pytest.raises(InvalidStatusTransition):
            service.update_status(tenant_id, order.id, OrderStatus.CONFIRMED)

    def test_bulk_delete_ignores_unknown_ids(self, db, tenant_id, user_id, now, customer, microgreen_crop):
        service = OrderSchedulerService(db)
        data = OrderCreate(customer_id=customer.id, target_date=date(2024, 6, 20), items=[item(microgreen_crop)])
        [order] = service.create_order(tenant_id, data, user_id, now)

        assert service.bulk_delete(tenant_id, [order.id, uuid.uuid4()]) == 1
        assert db.execute(select(func.count(ProductionBatch.id))).scalar() == 0
