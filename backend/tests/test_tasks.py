"""
Tests für Aufgaben
"""
import pytest
from datetime import date, datetime
from decimal import Decimal

from farmflow.core.exceptions import NotFoundError
from farmflow.models.enums import DateType, OrderStatus, TaskPriority, TaskSource, TaskStatus, TaskType
from farmflow.models.task import Task
from farmflow.schemas.order import OrderCreate, OrderItemCreate
from farmflow.schemas.production import BatchCreate
from farmflow.schemas.task import TaskCreate, TaskUpdate
from farmflow.services.dashboard import DashboardService
from farmflow.services.order_scheduler import OrderSchedulerService
from farmflow.services.production import BatchService
from farmflow.services.tasks import TaskService, apply_status

NOW = datetime(2024, 6, 12, 14, 30)


@pytest.fixture
def service(db):
    return TaskService(db)


@pytest.fixture
def make_task(service, tenant_id, user_id):
    def _make(due, title="Trays kontrollieren", **extra):
        return service.create_task(tenant_id, TaskCreate(title=title, due_date=due, **extra), user_id)
    return _make


class TestApplyStatus:
    """Tests für die gemeinsame Pflege von completed_at/completed_by"""

    def test_completed_sets_both(self, user_id):
        task = Task(status=TaskStatus.PENDING)
        apply_status(task, TaskStatus.COMPLETED, user_id, NOW)
        assert task.completed_at == NOW
        assert task.completed_by == user_id

    def test_skipped_counts_as_done(self, user_id):
        task = Task(status=TaskStatus.PENDING)
        apply_status(task, TaskStatus.SKIPPED, user_id, NOW)
        assert task.completed_at == NOW

    def test_reopen_clears_both(self, user_id):
        task = Task(status=TaskStatus.COMPLETED, completed_at=NOW, completed_by=user_id)
        apply_status(task, TaskStatus.IN_PROGRESS, user_id, NOW)
        assert task.completed_at is None
        assert task.completed_by is None


class TestTaskService:
    """Tests für Anlegen, Ändern und Löschen"""

    def test_create_manual_task(self, make_task, user_id):
        task = make_task(date(2024, 6, 12), priority=TaskPriority.HIGH)
        assert task.source == TaskSource.MANUAL
        assert task.status == TaskStatus.PENDING
        assert task.type == TaskType.CUSTOM
        assert task.created_by == user_id

    def test_update_status_and_notes(self, service, tenant_id, user_id, make_task):
        task = make_task(date(2024, 6, 12))
        updated = service.update_task(
            tenant_id, task.id, TaskUpdate(status=TaskStatus.COMPLETED, notes="Erledigt"), user_id, NOW
        )
        assert updated.status == TaskStatus.COMPLETED
        assert updated.completed_by == user_id
        assert updated.notes == "Erledigt"

    def test_update_details(self, service, tenant_id, make_task):
        task = make_task(date(2024, 6, 12))
        updated = service.update_task(
            tenant_id,
            task.id,
            TaskUpdate(details={
                "kind": "batch_step",
                "batch_code": "MG-20240601-001",
                "crop_name": "Radieschen",
                "units": 5,
                "day_offset": 4,
            }),
            None,
            NOW,
        )
        assert updated.details["batch_code"] == "MG-20240601-001"
        assert updated.status == TaskStatus.PENDING

    def test_bulk_update_status(self, service, tenant_id, user_id, make_task):
        ids = [make_task(date(2024, 6, 12)).id for _ in range(3)]
        assert service.bulk_update_status(tenant_id, ids, TaskStatus.SKIPPED, user_id, NOW) == 3
        tasks, _ = service.list_tasks(tenant_id, status=TaskStatus.SKIPPED)
        assert len(tasks) == 3

    def test_delete_task_keeps_batch(self, db, service, tenant_id, microgreen_crop):
        batch = BatchService(db).create_batch(
            tenant_id, BatchCreate(crop_id=microgreen_crop.id, quantity=2, planned_sow_date=date(2024, 6, 10))
        )
        tasks, total = service.list_tasks(tenant_id, batch_id=batch.id)
        service.delete_task(tenant_id, tasks[0].id)

        assert BatchService(db).get_batch(tenant_id, batch.id) is not None
        _, remaining = service.list_tasks(tenant_id, batch_id=batch.id)
        assert remaining == total - 1

    def test_other_tenant_task_not_found(self, service, other_tenant_id, make_task):
        task = make_task(date(2024, 6, 12))
        with pytest.raises(NotFoundError):
            service.get_task(other_tenant_id, task.id)


class TestViews:
    """Tests für Tages- und Wochenansichten"""

    def test_weekly_groups_all_seven_days(self, service, tenant_id, make_task):
        make_task(date(2024, 6, 10), "Montag")
        make_task(date(2024, 6, 16), "Sonntag")
        make_task(date(2024, 6, 17), "Nächste Woche")

        start, end, grouped = service.weekly(tenant_id, date(2024, 6, 12))

        assert (start, end) == (date(2024, 6, 10), date(2024, 6, 16))
        assert list(grouped) == [f"2024-06-{d}" for d in range(10, 17)]
        assert [t.title for t in grouped["2024-06-10"]] == ["Montag"]
        assert [t.title for t in grouped["2024-06-16"]] == ["Sonntag"]
        assert grouped["2024-06-12"] == []

    def test_daily(self, service, tenant_id, make_task):
        make_task(date(2024, 6, 12), "Heute")
        make_task(date(2024, 6, 13), "Morgen")
        assert [t.title for t in service.daily(tenant_id, date(2024, 6, 12))] == ["Heute"]

    def test_monthly_only_days_with_tasks(self, service, tenant_id, make_task):
        make_task(date(2024, 5, 31), "Mai")
        make_task(date(2024, 6, 1), "Erster")
        make_task(date(2024, 6, 30), "Letzter A")
        make_task(date(2024, 6, 30), "Letzter B")
        make_task(date(2024, 7, 1), "Juli")

        start, end, grouped = service.monthly(tenant_id, 2024, 6)

        assert (start, end) == (date(2024, 6, 1), date(2024, 6, 30))
        assert list(grouped) == ["2024-06-01", "2024-06-30"]
        assert len(grouped["2024-06-30"]) == 2

    def test_monthly_december(self, service, tenant_id):
        start, end, grouped = service.monthly(tenant_id, 2024, 12)
        assert end == date(2024, 12, 31)
        assert grouped == {}

    def test_overdue_and_counts(self, service, tenant_id, user_id, make_task):
        old = make_task(date(2024, 6, 10), "Vergessen")
        done = make_task(date(2024, 6, 11), "Erledigt")
        apply_status(done, TaskStatus.COMPLETED, user_id, NOW)
        service.db.commit()
        today = make_task(date(2024, 6, 12), "Heute")
        service.update_task(tenant_id, today.id, TaskUpdate(status=TaskStatus.IN_PROGRESS), user_id, NOW)

        assert [t.id for t in service.overdue(tenant_id, date(2024, 6, 12))] == [old.id]

        counts = service.counts(tenant_id, date(2024, 6, 12))
        assert counts["day"] == date(2024, 6, 12)
        assert counts["total"] == 1
        assert counts["in_progress"] == 1
        assert counts["pending"] == 0
        assert counts["overdue"] == 1


class TestDashboard:
    """Tests für Tages- und Wochenübersicht"""

    def test_today(self, db, tenant_id, user_id, now, customer, microgreen_crop):
        OrderSchedulerService(db).create_order(
            tenant_id,
            OrderCreate(
                customer_id=customer.id,
                date_type=DateType.HARVEST,
                target_date=date(2024, 6, 20),
                delivery_offset=0,
                items=[OrderItemCreate(crop_id=microgreen_crop.id, quantity=10, unit_price=2)],
            ),
            user_id,
            now,
        )

        board = DashboardService(db).today(tenant_id, date(2024, 6, 20))
        assert [t.type for t in board["harvests"]] == [TaskType.HARVEST]
        assert len(board["deliveries"]) == 1
        assert board["delivery_value"] == 20
        assert board["task_counts"]["total"] == 2
        assert board["batch_status"] == {"PLANNED": 1}
        assert len(board["ready_to_harvest"]) == 1

    def test_week(self, db, tenant_id, make_task):
        make_task(date(2024, 6, 11))
        make_task(date(2024, 6, 11), type=TaskType.HARVEST)

        board = DashboardService(db).week(tenant_id, date(2024, 6, 12))
        assert board["week_start"] == date(2024, 6, 10)
        assert board["days"]["2024-06-11"] == {"tasks": 2, "open": 2, "harvests": 1, "deliveries": 0}
        assert board["order_count"] == 0

    def test_week_order_totals_skip_cancelled(self, db, tenant_id, user_id, now, customer, microgreen_crop):
        scheduler = OrderSchedulerService(db)
        created = [
            scheduler.create_order(
                tenant_id,
                OrderCreate(
                    customer_id=customer.id,
                    target_date=date(2024, 6, 12),
                    delivery_offset=0,
                    items=[OrderItemCreate(crop_id=microgreen_crop.id, quantity=10, unit_price=2)],
                ),
                user_id,
                now,
            )[0]
            for _ in range(2)
        ]
        scheduler.update_status(tenant_id, created[1].id, OrderStatus.CANCELLED)

        board = DashboardService(db).week(tenant_id, date(2024, 6, 12))
        assert board["order_count"] == 1
        assert board["order_value"] == Decimal("20.00")
