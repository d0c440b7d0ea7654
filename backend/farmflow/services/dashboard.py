"""
Dashboard-Service - Tages- und Wochenübersicht der Produktion sowie
Auswertungen zu Ernten und Ertragseffizienz
"""
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.orm import Session, selectinload

from farmflow.core.dates import days_between
from farmflow.models.crop import Crop
from farmflow.models.enums import BatchStatus, OrderStatus, TaskType
from farmflow.models.order import Order
from farmflow.models.production import BatchHarvest, ProductionBatch
from farmflow.services.order_scheduler import OrderSchedulerService
from farmflow.services.production import BatchService
from farmflow.services.tasks import TaskService


def _percent(actual: Decimal, expected: Decimal) -> Decimal:
    """Anteil in Prozent, eine Nachkommastelle"""
    if not expected:
        return Decimal("0.0")
    return (Decimal(actual) * 100 / Decimal(expected)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


class DashboardService:
    """Baut Übersichten aus Aufgaben, Chargen und Bestellungen"""

    def __init__(self, db: Session):
        self.db = db
        self.tasks = TaskService(db)
        self.batches = BatchService(db)
        self.orders = OrderSchedulerService(db)

    # ==================== ÜBERSICHTEN ====================

    def today(self, tenant_id: UUID, today: date) -> dict:
        tasks = self.tasks.daily(tenant_id, today)
        deliveries = self.orders.orders_for_date(tenant_id, today)
        return {
            "day": today,
            "task_counts": self.tasks.counts(tenant_id, today),
            "tasks": tasks,
            "harvests": [t for t in tasks if t.type == TaskType.HARVEST],
            "deliveries": deliveries,
            "delivery_value": sum((o.total for o in deliveries), Decimal("0.00")),
            "ready_to_harvest": self.batches.ready_to_harvest(tenant_id, today),
            "overdue_tasks": self.tasks.overdue(tenant_id, today),
            "batch_status": self.batches.status_counts(tenant_id),
        }

    def week(self, tenant_id: UUID, day: date) -> dict:
        start, end, grouped = self.tasks.weekly(tenant_id, day)
        order_count, order_value = self.db.execute(
            select(func.count(Order.id), func.coalesce(func.sum(Order.total), 0))
            .where(
                Order.tenant_id == tenant_id,
                Order.delivery_date >= start,
                Order.delivery_date <= end,
                Order.status != OrderStatus.CANCELLED,
            )
        ).one()
        days = {}
        for iso_day, tasks in grouped.items():
            days[iso_day] = {
                "tasks": len(tasks),
                "open": sum(1 for t in tasks if not t.status.is_done),
                "harvests": sum(1 for t in tasks if t.type == TaskType.HARVEST),
                "deliveries": sum(1 for t in tasks if t.type == TaskType.DELIVERY),
            }
        return {
            "week_start": start,
            "week_end": end,
            "days": days,
            "order_count": order_count,
            "order_value": Decimal(order_value).quantize(Decimal("0.01")),
        }

    # ==================== AUSWERTUNGEN ====================

    def harvest_summary(
        self,
        tenant_id: UUID,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> dict:
        """
        Erfasste Ernten im Zeitraum, summiert je Kultur.

        Jeder Flush einer Pilzcharge zählt als eigene Ernte.
        """
        query = (
            select(BatchHarvest, ProductionBatch.batch_code, Crop.name)
            .join(ProductionBatch, BatchHarvest.batch_id == ProductionBatch.id)
            .join(Crop, ProductionBatch.crop_id == Crop.id)
            .where(ProductionBatch.tenant_id == tenant_id)
        )
        if start:
            query = query.where(BatchHarvest.harvest_date >= start)
        if end:
            query = query.where(BatchHarvest.harvest_date <= end)
        rows = self.db.execute(
            query.order_by(BatchHarvest.harvest_date.desc(), ProductionBatch.batch_code)
        ).all()

        by_crop: dict[str, dict] = {}
        harvests = []
        for harvest, batch_code, crop_name in rows:
            entry = by_crop.setdefault(crop_name, {"quantity": Decimal("0"), "count": 0})
            entry["quantity"] += harvest.quantity
            entry["count"] += 1
            harvests.append({
                "batch_code": batch_code,
                "crop_name": crop_name,
                "harvest_date": harvest.harvest_date,
                "flush_number": harvest.flush_number,
                "quantity": harvest.quantity,
                "unit": harvest.unit,
                "quality_grade": harvest.quality_grade,
            })

        return {
            "start_date": start,
            "end_date": end,
            "total_harvests": len(harvests),
            "total_quantity": sum((h["quantity"] for h in harvests), Decimal("0")),
            "by_crop": by_crop,
            "harvests": harvests,
        }

    def production_efficiency(
        self,
        tenant_id: UUID,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> dict:
        """Erwarteter gegen tatsächlichen Ertrag abgeschlossener Chargen"""
        query = (
            select(ProductionBatch)
            .options(selectinload(ProductionBatch.crop))
            .where(
                ProductionBatch.tenant_id == tenant_id,
                ProductionBatch.status == BatchStatus.HARVESTED,
            )
        )
        if start:
            query = query.where(ProductionBatch.actual_harvest_date >= start)
        if end:
            query = query.where(ProductionBatch.actual_harvest_date <= end)
        batches = self.db.execute(
            query.order_by(ProductionBatch.actual_harvest_date, ProductionBatch.batch_code)
        ).scalars().all()

        metrics = []
        for batch in batches:
            sown = batch.actual_sow_date or batch.planned_sow_date
            cycle_days = None
            if batch.actual_harvest_date:
                cycle_days = days_between(sown, batch.actual_harvest_date)
            metrics.append({
                "batch_code": batch.batch_code,
                "crop_name": batch.crop.name,
                "expected_yield": batch.expected_yield,
                "actual_yield": batch.actual_yield,
                "efficiency": _percent(batch.actual_yield, batch.expected_yield),
                "harvest_date": batch.actual_harvest_date,
                "cycle_days": cycle_days,
            })

        total_expected = sum((b.expected_yield for b in batches), Decimal("0"))
        total_actual = sum((b.actual_yield for b in batches), Decimal("0"))
        return {
            "start_date": start,
            "end_date": end,
            "total_batches": len(batches),
            "total_expected_yield": total_expected,
            "total_actual_yield": total_actual,
            "overall_efficiency": _percent(total_actual, total_expected),
            "batches": metrics,
        }
