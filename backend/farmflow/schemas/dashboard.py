"""
Pydantic Schemas für Dashboard-Übersichten
"""
from datetime import date
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel

from farmflow.models.enums import QualityGrade
from farmflow.schemas.order import OrderResponse
from farmflow.schemas.production import BatchResponse
from farmflow.schemas.task import TaskCounts, TaskResponse


class TodayDashboard(BaseModel):
    """Tagesübersicht: Aufgaben, Ernten, Lieferungen"""
    day: date
    task_counts: TaskCounts
    tasks: list[TaskResponse]
    harvests: list[TaskResponse]
    deliveries: list[OrderResponse]
    delivery_value: Decimal
    ready_to_harvest: list[BatchResponse]
    overdue_tasks: list[TaskResponse]
    batch_status: dict[str, int]


class WeekDaySummary(BaseModel):
    tasks: int
    open: int
    harvests: int
    deliveries: int


class WeekDashboard(BaseModel):
    week_start: date
    week_end: date
    days: dict[str, WeekDaySummary]
    order_count: int
    order_value: Decimal


# ==================== AUSWERTUNGEN ====================

class CropHarvestTotal(BaseModel):
    quantity: Decimal
    count: int


class HarvestEntry(BaseModel):
    batch_code: str
    crop_name: str
    harvest_date: date
    flush_number: int
    quantity: Decimal
    unit: str
    quality_grade: QualityGrade


class HarvestSummary(BaseModel):
    """Ernten im Zeitraum, summiert je Kultur"""
    start_date: Optional[date]
    end_date: Optional[date]
    total_harvests: int
    total_quantity: Decimal
    by_crop: dict[str, CropHarvestTotal]
    harvests: list[HarvestEntry]


class BatchEfficiency(BaseModel):
    batch_code: str
    crop_name: str
    expected_yield: Decimal
    actual_yield: Decimal
    efficiency: Decimal
    harvest_date: Optional[date]
    cycle_days: Optional[int]


class ProductionEfficiency(BaseModel):
    """Ertragseffizienz abgeschlossener Chargen in Prozent"""
    start_date: Optional[date]
    end_date: Optional[date]
    total_batches: int
    total_expected_yield: Decimal
    total_actual_yield: Decimal
    overall_efficiency: Decimal
    batches: list[BatchEfficiency]
