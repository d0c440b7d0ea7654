"""
API Endpoints für das Dashboard
"""
from datetime import date
from typing import Optional
from fastapi import APIRouter

from farmflow.api.deps import DBSession, CurrentUser
from farmflow.schemas.dashboard import (
    HarvestSummary,
    ProductionEfficiency,
    TodayDashboard,
    WeekDashboard,
)
from farmflow.services.dashboard import DashboardService

router = APIRouter()


@router.get("/today", response_model=TodayDashboard)
async def dashboard_today(db: DBSession, user: CurrentUser, day: Optional[date] = None):
    """Aufgaben, Ernten und Lieferungen des Tages."""
    return DashboardService(db).today(user["tenant_id"], day or date.today())


@router.get("/week", response_model=WeekDashboard)
async def dashboard_week(db: DBSession, user: CurrentUser, day: Optional[date] = None):
    """Wochenübersicht (Montag bis Sonntag)."""
    return DashboardService(db).week(user["tenant_id"], day or date.today())


@router.get("/reports/harvest-summary", response_model=HarvestSummary)
async def harvest_summary(
    db: DBSession,
    user: CurrentUser,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
):
    """Erfasste Ernten im Zeitraum, je Kultur summiert."""
    return DashboardService(db).harvest_summary(user["tenant_id"], start_date, end_date)


@router.get("/reports/production-efficiency", response_model=ProductionEfficiency)
async def production_efficiency(
    db: DBSession,
    user: CurrentUser,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
):
    """Erwarteter gegen tatsächlichen Ertrag geernteter Chargen."""
    return DashboardService(db).production_efficiency(user["tenant_id"], start_date, end_date)
