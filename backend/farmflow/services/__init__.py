"""
Business Logic Services für FarmFlow
"""
from farmflow.services.crop_parameters import CropParameters, CropParameterService
from farmflow.services.sequences import SequenceService
from farmflow.services.order_scheduler import OrderSchedulerService, cascade_delete_order
from farmflow.services.standing_orders import StandingOrderService
from farmflow.services.production import BatchService
from farmflow.services.planning import SowingPlannerService, SowingPlanItem
from farmflow.services.tasks import TaskService
from farmflow.services.dashboard import DashboardService

__all__ = [
    "CropParameters",
    "CropParameterService",
    "SequenceService",
    "OrderSchedulerService",
    "cascade_delete_order",
    "StandingOrderService",
    "BatchService",
    "SowingPlannerService",
    "SowingPlanItem",
    "TaskService",
    "DashboardService",
]
