"""
Pydantic Schemas für die FarmFlow API
"""
# Bestellungen und Daueraufträge
from farmflow.schemas.order import (
    OrderItemCreate, OrderItemResponse,
    OrderCreate, OrderUpdate, OrderStatusUpdate, OrderBulkDelete,
    OrderResponse, OrderListResponse, OrderCreatedResponse,
    StandingOrderItemCreate, StandingOrderItemResponse,
    StandingOrderCreate, StandingOrderUpdate, StandingOrderPause, StandingOrderResponse,
    GenerateRequest, GenerateResponse,
)

# Produktion
from farmflow.schemas.production import (
    BatchCreate, BatchStatusUpdate, BatchResponse, BatchListResponse,
    HarvestCreate, HarvestResponse, HarvestResult,
    MovementCreate, MovementResponse,
)

# Aufgaben
from farmflow.schemas.task import (
    SoakDetails, PlantDetails, UncoverDetails, HarvestDetails,
    IntroduceDetails, DeliveryDetails, BatchStepDetails, TaskDetails,
    TaskCreate, TaskUpdate, TaskBulkStatusUpdate,
    TaskResponse, TaskListResponse, TaskCounts, WeeklyTasksResponse,
)

# Planung und Dashboard
from farmflow.schemas.planning import (
    PlanOrderRefSchema, SowingPlanItemSchema, SowingPlanResponse, MaterializeRequest,
    ForecastEntry, CapacityEntry, DemandSupplyEntry,
)
from farmflow.schemas.dashboard import TodayDashboard, WeekDaySummary, WeekDashboard

# Kulturen
from farmflow.schemas.crop import CropCreate, CropUpdate, CropResponse, CropListResponse
