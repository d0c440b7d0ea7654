"""
SQLAlchemy Models für FarmFlow
Datenmodell der Produktionsplanung (Microgreens und Pilze)
"""
# Stammdaten
from farmflow.models.crop import Crop
from farmflow.models.customer import Customer, Product, Location

# Bestellungen und Daueraufträge
from farmflow.models.order import Order, OrderItem
from farmflow.models.standing_order import StandingOrder, StandingOrderItem

# Produktion und Aufgaben
from farmflow.models.production import ProductionBatch, BatchHarvest, BatchMovement
from farmflow.models.task import Task

# Nummernkreise
from farmflow.models.sequence import SequenceCounter

# Enums
from farmflow.models.enums import (
    CropCategory,
    DateType,
    OrderStatus,
    OrderSource,
    RecurrenceFrequency,
    ProductionType,
    BatchStatus,
    TERMINAL_BATCH_STATUSES,
    TaskType,
    TaskStatus,
    TaskSource,
    TaskPriority,
    QualityGrade,
)

__all__ = [
    # Stammdaten
    "Crop",
    "Customer",
    "Product",
    "Location",
    # Bestellungen
    "Order",
    "OrderItem",
    "StandingOrder",
    "StandingOrderItem",
    # Produktion
    "ProductionBatch",
    "BatchHarvest",
    "BatchMovement",
    "Task",
    "SequenceCounter",
    # Enums
    "CropCategory",
    "DateType",
    "OrderStatus",
    "OrderSource",
    "RecurrenceFrequency",
    "ProductionType",
    "BatchStatus",
    "TERMINAL_BATCH_STATUSES",
    "TaskType",
    "TaskStatus",
    "TaskSource",
    "TaskPriority",
    "QualityGrade",
]
