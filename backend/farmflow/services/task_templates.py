"""
Aufgabenvorlagen - leitet datierte Aufgaben aus Kulturparametern ab.

Zwei Familien:
- Bestellvorlagen: rückwärts vom Erntetag (Einweichen, Aussaat, Aufdecken,
  Ernte bzw. Einbringen und Ernte bei Pilzen) plus eine Lieferaufgabe.
- Chargenvorlagen: vorwärts vom geplanten Aussaattag, Versatz als
  DayOffset-Ausdruck über die Kulturparameter.
"""
import math
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional

from farmflow.core.dates import add_days
from farmflow.models.enums import ProductionType, TaskType, TaskPriority
from farmflow.schemas.task import (
    SoakDetails,
    PlantDetails,
    UncoverDetails,
    HarvestDetails,
    IntroduceDetails,
    DeliveryDetails,
    BatchStepDetails,
    TaskDetails,
)
from farmflow.services.crop_parameters import CropParameters

# Fallback wenn eine Pilzkultur keine days_per_flush pflegt
DEFAULT_DAYS_PER_FLUSH = 7


@dataclass(frozen=True)
class TaskSpec:
    """Noch nicht persistierte Aufgabe mit Versatz relativ zum Ankerdatum"""
    offset_days: int
    type: TaskType
    title: str
    category: str
    details: TaskDetails
    priority: TaskPriority = TaskPriority.MEDIUM
    estimated_minutes: Optional[int] = None

    def due_on(self, anchor_date: date) -> date:
        return add_days(anchor_date, self.offset_days)


# ==================== BESTELLVORLAGEN ====================

def expand(
    production_type: ProductionType,
    crop: CropParameters,
    quantity: Decimal,
    customer_name: Optional[str] = None,
) -> list[TaskSpec]:
    """
    Aufgaben für eine Bestellposition mit Versatz relativ zum Erntetag;
    das Datum ergibt sich erst über TaskSpec.due_on(harvest_date).

    Die Liste ist chronologisch sortiert; die erste Aufgabe ist der
    Produktionsstart der Charge.
    """
    quantity = Decimal(quantity)
    if production_type.is_mushroom:
        return _mushroom_order_tasks(crop, quantity, customer_name)
    return _microgreen_order_tasks(crop, quantity, customer_name)


def _microgreen_order_tasks(
    crop: CropParameters, quantity: Decimal, customer_name: Optional[str]
) -> list[TaskSpec]:
    trays = crop.units_for(quantity)
    seed_weight = crop.seed_weight_for(trays)
    blackout_start = -crop.growth_days
    grow_start = -(crop.growth_days - crop.blackout_days)
    category = crop.category.value.lower()

    tasks = []
    if crop.needs_soak:
        tasks.append(TaskSpec(
            offset_days=blackout_start - 1,
            type=TaskType.SOAK,
            title=f"{crop.name} einweichen ({trays} Trays)",
            category=category,
            details=SoakDetails(
                crop_name=crop.name,
                variety=crop.variety,
                trays=trays,
                seed_weight=seed_weight,
                seed_unit=crop.soak_rate_unit,
                soak_hours=crop.soak_hours,
                soak_rate=crop.soak_rate,
                quantity=quantity,
                unit=crop.unit,
            ),
        ))
    tasks.append(TaskSpec(
        offset_days=blackout_start,
        type=TaskType.PLANT,
        title=f"{crop.name} aussäen ({trays} Trays)",
        category=category,
        details=PlantDetails(
            crop_name=crop.name,
            variety=crop.variety,
            trays=trays,
            seed_weight=seed_weight,
            seed_unit=crop.soak_rate_unit,
            blackout_days=crop.blackout_days,
            quantity=quantity,
            unit=crop.unit,
        ),
    ))
    tasks.append(TaskSpec(
        offset_days=grow_start,
        type=TaskType.UNCOVER,
        title=f"{crop.name} aufdecken ({trays} Trays)",
        category=category,
        details=UncoverDetails(
            crop_name=crop.name,
            variety=crop.variety,
            trays=trays,
            quantity=quantity,
            unit=crop.unit,
        ),
    ))
    tasks.append(_harvest_task(crop, trays, quantity, customer_name))
    return tasks


def _mushroom_order_tasks(
    crop: CropParameters, quantity: Decimal, customer_name: Optional[str]
) -> list[TaskSpec]:
    blocks = crop.units_for(quantity)
    return [
        TaskSpec(
            offset_days=-crop.growth_days,
            type=TaskType.INTRODUCE,
            title=f"{crop.name} einbringen ({blocks} Blöcke)",
            category=crop.category.value.lower(),
            details=IntroduceDetails(
                crop_name=crop.name,
                variety=crop.variety,
                blocks=blocks,
                quantity=quantity,
                unit=crop.unit,
                fruiting_temp=crop.fruiting_temp,
                humidity=crop.humidity,
            ),
        ),
        _harvest_task(crop, blocks, quantity, customer_name),
    ]


def _harvest_task(
    crop: CropParameters, units: int, quantity: Decimal, customer_name: Optional[str]
) -> TaskSpec:
    suffix = f" für {customer_name}" if customer_name else ""
    return TaskSpec(
        offset_days=0,
        type=TaskType.HARVEST,
        title=f"{crop.name} ernten ({quantity} {crop.unit}){suffix}",
        category=crop.category.value.lower(),
        priority=TaskPriority.HIGH,
        details=HarvestDetails(
            crop_name=crop.name,
            variety=crop.variety,
            units=units,
            quantity=quantity,
            expected_yield=Decimal(units) * crop.yield_per_unit,
            unit=crop.unit,
            customer_name=customer_name,
        ),
    )


def delivery_task(
    order_number: str,
    customer_name: Optional[str],
    customer_address: Optional[str],
    item_count: int,
    total: Decimal,
) -> TaskSpec:
    """Lieferaufgabe einer Bestellung, Ankerdatum ist der Liefertag"""
    return TaskSpec(
        offset_days=0,
        type=TaskType.DELIVERY,
        title=f"Lieferung {order_number} an {customer_name or 'Kunde'}",
        category="delivery",
        priority=TaskPriority.HIGH,
        details=DeliveryDetails(
            order_number=order_number,
            customer_name=customer_name,
            customer_address=customer_address,
            item_count=item_count,
            total=total,
        ),
    )


# ==================== CHARGENVORLAGEN ====================

@dataclass(frozen=True)
class DayOffset:
    """
    Tagesversatz als Ausdruck: days + Σ factor × Kulturparameter, abgerundet.

    DayOffset(2) ist ein fester Versatz, DayOffset(terms=(("blackout_days", 1),))
    verweist auf die Blackout-Dauer der Kultur.
    """
    days: int = 0
    terms: tuple[tuple[str, float], ...] = field(default_factory=tuple)


def _crop_value(crop: CropParameters, name: str) -> int:
    if name == "days_per_flush":
        return crop.days_per_flush or DEFAULT_DAYS_PER_FLUSH
    if name == "blackout_days":
        return crop.effective_blackout_days
    return getattr(crop, name)


def resolve_offset(offset: DayOffset, crop: CropParameters) -> int:
    """Wertet einen DayOffset für eine Kultur aus"""
    total = float(offset.days)
    for name, factor in offset.terms:
        total += factor * _crop_value(crop, name)
    return math.floor(total)


@dataclass(frozen=True)
class BatchTaskTemplate:
    offset: DayOffset
    type: TaskType
    title: str
    estimated_minutes: int


BLACKOUT = DayOffset(terms=(("blackout_days", 1),))
BLACKOUT_AND_GROWTH = DayOffset(terms=(("blackout_days", 1), ("growth_days", 1)))

BATCH_TEMPLATES: dict[ProductionType, list[BatchTaskTemplate]] = {
    ProductionType.MICROGREENS_TRAY: [
        BatchTaskTemplate(DayOffset(0), TaskType.SOW, "{crop} säen ({code})", 15),
        BatchTaskTemplate(DayOffset(0), TaskType.WATER, "Erstbewässerung {crop} ({code})", 5),
        BatchTaskTemplate(BLACKOUT, TaskType.MOVE, "{crop} in den Wachstumsraum ({code})", 10),
        BatchTaskTemplate(BLACKOUT_AND_GROWTH, TaskType.HARVEST, "{crop} ernten ({code})", 20),
    ],
    ProductionType.MUSHROOM_READY_TO_FRUIT: [
        BatchTaskTemplate(DayOffset(0), TaskType.RECEIVE, "RTF-Blöcke annehmen - {crop} ({code})", 15),
        BatchTaskTemplate(DayOffset(0), TaskType.MOVE, "In den Fruchtraum - {crop} ({code})", 10),
        BatchTaskTemplate(
            DayOffset(terms=(("days_per_flush", 0.7),)),
            TaskType.INSPECT, "Pinning prüfen - {crop} ({code})", 5,
        ),
        BatchTaskTemplate(
            DayOffset(terms=(("days_per_flush", 1),)),
            TaskType.HARVEST, "{crop} ernten - Flush 1 ({code})", 30,
        ),
    ],
    ProductionType.MUSHROOM_IN_HOUSE: [
        BatchTaskTemplate(DayOffset(0), TaskType.INTRODUCE, "Substrat beimpfen - {crop} ({code})", 30),
        BatchTaskTemplate(
            DayOffset(terms=(("growth_days", 1), ("days_per_flush", -1))),
            TaskType.MOVE, "In den Fruchtraum - {crop} ({code})", 10,
        ),
        BatchTaskTemplate(
            DayOffset(terms=(("growth_days", 1),)),
            TaskType.HARVEST, "{crop} ernten - Flush 1 ({code})", 30,
        ),
    ],
}


def batch_harvest_offset(production_type: ProductionType, crop: CropParameters) -> int:
    """Versatz der Ernteaufgabe ab Aussaat, bestimmt planned_harvest_date"""
    for template in BATCH_TEMPLATES[production_type]:
        if template.type == TaskType.HARVEST:
            return max(resolve_offset(template.offset, crop), 0)
    return crop.growth_days


def expand_batch(
    production_type: ProductionType,
    crop: CropParameters,
    batch_code: str,
    units: int,
) -> list[TaskSpec]:
    """Aufgaben einer Charge, Ankerdatum ist planned_sow_date"""
    tasks = []
    for template in BATCH_TEMPLATES[production_type]:
        offset = max(resolve_offset(template.offset, crop), 0)
        tasks.append(TaskSpec(
            offset_days=offset,
            type=template.type,
            title=template.title.format(crop=crop.name, code=batch_code),
            category=crop.category.value.lower(),
            priority=TaskPriority.HIGH if template.type == TaskType.HARVEST else TaskPriority.MEDIUM,
            estimated_minutes=template.estimated_minutes,
            details=BatchStepDetails(
                batch_code=batch_code,
                crop_name=crop.name,
                units=units,
                day_offset=offset,
            ),
        ))
    return tasks
