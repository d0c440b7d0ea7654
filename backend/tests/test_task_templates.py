"""
Tests für Kulturparameter und Aufgabenvorlagen
"""
import uuid
import pytest
from datetime import date
from decimal import Decimal

from farmflow.core.exceptions import ValidationError
from farmflow.models.enums import CropCategory, ProductionType, TaskType, TaskPriority
from farmflow.services.crop_parameters import CropParameters, max_growth_days
from farmflow.services.task_templates import (
    DayOffset,
    resolve_offset,
    expand,
    expand_batch,
    delivery_task,
    batch_harvest_offset,
)


def microgreen(**overrides) -> CropParameters:
    values = dict(
        crop_id=uuid.uuid4(),
        name="Radieschen",
        variety="China Rose",
        category=CropCategory.MICROGREENS,
        growth_days=10,
        blackout_days=4,
        yield_per_unit=Decimal("8"),
        soak_hours=Decimal("8"),
        soak_rate=Decimal("1.5"),
    )
    values.update(overrides)
    return CropParameters(**values)


def mushroom(**overrides) -> CropParameters:
    values = dict(
        crop_id=uuid.uuid4(),
        name="Austernpilz",
        category=CropCategory.MUSHROOMS,
        growth_days=21,
        yield_per_unit=Decimal("16"),
        flush_count=3,
        days_per_flush=7,
        fruiting_temp="15-18°C",
        humidity="85-90%",
    )
    values.update(overrides)
    return CropParameters(**values)


class TestCropParameters:
    """Tests für Kulturparameter"""

    def test_units_round_up(self):
        crop = microgreen()
        assert crop.units_for(Decimal("50")) == 7
        assert crop.units_for(Decimal("48")) == 6

    def test_seed_weight(self):
        crop = microgreen()
        assert crop.seed_weight_for(7) == Decimal("10.5")
        assert microgreen(soak_rate=None).seed_weight_for(7) is None

    def test_blackout_longer_than_growth_rejected(self):
        with pytest.raises(ValidationError):
            microgreen(growth_days=3, blackout_days=4)

    def test_non_positive_yield_rejected(self):
        with pytest.raises(ValidationError):
            microgreen(yield_per_unit=Decimal("0"))

    def test_mushroom_has_no_blackout(self):
        assert mushroom(blackout_days=5).effective_blackout_days == 0

    def test_max_growth_days(self):
        assert max_growth_days([microgreen(growth_days=7), microgreen(growth_days=12)]) == 12
        assert max_growth_days([]) == 0


class TestMicrogreenOrderTemplate:
    """Tests für die Rückwärtsplanung ab Erntetag"""

    def test_dates_backward_from_harvest(self):
        """Test: growth 10, blackout 4, Ernte 20.06. → Aussaat 10.06., Aufdecken 14.06."""
        harvest = date(2024, 6, 20)
        specs = expand(ProductionType.MICROGREENS_TRAY, microgreen(), Decimal("50"), "Bistro")

        assert [s.type for s in specs] == [
            TaskType.SOAK, TaskType.PLANT, TaskType.UNCOVER, TaskType.HARVEST,
        ]
        due = {s.type: s.due_on(harvest) for s in specs}
        assert due[TaskType.PLANT] == date(2024, 6, 10)
        assert due[TaskType.UNCOVER] == date(2024, 6, 14)
        assert due[TaskType.SOAK] == date(2024, 6, 9)
        assert due[TaskType.HARVEST] == harvest

    def test_no_soak_without_soak_hours(self):
        specs = expand(
            ProductionType.MICROGREENS_TRAY, microgreen(soak_hours=Decimal("0")), Decimal("50"),
        )
        assert [s.type for s in specs] == [TaskType.PLANT, TaskType.UNCOVER, TaskType.HARVEST]

    def test_details_payload(self):
        specs = expand(
            ProductionType.MICROGREENS_TRAY, microgreen(), Decimal("50"), "Bistro"
        )
        soak, plant, _, harvest = specs
        assert soak.details.kind == "soak"
        assert soak.details.trays == 7
        assert soak.details.seed_weight == Decimal("10.5")
        assert plant.details.blackout_days == 4
        assert harvest.details.customer_name == "Bistro"
        assert harvest.details.expected_yield == Decimal("56")
        assert harvest.priority == TaskPriority.HIGH
        assert "Bistro" in harvest.title


class TestMushroomOrderTemplate:
    """Tests für Pilz-Bestellvorlagen"""

    def test_introduce_before_harvest(self):
        harvest = date(2024, 6, 30)
        specs = expand(ProductionType.MUSHROOM_IN_HOUSE, mushroom(), Decimal("40"))

        assert [s.type for s in specs] == [TaskType.INTRODUCE, TaskType.HARVEST]
        assert specs[0].due_on(harvest) == date(2024, 6, 9)
        assert specs[0].details.blocks == 3
        assert specs[0].details.fruiting_temp == "15-18°C"
        assert specs[1].details.expected_yield == Decimal("48")


class TestDeliveryTemplate:

    def test_delivery_details(self):
        spec = delivery_task("ORD-20240601-0001", "Bistro", "Hauptstraße 1", 2, Decimal("22.00"))
        assert spec.type == TaskType.DELIVERY
        assert spec.offset_days == 0
        assert spec.details.item_count == 2
        assert spec.details.total == Decimal("22.00")
        assert spec.details.customer_address == "Hauptstraße 1"


class TestDayOffset:
    """Tests für Versatz-Ausdrücke der Chargenvorlagen"""

    def test_fixed_offset(self):
        assert resolve_offset(DayOffset(2), microgreen()) == 2

    def test_crop_reference(self):
        offset = DayOffset(terms=(("blackout_days", 1), ("growth_days", 1)))
        assert resolve_offset(offset, microgreen()) == 14

    def test_fractional_offset_rounds_down(self):
        """Test: 0.7 × 7 Tage pro Flush = 4.9 → 4"""
        offset = DayOffset(terms=(("days_per_flush", 0.7),))
        assert resolve_offset(offset, mushroom()) == 4

    def test_days_per_flush_fallback(self):
        offset = DayOffset(terms=(("days_per_flush", 1),))
        assert resolve_offset(offset, mushroom(days_per_flush=None)) == 7


class TestBatchTemplates:
    """Tests für Vorwärtsplanung ab Aussaat"""

    def test_microgreen_batch(self):
        specs = expand_batch(ProductionType.MICROGREENS_TRAY, microgreen(), "MG-20240601-001", 5)
        assert [(s.type, s.offset_days) for s in specs] == [
            (TaskType.SOW, 0),
            (TaskType.WATER, 0),
            (TaskType.MOVE, 4),
            (TaskType.HARVEST, 14),
        ]
        assert all(s.details.batch_code == "MG-20240601-001" for s in specs)
        assert batch_harvest_offset(ProductionType.MICROGREENS_TRAY, microgreen()) == 14

    def test_ready_to_fruit_batch(self):
        crop = mushroom(days_per_flush=10)
        specs = expand_batch(ProductionType.MUSHROOM_READY_TO_FRUIT, crop, "MU-20240601-001", 4)
        assert [(s.type, s.offset_days) for s in specs] == [
            (TaskType.RECEIVE, 0),
            (TaskType.MOVE, 0),
            (TaskType.INSPECT, 7),
            (TaskType.HARVEST, 10),
        ]

    def test_in_house_mushroom_batch(self):
        specs = expand_batch(ProductionType.MUSHROOM_IN_HOUSE, mushroom(), "MU-20240601-002", 4)
        assert [(s.type, s.offset_days) for s in specs] == [
            (TaskType.INTRODUCE, 0),
            (TaskType.MOVE, 14),
            (TaskType.HARVEST, 21),
        ]
        assert specs[-1].priority == TaskPriority.HIGH
