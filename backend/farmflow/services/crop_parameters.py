"""
Kulturparameter - unveränderliche Wachstumsdaten einer Kultur
"""
import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from farmflow.config import get_settings
from farmflow.core.exceptions import NotFoundError, ValidationError
from farmflow.models.crop import Crop
from farmflow.models.enums import CropCategory


@dataclass(frozen=True)
class CropParameters:
    """
    Snapshot der Wachstumsparameter einer Kultur.

    growth_days umfasst bei Microgreens die Blackout-Phase.
    """
    crop_id: UUID
    name: str
    category: CropCategory
    growth_days: int
    yield_per_unit: Decimal
    blackout_days: int = 0
    soak_hours: Decimal = Decimal("0")
    soak_rate: Optional[Decimal] = None
    soak_rate_unit: str = "oz"
    unit: str = "oz"
    variety: Optional[str] = None
    flush_count: int = 1
    days_per_flush: Optional[int] = None
    fruiting_temp: Optional[str] = None
    humidity: Optional[str] = None

    def __post_init__(self):
        if self.growth_days < 0:
            raise ValidationError(f"Kultur {self.name}: growth_days darf nicht negativ sein")
        if self.blackout_days < 0:
            raise ValidationError(f"Kultur {self.name}: blackout_days darf nicht negativ sein")
        if self.is_microgreen and self.blackout_days > self.growth_days:
            raise ValidationError(
                f"Kultur {self.name}: blackout_days ({self.blackout_days}) "
                f"größer als growth_days ({self.growth_days})"
            )
        if self.yield_per_unit <= 0:
            raise ValidationError(f"Kultur {self.name}: yield_per_unit muss positiv sein")

    @property
    def is_microgreen(self) -> bool:
        return self.category == CropCategory.MICROGREENS

    @property
    def effective_blackout_days(self) -> int:
        """Blackout-Tage, bei Pilzen immer 0"""
        return self.blackout_days if self.is_microgreen else 0

    @property
    def needs_soak(self) -> bool:
        return self.is_microgreen and self.soak_hours > 0

    def units_for(self, quantity: Decimal) -> int:
        """Anzahl Trays bzw. Blöcke für eine Erntemenge (aufgerundet)"""
        return math.ceil(Decimal(quantity) / self.yield_per_unit)

    def seed_weight_for(self, units: int) -> Optional[Decimal]:
        if self.soak_rate is None:
            return None
        return Decimal(units) * self.soak_rate

    @classmethod
    def from_crop(cls, crop: Crop) -> "CropParameters":
        yield_per_unit = crop.yield_per_unit
        if yield_per_unit is None:
            yield_per_unit = Decimal(str(get_settings().default_yield_per_unit))
        return cls(
            crop_id=crop.id,
            name=crop.name,
            variety=crop.variety,
            category=crop.category,
            growth_days=crop.growth_days,
            blackout_days=crop.blackout_days or 0,
            soak_hours=Decimal(crop.soak_hours or 0),
            soak_rate=crop.soak_rate,
            soak_rate_unit=crop.soak_rate_unit or "oz",
            yield_per_unit=Decimal(yield_per_unit),
            unit=crop.unit or "oz",
            flush_count=crop.flush_count or 1,
            days_per_flush=crop.days_per_flush,
            fruiting_temp=crop.fruiting_temp,
            humidity=crop.humidity,
        )


def max_growth_days(params: Iterable[CropParameters]) -> int:
    """Längste Wachstumsdauer mehrerer Kulturen (0 bei leerer Liste)"""
    return max((p.growth_days for p in params), default=0)


class CropParameterService:
    """Lädt Kulturparameter mandantengetrennt"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, tenant_id: UUID, crop_id: UUID) -> CropParameters:
        crop = self.db.execute(
            select(Crop).where(Crop.id == crop_id, Crop.tenant_id == tenant_id)
        ).scalar_one_or_none()
        if not crop:
            raise NotFoundError("Kultur", crop_id)
        return CropParameters.from_crop(crop)

    def get_many(self, tenant_id: UUID, crop_ids: Iterable[UUID]) -> dict[UUID, CropParameters]:
        """
        Lädt mehrere Kulturen in einer Abfrage.
        Fehlende IDs sind im Ergebnis nicht enthalten.
        """
        ids = set(crop_ids)
        if not ids:
            return {}
        crops = self.db.execute(
            select(Crop).where(Crop.tenant_id == tenant_id, Crop.id.in_(ids))
        ).scalars().all()
        return {crop.id: CropParameters.from_crop(crop) for crop in crops}
