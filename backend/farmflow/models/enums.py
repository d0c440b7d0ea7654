from enum import Enum


class CropCategory(str, Enum):
    """Kulturkategorie"""
    MICROGREENS = "MICROGREENS"
    MUSHROOMS = "MUSHROOMS"


class DateType(str, Enum):
    """Worauf sich das Zieldatum einer Bestellung bezieht"""
    HARVEST = "HARVEST"   # Zieldatum = Erntetag
    START = "START"       # Zieldatum = Aussaat-/Starttag


class OrderStatus(str, Enum):
    """Status einer Bestellung"""
    PENDING = "PENDING"              # Neu angelegt
    CONFIRMED = "CONFIRMED"          # Bestätigt
    IN_PROGRESS = "IN_PROGRESS"      # In Produktion
    DELIVERED = "DELIVERED"          # Geliefert
    CANCELLED = "CANCELLED"          # Storniert

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.DELIVERED, OrderStatus.CANCELLED)


class OrderSource(str, Enum):
    """Herkunft einer Bestellung"""
    MANUAL = "MANUAL"
    RECURRING = "RECURRING"
    STANDING_ORDER = "STANDING_ORDER"


class RecurrenceFrequency(str, Enum):
    """Intervall für wiederkehrende Bestellungen"""
    WEEKLY = "WEEKLY"
    BIWEEKLY = "BIWEEKLY"
    MONTHLY = "MONTHLY"

    @property
    def step_days(self) -> int:
        """Schrittweite in Tagen (monatlich = feste 30 Tage, kein Kalendermonat)"""
        steps = {
            RecurrenceFrequency.WEEKLY: 7,
            RecurrenceFrequency.BIWEEKLY: 14,
            RecurrenceFrequency.MONTHLY: 30,
        }
        return steps[self]


class ProductionType(str, Enum):
    """Produktionsart einer Charge"""
    MICROGREENS_TRAY = "MICROGREENS_TRAY"
    MUSHROOM_IN_HOUSE = "MUSHROOM_IN_HOUSE"
    MUSHROOM_READY_TO_FRUIT = "MUSHROOM_READY_TO_FRUIT"

    @property
    def is_mushroom(self) -> bool:
        return self != ProductionType.MICROGREENS_TRAY

    @property
    def code_prefix(self) -> str:
        """Präfix für Chargencodes"""
        return "MU" if self.is_mushroom else "MG"

    @classmethod
    def for_category(cls, category: CropCategory) -> "ProductionType":
        if category == CropCategory.MUSHROOMS:
            return cls.MUSHROOM_IN_HOUSE
        return cls.MICROGREENS_TRAY


class BatchStatus(str, Enum):
    """Status einer Produktionscharge"""
    PLANNED = "PLANNED"
    # Microgreens
    SOAKING = "SOAKING"
    PLANTED = "PLANTED"
    BLACKOUT = "BLACKOUT"
    GROWING = "GROWING"
    READY_TO_HARVEST = "READY_TO_HARVEST"
    HARVESTING = "HARVESTING"
    # Pilze
    INOCULATED = "INOCULATED"
    INCUBATING = "INCUBATING"
    FRUITING = "FRUITING"
    # Endzustände
    HARVESTED = "HARVESTED"
    DISPOSED = "DISPOSED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_BATCH_STATUSES


TERMINAL_BATCH_STATUSES = frozenset(
    {BatchStatus.HARVESTED, BatchStatus.DISPOSED, BatchStatus.CANCELLED}
)


class TaskType(str, Enum):
    """Aufgabentyp"""
    SOW = "SOW"
    SOAK = "SOAK"
    PLANT = "PLANT"
    UNCOVER = "UNCOVER"
    WATER = "WATER"
    MOVE = "MOVE"
    INTRODUCE = "INTRODUCE"
    INSPECT = "INSPECT"
    RECEIVE = "RECEIVE"
    HARVEST = "HARVEST"
    DELIVERY = "DELIVERY"
    CUSTOM = "CUSTOM"


class TaskStatus(str, Enum):
    """Bearbeitungsstatus einer Aufgabe"""
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    SKIPPED = "SKIPPED"

    @property
    def is_done(self) -> bool:
        """Erledigt oder übersprungen - completed_at/completed_by gesetzt"""
        return self in (TaskStatus.COMPLETED, TaskStatus.SKIPPED)


class TaskSource(str, Enum):
    """Woher eine Aufgabe stammt"""
    AUTO_ORDER = "AUTO_ORDER"
    AUTO_BATCH = "AUTO_BATCH"
    MANUAL = "MANUAL"


class TaskPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class QualityGrade(str, Enum):
    """Qualitätsstufe einer Ernte"""
    A = "A"
    B = "B"
    C = "C"
    WASTE = "WASTE"
