"""
Fachliche Fehler der Produktionsplanung.

Alle Fehler werden synchron an den Aufrufer weitergereicht; die API-Schicht
übersetzt sie in HTTP-Statuscodes (siehe farmflow.main).
"""
from typing import Any, Optional
from uuid import UUID


class FarmFlowError(Exception):
    """Basisklasse für alle fachlichen Fehler"""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message}


class NotFoundError(FarmFlowError):
    """Referenzierte Entität existiert für den Mandanten nicht"""

    status_code = 404

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} {entity_id} nicht gefunden")
        self.entity = entity
        self.entity_id = entity_id


class ValidationError(FarmFlowError):
    """Ungültige Eingabe - wird vor jedem Schreibzugriff abgelehnt"""

    status_code = 422


class InvalidStatusTransition(ValidationError):
    """Statuswechsel ist laut Zustandsautomat nicht erlaubt"""

    def __init__(self, entity: str, current: str, requested: str):
        super().__init__(f"Ungültiger Statusübergang für {entity}: {current} → {requested}")
        self.current = current
        self.requested = requested


class IntegrityConflict(FarmFlowError):
    """Eindeutigkeitsverletzung (Nummernkreis, doppelte Abo-Generierung)"""

    status_code = 409


class PartialExpansionFailure(FarmFlowError):
    """
    Eine Bestellposition konnte nicht in Aufgaben expandiert werden.
    Die gesamte Bestellanlage wird zurückgerollt.
    """

    status_code = 422

    def __init__(self, item_index: int, crop_id: Optional[UUID], reason: str):
        super().__init__(
            f"Position {item_index + 1} (Kultur {crop_id}) konnte nicht geplant werden: {reason}"
        )
        self.item_index = item_index
        self.crop_id = crop_id
        self.reason = reason

    def to_dict(self) -> dict[str, Any]:
        return {
            "detail": self.message,
            "item_index": self.item_index,
            "crop_id": str(self.crop_id) if self.crop_id else None,
        }
