"""
Celery Tasks für Daueraufträge
"""
import logging
from datetime import date, datetime
from typing import Optional

from farmflow.celery_app import celery_app
from farmflow.core.dates import parse_iso_date
from farmflow.core.exceptions import FarmFlowError
from farmflow.database import SessionLocal
from farmflow.services.standing_orders import StandingOrderService

logger = logging.getLogger(__name__)


def run_generation(db, for_date: date, now: datetime) -> dict:
    """
    Generiert für alle Mandanten mit aktiven Daueraufträgen.
    Ein fehlerhafter Mandant bricht die übrigen nicht ab.
    """
    service = StandingOrderService(db)
    created = 0
    failed = []
    for tenant_id in service.tenants_with_active_templates():
        try:
            created += len(service.generate(tenant_id, for_date, now))
        except FarmFlowError as e:
            logger.error(f"Generierung für Mandant {tenant_id} fehlgeschlagen: {e.message}")
            failed.append(str(tenant_id))
    return {"for_date": for_date.isoformat(), "created": created, "failed_tenants": failed}


@celery_app.task(name="farmflow.tasks.standing_order_tasks.generate_standing_orders")
def generate_standing_orders(for_date: Optional[str] = None):
    """
    Täglicher Task: Bestellungen aus Daueraufträgen.
    Wird jeden Morgen um 5:00 ausgeführt; for_date erlaubt Nachholläufe.
    """
    day = parse_iso_date(for_date) if for_date else date.today()
    logger.info(f"Starte Generierung aus Daueraufträgen für {day}")

    db = SessionLocal()
    try:
        result = run_generation(db, day, datetime.utcnow())
        logger.info(f"{result['created']} Bestellungen aus Daueraufträgen erstellt")
        return result
    finally:
        db.close()
