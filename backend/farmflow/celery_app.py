"""
Celery Konfiguration für Background Tasks
"""
from celery import Celery
from celery.schedules import crontab
from farmflow.config import get_settings

settings = get_settings()

celery_app = Celery(
    "farmflow",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "farmflow.tasks.standing_order_tasks",
    ]
)

# Celery Konfiguration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=settings.scheduler_timezone,
    enable_utc=True,
    task_track_started=True,
    task_time_limit=30 * 60,  # 30 Minuten max
    worker_prefetch_multiplier=1,
)

# Scheduled Tasks (Celery Beat)
celery_app.conf.beat_schedule = {
    # Bestellungen aus Daueraufträgen generieren (5:00)
    "daily-standing-orders": {
        "task": "farmflow.tasks.standing_order_tasks.generate_standing_orders",
        "schedule": crontab(hour=5, minute=0),
    },
}
