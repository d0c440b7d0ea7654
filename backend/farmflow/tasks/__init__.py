# Celery Tasks
from farmflow.tasks import standing_order_tasks

__all__ = [
    "standing_order_tasks",
]
