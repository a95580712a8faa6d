"""Celery application configuration"""

from celery import Celery
from app.config import settings

# Create Celery app
celery_app = Celery(
    "travel_booking",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "app.jobs.tasks",
    ],
)

# Configure Celery
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=300,  # 5 minutes
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,

    # Beat schedule for periodic tasks
    beat_schedule={
        "reconcile-table-availability": {
            "task": "reconcile_table_availability",
            "schedule": settings.table_reconcile_interval_seconds,
        },
    },
)
