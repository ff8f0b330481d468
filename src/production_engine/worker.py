"""Celery worker configuration."""

from celery import Celery

from production_engine.config import settings
from production_engine.logging import setup_logging

# Setup logging before anything else
setup_logging()

# Create Celery app
celery_app = Celery(
    "production_engine",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
)

beat_schedule = {}
if settings.late_check_enabled:
    beat_schedule["check-late-videos"] = {
        "task": "check_late_videos",
        "schedule": settings.late_check_interval_seconds,
        "options": {"queue": "default"},
    }

# Celery configuration
celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    # Task execution
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=300,  # 5 minutes max
    task_soft_time_limit=240,
    # Worker settings
    worker_prefetch_multiplier=1,
    # Result backend
    result_expires=86400,  # 24 hours
    # Task routing
    task_routes={
        "check_late_videos": {"queue": "default"},
        "recompute_views": {"queue": "default"},
    },
    # Beat scheduler (for periodic tasks)
    beat_schedule=beat_schedule,
)

# Auto-discover tasks
celery_app.autodiscover_tasks(["production_engine.jobs"])
