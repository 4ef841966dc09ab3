"""
Celery configuration for background tasks
"""
from celery import Celery
from celery.schedules import crontab
import logging

from app.core.config import settings

logger = logging.getLogger(__name__)

celery_app = Celery(
    "saloes",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "app.modules.email.tasks",
        "app.modules.schedulings.tasks",
        "app.modules.auth.tasks",
    ]
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=settings.TIMEZONE,
    enable_utc=True,
    task_track_started=True,
    task_time_limit=30 * 60,  # 30 minutes
    task_soft_time_limit=25 * 60,  # 25 minutes
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=1000,

    # Rate limiting
    task_default_rate_limit="100/m",

    result_expires=3600,  # 1 hour

    # Task routes for different queues
    task_routes={
        "app.modules.email.tasks.*": {"queue": "email"},
        "app.modules.schedulings.tasks.*": {"queue": "schedulings"},
        "app.modules.auth.tasks.*": {"queue": "maintenance"},
    },

    # Beat schedule for periodic tasks (horario en TIMEZONE)
    beat_schedule={
        "scheduling-reminders-24h": {
            "task": "app.modules.schedulings.tasks.send_scheduling_reminders",
            "schedule": crontab(hour=8, minute=0),
            "args": ("24h",),
        },
        "scheduling-reminders-1h": {
            "task": "app.modules.schedulings.tasks.send_scheduling_reminders",
            "schedule": crontab(minute=0),
            "args": ("1h",),
        },
        "cleanup-expired-tokens": {
            "task": "app.modules.auth.tasks.cleanup_expired_tokens",
            "schedule": crontab(hour=3, minute=30),
        },
    }
)

if __name__ == "__main__":
    celery_app.start()
