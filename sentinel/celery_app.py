"""Celery application configuration."""

from celery import Celery
from celery.schedules import crontab
from celery.signals import setup_logging

from sentinel.config import get_settings
from sentinel.logging_config import configure_logging

settings = get_settings()

app = Celery(
    "sentinel",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["sentinel.tasks.reminders", "sentinel.tasks.escalations"],
)

# Celery configuration
app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    # Beat crontabs are read in the business timezone
    timezone=settings.timezone,
    enable_utc=True,
    task_track_started=True,
    task_time_limit=900,  # 15 minutes max per sweep
    task_soft_time_limit=840,
)

app.conf.beat_schedule = {
    "dispatch-reminders-daily": {
        "task": "sentinel.tasks.reminders.dispatch_reminders",
        "schedule": crontab(hour=settings.reminder_dispatch_hour, minute=0),
    },
    "process-escalations-hourly": {
        "task": "sentinel.tasks.escalations.process_escalations",
        "schedule": crontab(minute=5),
    },
}


@setup_logging.connect
def _configure_worker_logging(**kwargs):
    configure_logging(settings)
