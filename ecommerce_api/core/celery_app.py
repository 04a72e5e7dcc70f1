"""Celery application configuration"""

from celery import Celery
from celery.schedules import crontab
from kombu import Exchange, Queue
from ecommerce_api.core.config import settings

# Create Celery app
celery_app = Celery(
    "ecommerce_api",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=[
        "ecommerce_api.tasks.monthly_tasks",
    ]
)

# Configure Celery
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=settings.CELERY_TIMEZONE,
    enable_utc=True,
    task_track_started=True,
    task_time_limit=30 * 60,  # 30 minutes
    task_soft_time_limit=25 * 60,  # 25 minutes
    task_acks_late=True,
    worker_prefetch_multiplier=1,

    # Task routing
    task_routes={
        "monthly_tracking.*": {"queue": "compliance"},
    },

    # Retry configuration
    task_default_retry_delay=60,  # 1 minute
    task_max_retries=3,

    # Result backend configuration
    result_expires=3600,  # 1 hour
)

# Define queues
celery_app.conf.task_queues = (
    Queue("default", Exchange("default"), routing_key="default"),
    Queue("compliance", Exchange("compliance"), routing_key="compliance"),
)

# Beat schedule for periodic tasks
celery_app.conf.beat_schedule = {
    "deactivate-inactive-affiliates": {
        "task": "monthly_tracking.deactivate_inactive_affiliates",
        "schedule": crontab(minute=0, hour=0, day_of_month=1),  # First day of each month
        "options": {"queue": "compliance"},
    },
}
