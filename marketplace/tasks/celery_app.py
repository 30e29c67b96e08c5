from celery import Celery

from marketplace.config import get_settings

settings = get_settings()

# Create Celery application
celery_app = Celery(
    "marketplace",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["marketplace.tasks.stats_tasks"]
)

# Celery configuration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    # Task settings
    task_track_started=True,
    task_time_limit=120,
    task_soft_time_limit=90,

    # Worker settings
    worker_prefetch_multiplier=1,
    worker_concurrency=2,

    # Retry settings
    task_acks_late=True,
    task_reject_on_worker_lost=True,

    # Periodic cache warm-up (run with `celery -A marketplace.tasks.celery_app beat`)
    beat_schedule={
        "refresh-catalog-stats": {
            "task": "refresh_catalog_stats",
            "schedule": float(settings.STATS_REFRESH_INTERVAL),
        },
    },
)
