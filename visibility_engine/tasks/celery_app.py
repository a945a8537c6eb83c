from celery import Celery, signals

from visibility_engine.core.config import settings, validate_settings_for_production
from visibility_engine.core.logging import setup_logging
from visibility_engine.core.sentry import init_sentry

celery_app = Celery(
    "visibility_engine",
    broker=settings.redis_url,
    backend=settings.redis_url,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    broker_connection_retry_on_startup=True,
)

# Aggregation is triggered explicitly by batch_complete, so there is no beat schedule.

celery_app.autodiscover_tasks(["visibility_engine.tasks"])

# Explicit include as fallback for autodiscover (needed for CLI worker startup)
celery_app.conf.include = [
    "visibility_engine.tasks.scoring_tasks",
]


# Replaces Celery's own logging setup; LOG_LEVEL applies, not the -l flag
@signals.setup_logging.connect
def _configure_logging(**kwargs) -> None:
    setup_logging()


@signals.worker_process_init.connect
def _init_worker(**kwargs) -> None:
    if settings.app_env != "test":
        validate_settings_for_production()
    init_sentry()
