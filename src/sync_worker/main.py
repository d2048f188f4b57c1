"""Celery application for the catalog sync worker.

Lifecycle: when the worker comes up it queues one pass immediately (unless
``sync_on_startup`` is off), then the embedded beat scheduler queues another
every ``sync_interval_hours``. The worker runs with a single process and no
prefetch, so two passes never overlap. On shutdown it only logs; an
in-flight pass is acked late and redelivered if the worker dies mid-run.
"""

from datetime import timedelta
from typing import Any

import structlog
from celery import Celery
from celery.signals import worker_ready, worker_shutdown

from catalog_service.config import Settings, get_settings
from catalog_service.logging_config import configure_logging
from shared.constants import SYNC_QUEUE

SYNC_TASK_NAME = "sync_worker.tasks.sync_products.sync_products_from_feed"

settings = get_settings()
configure_logging(settings)

logger = structlog.get_logger()

# Create Celery app
app = Celery(
    "sync_worker",
    broker=settings.celery_broker,
    backend=settings.celery_backend,
    include=[
        "sync_worker.tasks.sync_products",
    ],
)

# Celery configuration
app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=settings.sync_task_time_limit,
    task_soft_time_limit=settings.sync_task_time_limit - 60,
    worker_concurrency=1,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_default_queue=SYNC_QUEUE,
    task_routes={
        "sync_worker.tasks.*": {"queue": SYNC_QUEUE},
    },
)


def build_beat_schedule(settings: Settings) -> dict[str, dict[str, Any]]:
    """Beat schedule for periodic tasks."""
    return {
        # Full feed sync, every 24 hours by default
        "sync-products": {
            "task": SYNC_TASK_NAME,
            "schedule": timedelta(hours=settings.sync_interval_hours),
        },
    }


app.conf.beat_schedule = build_beat_schedule(settings)


@worker_ready.connect
def trigger_initial_sync(sender: Any = None, **kwargs: Any) -> None:
    """Queue one pass as soon as the worker is up."""
    if not get_settings().sync_on_startup:
        logger.info("Startup sync disabled")
        return
    result = app.send_task(SYNC_TASK_NAME, queue=SYNC_QUEUE)
    logger.info("Startup sync queued", task_id=result.id)


@worker_shutdown.connect
def log_shutdown(sender: Any = None, **kwargs: Any) -> None:
    logger.info("Sync worker stopping")


def run() -> None:
    """Run the Celery worker with the embedded beat scheduler."""
    app.worker_main(
        ["worker", "--beat", "--loglevel=info", "--concurrency=1", "-Q", SYNC_QUEUE]
    )


if __name__ == "__main__":
    run()
