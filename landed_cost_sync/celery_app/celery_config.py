"""
Celery configuration — broker, task routes, beat schedule.

Sync jobs (one per enqueued product, one per full-sync batch) run on the
classification_sync queue. Maintenance tasks run on default.

=============================================================================
RUNNING WORKERS
=============================================================================

    Terminal 1 - Classification sync (keep concurrency low, each job
    pauses after calling the classification API):
        celery -A landed_cost_sync.celery_app worker -Q classification_sync --concurrency=1 -l info -n sync@%h

    Terminal 2 - Default (maintenance):
        celery -A landed_cost_sync.celery_app worker -Q default -l info -n default@%h

    Terminal 3 - Celery Beat (scheduler):
        celery -A landed_cost_sync.celery_app beat -l info

On Windows add --pool=solo.

=============================================================================
ENVIRONMENT VARIABLES
=============================================================================
    FULL_SYNC_CHECK_MINUTES: Minutes between full-sync completion checks (default: 5)
    RESYNC_INTERVAL_HOURS: Hours between automatic error resyncs, 0 disables (default: 0)
    CELERY_VISIBILITY_TIMEOUT: Seconds before an unacked job is redelivered.
        Must exceed PRODUCT_SYNC_WAIT_TIME_SECONDS (default: 90000)
Version: 1.0.0
"""
import logging
import platform

from celery import Celery
from celery.schedules import crontab
from kombu import Queue

from landed_cost_sync.core.config import settings
from landed_cost_sync.core.constants.sync import SYNC_QUEUE_NAME

logger = logging.getLogger(__name__)

IS_WINDOWS = platform.system() == "Windows"

FULL_SYNC_CHECK_MINUTES = settings.full_sync_check_minutes
RESYNC_INTERVAL_HOURS = settings.resync_interval_hours

if settings.celery_visibility_timeout <= settings.product_sync_wait_time_seconds:
    logger.warning(
        f"CELERY_VISIBILITY_TIMEOUT ({settings.celery_visibility_timeout}s) does not exceed the resync "
        f"wait time ({settings.product_sync_wait_time_seconds}s); delayed jobs may be redelivered early"
    )


def _build_beat_schedule() -> dict:
    """Build the Celery Beat schedule from settings."""
    schedule = {
        "check-full-sync-completion": {
            "task": "tasks.classification_sync.check_full_sync_completion",
            "schedule": crontab(minute=f"*/{FULL_SYNC_CHECK_MINUTES}"),
            "options": {"queue": "default"},
        },
        "purge-stale-jobs": {
            "task": "tasks.classification_sync.purge_stale_jobs",
            "schedule": crontab(minute=30, hour=0),
            "options": {"queue": "default"},
        },
    }
    if RESYNC_INTERVAL_HOURS > 0:
        schedule["resync-products-with-errors"] = {
            "task": "tasks.classification_sync.resync_products_with_errors",
            "schedule": crontab(minute=0, hour=f"*/{RESYNC_INTERVAL_HOURS}"),
            "options": {"queue": "default"},
        }
    return schedule


celery_app = Celery(
    "landed_cost_sync",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=[
        "landed_cost_sync.celery_app.tasks.classification_sync",
    ]
)

celery_app.conf.update(
    # Serialization
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    # Task execution settings
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,

    task_queues=(
        Queue(SYNC_QUEUE_NAME),
        Queue("default"),
    ),
    task_default_queue="default",
    task_routes={
        "tasks.classification_sync.process_enqueued_product": {"queue": SYNC_QUEUE_NAME},
        "tasks.classification_sync.process_full_sync": {"queue": SYNC_QUEUE_NAME},
        "tasks.classification_sync.*": {"queue": "default"},
    },

    beat_schedule=_build_beat_schedule(),

    # Result expiration
    result_expires=3600,  # 1 hour

    worker_pool="solo" if IS_WINDOWS else "prefork",

    # Delayed jobs sit unacked in the Redis transport until their eta,
    # so the timeout has to outlast the longest delay we schedule.
    broker_transport_options={"visibility_timeout": settings.celery_visibility_timeout},

    # Custom log format
    worker_log_format="[%(asctime)s: %(levelname)s/%(processName)s] %(message)s",
    worker_task_log_format="[%(asctime)s: %(levelname)s/%(processName)s] [%(task_name)s] %(message)s",
)
