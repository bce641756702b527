"""
Classification sync tasks — queue hooks and scheduled maintenance.

Tasks:
- process_enqueued_product: Run one enqueued product (queue hook)
- process_full_sync: Enqueue one catalog page (queue hook)
- check_full_sync_completion: Announce a finished full sync (beat)
- resync_products_with_errors: Re-enqueue failed products (beat, optional)
- purge_stale_jobs: Drop pending-index entries for lost jobs (beat)

The product hook never raises for classification failures; the sync
service turns those into bucket entries, so its Celery retries stay off.
The full-sync hook retries transient catalog errors with backoff. A batch
that still fails leaves the walk cursor set, and the completion check
schedules it again.
Version: 1.0.0
"""
import logging
from typing import Any, Dict

from landed_cost_sync.celery_app.celery_config import celery_app
from landed_cost_sync.celery_app.tasks.base import (
    BaseTask,
    ClassificationJobTask,
    get_job_queue,
    get_settings,
    get_sync_service,
)
from landed_cost_sync.core.constants.sync import PRODUCT_SYNC_ACTION_QUEUE_GROUP
from landed_cost_sync.core.exceptions import NonRetryableError, RetryableError

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    base=ClassificationJobTask,
    name="tasks.classification_sync.process_enqueued_product",
    max_retries=0,
)
def process_enqueued_product(self, product: Dict[str, Any]):
    """Classify, fan out or park one enqueued product."""
    outcome = get_sync_service().handle_enqueued_product(product)
    logger.info(f"Processed product {product.get('product_id')} ({product.get('action')}): {outcome.value}")
    return {"product_id": product.get("product_id"), "outcome": outcome.value}


@celery_app.task(
    bind=True,
    base=ClassificationJobTask,
    name="tasks.classification_sync.process_full_sync",
    autoretry_for=(RetryableError, ConnectionError, TimeoutError),
    dont_autoretry_for=(NonRetryableError,),
    retry_backoff=True,
    max_retries=3,
)
def process_full_sync(self, batch: int):
    """Enqueue one page of the catalog walk."""
    enqueued = get_sync_service().handle_full_sync(int(batch))
    return {"batch": batch, "enqueued": len(enqueued)}


@celery_app.task(
    bind=True,
    base=BaseTask,
    name="tasks.classification_sync.check_full_sync_completion",
)
def check_full_sync_completion(self):
    finished = get_sync_service().maybe_finish_full_sync()
    return {"finished": finished}


@celery_app.task(
    bind=True,
    base=BaseTask,
    name="tasks.classification_sync.resync_products_with_errors",
)
def resync_products_with_errors(self):
    """Scheduled counterpart of the operator resync button."""
    enqueued = get_sync_service().resync_products_with_errors()
    return {"enqueued": len(enqueued)}


@celery_app.task(
    bind=True,
    base=BaseTask,
    name="tasks.classification_sync.purge_stale_jobs",
)
def purge_stale_jobs(self):
    max_age = get_settings().stale_job_max_age_seconds
    purged = get_job_queue().purge_stale(max_age, group=PRODUCT_SYNC_ACTION_QUEUE_GROUP)
    return {"purged": purged}
