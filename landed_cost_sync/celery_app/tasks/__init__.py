"""
Celery task exports — all tasks registered from submodules.
Version: 1.0.0
"""
from landed_cost_sync.celery_app.tasks.classification_sync import (
    process_enqueued_product,
    process_full_sync,
    check_full_sync_completion,
    resync_products_with_errors,
    purge_stale_jobs,
)

__all__ = [
    "process_enqueued_product",
    "process_full_sync",
    "check_full_sync_completion",
    "resync_products_with_errors",
    "purge_stale_jobs",
]
