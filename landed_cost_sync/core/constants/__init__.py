"""
Constants package — re-exports from domain-specific modules.

Usage:
    from landed_cost_sync.core.constants.sync import PRODUCT_SYNC_ACTION_QUEUE_HOOK
    # or import everything:
    from landed_cost_sync.core.constants import sync
Version: 1.0.0
"""

from landed_cost_sync.core.constants import sync
from landed_cost_sync.core.constants.sync import (
    PRODUCT_SYNC_ACTION_QUEUE_HOOK,
    FULL_SYNC_ACTION_QUEUE_HOOK,
    PRODUCT_SYNC_ACTION_QUEUE_GROUP,
    SYNC_QUEUE_NAME,
    DEFAULT_BATCH_SIZE_LIMIT,
    DEFAULT_WAIT_TIME_SECONDS,
    PLACEHOLDER_TAX_CODES,
    AUTH_ERROR_CODES,
    CLASSIFICATION_FIELDS,
)

__all__ = [
    "sync",
    "PRODUCT_SYNC_ACTION_QUEUE_HOOK",
    "FULL_SYNC_ACTION_QUEUE_HOOK",
    "PRODUCT_SYNC_ACTION_QUEUE_GROUP",
    "SYNC_QUEUE_NAME",
    "DEFAULT_BATCH_SIZE_LIMIT",
    "DEFAULT_WAIT_TIME_SECONDS",
    "PLACEHOLDER_TAX_CODES",
    "AUTH_ERROR_CODES",
    "CLASSIFICATION_FIELDS",
]
