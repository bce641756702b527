"""
Sync constants — queue hooks, job group, state keys and classification defaults.
Version: 1.0.0
"""

# Celery task names used as job queue hooks
PRODUCT_SYNC_ACTION_QUEUE_HOOK: str = "tasks.classification_sync.process_enqueued_product"
FULL_SYNC_ACTION_QUEUE_HOOK: str = "tasks.classification_sync.process_full_sync"

# Job group shared by every classification sync job
PRODUCT_SYNC_ACTION_QUEUE_GROUP: str = "landed_cost_sync"

# Celery queue the sync jobs are routed to
SYNC_QUEUE_NAME: str = "classification_sync"

# Job status tracked by the pending index
JOB_STATUS_PENDING: str = "pending"

# State store keys
SYNCING_STATE_KEY: str = "syncing_state"
FULL_SYNC_KEY: str = "full_sync"
FULL_SYNC_BATCH_KEY: str = "full_sync_batch"
PRODUCTS_PENDING_SYNC_KEY: str = "products_pending_sync"
PRODUCTS_WITH_SYNC_ERRORS_KEY: str = "products_with_sync_errors"
PRODUCTS_WITH_SYNC_RESOLUTIONS_KEY: str = "products_with_sync_resolutions"
ADMIN_NOTICES_KEY: str = "admin_notices"

SYNCING_STATE_ON: str = "on"
SYNCING_STATE_OFF: str = "off"

# Defaults
DEFAULT_BATCH_SIZE_LIMIT: int = 1000
DEFAULT_WAIT_TIME_SECONDS: int = 86400  # 24 hours
DEFAULT_PAUSE_SECONDS: float = 1.0
DEFAULT_TEST_HS_CODE: str = "6110113000"

# Tax codes that only mean "not set" and must not be sent for classification
PLACEHOLDER_TAX_CODES: frozenset = frozenset({"U0000000", "P0000000"})

# Error codes that mean the credentials or subscription are not valid
AUTH_ERROR_CODES: frozenset = frozenset({
    "AuthorizationException",
    "AuthenticationException",
    "AuthenticationIncomplete",
})

# Product fields whose change forces a reclassification
CLASSIFICATION_FIELDS: tuple = (
    "name",
    "short_description",
    "description",
    "parent_id",
    "category_ids",
)

VARIATION_PRODUCT_TYPE: str = "variation"
VARIABLE_PRODUCT_TYPE: str = "variable"

# Notice ids
FULL_SYNC_FINISHED_NOTICE: str = "full-sync-finished"
SYNC_STOPPED_NOTICE: str = "sync-stopped-auth-error"
SYNC_ERROR_NOTICE: str = "sync-error"
