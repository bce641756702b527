"""
Lazy DI container — singleton access to clients, stores, and services.

Works in both FastAPI and Celery contexts.
Import individual getters to avoid circular imports.
Version: 1.0.0
"""

from functools import lru_cache

from landed_cost_sync.core.config import settings
from landed_cost_sync.clients.supabase_client import SupabaseClient
from landed_cost_sync.clients.classification_client import ClassificationClient
from landed_cost_sync.db.state_store import RedisStateStore, get_redis_client
from landed_cost_sync.db.catalog_store import CatalogStore
from landed_cost_sync.db.notice_store import NoticeStore
from landed_cost_sync.services.sync_config import SyncConfig
from landed_cost_sync.services.classification_sync_service import ClassificationSyncService


def get_settings():
    return settings


# -- Clients ---------------------------------------------------------------

@lru_cache(maxsize=1)
def get_redis():
    return get_redis_client(settings.redis_url)


@lru_cache(maxsize=1)
def get_supabase_client():
    return SupabaseClient(settings)


@lru_cache(maxsize=1)
def get_classification_client():
    return ClassificationClient(settings)


# -- Stores ----------------------------------------------------------------

@lru_cache(maxsize=1)
def get_state_store():
    return RedisStateStore(get_redis(), prefix=settings.redis_key_prefix)


@lru_cache(maxsize=1)
def get_catalog_store():
    return CatalogStore(
        get_supabase_client(),
        table=settings.catalog_table,
        company_id=settings.classification_company_id,
    )


@lru_cache(maxsize=1)
def get_notice_store():
    return NoticeStore(get_state_store())


@lru_cache(maxsize=1)
def get_job_queue():
    # Lazy import: celery_config imports settings at module load
    from landed_cost_sync.celery_app.celery_config import celery_app
    from landed_cost_sync.celery_app.job_queue import CeleryJobQueue

    return CeleryJobQueue(celery_app, get_redis(), prefix=settings.redis_key_prefix)


# -- Services --------------------------------------------------------------

@lru_cache(maxsize=1)
def get_sync_config():
    return SyncConfig.from_settings(settings)


@lru_cache(maxsize=1)
def get_sync_service():
    return ClassificationSyncService(
        job_queue=get_job_queue(),
        state_store=get_state_store(),
        catalog=get_catalog_store(),
        client=get_classification_client(),
        config=get_sync_config(),
        notices=get_notice_store(),
    )
