import json
import os
from typing import Optional
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel


load_dotenv()


def _env_list(name: str, default: str = "") -> list[str]:
    """Read a list from a JSON array or a comma separated env var."""
    raw = os.getenv(name, default).strip()
    if not raw:
        return []
    if raw.startswith("["):
        return [str(v).strip().upper() for v in json.loads(raw) if str(v).strip()]
    return [v.strip().upper() for v in raw.split(",") if v.strip()]


class Settings(BaseModel):
    # Redis
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    redis_key_prefix: str = os.getenv("REDIS_KEY_PREFIX", "landed_cost_sync")

    # Celery
    celery_broker_url: str = os.getenv("CELERY_BROKER_URL", os.getenv("REDIS_URL", "redis://localhost:6379/0"))
    celery_result_backend: str = os.getenv("CELERY_RESULT_BACKEND", os.getenv("REDIS_URL", "redis://localhost:6379/0"))
    # Must stay above the longest eta we schedule (resync wait time), otherwise
    # the Redis transport redelivers delayed jobs before they are due.
    celery_visibility_timeout: int = int(os.getenv("CELERY_VISIBILITY_TIMEOUT", "90000"))

    # Supabase (catalog)
    supabase_url: str | None = os.getenv("SUPABASE_URL")
    supabase_service_role_key: str | None = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
    catalog_table: str = os.getenv("CATALOG_TABLE", "catalog_products")

    # Classification service
    classification_api_username: str | None = os.getenv("CLASSIFICATION_API_USERNAME")
    classification_api_password: str | None = os.getenv("CLASSIFICATION_API_PASSWORD")
    classification_api_environment: str = os.getenv("CLASSIFICATION_API_ENVIRONMENT", "development")
    classification_company_id: str = os.getenv("CLASSIFICATION_COMPANY_ID", "")
    classification_api_url: Optional[str] = os.getenv("CLASSIFICATION_API_URL")
    items_api_url: Optional[str] = os.getenv("ITEMS_API_URL")
    classification_api_timeout: float = float(os.getenv("CLASSIFICATION_API_TIMEOUT", "30"))

    # Landed cost sync
    landed_cost_sync_countries: list[str] = _env_list("LANDED_COST_SYNC_COUNTRIES")
    landed_cost_supported_countries: list[str] = _env_list("LANDED_COST_SUPPORTED_COUNTRIES")
    # Example: {"HS_EU": ["DE", "FR"], "HS_UK": ["GB"]}
    landed_cost_classification_systems: dict[str, list[str]] = json.loads(
        os.getenv("LANDED_COST_CLASSIFICATION_SYSTEMS", "{}")
    )
    product_sync_batch_size_limit: int = int(os.getenv("PRODUCT_SYNC_BATCH_SIZE_LIMIT", "1000"))
    product_sync_wait_time_seconds: int = int(os.getenv("PRODUCT_SYNC_WAIT_TIME_SECONDS", "86400"))
    product_sync_pause_seconds: float = float(os.getenv("PRODUCT_SYNC_PAUSE_SECONDS", "1"))
    product_sync_types: list[str] = [
        t.strip() for t in os.getenv("PRODUCT_SYNC_TYPES", "simple,variable,grouped,external,variation").split(",")
        if t.strip()
    ]
    classification_test_hs_code: str = os.getenv("CLASSIFICATION_TEST_HS_CODE", "6110113000")

    # Operator API
    cors_allow_origins: list[str] = [
        o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()
    ]

    # Scheduled maintenance
    resync_interval_hours: int = int(os.getenv("RESYNC_INTERVAL_HOURS", "0"))
    full_sync_check_minutes: int = int(os.getenv("FULL_SYNC_CHECK_MINUTES", "5"))
    stale_job_max_age_seconds: int = int(os.getenv("STALE_JOB_MAX_AGE_SECONDS", "259200"))

    @property
    def is_production(self) -> bool:
        return self.classification_api_environment == "production"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = Settings()
