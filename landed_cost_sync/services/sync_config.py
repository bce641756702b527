"""
Sync config — tunables and country/classification-system lookups for the sync service.

Everything the sync service would otherwise read from globals is carried
here and handed over at construction. Strategies (wait time, test HS code)
are optional callables that override the static defaults per unit/item.
Version: 1.0.0
"""
import logging
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from landed_cost_sync.core.config import Settings
from landed_cost_sync.core.constants.sync import (
    DEFAULT_BATCH_SIZE_LIMIT,
    DEFAULT_PAUSE_SECONDS,
    DEFAULT_TEST_HS_CODE,
    DEFAULT_WAIT_TIME_SECONDS,
    VARIATION_PRODUCT_TYPE,
)
from landed_cost_sync.schemas.enqueued_product import EnqueuedProduct

logger = logging.getLogger(__name__)


class SyncConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    batch_size_limit: int = DEFAULT_BATCH_SIZE_LIMIT
    wait_time_seconds: int = DEFAULT_WAIT_TIME_SECONDS
    wait_time_strategy: Optional[Callable[[EnqueuedProduct], int]] = None
    countries_for_product_sync: List[str] = Field(default_factory=list)
    # system code -> countries using it, e.g. {"HS_EU": ["DE", "FR"]}
    classification_systems: Dict[str, List[str]] = Field(default_factory=dict)
    # Empty means every country is supported
    supported_countries: List[str] = Field(default_factory=list)
    environment: str = "development"
    test_hs_code: Optional[str] = DEFAULT_TEST_HS_CODE
    test_hs_code_strategy: Optional[Callable[[Dict[str, Any]], Optional[str]]] = None
    product_types: List[str] = Field(default_factory=lambda: ["simple", "variable", "grouped", "external", "variation"])
    pause_seconds: float = DEFAULT_PAUSE_SECONDS
    company_id: str = ""

    @classmethod
    def from_settings(cls, settings: Settings, **overrides) -> "SyncConfig":
        values = dict(
            batch_size_limit=settings.product_sync_batch_size_limit,
            wait_time_seconds=settings.product_sync_wait_time_seconds,
            countries_for_product_sync=settings.landed_cost_sync_countries,
            classification_systems=settings.landed_cost_classification_systems,
            supported_countries=settings.landed_cost_supported_countries,
            environment=settings.classification_api_environment,
            test_hs_code=settings.classification_test_hs_code or None,
            product_types=settings.product_sync_types,
            pause_seconds=settings.product_sync_pause_seconds,
            company_id=settings.classification_company_id,
        )
        values.update(overrides)
        return cls(**values)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def has_countries_for_product_sync(self) -> bool:
        return bool(self.countries_for_product_sync)

    def is_country_supported(self, country: Optional[str]) -> bool:
        if not country:
            return False
        if not self.supported_countries:
            return True
        return country in self.supported_countries

    def get_classification_system_for_country(self, country: str) -> str:
        for system_code, countries in self.classification_systems.items():
            if country in countries:
                return system_code
        return ""

    def get_countries_grouped_by_classification_system(self) -> Dict[str, List[str]]:
        """
        Sync countries grouped by the classification system they use.

        Without a configured system map every country counts as its own
        system. With one, countries outside every system are left out.
        """
        if not self.classification_systems:
            return {country: [country] for country in self.countries_for_product_sync}

        systems: Dict[str, List[str]] = {}
        for country in self.countries_for_product_sync:
            system = self.get_classification_system_for_country(country)
            if not system:
                logger.warning(f"No classification system covers {country}, skipping")
                continue
            systems.setdefault(system, []).append(country)
        return systems

    def get_optimized_countries(self) -> List[str]:
        """One country per classification system; its HS code serves the rest."""
        return [countries[0] for countries in self.get_countries_grouped_by_classification_system().values()]

    def get_wait_time(self, unit: EnqueuedProduct) -> int:
        if self.wait_time_strategy is not None:
            return int(self.wait_time_strategy(unit))
        return self.wait_time_seconds

    def get_test_hs_code(self, item: Dict[str, Any]) -> Optional[str]:
        """Pass-through HS code for sandbox requests. Never sent in production."""
        if self.is_production:
            return None
        if self.test_hs_code_strategy is not None:
            return self.test_hs_code_strategy(item)
        # Variations inherit the parent's code on the service side
        if item.get("type") == VARIATION_PRODUCT_TYPE:
            return None
        return self.test_hs_code
