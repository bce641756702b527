"""
Unit tests for SyncConfig — country grouping, wait times and test HS codes.

Version: 1.0.0
"""
import pytest

from landed_cost_sync.core.config import Settings
from landed_cost_sync.schemas.enqueued_product import EnqueuedProduct, SyncAction
from landed_cost_sync.services.sync_config import SyncConfig


pytestmark = pytest.mark.unit


class TestFromSettings:

    def test_maps_settings(self):
        settings = Settings(
            product_sync_batch_size_limit=250,
            product_sync_wait_time_seconds=3600,
            landed_cost_sync_countries=["DE", "GB"],
            landed_cost_classification_systems={"HS_EU": ["DE"], "HS_UK": ["GB"]},
            landed_cost_supported_countries=["DE", "GB"],
            classification_api_environment="production",
            classification_company_id="99",
            product_sync_pause_seconds=0.5,
        )

        config = SyncConfig.from_settings(settings)

        assert config.batch_size_limit == 250
        assert config.wait_time_seconds == 3600
        assert config.countries_for_product_sync == ["DE", "GB"]
        assert config.is_production is True
        assert config.company_id == "99"
        assert config.pause_seconds == 0.5

    def test_overrides_win(self):
        config = SyncConfig.from_settings(Settings(), batch_size_limit=5)

        assert config.batch_size_limit == 5


class TestCountries:

    def test_grouped_by_system(self, sync_config):
        assert sync_config.get_countries_grouped_by_classification_system() == {
            "HS_EU": ["DE", "FR"],
            "HS_UK": ["GB"],
        }

    def test_optimized_countries_one_per_system(self, sync_config):
        assert sync_config.get_optimized_countries() == ["DE", "GB"]

    def test_without_system_map_every_country_is_its_own_system(self):
        config = SyncConfig(countries_for_product_sync=["DE", "FR"])

        assert config.get_optimized_countries() == ["DE", "FR"]

    def test_uncovered_country_is_left_out(self):
        config = SyncConfig(countries_for_product_sync=["DE", "JP"], classification_systems={"HS_EU": ["DE"]})

        assert config.get_countries_grouped_by_classification_system() == {"HS_EU": ["DE"]}

    def test_system_for_country(self, sync_config):
        assert sync_config.get_classification_system_for_country("FR") == "HS_EU"
        assert sync_config.get_classification_system_for_country("JP") == ""

    def test_is_country_supported(self, sync_config):
        assert sync_config.is_country_supported("US") is True
        assert sync_config.is_country_supported("JP") is False
        assert sync_config.is_country_supported(None) is False

    def test_empty_supported_list_allows_all(self):
        assert SyncConfig().is_country_supported("JP") is True

    def test_has_countries(self, sync_config):
        assert sync_config.has_countries_for_product_sync() is True
        assert SyncConfig().has_countries_for_product_sync() is False


class TestWaitTime:

    def test_default(self):
        assert SyncConfig().get_wait_time(EnqueuedProduct(product_id=1, action=SyncAction.CREATE)) == 86400

    def test_strategy(self):
        config = SyncConfig(wait_time_strategy=lambda unit: unit.product_id * 10)

        assert config.get_wait_time(EnqueuedProduct(product_id=3, action=SyncAction.CREATE)) == 30


class TestTestHsCode:

    def test_sent_in_development(self, sync_config):
        assert sync_config.get_test_hs_code({"type": "simple"}) == "6110113000"

    def test_never_in_production(self):
        config = SyncConfig(environment="production", test_hs_code_strategy=lambda item: "0000")

        assert config.get_test_hs_code({"type": "simple"}) is None

    def test_not_for_variations(self, sync_config):
        assert sync_config.get_test_hs_code({"type": "variation"}) is None

    def test_strategy(self):
        config = SyncConfig(test_hs_code_strategy=lambda item: item.get("hs"))

        assert config.get_test_hs_code({"type": "simple", "hs": "4202"}) == "4202"
