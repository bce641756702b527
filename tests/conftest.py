"""
Pytest configuration and shared fixtures for landed cost sync tests.

Provides in-memory fakes for the job queue, state store and catalog, a
mock classification client, and a wired ClassificationSyncService.
Version: 1.0.0
"""
import itertools
import json
from typing import Any, Dict, List, Optional

import pytest
from unittest.mock import MagicMock

from landed_cost_sync.core.constants.sync import JOB_STATUS_PENDING
from landed_cost_sync.schemas.classification import ClassificationResponse


# ---------------------------------------------------------------------------
# In-memory collaborators
# ---------------------------------------------------------------------------

class FakeJobQueue:
    """Pending jobs kept in a list; jobs leave it when taken."""

    def __init__(self):
        self.jobs: List[Dict[str, Any]] = []
        self.scheduled: List[Dict[str, Any]] = []
        self.fail_hooks: set = set()
        self._ids = itertools.count(1)

    def schedule_single(self, timestamp, hook, args, group):
        if hook in self.fail_hooks:
            raise ConnectionError("queue unavailable")
        job = {
            "job_id": f"job-{next(self._ids)}",
            "timestamp": timestamp,
            "hook": hook,
            "args": json.loads(json.dumps(args)),
            "group": group,
        }
        self.jobs.append(job)
        self.scheduled.append(job)
        return job["job_id"]

    def search(self, filters):
        if filters.get("status", JOB_STATUS_PENDING) != JOB_STATUS_PENDING:
            return []
        return [
            job["job_id"] for job in self.jobs
            if all(job[k] == filters[k] for k in ("hook", "args", "group") if k in filters)
        ]

    def count(self, group):
        return len([job for job in self.jobs if job["group"] == group])

    def pending(self, hook: Optional[str] = None) -> List[Dict[str, Any]]:
        return [job for job in self.jobs if hook is None or job["hook"] == hook]

    def take(self, hook: str) -> Optional[Dict[str, Any]]:
        """Pop the oldest pending job for a hook, like a worker would."""
        for job in self.jobs:
            if job["hook"] == hook:
                self.jobs.remove(job)
                return job
        return None


class FakeStateStore:
    """Dict-backed store that JSON round-trips values like Redis does."""

    def __init__(self):
        self.data: Dict[str, str] = {}

    def get(self, key, default=None):
        if key not in self.data:
            return default
        return json.loads(self.data[key])

    def set(self, key, value):
        self.data[key] = json.dumps(value)

    def delete(self, key):
        self.data.pop(key, None)


class FakeCatalog:
    def __init__(self, company_id: str = "1234"):
        self.items: Dict[int, Dict[str, Any]] = {}
        self.classification_ids: Dict[int, Dict[str, str]] = {}
        self.hs_codes: Dict[int, Dict[str, str]] = {}
        self.tax_codes: Dict[int, str] = {}
        self.company_id = company_id
        self.list_calls: List[int] = []

    def add_item(self, item_id: int, type: str = "simple", parent_id: int = 0, **fields):
        self.items[item_id] = {
            "id": item_id,
            "type": type,
            "parent_id": parent_id,
            "name": fields.pop("name", f"Item {item_id}"),
            "description": fields.pop("description", "A cotton sweater"),
            "short_description": fields.pop("short_description", ""),
            "category_ids": fields.pop("category_ids", [10]),
            "category_names": fields.pop("category_names", ["Knitwear"]),
            "tax_code": fields.pop("tax_code", None),
            **fields,
        }
        return self.items[item_id]

    def list_items(self, type_filter, limit, page):
        self.list_calls.append(page)
        ids = sorted(i for i, item in self.items.items() if item["type"] in type_filter)
        start = (page - 1) * limit
        return ids[start:start + limit]

    def get_item(self, item_id):
        return self.items.get(item_id)

    def get_variation_ids(self, parent_id):
        return sorted(
            i for i, item in self.items.items()
            if item["parent_id"] == parent_id and item["type"] == "variation"
        )

    def get_classification_id(self, item_id, country):
        return self.classification_ids.get(item_id, {}).get(country)

    def save_classification_id(self, item_id, country, classification_id=None):
        classification_id = classification_id or f"{self.company_id}-{item_id}-{country}"
        self.classification_ids.setdefault(item_id, {})[country] = classification_id
        return classification_id

    def save_hs_code(self, item_id, country, hs_code):
        self.hs_codes.setdefault(item_id, {})[country] = hs_code

    def save_tax_code(self, item_id, tax_code):
        self.tax_codes[item_id] = tax_code


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def job_queue():
    return FakeJobQueue()


@pytest.fixture
def state_store():
    return FakeStateStore()


@pytest.fixture
def catalog():
    return FakeCatalog()


@pytest.fixture
def classification_client():
    """Mock classification client: unknown items, pending responses, valid credentials."""
    client = MagicMock()
    client.query_item.return_value = None
    client.can_connect.return_value = True
    client.create_or_update.return_value = ClassificationResponse.from_api(
        {"id": "1234-1-DE", "countryOfDestination": "DE", "status": "Pending"}
    )
    client.get.return_value = ClassificationResponse.from_api(
        {"id": "1234-1-DE", "countryOfDestination": "DE", "status": "Classified", "hsCode": "6110113000"}
    )
    return client


@pytest.fixture
def sync_config():
    from landed_cost_sync.services.sync_config import SyncConfig
    return SyncConfig(
        batch_size_limit=1000,
        countries_for_product_sync=["DE", "FR", "GB"],
        classification_systems={"HS_EU": ["DE", "FR"], "HS_UK": ["GB"]},
        supported_countries=["DE", "FR", "GB", "US"],
        environment="development",
        pause_seconds=0,
        company_id="1234",
    )


@pytest.fixture
def notices(state_store):
    from landed_cost_sync.db.notice_store import NoticeStore
    return NoticeStore(state_store)


@pytest.fixture
def sync_service(job_queue, state_store, catalog, classification_client, sync_config, notices):
    from landed_cost_sync.services.classification_sync_service import ClassificationSyncService
    return ClassificationSyncService(
        job_queue=job_queue,
        state_store=state_store,
        catalog=catalog,
        client=classification_client,
        config=sync_config,
        notices=notices,
    )


@pytest.fixture
def mock_supabase():
    """Mock SupabaseClient with a chainable table builder."""
    supabase_client = MagicMock()
    mock_table = MagicMock()
    for method in ("select", "update", "eq", "in_", "order", "range", "limit"):
        getattr(mock_table, method).return_value = mock_table
    mock_table.execute.return_value = MagicMock(data=[])
    supabase_client.client.table.return_value = mock_table
    return supabase_client, mock_table
