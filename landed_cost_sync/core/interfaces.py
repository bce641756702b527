"""
Collaborator interfaces — the narrow contracts the sync service depends on.

Implementations: CeleryJobQueue, RedisStateStore, CatalogStore,
ClassificationClient. Tests use in-memory fakes.
Version: 1.0.0
"""
from typing import Any, Dict, List, Optional, Protocol

from landed_cost_sync.schemas.classification import ClassificationRequest, ClassificationResponse


class JobQueue(Protocol):
    def schedule_single(self, timestamp: Optional[int], hook: str, args: Dict[str, Any], group: str) -> str: ...

    def search(self, filters: Dict[str, Any]) -> List[str]: ...

    def count(self, group: str) -> int: ...


class StateStore(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...


class Catalog(Protocol):
    def list_items(self, type_filter: List[str], limit: int, page: int) -> List[int]: ...

    def get_item(self, item_id: int) -> Optional[Dict[str, Any]]: ...

    def get_variation_ids(self, parent_id: int) -> List[int]: ...

    def get_classification_id(self, item_id: int, country: str) -> Optional[str]: ...

    def save_classification_id(self, item_id: int, country: str, classification_id: Optional[str] = None) -> str: ...

    def save_hs_code(self, item_id: int, country: str, hs_code: str) -> None: ...

    def save_tax_code(self, item_id: int, tax_code: str) -> None: ...


class ClassificationApi(Protocol):
    def create_or_update(self, request: ClassificationRequest) -> ClassificationResponse: ...

    def get(self, request: ClassificationRequest) -> ClassificationResponse: ...

    def query_item(self, item_code: str) -> Optional[Dict[str, Any]]: ...

    def can_connect(self) -> bool: ...
