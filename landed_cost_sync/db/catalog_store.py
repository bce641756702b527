"""
Catalog store — catalog enumeration and per-country classification records.

Reads catalog items from the catalog_products table and writes the
classification record (classification id and HS code per destination
country) back onto the item row.

Table columns used:
    id, type, parent_id, name, short_description, description,
    category_ids, category_names, tax_code,
    classification_ids (jsonb country -> id), hs_codes (jsonb country -> code)
Version: 1.0.0
"""
import logging
from typing import Any, Dict, List, Optional

from postgrest.exceptions import APIError
from supabase import Client

from landed_cost_sync.clients.supabase_client import SupabaseClient
from landed_cost_sync.core.constants.sync import VARIATION_PRODUCT_TYPE
from landed_cost_sync.core.exceptions import DatabaseTransientError

logger = logging.getLogger("catalog_store")

_ITEM_COLUMNS = (
    "id,type,parent_id,name,short_description,description,"
    "category_ids,category_names,tax_code,classification_ids,hs_codes"
)


class CatalogStore:
    """Database operations for catalog items and their classification records."""

    def __init__(self, supabase_client: SupabaseClient, table: str = "catalog_products", company_id: str = ""):
        self._supabase_client = supabase_client
        self._table = table
        self._company_id = company_id

    @property
    def client(self) -> Client:
        return self._supabase_client.client

    def _execute(self, query, action: str):
        try:
            return query.execute()
        except APIError as e:
            logger.error(f"Catalog query failed during {action}: {e}")
            raise DatabaseTransientError(f"{action} failed: {e}") from e

    # ============================================
    # Enumeration
    # ============================================

    def list_items(self, type_filter: List[str], limit: int, page: int) -> List[int]:
        """
        One page of item ids, ordered by id ascending.

        Pages are 1-based. A stable order means consecutive pages neither skip
        nor repeat ids as long as the catalog is not reordered mid-walk.
        """
        start = (max(page, 1) - 1) * limit
        query = (
            self.client.table(self._table)
            .select("id")
            .in_("type", list(type_filter))
            .order("id")
            .range(start, start + limit - 1)
        )
        result = self._execute(query, f"list_items page={page}")
        return [int(row["id"]) for row in result.data or []]

    def get_item(self, item_id: int) -> Optional[Dict[str, Any]]:
        query = self.client.table(self._table).select(_ITEM_COLUMNS).eq("id", item_id).limit(1)
        result = self._execute(query, f"get_item {item_id}")
        return result.data[0] if result.data else None

    def get_variation_ids(self, parent_id: int) -> List[int]:
        query = (
            self.client.table(self._table)
            .select("id")
            .eq("parent_id", parent_id)
            .eq("type", VARIATION_PRODUCT_TYPE)
            .order("id")
        )
        result = self._execute(query, f"get_variation_ids {parent_id}")
        return [int(row["id"]) for row in result.data or []]

    # ============================================
    # Classification record
    # ============================================

    def _get_json_column(self, item_id: int, column: str) -> Dict[str, str]:
        query = self.client.table(self._table).select(column).eq("id", item_id).limit(1)
        result = self._execute(query, f"read {column} of {item_id}")
        if not result.data:
            return {}
        return dict(result.data[0].get(column) or {})

    def _update(self, item_id: int, values: Dict[str, Any], action: str) -> None:
        query = self.client.table(self._table).update(values).eq("id", item_id)
        self._execute(query, action)

    def get_classification_ids(self, item_id: int) -> Dict[str, str]:
        return self._get_json_column(item_id, "classification_ids")

    def get_classification_id(self, item_id: int, country: str) -> Optional[str]:
        return self.get_classification_ids(item_id).get(country) or None

    def generate_classification_id(self, item_id: int, country: str) -> str:
        """Deterministic id the classification service can be queried by."""
        return f"{self._company_id}-{item_id}-{country}"

    def save_classification_id(self, item_id: int, country: str, classification_id: Optional[str] = None) -> str:
        classification_id = classification_id or self.generate_classification_id(item_id, country)
        ids = self.get_classification_ids(item_id)
        ids[country] = classification_id
        self._update(item_id, {"classification_ids": dict(sorted(ids.items()))}, f"save_classification_id {item_id}")
        logger.info(f"Saved classification id item={item_id} country={country} id={classification_id}")
        return classification_id

    def get_hs_codes(self, item_id: int) -> Dict[str, str]:
        return self._get_json_column(item_id, "hs_codes")

    def save_hs_code(self, item_id: int, country: str, hs_code: str) -> None:
        codes = self.get_hs_codes(item_id)
        codes[country] = hs_code
        self._update(item_id, {"hs_codes": dict(sorted(codes.items()))}, f"save_hs_code {item_id}")
        logger.info(f"Saved HS code item={item_id} country={country} hs_code={hs_code}")

    def save_tax_code(self, item_id: int, tax_code: str) -> None:
        self._update(item_id, {"tax_code": tax_code}, f"save_tax_code {item_id}")
