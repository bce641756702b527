"""
Classification payload builder — pure transformation from catalog item to
classification request.

Kept apart from the client so the mapping can be unit-tested without
network calls.
Version: 1.0.0
"""
import html
import logging
import re
from typing import Any, Dict, Optional

from landed_cost_sync.core.constants.sync import PLACEHOLDER_TAX_CODES
from landed_cost_sync.core.exceptions import ValidationError
from landed_cost_sync.schemas.classification import ClassificationRequest, HSItem

logger = logging.getLogger("classification_payload_builder")

_TAG_RE = re.compile(r"<[^>]+>")
_WS_RE = re.compile(r"\s+")


def strip_markup(text: Optional[str]) -> str:
    """Drop HTML tags and entities, collapse whitespace."""
    if not text:
        return ""
    return _WS_RE.sub(" ", html.unescape(_TAG_RE.sub(" ", text))).strip()


def build_item_group(item: Dict[str, Any]) -> str:
    names = item.get("category_names") or []
    if isinstance(names, str):
        return names
    return ", ".join(str(n) for n in names if n)


def build_classification_parameters(item: Dict[str, Any], test_hs_code: Optional[str] = None) -> list[Dict[str, str]]:
    params = []
    if test_hs_code:
        params.append({"name": "hs_code_test", "value": test_hs_code})

    # Placeholder codes mean "no code set" and would mislead the classifier
    tax_code = (item.get("tax_code") or "").strip()
    if tax_code and tax_code not in PLACEHOLDER_TAX_CODES:
        params.append({"name": "tax_code", "value": tax_code})
    return params


def build_classification_request(
    item: Dict[str, Any],
    country_of_destination: str,
    company_id: str,
    test_hs_code: Optional[str] = None,
    classification_id: Optional[str] = None,
) -> ClassificationRequest:
    """
    Build the classification request for one catalog item and country.

    Args:
        item: Catalog row (see CatalogStore)
        country_of_destination: ISO country code
        company_id: Classification service company id
        test_hs_code: HS code to pass straight through (non-production only)
        classification_id: Existing classification id, for update/get

    Raises:
        ValidationError: The item has no id or no name to classify by
    """
    item_id = item.get("id")
    if item_id is None:
        raise ValidationError("Catalog item has no id")

    summary = strip_markup(item.get("name"))
    if not summary:
        raise ValidationError(f"Catalog item {item_id} has no name to classify")

    description = strip_markup(item.get("description")) or strip_markup(item.get("short_description"))
    parent_id = item.get("parent_id")

    hs_item = HSItem(
        company_id=str(company_id),
        item_code=str(item_id),
        summary=summary,
        description=description,
        item_group=build_item_group(item),
        parent_code=str(parent_id) if parent_id else None,
        classification_parameters=build_classification_parameters(item, test_hs_code),
    )
    return ClassificationRequest(
        country_of_destination=country_of_destination,
        item=hs_item,
        classification_id=classification_id,
    )
