"""
Change detection — decide whether a catalog edit invalidates a classification.

Two detectors see different kinds of edits:
- has_classification_changes(previous, current) diffs the stored row
  against the incoming one (pre-update view)
- changes_affect_classification(changes) inspects the list of fields the
  editor reported as changed

Either one returning True is enough to flag the item.
Version: 1.0.0
"""
from typing import Any, Dict, Iterable, Optional, Tuple

from landed_cost_sync.core.constants.sync import CLASSIFICATION_FIELDS

# Fields compared by the pre-update diff. Slug is included since a rename
# through the editor sometimes only shows up there.
_DIFF_FIELDS = ("name", "slug", "short_description", "description", "parent_id")


def _category_set(value: Any) -> frozenset:
    if not value:
        return frozenset()
    if isinstance(value, (str, int)):
        value = [value]
    ids = set()
    for v in value:
        try:
            ids.add(int(v))
        except (TypeError, ValueError):
            continue
    ids.discard(0)
    return frozenset(ids)


def has_classification_changes(
    previous: Optional[Dict[str, Any]], current: Optional[Dict[str, Any]],
) -> Tuple[bool, str]:
    """Compare the stored and incoming rows. Returns (changed, reason)."""
    if not previous or not current:
        return False, "no_diff_available"

    reasons = []
    for field in _DIFF_FIELDS:
        if field not in current:
            continue
        old, new = previous.get(field), current.get(field)
        if (old or None) != (new or None):
            reasons.append(field)

    if "category_ids" in current:
        if _category_set(previous.get("category_ids")) != _category_set(current.get("category_ids")):
            reasons.append("category_ids")

    if reasons:
        return True, ", ".join(reasons)
    return False, "no_change"


def changes_affect_classification(changes: Optional[Iterable[str]]) -> bool:
    """True if any reported changed field is classification-relevant."""
    if not changes:
        return False
    return any(field in CLASSIFICATION_FIELDS for field in changes)
