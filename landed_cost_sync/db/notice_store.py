"""
Notice store — operator notices kept in the state store.
Version: 1.0.0
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from landed_cost_sync.core.constants.sync import ADMIN_NOTICES_KEY

logger = logging.getLogger(__name__)


class NoticeStore:
    """Operator-visible notices, keyed by id so re-adding replaces."""

    def __init__(self, state_store):
        self._state = state_store

    def add_notice(self, notice_id: str, message: str, level: str = "info", dismissible: bool = True) -> None:
        notices = self._state.get(ADMIN_NOTICES_KEY, {}) or {}
        notices[notice_id] = {
            "id": notice_id,
            "message": message,
            "level": level,
            "dismissible": dismissible,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        self._state.set(ADMIN_NOTICES_KEY, notices)
        logger.info(f"Notice added: {notice_id} ({level})")

    def get_notices(self) -> List[Dict[str, Any]]:
        notices = self._state.get(ADMIN_NOTICES_KEY, {}) or {}
        return sorted(notices.values(), key=lambda n: n.get("created_at") or "")

    def has_notice(self, notice_id: str) -> bool:
        return notice_id in (self._state.get(ADMIN_NOTICES_KEY, {}) or {})

    def dismiss(self, notice_id: str) -> bool:
        notices = self._state.get(ADMIN_NOTICES_KEY, {}) or {}
        if notice_id not in notices:
            return False
        del notices[notice_id]
        self._state.set(ADMIN_NOTICES_KEY, notices)
        return True
