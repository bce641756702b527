"""
Landed cost sync schemas — request/response models for the operator routes.
Version: 1.0.0
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class SyncStatusResponse(BaseModel):
    """Current sync lifecycle state and bucket counts."""
    syncing: bool
    full_sync: bool
    full_sync_batch: Optional[int] = None
    products_pending_sync: int = 0
    products_with_sync_errors: int = 0
    products_with_sync_resolutions: int = 0
    pending_jobs: int = 0


class ToggleResponse(BaseModel):
    toggled: bool
    syncing: bool
    message: str = ""


class ResyncResponse(BaseModel):
    enqueued: int
    message: str = ""


class ProductSavedEvent(BaseModel):
    """Catalog edit webhook body."""
    item_id: int
    previous: Optional[Dict[str, Any]] = None
    current: Optional[Dict[str, Any]] = None
    changes: List[str] = Field(default_factory=list)


class ProductSavedResponse(BaseModel):
    item_id: int
    flagged: bool
    enqueued: int


class Notice(BaseModel):
    id: str
    message: str
    level: str = "info"  # 'info', 'success', 'warning', 'error'
    dismissible: bool = True
    created_at: Optional[str] = None
