"""
Landed cost sync routes — sync status, toggle, resync, notices, catalog webhook.

Mounted under /api/v1. These are operator endpoints: deploy them behind
the host application's authentication.
Version: 1.0.0
"""
import logging

from fastapi import APIRouter, Depends, HTTPException

from landed_cost_sync.container import get_notice_store, get_sync_service
from landed_cost_sync.core.exceptions import RetryableError
from landed_cost_sync.db.notice_store import NoticeStore
from landed_cost_sync.schemas.landed_cost_sync import (
    Notice,
    ProductSavedEvent,
    ProductSavedResponse,
    ResyncResponse,
    SyncStatusResponse,
    ToggleResponse,
)
from landed_cost_sync.services.classification_sync_service import ClassificationSyncService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/landed-cost", tags=["landed-cost"])


@router.get("/sync/status", response_model=SyncStatusResponse)
def get_sync_status(service: ClassificationSyncService = Depends(get_sync_service)):
    """Syncing flags, batch cursor and bucket counts."""
    try:
        return SyncStatusResponse(**service.get_sync_status())
    except RetryableError as e:
        logger.error(f"Sync status unavailable: {e}")
        raise HTTPException(status_code=503, detail=str(e))


@router.post("/sync/toggle", response_model=ToggleResponse)
def toggle_sync(service: ClassificationSyncService = Depends(get_sync_service)):
    """
    Turn syncing on or off.

    Turning on is refused (toggled=false) when the classification API
    rejects the configured credentials.
    """
    if not service.can_toggle_syncing():
        return ToggleResponse(
            toggled=False,
            syncing=service.is_syncing_active(),
            message="Could not connect to the classification service. Check credentials and subscription.",
        )

    syncing = service.toggle_syncing()
    return ToggleResponse(
        toggled=True,
        syncing=syncing,
        message="Syncing started" if syncing else "Syncing stopped",
    )


@router.post("/sync/resync", response_model=ResyncResponse)
def resync_products(service: ClassificationSyncService = Depends(get_sync_service)):
    """Re-enqueue products from the error and resolution buckets."""
    enqueued = service.resync_products_with_errors()
    return ResyncResponse(enqueued=len(enqueued), message=f"{len(enqueued)} products re-enqueued")


@router.get("/notices", response_model=list[Notice])
def list_notices(notices: NoticeStore = Depends(get_notice_store)):
    return [Notice(**n) for n in notices.get_notices()]


@router.delete("/notices/{notice_id}")
def dismiss_notice(notice_id: str, notices: NoticeStore = Depends(get_notice_store)):
    if not notices.dismiss(notice_id):
        raise HTTPException(status_code=404, detail="Notice not found")
    return {"dismissed": notice_id}


@router.post("/catalog/product-saved", response_model=ProductSavedResponse)
def product_saved(event: ProductSavedEvent, service: ClassificationSyncService = Depends(get_sync_service)):
    """
    Catalog edit webhook.

    Runs both change detectors, then the post-save enqueue for the item
    and its variations.
    """
    flagged_by_diff = service.flag_updated_product(event.item_id, event.previous, event.current)
    flagged_by_changes = service.maybe_flag_updated_product(event.item_id, event.changes)
    try:
        enqueued = service.maybe_enqueue_saved_product(event.item_id)
    except RetryableError as e:
        logger.error(f"Could not enqueue saved product {event.item_id}: {e}")
        raise HTTPException(status_code=503, detail=str(e))

    return ProductSavedResponse(
        item_id=event.item_id,
        flagged=flagged_by_diff or flagged_by_changes,
        enqueued=len(enqueued),
    )
