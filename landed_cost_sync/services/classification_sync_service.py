"""
Classification sync service — decides what to classify, schedules it, and
handles each scheduled unit.

Flow:
1. toggle_syncing() on -> enqueue_full_sync(1) and drain the pending bucket
2. handle_full_sync(batch) -> one catalog page as "sync" units, next batch
   scheduled only while pages come back full
3. handle_enqueued_product(payload) -> per unit:
   - syncing off: park the payload in the pending bucket
   - "sync": fan out "create" units for countries that need classifying
   - "create"/"update"/"get": call the classification API and route the
     response (error / pending / cannot be classified / classified)
4. resync_products_with_errors() -> error + resolution buckets re-enqueued
   after the wait time, buckets cleared

Catalog edits feed flag_updated_product() / maybe_flag_updated_product()
and maybe_enqueue_saved_product().
Version: 1.0.0
"""
import logging
import time
from typing import Any, Dict, Iterable, List, Optional, Set

from pydantic import ValidationError as PayloadValidationError

from landed_cost_sync.core.constants.sync import (
    FULL_SYNC_ACTION_QUEUE_HOOK,
    FULL_SYNC_BATCH_KEY,
    FULL_SYNC_FINISHED_NOTICE,
    FULL_SYNC_KEY,
    JOB_STATUS_PENDING,
    PRODUCT_SYNC_ACTION_QUEUE_GROUP,
    PRODUCT_SYNC_ACTION_QUEUE_HOOK,
    PRODUCTS_PENDING_SYNC_KEY,
    PRODUCTS_WITH_SYNC_ERRORS_KEY,
    PRODUCTS_WITH_SYNC_RESOLUTIONS_KEY,
    SYNC_ERROR_NOTICE,
    SYNC_STOPPED_NOTICE,
    SYNCING_STATE_KEY,
    SYNCING_STATE_OFF,
    SYNCING_STATE_ON,
    VARIABLE_PRODUCT_TYPE,
)
from landed_cost_sync.core.exceptions import NonRetryableError, RetryableError
from landed_cost_sync.core.interfaces import Catalog, ClassificationApi, JobQueue, StateStore
from landed_cost_sync.db.notice_store import NoticeStore
from landed_cost_sync.schemas.classification import ClassificationResponse
from landed_cost_sync.schemas.enqueued_product import EnqueuedProduct, SyncAction
from landed_cost_sync.services.outcomes import SyncOutcome
from landed_cost_sync.services.sync_config import SyncConfig
from landed_cost_sync.utils.change_detection import changes_affect_classification, has_classification_changes
from landed_cost_sync.utils.classification_payload_builder import build_classification_request

logger = logging.getLogger(__name__)

FULL_SYNC_FINISHED_MESSAGE = (
    "Your catalog is synced! Cross-border duty calculations can now take place at checkout. "
    "Catalog updates will be synced as you add, update, or delete products."
)
SYNC_STOPPED_MESSAGE = (
    "Cross-border product sync stopped. Please ensure you have valid credentials and an active "
    "subscription for cross-border item classification."
)
SYNC_ERROR_MESSAGE = (
    "Some products could not be classified. Review them and run a resync once they are fixed."
)


class ClassificationSyncService:
    """Orchestrates catalog classification sync through the job queue."""

    def __init__(
        self,
        job_queue: JobQueue,
        state_store: StateStore,
        catalog: Catalog,
        client: ClassificationApi,
        config: SyncConfig,
        notices: Optional[NoticeStore] = None,
    ):
        self.job_queue = job_queue
        self.state = state_store
        self.catalog = catalog
        self.client = client
        self.config = config
        self.notices = notices
        # Items whose classification-relevant fields changed in this process
        self._flagged: Set[int] = set()

    # ==================================================================
    # Lifecycle
    # ==================================================================

    def is_syncing_active(self) -> bool:
        return self.state.get(SYNCING_STATE_KEY, SYNCING_STATE_OFF) == SYNCING_STATE_ON

    def is_full_syncing_active(self) -> bool:
        return bool(self.state.get(FULL_SYNC_KEY, False))

    def can_toggle_syncing(self) -> bool:
        """Turning off is always allowed; turning on needs working credentials."""
        return self.is_syncing_active() or self.client.can_connect()

    def toggle_syncing(self) -> bool:
        """
        Flip the syncing state and return the new one.

        Turning on starts a full sync from batch 1 and drains the pending
        bucket. Turning off leaves scheduled jobs alone; they divert into
        the pending bucket when they fire.
        """
        turning_on = not self.is_syncing_active()
        self.state.set(SYNCING_STATE_KEY, SYNCING_STATE_ON if turning_on else SYNCING_STATE_OFF)
        logger.info(f"Landed cost syncing turned {'on' if turning_on else 'off'}")

        if turning_on:
            if self.notices:
                self.notices.dismiss(SYNC_STOPPED_NOTICE)
            self.enqueue_full_sync()
            self.maybe_start_full_sync()
            self.maybe_enqueue_pending_products()
        return turning_on

    def stop_syncing(self) -> None:
        """Hard off. Never schedules anything."""
        if not self.is_syncing_active():
            return
        self.state.set(SYNCING_STATE_KEY, SYNCING_STATE_OFF)
        logger.warning("Landed cost syncing stopped after an authorization failure")
        if self.notices:
            self.notices.add_notice(SYNC_STOPPED_NOTICE, SYNC_STOPPED_MESSAGE, level="error")

    def maybe_start_full_sync(self) -> None:
        if not self.is_full_syncing_active():
            self.state.set(FULL_SYNC_KEY, True)

    def maybe_finish_full_sync(self) -> bool:
        """
        Announce the end of a full sync once the walk has read its last
        page and no sync jobs are pending.

        A walk whose batch cursor is still set with nothing pending lost
        its batch job (retries exhausted, broker loss). That batch is
        scheduled again instead of announcing the end.
        """
        if not self.is_full_syncing_active():
            return False
        pending = self.count_pending_sync_actions()
        if pending > 0:
            logger.debug(f"Full sync still running, {pending} jobs pending")
            return False

        cursor = self.state.get(FULL_SYNC_BATCH_KEY)
        if cursor is not None and self.config.has_countries_for_product_sync():
            logger.warning(f"Full sync walk stalled at batch {cursor}, rescheduling it")
            self.enqueue_full_sync(int(cursor))
            return False

        if self.notices:
            self.notices.add_notice(FULL_SYNC_FINISHED_NOTICE, FULL_SYNC_FINISHED_MESSAGE, level="success")
        self.state.set(FULL_SYNC_KEY, False)
        logger.info("Full catalog sync finished")
        return True

    def maybe_enqueue_pending_products(self) -> List[EnqueuedProduct]:
        """Enqueue everything parked while syncing was off, then clear the bucket."""
        units = []
        for payload in self.state.get(PRODUCTS_PENDING_SYNC_KEY, []) or []:
            unit = self._decode(payload)
            if unit is not None:
                units.append(unit)
        enqueued = self.enqueue_products(units)
        self.state.set(PRODUCTS_PENDING_SYNC_KEY, [])
        if units:
            logger.info(f"Drained pending bucket: {len(enqueued)}/{len(units)} enqueued")
        return enqueued

    # ==================================================================
    # Enqueue & dedup
    # ==================================================================

    def _job_args(self, unit: EnqueuedProduct) -> Dict[str, Any]:
        return {"product": unit.to_payload()}

    def is_product_scheduled(self, unit: EnqueuedProduct) -> bool:
        return bool(self.job_queue.search({
            "hook": PRODUCT_SYNC_ACTION_QUEUE_HOOK,
            "args": self._job_args(unit),
            "group": PRODUCT_SYNC_ACTION_QUEUE_GROUP,
            "status": JOB_STATUS_PENDING,
        }))

    def enqueue_products(self, units: Iterable[EnqueuedProduct]) -> List[EnqueuedProduct]:
        """
        Schedule each unit unless an identical one is already pending.

        Returns the units actually scheduled. A failure for one unit is
        logged and does not stop the rest.
        """
        enqueued = []
        for unit in units:
            try:
                if self.is_product_scheduled(unit):
                    continue
                self.job_queue.schedule_single(
                    unit.timestamp or int(time.time()),
                    PRODUCT_SYNC_ACTION_QUEUE_HOOK,
                    self._job_args(unit),
                    PRODUCT_SYNC_ACTION_QUEUE_GROUP,
                )
                enqueued.append(unit)
            except Exception as e:
                logger.error(f"Failed to enqueue {unit}: {e}")
        return enqueued

    def count_pending_sync_actions(self) -> int:
        return self.job_queue.count(PRODUCT_SYNC_ACTION_QUEUE_GROUP)

    def enqueue_full_sync(self, batch: int = 1) -> Optional[str]:
        """
        Schedule the catalog walk at ``batch``. No-op without sync countries.

        A batch that is already pending is not scheduled twice; its job id
        is returned instead.
        """
        if not self.config.has_countries_for_product_sync():
            logger.info("No destination countries configured, full sync not scheduled")
            return None
        try:
            pending = self.job_queue.search({
                "hook": FULL_SYNC_ACTION_QUEUE_HOOK,
                "args": {"batch": batch},
                "group": PRODUCT_SYNC_ACTION_QUEUE_GROUP,
                "status": JOB_STATUS_PENDING,
            })
            if pending:
                job_id = pending[0]
            else:
                job_id = self.job_queue.schedule_single(
                    int(time.time()),
                    FULL_SYNC_ACTION_QUEUE_HOOK,
                    {"batch": batch},
                    PRODUCT_SYNC_ACTION_QUEUE_GROUP,
                )
        except Exception as e:
            logger.error(f"Failed to schedule full sync batch {batch}: {e}")
            return None
        self.state.set(FULL_SYNC_BATCH_KEY, batch)
        return job_id

    # ==================================================================
    # Full catalog walk
    # ==================================================================

    def has_more_pages(self, page_count: int) -> bool:
        """A full page means there may be more; a short page is the last."""
        return page_count >= self.config.batch_size_limit

    def handle_full_sync(self, batch: int) -> List[EnqueuedProduct]:
        """Enqueue one catalog page as sync units and schedule the next page if any."""
        limit = self.config.batch_size_limit
        item_ids = self.catalog.list_items(self.config.product_types, limit, batch)
        units = [EnqueuedProduct(product_id=item_id, action=SyncAction.SYNC) for item_id in item_ids]
        logger.info(f"Full sync batch {batch}: {len(units)} items")

        if self.has_more_pages(len(item_ids)):
            self.enqueue_full_sync(batch + 1)
        else:
            self.state.set(FULL_SYNC_BATCH_KEY, None)
            logger.info(f"Full sync walk complete at batch {batch}")

        return self.enqueue_products(units)

    # ==================================================================
    # Job handler
    # ==================================================================

    def _decode(self, payload: Any) -> Optional[EnqueuedProduct]:
        if isinstance(payload, EnqueuedProduct):
            return payload
        try:
            return EnqueuedProduct.from_payload(payload)
        except (PayloadValidationError, TypeError) as e:
            logger.error(f"Dropping malformed unit payload {payload!r}: {e}")
            return None

    def handle_enqueued_product(self, payload: Dict[str, Any]) -> SyncOutcome:
        """Run one scheduled unit. Always pauses afterwards to pace API calls."""
        try:
            if not self.is_syncing_active():
                pending = list(self.state.get(PRODUCTS_PENDING_SYNC_KEY, []) or [])
                pending.append(payload)
                self.state.set(PRODUCTS_PENDING_SYNC_KEY, pending)
                return SyncOutcome.DEFERRED

            unit = self._decode(payload)
            if unit is None:
                return SyncOutcome.SKIPPED
            return self._process_safely(unit)
        finally:
            if self.config.pause_seconds > 0:
                time.sleep(self.config.pause_seconds)

    def _process_safely(self, unit: EnqueuedProduct) -> SyncOutcome:
        try:
            return self.process_product(unit)
        except NonRetryableError as e:
            logger.warning(f"Skipping {unit}: {e}")
            return SyncOutcome.SKIPPED
        except RetryableError as e:
            logger.error(f"Transient failure for {unit}: {e}")
            self.store_error_product(unit.with_error_message(str(e)))
            return SyncOutcome.FAILED
        except Exception as e:
            logger.exception(f"Unexpected failure for {unit}: {e}")
            self.store_error_product(unit.with_error_message(str(e)))
            return SyncOutcome.FAILED

    def process_product(self, unit: EnqueuedProduct) -> SyncOutcome:
        item = self.catalog.get_item(unit.product_id)
        if not item:
            logger.info(f"Item {unit.product_id} not found, maybe deleted")
            return SyncOutcome.SKIPPED

        if unit.is_sync:
            return self.process_product_sync_action(item)
        return self.process_product_classification_action(unit, item)

    # -- sync action ---------------------------------------------------

    def process_product_sync_action(self, item: Dict[str, Any]) -> SyncOutcome:
        item_id = int(item["id"])
        units = []
        for country in self.get_countries_for_full_product_sync(item):
            action = self.get_product_sync_action(item_id, country)
            if action is None:
                continue
            units.append(EnqueuedProduct(product_id=item_id, country_of_destination=country, action=action))
            if item.get("type") == VARIABLE_PRODUCT_TYPE:
                units.extend(
                    EnqueuedProduct(product_id=variation_id, country_of_destination=country, action=action)
                    for variation_id in self.catalog.get_variation_ids(item_id)
                )

        if not units:
            return SyncOutcome.SKIPPED
        self.enqueue_products(units)
        return SyncOutcome.ENQUEUED

    def get_countries_for_full_product_sync(self, item: Dict[str, Any]) -> List[str]:
        """
        Countries the item still needs classifying for.

        If the service already knows the item, its tax code is copied locally
        and classification ids are stored for every system it is already
        classified in. Otherwise one country per classification system.
        """
        item_id = int(item["id"])
        remote_item = self.client.query_item(str(item_id))
        if not remote_item:
            return self.config.get_optimized_countries()

        tax_code = remote_item.get("taxCode")
        if tax_code:
            self.catalog.save_tax_code(item_id, tax_code)
        return self.process_item_classifications(item_id, remote_item)

    def process_item_classifications(self, item_id: int, remote_item: Dict[str, Any]) -> List[str]:
        grouped = self.config.get_countries_grouped_by_classification_system()
        classified: Dict[str, List[str]] = {}
        for classification in remote_item.get("classifications") or []:
            system_code = classification.get("systemCode")
            if grouped.get(system_code):
                classified[system_code] = grouped[system_code]

        for countries in classified.values():
            for country in countries:
                self.catalog.save_classification_id(item_id, country)

        return [countries[0] for system, countries in grouped.items() if system not in classified]

    def get_product_sync_action(self, item_id: int, country: str) -> Optional[SyncAction]:
        """``create`` when the item has no classification for the country or was edited."""
        if not self.catalog.get_classification_id(item_id, country) or self.should_resync_product(item_id):
            return SyncAction.CREATE
        return None

    # -- classification actions ------------------------------------------

    def process_product_classification_action(self, unit: EnqueuedProduct, item: Dict[str, Any]) -> SyncOutcome:
        country = unit.country_of_destination
        if not self.config.is_country_supported(country):
            logger.info(f"Skipping {unit}: destination country not supported")
            return SyncOutcome.SKIPPED

        item_id = int(item["id"])
        request = build_classification_request(
            item,
            country,
            company_id=self.config.company_id,
            test_hs_code=self.config.get_test_hs_code(item),
            classification_id=self.catalog.get_classification_id(item_id, country),
        )

        if unit.action == SyncAction.GET:
            response = self.client.get(request)
        else:
            response = self.client.create_or_update(request)

        return self.handle_response(unit, item_id, response)

    def handle_response(self, unit: EnqueuedProduct, item_id: int, response: ClassificationResponse) -> SyncOutcome:
        country = response.country_of_destination or unit.country_of_destination

        if response.has_errors:
            return self.handle_error(unit, response)

        if response.is_pending:
            self.catalog.save_classification_id(item_id, country, response.id)
            return SyncOutcome.PENDING

        if response.cannot_be_classified:
            if response.resolution:
                unit = unit.with_resolution(response.resolution)
                logger.info(f"{unit} cannot be classified: {response.resolution}")
            self.store_product_that_cannot_be_classified(unit)
            return SyncOutcome.UNAVAILABLE

        if response.is_classified:
            if response.hs_code:
                self.catalog.save_hs_code(item_id, country, response.hs_code)
            return SyncOutcome.CLASSIFIED

        logger.warning(f"Unrecognized classification status '{response.status}' for {unit}")
        return SyncOutcome.SKIPPED

    def handle_error(self, unit: EnqueuedProduct, response: ClassificationResponse) -> SyncOutcome:
        for error in response.errors:
            logger.error(f"Classification error for {unit}: {error.code}: {error.message or error.description}")

        halted = response.has_auth_error
        if halted:
            self.stop_syncing()

        self.store_error_product(unit.with_error_message(response.error_message))
        return SyncOutcome.HALTED if halted else SyncOutcome.FAILED

    # ==================================================================
    # Change detection
    # ==================================================================

    def flag_updated_product(
        self, item_id: int, previous: Optional[Dict[str, Any]], current: Optional[Dict[str, Any]],
    ) -> bool:
        """Flag the item if the pre-update diff touches a classification field."""
        changed, reason = has_classification_changes(previous, current)
        if changed:
            self._flagged.add(int(item_id))
            logger.info(f"Item {item_id} flagged for reclassification ({reason})")
        return changed

    def maybe_flag_updated_product(self, item_id: int, changes: Optional[Iterable[str]]) -> bool:
        """Flag the item if its reported changed fields affect classification."""
        changed = changes_affect_classification(changes)
        if changed:
            self._flagged.add(int(item_id))
        return changed

    def should_resync_product(self, item_id: int) -> bool:
        return int(item_id) in self._flagged

    def maybe_enqueue_saved_product(self, item_id: int) -> List[EnqueuedProduct]:
        """
        Post-save hook: enqueue ``create`` units for the item, and for its
        variations, per optimized country that needs it.
        """
        item = self.catalog.get_item(item_id)
        if not item or item.get("type") not in self.config.product_types:
            self._flagged.discard(int(item_id))
            return []

        units = []
        for country in self.config.get_optimized_countries():
            action = self.get_product_sync_action(int(item_id), country)
            if action is None:
                continue
            units.append(EnqueuedProduct(product_id=int(item_id), country_of_destination=country, action=action))
            # variations follow their parent whether or not they changed
            if item.get("type") == VARIABLE_PRODUCT_TYPE:
                units.extend(
                    EnqueuedProduct(product_id=variation_id, country_of_destination=country, action=action)
                    for variation_id in self.catalog.get_variation_ids(int(item_id))
                )

        self._flagged.discard(int(item_id))
        return self.enqueue_products(units)

    # ==================================================================
    # Failure buckets
    # ==================================================================

    def _store_for_later_resync(self, unit: EnqueuedProduct, key: str) -> None:
        bucket = dict(self.state.get(key, {}) or {})
        bucket[str(unit.product_id)] = unit.to_payload()
        self.state.set(key, bucket)
        if self.notices and not self.notices.has_notice(SYNC_ERROR_NOTICE):
            self.notices.add_notice(SYNC_ERROR_NOTICE, SYNC_ERROR_MESSAGE, level="warning")

    def store_error_product(self, unit: EnqueuedProduct) -> None:
        self._store_for_later_resync(unit, PRODUCTS_WITH_SYNC_ERRORS_KEY)

    def store_product_that_cannot_be_classified(self, unit: EnqueuedProduct) -> None:
        self._store_for_later_resync(unit, PRODUCTS_WITH_SYNC_RESOLUTIONS_KEY)

    def get_products_with_errors(self) -> Dict[str, Dict[str, Any]]:
        return dict(self.state.get(PRODUCTS_WITH_SYNC_ERRORS_KEY, {}) or {})

    def get_products_with_resolutions(self) -> Dict[str, Dict[str, Any]]:
        return dict(self.state.get(PRODUCTS_WITH_SYNC_RESOLUTIONS_KEY, {}) or {})

    def resync_products_with_errors(self) -> List[EnqueuedProduct]:
        """
        Re-enqueue both buckets after the wait time, then clear them.

        Entries that fail to enqueue are dropped along with the rest.
        """
        now = int(time.time())
        units = []
        for payload in list(self.get_products_with_errors().values()) + list(self.get_products_with_resolutions().values()):
            unit = self._decode(payload)
            if unit is None:
                continue
            units.append(unit.with_timestamp(now + self.config.get_wait_time(unit)))

        enqueued = self.enqueue_products(units)

        self.state.set(PRODUCTS_WITH_SYNC_ERRORS_KEY, {})
        self.state.set(PRODUCTS_WITH_SYNC_RESOLUTIONS_KEY, {})
        if self.notices:
            self.notices.dismiss(SYNC_ERROR_NOTICE)

        logger.info(f"Resync: {len(enqueued)}/{len(units)} products re-enqueued")
        return enqueued

    # ==================================================================
    # Status
    # ==================================================================

    def get_sync_status(self) -> Dict[str, Any]:
        return {
            "syncing": self.is_syncing_active(),
            "full_sync": self.is_full_syncing_active(),
            "full_sync_batch": self.state.get(FULL_SYNC_BATCH_KEY),
            "products_pending_sync": len(self.state.get(PRODUCTS_PENDING_SYNC_KEY, []) or []),
            "products_with_sync_errors": len(self.get_products_with_errors()),
            "products_with_sync_resolutions": len(self.get_products_with_resolutions()),
            "pending_jobs": self.count_pending_sync_actions(),
        }
