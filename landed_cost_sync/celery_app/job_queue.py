"""
Job queue — Celery scheduling with a Redis pending-job index.

Celery cannot answer "is this job already scheduled?", so every job sent
through schedule_single() is also recorded in Redis:

    {prefix}:jobs:{group}           hash  job_id -> job record (JSON)
    {prefix}:job_groups             hash  job_id -> group
    {prefix}:sig:{group}:{md5}      set   job_ids sharing hook + args

The record is removed when the worker starts the job (see
ClassificationJobTask.before_start), so only jobs that have not started yet
count as pending.

Dedup is search-then-schedule. Two workers can both miss each other's job
between search() and schedule_single(); the classification service keys
requests by (item, country) so a duplicate request is harmless.
Version: 1.0.0
"""
import hashlib
import json
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import redis
from celery import Celery

from landed_cost_sync.core.constants.sync import JOB_STATUS_PENDING, PRODUCT_SYNC_ACTION_QUEUE_GROUP

logger = logging.getLogger(__name__)


def job_signature(hook: str, args: Dict[str, Any]) -> str:
    """Stable md5 of a hook name and its canonical JSON args."""
    canonical = json.dumps(args, sort_keys=True, separators=(",", ":"))
    return hashlib.md5(f"{hook}|{canonical}".encode()).hexdigest()


class CeleryJobQueue:
    """Schedules Celery tasks and tracks which of them are still pending."""

    def __init__(self, celery_app: Celery, redis_client: redis.Redis, prefix: str = "landed_cost_sync"):
        self._celery = celery_app
        self._redis = redis_client
        self._prefix = prefix

    # -- keys -----------------------------------------------------------------

    def _jobs_key(self, group: str) -> str:
        return f"{self._prefix}:jobs:{group}"

    def _groups_key(self) -> str:
        return f"{self._prefix}:job_groups"

    def _sig_key(self, group: str, signature: str) -> str:
        return f"{self._prefix}:sig:{group}:{signature}"

    # -- scheduling -----------------------------------------------------------

    def schedule_single(
        self,
        timestamp: Optional[int],
        hook: str,
        args: Dict[str, Any],
        group: str = PRODUCT_SYNC_ACTION_QUEUE_GROUP,
    ) -> str:
        """
        Schedule one job to run at ``timestamp`` (unix seconds, None = now).

        Returns the job id. Raises whatever the broker raised if the send
        failed; the index entry is rolled back first.
        """
        now = int(time.time())
        run_at = int(timestamp) if timestamp else now
        job_id = str(uuid.uuid4())
        signature = job_signature(hook, args)

        record = {
            "job_id": job_id,
            "hook": hook,
            "args": args,
            "group": group,
            "status": JOB_STATUS_PENDING,
            "run_at": run_at,
            "signature": signature,
        }
        self._index(record)

        eta = datetime.fromtimestamp(run_at, tz=timezone.utc) if run_at > now else None
        try:
            self._celery.send_task(hook, kwargs=args, task_id=job_id, eta=eta)
        except Exception:
            self._unindex(job_id, group, signature)
            raise

        logger.debug(f"Scheduled {hook} job={job_id} group={group} run_at={run_at}")
        return job_id

    def _index(self, record: Dict[str, Any]) -> None:
        pipe = self._redis.pipeline()
        pipe.hset(self._jobs_key(record["group"]), record["job_id"], json.dumps(record, sort_keys=True))
        pipe.hset(self._groups_key(), record["job_id"], record["group"])
        pipe.sadd(self._sig_key(record["group"], record["signature"]), record["job_id"])
        pipe.execute()

    def _unindex(self, job_id: str, group: str, signature: Optional[str]) -> None:
        pipe = self._redis.pipeline()
        pipe.hdel(self._jobs_key(group), job_id)
        pipe.hdel(self._groups_key(), job_id)
        if signature:
            pipe.srem(self._sig_key(group, signature), job_id)
        pipe.execute()

    # -- lookup ---------------------------------------------------------------

    def get_job(self, job_id: str) -> Optional[Dict[str, Any]]:
        group = self._redis.hget(self._groups_key(), job_id)
        if not group:
            return None
        raw = self._redis.hget(self._jobs_key(group), job_id)
        return json.loads(raw) if raw else None

    def search(self, filters: Dict[str, Any]) -> List[str]:
        """
        Find pending job ids.

        Filters: ``hook``, ``args``, ``group`` and ``status``. Only the
        pending status is tracked, any other status matches nothing.
        """
        status = filters.get("status", JOB_STATUS_PENDING)
        if status != JOB_STATUS_PENDING:
            return []

        group = filters.get("group", PRODUCT_SYNC_ACTION_QUEUE_GROUP)
        hook = filters.get("hook")
        args = filters.get("args")

        if hook is not None and args is not None:
            members = self._redis.smembers(self._sig_key(group, job_signature(hook, args)))
            jobs_key = self._jobs_key(group)
            return sorted(job_id for job_id in members if self._redis.hexists(jobs_key, job_id))

        matches = []
        for job_id, raw in self._redis.hgetall(self._jobs_key(group)).items():
            record = json.loads(raw)
            if hook is not None and record.get("hook") != hook:
                continue
            if args is not None and record.get("args") != args:
                continue
            matches.append(job_id)
        return sorted(matches)

    def count(self, group: str = PRODUCT_SYNC_ACTION_QUEUE_GROUP) -> int:
        """Number of pending jobs in a group."""
        return int(self._redis.hlen(self._jobs_key(group)))

    # -- lifecycle ------------------------------------------------------------

    def release(self, job_id: str) -> bool:
        """Drop a job from the pending index once a worker picks it up."""
        record = self.get_job(job_id)
        if record is None:
            return False
        self._unindex(job_id, record["group"], record.get("signature"))
        return True

    def purge_stale(self, max_age_seconds: int, group: str = PRODUCT_SYNC_ACTION_QUEUE_GROUP) -> int:
        """
        Remove pending entries whose run time is more than ``max_age_seconds``
        in the past. These are jobs that were revoked or lost by the broker.
        """
        cutoff = int(time.time()) - max_age_seconds
        purged = 0
        for job_id, raw in self._redis.hgetall(self._jobs_key(group)).items():
            record = json.loads(raw)
            if record.get("run_at", 0) < cutoff:
                self._unindex(job_id, group, record.get("signature"))
                purged += 1
        if purged:
            logger.warning(f"Purged {purged} stale pending jobs from group '{group}'")
        return purged
