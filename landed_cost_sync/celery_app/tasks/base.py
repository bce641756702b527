"""
Base task classes — logging hooks, pending-index release, and lazy DI.

Provides:
- BaseTask: shared logging for maintenance tasks
- ClassificationJobTask: releases the job's pending-index entry before it
  runs, so a running job no longer counts as scheduled
- Worker-local dependency access
Version: 1.0.0
"""
import logging
from celery import Task

logger = logging.getLogger(__name__)


class BaseTask(Task):
    """Base task with common functionality for all workers."""

    abstract = True

    # Classification failures are bucketed by the sync service and retried
    # by resync, never by Celery. Only maintenance tasks and the full-sync
    # walk opt into retries.
    retry_backoff = True
    retry_backoff_max = 300  # 5 minutes max backoff
    retry_jitter = True
    max_retries = 3

    track_started = True

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        """Called when task fails after all retries exhausted."""
        logger.error(f"Task {self.name}[{task_id}] failed: {exc}")

    def on_retry(self, exc, task_id, args, kwargs, einfo):
        """Called when task is being retried."""
        logger.warning(f"Task {self.name}[{task_id}] retrying (attempt {self.request.retries}): {exc}")

    def on_success(self, retval, task_id, args, kwargs):
        """Called when task succeeds."""
        logger.info(f"Task {self.name}[{task_id}] succeeded")


class ClassificationJobTask(BaseTask):
    """Task scheduled through CeleryJobQueue."""

    abstract = True

    def before_start(self, task_id, args, kwargs):
        try:
            get_job_queue().release(task_id)
        except Exception as e:
            # The job still runs; its index entry ages out via purge_stale_jobs
            logger.warning(f"Could not release pending entry for {task_id}: {e}")


# ============================================
# Dependency helpers (lazy loading, worker-local)
# ============================================
_dependencies = None


def get_dependencies():
    """
    Lazy load dependencies.

    Called after fork so each worker gets own instances.
    This prevents connection sharing issues between workers.
    """
    global _dependencies
    if _dependencies is None:
        # Lazy imports: circular dependency avoidance
        from landed_cost_sync import container

        _dependencies = {
            "settings": container.get_settings(),
            "job_queue": container.get_job_queue(),
            "sync_service": container.get_sync_service(),
        }
    return _dependencies


def get_job_queue():
    """Get job queue instance."""
    return get_dependencies()["job_queue"]


def get_sync_service():
    """Get classification sync service instance."""
    return get_dependencies()["sync_service"]


def get_settings():
    """Get settings instance."""
    return get_dependencies()["settings"]
