"""
Celery application package — task registration and exports.
Version: 1.0.0
"""
from landed_cost_sync.celery_app.celery_config import celery_app

__all__ = ["celery_app"]
