"""
State store — persisted sync flags and buckets in Redis.

Holds the syncing / full-sync flags, the full-sync batch cursor, and the
pending, error and resolution buckets. Values are JSON encoded under a
shared key prefix. Reads and writes are not transactional; bucket updates
are read-then-write and last writer wins.
Version: 1.0.0
"""
import json
import logging
from typing import Any

import redis

logger = logging.getLogger(__name__)


class RedisStateStore:
    """Key/value state persisted in Redis."""

    def __init__(self, redis_client: redis.Redis, prefix: str = "landed_cost_sync"):
        self._redis = redis_client
        self._prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}:state:{key}"

    def get(self, key: str, default: Any = None) -> Any:
        raw = self._redis.get(self._key(key))
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            logger.warning(f"Discarding undecodable state value for '{key}'")
            return default

    def set(self, key: str, value: Any) -> None:
        self._redis.set(self._key(key), json.dumps(value, sort_keys=True))

    def delete(self, key: str) -> None:
        self._redis.delete(self._key(key))


def get_redis_client(redis_url: str) -> redis.Redis:
    """Create a Redis client from the configured URL."""
    return redis.Redis.from_url(redis_url, decode_responses=True)
