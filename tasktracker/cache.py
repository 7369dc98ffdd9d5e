"""Read-through cache for a user's full task list.

Every method swallows client errors and degrades to a miss or a no-op: an
unreachable Redis only removes the acceleration, it never fails a request.
"""
import json
import logging
from functools import lru_cache
from typing import List, Optional

import redis
from tasktracker import config

logger = logging.getLogger(__name__)


def cache_key(user_id) -> str:
    return f"tasks:user:{user_id}"


class TaskCache:
    def __init__(self, client: Optional[redis.Redis] = None, ttl: int = config.CACHE_TTL_SECONDS):
        self.client = client
        self.ttl = ttl

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def get(self, user_id) -> Optional[List[dict]]:
        if not self.enabled:
            return None
        try:
            raw = self.client.get(cache_key(user_id))
            if raw is None:
                return None
            tasks = json.loads(raw)
        except (redis.RedisError, ValueError) as exc:
            logger.warning("cache get failed for user=%s: %s", user_id, exc)
            return None
        if not isinstance(tasks, list):
            logger.warning("cache entry for user=%s is not a task list, ignoring", user_id)
            return None
        return tasks

    def set(self, user_id, tasks: List[dict]) -> None:
        if not self.enabled:
            return
        try:
            self.client.setex(cache_key(user_id), self.ttl, json.dumps(tasks))
        except (redis.RedisError, TypeError) as exc:
            logger.warning("cache set failed for user=%s: %s", user_id, exc)

    def invalidate(self, user_id) -> None:
        if not self.enabled:
            return
        try:
            self.client.delete(cache_key(user_id))
        except redis.RedisError as exc:
            logger.warning("cache invalidate failed for user=%s: %s", user_id, exc)


@lru_cache(maxsize=1)
def _default_cache() -> TaskCache:
    if not config.REDIS_URL:
        logger.info("REDIS_URL not set, task list caching disabled")
        return TaskCache(None)
    client = redis.Redis.from_url(
        config.REDIS_URL,
        socket_connect_timeout=1,
        socket_timeout=1,
    )
    return TaskCache(client)


def get_cache() -> TaskCache:
    """FastAPI dependency; tests override it with an in-memory client."""
    return _default_cache()
