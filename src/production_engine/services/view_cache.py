"""Latest derived views shared between the worker and the API through Redis.

The recompute worker publishes each rebuilt view here; the API serves the
published copy until its TTL runs out and rebuilds from a snapshot on a miss.
"""

from functools import lru_cache
from typing import Any, TypeVar

import redis
from pydantic import BaseModel, TypeAdapter, ValidationError

from production_engine.config import Settings
from production_engine.logging import get_logger

logger = get_logger(__name__)

KEY_PREFIX = "production-engine:view:"

M = TypeVar("M", bound=BaseModel)

_any = TypeAdapter(Any)


@lru_cache
def redis_client(url: str) -> redis.Redis:
    """One pooled client per Redis URL."""
    return redis.from_url(url)


class ViewCache:
    """Stores the latest build of each view as JSON under a TTL.

    Redis failures never fail the caller: a failed write is logged and a
    failed read counts as a miss.
    """

    def __init__(self, client: redis.Redis, ttl_seconds: int, prefix: str = KEY_PREFIX) -> None:
        self.client = client
        self.ttl_seconds = ttl_seconds
        self.prefix = prefix

    def key(self, view: str) -> str:
        return f"{self.prefix}{view}"

    def publish(self, view: str, result: Any) -> bool:
        """Replace the stored copy of a view. False if Redis rejected the write."""
        try:
            self.client.set(self.key(view), _any.dump_json(result), ex=self.ttl_seconds)
        except redis.RedisError as e:
            logger.warning("view_publish_failed", view=view, error=str(e))
            return False
        logger.debug("view_cached", view=view, ttl=self.ttl_seconds)
        return True

    def latest(self, view: str, model: type[M]) -> M | None:
        """The stored copy of a view parsed as `model`, or None on a miss."""
        try:
            raw = self.client.get(self.key(view))
        except redis.RedisError as e:
            logger.warning("view_read_failed", view=view, error=str(e))
            return None
        if raw is None:
            return None
        try:
            return model.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("view_cache_invalid", view=view, error=str(e))
            return None


def view_cache_from_settings(settings: Settings) -> ViewCache | None:
    """The configured view cache, or None when serving published views is disabled."""
    if not settings.view_cache_enabled:
        return None
    return ViewCache(redis_client(settings.redis_url), settings.view_cache_ttl_seconds)
