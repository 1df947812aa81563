"""Review summary cache.

Redis when REDIS_URL is configured and reachable, otherwise an in-process
TTLCache. Cache failures never fail a request; they fall back to recomputing.
"""

import json
from typing import Optional

import redis
from cachetools import TTLCache

from commerce.core_settings import get_settings
from shared.core import get_logger

logger = get_logger(__name__)

KEY_PREFIX = "review-summary:"


class SummaryCache:
    def __init__(self, redis_url: Optional[str] = None, ttl: int = 60):
        self.ttl = ttl
        self.local_cache = TTLCache(maxsize=1024, ttl=ttl)
        self.redis_client: Optional[redis.Redis] = None
        if redis_url:
            try:
                self.redis_client = redis.from_url(redis_url, decode_responses=True)
                self.redis_client.ping()
            except redis.RedisError as e:
                logger.warning(f"Redis unavailable, using in-process cache: {e}")
                self.redis_client = None

    @staticmethod
    def _key(product_id: int) -> str:
        return f"{KEY_PREFIX}{product_id}"

    def get(self, product_id: int) -> Optional[dict]:
        key = self._key(product_id)
        if self.redis_client:
            try:
                value = self.redis_client.get(key)
                if value is not None:
                    return json.loads(value)
            except redis.RedisError:
                pass
        return self.local_cache.get(key)

    def set(self, product_id: int, summary: dict) -> None:
        key = self._key(product_id)
        if self.redis_client:
            try:
                self.redis_client.setex(key, self.ttl, json.dumps(summary))
                return
            except redis.RedisError:
                pass
        self.local_cache[key] = summary

    def invalidate(self, product_id: int) -> None:
        key = self._key(product_id)
        self.local_cache.pop(key, None)
        if self.redis_client:
            try:
                self.redis_client.delete(key)
            except redis.RedisError:
                pass


_summary_cache: Optional[SummaryCache] = None


def get_summary_cache() -> SummaryCache:
    global _summary_cache
    if _summary_cache is None:
        settings = get_settings()
        _summary_cache = SummaryCache(settings.REDIS_URL, settings.REVIEW_SUMMARY_TTL)
    return _summary_cache
