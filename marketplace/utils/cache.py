import json
import logging
import redis
from typing import Optional, Any

from marketplace.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)

redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)


class CacheService:
    """
    Redis cache for aggregation reports and category listings.

    Cache failures are never fatal: every Redis error is logged and treated
    as a miss, so callers fall back to the database.
    """

    def __init__(self, client: redis.Redis = None, ttl: int = None, enabled: bool = None):
        self.client = client or redis_client
        self.ttl = ttl or settings.CACHE_TTL
        self.enabled = settings.CACHE_ENABLED if enabled is None else enabled

    @staticmethod
    def _key(prefix: str, name: str) -> str:
        return f"{prefix}:{name}"

    def get(self, prefix: str, name: str) -> Optional[Any]:
        """
        Read a JSON document.

        Args:
            prefix: Namespace (e.g., 'stats', 'category')
            name: Entry within the namespace

        Returns:
            Decoded value, or None on a miss, a Redis error or a disabled cache
        """
        if not self.enabled:
            return None
        cache_key = self._key(prefix, name)
        try:
            raw = self.client.get(cache_key)
        except redis.RedisError as e:
            logger.warning(f"Cache read failed for {cache_key}: {e}")
            return None
        if not raw:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Discarding undecodable cache entry {cache_key}")
            return None

    def set(self, prefix: str, name: str, value: Any, ttl: int = None) -> bool:
        """
        Store a value as JSON with an expiry.

        Decimals and datetimes are stored as strings.

        Returns:
            Whether the value was written
        """
        if not self.enabled:
            return False
        cache_key = self._key(prefix, name)
        try:
            self.client.setex(cache_key, ttl or self.ttl, json.dumps(value, default=str))
        except (redis.RedisError, TypeError) as e:
            logger.warning(f"Cache write failed for {cache_key}: {e}")
            return False
        return True

    def delete(self, prefix: str, name: str) -> bool:
        if not self.enabled:
            return False
        try:
            self.client.delete(self._key(prefix, name))
        except redis.RedisError as e:
            logger.warning(f"Cache delete failed for {prefix}:{name}: {e}")
            return False
        return True

    def delete_prefix(self, prefix: str) -> int:
        """Drop every entry in a namespace; returns how many were removed."""
        if not self.enabled:
            return 0
        try:
            stale = list(self.client.scan_iter(match=self._key(prefix, "*")))
            return self.client.delete(*stale) if stale else 0
        except redis.RedisError as e:
            logger.warning(f"Cache invalidation failed for {prefix}: {e}")
            return 0


cache_service = CacheService()
