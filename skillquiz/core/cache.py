import logging
from typing import Optional
import redis
from skillquiz.core.config import REDIS_URL
from skillquiz.core.errors import CacheUnavailable

logger = logging.getLogger(__name__)

redis_client = redis.Redis.from_url(REDIS_URL, decode_responses=True)

ADMIN_STATS_KEY = "stats:admin"

def question_set_key(skill_id: int) -> str:
    return f"questions:skill:{skill_id}"

def user_performance_key(user_id: int) -> str:
    return f"performance:user:{user_id}"


class Cache:
    """Key/value acceleration layer. Never a source of truth: every redis
    failure is logged and turned into a miss (reads) or a no-op (writes)."""

    def __init__(self, client: redis.Redis):
        self.client = client

    def _run(self, op: str, *args, **kwargs):
        try:
            return getattr(self.client, op)(*args, **kwargs)
        except (redis.exceptions.RedisError, UnicodeDecodeError) as e:
            raise CacheUnavailable(f"cache {op} failed: {e}") from e

    def get(self, key: str) -> Optional[str]:
        try:
            value = self._run("get", key)
        except CacheUnavailable as e:
            logger.warning("%s; treating %s as a miss", e.detail, key)
            return None
        logger.debug("cache %s %s", "hit" if value is not None else "miss", key)
        return value

    def set_with_ttl(self, key: str, value: str, ttl_seconds: int) -> bool:
        try:
            self._run("set", key, value, ex=ttl_seconds)
        except CacheUnavailable as e:
            logger.warning("%s; %s not stored", e.detail, key)
            return False
        return True

    def delete(self, *keys: str) -> bool:
        if not keys:
            return True
        try:
            self._run("delete", *keys)
        except CacheUnavailable as e:
            logger.warning("%s; %s left to expire", e.detail, ", ".join(keys))
            return False
        return True


def get_cache() -> Cache:
    return Cache(redis_client)
