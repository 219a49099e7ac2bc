import logging
from typing import Iterable
from skillquiz.core.cache import Cache, question_set_key, user_performance_key

logger = logging.getLogger(__name__)


class CacheInvalidator:
    """Deletes derived cache entries after the store write that made them stale.

    Callers must only invoke this once their store transaction has committed.
    A failed delete is logged by the cache and otherwise ignored: the entry
    simply lives out its TTL.
    """

    def __init__(self, cache: Cache):
        self.cache = cache

    def invalidate(self, keys: Iterable[str]) -> bool:
        keys = sorted(set(keys))
        if not keys:
            return True
        ok = self.cache.delete(*keys)
        logger.debug("invalidated %s (ok=%s)", keys, ok)
        return ok

    def question_sets(self, *skill_ids: int) -> bool:
        return self.invalidate(question_set_key(s) for s in skill_ids)

    def user_performance(self, user_id: int) -> bool:
        return self.invalidate([user_performance_key(user_id)])
