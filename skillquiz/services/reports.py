import logging
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Type, TypeVar
from pydantic import BaseModel, ValidationError
from skillquiz.core.cache import ADMIN_STATS_KEY, Cache, user_performance_key
from skillquiz.core.config import ADMIN_STATS_TTL, RECENT_ACTIVITY_LIMIT, USER_PERFORMANCE_TTL
from skillquiz.core.errors import InvalidInput
from skillquiz.models.orm import utcnow
from skillquiz.models.schemas import AdminStats, PeriodStats, SkillGap, TimeAnalysis, UserOverview, UserPerformance
from skillquiz.services.store import Store

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

TIME_ANALYSIS_WINDOW = timedelta(days=183)


def period_label(ts: datetime, period: str) -> str:
    if period == "month":
        return ts.strftime("%Y-%m")
    if period == "quarter":
        return f"{ts.year}-Q{(ts.month - 1) // 3 + 1}"
    year, week, _ = ts.isocalendar()
    return f"{year}-{week:02d}"


class ReportAggregator:
    """Per-user and system-wide reports, cache-aside over the store's aggregates.

    The per-user entry is deleted by AttemptRecorder after each submission; the
    admin entry is only ever refreshed by TTL expiry.
    """

    def __init__(self, store: Store, cache: Cache, user_ttl: int = USER_PERFORMANCE_TTL,
                 admin_ttl: int = ADMIN_STATS_TTL, recent_limit: int = RECENT_ACTIVITY_LIMIT,
                 clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.cache = cache
        self.user_ttl = user_ttl
        self.admin_ttl = admin_ttl
        self.recent_limit = recent_limit
        self.clock = clock

    def _cached(self, key: str, model: Type[M], ttl: int, compute: Callable[[], M]) -> M:
        raw = self.cache.get(key)
        if raw is not None:
            try:
                return model.model_validate_json(raw)
            except ValidationError:
                logger.warning("discarding unreadable cache entry %s", key)
        value = compute()
        self.cache.set_with_ttl(key, value.model_dump_json(), ttl)
        return value

    def get_user_performance(self, user_id: int) -> UserPerformance:
        return self._cached(user_performance_key(user_id), UserPerformance, self.user_ttl,
                            lambda: self.store.aggregate_user_performance(user_id, self.recent_limit))

    def get_admin_stats(self) -> AdminStats:
        return self._cached(ADMIN_STATS_KEY, AdminStats, self.admin_ttl,
                            lambda: self.store.aggregate_admin_stats(self.recent_limit))

    def skill_gaps(self) -> List[SkillGap]:
        return self.store.skill_gaps()

    def user_overview(self) -> List[UserOverview]:
        return self.store.user_overview()

    def time_analysis(self, period: Optional[str] = "week") -> TimeAnalysis:
        period = period or "week"
        if period not in ("week", "month", "quarter"):
            raise InvalidInput(f"Unknown period {period!r}; expected week, month or quarter")
        buckets = defaultdict(list)
        for completed_at, score, user_id in self.store.attempts_since(self.clock() - TIME_ANALYSIS_WINDOW):
            buckets[period_label(completed_at, period)].append((score, user_id))
        data = [
            PeriodStats(period=label, attempts_count=len(rows),
                        average_score=round(sum(s for s, _ in rows) / len(rows), 2),
                        unique_users=len({u for _, u in rows}))
            for label, rows in sorted(buckets.items(), reverse=True)
        ]
        return TimeAnalysis(period=period, data=data)
