"""
Operation-level entry points consumed by the HTTP layer.

Wires the quiz components together around one Store and one Cache handed in
by the caller; nothing here reaches for global state.
"""
import random
from typing import Optional, Sequence
from skillquiz.core.cache import Cache
from skillquiz.core.errors import AttemptNotFound, SkillNotFound
from skillquiz.models.schemas import (
    AdminStats, AnswerIn, AttemptDetail, AttemptHistory, AttemptResult, QuestionSet, SkillOut, UserPerformance,
)
from skillquiz.services.attempts import AttemptRecorder
from skillquiz.services.invalidation import CacheInvalidator
from skillquiz.services.question_sets import QuestionSetProvider
from skillquiz.services.reports import ReportAggregator
from skillquiz.services.scoring import ScoringEngine
from skillquiz.services.store import Store


class QuizService:
    def __init__(self, store: Store, cache: Cache, rng: Optional[random.Random] = None):
        self.store = store
        self.invalidator = CacheInvalidator(cache)
        self.question_sets = QuestionSetProvider(store, cache, rng=rng)
        self.recorder = AttemptRecorder(store, ScoringEngine(store), self.invalidator)
        self.reports = ReportAggregator(store, cache)

    def start_quiz(self, skill_id: int) -> QuestionSet:
        skill = self.store.find_skill(skill_id)
        if skill is None:
            raise SkillNotFound(skill_id)
        questions = self.question_sets.get_question_set(skill_id)
        return QuestionSet(skill=SkillOut(id=skill.id, name=skill.name), questions=questions,
                           total_questions=len(questions))

    def submit_quiz(self, user_id: int, skill_id: int, answers: Sequence[AnswerIn],
                    time_taken_seconds: Optional[int] = None) -> AttemptResult:
        return self.recorder.record_attempt(user_id, skill_id, answers, time_taken_seconds)

    def get_user_performance(self, user_id: int) -> UserPerformance:
        return self.reports.get_user_performance(user_id)

    def get_admin_stats(self) -> AdminStats:
        return self.reports.get_admin_stats()

    def invalidate_question_cache(self, skill_id: int) -> bool:
        return self.invalidator.question_sets(skill_id)

    def history(self, user_id: int, page: int = 1, limit: int = 10) -> AttemptHistory:
        return self.store.attempt_history(user_id, page, limit)

    def attempt_detail(self, user_id: int, attempt_id: int) -> AttemptDetail:
        detail = self.store.attempt_detail(attempt_id, user_id)
        if detail is None:
            raise AttemptNotFound(attempt_id)
        return detail
