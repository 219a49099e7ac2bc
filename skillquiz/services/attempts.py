import logging
from typing import Optional, Sequence
from skillquiz.core.errors import SkillNotFound
from skillquiz.models.schemas import AnswerIn, AttemptResult
from skillquiz.services.invalidation import CacheInvalidator
from skillquiz.services.scoring import ScoringEngine
from skillquiz.services.store import Store

logger = logging.getLogger(__name__)


class AttemptRecorder:
    def __init__(self, store: Store, scoring: ScoringEngine, invalidator: CacheInvalidator):
        self.store = store
        self.scoring = scoring
        self.invalidator = invalidator

    def record_attempt(self, user_id: int, skill_id: int, answers: Sequence[AnswerIn],
                       time_taken_seconds: Optional[int] = None) -> AttemptResult:
        """Score and persist one submission.

        The attempt row and its answer rows commit together or not at all. The
        user's performance report is invalidated only after that commit, so a
        concurrent reader can never repopulate it from a pre-write snapshot.
        Answers to questions the store does not know are scored as wrong but
        get no answer row.
        """
        if self.store.find_skill(skill_id) is None:
            raise SkillNotFound(skill_id)

        with self.store.transaction():
            result = self.scoring.score(skill_id, answers)
            attempt = self.store.insert_attempt(user_id, skill_id, result.score, result.total_questions, time_taken_seconds)
            rows = [(a.question_id, a.selected_option, ok)
                    for a, ok, found in zip(answers, result.correctness, result.found) if found]
            if rows:
                self.store.insert_answers(attempt.id, rows)
            attempt_id = attempt.id

        logger.info("recorded attempt %s: user=%s skill=%s score=%s (%s/%s)", attempt_id, user_id, skill_id,
                    result.score, result.correct_count, result.total_questions)
        self.invalidator.user_performance(user_id)
        return AttemptResult(attempt_id=attempt_id, score=result.score,
                             correct_answers=result.correct_count, total_questions=result.total_questions)
