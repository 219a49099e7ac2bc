import logging
import random
from typing import List, Optional
from pydantic import ValidationError
from skillquiz.core.cache import Cache, question_set_key
from skillquiz.core.config import QUESTION_SET_TTL
from skillquiz.core.errors import NotFound, SkillNotFound
from skillquiz.models.orm import Question
from skillquiz.models.schemas import QuestionSetPayload, QuestionView
from skillquiz.services.store import Store

logger = logging.getLogger(__name__)


def question_view(q: Question) -> QuestionView:
    return QuestionView(id=q.id, skill_id=q.skill_id, question_text=q.question_text, option_a=q.option_a,
                        option_b=q.option_b, option_c=q.option_c, option_d=q.option_d, difficulty=q.difficulty)


class QuestionSetProvider:
    """Cache-aside reader for the questions of a skill.

    The permutation is drawn once, when the cache entry is populated, so every
    taker inside one TTL window sees the same order. Hits are returned as-is.
    """

    def __init__(self, store: Store, cache: Cache, ttl: int = QUESTION_SET_TTL,
                 rng: Optional[random.Random] = None):
        self.store = store
        self.cache = cache
        self.ttl = ttl
        self.rng = rng or random.Random()

    def get_question_set(self, skill_id: int) -> List[QuestionView]:
        key = question_set_key(skill_id)
        raw = self.cache.get(key)
        if raw is not None:
            try:
                questions = QuestionSetPayload.model_validate_json(raw).questions
            except ValidationError:
                logger.warning("discarding unreadable cache entry %s", key)
            else:
                if questions:
                    return questions

        if self.store.find_skill(skill_id) is None:
            raise SkillNotFound(skill_id)
        rows = self.store.list_questions_by_skill(skill_id, random_order=True, rng=self.rng)
        if not rows:
            raise NotFound(f"No questions available for skill {skill_id}")
        questions = [question_view(q) for q in rows]
        self.cache.set_with_ttl(key, QuestionSetPayload(questions=questions).model_dump_json(), self.ttl)
        logger.debug("cached %d questions for skill %s", len(questions), skill_id)
        return questions
