import logging
from typing import List
from skillquiz.core.errors import SkillNotFound
from skillquiz.models.schemas import QuestionDetail, QuestionIn, QuestionView, SkillWithCount
from skillquiz.services.invalidation import CacheInvalidator
from skillquiz.services.question_sets import question_view
from skillquiz.services.store import Store

logger = logging.getLogger(__name__)


class QuestionManager:
    """Admin-side question bank writes. Each write commits first, then drops
    the cached question set of every skill it touched."""

    def __init__(self, store: Store, invalidator: CacheInvalidator):
        self.store = store
        self.invalidator = invalidator

    def list_skills(self) -> List[SkillWithCount]:
        return self.store.list_skills()

    def list_questions(self) -> List[QuestionDetail]:
        return self.store.list_questions()

    def questions_for_skill(self, skill_id: int) -> List[QuestionView]:
        """Fresh shuffle straight from the store; unknown or empty skills give []."""
        return [question_view(q) for q in self.store.list_questions_by_skill(skill_id, random_order=True)]

    def _require_skill(self, skill_id: int) -> None:
        if self.store.find_skill(skill_id) is None:
            raise SkillNotFound(skill_id)

    def create(self, data: QuestionIn) -> int:
        self._require_skill(data.skill_id)
        with self.store.transaction():
            question_id = self.store.insert_question(data).id
        logger.info("created question %s in skill %s", question_id, data.skill_id)
        self.invalidator.question_sets(data.skill_id)
        return question_id

    def update(self, question_id: int, data: QuestionIn) -> None:
        self._require_skill(data.skill_id)
        with self.store.transaction():
            _, old_skill_id = self.store.update_question(question_id, data)
        logger.info("updated question %s (skill %s -> %s)", question_id, old_skill_id, data.skill_id)
        self.invalidator.question_sets(old_skill_id, data.skill_id)

    def delete(self, question_id: int) -> None:
        with self.store.transaction():
            skill_id = self.store.delete_question(question_id)
        logger.info("deleted question %s from skill %s", question_id, skill_id)
        self.invalidator.question_sets(skill_id)
