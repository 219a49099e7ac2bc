from typing import Sequence
from skillquiz.models.schemas import AnswerIn, ScoreResult
from skillquiz.services.store import Store


def percent(correct: int, total: int) -> int:
    """correct/total as a whole percentage, halves rounded away from zero; 0 when total is 0."""
    if total == 0:
        return 0
    return (200 * correct + total) // (2 * total)


class ScoringEngine:
    """Scores a submission against the answer key held by the store.

    Only ever given a Store: the answer key is never read from the cache.
    Each submitted item is scored on its own, so a question submitted twice
    counts twice, and an id the store does not know is counted in the
    denominator as a wrong answer.
    """

    def __init__(self, store: Store):
        self.store = store

    def score(self, skill_id: int, answers: Sequence[AnswerIn]) -> ScoreResult:
        correctness, found = [], []
        for a in answers:
            correct_option = self.store.find_question_correct_option(a.question_id)
            found.append(correct_option is not None)
            correctness.append(correct_option is not None and a.selected_option == correct_option)
        correct = sum(correctness)
        total = len(answers)
        return ScoreResult(score=percent(correct, total), correct_count=correct,
                           total_questions=total, correctness=correctness, found=found)
