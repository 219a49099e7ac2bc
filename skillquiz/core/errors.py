"""
Error taxonomy shared by the quiz services and translated to HTTP in main.py.
"""


class QuizError(Exception):
    """Base class for errors raised by the quiz services."""

    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFound(QuizError):
    status_code = 404


class SkillNotFound(NotFound):
    def __init__(self, skill_id: int):
        super().__init__(f"Skill {skill_id} not found")
        self.skill_id = skill_id


class QuestionNotFound(NotFound):
    def __init__(self, question_id: int):
        super().__init__(f"Question {question_id} not found")
        self.question_id = question_id


class AttemptNotFound(NotFound):
    def __init__(self, attempt_id: int):
        super().__init__(f"Quiz attempt {attempt_id} not found")
        self.attempt_id = attempt_id


class InvalidInput(QuizError):
    status_code = 400


class StoreUnavailable(QuizError):
    status_code = 503


class CacheUnavailable(QuizError):
    """Raised by nothing outside core.cache; the Cache wrapper recovers locally."""

    status_code = 503
