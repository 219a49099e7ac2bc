"""
Pydantic structures passed between the quiz services and used verbatim as
cache payloads (``model_dump_json`` / ``model_validate_json``).
"""
from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, Field

Option = Literal["A", "B", "C", "D"]
Difficulty = Literal["Easy", "Medium", "Hard"]

class SkillOut(BaseModel):
    id: int
    name: str

class SkillWithCount(SkillOut):
    question_count: int

class QuestionView(BaseModel):
    """A question as shown to quiz takers. Has no correct_option on purpose."""
    id: int
    skill_id: int
    question_text: str
    option_a: str
    option_b: str
    option_c: str
    option_d: str
    difficulty: Difficulty

class QuestionSetPayload(BaseModel):
    questions: List[QuestionView]

class QuestionSet(BaseModel):
    skill: SkillOut
    questions: List[QuestionView]
    total_questions: int

class QuestionIn(BaseModel):
    skill_id: int
    question_text: str = Field(min_length=1)
    option_a: str = Field(min_length=1)
    option_b: str = Field(min_length=1)
    option_c: str = Field(min_length=1)
    option_d: str = Field(min_length=1)
    correct_option: Option
    difficulty: Difficulty

class QuestionDetail(QuestionIn):
    id: int
    skill_name: str
    created_at: datetime

class AnswerIn(BaseModel):
    question_id: int
    selected_option: Optional[Option] = None

class ScoreResult(BaseModel):
    score: int
    correct_count: int
    total_questions: int
    correctness: List[bool]
    found: List[bool]

class AttemptResult(BaseModel):
    attempt_id: int
    score: int
    correct_answers: int
    total_questions: int

# ---- per-user report ----

class OverallStats(BaseModel):
    total_quizzes: int
    average_score: Optional[float] = None
    best_score: Optional[int] = None
    worst_score: Optional[int] = None

class SkillPerformance(BaseModel):
    skill_name: str
    quizzes_taken: int
    average_score: Optional[float] = None
    best_score: Optional[int] = None
    first_attempt: Optional[datetime] = None
    last_attempt: Optional[datetime] = None

class RecentAttempt(BaseModel):
    score: int
    completed_at: datetime
    skill_name: str
    total_questions: int

class UserPerformance(BaseModel):
    overall: OverallStats
    skills: List[SkillPerformance]
    recent_activity: List[RecentAttempt]

# ---- admin dashboard ----

class UserCounts(BaseModel):
    total_users: int
    admin_users: int
    regular_users: int

class QuizCounts(BaseModel):
    total_attempts: int
    average_score: Optional[float] = None
    active_users: int

class QuestionCounts(BaseModel):
    total_questions: int
    total_skills: int

class SkillOverview(BaseModel):
    skill_name: str
    questions_count: int
    attempts_count: int
    average_score: Optional[float] = None

class AdminRecentAttempt(BaseModel):
    score: int
    completed_at: datetime
    username: str
    skill_name: str

class AdminStats(BaseModel):
    users: UserCounts
    quizzes: QuizCounts
    questions: QuestionCounts
    skills_overview: List[SkillOverview]
    recent_activity: List[AdminRecentAttempt]

class SkillGap(BaseModel):
    skill_name: str
    average_score: Optional[float] = None
    total_attempts: int
    unique_users: int
    lowest_score: Optional[int] = None
    highest_score: Optional[int] = None

class UserOverview(BaseModel):
    id: int
    username: str
    email: Optional[str] = None
    role: str
    created_at: datetime
    quizzes_taken: int
    average_score: Optional[float] = None
    last_activity: Optional[datetime] = None

class PeriodStats(BaseModel):
    period: str
    attempts_count: int
    average_score: float
    unique_users: int

class TimeAnalysis(BaseModel):
    period: Literal["week", "month", "quarter"]
    data: List[PeriodStats]

# ---- history ----

class AttemptSummary(BaseModel):
    id: int
    user_id: int
    skill_id: int
    skill_name: str
    score: int
    total_questions: int
    time_taken_seconds: Optional[int] = None
    completed_at: datetime

class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int

class AttemptHistory(BaseModel):
    attempts: List[AttemptSummary]
    pagination: Pagination

class AnswerDetail(BaseModel):
    question_id: int
    selected_option: Optional[str] = None
    is_correct: bool
    question_text: str
    option_a: str
    option_b: str
    option_c: str
    option_d: str
    correct_option: str

class AttemptDetail(BaseModel):
    attempt: AttemptSummary
    answers: List[AnswerDetail]
