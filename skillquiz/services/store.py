"""
Durable relational storage for skills, questions and quiz attempts.

Pure CRUD/query operations over a SQLAlchemy session; no caching happens here.
Any SQLAlchemy failure is logged and re-raised as StoreUnavailable so callers
never have to know about the driver.
"""
import logging
import math
import random
from contextlib import contextmanager
from datetime import datetime
from functools import wraps
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import case, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from skillquiz.core.errors import QuestionNotFound, StoreUnavailable
from skillquiz.models.orm import Question, QuizAnswer, QuizAttempt, Skill, User
from skillquiz.models.schemas import (
    AdminRecentAttempt, AdminStats, AnswerDetail, AttemptDetail, AttemptHistory, AttemptSummary,
    OverallStats, Pagination, QuestionCounts, QuestionDetail, QuestionIn, QuizCounts, RecentAttempt,
    SkillGap, SkillOverview, SkillPerformance, SkillWithCount, UserCounts, UserOverview, UserPerformance,
)

logger = logging.getLogger(__name__)


def _avg(value) -> Optional[float]:
    # AVG comes back as Decimal on postgres and float on sqlite
    return round(float(value), 2) if value is not None else None


def store_op(fn):
    @wraps(fn)
    def wrapper(self, *args, **kwargs):
        try:
            return fn(self, *args, **kwargs)
        except SQLAlchemyError as e:
            logger.exception("store operation %s failed", fn.__name__)
            raise StoreUnavailable(f"Store operation {fn.__name__} failed") from e
    return wrapper


class Store:
    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def transaction(self):
        """Commit everything done inside the block once, or roll all of it back."""
        try:
            yield self
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("store commit failed")
            raise StoreUnavailable("Store transaction failed") from e
        except Exception:
            self.db.rollback()
            raise

    # ---- skills ----

    @store_op
    def find_skill(self, skill_id: int) -> Optional[Skill]:
        return self.db.get(Skill, skill_id)

    @store_op
    def list_skills(self) -> List[SkillWithCount]:
        stmt = (
            select(Skill.id, Skill.name, func.count(Question.id))
            .outerjoin(Question, Question.skill_id == Skill.id)
            .group_by(Skill.id, Skill.name)
            .order_by(Skill.name)
        )
        return [SkillWithCount(id=r[0], name=r[1], question_count=r[2]) for r in self.db.execute(stmt).all()]

    # ---- questions ----

    @store_op
    def list_questions_by_skill(self, skill_id: int, random_order: bool = False,
                                rng: Optional[random.Random] = None) -> List[Question]:
        rows = list(self.db.scalars(select(Question).where(Question.skill_id == skill_id).order_by(Question.id)))
        if random_order:
            (rng or random).shuffle(rows)
        return rows

    @store_op
    def find_question_correct_option(self, question_id: int) -> Optional[str]:
        return self.db.scalar(select(Question.correct_option).where(Question.id == question_id))

    @store_op
    def find_question(self, question_id: int) -> Optional[Question]:
        return self.db.get(Question, question_id)

    @store_op
    def list_questions(self) -> List[QuestionDetail]:
        stmt = select(Question, Skill.name).join(Skill, Skill.id == Question.skill_id).order_by(Question.created_at.desc(), Question.id.desc())
        return [
            QuestionDetail(id=q.id, skill_id=q.skill_id, skill_name=name, question_text=q.question_text,
                           option_a=q.option_a, option_b=q.option_b, option_c=q.option_c, option_d=q.option_d,
                           correct_option=q.correct_option, difficulty=q.difficulty, created_at=q.created_at)
            for q, name in self.db.execute(stmt).all()
        ]

    @store_op
    def insert_question(self, data: QuestionIn) -> Question:
        q = Question(**data.model_dump())
        self.db.add(q); self.db.flush()
        return q

    @store_op
    def update_question(self, question_id: int, data: QuestionIn) -> Tuple[Question, int]:
        """Overwrite every field; returns the row and the skill it belonged to before."""
        q = self.db.get(Question, question_id)
        if q is None:
            raise QuestionNotFound(question_id)
        old_skill_id = q.skill_id
        for k, v in data.model_dump().items():
            setattr(q, k, v)
        self.db.flush()
        return q, old_skill_id

    @store_op
    def delete_question(self, question_id: int) -> int:
        q = self.db.get(Question, question_id)
        if q is None:
            raise QuestionNotFound(question_id)
        skill_id = q.skill_id
        self.db.delete(q); self.db.flush()
        return skill_id

    # ---- attempts ----

    @store_op
    def insert_attempt(self, user_id: int, skill_id: int, score: int, total_questions: int,
                       time_taken_seconds: Optional[int]) -> QuizAttempt:
        attempt = QuizAttempt(user_id=user_id, skill_id=skill_id, score=score,
                              total_questions=total_questions, time_taken_seconds=time_taken_seconds)
        self.db.add(attempt); self.db.flush()
        return attempt

    @store_op
    def insert_answers(self, attempt_id: int, rows: Iterable[Tuple[int, Optional[str], bool]]) -> int:
        answers = [QuizAnswer(attempt_id=attempt_id, question_id=qid, selected_option=opt, is_correct=ok)
                   for qid, opt, ok in rows]
        self.db.add_all(answers); self.db.flush()
        return len(answers)

    @store_op
    def attempt_history(self, user_id: int, page: int, limit: int) -> AttemptHistory:
        stmt = (
            select(QuizAttempt, Skill.name).join(Skill, Skill.id == QuizAttempt.skill_id)
            .where(QuizAttempt.user_id == user_id)
            .order_by(QuizAttempt.completed_at.desc(), QuizAttempt.id.desc())
            .limit(limit).offset((page - 1) * limit)
        )
        attempts = [_summary(a, name) for a, name in self.db.execute(stmt).all()]
        total = self.db.scalar(select(func.count(QuizAttempt.id)).where(QuizAttempt.user_id == user_id)) or 0
        return AttemptHistory(attempts=attempts,
                              pagination=Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit)))

    @store_op
    def attempt_detail(self, attempt_id: int, user_id: int) -> Optional[AttemptDetail]:
        row = self.db.execute(
            select(QuizAttempt, Skill.name).join(Skill, Skill.id == QuizAttempt.skill_id)
            .where(QuizAttempt.id == attempt_id, QuizAttempt.user_id == user_id)
        ).first()
        if row is None:
            return None
        stmt = (
            select(QuizAnswer, Question).join(Question, Question.id == QuizAnswer.question_id)
            .where(QuizAnswer.attempt_id == attempt_id).order_by(QuizAnswer.id)
        )
        answers = [
            AnswerDetail(question_id=a.question_id, selected_option=a.selected_option, is_correct=a.is_correct,
                         question_text=q.question_text, option_a=q.option_a, option_b=q.option_b,
                         option_c=q.option_c, option_d=q.option_d, correct_option=q.correct_option)
            for a, q in self.db.execute(stmt).all()
        ]
        return AttemptDetail(attempt=_summary(row[0], row[1]), answers=answers)

    # ---- aggregates ----

    @store_op
    def aggregate_user_performance(self, user_id: int, recent_limit: int) -> UserPerformance:
        total, avg, best, worst = self.db.execute(
            select(func.count(QuizAttempt.id), func.avg(QuizAttempt.score),
                   func.max(QuizAttempt.score), func.min(QuizAttempt.score))
            .where(QuizAttempt.user_id == user_id)
        ).one()
        overall = OverallStats(total_quizzes=total, average_score=_avg(avg), best_score=best, worst_score=worst)

        avg_score = func.avg(QuizAttempt.score)
        per_skill = self.db.execute(
            select(Skill.name, func.count(QuizAttempt.id), avg_score, func.max(QuizAttempt.score),
                   func.min(QuizAttempt.completed_at), func.max(QuizAttempt.completed_at))
            .join(Skill, Skill.id == QuizAttempt.skill_id)
            .where(QuizAttempt.user_id == user_id)
            .group_by(Skill.id, Skill.name)
            .order_by(avg_score.desc(), Skill.name)
        ).all()
        skills = [SkillPerformance(skill_name=r[0], quizzes_taken=r[1], average_score=_avg(r[2]), best_score=r[3],
                                   first_attempt=r[4], last_attempt=r[5]) for r in per_skill]

        recent = self.db.execute(
            select(QuizAttempt.score, QuizAttempt.completed_at, Skill.name, QuizAttempt.total_questions)
            .join(Skill, Skill.id == QuizAttempt.skill_id)
            .where(QuizAttempt.user_id == user_id)
            .order_by(QuizAttempt.completed_at.desc(), QuizAttempt.id.desc())
            .limit(recent_limit)
        ).all()
        recent_activity = [RecentAttempt(score=r[0], completed_at=r[1], skill_name=r[2], total_questions=r[3]) for r in recent]
        return UserPerformance(overall=overall, skills=skills, recent_activity=recent_activity)

    @store_op
    def aggregate_admin_stats(self, recent_limit: int) -> AdminStats:
        total_users, admins, regulars = self.db.execute(
            select(func.count(User.id),
                   func.coalesce(func.sum(case((User.role == "admin", 1), else_=0)), 0),
                   func.coalesce(func.sum(case((User.role == "user", 1), else_=0)), 0))
        ).one()
        attempts, avg, active = self.db.execute(
            select(func.count(QuizAttempt.id), func.avg(QuizAttempt.score), func.count(func.distinct(QuizAttempt.user_id)))
        ).one()
        questions, skills_with_questions = self.db.execute(
            select(func.count(Question.id), func.count(func.distinct(Question.skill_id)))
        ).one()

        # correlated subqueries keep the two one-to-many sides from multiplying each other
        q_count = select(func.count(Question.id)).where(Question.skill_id == Skill.id).scalar_subquery()
        a_count = select(func.count(QuizAttempt.id)).where(QuizAttempt.skill_id == Skill.id).scalar_subquery()
        a_avg = select(func.avg(QuizAttempt.score)).where(QuizAttempt.skill_id == Skill.id).scalar_subquery()
        overview = self.db.execute(select(Skill.name, q_count, a_count, a_avg).order_by(a_count.desc(), Skill.name)).all()

        recent = self.db.execute(
            select(QuizAttempt.score, QuizAttempt.completed_at, User.username, Skill.name)
            .join(User, User.id == QuizAttempt.user_id)
            .join(Skill, Skill.id == QuizAttempt.skill_id)
            .order_by(QuizAttempt.completed_at.desc(), QuizAttempt.id.desc())
            .limit(recent_limit)
        ).all()
        return AdminStats(
            users=UserCounts(total_users=total_users, admin_users=admins, regular_users=regulars),
            quizzes=QuizCounts(total_attempts=attempts, average_score=_avg(avg), active_users=active),
            questions=QuestionCounts(total_questions=questions, total_skills=skills_with_questions),
            skills_overview=[SkillOverview(skill_name=r[0], questions_count=r[1], attempts_count=r[2], average_score=_avg(r[3]))
                             for r in overview],
            recent_activity=[AdminRecentAttempt(score=r[0], completed_at=r[1], username=r[2], skill_name=r[3]) for r in recent],
        )

    @store_op
    def skill_gaps(self) -> List[SkillGap]:
        avg_score = func.avg(QuizAttempt.score)
        rows = self.db.execute(
            select(Skill.name, avg_score, func.count(QuizAttempt.id), func.count(func.distinct(QuizAttempt.user_id)),
                   func.min(QuizAttempt.score), func.max(QuizAttempt.score))
            .join(QuizAttempt, QuizAttempt.skill_id == Skill.id)
            .group_by(Skill.id, Skill.name)
            .order_by(avg_score.asc(), Skill.name)
        ).all()
        return [SkillGap(skill_name=r[0], average_score=_avg(r[1]), total_attempts=r[2], unique_users=r[3],
                         lowest_score=r[4], highest_score=r[5]) for r in rows]

    @store_op
    def user_overview(self) -> List[UserOverview]:
        rows = self.db.execute(
            select(User, func.count(QuizAttempt.id), func.avg(QuizAttempt.score), func.max(QuizAttempt.completed_at))
            .outerjoin(QuizAttempt, QuizAttempt.user_id == User.id)
            .group_by(User.id)
            .order_by(User.created_at.desc(), User.id.desc())
        ).all()
        return [UserOverview(id=u.id, username=u.username, email=u.email, role=u.role, created_at=u.created_at,
                             quizzes_taken=n, average_score=_avg(avg), last_activity=last)
                for u, n, avg, last in rows]

    @store_op
    def attempts_since(self, since: datetime) -> List[Tuple[datetime, int, int]]:
        stmt = select(QuizAttempt.completed_at, QuizAttempt.score, QuizAttempt.user_id).where(QuizAttempt.completed_at >= since)
        return [tuple(r) for r in self.db.execute(stmt).all()]

    # ---- users (read side of the identity collaborator) ----

    @store_op
    def get_or_create_user(self, username: str, role: str, email: Optional[str] = None) -> User:
        user = self.db.scalar(select(User).where(User.username == username))
        if user is None:
            user = User(username=username, role=role, email=email)
            self.db.add(user); self.db.flush()
        return user


def _summary(a: QuizAttempt, skill_name: str) -> AttemptSummary:
    return AttemptSummary(id=a.id, user_id=a.user_id, skill_id=a.skill_id, skill_name=skill_name, score=a.score,
                          total_questions=a.total_questions, time_taken_seconds=a.time_taken_seconds,
                          completed_at=a.completed_at)
