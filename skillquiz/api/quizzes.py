from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from typing import List, Optional
from skillquiz.api.deps import get_quiz_service
from skillquiz.core.auth import Identity, get_current_user
from skillquiz.models.schemas import AnswerIn, AttemptDetail, AttemptHistory, AttemptResult, QuestionSet
from skillquiz.services.quiz_service import QuizService

router = APIRouter()

class QuizSubmission(BaseModel):
    skill_id: int
    answers: List[AnswerIn]
    time_taken_seconds: Optional[int] = Field(default=None, ge=0)

class SubmissionResult(AttemptResult):
    message: str = "Quiz submitted successfully"

@router.get("/start/{skill_id}", response_model=QuestionSet)
def start_quiz(skill_id: int, user: Identity = Depends(get_current_user), svc: QuizService = Depends(get_quiz_service)):
    return svc.start_quiz(skill_id)

@router.post("/submit", response_model=SubmissionResult)
def submit_quiz(payload: QuizSubmission, user: Identity = Depends(get_current_user), svc: QuizService = Depends(get_quiz_service)):
    result = svc.submit_quiz(user.user_id, payload.skill_id, payload.answers, payload.time_taken_seconds)
    return SubmissionResult(**result.model_dump())

@router.get("/history", response_model=AttemptHistory)
def history(page: int = Query(1, ge=1), limit: int = Query(10, ge=1, le=100),
            user: Identity = Depends(get_current_user), svc: QuizService = Depends(get_quiz_service)):
    return svc.history(user.user_id, page, limit)

@router.get("/attempt/{attempt_id}", response_model=AttemptDetail)
def attempt_detail(attempt_id: int, user: Identity = Depends(get_current_user), svc: QuizService = Depends(get_quiz_service)):
    return svc.attempt_detail(user.user_id, attempt_id)
