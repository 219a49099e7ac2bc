from fastapi import APIRouter, Depends, Query
from typing import List, Literal
from skillquiz.api.deps import get_quiz_service
from skillquiz.core.auth import Identity, get_current_user, require_roles
from skillquiz.models.schemas import AdminStats, SkillGap, TimeAnalysis, UserOverview, UserPerformance
from skillquiz.services.quiz_service import QuizService

router = APIRouter()

@router.get("/user-performance", response_model=UserPerformance)
def user_performance(user: Identity = Depends(get_current_user), svc: QuizService = Depends(get_quiz_service)):
    return svc.get_user_performance(user.user_id)

@router.get("/admin-stats", response_model=AdminStats, dependencies=[Depends(require_roles("admin"))])
def admin_stats(svc: QuizService = Depends(get_quiz_service)):
    return svc.get_admin_stats()

@router.get("/skill-gaps", response_model=List[SkillGap], dependencies=[Depends(require_roles("admin"))])
def skill_gaps(svc: QuizService = Depends(get_quiz_service)):
    return svc.reports.skill_gaps()

@router.get("/time-analysis", response_model=TimeAnalysis, dependencies=[Depends(require_roles("admin"))])
def time_analysis(period: Literal["week", "month", "quarter"] = Query("week"), svc: QuizService = Depends(get_quiz_service)):
    return svc.reports.time_analysis(period)

@router.get("/users", response_model=List[UserOverview], dependencies=[Depends(require_roles("admin"))])
def user_overview(svc: QuizService = Depends(get_quiz_service)):
    return svc.reports.user_overview()
