from fastapi import APIRouter, Depends
from typing import List
from skillquiz.api.deps import get_question_manager
from skillquiz.core.auth import get_current_user, require_roles
from skillquiz.models.schemas import QuestionDetail, QuestionIn, QuestionView, SkillWithCount
from skillquiz.services.questions import QuestionManager

router = APIRouter()

@router.get("", response_model=List[QuestionDetail], dependencies=[Depends(require_roles("admin"))])
def list_questions(mgr: QuestionManager = Depends(get_question_manager)):
    return mgr.list_questions()

@router.get("/skills", response_model=List[SkillWithCount], dependencies=[Depends(get_current_user)])
def list_skills(mgr: QuestionManager = Depends(get_question_manager)):
    return mgr.list_skills()

@router.get("/skill/{skill_id}", response_model=List[QuestionView], dependencies=[Depends(get_current_user)])
def questions_for_skill(skill_id: int, mgr: QuestionManager = Depends(get_question_manager)):
    return mgr.questions_for_skill(skill_id)

@router.post("", status_code=201, dependencies=[Depends(require_roles("admin"))])
def create_question(payload: QuestionIn, mgr: QuestionManager = Depends(get_question_manager)):
    question_id = mgr.create(payload)
    return {"id": question_id, "message": "Question created successfully"}

@router.put("/{question_id}", dependencies=[Depends(require_roles("admin"))])
def update_question(question_id: int, payload: QuestionIn, mgr: QuestionManager = Depends(get_question_manager)):
    mgr.update(question_id, payload)
    return {"message": "Question updated successfully"}

@router.delete("/{question_id}", dependencies=[Depends(require_roles("admin"))])
def delete_question(question_id: int, mgr: QuestionManager = Depends(get_question_manager)):
    mgr.delete(question_id)
    return {"message": "Question deleted successfully"}
