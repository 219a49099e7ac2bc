from fastapi import Depends
from sqlalchemy.orm import Session
from skillquiz.core.cache import Cache, get_cache
from skillquiz.core.database import get_db
from skillquiz.services.invalidation import CacheInvalidator
from skillquiz.services.questions import QuestionManager
from skillquiz.services.quiz_service import QuizService
from skillquiz.services.store import Store

def get_store(db: Session = Depends(get_db)) -> Store:
    return Store(db)

def get_quiz_service(store: Store = Depends(get_store), cache: Cache = Depends(get_cache)) -> QuizService:
    return QuizService(store, cache)

def get_question_manager(store: Store = Depends(get_store), cache: Cache = Depends(get_cache)) -> QuestionManager:
    return QuestionManager(store, CacheInvalidator(cache))
