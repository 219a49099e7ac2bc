from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from typing import Optional
from skillquiz.api.deps import get_store
from skillquiz.core.auth import Role, create_token
from skillquiz.services.store import Store

router = APIRouter()

class MockLogin(BaseModel):
    username: str = Field(min_length=3, max_length=50, pattern=r"^[a-zA-Z0-9_]+$")
    role: Role = "user"
    email: Optional[str] = None

@router.post("/mock-login")
def mock_login(payload: MockLogin, store: Store = Depends(get_store)):
    with store.transaction():
        user = store.get_or_create_user(payload.username, payload.role, payload.email)
        user_id, role = user.id, user.role
    token = create_token(user_id, role)
    return {"access_token": token, "token_type": "bearer", "user": {"id": user_id, "username": payload.username, "role": role}}
