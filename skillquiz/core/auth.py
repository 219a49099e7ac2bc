from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel
from typing import Literal
import jwt
from datetime import datetime, timedelta, timezone
from skillquiz.core.config import APP_SECRET, TOKEN_TTL_MINUTES

Role = Literal["user", "admin"]

class Identity(BaseModel):
    user_id: int
    role: Role

bearer = HTTPBearer()

def create_token(user_id: int, role: str, ttl_minutes: int = TOKEN_TTL_MINUTES) -> str:
    now = datetime.now(timezone.utc)
    payload = {"sub": str(user_id), "role": role, "iat": int(now.timestamp()), "exp": int((now + timedelta(minutes=ttl_minutes)).timestamp())}
    return jwt.encode(payload, APP_SECRET, algorithm="HS256")

def get_current_user(creds: HTTPAuthorizationCredentials = Depends(bearer)) -> Identity:
    try:
        payload = jwt.decode(creds.credentials, APP_SECRET, algorithms=["HS256"])
        return Identity(user_id=int(payload["sub"]), role=payload.get("role", "user"))
    except (jwt.PyJWTError, KeyError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")

def require_roles(*required: str):
    def checker(user: Identity = Depends(get_current_user)):
        if user.role not in required:
            raise HTTPException(status_code=403, detail="Insufficient role")
        return user
    return checker
