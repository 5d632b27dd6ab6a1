from datetime import timedelta
from functools import lru_cache
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from ..core.config import settings
from ..core.errors import Unauthenticated
from ..db.repository import TaskRepository
from ..db.session import get_session
from ..services.identity import TokenIdentity
from ..services.tasks import TaskService

bearer = HTTPBearer(auto_error=False)

@lru_cache
def get_identity() -> TokenIdentity:
    return TokenIdentity(
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
        ttl=timedelta(days=settings.TOKEN_TTL_DAYS),
    )

def get_owner_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    identity: TokenIdentity = Depends(get_identity),
) -> str:
    if credentials is None:
        raise Unauthenticated("No token, authorization denied")
    return identity.authenticate(credentials.credentials)

def get_task_service(session: Session = Depends(get_session)) -> TaskService:
    return TaskService(TaskRepository(session))
