from typing import Generator
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.db.database import SessionLocal
from app.core.security import decode_access_token
from app.db.models.users import Users
from app.db.models.user_roles import UserRoles, Role
from app.services.ai.failure_recorder import FailureRecorder

security = HTTPBearer()

SCHEDULING_ROLES = [Role.ADMIN, Role.MANAGER, Role.SCHEDULER]


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> Users:
    user_id = decode_access_token(credentials.credentials)
    if user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user = db.query(Users).filter(Users.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")

    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account disabled")

    return user


def can_generate_schedule(db: Session, user: Users) -> bool:
    role = db.query(UserRoles).filter(
        UserRoles.user_id == user.id,
        UserRoles.role.in_(SCHEDULING_ROLES)
    ).first()
    return role is not None

def require_scheduler(
    db: Session = Depends(get_db),
    current_user: Users = Depends(get_current_user),
) -> Users:
    """Require user to have ADMIN, MANAGER or SCHEDULER role"""
    if not can_generate_schedule(db, current_user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Scheduler, manager or admin access required")

    return current_user

def get_failure_recorder(request: Request) -> FailureRecorder:
    """The application's generation failure buffer"""
    return request.app.state.failure_recorder
