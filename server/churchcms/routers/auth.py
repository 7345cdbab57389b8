import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from churchcms.auth.deps import get_current_user
from churchcms.auth.security import create_access_token, verify_password
from churchcms.core.db import get_db
from churchcms.models.role import as_role
from churchcms.models.user import User
from churchcms.schemas.auth import LoginRequest, TokenResponse
from churchcms.schemas.user import UserOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)) -> TokenResponse:
    identifier = payload.identifier.strip().lower()
    user = (
        db.query(User)
        .filter(or_(func.lower(User.email) == identifier, func.lower(User.username) == identifier))
        .first()
    )
    if not user or not verify_password(payload.password, user.password):
        logger.info("login_failed", extra={"identifier": identifier})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    token = create_access_token(subject=str(user.id), role=as_role(user.role).value)
    return TokenResponse(
        access_token=token,
        must_change_password=bool(user.force_password_change),
        user=UserOut.from_orm(user),
    )


@router.get("/user", response_model=UserOut)
def current_user_profile(user: User = Depends(get_current_user)) -> UserOut:
    return UserOut.from_orm(user)
