import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from churchcms.auth.deps import get_current_user
from churchcms.auth.security import hash_password, verify_password
from churchcms.core.db import get_db
from churchcms.models.user import User
from churchcms.schemas.auth import PasswordChangeRequest
from churchcms.services.user_accounts import validate_password_length

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user", tags=["account"])


@router.post("/change-password")
def change_password(
    payload: PasswordChangeRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict[str, str]:
    if not payload.current_password or not payload.new_password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password and new password are required",
        )
    if not verify_password(payload.current_password, user.password):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect")
    try:
        validate_password_length(payload.new_password)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    user.password = hash_password(payload.new_password)
    user.force_password_change = False
    db.commit()
    logger.info("password_changed", extra={"user_id": user.id})
    return {"message": "Password updated successfully"}
