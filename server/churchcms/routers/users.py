from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from churchcms.auth.deps import get_current_user, require_roles
from churchcms.core.db import get_db
from churchcms.models.role import Role, as_role
from churchcms.models.user import User
from churchcms.schemas.member import MemberConvertRequest
from churchcms.schemas.user import UserOut, UserSummary
from churchcms.services.authorization import authorize_member
from churchcms.services.directory import get_member_or_404
from churchcms.services.user_accounts import ensure_can_grant, provision_user

router = APIRouter(tags=["users"])

# Leadership roles need a hierarchy slot and are granted through leader assignment.
CONVERTIBLE_ROLES = frozenset({Role.MEMBER, Role.ADMIN})


@router.get("/users", response_model=list[UserSummary])
def list_users(
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
) -> list[UserSummary]:
    users = db.query(User).order_by(User.first_name.asc(), User.last_name.asc(), User.email.asc()).all()
    return [UserSummary.from_orm(user) for user in users]


@router.post("/admin/members/{member_id}/convert", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def convert_member(
    member_id: int,
    payload: MemberConvertRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(Role.ADMIN, Role.GROUP_PASTOR)),
) -> UserOut:
    role = as_role(payload.role)
    ensure_can_grant(current_user, role)
    if role not in CONVERTIBLE_ROLES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"The {role.value} role can only be granted through leader assignment",
        )

    member = get_member_or_404(db, member_id)
    if as_role(current_user.role) is not Role.ADMIN:
        authorize_member(db, current_user, member.cell_id)

    user = provision_user(db, current_user, member, payload.email, payload.password, role)
    db.commit()
    return UserOut.from_orm(user)
