from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from churchcms.auth.deps import get_current_user
from churchcms.core.db import get_db
from churchcms.models.member import Member
from churchcms.models.role import Level
from churchcms.models.user import User
from churchcms.schemas.member import MemberCreate, MemberListResponse, MemberOut, MemberUpdate
from churchcms.services.authorization import authorize_member, resolve_scope
from churchcms.services.directory import (
    build_members_query,
    ensure_cell_exists,
    ensure_member_email_available,
    get_member_or_404,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/members", tags=["members"])

# Columns that cannot be cleared through an update.
REQUIRED_FIELDS = {"full_name", "designation", "status"}


@router.get("", response_model=MemberListResponse)
@router.get("/", response_model=MemberListResponse, include_in_schema=False)
def list_members(
    *,
    q: str | None = Query(default=None),
    cell_id: int | None = Query(default=None, ge=1),
    status_filter: str | None = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MemberListResponse:
    scope = resolve_scope(db, current_user)
    query = build_members_query(db, scope, q=q, cell_id=cell_id, status_filter=status_filter)
    items = query.all()
    return MemberListResponse(items=[MemberOut.from_orm(member) for member in items], total=len(items))


@router.post("", response_model=MemberOut, status_code=status.HTTP_201_CREATED)
@router.post("/", response_model=MemberOut, status_code=status.HTTP_201_CREATED, include_in_schema=False)
def create_member(
    *,
    payload: MemberCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MemberOut:
    authorize_member(db, current_user, payload.cell_id)
    ensure_cell_exists(db, payload.cell_id)
    ensure_member_email_available(db, payload.email)

    member = Member(**payload.dict())
    db.add(member)
    db.commit()
    db.refresh(member)
    logger.info("member_created", extra={"member_id": member.id, "actor_id": current_user.id})
    return MemberOut.from_orm(member)


@router.get("/{member_id}", response_model=MemberOut)
def get_member(
    member_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MemberOut:
    member = get_member_or_404(db, member_id)
    scope = resolve_scope(db, current_user)
    if not scope.allows(Level.MEMBER, member.cell_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="This member is outside your scope")
    return MemberOut.from_orm(member)


@router.put("/{member_id}", response_model=MemberOut)
@router.patch("/{member_id}", response_model=MemberOut)
def update_member(
    *,
    member_id: int,
    payload: MemberUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MemberOut:
    member = get_member_or_404(db, member_id)
    authorize_member(db, current_user, member.cell_id)

    changes = payload.dict(exclude_unset=True)
    if "cell_id" in changes and changes["cell_id"] != member.cell_id:
        authorize_member(db, current_user, changes["cell_id"])
        ensure_cell_exists(db, changes["cell_id"])
    if member.user is not None and changes.get("designation") not in (None, member.designation):
        # Designation of an account holder follows their role.
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Designation of a member with a user account changes through leader assignment",
        )
    if changes.get("email"):
        ensure_member_email_available(db, changes["email"], exclude_member_id=member.id)

    for field, value in changes.items():
        if value is None and field in REQUIRED_FIELDS:
            continue
        setattr(member, field, value)

    db.commit()
    db.refresh(member)
    return MemberOut.from_orm(member)


@router.delete("/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_member(
    member_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Response:
    member = get_member_or_404(db, member_id)
    authorize_member(db, current_user, member.cell_id)
    if member.user is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Member has a linked user account and cannot be deleted",
        )

    db.delete(member)
    db.commit()
    logger.info("member_deleted", extra={"member_id": member_id, "actor_id": current_user.id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
