from __future__ import annotations

import logging

from fastapi import HTTPException, status
from sqlalchemy import false, func, or_
from sqlalchemy.orm import Query, Session

from churchcms.core.config import settings
from churchcms.models.hierarchy import Cell, Church
from churchcms.models.member import Member
from churchcms.schemas.member import ALLOWED_MEMBER_STATUSES
from churchcms.services.authorization import Scope

logger = logging.getLogger(__name__)


def get_church(db: Session) -> Church | None:
    return db.query(Church).order_by(Church.id.asc()).first()


def ensure_church(db: Session, name: str | None = None, address: str | None = None) -> Church:
    """Return the singleton church, creating it when none exists yet."""

    church = get_church(db)
    if church is not None:
        return church
    church = Church(name=name or settings.CHURCH_NAME, address=address if address is not None else settings.CHURCH_ADDRESS)
    db.add(church)
    db.flush()
    logger.info("church_created", extra={"church_id": church.id})
    return church


def build_members_query(
    db: Session,
    scope: Scope,
    *,
    q: str | None = None,
    cell_id: int | None = None,
    status_filter: str | None = None,
) -> Query:
    query: Query = db.query(Member)

    visible_cells = scope.member_cell_ids
    if visible_cells is not None:
        if not visible_cells:
            return query.filter(false())
        query = query.filter(Member.cell_id.in_(sorted(visible_cells)))

    if cell_id is not None:
        query = query.filter(Member.cell_id == cell_id)

    if status_filter:
        if status_filter not in ALLOWED_MEMBER_STATUSES:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Invalid status filter")
        query = query.filter(Member.status == status_filter)

    if q:
        pattern = f"%{q.lower()}%"
        query = query.filter(
            or_(
                func.lower(Member.full_name).like(pattern),
                func.lower(Member.email).like(pattern),
                func.lower(Member.phone).like(pattern),
            )
        )

    return query.order_by(Member.full_name.asc(), Member.id.asc())


def get_member_or_404(db: Session, member_id: int) -> Member:
    member = db.get(Member, member_id)
    if not member:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")
    return member


def ensure_cell_exists(db: Session, cell_id: int | None) -> None:
    if cell_id is not None and db.get(Cell, cell_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cell not found")


def ensure_member_email_available(db: Session, email: str | None, exclude_member_id: int | None = None) -> None:
    if not email:
        return
    query = db.query(Member.id).filter(func.lower(Member.email) == email.lower())
    if exclude_member_id is not None:
        query = query.filter(Member.id != exclude_member_id)
    if query.first() is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"A member with email {email} already exists")
