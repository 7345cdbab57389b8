from __future__ import annotations

import logging
from collections import Counter

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from churchcms.models.attendance import AttendanceRecord
from churchcms.models.member import Member
from churchcms.models.service import Service
from churchcms.models.user import User
from churchcms.schemas.attendance import AttendanceMark, AttendanceStats

logger = logging.getLogger(__name__)

NO_CELL = 0


def _existing_record(db: Session, member_id: int, service_id: int) -> AttendanceRecord | None:
    return (
        db.query(AttendanceRecord)
        .filter(AttendanceRecord.member_id == member_id, AttendanceRecord.service_id == service_id)
        .first()
    )


def get_service_or_404(db: Session, service_id: int) -> Service:
    service = db.get(Service, service_id)
    if not service:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Service not found")
    return service


def mark_attendance(db: Session, actor: User, payload: AttendanceMark) -> tuple[AttendanceRecord, bool]:
    """Record a check-in, returning ``(record, created)``.

    A second mark for the same member and service returns the first record.
    """

    if not db.get(Member, payload.member_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")
    get_service_or_404(db, payload.service_id)

    existing = _existing_record(db, payload.member_id, payload.service_id)
    if existing is not None:
        return existing, False

    record = AttendanceRecord(
        member_id=payload.member_id,
        service_id=payload.service_id,
        method=payload.method,
        location=payload.location,
        device_id=payload.device_id,
    )
    db.add(record)
    try:
        db.flush()
    except IntegrityError:
        # Concurrent check-in for the same pair won the insert.
        db.rollback()
        existing = _existing_record(db, payload.member_id, payload.service_id)
        if existing is None:
            raise
        return existing, False

    logger.info(
        "attendance_marked",
        extra={
            "attendance_id": record.id,
            "member_id": record.member_id,
            "service_id": record.service_id,
            "method": record.method,
            "actor_id": actor.id,
        },
    )
    return record, True


def list_attendance(db: Session, service_id: int) -> list[AttendanceRecord]:
    get_service_or_404(db, service_id)
    return (
        db.query(AttendanceRecord)
        .options(selectinload(AttendanceRecord.member))
        .filter(AttendanceRecord.service_id == service_id)
        .order_by(AttendanceRecord.check_in_time.asc(), AttendanceRecord.id.asc())
        .all()
    )


def _service_stats(db: Session, service: Service) -> AttendanceStats:
    rows = (
        db.query(AttendanceRecord.method, Member.cell_id)
        .join(Member, Member.id == AttendanceRecord.member_id)
        .filter(AttendanceRecord.service_id == service.id)
        .all()
    )
    by_method = Counter(method for method, _ in rows)
    by_cell = Counter(cell_id if cell_id is not None else NO_CELL for _, cell_id in rows)
    return AttendanceStats(
        service_id=service.id,
        service_name=service.name,
        total_present=len(rows),
        by_method=dict(by_method),
        by_cell=dict(by_cell),
    )


def attendance_stats(db: Session, service_id: int | None = None) -> list[AttendanceStats]:
    if service_id is not None:
        return [_service_stats(db, get_service_or_404(db, service_id))]
    services = db.query(Service).order_by(Service.date.desc(), Service.id.desc()).all()
    return [_service_stats(db, service) for service in services]
