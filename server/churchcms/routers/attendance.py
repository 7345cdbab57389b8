from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from churchcms.auth.deps import get_current_user
from churchcms.core.db import get_db
from churchcms.models.user import User
from churchcms.schemas.attendance import AttendanceMark, AttendanceOut, AttendanceStats, AttendanceWithMember
from churchcms.services.attendance import attendance_stats, list_attendance, mark_attendance
from churchcms.services.authorization import ensure_can_mark_attendance

router = APIRouter(prefix="/attendance", tags=["attendance"])


@router.post("", response_model=AttendanceOut, status_code=status.HTTP_201_CREATED)
def mark(
    payload: AttendanceMark,
    response: Response,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> AttendanceOut:
    ensure_can_mark_attendance(current_user)
    record, created = mark_attendance(db, current_user, payload)
    db.commit()
    if not created:
        response.status_code = status.HTTP_200_OK
    return AttendanceOut.from_orm(record)


@router.get("", response_model=list[AttendanceWithMember])
def list_records(
    service_id: int = Query(..., alias="serviceId", ge=1),
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
) -> list[AttendanceWithMember]:
    return [AttendanceWithMember.from_orm(record) for record in list_attendance(db, service_id)]


@router.get("/stats", response_model=list[AttendanceStats])
def stats(
    service_id: int | None = Query(default=None, alias="serviceId", ge=1),
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
) -> list[AttendanceStats]:
    return attendance_stats(db, service_id)
