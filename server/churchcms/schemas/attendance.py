from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from churchcms.schemas.member import MemberOut


class AttendanceMark(BaseModel):
    member_id: int = Field(..., ge=1)
    service_id: int = Field(..., ge=1)
    method: Literal["manual", "qr_code"] = "manual"
    location: str | None = Field(None, max_length=255)
    device_id: str | None = Field(None, max_length=120)


class AttendanceOut(BaseModel):
    id: int
    member_id: int
    service_id: int
    check_in_time: datetime
    method: str
    location: str | None = None
    device_id: str | None = None

    class Config:
        from_attributes = True


class AttendanceWithMember(AttendanceOut):
    member: MemberOut


class AttendanceStats(BaseModel):
    service_id: int
    service_name: str
    total_present: int
    by_method: dict[str, int]
    by_cell: dict[int, int]
