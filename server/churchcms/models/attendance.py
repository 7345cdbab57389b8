from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from churchcms.core.db import Base

AttendanceMethod = Enum("manual", "qr_code", name="attendance_method")


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"
    __table_args__ = (
        UniqueConstraint("member_id", "service_id", name="uq_attendance_member_service"),
    )

    id = Column(Integer, primary_key=True)
    member_id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id", ondelete="CASCADE"), nullable=False, index=True)
    check_in_time = Column(DateTime, default=datetime.utcnow, nullable=False)
    method = Column(AttendanceMethod, nullable=False)
    device_id = Column(String(120), nullable=True)
    location = Column(String(255), nullable=True)

    member = relationship("Member", back_populates="attendance")
    service = relationship("Service", back_populates="attendance")
