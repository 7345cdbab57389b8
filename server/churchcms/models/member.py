from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from churchcms.core.db import Base
from churchcms.models.role import Designation, MemberDesignation

MemberStatus = Enum("Active", "Inactive", name="member_status")
MemberGender = Enum("Male", "Female", name="member_gender")


class Member(Base):
    __tablename__ = "members"
    __table_args__ = (
        CheckConstraint("birth_day IS NULL OR (birth_day BETWEEN 1 AND 31)", name="ck_members_birth_day"),
        CheckConstraint("birth_month IS NULL OR (birth_month BETWEEN 1 AND 12)", name="ck_members_birth_month"),
    )

    id = Column(Integer, primary_key=True)
    full_name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True, unique=True, index=True)
    gender = Column(MemberGender, nullable=True)
    title = Column(String(50), nullable=True)
    designation = Column(MemberDesignation, nullable=False, default=Designation.MEMBER.value)
    birth_day = Column(Integer, nullable=True)
    birth_month = Column(Integer, nullable=True)
    status = Column(MemberStatus, nullable=False, default="Active")
    cell_id = Column(Integer, ForeignKey("cells.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    cell = relationship("Cell", back_populates="members")
    user = relationship("User", back_populates="member", uselist=False)
    attendance = relationship(
        "AttendanceRecord",
        back_populates="member",
        cascade="all, delete-orphan",
    )
