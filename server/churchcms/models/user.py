from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, event
from sqlalchemy.orm import relationship

from churchcms.core.db import Base
from churchcms.models.role import Role, UserRole, check_scope


def _new_user_id() -> str:
    return str(uuid4())


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_user_id)
    email = Column(String(255), unique=True, nullable=False, index=True)
    username = Column(String(150), unique=True, nullable=True, index=True)
    first_name = Column(String(120), nullable=True)
    last_name = Column(String(120), nullable=True)
    title = Column(String(50), nullable=True)
    password = Column(String(255), nullable=False)
    role = Column(UserRole, nullable=False, default=Role.MEMBER.value)
    group_id = Column(Integer, nullable=True, index=True)
    pcf_id = Column(Integer, nullable=True, index=True)
    cell_id = Column(Integer, nullable=True, index=True)
    member_id = Column(Integer, ForeignKey("members.id", ondelete="SET NULL"), nullable=True, unique=True)
    force_password_change = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    member = relationship("Member", back_populates="user")

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        check_scope(self.role, self.group_id, self.pcf_id, self.cell_id)

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


@event.listens_for(User, "before_insert")
@event.listens_for(User, "before_update")
def _validate_user_scope(mapper, connection, target: User) -> None:
    check_scope(target.role, target.group_id, target.pcf_id, target.cell_id)
