from __future__ import annotations

from pydantic import BaseModel


class UserOut(BaseModel):
    id: str
    email: str
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    title: str | None = None
    role: str
    group_id: int | None = None
    pcf_id: int | None = None
    cell_id: int | None = None
    member_id: int | None = None
    force_password_change: bool = False

    class Config:
        from_attributes = True


class UserSummary(BaseModel):
    id: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    title: str | None = None
    role: str

    class Config:
        from_attributes = True
