from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, validator

from churchcms.models.role import Designation, Role

ALLOWED_MEMBER_STATUSES = {"Active", "Inactive"}
ALLOWED_MEMBER_GENDERS = {"Male", "Female"}
ALLOWED_DESIGNATIONS = {designation.value for designation in Designation}


def _clean_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


class MemberBase(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = None
    gender: Optional[str] = None
    title: Optional[str] = Field(None, max_length=50)
    designation: str = Field(default=Designation.MEMBER.value)
    birth_day: Optional[int] = Field(None, ge=1, le=31)
    birth_month: Optional[int] = Field(None, ge=1, le=12)
    status: str = Field(default="Active")
    cell_id: Optional[int] = Field(None, ge=1)

    @validator("full_name")
    def validate_full_name(cls, value: str) -> str:
        cleaned = " ".join(value.split())
        if not cleaned:
            raise ValueError("Full name is required")
        return cleaned

    @validator("email", "phone", "title", pre=True)
    def blank_to_none(cls, value):
        if isinstance(value, str):
            return _clean_optional(value)
        return value

    @validator("gender")
    def validate_gender(cls, value: Optional[str]) -> Optional[str]:
        if value and value not in ALLOWED_MEMBER_GENDERS:
            raise ValueError("Invalid gender value")
        return value

    @validator("status")
    def validate_status(cls, value: str) -> str:
        if value not in ALLOWED_MEMBER_STATUSES:
            raise ValueError("Invalid status value")
        return value

    @validator("designation")
    def validate_designation(cls, value: str) -> str:
        if value not in ALLOWED_DESIGNATIONS:
            raise ValueError("Invalid designation value")
        return value


class MemberCreate(MemberBase):
    pass


class MemberUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = None
    gender: Optional[str] = None
    title: Optional[str] = Field(None, max_length=50)
    designation: Optional[str] = None
    birth_day: Optional[int] = Field(None, ge=1, le=31)
    birth_month: Optional[int] = Field(None, ge=1, le=12)
    status: Optional[str] = None
    cell_id: Optional[int] = Field(None, ge=1)

    @validator("email", "phone", "title", pre=True)
    def blank_to_none(cls, value):
        if isinstance(value, str):
            return _clean_optional(value)
        return value

    @validator("gender")
    def validate_gender(cls, value: Optional[str]) -> Optional[str]:
        if value and value not in ALLOWED_MEMBER_GENDERS:
            raise ValueError("Invalid gender value")
        return value

    @validator("status")
    def validate_status(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in ALLOWED_MEMBER_STATUSES:
            raise ValueError("Invalid status value")
        return value

    @validator("designation")
    def validate_designation(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and value not in ALLOWED_DESIGNATIONS:
            raise ValueError("Invalid designation value")
        return value


class MemberOut(BaseModel):
    id: int
    full_name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    gender: Optional[str] = None
    title: Optional[str] = None
    designation: str
    birth_day: Optional[int] = None
    birth_month: Optional[int] = None
    status: str
    cell_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class MemberListResponse(BaseModel):
    items: List[MemberOut]
    total: int


class MemberConvertRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)
    role: Role = Role.MEMBER
