from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, root_validator


class ChurchCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    address: Optional[str] = Field(None, max_length=255)


class ChurchOut(BaseModel):
    id: int
    name: str
    address: Optional[str] = None

    class Config:
        from_attributes = True


class LeaderFields(BaseModel):
    """Leader selection shared by group, PCF and cell payloads.

    ``leader_id`` names an existing user account, ``member_id`` names a
    directory member who may not have an account yet. ``create_user`` with
    ``user_email``/``user_password`` provisions that account on the fly.
    """

    leader_id: Optional[str] = Field(None, max_length=36)
    member_id: Optional[int] = Field(None, ge=1)
    create_user: bool = False
    user_email: Optional[EmailStr] = None
    user_password: Optional[str] = Field(None, max_length=128)

    @root_validator(skip_on_failure=True)
    def validate_single_leader(cls, values):
        if values.get("leader_id") and values.get("member_id"):
            raise ValueError("Provide either leader_id or member_id, not both")
        return values


class GroupCreate(LeaderFields):
    name: str = Field(..., min_length=1, max_length=200)


class GroupUpdate(LeaderFields):
    name: Optional[str] = Field(None, min_length=1, max_length=200)


class PcfCreate(LeaderFields):
    name: str = Field(..., min_length=1, max_length=200)
    group_id: int = Field(..., ge=1)


class PcfUpdate(LeaderFields):
    name: Optional[str] = Field(None, min_length=1, max_length=200)


class CellCreate(LeaderFields):
    name: str = Field(..., min_length=1, max_length=200)
    pcf_id: int = Field(..., ge=1)


class CellUpdate(LeaderFields):
    name: Optional[str] = Field(None, min_length=1, max_length=200)


class GroupOut(BaseModel):
    id: int
    name: str
    church_id: int
    leader_id: Optional[str] = None

    class Config:
        from_attributes = True


class PcfOut(BaseModel):
    id: int
    name: str
    group_id: int
    leader_id: Optional[str] = None

    class Config:
        from_attributes = True


class CellOut(BaseModel):
    id: int
    name: str
    pcf_id: int
    leader_id: Optional[str] = None

    class Config:
        from_attributes = True


class NewLeaderCredentials(BaseModel):
    email: EmailStr
    temp_password: str
    must_change_password: bool = True


class GroupAssignmentOut(GroupOut):
    new_leader_credentials: Optional[NewLeaderCredentials] = None


class PcfAssignmentOut(PcfOut):
    new_leader_credentials: Optional[NewLeaderCredentials] = None


class CellAssignmentOut(CellOut):
    new_leader_credentials: Optional[NewLeaderCredentials] = None


class HierarchyResponse(BaseModel):
    church: Optional[ChurchOut] = None
    groups: List[GroupOut] = Field(default_factory=list)
    pcfs: List[PcfOut] = Field(default_factory=list)
    cells: List[CellOut] = Field(default_factory=list)
