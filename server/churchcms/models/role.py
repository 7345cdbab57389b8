from __future__ import annotations

import enum
from dataclasses import dataclass

from sqlalchemy import Enum


class Role(str, enum.Enum):
    ADMIN = "admin"
    GROUP_PASTOR = "group_pastor"
    PCF_LEADER = "pcf_leader"
    CELL_LEADER = "cell_leader"
    MEMBER = "member"


class Designation(str, enum.Enum):
    MEMBER = "MEMBER"
    CELL_LEADER = "CELL_LEADER"
    PCF_LEADER = "PCF_LEADER"
    GROUP_PASTOR = "GROUP_PASTOR"
    PASTORAL_ASSISTANT = "PASTORAL_ASSISTANT"


class Level(str, enum.Enum):
    GROUP = "group"
    PCF = "pcf"
    CELL = "cell"
    MEMBER = "member"


UserRole = Enum(*[role.value for role in Role], name="user_role")
MemberDesignation = Enum(*[designation.value for designation in Designation], name="member_designation")

ROLE_RANK: dict[Role, int] = {
    Role.MEMBER: 0,
    Role.CELL_LEADER: 1,
    Role.PCF_LEADER: 2,
    Role.GROUP_PASTOR: 3,
    Role.ADMIN: 4,
}

# Pointer a scoped role is anchored on. Admin and member carry none.
SCOPE_FIELD: dict[Role, str] = {
    Role.GROUP_PASTOR: "group_id",
    Role.PCF_LEADER: "pcf_id",
    Role.CELL_LEADER: "cell_id",
}

SCOPE_FIELDS = ("group_id", "pcf_id", "cell_id")


@dataclass(frozen=True)
class LeadershipSlot:
    level: Level
    role: Role
    designation: Designation
    scope_field: str
    cleared_on_demotion: tuple[str, ...]
    label: str


LEADERSHIP_SLOTS: dict[Level, LeadershipSlot] = {
    Level.GROUP: LeadershipSlot(
        level=Level.GROUP,
        role=Role.GROUP_PASTOR,
        designation=Designation.GROUP_PASTOR,
        scope_field="group_id",
        cleared_on_demotion=("group_id", "pcf_id", "cell_id"),
        label="group",
    ),
    Level.PCF: LeadershipSlot(
        level=Level.PCF,
        role=Role.PCF_LEADER,
        designation=Designation.PCF_LEADER,
        scope_field="pcf_id",
        cleared_on_demotion=("pcf_id", "cell_id"),
        label="PCF",
    ),
    Level.CELL: LeadershipSlot(
        level=Level.CELL,
        role=Role.CELL_LEADER,
        designation=Designation.CELL_LEADER,
        scope_field="cell_id",
        cleared_on_demotion=("cell_id",),
        label="cell",
    ),
}

# Roles allowed to create, edit or delete records at each level. Non-admin
# roles are additionally limited to their own subtree.
WRITE_ROLES: dict[Level, frozenset[Role]] = {
    Level.GROUP: frozenset({Role.ADMIN}),
    Level.PCF: frozenset({Role.ADMIN, Role.GROUP_PASTOR}),
    Level.CELL: frozenset({Role.ADMIN, Role.GROUP_PASTOR, Role.PCF_LEADER}),
    Level.MEMBER: frozenset({Role.ADMIN, Role.GROUP_PASTOR, Role.PCF_LEADER, Role.CELL_LEADER}),
}

ATTENDANCE_ROLES = frozenset({Role.ADMIN, Role.GROUP_PASTOR})

PARENT_LEVEL: dict[Level, Level | None] = {
    Level.GROUP: None,
    Level.PCF: Level.GROUP,
    Level.CELL: Level.PCF,
    Level.MEMBER: Level.CELL,
}


def as_role(value: str | Role | None) -> Role:
    if value is None:
        return Role.MEMBER
    return Role(value)


def outranks(left: str | Role | None, right: str | Role | None) -> bool:
    return ROLE_RANK[as_role(left)] > ROLE_RANK[as_role(right)]


def check_scope(role: str | Role | None, group_id: int | None, pcf_id: int | None, cell_id: int | None) -> None:
    """Refuse a role without the hierarchy pointer it is anchored on."""

    field = SCOPE_FIELD.get(as_role(role))
    if field is None:
        return
    pointers = {"group_id": group_id, "pcf_id": pcf_id, "cell_id": cell_id}
    if pointers[field] is None:
        raise ValueError(f"Role '{as_role(role).value}' requires {field} to be set")
