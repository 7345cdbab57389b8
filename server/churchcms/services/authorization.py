"""Hierarchy-scoped access rules.

A user's scope is the subtree rooted at the scope pointer of their role.
Scopes are recomputed on every call because the hierarchy can change
between requests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from churchcms.models.hierarchy import Cell, Group, Pcf
from churchcms.models.member import Member
from churchcms.models.role import ATTENDANCE_ROLES, PARENT_LEVEL, WRITE_ROLES, Level, Role, as_role
from churchcms.models.user import User

logger = logging.getLogger(__name__)

LEVEL_LABELS: dict[Level, str] = {
    Level.GROUP: "group",
    Level.PCF: "PCF",
    Level.CELL: "cell",
    Level.MEMBER: "member",
}


@dataclass(frozen=True)
class Scope:
    unrestricted: bool = False
    group_ids: frozenset[int] = field(default_factory=frozenset)
    pcf_ids: frozenset[int] = field(default_factory=frozenset)
    cell_ids: frozenset[int] = field(default_factory=frozenset)

    def allows(self, level: Level, node_id: int | None) -> bool:
        """Return True when the node at ``level`` falls inside this scope.

        For ``Level.MEMBER`` the id is the member's cell id.
        """

        if self.unrestricted:
            return True
        if node_id is None:
            return False
        if level is Level.GROUP:
            return node_id in self.group_ids
        if level is Level.PCF:
            return node_id in self.pcf_ids
        return node_id in self.cell_ids

    @property
    def member_cell_ids(self) -> frozenset[int] | None:
        """Cells whose members are visible, or None when nothing is filtered."""

        if self.unrestricted:
            return None
        return self.cell_ids


EMPTY_SCOPE = Scope()
FULL_SCOPE = Scope(unrestricted=True)


def _ids(db: Session, statement) -> frozenset[int]:
    return frozenset(db.execute(statement).scalars().all())


def resolve_scope(db: Session, user: User) -> Scope:
    role = as_role(user.role)
    if role is Role.ADMIN:
        return FULL_SCOPE

    if role is Role.GROUP_PASTOR:
        group = db.get(Group, user.group_id) if user.group_id is not None else None
        if group is None:
            return EMPTY_SCOPE
        pcf_ids = _ids(db, select(Pcf.id).where(Pcf.group_id == group.id))
        cell_ids = _ids(db, select(Cell.id).where(Cell.pcf_id.in_(sorted(pcf_ids)))) if pcf_ids else frozenset()
        return Scope(group_ids=frozenset({group.id}), pcf_ids=pcf_ids, cell_ids=cell_ids)

    if role is Role.PCF_LEADER:
        pcf = db.get(Pcf, user.pcf_id) if user.pcf_id is not None else None
        if pcf is None:
            return EMPTY_SCOPE
        cell_ids = _ids(db, select(Cell.id).where(Cell.pcf_id == pcf.id))
        return Scope(group_ids=frozenset({pcf.group_id}), pcf_ids=frozenset({pcf.id}), cell_ids=cell_ids)

    if role is Role.CELL_LEADER:
        cell = db.get(Cell, user.cell_id) if user.cell_id is not None else None
        if cell is None:
            return EMPTY_SCOPE
        pcf = db.get(Pcf, cell.pcf_id)
        group_ids = frozenset({pcf.group_id}) if pcf is not None else frozenset()
        return Scope(group_ids=group_ids, pcf_ids=frozenset({cell.pcf_id}), cell_ids=frozenset({cell.id}))

    return EMPTY_SCOPE


def _deny(actor: User, detail: str) -> HTTPException:
    logger.info("authorization_denied", extra={"user_id": actor.id, "role": as_role(actor.role).value, "reason": detail})
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def _ensure_role_can_write(actor: User, level: Level, verb: str) -> Role:
    role = as_role(actor.role)
    if role not in WRITE_ROLES[level]:
        label = LEVEL_LABELS[level]
        raise _deny(actor, f"Your role ({role.value}) is not allowed to {verb} {label} records")
    return role


def authorize_create(db: Session, actor: User, level: Level, parent_id: int | None) -> Scope:
    """Check that ``actor`` may create a ``level`` node under ``parent_id``."""

    role = _ensure_role_can_write(actor, level, "create")
    if role is Role.ADMIN:
        return FULL_SCOPE
    scope = resolve_scope(db, actor)
    parent_level = PARENT_LEVEL[level]
    if parent_level is None or not scope.allows(parent_level, parent_id):
        parent_label = LEVEL_LABELS[parent_level] if parent_level is not None else "church"
        raise _deny(actor, f"You can only create {LEVEL_LABELS[level]} records inside your own {parent_label}")
    return scope


def authorize_change(db: Session, actor: User, level: Level, node_id: int) -> Scope:
    """Check that ``actor`` may edit or delete the ``level`` node ``node_id``."""

    role = _ensure_role_can_write(actor, level, "modify")
    if role is Role.ADMIN:
        return FULL_SCOPE
    scope = resolve_scope(db, actor)
    if not scope.allows(level, node_id):
        raise _deny(actor, f"This {LEVEL_LABELS[level]} is outside your scope")
    return scope


def authorize_member(db: Session, actor: User, cell_id: int | None) -> Scope:
    """Check that ``actor`` may write a member record placed in ``cell_id``."""

    role = _ensure_role_can_write(actor, Level.MEMBER, "manage")
    if role is Role.ADMIN:
        return FULL_SCOPE
    scope = resolve_scope(db, actor)
    if not scope.allows(Level.CELL, cell_id):
        raise _deny(actor, "You can only manage members of cells within your scope")
    return scope


def _placement(user: User) -> tuple[Level | None, int | None]:
    if user.cell_id is not None:
        return Level.CELL, user.cell_id
    if user.pcf_id is not None:
        return Level.PCF, user.pcf_id
    if user.group_id is not None:
        return Level.GROUP, user.group_id
    return None, None


def authorize_leader(db: Session, actor: User, member: Member | None, user: User | None) -> None:
    """Check that ``actor`` may move the chosen person into a leadership slot.

    The person's member record must sit in a cell the actor can see, and an
    existing account must not currently serve outside the actor's scope.
    Unplaced accounts (no member, no scope pointers) are accepted.
    """

    if as_role(actor.role) is Role.ADMIN:
        return
    scope = resolve_scope(db, actor)
    if member is not None and not scope.allows(Level.MEMBER, member.cell_id):
        raise _deny(actor, "The chosen leader belongs to a cell outside your scope")
    if user is not None:
        level, node_id = _placement(user)
        if level is not None and not scope.allows(level, node_id):
            raise _deny(actor, "The chosen leader currently serves outside your scope")


def ensure_can_mark_attendance(actor: User) -> None:
    if as_role(actor.role) not in ATTENDANCE_ROLES:
        raise _deny(actor, "Only administrators and group pastors can mark attendance")
