"""Leader assignment for groups, PCFs and cells.

A node's ``leader_id`` always points at a user whose role matches the
node's level. Reassigning a leader demotes the previous holder and promotes
the new one; all writes happen in the caller's session and are committed
together by the router.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from churchcms.models.hierarchy import Cell, Group, Pcf
from churchcms.models.member import Member
from churchcms.models.role import LEADERSHIP_SLOTS, Designation, LeadershipSlot, Level, Role, as_role, outranks
from churchcms.models.user import User
from churchcms.schemas.hierarchy import LeaderFields, NewLeaderCredentials
from churchcms.services.authorization import authorize_leader
from churchcms.services.user_accounts import provision_user

logger = logging.getLogger(__name__)

NODE_MODELS = {Level.GROUP: Group, Level.PCF: Pcf, Level.CELL: Cell}

Node = Union[Group, Pcf, Cell]


@dataclass(frozen=True)
class ExistingUser:
    user_id: str


@dataclass(frozen=True)
class MemberCandidate:
    member_id: int
    create_user: bool = False
    email: Optional[str] = None
    password: Optional[str] = None


@dataclass(frozen=True)
class NoLeader:
    pass


LeaderRef = Union[ExistingUser, MemberCandidate, NoLeader]


@dataclass
class LeaderAssignment:
    leader: Optional[User] = None
    credentials: Optional[NewLeaderCredentials] = None
    changed: bool = False


def leader_ref_from_payload(payload: LeaderFields) -> Optional[LeaderRef]:
    """Translate the leader fields of a request body.

    Returns None when the body does not mention a leader at all, which on
    updates means "leave the current leader in place".
    """

    fields_set = payload.__fields_set__
    if payload.leader_id:
        return ExistingUser(user_id=payload.leader_id)
    if payload.member_id is not None:
        return MemberCandidate(
            member_id=payload.member_id,
            create_user=payload.create_user,
            email=payload.user_email,
            password=payload.user_password,
        )
    if "leader_id" in fields_set or "member_id" in fields_set:
        return NoLeader()
    return None


def leadership_pointers(db: Session, node: Node, level: Level) -> dict[str, Optional[int]]:
    """Scope pointers a leader of ``node`` carries."""

    if level is Level.GROUP:
        return {"group_id": node.id, "pcf_id": None, "cell_id": None}
    if level is Level.PCF:
        return {"group_id": node.group_id, "pcf_id": node.id, "cell_id": None}
    pcf = db.get(Pcf, node.pcf_id)
    return {"group_id": pcf.group_id if pcf is not None else None, "pcf_id": node.pcf_id, "cell_id": node.id}


def demote(user: User, slot: LeadershipSlot) -> bool:
    """Strip the leadership role of ``slot`` from ``user``.

    Users whose role no longer matches the slot are left alone.
    """

    if as_role(user.role) is not slot.role:
        return False
    user.role = Role.MEMBER.value
    for field in slot.cleared_on_demotion:
        setattr(user, field, None)
    if user.member is not None:
        user.member.designation = Designation.MEMBER.value
    logger.info("leader_demoted", extra={"user_id": user.id, "level": slot.level.value})
    return True


def _vacate_other_slots(db: Session, user: User, node: Node) -> None:
    for model in NODE_MODELS.values():
        for other in db.query(model).filter(model.leader_id == user.id).all():
            if other is node:
                continue
            other.leader_id = None
            logger.info(
                "leader_slot_vacated",
                extra={"user_id": user.id, "node_type": model.__tablename__, "node_id": other.id},
            )


def promote(db: Session, user: User, node: Node, slot: LeadershipSlot) -> None:
    _vacate_other_slots(db, user, node)
    user.role = slot.role.value
    for field, value in leadership_pointers(db, node, slot.level).items():
        setattr(user, field, value)
    if user.member is not None:
        user.member.designation = slot.designation.value
    logger.info("leader_promoted", extra={"user_id": user.id, "level": slot.level.value, "node_id": node.id})


def _resolve_leader(
    db: Session,
    actor: User,
    node: Node,
    slot: LeadershipSlot,
    ref: LeaderRef,
) -> tuple[Optional[User], Optional[NewLeaderCredentials]]:
    if isinstance(ref, NoLeader):
        return None, None

    if isinstance(ref, ExistingUser):
        user = db.get(User, ref.user_id)
        if not user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Leader user not found")
        authorize_leader(db, actor, user.member, user)
        return user, None

    member = db.get(Member, ref.member_id)
    if not member:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")
    authorize_leader(db, actor, member, member.user)
    if member.user is not None:
        return member.user, None
    if not ref.create_user:
        return None, None

    user = provision_user(
        db,
        actor,
        member,
        ref.email,
        ref.password,
        slot.role,
        **leadership_pointers(db, node, slot.level),
    )
    credentials = NewLeaderCredentials(email=user.email, temp_password=ref.password, must_change_password=True)
    return user, credentials


def assign_leader(db: Session, actor: User, node: Node, level: Level, ref: LeaderRef) -> LeaderAssignment:
    """Point ``node`` at the leader named by ``ref``.

    ``node`` must already be flushed so that its id is known.
    """

    slot = LEADERSHIP_SLOTS[level]
    leader, credentials = _resolve_leader(db, actor, node, slot, ref)

    if leader is not None and credentials is None:
        if as_role(leader.role) is Role.ADMIN:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Administrators cannot be assigned as {slot.label} leader",
            )
        if outranks(leader.role, actor.role):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You cannot reassign a user whose role outranks your own",
            )

    new_leader_id = leader.id if leader is not None else None
    if node.leader_id == new_leader_id:
        return LeaderAssignment(leader=leader, credentials=credentials, changed=False)

    if node.leader_id:
        previous = db.get(User, node.leader_id)
        if previous is not None:
            demote(previous, slot)

    node.leader_id = new_leader_id
    if leader is not None:
        promote(db, leader, node, slot)

    return LeaderAssignment(leader=leader, credentials=credentials, changed=True)


def release_leader(db: Session, node: Node, level: Level) -> None:
    """Demote the leader of ``node`` ahead of its deletion."""

    if not node.leader_id:
        return
    leader = db.get(User, node.leader_id)
    node.leader_id = None
    if leader is not None:
        demote(leader, LEADERSHIP_SLOTS[level])
