from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from churchcms.auth.security import hash_password
from churchcms.core.db import Base, engine, session_scope
from churchcms.models.hierarchy import Cell, Group, Pcf
from churchcms.models.member import Member
from churchcms.models.role import LEADERSHIP_SLOTS, Level, Role
from churchcms.models.service import Service
from churchcms.models.user import User
from churchcms.services.directory import ensure_church
from churchcms.services.leadership import leadership_pointers
from churchcms.services.user_accounts import generate_username_from_email, split_full_name

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "Demo123!"

DEMO_MEMBERS = [
    ("Grace Adeyemi", "grace.adeyemi@example.com", "Female", "Pastor"),
    ("Peter Okafor", "peter.okafor@example.com", "Male", "Deacon"),
    ("Ruth Mensah", "ruth.mensah@example.com", "Female", "Sister"),
    ("John Bello", "john.bello@example.com", "Male", "Brother"),
    ("Esther Nwosu", "esther.nwosu@example.com", "Female", "Sister"),
    ("Samuel Eze", None, "Male", None),
]

# (email, member email, level the user leads or None)
DEMO_USERS = [
    ("admin@example.com", None, None),
    ("grace.adeyemi@example.com", "grace.adeyemi@example.com", Level.GROUP),
    ("peter.okafor@example.com", "peter.okafor@example.com", Level.PCF),
    ("ruth.mensah@example.com", "ruth.mensah@example.com", Level.CELL),
]


def _get_or_create(db: Session, model, **filters):
    instance = db.query(model).filter_by(**filters).first()
    if instance is None:
        instance = model(**filters)
        db.add(instance)
        db.flush()
    return instance


def ensure_structure(db: Session) -> dict[Level, Group | Pcf | Cell]:
    church = ensure_church(db)
    group = _get_or_create(db, Group, name="Victory Group", church_id=church.id)
    pcf = _get_or_create(db, Pcf, name="Faith PCF", group_id=group.id)
    cell = _get_or_create(db, Cell, name="Hope Cell", pcf_id=pcf.id)
    return {Level.GROUP: group, Level.PCF: pcf, Level.CELL: cell}


def ensure_members(db: Session, cell: Cell) -> dict[str, Member]:
    members: dict[str, Member] = {}
    for full_name, email, gender, title in DEMO_MEMBERS:
        member = db.query(Member).filter_by(full_name=full_name).first()
        if member is None:
            member = Member(full_name=full_name, email=email, gender=gender, title=title, cell_id=cell.id)
            db.add(member)
            db.flush()
        if email:
            members[email] = member
    return members


def ensure_user(
    db: Session,
    email: str,
    member: Member | None,
    level: Level | None,
    nodes: dict[Level, Group | Pcf | Cell],
) -> User:
    user = db.query(User).filter_by(email=email).first()
    if user is not None:
        return user

    role = Role.ADMIN
    pointers: dict[str, int | None] = {}
    if level is not None:
        slot = LEADERSHIP_SLOTS[level]
        role = slot.role
        pointers = leadership_pointers(db, nodes[level], level)
    first_name, last_name = split_full_name(member.full_name) if member is not None else ("System", "Admin")
    user = User(
        email=email,
        username=generate_username_from_email(email, db),
        first_name=first_name,
        last_name=last_name,
        password=hash_password(DEMO_PASSWORD),
        role=role.value,
        member=member,
        **pointers,
    )
    db.add(user)
    db.flush()

    if level is not None:
        nodes[level].leader_id = user.id
        if member is not None:
            member.designation = LEADERSHIP_SLOTS[level].designation.value
    return user


def ensure_services(db: Session) -> None:
    today = datetime.utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
    next_sunday = today + timedelta(days=(6 - today.weekday()) % 7)
    if db.query(Service).filter_by(name="Sunday Service").first() is None:
        db.add(Service(name="Sunday Service", date=next_sunday, start_time="09:00", end_time="11:30"))


def seed_demo(db: Session) -> None:
    nodes = ensure_structure(db)
    members = ensure_members(db, nodes[Level.CELL])
    for email, member_email, level in DEMO_USERS:
        ensure_user(db, email, members.get(member_email) if member_email else None, level, nodes)
    ensure_services(db)
    db.commit()
    logger.info("demo_data_seeded")


def main() -> None:
    Base.metadata.create_all(bind=engine)
    with session_scope() as db:
        seed_demo(db)


if __name__ == "__main__":
    main()
