from __future__ import annotations

import logging
import re
import secrets

from fastapi import HTTPException, status
from sqlalchemy import exists, func
from sqlalchemy.orm import Session

from churchcms.auth.security import hash_password
from churchcms.core.config import settings
from churchcms.models.member import Member
from churchcms.models.role import Role, as_role, outranks
from churchcms.models.user import User

logger = logging.getLogger(__name__)

USERNAME_REGEX = re.compile(r"^[a-z0-9._]{4,32}$")


def normalize_email(email: str) -> str:
    return email.strip().lower()


def sanitize_username(value: str) -> str:
    base = value.lower()
    base = re.sub(r"[^a-z0-9._]", "", base)
    base = base.strip("._")
    if not base:
        base = "user"
    if len(base) < 4:
        base = f"{base}{secrets.randbelow(9999):04d}"
    return base[:32]


def ensure_valid_username(username: str) -> None:
    if not USERNAME_REGEX.fullmatch(username):
        raise ValueError("Usernames must be 4-32 characters and use only lowercase letters, numbers, dots, or underscores.")


def ensure_unique_username(db: Session, username: str) -> str:
    ensure_valid_username(username)
    base = username
    candidate = base
    suffix = 1
    while True:
        if not db.query(exists().where(User.username == candidate)).scalar():
            return candidate
        candidate = f"{base}{suffix}"
        if len(candidate) > 32:
            trimmed = base[: max(0, 32 - len(str(suffix)))]
            candidate = f"{trimmed}{suffix}"
        suffix += 1


def generate_username_from_email(email: str, db: Session) -> str:
    local = email.split("@")[0]
    desired = sanitize_username(local)
    return ensure_unique_username(db, desired)


def validate_password_length(password: str) -> None:
    if len(password) < settings.PASSWORD_MIN_LENGTH:
        raise ValueError(f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters long.")


def split_full_name(full_name: str) -> tuple[str, str | None]:
    first, _, rest = full_name.strip().partition(" ")
    return first, rest.strip() or None


def find_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(func.lower(User.email) == normalize_email(email)).first()


def ensure_can_grant(actor: User, role: Role) -> None:
    if outranks(role, actor.role):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Your role ({as_role(actor.role).value}) cannot grant the {role.value} role",
        )


def provision_user(
    db: Session,
    actor: User,
    member: Member,
    email: str | None,
    password: str | None,
    role: Role = Role.MEMBER,
    *,
    group_id: int | None = None,
    pcf_id: int | None = None,
    cell_id: int | None = None,
) -> User:
    """Create the login account for ``member``.

    The account must change its password on first login. The plain password
    is never stored or logged; callers relay it to the new user themselves.
    """

    ensure_can_grant(actor, role)

    if not email or not email.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email is required to create a user account")
    if not password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Password is required to create a user account")
    try:
        validate_password_length(password)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    email = normalize_email(email)
    if find_user_by_email(db, email) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Email {email} is already registered to another user")
    if member.user is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Member already has a user account")

    first_name, last_name = split_full_name(member.full_name)
    try:
        user = User(
            email=email,
            username=generate_username_from_email(email, db),
            first_name=first_name,
            last_name=last_name,
            title=member.title,
            password=hash_password(password),
            role=role.value,
            group_id=group_id,
            pcf_id=pcf_id,
            cell_id=cell_id,
            member=member,
            force_password_change=True,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    db.add(user)
    db.flush()

    logger.info(
        "user_provisioned",
        extra={"user_id": user.id, "member_id": member.id, "role": role.value, "actor_id": actor.id},
    )
    return user
