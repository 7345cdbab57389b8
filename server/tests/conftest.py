from __future__ import annotations

import os
from collections.abc import Callable, Generator
from datetime import datetime
from types import SimpleNamespace

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from churchcms.auth.deps import get_current_user
from churchcms.auth.security import hash_password
from churchcms.core.db import Base, get_db
from churchcms.main import app
from churchcms.models.hierarchy import Cell, Church, Group, Pcf
from churchcms.models.member import Member
from churchcms.models.role import Role
from churchcms.models.service import Service
from churchcms.models.user import User

SQLALCHEMY_TEST_URL = "sqlite+pysqlite:///:memory:"
engine = create_engine(
    SQLALCHEMY_TEST_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


def override_get_db() -> Generator[Session, None, None]:
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def setup_database() -> Generator[None, None, None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    session = TestingSessionLocal()
    try:
        yield session
        session.commit()
    finally:
        session.close()


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    app.dependency_overrides.clear()
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def authorize(client: TestClient):
    def _apply(user: User):
        app.dependency_overrides[get_current_user] = lambda: user

    yield _apply
    app.dependency_overrides.pop(get_current_user, None)


@pytest.fixture()
def tree(db_session: Session) -> SimpleNamespace:
    """Church with two groups.

    g1 -> p1 -> (c1, c2), g1 -> p2 -> c3, g2 -> p3 -> c4
    """

    church = Church(name="Grace Church", address="1 Main Street")
    db_session.add(church)
    db_session.flush()
    g1 = Group(name="Group One", church_id=church.id)
    g2 = Group(name="Group Two", church_id=church.id)
    db_session.add_all([g1, g2])
    db_session.flush()
    p1 = Pcf(name="PCF One", group_id=g1.id)
    p2 = Pcf(name="PCF Two", group_id=g1.id)
    p3 = Pcf(name="PCF Three", group_id=g2.id)
    db_session.add_all([p1, p2, p3])
    db_session.flush()
    c1 = Cell(name="Cell One", pcf_id=p1.id)
    c2 = Cell(name="Cell Two", pcf_id=p1.id)
    c3 = Cell(name="Cell Three", pcf_id=p2.id)
    c4 = Cell(name="Cell Four", pcf_id=p3.id)
    db_session.add_all([c1, c2, c3, c4])
    db_session.commit()
    return SimpleNamespace(church=church, g1=g1, g2=g2, p1=p1, p2=p2, p3=p3, c1=c1, c2=c2, c3=c3, c4=c4)


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    def _make(email: str, role: Role = Role.MEMBER, password: str | None = None, **fields) -> User:
        user = User(
            email=email,
            username=email.split("@")[0].replace("-", "."),
            password=hash_password(password) if password else "hash",
            role=role.value,
            **fields,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture()
def make_member(db_session: Session) -> Callable[..., Member]:
    def _make(full_name: str, cell: Cell | None = None, **fields) -> Member:
        member = Member(full_name=full_name, cell_id=cell.id if cell is not None else None, **fields)
        db_session.add(member)
        db_session.commit()
        db_session.refresh(member)
        return member

    return _make


@pytest.fixture()
def admin_user(make_user) -> User:
    return make_user("admin@example.com", Role.ADMIN)


@pytest.fixture()
def group_pastor_user(make_user, tree) -> User:
    return make_user("pastor@example.com", Role.GROUP_PASTOR, group_id=tree.g1.id)


@pytest.fixture()
def pcf_leader_user(make_user, tree) -> User:
    return make_user("pcf.lead@example.com", Role.PCF_LEADER, group_id=tree.g1.id, pcf_id=tree.p1.id)


@pytest.fixture()
def cell_leader_user(make_user, tree) -> User:
    return make_user(
        "cell.lead@example.com",
        Role.CELL_LEADER,
        group_id=tree.g1.id,
        pcf_id=tree.p1.id,
        cell_id=tree.c1.id,
    )


@pytest.fixture()
def member_user(make_user) -> User:
    return make_user("plain@example.com", Role.MEMBER)


@pytest.fixture()
def sunday_service(db_session: Session) -> Service:
    service = Service(name="Sunday Service", date=datetime(2026, 10, 18, 9, 0), start_time="09:00", end_time="11:30")
    db_session.add(service)
    db_session.commit()
    db_session.refresh(service)
    return service
