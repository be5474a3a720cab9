import os

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"

from datetime import date

import pytest
from fastapi.testclient import TestClient #gives you a fake http client that can call your FastAPI routes without running a real server.
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_db
from app.db.base import Base
from app.main import app
from app.models.department import Department
from app.models.leave_account import LeaveAccount
from app.models.leave_policy import LeaveEffect, LeavePolicy
from app.models.timetable import Timetable
from app.models.user import User, UserRole


@pytest.fixture()
def engine():
    engine = create_engine( #create isolated DB
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.rollback()
        db.close()


@pytest.fixture() #test client
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def make_department(db_session):
    def _make(name="Computer Science", class_names=None):
        department = Department(name=name, class_names=class_names or ["CSE-A"])
        db_session.add(department)
        db_session.flush()
        return department

    return _make


@pytest.fixture()
def make_user(db_session):
    def _make(name, role, department=None, joining_date=date(2020, 1, 1), email=None):
        user = User(
            name=name,
            email=email or f"{name.lower().replace(' ', '.')}@example.com",
            role=role,
            department_id=department.id if department is not None else None,
            joining_date=joining_date,
        )
        db_session.add(user)
        db_session.flush()
        return user

    return _make


@pytest.fixture()
def make_policy_account(db_session):
    """Attach an account directly, bypassing allocation, for workflow tests."""

    def _make(employee, *, name="Casual Leave", allowed=12.0, effect=LeaveEffect.DEDUCT, used=0.0):
        policy = db_session.execute(select(LeavePolicy).where(LeavePolicy.name == name)).scalar_one_or_none()
        if policy is None:
            policy = LeavePolicy(
                name=name,
                allowed_leaves=allowed,
                roles=[UserRole.teaching.value, UserRole.non_teaching.value, UserRole.hod.value],
                leave_effect=effect,
                start_date=date(2030, 1, 1),
                end_date=date(2030, 12, 31),
            )
            db_session.add(policy)
            db_session.flush()
        account = LeaveAccount(
            employee_id=employee.id,
            leave_policy_id=policy.id,
            year=2030,
            total_leaves=0.0 if effect == LeaveEffect.ADD else allowed,
            credited_leaves=allowed if effect == LeaveEffect.ADD else 0.0,
            used_leaves=used,
            carry_forward_leaves=0.0,
        )
        db_session.add(account)
        db_session.flush()
        return policy, account

    return _make


@pytest.fixture()
def make_timetable(db_session):
    def _make(department, class_name, entries, semester=1):
        timetable = Timetable(
            department_id=department.id,
            class_name=class_name,
            semester=semester,
            entries=entries,
        )
        db_session.add(timetable)
        db_session.flush()
        return timetable

    return _make
