"""
Shared fixtures: in-memory SQLite database and a small Milan/Rome newsroom.
Settings are read at import time, so the environment is prepared before importing app.
"""
import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from datetime import date
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.models import (
    Base,
    Bureaus,
    Employees,
    EmploymentStatus,
    Role,
    ShiftPreferences,
    ShiftRoleLevel,
    TimeOffReason,
    TimeOffRequests,
    TimeOffStatus,
    UserRoles,
    Users,
    DEFAULT_BUREAU_SETTINGS,
)
from app.core.security import get_password_hash

SCHEDULER_PASSWORD = "scheduler-pass"


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture()
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def _add_person(session, bureau_id, firstname, surname, role_level, title="Correspondent", password_hash="!"):
    user = Users(
        email=f"{firstname.lower()}.{surname.lower()}@example.com",
        firstname=firstname,
        surname=surname,
        password_hash=password_hash,
    )
    session.add(user)
    session.flush()
    employee = Employees(
        user_id=user.id,
        bureau_id=bureau_id,
        title=title,
        shift_role=role_level,
        employment_status=EmploymentStatus.ACTIVE,
    )
    session.add(employee)
    session.flush()
    return user, employee


@pytest.fixture()
def newsroom(db_session) -> dict:
    """
    Milan: Marco (senior), Sara (junior, confirmed prefs), Luca (junior, on leave 2025-01-15).
    Rome: Gavin (lead), Alessia (senior), Paolo (junior).
    Plus a scheduler and a staff-only user. Returns ids by short name.
    """
    milan = Bureaus(name="Milan", code="MIL", timezone="Europe/Rome", settings=dict(DEFAULT_BUREAU_SETTINGS))
    rome = Bureaus(name="Rome", code="ROM", timezone="Europe/Rome", settings=dict(DEFAULT_BUREAU_SETTINGS))
    db_session.add_all([milan, rome])
    db_session.flush()

    ids = {"milan": milan.id, "rome": rome.id}
    people = [
        ("marco", milan.id, "Marco", "Rossi", ShiftRoleLevel.SENIOR, "Senior Correspondent"),
        ("sara", milan.id, "Sara", "Bianchi", ShiftRoleLevel.JUNIOR, "Correspondent"),
        ("luca", milan.id, "Luca", "Verdi", ShiftRoleLevel.JUNIOR, "Correspondent"),
        ("gavin", rome.id, "Gavin", "Jones", ShiftRoleLevel.LEAD, "Editor"),
        ("alessia", rome.id, "Alessia", "Conti", ShiftRoleLevel.SENIOR, "Senior Correspondent"),
        ("paolo", rome.id, "Paolo", "Greco", ShiftRoleLevel.JUNIOR, "Correspondent"),
    ]
    for key, bureau_id, firstname, surname, level, title in people:
        user, employee = _add_person(db_session, bureau_id, firstname, surname, level, title)
        ids[key] = employee.id
        ids[f"{key}_user"] = user.id

    scheduler = Users(
        email="scheduler@example.com",
        firstname="Elena",
        surname="Ferri",
        password_hash=get_password_hash(SCHEDULER_PASSWORD),
    )
    staff = Users(email="staff@example.com", firstname="Dario", surname="Costa", password_hash="!")
    db_session.add_all([scheduler, staff])
    db_session.flush()
    db_session.add_all([
        UserRoles(user_id=scheduler.id, bureau_id=None, role=Role.SCHEDULER),
        UserRoles(user_id=staff.id, bureau_id=milan.id, role=Role.STAFF),
    ])
    ids["scheduler_user"] = scheduler.id
    ids["staff_user"] = staff.id

    db_session.add(ShiftPreferences(
        employee_id=ids["sara"],
        preferred_days=[0, 1, 2, 3, 4],
        preferred_shifts=["Morning"],
        unavailable_dates=["2025-01-17"],
        max_shifts_per_week=5,
        confirmed=True,
    ))
    db_session.add(TimeOffRequests(
        employee_id=ids["luca"],
        start_date=date(2025, 1, 15),
        end_date=date(2025, 1, 15),
        status=TimeOffStatus.APPROVED,
        reason_type=TimeOffReason.VACATION,
    ))
    db_session.commit()
    return ids
