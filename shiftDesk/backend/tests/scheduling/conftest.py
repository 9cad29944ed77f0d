import pytest
from datetime import date

from app.services.scheduling.types import (
    Assignment,
    AssignmentStatus,
    Bureau,
    BureauSettings,
    Employee,
    EmployeePreferences,
    Shift,
    ShiftRole,
)

MILAN_ID = 1
ROME_ID = 2


@pytest.fixture
def make_shift():
    """Factory: shift with one assignment per employee id."""
    def _make(key, start, end, employee_ids=(), bureau_id=MILAN_ID, required_staff=1,
              declined=(), role_requirements=None):
        assignments = [
            Assignment(
                shift_key=key,
                employee_id=emp_id,
                status=AssignmentStatus.DECLINED if emp_id in declined else AssignmentStatus.ASSIGNED,
            )
            for emp_id in employee_ids
        ]
        return Shift(
            key=key,
            bureau_id=bureau_id,
            start_time=start,
            end_time=end,
            required_staff=required_staff,
            role_requirements=role_requirements or [],
            assignments=assignments,
        )
    return _make


@pytest.fixture
def milan() -> Bureau:
    return Bureau(id=MILAN_ID, name="Milan", code="MIL", timezone="Europe/Rome", settings=BureauSettings())


@pytest.fixture
def rome() -> Bureau:
    return Bureau(id=ROME_ID, name="Rome", code="ROM", timezone="Europe/Rome", settings=BureauSettings())


@pytest.fixture
def roster() -> list[Employee]:
    # 1 senior, 2 juniors in Milan; 1 lead in Rome
    return [
        Employee(id=1, full_name="Marco Rossi", shift_role=ShiftRole.SENIOR, bureau_id=MILAN_ID),
        Employee(id=2, full_name="Sara Bianchi", shift_role=ShiftRole.JUNIOR, bureau_id=MILAN_ID),
        Employee(id=3, full_name="Luca Verdi", shift_role=ShiftRole.JUNIOR, bureau_id=MILAN_ID),
        Employee(id=4, full_name="Gavin Jones", shift_role=ShiftRole.LEAD, bureau_id=ROME_ID),
    ]


@pytest.fixture
def picky_roster(roster) -> list[Employee]:
    # Marco only wants Mondays and is away on 2025-01-15 (local date)
    roster[0].preferences = EmployeePreferences(
        unavailable_dates={date(2025, 1, 15)},
        preferred_days=[0],
        max_shifts_per_week=2,
    )
    return roster
