import json
import pytest
from datetime import date

from app.services.scheduling.types import (
    Bureau,
    Employee,
    ScheduleContext,
    SchedulePeriod,
    ShiftRole,
)


@pytest.fixture
def week() -> SchedulePeriod:
    return SchedulePeriod(date(2025, 1, 13), date(2025, 1, 19))


@pytest.fixture
def context(week) -> ScheduleContext:
    """Milan: Marco (1, senior), Sara (2, junior). Rome: Gavin (4, lead), Alessia (5, senior)."""
    return ScheduleContext(
        period=week,
        bureaus=[
            Bureau(id=1, name="Milan", code="MIL"),
            Bureau(id=2, name="Rome", code="ROM"),
        ],
        employees=[
            Employee(id=1, full_name="Marco Rossi", shift_role=ShiftRole.SENIOR, bureau_id=1),
            Employee(id=2, full_name="Sara Bianchi", shift_role=ShiftRole.JUNIOR, bureau_id=1),
            Employee(id=4, full_name="Gavin Jones", shift_role=ShiftRole.LEAD, bureau_id=2),
            Employee(id=5, full_name="Alessia Conti", shift_role=ShiftRole.SENIOR, bureau_id=2),
        ],
    )


@pytest.fixture
def make_row():
    """Factory: one model output row, Marco on the Milan morning of Monday 13th unless overridden."""
    def _make(**overrides):
        row = {
            "date": "2025-01-13",
            "start_time": "08:00",
            "end_time": "16:00",
            "bureau": "Milan",
            "employee_id": 1,
            "assigned_to": "Marco Rossi",
            "role_level": "senior",
            "shift_type": "Morning",
            "reasoning": "Sr-cover",
        }
        row.update(overrides)
        return row
    return _make


@pytest.fixture
def make_response():
    """Factory: serialised model output for a list of rows."""
    def _make(rows, recommendations=None, satisfaction=1.0):
        return json.dumps({
            "shifts": rows,
            "fairness_metrics": {
                "weekend_shifts_per_person": {},
                "night_shifts_per_person": {},
                "total_shifts_per_person": {},
                "preference_satisfaction_rate": satisfaction,
                "hard_constraint_violations": [],
            },
            "recommendations": recommendations or [],
        })
    return _make
