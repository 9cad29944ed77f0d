"""
Data loader for scheduling service.
Fetches all relevant data from the database and converts to internal types.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from sqlalchemy import select, and_
from sqlalchemy.orm import Session

from app.db.models.bureaus import Bureaus
from app.db.models.employees import Employees, EmploymentStatus
from app.db.models.shift_assignments import ShiftAssignments, AssignmentStatus as DbAssignmentStatus
from app.db.models.shift_preferences import ShiftPreferences
from app.db.models.shifts import Shifts
from app.db.models.time_off_requests import TimeOffRequests, TimeOffStatus
from app.db.models.users import Users

from .types import (
    BOTH_BUREAUS,
    Assignment,
    AssignmentStatus,
    Bureau,
    BureauSettings,
    Employee,
    EmployeePreferences,
    RecentHistory,
    RoleRequirement,
    ScheduleContext,
    SchedulePeriod,
    Shift,
    ShiftRole,
    ShiftStatus,
)

HISTORY_DAYS = 30
# Existing commitments this close to the period edges still matter for rest periods.
CONTEXT_MARGIN = timedelta(days=1)


def to_utc(value: datetime) -> datetime:
    """Normalise a stored datetime to aware UTC (some backends drop tzinfo)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def period_window_utc(period: SchedulePeriod, bureaus: list[Bureau]) -> tuple[datetime, datetime]:
    """UTC range covering the period in every bureau's local time."""
    zones = [ZoneInfo(b.timezone) for b in bureaus] or [timezone.utc]
    starts = [datetime.combine(period.start_date, time.min, tzinfo=z) for z in zones]
    ends = [datetime.combine(period.end_date + timedelta(days=1), time.min, tzinfo=z) for z in zones]
    return to_utc(min(starts)), to_utc(max(ends))


def _bureau_from_row(row: Bureaus) -> Bureau:
    return Bureau(
        id=row.id,
        name=row.name,
        code=row.code,
        timezone=row.timezone,
        settings=BureauSettings.from_dict(row.settings),
    )


def load_bureaus(db: Session, bureau_scope: str) -> list[Bureau]:
    """Load one bureau by name, or all bureaus for scope 'both'."""
    stmt = select(Bureaus).order_by(Bureaus.id)
    if bureau_scope != BOTH_BUREAUS:
        stmt = stmt.where(Bureaus.name == bureau_scope)
    return [_bureau_from_row(r) for r in db.execute(stmt).scalars().all()]


def load_time_off_dates(
    db: Session,
    employee_ids: list[int],
    period: SchedulePeriod,
) -> dict[int, set[date]]:
    """employee_id -> dates inside the period covered by approved time off."""
    if not employee_ids:
        return {}

    stmt = select(TimeOffRequests).where(
        and_(
            TimeOffRequests.employee_id.in_(employee_ids),
            TimeOffRequests.status == TimeOffStatus.APPROVED,
            TimeOffRequests.start_date <= period.end_date,
            TimeOffRequests.end_date >= period.start_date,
        )
    )
    rows = db.execute(stmt).scalars().all()

    dates: dict[int, set[date]] = {}
    for r in rows:
        day = max(r.start_date, period.start_date)
        last = min(r.end_date, period.end_date)
        while day <= last:
            dates.setdefault(r.employee_id, set()).add(day)
            day += timedelta(days=1)
    return dates


def load_recent_history(
    db: Session,
    employee_ids: list[int],
    as_of: date,
) -> dict[int, RecentHistory]:
    """Weekend, night and total shift counts per employee over the last month (single query)."""
    history = {emp_id: RecentHistory() for emp_id in employee_ids}
    if not employee_ids:
        return history

    window_start = datetime.combine(as_of - timedelta(days=HISTORY_DAYS), time.min, tzinfo=timezone.utc)
    window_end = datetime.combine(as_of, time.min, tzinfo=timezone.utc)

    stmt = (
        select(ShiftAssignments.employee_id, Shifts.start_datetime_utc, Bureaus.timezone)
        .join(Shifts, Shifts.id == ShiftAssignments.shift_id)
        .join(Bureaus, Bureaus.id == Shifts.bureau_id)
        .where(
            and_(
                ShiftAssignments.employee_id.in_(employee_ids),
                ShiftAssignments.status != DbAssignmentStatus.DECLINED,
                Shifts.start_datetime_utc >= window_start,
                Shifts.start_datetime_utc < window_end,
            )
        )
    )
    for employee_id, start_utc, tz_name in db.execute(stmt).all():
        local_start = to_utc(start_utc).astimezone(ZoneInfo(tz_name))
        entry = history[employee_id]
        entry.total_shifts += 1
        if local_start.weekday() >= 5:
            entry.weekend_shifts += 1
        if local_start.hour < 8:
            entry.night_shifts += 1
    return history


def load_employees(
    db: Session,
    bureau_ids: list[int],
    period: SchedulePeriod,
    history_as_of: Optional[date] = None,
) -> list[Employee]:
    """Load active employees of the given bureaus with preferences, time off and recent history."""
    if not bureau_ids:
        return []

    stmt = (
        select(Employees, Users)
        .join(Users, Users.id == Employees.user_id)
        .where(
            and_(
                Employees.bureau_id.in_(bureau_ids),
                Employees.employment_status == EmploymentStatus.ACTIVE,
                Users.is_active == True,
            )
        )
        .order_by(Employees.id)
    )
    rows = db.execute(stmt).all()
    employee_ids = [emp.id for emp, _ in rows]

    pref_rows = db.execute(
        select(ShiftPreferences).where(ShiftPreferences.employee_id.in_(employee_ids))
    ).scalars().all() if employee_ids else []
    prefs_by_employee = {p.employee_id: p for p in pref_rows}

    time_off = load_time_off_dates(db, employee_ids, period)
    history = load_recent_history(db, employee_ids, history_as_of or period.start_date)

    employees = []
    for emp, user in rows:
        pref = prefs_by_employee.get(emp.id)
        unavailable = set(time_off.get(emp.id, set()))
        preferences = EmployeePreferences(unavailable_dates=unavailable)
        if pref is not None:
            unavailable.update(date.fromisoformat(d) for d in (pref.unavailable_dates or []))
            preferences = EmployeePreferences(
                unavailable_dates=unavailable,
                preferred_days=sorted(int(d) for d in (pref.preferred_days or [])),
                preferred_shifts=list(pref.preferred_shifts or []),
                max_shifts_per_week=pref.max_shifts_per_week,
                notes=pref.notes or "",
                confirmed=pref.confirmed,
            )

        employees.append(Employee(
            id=emp.id,
            full_name=user.full_name,
            shift_role=ShiftRole(emp.shift_role.value.lower()),
            bureau_id=emp.bureau_id,
            title=emp.title,
            preferences=preferences,
            recent_history=history.get(emp.id, RecentHistory()),
        ))

    return employees


def shift_key_for_id(shift_id: int) -> str:
    return f"db-{shift_id}"


def load_existing_shifts(
    db: Session,
    bureaus: list[Bureau],
    period: SchedulePeriod,
) -> list[Shift]:
    """Load saved shifts (with assignments) starting inside the period, plus a one-day margin."""
    if not bureaus:
        return []

    window_start, window_end = period_window_utc(period, bureaus)
    stmt = (
        select(Shifts)
        .where(
            and_(
                Shifts.bureau_id.in_([b.id for b in bureaus]),
                Shifts.start_datetime_utc >= window_start - CONTEXT_MARGIN,
                Shifts.start_datetime_utc < window_end + CONTEXT_MARGIN,
            )
        )
        .order_by(Shifts.start_datetime_utc, Shifts.id)
    )
    shift_rows = db.execute(stmt).scalars().all()
    if not shift_rows:
        return []

    assignment_rows = db.execute(
        select(ShiftAssignments)
        .where(ShiftAssignments.shift_id.in_([s.id for s in shift_rows]))
        .order_by(ShiftAssignments.id)
    ).scalars().all()

    assignments_by_shift: dict[int, list[Assignment]] = {}
    for a in assignment_rows:
        assignments_by_shift.setdefault(a.shift_id, []).append(Assignment(
            shift_key=shift_key_for_id(a.shift_id),
            employee_id=a.employee_id,
            status=AssignmentStatus(a.status.value.lower()),
            assigned_by=a.assigned_by_user_id,
            notes=a.notes or "",
            id=a.id,
        ))

    return [
        Shift(
            key=shift_key_for_id(s.id),
            id=s.id,
            bureau_id=s.bureau_id,
            start_time=to_utc(s.start_datetime_utc),
            end_time=to_utc(s.end_datetime_utc),
            required_staff=s.required_staff,
            role_requirements=[
                RoleRequirement(
                    role=ShiftRole(r["role"]),
                    min_count=int(r.get("min_count", 0)),
                    max_count=r.get("max_count"),
                )
                for r in (s.required_roles or [])
            ],
            status=ShiftStatus(s.status.value.lower()),
            notes=s.notes or "",
            assignments=assignments_by_shift.get(s.id, []),
        )
        for s in shift_rows
    ]


def load_schedule_context(db: Session, period: SchedulePeriod, bureau_scope: str) -> ScheduleContext:
    """
    Load all data needed to generate or validate a schedule for a period.

    returns ScheduleContext for the bureaus in scope
    """
    bureaus = load_bureaus(db, bureau_scope)
    bureau_ids = [b.id for b in bureaus]

    return ScheduleContext(
        period=period,
        bureaus=bureaus,
        employees=load_employees(db, bureau_ids, period),
        existing_shifts=load_existing_shifts(db, bureaus, period),
    )


def count_unconfirmed_preferences(db: Session, bureau_scope: str) -> int:
    """Active employees in scope whose preferences are missing or not yet confirmed by a team leader."""
    bureau_ids = [b.id for b in load_bureaus(db, bureau_scope)]
    if not bureau_ids:
        return 0

    stmt = (
        select(Employees.id, ShiftPreferences.confirmed)
        .outerjoin(ShiftPreferences, ShiftPreferences.employee_id == Employees.id)
        .where(
            and_(
                Employees.bureau_id.in_(bureau_ids),
                Employees.employment_status == EmploymentStatus.ACTIVE,
            )
        )
    )
    return sum(1 for _, confirmed in db.execute(stmt).all() if not confirmed)
