"""
Constraint checking for schedule validation.
Detects double bookings, rest-period violations, coverage gaps, role imbalance,
skill gaps, preference violations and overtime risk. Pure functions, no I/O.
"""

import math
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Iterable, Optional
from zoneinfo import ZoneInfo

from .types import (
    Assignment,
    Bureau,
    BureauSettings,
    Conflict,
    ConflictSeverity,
    ConflictType,
    Employee,
    SchedulePeriod,
    Shift,
    ShiftRole,
)

WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


@dataclass(frozen=True)
class ValidationRules:
    min_rest_hours: float = 11.0
    hard_rest_hours: float = 8.0  # gaps below this are hard, the rest of the window is soft
    days_per_week: int = 7

    @classmethod
    def from_settings(cls, settings) -> "ValidationRules":
        return cls(
            min_rest_hours=settings.MIN_REST_HOURS,
            hard_rest_hours=settings.HARD_REST_HOURS,
        )


DEFAULT_RULES = ValidationRules()


def datetime_ranges_overlap(
    start1: datetime, end1: datetime,
    start2: datetime, end2: datetime
) -> bool:
    """Check if two half-open datetime ranges overlap."""
    return start1 < end2 and start2 < end1


def local_date(shift: Shift, bureau: Optional[Bureau]) -> date:
    """Calendar date of the shift start in the bureau's timezone."""
    if bureau is None or shift.start_time.tzinfo is None:
        return shift.start_time.date()
    return shift.start_time.astimezone(ZoneInfo(bureau.timezone)).date()


def _employee_timelines(
    shifts_by_key: dict[str, Shift],
    assignments: Iterable[Assignment],
) -> dict[int, list[Shift]]:
    """employee_id -> that employee's shifts sorted by start time (declined assignments dropped)."""
    timelines: dict[int, list[Shift]] = defaultdict(list)
    for a in assignments:
        if not a.is_active:
            continue
        shift = shifts_by_key.get(a.shift_key)
        if shift is not None:
            timelines[a.employee_id].append(shift)
    for emp_shifts in timelines.values():
        emp_shifts.sort(key=lambda s: (s.start_time, s.key))
    return timelines


def _describe(shift: Shift) -> str:
    return f"{shift.start_time.isoformat()} - {shift.end_time.isoformat()}"


def _name(employees: dict[int, Employee], employee_id: int) -> str:
    emp = employees.get(employee_id)
    return emp.full_name if emp else f"Employee {employee_id}"


def check_double_booking(
    timelines: dict[int, list[Shift]],
    employees: dict[int, Employee],
) -> list[Conflict]:
    """One hard conflict per overlapping pair of shifts held by the same employee."""
    conflicts = []
    for employee_id, emp_shifts in timelines.items():
        for i, first in enumerate(emp_shifts):
            for second in emp_shifts[i + 1:]:
                if second.start_time >= first.end_time:
                    break
                conflicts.append(Conflict(
                    type=ConflictType.DOUBLE_BOOKING,
                    severity=ConflictSeverity.HARD,
                    message=f"{_name(employees, employee_id)} has overlapping shifts",
                    shift_keys=(first.key, second.key),
                    employee_id=employee_id,
                    details={
                        "shift_time": _describe(first),
                        "conflict_time": _describe(second),
                    },
                ))
    return conflicts


def check_rest_periods(
    timelines: dict[int, list[Shift]],
    employees: dict[int, Employee],
    rules: ValidationRules,
) -> list[Conflict]:
    """
    Shifts starting less than the minimum rest after the latest end so far.
    A shortened shift nested inside a longer one does not reset the clock.
    Overlapping pairs (negative gap) are reported by the double booking check only.
    """
    conflicts = []
    for employee_id, emp_shifts in timelines.items():
        if not emp_shifts:
            continue
        previous = emp_shifts[0]
        for following in emp_shifts[1:]:
            gap_hours = (following.start_time - previous.end_time).total_seconds() / 3600
            if 0 <= gap_hours < rules.min_rest_hours:
                severity = ConflictSeverity.HARD if gap_hours < rules.hard_rest_hours else ConflictSeverity.SOFT
                conflicts.append(Conflict(
                    type=ConflictType.REST_PERIOD_VIOLATION,
                    severity=severity,
                    message=(
                        f"{_name(employees, employee_id)} has only {gap_hours:.1f}h rest between shifts "
                        f"(minimum {rules.min_rest_hours:g}h required)"
                    ),
                    shift_keys=(previous.key, following.key),
                    employee_id=employee_id,
                    details={
                        "hours_between": round(gap_hours, 2),
                        "minimum_required": rules.min_rest_hours,
                        "previous_shift_end": previous.end_time.isoformat(),
                    },
                ))
            if following.end_time > previous.end_time:
                previous = following
    return conflicts


def check_coverage(shifts: list[Shift], assignments_by_shift: dict[str, list[Assignment]]) -> list[Conflict]:
    conflicts = []
    for shift in shifts:
        assigned = sum(1 for a in assignments_by_shift.get(shift.key, []) if a.is_active)
        if assigned < shift.required_staff:
            conflicts.append(Conflict(
                type=ConflictType.INSUFFICIENT_COVERAGE,
                severity=ConflictSeverity.HARD,
                message=f"Understaffed: need {shift.required_staff}, have {assigned}",
                shift_keys=(shift.key,),
                details={"required": shift.required_staff, "actual": assigned},
            ))
    return conflicts


def effective_role_bounds(
    shift: Shift,
    settings: Optional[BureauSettings],
) -> dict[ShiftRole, tuple[int, Optional[int]]]:
    """
    Merge the shift's own role requirements with bureau settings.
    The larger minimum and the smaller maximum win.
    """
    bounds: dict[ShiftRole, tuple[int, Optional[int]]] = {}

    def tighten(role: ShiftRole, min_count: int, max_count: Optional[int]):
        current_min, current_max = bounds.get(role, (0, None))
        new_max = current_max
        if max_count is not None:
            new_max = max_count if current_max is None else min(current_max, max_count)
        bounds[role] = (max(current_min, min_count), new_max)

    for req in shift.role_requirements:
        tighten(req.role, req.min_count, req.max_count)

    if settings is not None:
        if settings.min_senior_per_shift > 0:
            tighten(ShiftRole.SENIOR, settings.min_senior_per_shift, None)
        tighten(ShiftRole.JUNIOR, 0, settings.max_junior_per_shift)
        if settings.require_lead:
            tighten(ShiftRole.LEAD, 1, None)

    return bounds


def _role_counts(
    shift_assignments: list[Assignment],
    employees: dict[int, Employee],
) -> dict[ShiftRole, int]:
    counts = {role: 0 for role in ShiftRole}
    for a in shift_assignments:
        emp = employees.get(a.employee_id)
        if a.is_active and emp is not None:
            counts[emp.shift_role] += 1
    return counts


def check_role_balance(
    shifts: list[Shift],
    assignments_by_shift: dict[str, list[Assignment]],
    employees: dict[int, Employee],
    bureau_by_shift: dict[str, Bureau],
) -> list[Conflict]:
    conflicts = []
    for shift in shifts:
        bureau = bureau_by_shift.get(shift.key)
        bounds = effective_role_bounds(shift, bureau.settings if bureau else None)
        counts = _role_counts(assignments_by_shift.get(shift.key, []), employees)
        actual = {role.value: count for role, count in counts.items()}

        for role in ShiftRole:
            if role not in bounds:
                continue
            min_count, max_count = bounds[role]
            have = counts[role]
            if have < min_count:
                conflicts.append(Conflict(
                    type=ConflictType.ROLE_IMBALANCE,
                    severity=ConflictSeverity.HARD,
                    message=f"Insufficient {role.value} staff: need {min_count}, have {have}",
                    shift_keys=(shift.key,),
                    details={"role": role.value, "min_count": min_count, "actual": actual},
                ))
            if max_count is not None and have > max_count:
                conflicts.append(Conflict(
                    type=ConflictType.ROLE_IMBALANCE,
                    severity=ConflictSeverity.SOFT,
                    message=f"Too many {role.value} staff: max {max_count}, have {have}",
                    shift_keys=(shift.key,),
                    details={"role": role.value, "max_count": max_count, "actual": actual},
                ))
    return conflicts


def check_skill_gaps(
    shifts: list[Shift],
    assignments_by_shift: dict[str, list[Assignment]],
    employees: dict[int, Employee],
) -> list[Conflict]:
    """Shifts staffed only by juniors."""
    conflicts = []
    for shift in shifts:
        counts = _role_counts(assignments_by_shift.get(shift.key, []), employees)
        if counts[ShiftRole.JUNIOR] > 0 and counts[ShiftRole.SENIOR] == 0 and counts[ShiftRole.LEAD] == 0:
            conflicts.append(Conflict(
                type=ConflictType.SKILL_GAP,
                severity=ConflictSeverity.HARD,
                message="Shift has only junior staff - at least one senior or lead required",
                shift_keys=(shift.key,),
                details={"role_counts": {role.value: n for role, n in counts.items()}},
            ))
    return conflicts


def check_preferences(
    shifts_by_key: dict[str, Shift],
    assignments: list[Assignment],
    employees: dict[int, Employee],
    bureau_by_shift: dict[str, Bureau],
) -> list[Conflict]:
    conflicts = []
    for a in assignments:
        emp = employees.get(a.employee_id)
        shift = shifts_by_key.get(a.shift_key)
        if not a.is_active or emp is None or shift is None:
            continue

        shift_date = local_date(shift, bureau_by_shift.get(shift.key))
        prefs = emp.preferences

        if shift_date in prefs.unavailable_dates:
            conflicts.append(Conflict(
                type=ConflictType.PREFERENCE_VIOLATION,
                severity=ConflictSeverity.SOFT,
                message=f"{emp.full_name} marked {shift_date.isoformat()} as unavailable",
                shift_keys=(shift.key,),
                employee_id=emp.id,
                details={"date": shift_date.isoformat()},
            ))

        if prefs.preferred_days and shift_date.weekday() not in prefs.preferred_days:
            conflicts.append(Conflict(
                type=ConflictType.PREFERENCE_VIOLATION,
                severity=ConflictSeverity.SOFT,
                message=f"{emp.full_name} prefers not to work on {WEEKDAY_NAMES[shift_date.weekday()]}",
                shift_keys=(shift.key,),
                employee_id=emp.id,
                details={"day": shift_date.weekday(), "preferred_days": list(prefs.preferred_days)},
            ))
    return conflicts


def check_overtime(
    timelines: dict[int, list[Shift]],
    employees: dict[int, Employee],
    period_days: int,
    rules: ValidationRules,
    in_period: Optional[Callable[[Shift], bool]] = None,
) -> list[Conflict]:
    """Assignment count above max_shifts_per_week scaled to the period length, rounded up."""
    conflicts = []
    for employee_id, emp_shifts in timelines.items():
        emp = employees.get(employee_id)
        if in_period is not None:
            emp_shifts = [s for s in emp_shifts if in_period(s)]
        if emp is None or not emp_shifts:
            continue
        allowed = math.ceil(emp.preferences.max_shifts_per_week * period_days / rules.days_per_week)
        count = len(emp_shifts)
        if count > allowed:
            conflicts.append(Conflict(
                type=ConflictType.OVERTIME_RISK,
                severity=ConflictSeverity.SOFT,
                message=(
                    f"{emp.full_name} would work {count} shifts, over the limit of "
                    f"{allowed} for {period_days} day(s)"
                ),
                shift_keys=tuple(s.key for s in emp_shifts),
                employee_id=employee_id,
                details={
                    "shift_count": count,
                    "max_shifts_per_week": emp.preferences.max_shifts_per_week,
                    "allowed_in_period": allowed,
                    "period_days": period_days,
                },
            ))
    return conflicts


def _period_days(
    shifts: list[Shift],
    bureau_by_shift: dict[str, Bureau],
    period: Optional[SchedulePeriod],
) -> int:
    if period is not None:
        return period.days
    if not shifts:
        return 1
    dates = [local_date(s, bureau_by_shift.get(s.key)) for s in shifts]
    return (max(dates) - min(dates)).days + 1


def validate(
    shifts: list[Shift],
    assignments: list[Assignment],
    bureau_by_shift: dict[str, Bureau],
    employees: list[Employee],
    period: Optional[SchedulePeriod] = None,
    rules: ValidationRules = DEFAULT_RULES,
) -> list[Conflict]:
    """
    Validate a set of shifts and assignments against all scheduling rules.

    Conflicts come back grouped by check, in this order: double booking, rest period,
    coverage, role imbalance, skill gap, preferences, overtime. Within a check they are
    ordered by shift start time, then employee id, then shift key, so repeated calls on
    the same input return identical lists.

    Args:
        shifts: Shifts to check. Nested `assignments` on the shifts are ignored here.
        assignments: Assignments referencing the shifts by key.
        bureau_by_shift: shift key -> bureau (settings and timezone).
        employees: Roster used for roles and preferences.
        period: Period for overtime scaling; defaults to the span of shift dates.
        rules: Rest and overtime thresholds.
    """
    shifts_by_key = {s.key: s for s in shifts}
    employee_map = {e.id: e for e in employees}
    assignments = [a for a in assignments if a.shift_key in shifts_by_key]

    assignments_by_shift: dict[str, list[Assignment]] = defaultdict(list)
    for a in assignments:
        assignments_by_shift[a.shift_key].append(a)

    timelines = _employee_timelines(shifts_by_key, assignments)
    period_days = _period_days(shifts, bureau_by_shift, period)

    def ordered(found: list[Conflict]) -> list[Conflict]:
        def sort_key(c: Conflict):
            starts = [shifts_by_key[k].start_time for k in c.shift_keys]
            employee = c.employee_id if c.employee_id is not None else -1
            return (min(starts), employee, c.shift_keys)
        return sorted(found, key=sort_key)

    conflicts: list[Conflict] = []
    conflicts += ordered(check_double_booking(timelines, employee_map))
    conflicts += ordered(check_rest_periods(timelines, employee_map, rules))
    conflicts += ordered(check_coverage(shifts, assignments_by_shift))
    conflicts += ordered(check_role_balance(shifts, assignments_by_shift, employee_map, bureau_by_shift))
    conflicts += ordered(check_skill_gaps(shifts, assignments_by_shift, employee_map))
    conflicts += ordered(check_preferences(shifts_by_key, assignments, employee_map, bureau_by_shift))
    in_period = None
    if period is not None:
        def in_period(shift: Shift) -> bool:
            return period.start_date <= local_date(shift, bureau_by_shift.get(shift.key)) <= period.end_date

    conflicts += ordered(check_overtime(timelines, employee_map, period_days, rules, in_period))
    return conflicts


def validate_shifts(
    shifts: list[Shift],
    employees: list[Employee],
    bureaus: list[Bureau],
    period: Optional[SchedulePeriod] = None,
    rules: ValidationRules = DEFAULT_RULES,
    only_shift_keys: Optional[set[str]] = None,
) -> list[Conflict]:
    """
    Validate shifts carrying nested assignments.
    With `only_shift_keys`, keep only conflicts touching at least one of those shifts
    (used to check a new schedule against already-saved commitments).
    """
    bureau_map = {b.id: b for b in bureaus}
    bureau_by_shift = {s.key: bureau_map[s.bureau_id] for s in shifts if s.bureau_id in bureau_map}
    assignments = [a for s in shifts for a in s.assignments]

    conflicts = validate(shifts, assignments, bureau_by_shift, employees, period, rules)

    if only_shift_keys is not None:
        conflicts = [c for c in conflicts if only_shift_keys.intersection(c.shift_keys)]
    return conflicts


def has_hard_conflicts(conflicts: list[Conflict]) -> bool:
    return any(c.is_hard for c in conflicts)
