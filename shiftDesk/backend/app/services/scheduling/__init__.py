"""
Scheduling service package.

Usage:
    from datetime import date
    from app.services.scheduling import SchedulePeriod, load_schedule_context, validate_shifts

    period = SchedulePeriod(date(2025, 1, 13), date(2025, 1, 19))
    context = load_schedule_context(db, period, "Milan")
    conflicts = validate_shifts(context.existing_shifts, context.employees, context.bureaus, period)

    # Saving a generated schedule (see app.services.ai.generate_schedule)
    from app.services.scheduling import save_schedule, SaveMode
    shift_ids = save_schedule(db, schedule, actor_id=user.id, mode=SaveMode.CHECKED)
"""

from .types import (
    BOTH_BUREAUS,
    Assignment,
    AssignmentStatus,
    Bureau,
    BureauSettings,
    Conflict,
    ConflictSeverity,
    ConflictType,
    Employee,
    EmployeePreferences,
    GeneratedSchedule,
    PeriodType,
    RoleRequirement,
    ScheduleContext,
    SchedulePeriod,
    Shift,
    ShiftRole,
    ShiftStatus,
)
from .constraints import ValidationRules, has_hard_conflicts, validate, validate_shifts
from .data_loader import load_schedule_context
from .holidays import italian_holidays
from .persister import SaveMode, check_schedule, save_schedule

__all__ = [
    # Types
    "BOTH_BUREAUS",
    "Assignment",
    "AssignmentStatus",
    "Bureau",
    "BureauSettings",
    "Conflict",
    "ConflictSeverity",
    "ConflictType",
    "Employee",
    "EmployeePreferences",
    "GeneratedSchedule",
    "PeriodType",
    "RoleRequirement",
    "ScheduleContext",
    "SchedulePeriod",
    "Shift",
    "ShiftRole",
    "ShiftStatus",
    # Validation
    "ValidationRules",
    "validate",
    "validate_shifts",
    "has_hard_conflicts",
    # Storage
    "load_schedule_context",
    "save_schedule",
    "check_schedule",
    "SaveMode",
    "italian_holidays",
]
