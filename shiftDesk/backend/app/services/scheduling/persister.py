"""
Transactional save of a generated schedule.

All shifts, their assignments and any soft conflicts are written in one
transaction. Any database error rolls the whole session back.
"""

import logging
from enum import Enum
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.models.conflicts import Conflicts, ConflictKind, ConflictSeverityLevel, ConflictStatus
from app.db.models.employees import Employees
from app.db.models.shift_assignments import ShiftAssignments, AssignmentStatus as DbAssignmentStatus
from app.db.models.shifts import Shifts, ShiftSource, ShiftStatus as DbShiftStatus
from app.services.errors import ConflictError, PersistenceError

from .constraints import ValidationRules, validate_shifts
from .data_loader import load_schedule_context
from .types import BOTH_BUREAUS, Conflict, GeneratedSchedule, Shift

logger = logging.getLogger(__name__)


class SaveMode(str, Enum):
    CHECKED = "checked"  # re-validate and refuse on hard conflicts
    UNCHECKED = "unchecked"


def check_schedule(
    db: Session,
    schedule: GeneratedSchedule,
    rules: Optional[ValidationRules] = None,
) -> list[Conflict]:
    """
    Re-validate a schedule together with the shifts already saved for its period.

    The roster comes from the bureaus the shifts belong to, whatever bureau_scope says.
    raises PersistenceError if a shift names a bureau that does not exist
    """
    rules = rules or ValidationRules.from_settings(settings)
    context = load_schedule_context(db, schedule.period, BOTH_BUREAUS)

    unknown = {s.bureau_id for s in schedule.shifts} - {b.id for b in context.bureaus}
    if unknown:
        raise PersistenceError(
            "Schedule references unknown bureaus",
            detail=f"Unknown bureau ids: {sorted(unknown)}",
        )

    new_keys = {s.key for s in schedule.shifts}
    existing = [s for s in context.existing_shifts if s.key not in new_keys]
    return validate_shifts(
        existing + schedule.shifts,
        context.employees,
        context.bureaus,
        period=schedule.period,
        rules=rules,
        only_shift_keys=new_keys,
    )


def _shift_row(shift: Shift, actor_id: Optional[int]) -> Shifts:
    return Shifts(
        bureau_id=shift.bureau_id,
        start_datetime_utc=shift.start_time,
        end_datetime_utc=shift.end_time,
        required_staff=shift.required_staff,
        required_roles=[
            {"role": r.role.value, "min_count": r.min_count, "max_count": r.max_count}
            for r in shift.role_requirements
        ],
        status=DbShiftStatus[shift.status.name],
        source=ShiftSource.AI,
        notes=shift.notes or shift.shift_type or None,
        created_by_user_id=actor_id,
    )


def _missing_employees(db: Session, schedule: GeneratedSchedule) -> set[int]:
    wanted = {a.employee_id for a in schedule.assignments}
    if not wanted:
        return set()
    found = db.execute(select(Employees.id).where(Employees.id.in_(wanted))).scalars().all()
    return wanted - set(found)


def save_schedule(
    db: Session,
    schedule: GeneratedSchedule,
    actor_id: Optional[int],
    mode: SaveMode = SaveMode.CHECKED,
    rules: Optional[ValidationRules] = None,
) -> list[int]:
    """
    Persist shifts and assignments in one transaction.

    returns the new shift ids in the order of schedule.shifts
    raises ConflictError (checked mode, hard conflicts found) or PersistenceError
    """
    if not schedule.shifts:
        raise PersistenceError("Schedule has no shifts to save")

    soft_conflicts: list[Conflict] = []
    if mode == SaveMode.CHECKED:
        conflicts = check_schedule(db, schedule, rules)
        hard = [c for c in conflicts if c.is_hard]
        if hard:
            logger.info(f"Refusing to save schedule: {len(hard)} hard conflict(s)")
            raise ConflictError(hard)
        soft_conflicts = conflicts

    try:
        missing = _missing_employees(db, schedule)
        if missing:
            raise PersistenceError(
                "Schedule references unknown employees",
                detail=f"Unknown employee ids: {sorted(missing)}",
            )

        # 1. Shifts
        rows = [_shift_row(shift, actor_id) for shift in schedule.shifts]
        db.add_all(rows)
        db.flush()  # mint ids without committing
        ids_by_key = {shift.key: row.id for shift, row in zip(schedule.shifts, rows)}

        # 2. Assignments
        for shift, row in zip(schedule.shifts, rows):
            for a in shift.assignments:
                db.add(ShiftAssignments(
                    shift_id=row.id,
                    employee_id=a.employee_id,
                    status=DbAssignmentStatus[a.status.name],
                    assigned_by_user_id=actor_id,
                    notes=a.notes or None,
                ))
        db.flush()

        # 3. Soft conflicts found by the check
        for c in soft_conflicts:
            shift_id = next((ids_by_key[k] for k in c.shift_keys if k in ids_by_key), None)
            db.add(Conflicts(
                type=ConflictKind[c.type.name],
                severity=ConflictSeverityLevel[c.severity.name],
                status=ConflictStatus.DETECTED,
                shift_id=shift_id,
                employee_id=c.employee_id,
                message=c.message,
                details={**c.details, "shift_keys": list(c.shift_keys)},
            ))

        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to save schedule, rolled back: {e}")
        raise PersistenceError("Failed to save schedule", detail=str(e)) from e

    shift_ids = [ids_by_key[s.key] for s in schedule.shifts]
    logger.info(
        f"Saved {len(shift_ids)} shifts and {len(schedule.assignments)} assignments "
        f"({mode.value}, {len(soft_conflicts)} soft conflicts recorded)"
    )
    return shift_ids
