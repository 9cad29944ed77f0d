from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from typing import Any, Literal, Optional

from app.services.scheduling.data_loader import to_utc
from app.services.scheduling.types import (
    Assignment,
    AssignmentStatus,
    Conflict,
    ConflictSeverity,
    ConflictType,
    GeneratedSchedule,
    PeriodType,
    RoleRequirement,
    SchedulePeriod,
    Shift,
    ShiftRole,
    ShiftStatus,
)


class GenerateScheduleRequest(BaseModel):
    start_date: date
    end_date: date
    type: Literal["week", "month", "quarter"] = "week"
    bureau: Literal["Milan", "Rome", "both"] = "both"
    preserve_existing: bool = True
    save_to_database: bool = False


class PeriodPayload(BaseModel):
    start_date: date
    end_date: date
    type: PeriodType = PeriodType.WEEK


class RoleRequirementPayload(BaseModel):
    role: ShiftRole
    min_count: int = Field(default=0, ge=0)
    max_count: Optional[int] = Field(default=None, ge=0)


class AssignmentPayload(BaseModel):
    employee_id: int
    status: AssignmentStatus = AssignmentStatus.ASSIGNED
    notes: str = ""


class ShiftPayload(BaseModel):
    key: str
    bureau_id: int
    start_time: datetime
    end_time: datetime
    required_staff: int = Field(default=1, ge=0)
    role_requirements: list[RoleRequirementPayload] = []
    status: ShiftStatus = ShiftStatus.DRAFT
    shift_type: str = ""
    notes: str = ""
    assignments: list[AssignmentPayload] = []


class ConflictPayload(BaseModel):
    type: ConflictType
    severity: ConflictSeverity
    message: str
    shift_keys: list[str] = []
    employee_id: Optional[int] = None
    details: dict[str, Any] = {}


class SchedulePayload(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    period: PeriodPayload
    bureau_scope: Literal["Milan", "Rome", "both"]
    shifts: list[ShiftPayload]
    conflicts: list[ConflictPayload] = []
    recommendations: list[str] = []
    fairness_metrics: dict[str, Any] = {}
    existing_shift_count: int = 0
    model_used: Optional[str] = None


class GenerateScheduleResponse(BaseModel):
    success: bool
    schedule: SchedulePayload
    saved: bool = False
    shift_ids: list[int] = []
    unconfirmed_preferences_count: int = 0


class SaveScheduleRequest(BaseModel):
    schedule: SchedulePayload
    skip_conflict_check: bool = False


class SaveScheduleResponse(BaseModel):
    success: bool
    saved_shifts: int
    shift_ids: list[int]


def conflict_to_payload(conflict: Conflict) -> ConflictPayload:
    return ConflictPayload(**conflict.to_dict())


def schedule_to_payload(schedule: GeneratedSchedule) -> SchedulePayload:
    return SchedulePayload(
        period=PeriodPayload(
            start_date=schedule.period.start_date,
            end_date=schedule.period.end_date,
            type=schedule.period.type,
        ),
        bureau_scope=schedule.bureau_scope,
        shifts=[
            ShiftPayload(
                key=s.key,
                bureau_id=s.bureau_id,
                start_time=s.start_time,
                end_time=s.end_time,
                required_staff=s.required_staff,
                role_requirements=[
                    RoleRequirementPayload(role=r.role, min_count=r.min_count, max_count=r.max_count)
                    for r in s.role_requirements
                ],
                status=s.status,
                shift_type=s.shift_type,
                notes=s.notes,
                assignments=[
                    AssignmentPayload(employee_id=a.employee_id, status=a.status, notes=a.notes)
                    for a in s.assignments
                ],
            )
            for s in schedule.shifts
        ],
        conflicts=[conflict_to_payload(c) for c in schedule.conflicts],
        recommendations=schedule.recommendations,
        fairness_metrics=schedule.fairness_metrics,
        existing_shift_count=schedule.existing_shift_count,
        model_used=schedule.model_used,
    )


def payload_to_schedule(payload: SchedulePayload) -> GeneratedSchedule:
    """
    Rebuild the domain schedule from a (possibly edited) payload.
    Naive datetimes are taken as UTC. Raises ValueError on an invalid period or shift window.
    """
    keys = [s.key for s in payload.shifts]
    if len(set(keys)) != len(keys):
        raise ValueError("Shift keys must be unique")

    return GeneratedSchedule(
        period=SchedulePeriod(
            start_date=payload.period.start_date,
            end_date=payload.period.end_date,
            type=payload.period.type,
        ),
        bureau_scope=payload.bureau_scope,
        shifts=[
            Shift(
                key=s.key,
                bureau_id=s.bureau_id,
                start_time=to_utc(s.start_time),
                end_time=to_utc(s.end_time),
                required_staff=s.required_staff,
                role_requirements=[
                    RoleRequirement(role=r.role, min_count=r.min_count, max_count=r.max_count)
                    for r in s.role_requirements
                ],
                status=s.status,
                shift_type=s.shift_type,
                notes=s.notes,
                assignments=[
                    Assignment(shift_key=s.key, employee_id=a.employee_id, status=a.status, notes=a.notes)
                    for a in s.assignments
                ],
            )
            for s in payload.shifts
        ],
        conflicts=[
            Conflict(
                type=c.type,
                severity=c.severity,
                message=c.message,
                shift_keys=tuple(c.shift_keys),
                employee_id=c.employee_id,
                details=c.details,
            )
            for c in payload.conflicts
        ],
        recommendations=payload.recommendations,
        fairness_metrics=payload.fairness_metrics,
        existing_shift_count=payload.existing_shift_count,
        model_used=payload.model_used,
    )
