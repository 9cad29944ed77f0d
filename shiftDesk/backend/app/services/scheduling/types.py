"""
Internal data types for scheduling logic.
decoupled from SQLAlchemy models for cleaner logic.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Optional

BOTH_BUREAUS = "both"


class ShiftRole(str, Enum):
    LEAD = "lead"
    SENIOR = "senior"
    JUNIOR = "junior"
    SUPPORT = "support"


class ShiftStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    COMPLETED = "completed"


class AssignmentStatus(str, Enum):
    ASSIGNED = "assigned"
    CONFIRMED = "confirmed"
    DECLINED = "declined"
    COMPLETED = "completed"


class PeriodType(str, Enum):
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    SPECIAL_EVENT = "special_event"


class ConflictType(str, Enum):
    DOUBLE_BOOKING = "double_booking"
    REST_PERIOD_VIOLATION = "rest_period_violation"
    INSUFFICIENT_COVERAGE = "insufficient_coverage"
    ROLE_IMBALANCE = "role_imbalance"
    SKILL_GAP = "skill_gap"
    PREFERENCE_VIOLATION = "preference_violation"
    OVERTIME_RISK = "overtime_risk"


class ConflictSeverity(str, Enum):
    SOFT = "soft"
    HARD = "hard"


@dataclass
class BureauSettings:
    min_senior_per_shift: int = 1
    max_junior_per_shift: int = 3
    require_lead: bool = False
    shift_duration_hours: int = 8

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "BureauSettings":
        data = data or {}
        defaults = cls()
        return cls(
            min_senior_per_shift=int(data.get("min_senior_per_shift", defaults.min_senior_per_shift)),
            max_junior_per_shift=int(data.get("max_junior_per_shift", defaults.max_junior_per_shift)),
            require_lead=bool(data.get("require_lead", defaults.require_lead)),
            shift_duration_hours=int(data.get("shift_duration_hours", defaults.shift_duration_hours)),
        )


@dataclass
class Bureau:
    id: int
    name: str
    code: str
    timezone: str = "Europe/Rome"
    settings: BureauSettings = field(default_factory=BureauSettings)


@dataclass
class EmployeePreferences:
    unavailable_dates: set[date] = field(default_factory=set)
    preferred_days: list[int] = field(default_factory=list)  # 0=Monday .. 6=Sunday
    preferred_shifts: list[str] = field(default_factory=list)
    max_shifts_per_week: int = 5
    notes: str = ""
    confirmed: bool = False


@dataclass
class RecentHistory:
    """Shift counts over the last month, used for fair rotation."""
    weekend_shifts: int = 0
    night_shifts: int = 0
    total_shifts: int = 0


@dataclass
class Employee:
    id: int
    full_name: str
    shift_role: ShiftRole
    bureau_id: int
    title: str = ""
    preferences: EmployeePreferences = field(default_factory=EmployeePreferences)
    recent_history: RecentHistory = field(default_factory=RecentHistory)


@dataclass
class RoleRequirement:
    role: ShiftRole
    min_count: int = 0
    max_count: Optional[int] = None


@dataclass
class Assignment:
    """Binding of one employee to one shift, referenced by shift key."""
    shift_key: str
    employee_id: int
    status: AssignmentStatus = AssignmentStatus.ASSIGNED
    assigned_by: Optional[int] = None
    notes: str = ""
    id: Optional[int] = None

    @property
    def is_active(self) -> bool:
        return self.status != AssignmentStatus.DECLINED


@dataclass
class Shift:
    """
    A staffed time window [start_time, end_time) in one bureau.
    Times are timezone-aware UTC. `key` identifies the shift before it has a database id.
    """
    key: str
    bureau_id: int
    start_time: datetime
    end_time: datetime
    required_staff: int = 1
    role_requirements: list[RoleRequirement] = field(default_factory=list)
    status: ShiftStatus = ShiftStatus.DRAFT
    shift_type: str = ""
    notes: str = ""
    id: Optional[int] = None
    assignments: list[Assignment] = field(default_factory=list)

    def __post_init__(self):
        if self.start_time >= self.end_time:
            raise ValueError(
                f"Shift {self.key} must start before it ends "
                f"({self.start_time.isoformat()} >= {self.end_time.isoformat()})"
            )

    @property
    def duration_hours(self) -> float:
        delta = self.end_time - self.start_time
        return delta.total_seconds() / 3600

    @property
    def active_assignments(self) -> list[Assignment]:
        return [a for a in self.assignments if a.is_active]


@dataclass
class SchedulePeriod:
    start_date: date
    end_date: date
    type: PeriodType = PeriodType.WEEK

    def __post_init__(self):
        if self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    def dates(self) -> list[date]:
        return [self.start_date + timedelta(days=i) for i in range(self.days)]

    def to_dict(self) -> dict:
        return {
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "type": self.type.value,
        }


@dataclass
class Conflict:
    """A detected scheduling rule violation. Derived data, never edited by hand."""
    type: ConflictType
    severity: ConflictSeverity
    message: str
    shift_keys: tuple[str, ...] = ()
    employee_id: Optional[int] = None
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def is_hard(self) -> bool:
        return self.severity == ConflictSeverity.HARD

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "severity": self.severity.value,
            "message": self.message,
            "shift_keys": list(self.shift_keys),
            "employee_id": self.employee_id,
            "details": self.details,
        }


@dataclass
class ScheduleContext:
    """All data needed to generate or validate a schedule for one period."""
    period: SchedulePeriod
    bureaus: list[Bureau]
    employees: list[Employee]
    existing_shifts: list[Shift] = field(default_factory=list)

    def bureau_by_name(self, name: str) -> Optional[Bureau]:
        return next((b for b in self.bureaus if b.name.lower() == name.lower()), None)

    def employees_for_bureau(self, bureau_id: int) -> list[Employee]:
        return [e for e in self.employees if e.bureau_id == bureau_id]


@dataclass
class GeneratedSchedule:
    """In-memory proposal produced by the generator. Not persisted until saved."""
    period: SchedulePeriod
    bureau_scope: str
    shifts: list[Shift]
    conflicts: list[Conflict] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    fairness_metrics: dict[str, Any] = field(default_factory=dict)
    existing_shift_count: int = 0
    model_used: Optional[str] = None

    @property
    def assignments(self) -> list[Assignment]:
        return [a for s in self.shifts for a in s.assignments]

    @property
    def hard_conflicts(self) -> list[Conflict]:
        return [c for c in self.conflicts if c.is_hard]
