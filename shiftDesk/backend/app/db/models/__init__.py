from app.db.database import Base

# Import models
from app.db.models.users import Users
from app.db.models.bureaus import Bureaus, DEFAULT_BUREAU_SETTINGS
from app.db.models.user_roles import UserRoles, Role
from app.db.models.employees import Employees, EmploymentStatus, ShiftRoleLevel
from app.db.models.shift_preferences import ShiftPreferences
from app.db.models.time_off_requests import TimeOffRequests, TimeOffStatus, TimeOffReason
from app.db.models.shifts import Shifts, ShiftStatus, ShiftSource
from app.db.models.shift_assignments import ShiftAssignments, AssignmentStatus
from app.db.models.conflicts import Conflicts, ConflictKind, ConflictSeverityLevel, ConflictStatus

__all__ = [
    "Base",
    # Models
    "Users",
    "Bureaus",
    "UserRoles",
    "Employees",
    "ShiftPreferences",
    "TimeOffRequests",
    "Shifts",
    "ShiftAssignments",
    "Conflicts",
    # Enums
    "Role",
    "EmploymentStatus",
    "ShiftRoleLevel",
    "TimeOffStatus",
    "TimeOffReason",
    "ShiftStatus",
    "ShiftSource",
    "AssignmentStatus",
    "ConflictKind",
    "ConflictSeverityLevel",
    "ConflictStatus",
    # Defaults
    "DEFAULT_BUREAU_SETTINGS",
]
