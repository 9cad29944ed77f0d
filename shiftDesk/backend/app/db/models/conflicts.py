from typing import Optional
from enum import Enum
from datetime import datetime
from sqlalchemy import DateTime, ForeignKey, Integer, JSON, Text, Enum as SQLEnum, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.database import Base


class ConflictKind(str, Enum):
    DOUBLE_BOOKING = "DOUBLE_BOOKING"
    REST_PERIOD_VIOLATION = "REST_PERIOD_VIOLATION"
    INSUFFICIENT_COVERAGE = "INSUFFICIENT_COVERAGE"
    ROLE_IMBALANCE = "ROLE_IMBALANCE"
    SKILL_GAP = "SKILL_GAP"
    PREFERENCE_VIOLATION = "PREFERENCE_VIOLATION"
    OVERTIME_RISK = "OVERTIME_RISK"


class ConflictSeverityLevel(str, Enum):
    SOFT = "SOFT"
    HARD = "HARD"


class ConflictStatus(str, Enum):
    DETECTED = "DETECTED"
    ACKNOWLEDGED = "ACKNOWLEDGED"
    RESOLVED = "RESOLVED"


class Conflicts(Base):
    __tablename__ = "conflicts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    type: Mapped[ConflictKind] = mapped_column(SQLEnum(ConflictKind, name="conflict_kind_enum"), nullable=False, index=True)
    severity: Mapped[ConflictSeverityLevel] = mapped_column(SQLEnum(ConflictSeverityLevel, name="conflict_severity_enum"), nullable=False)
    status: Mapped[ConflictStatus] = mapped_column(SQLEnum(ConflictStatus, name="conflict_status_enum"), nullable=False, default=ConflictStatus.DETECTED, index=True)
    shift_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("shifts.id", ondelete="CASCADE"), nullable=True, index=True)
    employee_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("employees.id"), nullable=True, index=True)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    details: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    detected_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    acknowledged_by_user_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id"), nullable=True)
    acknowledged_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    resolved_by_user_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id"), nullable=True)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
