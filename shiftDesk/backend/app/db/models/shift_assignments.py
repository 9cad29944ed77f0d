from sqlalchemy import Integer, DateTime, ForeignKey, Text, Enum as SQLEnum, Index, UniqueConstraint, func
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from enum import Enum
from typing import Optional
from app.db.database import Base


class AssignmentStatus(str, Enum):
    ASSIGNED = "ASSIGNED"
    CONFIRMED = "CONFIRMED"
    DECLINED = "DECLINED"
    COMPLETED = "COMPLETED"


class ShiftAssignments(Base):
    __tablename__ = "shift_assignments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    shift_id: Mapped[int] = mapped_column(Integer, ForeignKey("shifts.id", ondelete="CASCADE"), nullable=False)
    employee_id: Mapped[int] = mapped_column(Integer, ForeignKey("employees.id"), nullable=False)
    status: Mapped[AssignmentStatus] = mapped_column(SQLEnum(AssignmentStatus, name="assignment_status_enum"), nullable=False)
    assigned_by_user_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id"), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("shift_id", "employee_id"),
        Index("ix_shift_assignments_employee", "employee_id"),
    )
