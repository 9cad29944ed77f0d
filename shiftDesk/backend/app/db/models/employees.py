from sqlalchemy import Integer, String, DateTime, func, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from enum import Enum
from app.db.database import Base

class EmploymentStatus(str, Enum):
    ACTIVE = "ACTIVE"
    LEAVER = "LEAVER"
    ON_LEAVE = "ON_LEAVE"

class ShiftRoleLevel(str, Enum):
    LEAD = "LEAD"
    SENIOR = "SENIOR"
    JUNIOR = "JUNIOR"
    SUPPORT = "SUPPORT"

class Employees(Base):
    __tablename__ = "employees"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), unique=True, nullable=False, index=True)
    bureau_id: Mapped[int] = mapped_column(Integer, ForeignKey("bureaus.id"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(100), nullable=False, default="Correspondent")
    shift_role: Mapped[ShiftRoleLevel] = mapped_column(SQLEnum(ShiftRoleLevel, name="shift_role_enum", native_enum=True), nullable=False)
    employment_status: Mapped[EmploymentStatus] = mapped_column(SQLEnum(EmploymentStatus, name="employment_status_enum", native_enum=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
