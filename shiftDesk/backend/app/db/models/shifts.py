from sqlalchemy import Integer, DateTime, ForeignKey, JSON, Text, Enum as SQLEnum, Index, func
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from enum import Enum
from typing import Optional
from app.db.database import Base


class ShiftStatus(str, Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    COMPLETED = "COMPLETED"


class ShiftSource(str, Enum):
    MANUAL = "MANUAL"
    AI = "AI"
    IMPORT = "IMPORT"


class Shifts(Base):
    __tablename__ = "shifts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    bureau_id: Mapped[int] = mapped_column(Integer, ForeignKey("bureaus.id"), nullable=False)
    start_datetime_utc: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_datetime_utc: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    required_staff: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    required_roles: Mapped[list] = mapped_column(JSON, nullable=False, default=list)  # [{"role", "min_count", "max_count"}]
    status: Mapped[ShiftStatus] = mapped_column(SQLEnum(ShiftStatus, name="shift_status_enum"), nullable=False)
    source: Mapped[ShiftSource] = mapped_column(SQLEnum(ShiftSource, name="shift_source_enum"), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_by_user_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_shifts_bureau_start", "bureau_id", "start_datetime_utc"),
    )
