from typing import Optional
from datetime import datetime
from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, JSON, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.database import Base


class ShiftPreferences(Base):
    __tablename__ = "shift_preferences"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    employee_id: Mapped[int] = mapped_column(Integer, ForeignKey("employees.id"), unique=True, nullable=False, index=True)
    preferred_days: Mapped[list] = mapped_column(JSON, nullable=False, default=list)  # 0=Monday .. 6=Sunday
    preferred_shifts: Mapped[list] = mapped_column(JSON, nullable=False, default=list)  # "Morning" | "Afternoon" | "Night"
    unavailable_dates: Mapped[list] = mapped_column(JSON, nullable=False, default=list)  # ISO dates
    max_shifts_per_week: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    confirmed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    confirmed_by_user_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id"), nullable=True)
    confirmed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
