from sqlalchemy import Integer, String, DateTime, JSON, func
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from app.db.database import Base


DEFAULT_BUREAU_SETTINGS = {
    "min_senior_per_shift": 1,
    "max_junior_per_shift": 3,
    "require_lead": False,
    "shift_duration_hours": 8,
}


class Bureaus(Base):
    __tablename__ = "bureaus"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, index=True, nullable=False)
    code: Mapped[str] = mapped_column(String(10), unique=True, nullable=False)
    timezone: Mapped[str] = mapped_column(String(50), nullable=False, default="Europe/Rome")
    settings: Mapped[dict] = mapped_column(JSON, nullable=False, default=lambda: dict(DEFAULT_BUREAU_SETTINGS))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
