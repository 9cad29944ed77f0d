from pydantic import BaseModel
from datetime import datetime
from typing import Any, Optional
from app.db.models.conflicts import ConflictKind, ConflictSeverityLevel, ConflictStatus


class ConflictResponse(BaseModel):
    id: int
    type: ConflictKind
    severity: ConflictSeverityLevel
    status: ConflictStatus
    shift_id: Optional[int]
    employee_id: Optional[int]
    message: str
    details: dict[str, Any]
    detected_at: datetime
    acknowledged_by_user_id: Optional[int]
    acknowledged_at: Optional[datetime]
    resolved_by_user_id: Optional[int]
    resolved_at: Optional[datetime]

    class Config:
        from_attributes = True
