from datetime import datetime, timezone
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_scheduler
from app.db.models.bureaus import Bureaus
from app.db.models.conflicts import Conflicts, ConflictStatus
from app.db.models.shifts import Shifts
from app.db.models.users import Users
from app.schemas.conflicts import ConflictResponse

router = APIRouter(prefix="/conflicts", tags=["conflicts"])


@router.get("", response_model=List[ConflictResponse])
def list_conflicts(
    status_filter: Optional[ConflictStatus] = Query(None, alias="status"),
    bureau: Optional[str] = Query(None),
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    current_user: Users = Depends(require_scheduler),
):
    """List detected conflicts - scheduler/manager/admin only"""
    query = db.query(Conflicts)

    if status_filter:
        query = query.filter(Conflicts.status == status_filter)

    if bureau:
        query = (
            query.join(Shifts, Shifts.id == Conflicts.shift_id)
            .join(Bureaus, Bureaus.id == Shifts.bureau_id)
            .filter(Bureaus.name == bureau)
        )

    return query.order_by(Conflicts.detected_at.desc(), Conflicts.id.desc()).offset(skip).limit(limit).all()


@router.patch("/{conflict_id}/acknowledge", response_model=ConflictResponse)
def acknowledge_conflict(
    conflict_id: int,
    db: Session = Depends(get_db),
    current_user: Users = Depends(require_scheduler),
):
    """Acknowledge a detected conflict"""
    conflict = db.query(Conflicts).filter(Conflicts.id == conflict_id).first()
    if not conflict:
        raise HTTPException(status_code=404, detail="Conflict not found")

    if conflict.status != ConflictStatus.DETECTED:
        raise HTTPException(status_code=400, detail="Only detected conflicts can be acknowledged")

    conflict.status = ConflictStatus.ACKNOWLEDGED
    conflict.acknowledged_by_user_id = current_user.id
    conflict.acknowledged_at = datetime.now(timezone.utc)

    db.commit()
    db.refresh(conflict)
    return conflict


@router.patch("/{conflict_id}/resolve", response_model=ConflictResponse)
def resolve_conflict(
    conflict_id: int,
    db: Session = Depends(get_db),
    current_user: Users = Depends(require_scheduler),
):
    """Mark a conflict resolved (from detected or acknowledged)"""
    conflict = db.query(Conflicts).filter(Conflicts.id == conflict_id).first()
    if not conflict:
        raise HTTPException(status_code=404, detail="Conflict not found")

    if conflict.status == ConflictStatus.RESOLVED:
        raise HTTPException(status_code=400, detail="Conflict is already resolved")

    conflict.status = ConflictStatus.RESOLVED
    conflict.resolved_by_user_id = current_user.id
    conflict.resolved_at = datetime.now(timezone.utc)

    db.commit()
    db.refresh(conflict)
    return conflict
