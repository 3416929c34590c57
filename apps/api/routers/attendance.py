"""MR attendance punches"""
from fastapi import APIRouter, Depends
from sqlmodel import Session, select
from database import get_session, transaction
from models import Attendance, ActivityAction
from schemas import AttendanceCreate, AttendanceResponse, Identity
from dependencies import require_capability, get_current_identity, get_audit_trail
from permissions import ATTENDANCE_WRITE
from services.audit import AuditTrail
from typing import List, Optional
from datetime import datetime, timezone

router = APIRouter(prefix="/api/attendance", tags=["Attendance"])


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # A device time without an offset is taken as UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@router.post("", response_model=AttendanceResponse)
def punch(
    punch_data: AttendanceCreate,
    identity: Identity = Depends(require_capability(ATTENDANCE_WRITE)),
    session: Session = Depends(get_session),
    audit: AuditTrail = Depends(get_audit_trail)
):
    """Record a punch-in or punch-out with location and selfie"""
    record = Attendance(
        user_id=identity.id,
        type=punch_data.type.value,
        lat=punch_data.lat,
        lon=punch_data.lon,
        accuracy=punch_data.accuracy,
        photo=punch_data.photo,
        device_time=_as_utc(punch_data.device_time),
    )
    with transaction(session):
        session.add(record)
    session.refresh(record)

    # The ledger only points at the attendance row
    audit.record(identity.id, ActivityAction.ATTENDANCE, "attendance", record.id, {"type": record.type})

    return record


@router.get("/me", response_model=List[AttendanceResponse])
def my_attendance(
    identity: Identity = Depends(get_current_identity),
    session: Session = Depends(get_session)
):
    return session.exec(
        select(Attendance)
        .where(Attendance.user_id == identity.id)
        .order_by(Attendance.created_at.desc(), Attendance.id.desc())
        .limit(200)
    ).all()
