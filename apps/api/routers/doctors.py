from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select
from database import get_session, transaction, is_unique_violation
from models import Doctor, ActivityAction
from schemas import DoctorCreate, DoctorResponse, Identity
from dependencies import require_capability, get_audit_trail
from errors import ConflictError, ValidationError
from permissions import RECORDS_READ, RECORDS_WRITE
from services.audit import AuditTrail
from typing import List
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/doctors", tags=["Doctors"])


@router.get("", response_model=List[DoctorResponse])
def list_doctors(
    identity: Identity = Depends(require_capability(RECORDS_READ)),
    session: Session = Depends(get_session)
):
    """Newest doctors first"""
    return session.exec(
        select(Doctor).order_by(Doctor.created_at.desc(), Doctor.id.desc()).limit(100)
    ).all()


@router.post("", response_model=DoctorResponse)
def create_doctor(
    doctor_data: DoctorCreate,
    identity: Identity = Depends(require_capability(RECORDS_WRITE)),
    session: Session = Depends(get_session),
    audit: AuditTrail = Depends(get_audit_trail)
):
    """Create a doctor; the code must be unique"""
    code = doctor_data.code.strip()
    name = doctor_data.name.strip()
    if not code or not name:
        raise ValidationError("Doctor code and name are required")

    new_doctor = Doctor(code=code, name=name, specialty=doctor_data.specialty)

    try:
        with transaction(session):
            existing = session.exec(select(Doctor).where(Doctor.code == code)).first()
            if existing:
                raise ConflictError("Doctor code already exists")
            session.add(new_doctor)
    except IntegrityError as e:
        # Lost a race with a concurrent insert of the same code
        if is_unique_violation(e):
            raise ConflictError("Doctor code already exists")
        raise
    session.refresh(new_doctor)

    audit.record(identity.id, ActivityAction.CREATE, "doctor", new_doctor.id,
                 {"code": new_doctor.code, "name": new_doctor.name})

    return new_doctor
