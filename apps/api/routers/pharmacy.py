"""Pharmacy stock-placement endpoints"""
from fastapi import APIRouter, Depends
from sqlmodel import Session, select
from database import get_session, transaction
from models import Pharmacy, ActivityAction
from schemas import PharmacyCreate, PharmacyUpdate, PharmacyResponse, Identity
from dependencies import require_capability, get_audit_trail
from errors import NotFoundError, ValidationError
from permissions import RECORDS_READ, RECORDS_WRITE
from services.audit import AuditTrail
from typing import List

router = APIRouter(prefix="/api/pharmacies", tags=["Pharmacies"])

REQUIRED_FIELDS = ("name", "city", "address", "date_given", "due_date_amount")


def _check_required(values: dict):
    for key in REQUIRED_FIELDS:
        if key in values:
            value = values[key]
            if value is None or (isinstance(value, str) and not value.strip()):
                raise ValidationError(f"{key} is required")


@router.post("", response_model=PharmacyResponse)
def create_pharmacy(
    pharmacy_data: PharmacyCreate,
    identity: Identity = Depends(require_capability(RECORDS_WRITE)),
    session: Session = Depends(get_session),
    audit: AuditTrail = Depends(get_audit_trail)
):
    values = pharmacy_data.model_dump()
    _check_required(values)
    values["scheme_applied"] = values.get("scheme_applied") or None

    new_pharmacy = Pharmacy(**values, created_by=identity.id)
    with transaction(session):
        session.add(new_pharmacy)
    session.refresh(new_pharmacy)

    audit.record(identity.id, ActivityAction.CREATE, "pharmacy", new_pharmacy.id,
                 {"name": new_pharmacy.name, "city": new_pharmacy.city})

    return new_pharmacy


@router.get("", response_model=List[PharmacyResponse])
def list_pharmacies(
    identity: Identity = Depends(require_capability(RECORDS_READ)),
    session: Session = Depends(get_session)
):
    return session.exec(
        select(Pharmacy).order_by(Pharmacy.created_at.desc(), Pharmacy.id.desc()).limit(200)
    ).all()


@router.put("/{pharmacy_id}", response_model=PharmacyResponse)
def update_pharmacy(
    pharmacy_id: int,
    pharmacy_data: PharmacyUpdate,
    identity: Identity = Depends(require_capability(RECORDS_WRITE)),
    session: Session = Depends(get_session),
    audit: AuditTrail = Depends(get_audit_trail)
):
    pharmacy = session.get(Pharmacy, pharmacy_id)
    if not pharmacy:
        raise NotFoundError("Pharmacy not found")

    changes = pharmacy_data.model_dump(exclude_unset=True)
    _check_required(changes)
    for key in ("product_with_count_given", "current_stock_owns"):
        if key in changes:
            changes[key] = changes[key] or []

    with transaction(session):
        for key, value in changes.items():
            setattr(pharmacy, key, value)
        session.add(pharmacy)
    session.refresh(pharmacy)

    audit.record(identity.id, ActivityAction.UPDATE, "pharmacy", pharmacy.id, {"new_data": changes})

    return pharmacy
