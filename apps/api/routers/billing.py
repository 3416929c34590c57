"""Scanned bill endpoints (write-once, no update path)"""
from fastapi import APIRouter, Depends
from sqlmodel import Session, select
from database import get_session, transaction
from models import Bill, ActivityAction
from schemas import BillCreate, BillResponse, Identity
from dependencies import require_capability, get_audit_trail
from permissions import RECORDS_READ, RECORDS_WRITE
from services.audit import AuditTrail
from typing import List

router = APIRouter(prefix="/api/bills", tags=["Bills"])


@router.post("", response_model=BillResponse)
def create_bill(
    bill_data: BillCreate,
    identity: Identity = Depends(require_capability(RECORDS_WRITE)),
    session: Session = Depends(get_session),
    audit: AuditTrail = Depends(get_audit_trail)
):
    """Store a bill, usually straight from the OCR page"""
    new_bill = Bill(
        merchant=bill_data.merchant or None,
        bill_date=bill_data.bill_date,
        total=bill_data.total or 0,
        items=bill_data.items or [],
        raw_text=bill_data.raw_text or None,
        extracted=bill_data.extracted or {},
        created_by=identity.id,
    )

    with transaction(session):
        session.add(new_bill)
    session.refresh(new_bill)

    audit.record(identity.id, ActivityAction.CREATE, "bill", new_bill.id,
                 {"merchant": new_bill.merchant, "total": new_bill.total})

    return new_bill


@router.get("", response_model=List[BillResponse])
def list_bills(
    identity: Identity = Depends(require_capability(RECORDS_READ)),
    session: Session = Depends(get_session)
):
    return session.exec(
        select(Bill).order_by(Bill.created_at.desc(), Bill.id.desc()).limit(100)
    ).all()
