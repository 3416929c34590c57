"""Doctor investment endpoints and their reporting views"""
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session, select
from database import get_session, transaction
from models import Investment, Doctor, ActivityAction, utc_now
from schemas import (
    InvestmentCreate, InvestmentUpdate, InvestmentResponse,
    InvestmentSummary, MonthlySummary, Identity
)
from dependencies import require_capability, get_audit_trail
from errors import NotFoundError, ValidationError
from permissions import RECORDS_READ, RECORDS_WRITE
from services.audit import AuditTrail
from services import reporting
from services.reporting import InvestmentFilter
from validators.financial import require_amount, parse_amount, parse_optional_return
from typing import List, Optional, Tuple
from datetime import date
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/investments", tags=["Investments"])

SNAPSHOT_FIELDS = (
    "doctor_code", "doctor_name", "amount", "investment_date",
    "expected_returns", "actual_returns", "preferences", "notes",
)


def investment_filters(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=1900, le=9999),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    doctor: Optional[str] = None,
) -> InvestmentFilter:
    return InvestmentFilter(month=month, year=year, start_date=start_date, end_date=end_date, doctor=doctor)


def _snapshot(investment: Investment) -> dict:
    return {field: getattr(investment, field) for field in SNAPSHOT_FIELDS}


def _resolve_doctor(
    session: Session,
    doctor_id: Optional[int],
    doctor_code: Optional[str],
    doctor_name: Optional[str]
) -> Tuple[Optional[int], Optional[str], Optional[str]]:
    """Link to a doctor row and fill the denormalized code/name from it"""
    if doctor_id is not None:
        doctor = session.get(Doctor, doctor_id)
        if not doctor:
            raise NotFoundError("Doctor not found")
        return doctor.id, doctor.code, doctor.name

    doctor_code = (doctor_code or "").strip() or None
    doctor_name = (doctor_name or "").strip() or None

    doctor = None
    if doctor_code:
        doctor = session.exec(select(Doctor).where(Doctor.code == doctor_code)).first()
    elif doctor_name:
        doctor = session.exec(select(Doctor).where(Doctor.name == doctor_name)).first()

    if doctor:
        return doctor.id, doctor.code, doctor.name
    return None, doctor_code, doctor_name


@router.get("", response_model=List[InvestmentResponse])
def list_investments(
    identity: Identity = Depends(require_capability(RECORDS_READ)),
    filters: InvestmentFilter = Depends(investment_filters),
    session: Session = Depends(get_session)
):
    return reporting.list_investments(session, filters)


@router.get("/summary", response_model=InvestmentSummary)
def get_summary(
    identity: Identity = Depends(require_capability(RECORDS_READ)),
    filters: InvestmentFilter = Depends(investment_filters),
    session: Session = Depends(get_session)
):
    """Totals of amount, expected and actual returns"""
    return reporting.summary(session, filters)


@router.get("/summary-by-month", response_model=MonthlySummary)
def get_summary_by_month(
    identity: Identity = Depends(require_capability(RECORDS_READ)),
    filters: InvestmentFilter = Depends(investment_filters),
    session: Session = Depends(get_session)
):
    return reporting.summary_by_month(session, filters)


@router.get("/recent", response_model=List[InvestmentResponse])
def get_recent(
    identity: Identity = Depends(require_capability(RECORDS_READ)),
    session: Session = Depends(get_session)
):
    """Latest 10 investments"""
    return reporting.recent_investments(session)


@router.post("", response_model=InvestmentResponse)
def create_investment(
    investment_data: InvestmentCreate,
    identity: Identity = Depends(require_capability(RECORDS_WRITE)),
    session: Session = Depends(get_session),
    audit: AuditTrail = Depends(get_audit_trail)
):
    # Parse everything before touching the database
    amount = require_amount(investment_data.amount)
    expected_returns = parse_optional_return(investment_data.expected_returns, "Expected returns")
    actual_returns = parse_optional_return(investment_data.actual_returns, "Actual returns")

    with transaction(session):
        doctor_id, doctor_code, doctor_name = _resolve_doctor(
            session, investment_data.doctor_id, investment_data.doctor_code, investment_data.doctor_name
        )
        new_investment = Investment(
            doctor_id=doctor_id,
            doctor_code=doctor_code,
            doctor_name=doctor_name,
            amount=amount,
            investment_date=investment_data.investment_date,
            expected_returns=expected_returns,
            actual_returns=actual_returns,
            preferences=investment_data.preferences or [],
            notes=investment_data.notes or None,
            created_by=identity.id,
        )
        session.add(new_investment)
    session.refresh(new_investment)

    audit.record(identity.id, ActivityAction.CREATE, "investment", new_investment.id,
                 {"new_investment": _snapshot(new_investment)})

    return new_investment


@router.put("/{investment_id}", response_model=InvestmentResponse)
def update_investment(
    investment_id: int,
    investment_data: InvestmentUpdate,
    identity: Identity = Depends(require_capability(RECORDS_WRITE)),
    session: Session = Depends(get_session),
    audit: AuditTrail = Depends(get_audit_trail)
):
    investment = session.get(Investment, investment_id)
    if not investment:
        raise NotFoundError("Investment not found")

    changes = investment_data.model_dump(exclude_unset=True)
    if "amount" in changes:
        changes["amount"] = parse_amount(changes["amount"])
    if "expected_returns" in changes:
        changes["expected_returns"] = parse_optional_return(changes["expected_returns"], "Expected returns")
    if "actual_returns" in changes:
        changes["actual_returns"] = parse_optional_return(changes["actual_returns"], "Actual returns")
    if "investment_date" in changes and changes["investment_date"] is None:
        raise ValidationError("Investment date is required")
    if "preferences" in changes:
        changes["preferences"] = changes["preferences"] or []

    if "doctor_code" not in changes and changes.get("doctor_name", object()) == investment.doctor_name:
        changes.pop("doctor_name")

    old_data = _snapshot(investment)

    with transaction(session):
        if "doctor_code" in changes or "doctor_name" in changes:
            # Code and name describe one doctor: whichever is sent replaces the pair,
            # the stored half of the old doctor is never carried over
            code = changes.pop("doctor_code", None)
            name = changes.pop("doctor_name", None)
            doctor_id, doctor_code, doctor_name = _resolve_doctor(session, None, code, name)
            investment.doctor_id = doctor_id
            investment.doctor_code = doctor_code
            investment.doctor_name = doctor_name
        for key, value in changes.items():
            setattr(investment, key, value)
        investment.updated_at = utc_now()
        session.add(investment)
    session.refresh(investment)

    audit.record(identity.id, ActivityAction.UPDATE, "investment", investment.id,
                 {"old_data": old_data, "new_data": _snapshot(investment)})

    return investment
