from fastapi import APIRouter, Depends
from sqlmodel import Session
from database import get_session
from schemas import DashboardStats, Identity
from dependencies import require_capability
from permissions import RECORDS_READ
from services import reporting

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])


@router.get("/stats", response_model=DashboardStats)
def get_dashboard_stats(
    identity: Identity = Depends(require_capability(RECORDS_READ)),
    session: Session = Depends(get_session)
):
    """Headline numbers for the dashboard cards"""
    return reporting.dashboard_stats(session)
