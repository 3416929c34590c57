"""Activity history and client log ingestion"""
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session
from typing import Optional, List
from database import get_session
from schemas import ActivityLogResponse, ClientLogEntry, Identity
from dependencies import require_capability
from permissions import ACTIVITY_READ
from services.audit import list_activity
import logging

logger = logging.getLogger(__name__)
client_logger = logging.getLogger("client")

router = APIRouter(prefix="/api/logs", tags=["Activity Logs"])

CLIENT_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


@router.get("", response_model=List[ActivityLogResponse])
def get_activity_logs(
    limit: int = Query(200, ge=1, le=500),
    action: Optional[str] = None,
    user_id: Optional[int] = None,
    identity: Identity = Depends(require_capability(ACTIVITY_READ)),
    session: Session = Depends(get_session)
):
    """Audit trail, newest first"""
    return list_activity(session, limit=limit, action=action, user_id=user_id)


@router.post("")
def ingest_client_log(entry: ClientLogEntry):
    """Browser console lines forwarded for the server logs; not part of the audit trail"""
    level = CLIENT_LEVELS.get(entry.level.upper(), logging.INFO)
    context = f" {entry.context}" if entry.context is not None else ""
    client_logger.log(level, f"[{entry.source or 'browser'}] {entry.message}{context} url={entry.url}")
    return {"ok": True}
