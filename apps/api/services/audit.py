"""
Activity audit trail

Appends one immutable row per mutating action. Writes are best effort: the
caller's mutation has already committed, so a failed append is logged and
dropped instead of failing the request.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi.encoders import jsonable_encoder
from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from models import ActivityLog, User

logger = logging.getLogger(__name__)


class AuditTrail:
    def __init__(self, engine: Engine):
        self.engine = engine

    def record(
        self,
        actor_id: Optional[int],
        action: str,
        entity_type: str,
        entity_id: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> Optional[ActivityLog]:
        """Append one entry in its own transaction. Never raises."""
        action = getattr(action, "value", action)
        session = Session(self.engine)
        try:
            entry = ActivityLog(
                user_id=actor_id,
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                details=jsonable_encoder(details or {}),
            )
            session.add(entry)
            session.commit()
            session.refresh(entry)
            return entry
        except Exception:
            session.rollback()
            logger.exception(
                f"Activity logging failed: {action} {entity_type} {entity_id} by user {actor_id}"
            )
            return None
        finally:
            session.close()


def list_activity(
    session: Session,
    limit: int = 200,
    action: Optional[str] = None,
    user_id: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """Newest first, with the actor's name attached"""
    statement = select(ActivityLog, User.name).join(User, ActivityLog.user_id == User.id, isouter=True)

    if action:
        statement = statement.where(ActivityLog.action == action)
    if user_id:
        statement = statement.where(ActivityLog.user_id == user_id)

    statement = statement.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc()).limit(limit)

    return [
        {
            "id": log.id,
            "user_id": log.user_id,
            "user_name": user_name,
            "action": log.action,
            "entity_type": log.entity_type,
            "entity_id": log.entity_id,
            "details": log.details or {},
            "created_at": log.created_at,
        }
        for log, user_name in session.exec(statement).all()
    ]
