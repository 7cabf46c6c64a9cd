"""
Audit Recorder
"""
import logging
from typing import Any, Dict, List, Optional, Union
from sqlalchemy import or_
from sqlalchemy.orm import Session
from scholarship_app.models.audit import AuditLog, AuditAction, SECURITY_ACTION_PREFIXES

logger = logging.getLogger(__name__)


class AuditRecorder:
    """Append-only audit trail shared by every state-changing operation"""

    def record(
        self,
        db: Session,
        action: Union[AuditAction, str],
        user_id: Optional[int] = None,
        application_id: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Optional[AuditLog]:
        """
        Add an audit entry to the caller's transaction

        The entry is written inside a savepoint: if it cannot be stored the
        failure is logged and the caller's state transition still commits.

        Returns:
            The new AuditLog, or None if recording failed
        """
        action_value = action.value if isinstance(action, AuditAction) else str(action)
        try:
            entry = AuditLog(
                action=action_value,
                user_id=user_id,
                application_id=application_id,
                details=details,
                ip_address=ip_address,
                user_agent=user_agent,
            )
            with db.begin_nested():
                db.add(entry)
                db.flush()
        except Exception:
            logger.exception(
                "Failed to record audit entry %s (user=%s, application=%s)",
                action_value, user_id, application_id
            )
            return None
        return entry

    def get_recent(self, db: Session, limit: int = 50) -> List[AuditLog]:
        return db.query(AuditLog).order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit).all()

    def get_by_application(self, db: Session, application_id: int, limit: int = 50) -> List[AuditLog]:
        return (
            db.query(AuditLog)
            .filter(AuditLog.application_id == application_id)
            .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
            .limit(limit)
            .all()
        )

    def get_by_user(self, db: Session, user_id: int, limit: int = 50) -> List[AuditLog]:
        return (
            db.query(AuditLog)
            .filter(AuditLog.user_id == user_id)
            .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
            .limit(limit)
            .all()
        )

    def get_security_events(self, db: Session, limit: int = 50) -> List[AuditLog]:
        """Security-relevant entries: security:*, auth:failed*, admin:*"""
        return (
            db.query(AuditLog)
            .filter(or_(*[AuditLog.action.startswith(prefix) for prefix in SECURITY_ACTION_PREFIXES]))
            .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
            .limit(limit)
            .all()
        )

    def count(self, db: Session, action: Union[AuditAction, str], application_id: Optional[int] = None) -> int:
        action_value = action.value if isinstance(action, AuditAction) else str(action)
        query = db.query(AuditLog).filter(AuditLog.action == action_value)
        if application_id is not None:
            query = query.filter(AuditLog.application_id == application_id)
        return query.count()


# Singleton instance
audit_recorder = AuditRecorder()
