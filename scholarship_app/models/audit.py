"""
Audit log model
"""
from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON
from scholarship_app.database import Base


class AuditAction(str, PyEnum):
    """Audit action keywords"""

    # Auth
    AUTH_LOGIN = "auth:login"
    AUTH_REGISTER = "auth:register"
    AUTH_FAILED_LOGIN = "auth:failed_login"

    # Application
    APPLICATION_CREATED = "application:created"
    APPLICATION_UPDATED = "application:updated"
    APPLICATION_SUBMITTED = "application:submitted"
    APPLICATION_WITHDRAWN = "application:withdrawn"
    APPLICATION_STATUS_CHANGED = "application:status_changed"

    # Recommendation
    RECOMMENDATION_REQUESTED = "recommendation:requested"
    RECOMMENDATION_RESENT = "recommendation:resent"
    RECOMMENDATION_REMINDER_SENT = "recommendation:reminder_sent"
    RECOMMENDATION_VIEWED = "recommendation:viewed"
    RECOMMENDATION_SUBMITTED = "recommendation:submitted"
    RECOMMENDATION_REMOVED = "recommendation:removed"

    # Evaluation
    EVALUATION_SUBMITTED = "evaluation:submitted"
    EVALUATION_UPDATED = "evaluation:updated"

    # Admin / security
    ADMIN_JOB_UPDATED = "admin:job_updated"
    ADMIN_SETTINGS_UPDATED = "admin:settings_updated"
    SECURITY_UNAUTHORIZED_ACCESS = "security:unauthorized_access"

    @property
    def description(self) -> str:
        category, _, verb = self.value.partition(":")
        return f"{category.title()} {verb.replace('_', ' ')}"


SECURITY_ACTION_PREFIXES = ("security:", "auth:failed", "admin:")


class AuditLog(Base):
    """
    Append-only trail of state-changing actions.

    Rows are never updated or deleted.
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    action = Column(String(50), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True)
    application_id = Column(Integer, ForeignKey("applications.id"), index=True)
    details = Column(JSON)
    ip_address = Column(String(45))
    user_agent = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
