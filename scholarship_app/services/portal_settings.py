"""
Portal settings service

Admin-editable runtime settings. The application deadline stored here
overrides APPLICATION_DEADLINE from the environment.
"""
import logging
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy.orm import Session
from scholarship_app.config import settings
from scholarship_app.exceptions import Forbidden
from scholarship_app.models.audit import AuditAction
from scholarship_app.models.portal_setting import PortalSetting
from scholarship_app.models.user import User, UserRole
from scholarship_app.services.audit import audit_recorder

logger = logging.getLogger(__name__)

DEADLINE_KEY = "application_deadline"


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps are stored as naive UTC"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class PortalSettingsService:
    """Runtime settings editable by admins"""

    def _get(self, db: Session, key: str) -> Optional[PortalSetting]:
        return db.query(PortalSetting).filter(PortalSetting.key == key).first()

    def get_deadline(self, db: Session) -> Optional[datetime]:
        """
        Effective application deadline

        A stored setting wins, even when it was cleared to no deadline; without
        one the configured default applies.
        """
        setting = self._get(db, DEADLINE_KEY)
        if setting is None:
            return settings.application_deadline
        if not setting.value:
            return None
        return datetime.fromisoformat(setting.value)

    def deadline_passed(self, db: Session, now: Optional[datetime] = None) -> bool:
        deadline = self.get_deadline(db)
        return deadline is not None and (now or datetime.utcnow()) > deadline

    def set_deadline(self, db: Session, deadline: Optional[datetime], actor: User) -> Optional[datetime]:
        """Set or clear the application deadline (admin only)"""
        if actor.role != UserRole.ADMIN:
            raise Forbidden("Admin privileges required")

        deadline = to_naive_utc(deadline)
        previous = self.get_deadline(db)
        setting = self._get(db, DEADLINE_KEY)
        if setting is None:
            setting = PortalSetting(key=DEADLINE_KEY)
            db.add(setting)
        setting.value = deadline.isoformat() if deadline else None
        setting.updated_by = actor.id
        setting.updated_at = datetime.utcnow()

        audit_recorder.record(
            db,
            AuditAction.ADMIN_SETTINGS_UPDATED,
            user_id=actor.id,
            details={
                "key": DEADLINE_KEY,
                "from": previous.isoformat() if previous else None,
                "to": setting.value,
            },
        )
        db.commit()
        logger.info("Application deadline set to %s by user %s", setting.value, actor.id)
        return deadline


# Singleton instance
portal_settings_service = PortalSettingsService()
