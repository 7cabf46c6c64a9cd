"""
Portal setting model (admin-editable key/value settings)
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from scholarship_app.database import Base


class PortalSetting(Base):
    """Runtime setting changed by admins, e.g. the application deadline"""
    __tablename__ = "portal_settings"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    key = Column(String(100), unique=True, nullable=False, index=True)  # 'application_deadline'
    value = Column(Text)  # ISO timestamp for the deadline; NULL clears it
    updated_by = Column(Integer, ForeignKey("users.id"))

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
