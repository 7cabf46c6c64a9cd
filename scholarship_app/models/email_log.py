"""
Email delivery log model
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime
from scholarship_app.database import Base


class EmailLog(Base):
    """Record of one outbound email dispatch attempt"""
    __tablename__ = "email_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    template_kind = Column(String(50), nullable=False, index=True)  # 'recommendation_request', ...
    recipient_email = Column(String(255), nullable=False, index=True)
    subject = Column(String(500), nullable=False)
    status = Column(String(20), nullable=False, default="pending", index=True)  # pending, sent, failed
    provider_message_id = Column(String(100))
    error = Column(Text)

    # Related entity for lookups
    related_type = Column(String(30))  # 'recommendation', 'application'
    related_id = Column(Integer, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    sent_at = Column(DateTime)
