"""
Scheduled Job model for cron jobs
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean
from scholarship_app.database import Base


class ScheduledJob(Base):
    """Scheduled Job model for cron automation"""
    __tablename__ = "scheduled_jobs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Job identification
    job_type = Column(String(50), unique=True, nullable=False, index=True)  # 'recommendation_reminders'
    name = Column(String(200), nullable=False)
    description = Column(Text)

    # Schedule configuration
    cron_expression = Column(String(100))  # e.g. "0 15 * * *" for 15:00 UTC daily
    is_active = Column(Boolean, default=False, index=True)

    # Execution tracking
    last_run_at = Column(DateTime)
    last_run_status = Column(String(20))  # 'success', 'failed', 'running'
    last_run_message = Column(Text)
    next_run_at = Column(DateTime)

    total_runs = Column(Integer, default=0)
    successful_runs = Column(Integer, default=0)
    failed_runs = Column(Integer, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
