"""
Database models
"""
from scholarship_app.models.user import User, UserRole
from scholarship_app.models.application import Application, ApplicationStatus, YearInCollege
from scholarship_app.models.recommendation import Recommendation, RecommendationStatus, RecommenderType
from scholarship_app.models.evaluation import Evaluation, Rating
from scholarship_app.models.audit import AuditLog, AuditAction
from scholarship_app.models.email_log import EmailLog
from scholarship_app.models.scheduled_job import ScheduledJob
from scholarship_app.models.portal_setting import PortalSetting

__all__ = [
    "User",
    "UserRole",
    "Application",
    "ApplicationStatus",
    "YearInCollege",
    "Recommendation",
    "RecommendationStatus",
    "RecommenderType",
    "Evaluation",
    "Rating",
    "AuditLog",
    "AuditAction",
    "EmailLog",
    "ScheduledJob",
    "PortalSetting",
]
