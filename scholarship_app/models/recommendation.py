"""
Recommendation model
"""
from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
from scholarship_app.database import Base


class RecommenderType(str, PyEnum):
    EDUCATOR = "educator"
    COMMUNITY_GROUP = "community_group"
    OTHER = "other"


# At least one submitted letter must come from one of these
QUORUM_RECOMMENDER_TYPES = frozenset({RecommenderType.EDUCATOR, RecommenderType.COMMUNITY_GROUP})


class RecommendationStatus(str, PyEnum):
    """pending -> email_sent -> viewed -> submitted (viewed may be skipped)"""

    PENDING = "pending"
    EMAIL_SENT = "email_sent"
    VIEWED = "viewed"
    SUBMITTED = "submitted"


class Recommendation(Base):
    """Recommendation letter request sent to a third-party recommender"""
    __tablename__ = "recommendations"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    application_id = Column(Integer, ForeignKey("applications.id"), nullable=False, index=True)

    # Recommender info (provided by applicant)
    recommender_email = Column(String(255), nullable=False, index=True)
    recommender_name = Column(String(100))
    recommender_type = Column(
        Enum(RecommenderType, native_enum=False, length=20, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    recommender_organization = Column(String(200))
    recommender_title = Column(String(100))
    relationship_to_applicant = Column(String(200))

    # Token for link access
    access_token = Column(String(64), unique=True, nullable=False, index=True)
    token_expires_at = Column(DateTime, nullable=False)

    status = Column(
        Enum(RecommendationStatus, native_enum=False, length=20, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=RecommendationStatus.PENDING,
        index=True,
    )

    # Submitted letter
    letter_file_id = Column(String(255))
    letter_text = Column(Text)
    submitted_at = Column(DateTime)

    # Email tracking
    email_sent_at = Column(DateTime)
    resend_count = Column(Integer, nullable=False, default=0)
    email_reminders_sent = Column(Integer, nullable=False, default=0)
    last_reminder_at = Column(DateTime)

    # Set when the applicant removes an unanswered invitation
    withdrawn_at = Column(DateTime)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    application = relationship("Application", back_populates="recommendations")

    @property
    def is_live(self) -> bool:
        return self.withdrawn_at is None

    @property
    def is_submitted(self) -> bool:
        return self.status == RecommendationStatus.SUBMITTED
