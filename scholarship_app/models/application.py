"""
Application model and its status lifecycle
"""
from datetime import datetime
from enum import Enum as PyEnum
from typing import Optional
from sqlalchemy import Column, Integer, String, Text, Float, Boolean, DateTime, ForeignKey, JSON, Enum
from sqlalchemy.orm import relationship
from scholarship_app.database import Base


class ApplicationStatus(str, PyEnum):
    """
    Application lifecycle states

    Forward-only; `withdrawn` is terminal and reachable from every state up to
    and including `under_review`.
    """

    DRAFT = "draft"
    IN_PROGRESS = "in_progress"
    PENDING_RECOMMENDATIONS = "pending_recommendations"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    FINALIST = "finalist"
    SELECTED = "selected"
    NOT_SELECTED = "not_selected"
    WITHDRAWN = "withdrawn"

    def can_transition_to(self, new: "ApplicationStatus") -> bool:
        return new in APPLICATION_STATUS_TRANSITIONS.get(self, set())

    def is_terminal(self) -> bool:
        return not APPLICATION_STATUS_TRANSITIONS.get(self)

    @property
    def is_pre_submission(self) -> bool:
        return self in PRE_SUBMISSION_STATUSES

    @property
    def has_been_submitted(self) -> bool:
        return self in SUBMITTED_STATUSES

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


PRE_SUBMISSION_STATUSES = frozenset({
    ApplicationStatus.DRAFT,
    ApplicationStatus.IN_PROGRESS,
    ApplicationStatus.PENDING_RECOMMENDATIONS,
})

# Submitted or any later state in the forward chain
SUBMITTED_STATUSES = frozenset({
    ApplicationStatus.SUBMITTED,
    ApplicationStatus.UNDER_REVIEW,
    ApplicationStatus.FINALIST,
    ApplicationStatus.SELECTED,
    ApplicationStatus.NOT_SELECTED,
})

APPLICATION_STATUS_TRANSITIONS = {
    ApplicationStatus.DRAFT: {
        ApplicationStatus.IN_PROGRESS,
        ApplicationStatus.PENDING_RECOMMENDATIONS,
        ApplicationStatus.SUBMITTED,
        ApplicationStatus.WITHDRAWN,
    },
    ApplicationStatus.IN_PROGRESS: {
        ApplicationStatus.PENDING_RECOMMENDATIONS,
        ApplicationStatus.SUBMITTED,
        ApplicationStatus.WITHDRAWN,
    },
    ApplicationStatus.PENDING_RECOMMENDATIONS: {
        ApplicationStatus.SUBMITTED,
        ApplicationStatus.WITHDRAWN,
    },
    ApplicationStatus.SUBMITTED: {
        ApplicationStatus.UNDER_REVIEW,
        ApplicationStatus.WITHDRAWN,
    },
    ApplicationStatus.UNDER_REVIEW: {
        ApplicationStatus.FINALIST,
        ApplicationStatus.NOT_SELECTED,
        ApplicationStatus.WITHDRAWN,
    },
    ApplicationStatus.FINALIST: {
        ApplicationStatus.SELECTED,
        ApplicationStatus.NOT_SELECTED,
    },
    ApplicationStatus.SELECTED: set(),
    ApplicationStatus.NOT_SELECTED: set(),
    ApplicationStatus.WITHDRAWN: set(),
}


class YearInCollege(str, PyEnum):
    FRESHMAN = "freshman"
    SOPHOMORE = "sophomore"
    JUNIOR = "junior"
    SENIOR = "senior"


TOTAL_STEPS = 7
REVIEW_STEP = 7


class Application(Base):
    """Scholarship application, one per applicant"""
    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True, index=True)

    # Status tracking
    status = Column(
        Enum(ApplicationStatus, native_enum=False, length=30, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ApplicationStatus.DRAFT,
        index=True,
    )
    current_step = Column(Integer, nullable=False, default=1)  # 1-7
    completed_steps = Column(JSON, nullable=False, default=list)  # [1, 2, 5]

    # Step 1: Personal information
    first_name = Column(String(100))
    last_name = Column(String(100))
    phone = Column(String(30))
    date_of_birth = Column(String(20))
    profile_photo_id = Column(String(255))  # Blob storage reference

    # Step 2: Address
    street_address = Column(String(255))
    city = Column(String(100), index=True)
    state = Column(String(2))
    zip_code = Column(String(10))

    # Step 3: Education
    high_school_name = Column(String(200))
    high_school_city = Column(String(100))
    high_school_state = Column(String(2))
    graduation_date = Column(String(20))
    gpa = Column(Float)
    act_score = Column(Integer)
    sat_score = Column(Integer)
    college_name = Column(String(200))
    college_city = Column(String(100))
    college_state = Column(String(2))
    year_in_college = Column(
        Enum(YearInCollege, native_enum=False, length=20, values_callable=lambda e: [m.value for m in e])
    )
    major = Column(String(100))

    # Step 4: Eligibility questions
    is_first_time_applying = Column(Boolean)
    is_previous_recipient = Column(Boolean)
    is_full_time_student = Column(Boolean)
    is_michigan_resident = Column(Boolean)

    # Step 5: Documents
    transcript_file_id = Column(String(255))
    essay_file_id = Column(String(255))
    essay_text = Column(Text)
    essay_word_count = Column(Integer)

    # Step 6: Member endorsement
    endorser_name = Column(String(100))
    endorser_email = Column(String(255))
    endorser_phone = Column(String(30))
    endorsement_confirmed = Column(Boolean)

    # Step 7: Submission
    signature = Column(String(200))
    submitted_at = Column(DateTime, index=True)

    # Withdrawal tracking
    withdrawn_at = Column(DateTime)
    withdrawn_reason = Column(Text)

    # Populated out-of-band, opaque to the core
    ai_summary = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    owner = relationship("User", back_populates="applications")
    recommendations = relationship("Recommendation", back_populates="application", order_by="Recommendation.id")
    evaluations = relationship("Evaluation", back_populates="application")

    @property
    def full_name(self) -> Optional[str]:
        if not self.first_name and not self.last_name:
            return None
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    def mark_step_complete(self, step: int) -> bool:
        """
        Add step to completed_steps

        Idempotent and order-independent. Returns True if the step was newly added.
        """
        if step < 1 or step > TOTAL_STEPS:
            raise ValueError(f"Step must be between 1 and {TOTAL_STEPS}")
        steps = set(self.completed_steps or [])
        if step in steps:
            return False
        steps.add(step)
        # Reassign so the JSON column is flagged dirty
        self.completed_steps = sorted(steps)
        return True
