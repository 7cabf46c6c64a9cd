"""
Committee evaluation model
"""
from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from scholarship_app.database import Base


class Rating(str, PyEnum):
    """Committee rating, ordered strong_no < no < maybe < yes < strong_yes"""

    STRONG_NO = "strong_no"
    NO = "no"
    MAYBE = "maybe"
    YES = "yes"
    STRONG_YES = "strong_yes"

    @property
    def points(self) -> int:
        return RATING_POINTS[self]

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


RATING_POINTS = {
    Rating.STRONG_NO: 1,
    Rating.NO: 2,
    Rating.MAYBE: 3,
    Rating.YES: 4,
    Rating.STRONG_YES: 5,
}
MAX_RATING_POINTS = max(RATING_POINTS.values())


class Evaluation(Base):
    """One evaluator's rating of one application"""
    __tablename__ = "evaluations"
    __table_args__ = (
        UniqueConstraint("application_id", "evaluator_id", name="uq_evaluation_application_evaluator"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    application_id = Column(Integer, ForeignKey("applications.id"), nullable=False, index=True)
    evaluator_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    rating = Column(
        Enum(Rating, native_enum=False, length=20, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    application = relationship("Application", back_populates="evaluations")
    evaluator = relationship("User", back_populates="evaluations")
