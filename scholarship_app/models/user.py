"""
User model
"""
from datetime import datetime
from enum import Enum as PyEnum
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum
from sqlalchemy.orm import relationship
from scholarship_app.database import Base


class UserRole(str, PyEnum):
    """User roles"""

    APPLICANT = "applicant"
    COMMITTEE = "committee"
    ADMIN = "admin"


EVALUATOR_ROLES = (UserRole.COMMITTEE, UserRole.ADMIN)


class User(Base):
    """User model"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(100))
    role = Column(
        Enum(UserRole, native_enum=False, length=20, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=UserRole.APPLICANT,
        index=True,
    )
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, onupdate=datetime.utcnow)
    last_login_at = Column(DateTime)

    # Relationships
    applications = relationship("Application", back_populates="owner")
    evaluations = relationship("Evaluation", back_populates="evaluator")

    @property
    def is_evaluator(self) -> bool:
        return self.role in EVALUATOR_ROLES
