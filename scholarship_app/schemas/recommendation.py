"""
Recommendation schemas
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from scholarship_app.models.recommendation import RecommenderType, RecommendationStatus


class RecommenderInvite(BaseModel):
    """Recommender details supplied by the applicant"""
    recommender_email: str = Field(..., max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    recommender_name: str = Field(..., min_length=1, max_length=100)
    recommender_type: RecommenderType
    recommender_organization: Optional[str] = Field(None, max_length=200)
    relationship_to_applicant: Optional[str] = Field(None, max_length=200)


class LetterSubmit(BaseModel):
    """Letter submitted by the recommender through the token link"""
    letter_file_id: Optional[str] = None
    letter_text: Optional[str] = None
    recommender_name: str = Field(..., min_length=1, max_length=100)
    recommender_title: Optional[str] = Field(None, max_length=100)
    recommender_organization: Optional[str] = Field(None, max_length=200)


class RecommendationResponse(BaseModel):
    """Recommendation as seen by the applicant (no token, no letter)"""
    id: int
    application_id: int
    recommender_email: str
    recommender_name: Optional[str]
    recommender_type: RecommenderType
    recommender_organization: Optional[str]
    relationship_to_applicant: Optional[str]
    status: RecommendationStatus
    token_expires_at: datetime
    email_sent_at: Optional[datetime]
    resend_count: int
    email_reminders_sent: int
    last_reminder_at: Optional[datetime]
    submitted_at: Optional[datetime]
    created_at: datetime

    class Config:
        from_attributes = True


class RecommendationFormResponse(BaseModel):
    """What a recommender sees after opening the link"""
    recommendation_id: int
    status: RecommendationStatus
    applicant_name: Optional[str]
    recommender_name: Optional[str]
    recommender_type: RecommenderType
    token_expires_at: datetime
