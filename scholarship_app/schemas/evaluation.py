"""
Evaluation schemas
"""
from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from scholarship_app.models.evaluation import Rating


class EvaluationSubmit(BaseModel):
    """Schema for committee evaluation submission"""
    rating: Rating
    notes: Optional[str] = None


class EvaluationResponse(BaseModel):
    id: int
    application_id: int
    evaluator_id: int
    rating: Rating
    notes: Optional[str]
    created_at: datetime
    updated_at: Optional[datetime]

    evaluator_name: Optional[str] = None

    class Config:
        from_attributes = True


class RankingEntry(BaseModel):
    rank: int
    application_id: int
    applicant_name: Optional[str]
    status: str
    average_rating: float
    average_display: str  # "4.50 / 5.0"
    evaluation_count: int
    submitted_at: Optional[datetime]


class RankingsResponse(BaseModel):
    rankings: List[RankingEntry]
    total_applications: int
    total_evaluations: int
    committee_size: int
    possible_evaluations: int


class EvaluatorStats(BaseModel):
    evaluator_id: int
    total_applications: int
    my_evaluations_completed: int
    remaining_to_evaluate: int
