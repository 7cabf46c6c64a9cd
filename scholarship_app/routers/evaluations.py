"""
Evaluations router
"""
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from scholarship_app.database import get_db
from scholarship_app.schemas.evaluation import (
    EvaluationResponse, EvaluationSubmit, EvaluatorStats, RankingsResponse
)
from scholarship_app.services.auth import get_current_committee_member
from scholarship_app.services.evaluations import evaluation_service
from scholarship_app.models.evaluation import Evaluation
from scholarship_app.models.user import User

router = APIRouter(prefix="/evaluations", tags=["Evaluations"])


def to_response(evaluation: Evaluation) -> EvaluationResponse:
    data = EvaluationResponse.model_validate(evaluation)
    if evaluation.evaluator:
        data.evaluator_name = evaluation.evaluator.name
    return data


@router.get("/rankings", response_model=RankingsResponse)
async def get_rankings(
    current_user: User = Depends(get_current_committee_member),
    db: Session = Depends(get_db)
):
    """
    Applications ranked by average committee rating
    """
    return evaluation_service.get_rankings(db)


@router.get("/stats", response_model=EvaluatorStats)
async def get_my_stats(
    current_user: User = Depends(get_current_committee_member),
    db: Session = Depends(get_db)
):
    """
    Evaluation progress of the current committee member
    """
    return evaluation_service.get_evaluation_stats(db, current_user.id)


@router.get("/mine", response_model=List[EvaluationResponse])
async def list_my_evaluations(
    current_user: User = Depends(get_current_committee_member),
    db: Session = Depends(get_db)
):
    """
    Evaluations submitted by the current committee member
    """
    return [to_response(e) for e in evaluation_service.list_for_evaluator(db, current_user.id)]


@router.get("/applications/{application_id}", response_model=List[EvaluationResponse])
async def list_application_evaluations(
    application_id: int,
    current_user: User = Depends(get_current_committee_member),
    db: Session = Depends(get_db)
):
    """
    All committee evaluations of an application
    """
    return [to_response(e) for e in evaluation_service.list_for_application(db, application_id)]


@router.post("/applications/{application_id}", response_model=EvaluationResponse)
async def submit_evaluation(
    application_id: int,
    evaluation: EvaluationSubmit,
    current_user: User = Depends(get_current_committee_member),
    db: Session = Depends(get_db)
):
    """
    Submit or update the current member's rating of an application
    """
    result = evaluation_service.submit(
        db, application_id, evaluation.rating, current_user, notes=evaluation.notes
    )
    return to_response(result)
