"""
Recommendations router

Applicant-side management lives under /api; the recommender's token link is
served by public_router without authentication.
"""
from typing import List
from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session
from scholarship_app.database import get_db
from scholarship_app.schemas.recommendation import (
    LetterSubmit, RecommendationFormResponse, RecommendationResponse, RecommenderInvite
)
from scholarship_app.services.auth import get_current_user
from scholarship_app.services.recommendations import recommendation_service
from scholarship_app.models.recommendation import Recommendation
from scholarship_app.models.user import User

router = APIRouter(tags=["Recommendations"])
public_router = APIRouter(prefix="/recommend", tags=["Recommender Form"])


def to_form_response(recommendation: Recommendation) -> RecommendationFormResponse:
    application = recommendation.application
    return RecommendationFormResponse(
        recommendation_id=recommendation.id,
        status=recommendation.status,
        applicant_name=application.full_name,
        recommender_name=recommendation.recommender_name,
        recommender_type=recommendation.recommender_type,
        token_expires_at=recommendation.token_expires_at,
    )


@router.get("/applications/{application_id}/recommendations", response_model=List[RecommendationResponse])
async def list_recommendations(
    application_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    List live recommendation requests of an application
    """
    return recommendation_service.list_for_application(db, application_id, current_user)


@router.post(
    "/applications/{application_id}/recommendations",
    response_model=RecommendationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def invite_recommender(
    application_id: int,
    invite: RecommenderInvite,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Invite a recommender; they receive an emailed link
    """
    return recommendation_service.invite(db, application_id, invite, current_user, background_tasks)


@router.post("/recommendations/{recommendation_id}/resend", response_model=RecommendationResponse)
async def resend_invitation(
    recommendation_id: int,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Re-send the invitation with a new link (the old link stops working)
    """
    return recommendation_service.resend(db, recommendation_id, current_user, background_tasks)


@router.post("/recommendations/{recommendation_id}/remind", response_model=RecommendationResponse)
async def send_reminder(
    recommendation_id: int,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Remind the recommender (rate limited)
    """
    return recommendation_service.send_reminder(db, recommendation_id, current_user, background_tasks)


@router.delete("/recommendations/{recommendation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_recommendation(
    recommendation_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Remove an unanswered recommendation request
    """
    recommendation_service.remove(db, recommendation_id, current_user)
    return None


@public_router.get("/{token}", response_model=RecommendationFormResponse)
async def open_recommendation_form(
    token: str,
    db: Session = Depends(get_db)
):
    """
    Recommender opens their link
    """
    recommendation = recommendation_service.mark_viewed(db, token)
    return to_form_response(recommendation)


@public_router.post("/{token}", response_model=RecommendationFormResponse)
async def submit_recommendation_letter(
    token: str,
    letter: LetterSubmit,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db)
):
    """
    Recommender submits their letter
    """
    recommendation = recommendation_service.submit_letter(db, token, letter, background_tasks)
    return to_form_response(recommendation)
