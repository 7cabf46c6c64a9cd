"""
Portal settings router
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from scholarship_app.database import get_db
from scholarship_app.schemas.portal_setting import DeadlineResponse, DeadlineUpdate
from scholarship_app.services.auth import get_current_user, get_current_active_admin
from scholarship_app.services.portal_settings import portal_settings_service
from scholarship_app.models.user import User

router = APIRouter(prefix="/settings", tags=["Settings"])


def deadline_response(db: Session) -> DeadlineResponse:
    return DeadlineResponse(
        application_deadline=portal_settings_service.get_deadline(db),
        deadline_passed=portal_settings_service.deadline_passed(db),
    )


@router.get("/deadline", response_model=DeadlineResponse)
async def get_deadline(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Current application deadline
    """
    return deadline_response(db)


@router.put("/deadline", response_model=DeadlineResponse)
async def update_deadline(
    deadline_data: DeadlineUpdate,
    current_user: User = Depends(get_current_active_admin),
    db: Session = Depends(get_db)
):
    """
    Set or clear the application deadline (Admin only)
    """
    portal_settings_service.set_deadline(db, deadline_data.application_deadline, current_user)
    return deadline_response(db)
