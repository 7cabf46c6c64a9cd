"""
Applications router
"""
from typing import List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session
import csv
import io
from scholarship_app.database import get_db
from scholarship_app.schemas.application import (
    ApplicationResponse, ChecklistResponse, CurrentStepUpdate, StatusUpdate, SubmitRequest, WithdrawRequest,
    Step1PersonalInfo, Step2Address, Step3Education, Step4Eligibility, Step5Documents, Step6Endorsement
)
from scholarship_app.services.auth import get_current_user, get_current_active_admin
from scholarship_app.services.applications import application_service
from scholarship_app.services.eligibility import all_requirements_met
from scholarship_app.models.user import User
from scholarship_app.models.application import ApplicationStatus
from datetime import datetime

router = APIRouter(prefix="/applications", tags=["Applications"])


@router.post("", response_model=ApplicationResponse)
async def create_application(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Start the current user's application (returns the existing one if any)
    """
    return application_service.create_application(db, current_user)


@router.get("", response_model=List[ApplicationResponse])
async def list_applications(
    status_filter: Optional[ApplicationStatus] = None,
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 50,
    current_user: User = Depends(get_current_active_admin),
    db: Session = Depends(get_db)
):
    """
    List applications with filtering (admin only)
    """
    return application_service.list_applications(db, status=status_filter, search=search, skip=skip, limit=limit)


@router.get("/me", response_model=ApplicationResponse)
async def get_my_application(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Get the current user's application
    """
    application = application_service.get_for_user(db, current_user.id)
    if not application:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No application started yet"
        )
    return application


@router.get("/export/csv")
async def export_applications_csv(
    status_filter: Optional[ApplicationStatus] = None,
    current_user: User = Depends(get_current_active_admin),
    db: Session = Depends(get_db)
):
    """
    Export applications to CSV (admin only)
    """
    applications = application_service.list_applications(db, status=status_filter, limit=None)

    output = io.StringIO()
    writer = csv.writer(output)

    # Header
    writer.writerow([
        "ID", "First Name", "Last Name", "Email", "City", "State", "GPA",
        "College", "Year", "Status", "Submitted At", "Created At"
    ])

    # Data rows
    for app in applications:
        writer.writerow([
            app.id,
            app.first_name or "",
            app.last_name or "",
            app.owner.email if app.owner else "",
            app.city or "",
            app.state or "",
            f"{app.gpa:.2f}" if app.gpa is not None else "",
            app.college_name or "",
            app.year_in_college.value.title() if app.year_in_college else "",
            app.status.label,
            app.submitted_at.strftime("%Y-%m-%d %H:%M:%S") if app.submitted_at else "",
            app.created_at.strftime("%Y-%m-%d %H:%M:%S") if app.created_at else ""
        ])

    output.seek(0)

    return StreamingResponse(
        iter([output.getvalue()]),
        media_type="text/csv",
        headers={
            "Content-Disposition": f"attachment; filename=applications_{datetime.utcnow().strftime('%Y%m%d_%H%M%S')}.csv"
        }
    )


@router.get("/{application_id}", response_model=ApplicationResponse)
async def get_application(
    application_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Get application by ID
    """
    return application_service.get_visible_application(db, application_id, current_user)


# ============ Wizard steps ============ #

@router.put("/{application_id}/steps/1", response_model=ApplicationResponse)
async def update_step1(
    application_id: int,
    step_data: Step1PersonalInfo,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Personal information"""
    return application_service.update_step(db, application_id, 1, step_data, current_user)


@router.put("/{application_id}/steps/2", response_model=ApplicationResponse)
async def update_step2(
    application_id: int,
    step_data: Step2Address,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Address"""
    return application_service.update_step(db, application_id, 2, step_data, current_user)


@router.put("/{application_id}/steps/3", response_model=ApplicationResponse)
async def update_step3(
    application_id: int,
    step_data: Step3Education,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Education"""
    return application_service.update_step(db, application_id, 3, step_data, current_user)


@router.put("/{application_id}/steps/4", response_model=ApplicationResponse)
async def update_step4(
    application_id: int,
    step_data: Step4Eligibility,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Eligibility questions"""
    return application_service.update_step(db, application_id, 4, step_data, current_user)


@router.put("/{application_id}/steps/5", response_model=ApplicationResponse)
async def update_step5(
    application_id: int,
    step_data: Step5Documents,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Documents and essay"""
    return application_service.update_step(db, application_id, 5, step_data, current_user)


@router.put("/{application_id}/steps/6", response_model=ApplicationResponse)
async def update_step6(
    application_id: int,
    step_data: Step6Endorsement,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Member endorsement"""
    return application_service.update_step(db, application_id, 6, step_data, current_user)


@router.put("/{application_id}/current-step", response_model=ApplicationResponse)
async def set_current_step(
    application_id: int,
    step_data: CurrentStepUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Record the wizard step the applicant is on
    """
    return application_service.set_current_step(db, application_id, step_data.step, current_user)


# ============ Checklist, submit, lifecycle ============ #

@router.get("/{application_id}/checklist", response_model=ChecklistResponse)
async def get_checklist(
    application_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Requirements checklist, computed by the same validator the submit gate uses
    """
    application, requirements = application_service.get_checklist(db, application_id, current_user)
    return ChecklistResponse(
        application_id=application.id,
        requirements=requirements,
        met_count=sum(1 for req in requirements if req.met),
        total_count=len(requirements),
        all_requirements_met=all_requirements_met(requirements),
    )


@router.post("/{application_id}/submit", response_model=ApplicationResponse)
async def submit_application(
    application_id: int,
    submit_data: SubmitRequest,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Submit the application with an electronic signature
    """
    return application_service.submit(
        db, application_id, submit_data.signature, current_user, background_tasks=background_tasks
    )


@router.post("/{application_id}/withdraw", response_model=ApplicationResponse)
async def withdraw_application(
    application_id: int,
    withdraw_data: WithdrawRequest,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Withdraw the application (terminal)
    """
    return application_service.withdraw(
        db, application_id, current_user, reason=withdraw_data.reason, background_tasks=background_tasks
    )


@router.put("/{application_id}/status", response_model=ApplicationResponse)
async def update_application_status(
    application_id: int,
    status_data: StatusUpdate,
    current_user: User = Depends(get_current_active_admin),
    db: Session = Depends(get_db)
):
    """
    Move an application through review (admin only)
    """
    return application_service.update_status(db, application_id, status_data.status, current_user)
