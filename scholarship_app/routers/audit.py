"""
Audit log router (admin only)
"""
from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from scholarship_app.database import get_db
from scholarship_app.schemas.audit import AuditLogResponse
from scholarship_app.services.auth import get_current_active_admin
from scholarship_app.services.audit import audit_recorder
from scholarship_app.models.user import User

router = APIRouter(prefix="/audit", tags=["Audit"])


@router.get("/recent", response_model=List[AuditLogResponse])
async def get_recent_activity(
    limit: int = Query(50, ge=1, le=500),
    current_user: User = Depends(get_current_active_admin),
    db: Session = Depends(get_db)
):
    """
    Most recent audit entries
    """
    return audit_recorder.get_recent(db, limit=limit)


@router.get("/security", response_model=List[AuditLogResponse])
async def get_security_events(
    limit: int = Query(50, ge=1, le=500),
    current_user: User = Depends(get_current_active_admin),
    db: Session = Depends(get_db)
):
    """
    Failed logins, unauthorized access and admin actions
    """
    return audit_recorder.get_security_events(db, limit=limit)


@router.get("/applications/{application_id}", response_model=List[AuditLogResponse])
async def get_application_history(
    application_id: int,
    limit: int = Query(50, ge=1, le=500),
    current_user: User = Depends(get_current_active_admin),
    db: Session = Depends(get_db)
):
    """
    Audit trail of one application
    """
    return audit_recorder.get_by_application(db, application_id, limit=limit)


@router.get("/users/{user_id}", response_model=List[AuditLogResponse])
async def get_user_activity(
    user_id: int,
    limit: int = Query(50, ge=1, le=500),
    current_user: User = Depends(get_current_active_admin),
    db: Session = Depends(get_db)
):
    """
    Actions performed by one user
    """
    return audit_recorder.get_by_user(db, user_id, limit=limit)
