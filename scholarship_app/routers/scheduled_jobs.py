"""
Scheduled Jobs router
"""
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from datetime import datetime
from apscheduler.triggers.cron import CronTrigger
from scholarship_app.database import get_db
from scholarship_app.models.audit import AuditAction
from scholarship_app.models.scheduled_job import ScheduledJob
from scholarship_app.models.user import User
from scholarship_app.services.audit import audit_recorder
from scholarship_app.services.auth import get_current_active_admin
from scholarship_app.services.scheduler import job_scheduler, format_job_result
from pydantic import BaseModel
import logging

logger = logging.getLogger(__name__)


class ScheduledJobResponse(BaseModel):
    id: int
    job_type: str
    name: str
    description: str | None
    cron_expression: str | None
    is_active: bool
    last_run_at: datetime | None
    last_run_status: str | None
    last_run_message: str | None
    next_run_at: datetime | None
    total_runs: int
    successful_runs: int
    failed_runs: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ScheduledJobUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    cron_expression: str | None = None
    is_active: bool | None = None


router = APIRouter(prefix="/scheduled-jobs", tags=["Scheduled Jobs"])


def get_job_or_404(db: Session, job_id: int) -> ScheduledJob:
    job = db.query(ScheduledJob).filter(ScheduledJob.id == job_id).first()
    if not job:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Scheduled job not found"
        )
    return job


@router.get("", response_model=List[ScheduledJobResponse])
async def list_scheduled_jobs(
    current_user: User = Depends(get_current_active_admin),
    db: Session = Depends(get_db)
):
    """
    List all scheduled jobs (Admin only)
    """
    return db.query(ScheduledJob).order_by(ScheduledJob.job_type).all()


@router.get("/{job_id}", response_model=ScheduledJobResponse)
async def get_scheduled_job(
    job_id: int,
    current_user: User = Depends(get_current_active_admin),
    db: Session = Depends(get_db)
):
    """
    Get scheduled job details (Admin only)
    """
    return get_job_or_404(db, job_id)


@router.put("/{job_id}", response_model=ScheduledJobResponse)
async def update_scheduled_job(
    job_id: int,
    job_data: ScheduledJobUpdate,
    current_user: User = Depends(get_current_active_admin),
    db: Session = Depends(get_db)
):
    """
    Update scheduled job (Admin only)
    """
    job = get_job_or_404(db, job_id)

    update_data = job_data.model_dump(exclude_unset=True)
    if update_data.get("cron_expression"):
        try:
            CronTrigger.from_crontab(update_data["cron_expression"])
        except ValueError as e:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid cron expression: {e}"
            )

    was_active = job.is_active
    for field, value in update_data.items():
        setattr(job, field, value)
    job.updated_at = datetime.utcnow()

    audit_recorder.record(
        db,
        AuditAction.ADMIN_JOB_UPDATED,
        user_id=current_user.id,
        details={"job_type": job.job_type, "changes": update_data},
    )
    db.commit()
    db.refresh(job)

    # Update scheduler
    if job.is_active and (not was_active or 'cron_expression' in update_data):
        job_scheduler.schedule_job(job)
    elif not job.is_active and was_active:
        job_scheduler.unschedule_job(job.job_type)

    return job


@router.post("/{job_id}/run-now")
async def run_scheduled_job_now(
    job_id: int,
    current_user: User = Depends(get_current_active_admin),
    db: Session = Depends(get_db)
):
    """
    Manually trigger a scheduled job to run immediately (Admin only)
    """
    job = get_job_or_404(db, job_id)

    job_func = job_scheduler.get_job_function(job.job_type)
    if not job_func:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown job type: {job.job_type}"
        )

    try:
        result_data = job_func()
    except Exception as e:
        logger.exception(f"Manual run of job {job.job_type} failed")
        db.refresh(job)
        job.last_run_status = 'failed'
        job.last_run_message = str(e)[:500]
        job.total_runs = (job.total_runs or 0) + 1
        job.failed_runs = (job.failed_runs or 0) + 1
        db.commit()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to run job: {str(e)}"
        )

    # The job ran on its own session; pick up what it wrote
    db.refresh(job)
    job.last_run_status = 'success'
    job.last_run_message = format_job_result(job.job_type, result_data)
    job.last_run_at = datetime.utcnow()
    job.total_runs = (job.total_runs or 0) + 1
    job.successful_runs = (job.successful_runs or 0) + 1
    db.commit()

    return {
        "message": f"Job '{job.name}' executed successfully",
        "result": result_data,
        "status": job.last_run_status,
        "details": job.last_run_message
    }
