"""
Application service: step-by-step editing and lifecycle transitions
"""
import logging
from datetime import datetime
from typing import List, Optional, Tuple
from fastapi import BackgroundTasks
from pydantic import BaseModel
from sqlalchemy import or_
from sqlalchemy.orm import Session
from scholarship_app.exceptions import (
    AlreadySubmitted, Forbidden, IllegalTransition, NotFound, ValidationFailed
)
from scholarship_app.models.application import (
    Application, ApplicationStatus, PRE_SUBMISSION_STATUSES, REVIEW_STEP, SUBMITTED_STATUSES
)
from scholarship_app.models.audit import AuditAction
from scholarship_app.models.user import User, UserRole
from scholarship_app.schemas.application import Requirement
from scholarship_app.services.audit import audit_recorder
from scholarship_app.services.eligibility import compute_checklist, count_words, unmet_requirements, validate_step
from scholarship_app.services.email import email_service
from scholarship_app.services.portal_settings import portal_settings_service

logger = logging.getLogger(__name__)

STEP_NAMES = {
    1: "personal_info",
    2: "address",
    3: "education",
    4: "eligibility",
    5: "documents",
    6: "recommendations",
    7: "review",
}


def normalize_signature(value: Optional[str]) -> str:
    return (value or "").strip().casefold()


def signature_matches(signature: Optional[str], application: Application) -> bool:
    """Signature must equal "{first_name} {last_name}", trimmed and case-insensitive"""
    if not application.first_name or not application.last_name:
        return False
    expected = normalize_signature(f"{application.first_name} {application.last_name}")
    return normalize_signature(signature) == expected


def submission_invariant_holds(application: Application) -> bool:
    """
    submitted_at is set exactly when the status has reached submitted or later

    A withdrawn application keeps whatever submitted_at it had when it was
    withdrawn, so it satisfies the invariant either way.
    """
    if application.status == ApplicationStatus.WITHDRAWN:
        return True
    return (application.submitted_at is not None) == (application.status in SUBMITTED_STATUSES)


class ApplicationService:
    """Application State Model operations"""

    # ============ Lookups ============ #

    def get_application(self, db: Session, application_id: int) -> Application:
        application = db.query(Application).filter(Application.id == application_id).first()
        if not application:
            raise NotFound("Application not found", {"application_id": application_id})
        return application

    def get_for_user(self, db: Session, user_id: int) -> Optional[Application]:
        return db.query(Application).filter(Application.user_id == user_id).first()

    def get_visible_application(self, db: Session, application_id: int, actor: User) -> Application:
        """
        Load an application the actor may read

        Owners see their own; admins see everything; committee members see
        applications once submitted.
        """
        application = self.get_application(db, application_id)
        if application.user_id == actor.id or actor.role == UserRole.ADMIN:
            return application
        if actor.role == UserRole.COMMITTEE and application.status in SUBMITTED_STATUSES:
            return application
        audit_recorder.record(
            db,
            AuditAction.SECURITY_UNAUTHORIZED_ACCESS,
            user_id=actor.id,
            application_id=application.id,
            details={"operation": "view_application"},
        )
        db.commit()
        raise Forbidden("No permission to view this application")

    def list_applications(
        self,
        db: Session,
        status: Optional[ApplicationStatus] = None,
        search: Optional[str] = None,
        skip: int = 0,
        limit: Optional[int] = 50,
    ) -> List[Application]:
        """Admin listing, most recently submitted first, then most recently created"""
        query = db.query(Application)
        if status:
            query = query.filter(Application.status == status)
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            query = query.filter(
                or_(
                    Application.first_name.ilike(pattern),
                    Application.last_name.ilike(pattern),
                    Application.city.ilike(pattern),
                )
            )
        return (
            query.order_by(
                Application.submitted_at.is_(None),
                Application.submitted_at.desc(),
                Application.created_at.desc(),
            )
            .offset(skip)
            .limit(limit)
            .all()
        )

    # ============ Editing ============ #

    def create_application(self, db: Session, actor: User) -> Application:
        """Create the actor's application, or return the existing one"""
        existing = self.get_for_user(db, actor.id)
        if existing:
            return existing

        application = Application(
            user_id=actor.id,
            status=ApplicationStatus.DRAFT,
            current_step=1,
            completed_steps=[],
        )
        db.add(application)
        db.flush()
        audit_recorder.record(db, AuditAction.APPLICATION_CREATED, user_id=actor.id, application_id=application.id)
        db.commit()
        db.refresh(application)
        logger.info("Created application %s for user %s", application.id, actor.id)
        return application

    def _ensure_editable(self, db: Session, application: Application, actor: User) -> bool:
        """
        Check that the actor may change per-step fields

        Returns True when the change is an admin override. Owners cannot edit
        once the application deadline has passed.
        """
        if actor.role == UserRole.ADMIN and application.user_id != actor.id:
            return True
        if application.user_id != actor.id:
            raise Forbidden("Only the owner can edit this application")
        if application.status == ApplicationStatus.WITHDRAWN:
            raise IllegalTransition("Withdrawn applications are read-only")
        if application.submitted_at is not None or application.status in SUBMITTED_STATUSES:
            raise AlreadySubmitted("Application has already been submitted and is read-only")
        if portal_settings_service.deadline_passed(db):
            raise ValidationFailed(["deadline"], "The application deadline has passed")
        return False

    def update_step(self, db: Session, application_id: int, step: int, data: BaseModel, actor: User) -> Application:
        """
        Save the fields of one wizard step (1-6) and mark it complete

        Hard disqualifiers (residency, GPA, full-time status, essay bounds) are
        rejected here with ValidationFailed; admins overriding a submitted
        application skip that check.
        """
        if step < 1 or step >= REVIEW_STEP:
            raise ValueError(f"Step {step} has no editable fields")

        application = self.get_application(db, application_id)
        admin_override = self._ensure_editable(db, application, actor)

        fields = data.model_dump(exclude_unset=(step == 5))
        if step == 5 and fields.get("essay_text") is not None:
            fields["essay_word_count"] = count_words(fields["essay_text"])

        if not admin_override:
            failures = validate_step(step, fields)
            if failures:
                raise ValidationFailed(failures, "Eligibility requirement not met")

        for field, value in fields.items():
            setattr(application, field, value)
        application.mark_step_complete(step)

        if not admin_override:
            self._advance_progress(application, step)

        audit_recorder.record(
            db,
            AuditAction.APPLICATION_UPDATED,
            user_id=actor.id,
            application_id=application.id,
            details={"step": step, "step_name": STEP_NAMES[step], "admin_override": admin_override},
        )
        db.commit()
        db.refresh(application)
        return application

    def _advance_progress(self, application: Application, step: int):
        """draft -> in_progress on first save; -> pending_recommendations once step 6 is done"""
        if application.status == ApplicationStatus.DRAFT:
            application.status = ApplicationStatus.IN_PROGRESS
        if step == 6 and application.status == ApplicationStatus.IN_PROGRESS:
            application.status = ApplicationStatus.PENDING_RECOMMENDATIONS

    def set_current_step(self, db: Session, application_id: int, step: int, actor: User) -> Application:
        """
        Record the last visited step

        The review step has no fields of its own: opening it completes it.
        """
        application = self.get_application(db, application_id)
        if application.user_id != actor.id:
            raise Forbidden("Only the owner can navigate this application")

        application.current_step = step
        if step == REVIEW_STEP and application.status in PRE_SUBMISSION_STATUSES:
            if application.mark_step_complete(REVIEW_STEP):
                audit_recorder.record(
                    db,
                    AuditAction.APPLICATION_UPDATED,
                    user_id=actor.id,
                    application_id=application.id,
                    details={"step": REVIEW_STEP, "step_name": STEP_NAMES[REVIEW_STEP]},
                )
        db.commit()
        db.refresh(application)
        return application

    # ============ Checklist & submission ============ #

    def get_checklist(self, db: Session, application_id: int, actor: User) -> Tuple[Application, List[Requirement]]:
        application = self.get_visible_application(db, application_id, actor)
        return application, compute_checklist(application, application.recommendations)

    def submit(self, db: Session, application_id: int, signature: str, actor: User,
               background_tasks: Optional[BackgroundTasks] = None) -> Application:
        """
        Submit the application

        Raises:
            AlreadySubmitted: status is already submitted or later
            ValidationFailed: every unmet requirement, signature and deadline included
        """
        application = self.get_application(db, application_id)
        if application.user_id != actor.id:
            raise Forbidden("Only the owner can submit this application")
        if application.submitted_at is not None or application.status in SUBMITTED_STATUSES:
            raise AlreadySubmitted("Application has already been submitted")
        if application.status == ApplicationStatus.WITHDRAWN:
            raise IllegalTransition("Withdrawn applications cannot be submitted")

        checklist = compute_checklist(application, application.recommendations)
        failures = unmet_requirements(checklist)
        if not signature_matches(signature, application):
            failures.append("signature")
        if portal_settings_service.deadline_passed(db):
            failures.append("deadline")
        if failures:
            logger.info("Submit rejected for application %s: %s", application.id, failures)
            raise ValidationFailed(failures, "Application does not meet all requirements")

        # Status guard and write in one statement: a concurrent submit matches no row
        now = datetime.utcnow()
        updated = (
            db.query(Application)
            .filter(
                Application.id == application.id,
                Application.status.in_(list(PRE_SUBMISSION_STATUSES)),
                Application.submitted_at.is_(None),
            )
            .update(
                {
                    Application.status: ApplicationStatus.SUBMITTED,
                    Application.submitted_at: now,
                    Application.signature: signature.strip(),
                    Application.updated_at: now,
                },
                synchronize_session=False,
            )
        )
        if updated != 1:
            db.rollback()
            raise AlreadySubmitted("Application has already been submitted")

        audit_recorder.record(
            db,
            AuditAction.APPLICATION_SUBMITTED,
            user_id=actor.id,
            application_id=application.id,
            details={"signature": signature.strip()},
        )
        db.commit()
        db.refresh(application)
        logger.info("Application %s submitted by user %s", application.id, actor.id)

        email_service.send(
            db,
            "application_submitted",
            application.owner.email,
            {"applicant_name": application.full_name, "submitted_at": application.submitted_at},
            related_type="application",
            related_id=application.id,
            background_tasks=background_tasks,
        )
        return application

    # ============ Lifecycle ============ #

    def _guarded_status_change(self, db: Session, application: Application, new_status: ApplicationStatus, values: dict) -> None:
        """Apply a transition only if nobody changed the status in between"""
        current = application.status
        if not current.can_transition_to(new_status):
            raise IllegalTransition(
                f"Cannot move application from {current.value} to {new_status.value}",
                {"from": current.value, "to": new_status.value},
            )
        values = {Application.status: new_status, Application.updated_at: datetime.utcnow(), **values}
        updated = (
            db.query(Application)
            .filter(Application.id == application.id, Application.status == current)
            .update(values, synchronize_session=False)
        )
        if updated != 1:
            db.rollback()
            raise IllegalTransition("Application status changed concurrently; reload and retry")

    def withdraw(self, db: Session, application_id: int, actor: User, reason: Optional[str] = None,
                 background_tasks: Optional[BackgroundTasks] = None) -> Application:
        """Owner withdraws before a decision; terminal"""
        application = self.get_application(db, application_id)
        if application.user_id != actor.id:
            raise Forbidden("Only the owner can withdraw this application")

        previous = application.status
        self._guarded_status_change(
            db, application, ApplicationStatus.WITHDRAWN,
            {Application.withdrawn_at: datetime.utcnow(), Application.withdrawn_reason: reason},
        )
        audit_recorder.record(
            db,
            AuditAction.APPLICATION_WITHDRAWN,
            user_id=actor.id,
            application_id=application.id,
            details={"reason": reason, "previous_status": previous.value},
        )
        db.commit()
        db.refresh(application)

        email_service.send(
            db,
            "application_withdrawn",
            application.owner.email,
            {"applicant_name": application.full_name or application.owner.name, "reason": reason},
            related_type="application",
            related_id=application.id,
            background_tasks=background_tasks,
        )
        return application

    def update_status(self, db: Session, application_id: int, new_status: ApplicationStatus, actor: User) -> Application:
        """Admin moves an application along the review pipeline"""
        if actor.role != UserRole.ADMIN:
            raise Forbidden("Admin privileges required")
        if new_status == ApplicationStatus.SUBMITTED:
            raise IllegalTransition("Applications can only be submitted by their owner")

        application = self.get_application(db, application_id)
        previous = application.status
        extra = {}
        if new_status == ApplicationStatus.WITHDRAWN:
            extra[Application.withdrawn_at] = datetime.utcnow()
        self._guarded_status_change(db, application, new_status, extra)

        audit_recorder.record(
            db,
            AuditAction.APPLICATION_STATUS_CHANGED,
            user_id=actor.id,
            application_id=application.id,
            details={"from": previous.value, "to": new_status.value},
        )
        db.commit()
        db.refresh(application)
        return application


# Singleton instance
application_service = ApplicationService()
