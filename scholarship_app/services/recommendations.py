"""
Recommendation Coordinator

Invitations, token-link access for recommenders, resends and reminders.
"""
import logging
from datetime import datetime, timedelta
from typing import List, Optional
from fastapi import BackgroundTasks
from sqlalchemy.orm import Session
from scholarship_app.config import settings
from scholarship_app.exceptions import (
    AlreadyExists, AlreadySubmitted, Forbidden, IllegalTransition, NotFound,
    QuotaExceeded, TokenExpired, TokenInvalid, ValidationFailed
)
from scholarship_app.models.application import Application, ApplicationStatus, SUBMITTED_STATUSES
from scholarship_app.models.audit import AuditAction
from scholarship_app.models.recommendation import Recommendation, RecommendationStatus
from scholarship_app.models.user import User, UserRole
from scholarship_app.schemas.recommendation import LetterSubmit, RecommenderInvite
from scholarship_app.services.audit import audit_recorder
from scholarship_app.services.email import email_service
from scholarship_app.services.tokens import generate_token, token_expiry

logger = logging.getLogger(__name__)

# Statuses in which the recommender still owes a letter
AWAITING_LETTER_STATUSES = (RecommendationStatus.EMAIL_SENT, RecommendationStatus.VIEWED)


def recommendation_link(token: str) -> str:
    return f"{settings.app_base_url.rstrip('/')}/recommend/{token}"


class RecommendationService:
    """Recommendation Coordinator operations"""

    # ============ Helpers ============ #

    def _get_owned(self, db: Session, recommendation_id: int, actor: User) -> Recommendation:
        """Load a live recommendation the actor (application owner or admin) manages"""
        recommendation = db.query(Recommendation).filter(Recommendation.id == recommendation_id).first()
        if not recommendation or recommendation.withdrawn_at is not None:
            raise NotFound("Recommendation not found", {"recommendation_id": recommendation_id})
        if recommendation.application.user_id != actor.id and actor.role != UserRole.ADMIN:
            audit_recorder.record(
                db,
                AuditAction.SECURITY_UNAUTHORIZED_ACCESS,
                user_id=actor.id,
                application_id=recommendation.application_id,
                details={"operation": "manage_recommendation", "recommendation_id": recommendation.id},
            )
            db.commit()
            raise Forbidden("No permission to manage this recommendation")
        return recommendation

    def _resolve_token(self, db: Session, token: str) -> Recommendation:
        """
        Find the live recommendation behind a token link

        Raises:
            TokenInvalid: no live recommendation carries this token
            TokenExpired: the token is past its expiry, whatever the status
        """
        recommendation = None
        if token:
            recommendation = (
                db.query(Recommendation)
                .filter(Recommendation.access_token == token, Recommendation.withdrawn_at.is_(None))
                .first()
            )
        if not recommendation:
            raise TokenInvalid("This recommendation link is not valid")
        if recommendation.token_expires_at < datetime.utcnow():
            raise TokenExpired(
                "This recommendation link has expired; ask the applicant to resend it",
                {"expired_at": recommendation.token_expires_at.isoformat()},
            )
        return recommendation

    def _email_variables(self, recommendation: Recommendation) -> dict:
        application = recommendation.application
        return {
            "recommender_name": recommendation.recommender_name,
            "applicant_name": application.full_name or application.owner.name,
            "link": recommendation_link(recommendation.access_token),
            "expires_at": recommendation.token_expires_at,
        }

    def _dispatch(self, db: Session, template_kind: str, recommendation: Recommendation,
                  background_tasks: Optional[BackgroundTasks] = None):
        email_service.send(
            db,
            template_kind,
            recommendation.recommender_email,
            self._email_variables(recommendation),
            related_type="recommendation",
            related_id=recommendation.id,
            background_tasks=background_tasks,
        )

    # ============ Applicant-side operations ============ #

    def list_for_application(self, db: Session, application_id: int, actor: User) -> List[Recommendation]:
        application = db.query(Application).filter(Application.id == application_id).first()
        if not application:
            raise NotFound("Application not found", {"application_id": application_id})
        if application.user_id != actor.id and not actor.is_evaluator:
            raise Forbidden("No permission to view these recommendations")
        return [r for r in application.recommendations if r.withdrawn_at is None]

    def invite(self, db: Session, application_id: int, info: RecommenderInvite, actor: User,
               background_tasks: Optional[BackgroundTasks] = None) -> Recommendation:
        """
        Invite a recommender and email them their token link

        The quota check and the insert run under a row lock on the application
        so concurrent invites cannot exceed the limit.
        """
        application = (
            db.query(Application)
            .filter(Application.id == application_id)
            .with_for_update()
            .first()
        )
        if not application:
            raise NotFound("Application not found", {"application_id": application_id})
        if application.user_id != actor.id:
            raise Forbidden("Only the applicant can invite recommenders")
        if application.status == ApplicationStatus.WITHDRAWN:
            raise IllegalTransition("Withdrawn applications cannot invite recommenders")
        if application.status in SUBMITTED_STATUSES:
            raise AlreadySubmitted("Application has already been submitted")

        live = (
            db.query(Recommendation)
            .filter(Recommendation.application_id == application.id, Recommendation.withdrawn_at.is_(None))
            .all()
        )
        if len(live) >= settings.max_recommendations:
            db.rollback()
            raise QuotaExceeded(
                f"An application may have at most {settings.max_recommendations} recommendations",
                {"limit": settings.max_recommendations, "current": len(live)},
            )
        email = info.recommender_email.strip().lower()
        if any(r.recommender_email == email for r in live):
            db.rollback()
            raise AlreadyExists("This recommender has already been invited", {"recommender_email": email})

        now = datetime.utcnow()
        recommendation = Recommendation(
            application_id=application.id,
            recommender_email=email,
            recommender_name=info.recommender_name.strip(),
            recommender_type=info.recommender_type,
            recommender_organization=info.recommender_organization,
            relationship_to_applicant=info.relationship_to_applicant,
            access_token=generate_token(),
            token_expires_at=token_expiry(now),
            status=RecommendationStatus.PENDING,
        )
        db.add(recommendation)
        db.flush()

        # Dispatch is fire-and-forget, the record moves on immediately
        recommendation.status = RecommendationStatus.EMAIL_SENT
        recommendation.email_sent_at = now

        audit_recorder.record(
            db,
            AuditAction.RECOMMENDATION_REQUESTED,
            user_id=actor.id,
            application_id=application.id,
            details={
                "recommendation_id": recommendation.id,
                "recommender_email": email,
                "recommender_type": recommendation.recommender_type.value,
            },
        )
        db.commit()
        db.refresh(recommendation)
        logger.info("Recommendation %s requested for application %s", recommendation.id, application.id)

        self._dispatch(db, "recommendation_request", recommendation, background_tasks)
        return recommendation

    def resend(self, db: Session, recommendation_id: int, actor: User,
               background_tasks: Optional[BackgroundTasks] = None) -> Recommendation:
        """
        Issue a fresh token and re-send the invitation

        The old link stops working. Reminder counters restart with the new
        invitation. A letter that lands between the check and the write wins:
        the update only applies while the row is still unsubmitted.
        """
        recommendation = self._get_owned(db, recommendation_id, actor)
        if recommendation.status == RecommendationStatus.SUBMITTED:
            raise AlreadySubmitted("The letter has already been submitted")

        now = datetime.utcnow()
        resend_count = (recommendation.resend_count or 0) + 1
        updated = (
            db.query(Recommendation)
            .filter(
                Recommendation.id == recommendation.id,
                Recommendation.status != RecommendationStatus.SUBMITTED,
            )
            .update(
                {
                    Recommendation.access_token: generate_token(),
                    Recommendation.token_expires_at: token_expiry(now),
                    Recommendation.status: RecommendationStatus.EMAIL_SENT,
                    Recommendation.email_sent_at: now,
                    Recommendation.resend_count: Recommendation.resend_count + 1,
                    Recommendation.email_reminders_sent: 0,
                    Recommendation.last_reminder_at: None,
                    Recommendation.updated_at: now,
                },
                synchronize_session=False,
            )
        )
        if updated != 1:
            db.rollback()
            raise AlreadySubmitted("The letter has already been submitted")

        audit_recorder.record(
            db,
            AuditAction.RECOMMENDATION_RESENT,
            user_id=actor.id,
            application_id=recommendation.application_id,
            details={"recommendation_id": recommendation.id, "resend_count": resend_count},
        )
        db.commit()
        db.refresh(recommendation)

        self._dispatch(db, "recommendation_request", recommendation, background_tasks)
        return recommendation

    def send_reminder(self, db: Session, recommendation_id: int, actor: User,
                      background_tasks: Optional[BackgroundTasks] = None) -> Recommendation:
        """
        Nudge the recommender without touching status or token

        Raises:
            QuotaExceeded: reminder cap reached or still within the cooldown
        """
        recommendation = self._get_owned(db, recommendation_id, actor)
        if recommendation.status == RecommendationStatus.SUBMITTED:
            raise AlreadySubmitted("The letter has already been submitted")
        if recommendation.status not in AWAITING_LETTER_STATUSES:
            raise IllegalTransition("The invitation has not been sent yet")

        now = datetime.utcnow()
        if recommendation.token_expires_at < now:
            raise TokenExpired("The recommendation link has expired; resend the invitation instead")
        if (recommendation.email_reminders_sent or 0) >= settings.max_reminders:
            raise QuotaExceeded(
                "Maximum number of reminders already sent",
                {"limit": settings.max_reminders},
            )
        if recommendation.last_reminder_at:
            next_allowed = recommendation.last_reminder_at + timedelta(hours=settings.reminder_cooldown_hours)
            if now < next_allowed:
                raise QuotaExceeded(
                    "A reminder was sent recently; try again later",
                    {"retry_after": next_allowed.isoformat()},
                )

        self._record_reminder(db, recommendation, now, actor_id=actor.id, automatic=False,
                             background_tasks=background_tasks)
        return recommendation

    def _record_reminder(self, db: Session, recommendation: Recommendation, now: datetime,
                         actor_id: Optional[int], automatic: bool,
                         background_tasks: Optional[BackgroundTasks] = None):
        recommendation.email_reminders_sent = (recommendation.email_reminders_sent or 0) + 1
        recommendation.last_reminder_at = now
        audit_recorder.record(
            db,
            AuditAction.RECOMMENDATION_REMINDER_SENT,
            user_id=actor_id,
            application_id=recommendation.application_id,
            details={
                "recommendation_id": recommendation.id,
                "reminder_number": recommendation.email_reminders_sent,
                "automatic": automatic,
            },
        )
        db.commit()
        db.refresh(recommendation)
        self._dispatch(db, "recommendation_reminder", recommendation, background_tasks)

    def remove(self, db: Session, recommendation_id: int, actor: User) -> Recommendation:
        """Withdraw an unanswered invitation; frees quota and kills its token"""
        recommendation = self._get_owned(db, recommendation_id, actor)
        if recommendation.status == RecommendationStatus.SUBMITTED:
            raise AlreadySubmitted("A submitted letter cannot be removed")
        if recommendation.application.status in SUBMITTED_STATUSES:
            raise AlreadySubmitted("Application has already been submitted")

        recommendation.withdrawn_at = datetime.utcnow()
        audit_recorder.record(
            db,
            AuditAction.RECOMMENDATION_REMOVED,
            user_id=actor.id,
            application_id=recommendation.application_id,
            details={"recommendation_id": recommendation.id, "recommender_email": recommendation.recommender_email},
        )
        db.commit()
        db.refresh(recommendation)
        return recommendation

    # ============ Recommender-side (token) operations ============ #

    def get_by_token(self, db: Session, token: str) -> Recommendation:
        return self._resolve_token(db, token)

    def mark_viewed(self, db: Session, token: str) -> Recommendation:
        """email_sent -> viewed; any other status is left alone and not audited"""
        recommendation = self._resolve_token(db, token)
        if recommendation.status != RecommendationStatus.EMAIL_SENT:
            return recommendation

        updated = (
            db.query(Recommendation)
            .filter(
                Recommendation.id == recommendation.id,
                Recommendation.status == RecommendationStatus.EMAIL_SENT,
            )
            .update(
                {Recommendation.status: RecommendationStatus.VIEWED, Recommendation.updated_at: datetime.utcnow()},
                synchronize_session=False,
            )
        )
        if updated == 1:
            audit_recorder.record(
                db,
                AuditAction.RECOMMENDATION_VIEWED,
                application_id=recommendation.application_id,
                details={"recommendation_id": recommendation.id},
            )
        db.commit()
        db.refresh(recommendation)
        return recommendation

    def submit_letter(self, db: Session, token: str, letter: LetterSubmit,
                      background_tasks: Optional[BackgroundTasks] = None) -> Recommendation:
        """
        Store the recommender's letter

        Raises:
            TokenInvalid / TokenExpired: link problems
            AlreadySubmitted: a letter is already on file
            ValidationFailed: neither a file nor text was provided
        """
        recommendation = self._resolve_token(db, token)
        if recommendation.status == RecommendationStatus.SUBMITTED:
            raise AlreadySubmitted("A letter has already been submitted for this recommendation")

        letter_file_id = (letter.letter_file_id or "").strip() or None
        letter_text = (letter.letter_text or "").strip() or None
        if not letter_file_id and not letter_text:
            raise ValidationFailed(["letter"], "Upload a letter or enter its text")

        now = datetime.utcnow()
        values = {
            Recommendation.status: RecommendationStatus.SUBMITTED,
            # One letter reference: an uploaded file wins over pasted text
            Recommendation.letter_file_id: letter_file_id,
            Recommendation.letter_text: None if letter_file_id else letter_text,
            Recommendation.recommender_name: letter.recommender_name.strip(),
            Recommendation.submitted_at: now,
            Recommendation.updated_at: now,
        }
        if letter.recommender_title:
            values[Recommendation.recommender_title] = letter.recommender_title
        if letter.recommender_organization:
            values[Recommendation.recommender_organization] = letter.recommender_organization

        updated = (
            db.query(Recommendation)
            .filter(
                Recommendation.id == recommendation.id,
                Recommendation.status != RecommendationStatus.SUBMITTED,
            )
            .update(values, synchronize_session=False)
        )
        if updated != 1:
            db.rollback()
            raise AlreadySubmitted("A letter has already been submitted for this recommendation")

        audit_recorder.record(
            db,
            AuditAction.RECOMMENDATION_SUBMITTED,
            application_id=recommendation.application_id,
            details={"recommendation_id": recommendation.id, "recommender_name": letter.recommender_name.strip()},
        )
        db.commit()
        db.refresh(recommendation)
        logger.info("Letter received for recommendation %s", recommendation.id)

        application = recommendation.application
        email_service.send(
            db,
            "recommendation_received",
            application.owner.email,
            {
                "applicant_name": application.full_name or application.owner.name,
                "recommender_name": recommendation.recommender_name,
            },
            related_type="recommendation",
            related_id=recommendation.id,
            background_tasks=background_tasks,
        )
        return recommendation

    # ============ Scheduled ============ #

    def send_auto_reminders(self, db: Session, now: Optional[datetime] = None) -> int:
        """
        Reminder sweep run by the scheduler

        A recommender still owing a letter gets reminder 1 once
        auto_reminder_first_days have passed since the invitation and reminder
        2 after auto_reminder_second_days, never more than max_reminders.

        Returns:
            Number of reminders sent
        """
        now = now or datetime.utcnow()
        candidates = (
            db.query(Recommendation)
            .join(Application, Recommendation.application_id == Application.id)
            .filter(
                Recommendation.status.in_(AWAITING_LETTER_STATUSES),
                Recommendation.withdrawn_at.is_(None),
                Recommendation.token_expires_at > now,
                Recommendation.email_reminders_sent < settings.max_reminders,
                Application.status.notin_(list(SUBMITTED_STATUSES) + [ApplicationStatus.WITHDRAWN]),
            )
            .order_by(Recommendation.id)
            .all()
        )

        schedule = [settings.auto_reminder_first_days, settings.auto_reminder_second_days]
        sent = 0
        for recommendation in candidates:
            reminder_index = recommendation.email_reminders_sent or 0
            if reminder_index >= len(schedule) or not recommendation.email_sent_at:
                continue
            due_at = recommendation.email_sent_at + timedelta(days=schedule[reminder_index])
            if now < due_at:
                continue
            try:
                self._record_reminder(db, recommendation, now, actor_id=None, automatic=True)
                sent += 1
            except Exception:
                db.rollback()
                logger.exception("Automatic reminder failed for recommendation %s", recommendation.id)

        logger.info("Automatic reminder sweep sent %d reminder(s)", sent)
        return sent


# Singleton instance
recommendation_service = RecommendationService()
