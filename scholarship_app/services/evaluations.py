"""
Evaluation Aggregator
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from scholarship_app.exceptions import Forbidden, IllegalTransition, NotFound
from scholarship_app.models.application import Application, SUBMITTED_STATUSES
from scholarship_app.models.audit import AuditAction
from scholarship_app.models.evaluation import Evaluation, Rating, MAX_RATING_POINTS
from scholarship_app.models.user import User, EVALUATOR_ROLES
from scholarship_app.schemas.evaluation import EvaluatorStats, RankingEntry, RankingsResponse
from scholarship_app.services.audit import audit_recorder

logger = logging.getLogger(__name__)


def format_average(average: float) -> str:
    """Display form of an average rating, e.g. "4.50 / 5.0" """
    return f"{average:.2f} / {MAX_RATING_POINTS:.1f}"


def average_points(ratings: List[Rating]) -> float:
    if not ratings:
        return 0.0
    return sum(rating.points for rating in ratings) / len(ratings)


def ranking_key(average: float, count: int, submitted_at: Optional[datetime], application_id: int):
    """
    Sort key for rankings

    Average descending, then evaluation count descending, then earliest
    submission first (unsubmitted last), then application id.
    """
    return (-average, -count, submitted_at is None, submitted_at or datetime.max, application_id)


class EvaluationService:
    """Evaluation Aggregator operations"""

    def _ensure_evaluator(self, actor: User):
        if actor.role not in EVALUATOR_ROLES:
            raise Forbidden("Committee privileges required")

    def submit(self, db: Session, application_id: int, rating: Rating, actor: User,
               notes: Optional[str] = None) -> Evaluation:
        """
        Rate an application; re-rating updates the evaluator's existing row

        Two writes racing on the same pair collide on the unique constraint;
        the loser re-reads the winner's row and updates it.
        """
        self._ensure_evaluator(actor)
        application = db.query(Application).filter(Application.id == application_id).first()
        if not application:
            raise NotFound("Application not found", {"application_id": application_id})
        if application.status not in SUBMITTED_STATUSES:
            raise IllegalTransition(
                "Only submitted applications can be evaluated",
                {"status": application.status.value},
            )

        evaluation = self._find(db, application_id, actor.id)
        created = evaluation is None
        if created:
            try:
                with db.begin_nested():
                    evaluation = Evaluation(
                        application_id=application_id,
                        evaluator_id=actor.id,
                        rating=rating,
                        notes=notes,
                    )
                    db.add(evaluation)
                    db.flush()
            except IntegrityError:
                logger.info("Concurrent evaluation for application %s by %s; updating", application_id, actor.id)
                evaluation = self._find(db, application_id, actor.id)
                created = False

        if not created:
            evaluation.rating = rating
            evaluation.notes = notes
            evaluation.updated_at = datetime.utcnow()

        audit_recorder.record(
            db,
            AuditAction.EVALUATION_SUBMITTED if created else AuditAction.EVALUATION_UPDATED,
            user_id=actor.id,
            application_id=application_id,
            details={"rating": rating.value},
        )
        db.commit()
        db.refresh(evaluation)
        return evaluation

    def _find(self, db: Session, application_id: int, evaluator_id: int) -> Optional[Evaluation]:
        return (
            db.query(Evaluation)
            .filter(Evaluation.application_id == application_id, Evaluation.evaluator_id == evaluator_id)
            .first()
        )

    def list_for_application(self, db: Session, application_id: int) -> List[Evaluation]:
        if not db.query(Application.id).filter(Application.id == application_id).first():
            raise NotFound("Application not found", {"application_id": application_id})
        return (
            db.query(Evaluation)
            .filter(Evaluation.application_id == application_id)
            .order_by(Evaluation.created_at, Evaluation.id)
            .all()
        )

    def list_for_evaluator(self, db: Session, evaluator_id: int) -> List[Evaluation]:
        return (
            db.query(Evaluation)
            .filter(Evaluation.evaluator_id == evaluator_id)
            .order_by(Evaluation.updated_at.desc(), Evaluation.id.desc())
            .all()
        )

    def committee_size(self, db: Session) -> int:
        return (
            db.query(User)
            .filter(User.role.in_(list(EVALUATOR_ROLES)), User.is_active.is_(True))
            .count()
        )

    def _reviewable_count(self, db: Session) -> int:
        return db.query(Application).filter(Application.status.in_(list(SUBMITTED_STATUSES))).count()

    def get_rankings(self, db: Session) -> RankingsResponse:
        """Submitted applications with at least one evaluation, best average first"""
        evaluations = (
            db.query(Evaluation)
            .join(Application, Evaluation.application_id == Application.id)
            .filter(Application.status.in_(list(SUBMITTED_STATUSES)))
            .all()
        )

        by_application: Dict[int, List[Rating]] = {}
        for evaluation in evaluations:
            by_application.setdefault(evaluation.application_id, []).append(evaluation.rating)

        applications = {}
        if by_application:
            applications = {
                app.id: app
                for app in db.query(Application).filter(Application.id.in_(list(by_application))).all()
            }

        rows = []
        for application_id, ratings in by_application.items():
            application = applications[application_id]
            average = average_points(ratings)
            rows.append((
                ranking_key(average, len(ratings), application.submitted_at, application_id),
                application,
                average,
                len(ratings),
            ))
        rows.sort(key=lambda row: row[0])

        rankings = [
            RankingEntry(
                rank=index,
                application_id=application.id,
                applicant_name=application.full_name,
                status=application.status.value,
                average_rating=round(average, 2),
                average_display=format_average(average),
                evaluation_count=count,
                submitted_at=application.submitted_at,
            )
            for index, (_, application, average, count) in enumerate(rows, start=1)
        ]

        total_applications = self._reviewable_count(db)
        committee_size = self.committee_size(db)
        return RankingsResponse(
            rankings=rankings,
            total_applications=total_applications,
            total_evaluations=len(evaluations),
            committee_size=committee_size,
            possible_evaluations=total_applications * committee_size,
        )

    def get_evaluation_stats(self, db: Session, evaluator_id: int) -> EvaluatorStats:
        """Progress of one evaluator across reviewable applications"""
        total_applications = self._reviewable_count(db)
        completed = (
            db.query(Evaluation)
            .join(Application, Evaluation.application_id == Application.id)
            .filter(
                Evaluation.evaluator_id == evaluator_id,
                Application.status.in_(list(SUBMITTED_STATUSES)),
            )
            .count()
        )
        return EvaluatorStats(
            evaluator_id=evaluator_id,
            total_applications=total_applications,
            my_evaluations_completed=completed,
            remaining_to_evaluate=max(total_applications - completed, 0),
        )


# Singleton instance
evaluation_service = EvaluationService()
