"""
Email dispatch service

Renders Jinja2 templates, records every attempt in email_logs and posts to the
HTTP email API when one is configured, after the response when the request
hands over its BackgroundTasks. Fire-and-forget: failures are logged, never
raised to the caller and never retried.
"""
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional
import requests
from fastapi import BackgroundTasks
from jinja2 import Environment, FileSystemLoader, select_autoescape
from sqlalchemy.orm import Session
from scholarship_app.config import settings
from scholarship_app.models.email_log import EmailLog

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "emails"

EMAIL_SUBJECTS = {
    "recommendation_request": "{{ applicant_name }} has requested a letter of recommendation",
    "recommendation_reminder": "Reminder: letter of recommendation for {{ applicant_name }}",
    "recommendation_received": "Your recommendation from {{ recommender_name }} has been received",
    "application_submitted": "Your scholarship application has been submitted",
    "application_withdrawn": "Your scholarship application has been withdrawn",
}


class EmailService:
    """Transactional email dispatch"""

    def __init__(self):
        self.env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=select_autoescape(["html"]),
        )

    def render(self, template_kind: str, variables: Dict[str, Any]) -> Dict[str, str]:
        """Render subject and HTML body for a template kind"""
        if template_kind not in EMAIL_SUBJECTS:
            raise ValueError(f"Unknown email template: {template_kind}")
        subject = self.env.from_string(EMAIL_SUBJECTS[template_kind]).render(**variables)
        body = self.env.get_template(f"{template_kind}.html").render(
            app_name=settings.app_name, **variables
        )
        return {"subject": subject, "html": body}

    def send(
        self,
        db: Session,
        template_kind: str,
        recipient: str,
        variables: Dict[str, Any],
        related_type: Optional[str] = None,
        related_id: Optional[int] = None,
        background_tasks: Optional[BackgroundTasks] = None,
    ) -> Optional[int]:
        """
        Dispatch one email

        The log row is committed on the caller's session. Delivery to the
        email API runs as a background task after the response when
        background_tasks is given, inline otherwise (scheduler, scripts).

        Args:
            db: Database session (the email log row is committed on it)
            template_kind: Key of EMAIL_SUBJECTS
            recipient: Recipient email address
            variables: Template variables
            related_type: Entity type the email concerns
            related_id: Entity id the email concerns
            background_tasks: FastAPI BackgroundTasks of the current request

        Returns:
            EmailLog id, or None if even the log row could not be written
        """
        try:
            rendered = self.render(template_kind, variables)
            log = EmailLog(
                template_kind=template_kind,
                recipient_email=recipient,
                subject=rendered["subject"],
                status="pending",
                related_type=related_type,
                related_id=related_id,
            )
            db.add(log)
            db.flush()
            log_id = log.id
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("Failed to prepare %s email to %s", template_kind, recipient)
            return None

        if not settings.email_api_key:
            logger.info("Email transport not configured; %s email to %s logged only", template_kind, recipient)
            return log_id

        bind = db.get_bind()
        if background_tasks is not None:
            background_tasks.add_task(self.deliver, bind, log_id, recipient, rendered)
        else:
            self.deliver(bind, log_id, recipient, rendered)
        return log_id

    def deliver(self, bind, log_id: int, recipient: str, rendered: Dict[str, str]):
        """
        Post one logged email to the email API and record the outcome

        Runs on its own session so it can execute after the request session
        is gone.
        """
        db = Session(bind=bind)
        try:
            log = db.get(EmailLog, log_id)
            if log is None:
                logger.error("Email log %s disappeared before delivery", log_id)
                return

            try:
                response = requests.post(
                    settings.email_api_url,
                    headers={"Authorization": f"Bearer {settings.email_api_key}"},
                    json={
                        "from": settings.email_from_address,
                        "to": [recipient],
                        "subject": rendered["subject"],
                        "html": rendered["html"],
                    },
                    timeout=settings.email_timeout_seconds,
                )
                response.raise_for_status()
                log.status = "sent"
                log.sent_at = datetime.utcnow()
                log.provider_message_id = response.json().get("id")
                logger.info("Sent %s email to %s", log.template_kind, recipient)
            except (requests.RequestException, ValueError) as e:
                log.status = "failed"
                log.error = str(e)[:500]
                logger.error("Failed to send %s email to %s: %s", log.template_kind, recipient, e)

            db.commit()
        except Exception:
            db.rollback()
            logger.exception("Failed to update email log %s", log_id)
        finally:
            db.close()


# Singleton instance
email_service = EmailService()
