"""
Initialize database with default data
"""
from sqlalchemy.orm import Session
from scholarship_app.config import settings
from scholarship_app.models.user import User, UserRole
from scholarship_app.models.scheduled_job import ScheduledJob
from scholarship_app.services.auth import get_password_hash
from scholarship_app.services.scheduler import REMINDER_JOB_TYPE


def init_default_data(db: Session):
    """Seed the admin account and the scheduled jobs"""

    admin_email = settings.admin_email.strip().lower()
    admin_user = db.query(User).filter(User.email == admin_email).first()
    if not admin_user:
        admin_user = User(
            email=admin_email,
            password_hash=get_password_hash(settings.admin_password),
            name="System Administrator",
            role=UserRole.ADMIN,
            is_active=True,
        )
        db.add(admin_user)
        print(f"✅ Default admin user created (email: {admin_email})")

    reminder_job = db.query(ScheduledJob).filter(ScheduledJob.job_type == REMINDER_JOB_TYPE).first()
    if not reminder_job:
        db.add(ScheduledJob(
            job_type=REMINDER_JOB_TYPE,
            name='Recommendation reminders',
            description=(
                f'Emails recommenders who have not submitted their letter '
                f'{settings.auto_reminder_first_days} and {settings.auto_reminder_second_days} '
                f'days after the invitation.'
            ),
            cron_expression=settings.reminder_cron,
            is_active=True,
            total_runs=0,
            successful_runs=0,
            failed_runs=0,
        ))
        print("✅ Recommendation reminder job created")

    db.commit()
