"""
Job Scheduler Service using APScheduler
"""
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.events import EVENT_JOB_EXECUTED, EVENT_JOB_ERROR
from apscheduler.jobstores.base import JobLookupError
from datetime import datetime
from scholarship_app.database import SessionLocal
from scholarship_app.models.scheduled_job import ScheduledJob
from scholarship_app.services.recommendations import recommendation_service
import logging

logger = logging.getLogger(__name__)

REMINDER_JOB_TYPE = 'recommendation_reminders'


class JobScheduler:
    """Background job scheduler"""

    def __init__(self):
        self.scheduler = BackgroundScheduler(timezone="UTC")
        self.scheduler.add_listener(self._job_listener, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)

    def start(self):
        """Start the scheduler"""
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("Job scheduler started")
            self.load_jobs_from_db()

    def shutdown(self):
        """Shutdown the scheduler"""
        if self.scheduler.running:
            self.scheduler.shutdown()
            logger.info("Job scheduler stopped")

    def load_jobs_from_db(self):
        """Load active jobs from database and schedule them"""
        db = SessionLocal()
        try:
            jobs = db.query(ScheduledJob).filter(ScheduledJob.is_active.is_(True)).all()
            for job in jobs:
                self.schedule_job(job)
            logger.info(f"Loaded {len(jobs)} active jobs from database")
        except Exception as e:
            logger.error(f"Error loading jobs from database: {e}")
        finally:
            db.close()

    def schedule_job(self, job: ScheduledJob):
        """Schedule a job based on its configuration"""
        try:
            self.unschedule_job(job.job_type)

            if not job.is_active:
                return

            trigger = CronTrigger.from_crontab(job.cron_expression, timezone="UTC")

            job_func = self.get_job_function(job.job_type)
            if not job_func:
                logger.error(f"Unknown job type: {job.job_type}")
                return

            self.scheduler.add_job(
                job_func,
                trigger=trigger,
                id=job.job_type,
                name=job.name,
                replace_existing=True
            )

            # Update next run time
            db = SessionLocal()
            try:
                db_job = db.query(ScheduledJob).filter(ScheduledJob.job_type == job.job_type).first()
                scheduled_job = self.scheduler.get_job(job.job_type)
                if db_job and scheduled_job and scheduled_job.next_run_time:
                    db_job.next_run_at = scheduled_job.next_run_time.replace(tzinfo=None)
                    db.commit()
            finally:
                db.close()

            logger.info(f"Scheduled job: {job.name} with cron: {job.cron_expression}")

        except Exception as e:
            logger.error(f"Error scheduling job {job.job_type}: {e}")

    def unschedule_job(self, job_type: str):
        """Remove a job from scheduler"""
        try:
            self.scheduler.remove_job(job_type)
            logger.info(f"Unscheduled job: {job_type}")
        except JobLookupError:
            pass

    def get_job_function(self, job_type: str):
        """Get the function to execute for a job type"""
        job_functions = {
            REMINDER_JOB_TYPE: self._run_recommendation_reminders,
        }
        return job_functions.get(job_type)

    def _job_listener(self, event):
        """Listen to job execution events"""
        db = SessionLocal()
        try:
            job_id = event.job_id
            job = db.query(ScheduledJob).filter(ScheduledJob.job_type == job_id).first()

            if not job:
                return

            job.total_runs = (job.total_runs or 0) + 1

            if event.exception:
                job.last_run_status = 'failed'
                job.last_run_message = str(event.exception)[:500]
                job.failed_runs = (job.failed_runs or 0) + 1
                logger.error(f"Job {job_id} failed: {event.exception}")
            else:
                job.last_run_status = 'success'
                job.last_run_message = format_job_result(job_id, event.retval)
                job.successful_runs = (job.successful_runs or 0) + 1
                logger.info(f"Job {job_id} completed successfully")

            job.last_run_at = datetime.utcnow()

            scheduled_job = self.scheduler.get_job(job_id)
            if scheduled_job and scheduled_job.next_run_time:
                job.next_run_at = scheduled_job.next_run_time.replace(tzinfo=None)

            db.commit()

        except Exception as e:
            logger.error(f"Error in job listener: {e}")
        finally:
            db.close()

    def _run_recommendation_reminders(self):
        """Send due automatic reminders to recommenders"""
        logger.info("Starting scheduled recommendation reminder sweep")
        db = SessionLocal()
        try:
            job = db.query(ScheduledJob).filter(ScheduledJob.job_type == REMINDER_JOB_TYPE).first()
            if job:
                job.last_run_status = 'running'
                job.last_run_at = datetime.utcnow()
                db.commit()

            sent = recommendation_service.send_auto_reminders(db)
            return {"reminders_sent": sent}

        except Exception as e:
            logger.error(f"Recommendation reminder sweep failed: {e}")
            raise
        finally:
            db.close()


def format_job_result(job_type: str, result) -> str:
    if job_type == REMINDER_JOB_TYPE and result:
        return f"Reminders sent: {result.get('reminders_sent', 0)}"
    return 'Job completed successfully'


# Global scheduler instance
job_scheduler = JobScheduler()
