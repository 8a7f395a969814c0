"""Scheduler service for the daily reminder run."""

import threading
from datetime import datetime
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from control_tower.config.models import ScheduleConfig
from control_tower.logging import get_logger

logger = get_logger(__name__, component="scheduler")

REMINDER_JOB_ID = "deployment-reminders"

# A run delayed by up to an hour (e.g. host asleep) still fires
MISFIRE_GRACE_SECONDS = 3600


class SchedulerService:
    """
    Wraps APScheduler to run the reminder check once a day.

    Uses BackgroundScheduler so the main thread stays free to handle
    signals and coordinate shutdown.
    """

    def __init__(
        self,
        job_callable: Callable[[], object],
        schedule: Optional[ScheduleConfig] = None,
        shutdown_event: Optional[threading.Event] = None,
        scheduler: Optional[BackgroundScheduler] = None,
    ):
        """
        Initialize the scheduler service.

        Args:
            job_callable: Function to call on each run (e.g. check_deployment_notifications)
            schedule: Local time and timezone of the daily run
            shutdown_event: Optional event to set on shutdown for coordination
            scheduler: Scheduler instance (for testing)
        """
        self.job_callable = job_callable
        self.schedule = schedule or ScheduleConfig()
        self.shutdown_event = shutdown_event

        self.scheduler = scheduler or BackgroundScheduler(
            job_defaults={
                "max_instances": 1,
                "coalesce": True,
                "misfire_grace_time": MISFIRE_GRACE_SECONDS,
            },
            timezone=self.schedule.tzinfo,
        )

    def build_trigger(self) -> CronTrigger:
        return CronTrigger(
            hour=self.schedule.hour,
            minute=self.schedule.minute,
            timezone=self.schedule.tzinfo,
        )

    def start(self) -> None:
        """Register the daily job and start the scheduler thread."""
        self.scheduler.add_job(
            func=self.job_callable,
            trigger=self.build_trigger(),
            id=REMINDER_JOB_ID,
            name="Deployment reminder check",
            replace_existing=True,
        )
        self.scheduler.start()

        next_run = self.get_next_run_time()
        logger.info(
            f"Scheduler started: daily at {self.schedule.hour:02d}:{self.schedule.minute:02d} "
            f"{self.schedule.timezone}",
            extra={
                "event": "scheduler.started",
                "timezone": self.schedule.timezone,
                "next_run_time": next_run.isoformat() if next_run else None,
            },
        )

    def shutdown(self, wait: bool = False) -> None:
        """
        Shutdown the scheduler gracefully.

        Args:
            wait: If True, wait for running jobs to complete before returning
        """
        logger.info(
            "Shutting down scheduler",
            extra={"event": "scheduler.stopping", "wait_for_jobs": wait},
        )

        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)

        if self.shutdown_event:
            self.shutdown_event.set()

        logger.info("Scheduler shutdown complete", extra={"event": "scheduler.stopped"})

    def trigger_now(self):
        """Run the job synchronously in the current thread and return its result."""
        logger.info("Triggering immediate reminder run", extra={"event": "scheduler.trigger_now"})
        return self.job_callable()

    def is_running(self) -> bool:
        return self.scheduler.running

    def get_next_run_time(self) -> Optional[datetime]:
        job = self.scheduler.get_job(REMINDER_JOB_ID)
        return job.next_run_time if job else None
