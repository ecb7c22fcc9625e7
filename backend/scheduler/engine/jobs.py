"""
Job lifecycle plumbing for the scheduler.

Every periodic unit of work (the daily window refresh, one live tracker per
fixture) is a TrackingJob: a named crontab schedule plus an async callback,
started and stopped explicitly. All jobs share one AsyncIOScheduler owned by
the JobRegistry. Jobs are added with max_instances=1, so ticks of the same
job never overlap; a job may stop itself from inside its own callback.
"""
from __future__ import annotations

from datetime import tzinfo
from typing import Any, Awaitable, Callable, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from shared.utils.logging import get_logger

logger = get_logger(__name__)

JobCallback = Callable[[], Awaitable[Any]]


class TrackingJob:
    """A single scheduled, cancellable, repeating unit of work."""

    def __init__(
        self,
        scheduler: AsyncIOScheduler,
        job_id: str,
        schedule: str,
        callback: JobCallback,
        name: Optional[str] = None,
        timezone: Optional[tzinfo] = None,
    ) -> None:
        self._scheduler = scheduler
        self.job_id = job_id
        self.schedule = schedule
        self.name = name or job_id
        self._callback = callback
        self._trigger = CronTrigger.from_crontab(schedule, timezone=timezone)
        self._running = False
        self._stopped_once = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        if self._running:
            return
        if self._stopped_once:
            raise RuntimeError(f"job {self.job_id} was stopped and cannot be restarted")
        self._scheduler.add_job(
            self._callback,
            trigger=self._trigger,
            id=self.job_id,
            name=self.name,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=30,
            replace_existing=True,
        )
        self._running = True
        logger.info("job_started", job_id=self.job_id, schedule=self.schedule)

    def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        self._stopped_once = True
        try:
            self._scheduler.remove_job(self.job_id)
        except JobLookupError:
            logger.debug("job_already_removed", job_id=self.job_id)
        logger.info("job_stopped", job_id=self.job_id)

    async def run_now(self) -> Any:
        """Invoke the callback once, outside the schedule."""
        return await self._callback()


class JobRegistry:
    """Owns the shared scheduler and every job created on it, keyed by job id."""

    def __init__(
        self,
        scheduler: Optional[AsyncIOScheduler] = None,
        timezone: Optional[tzinfo] = None,
    ) -> None:
        self._timezone = timezone
        self._scheduler = scheduler or AsyncIOScheduler(timezone=timezone)
        self._jobs: dict[str, TrackingJob] = {}

    def schedule(
        self,
        job_id: str,
        schedule: str,
        callback: JobCallback,
        name: Optional[str] = None,
    ) -> TrackingJob:
        """Create a job. It does not run until start() is called on it."""
        existing = self._jobs.get(job_id)
        if existing is not None and existing.running:
            raise ValueError(f"job {job_id} is already scheduled")
        job = TrackingJob(
            self._scheduler,
            job_id=job_id,
            schedule=schedule,
            callback=callback,
            name=name,
            timezone=self._timezone,
        )
        self._jobs[job_id] = job
        return job

    def get(self, job_id: str) -> Optional[TrackingJob]:
        return self._jobs.get(job_id)

    def __contains__(self, job_id: object) -> bool:
        return job_id in self._jobs

    def running_ids(self, prefix: str = "") -> list[str]:
        return [jid for jid, job in self._jobs.items() if job.running and jid.startswith(prefix)]

    def start(self) -> None:
        if not self._scheduler.running:
            self._scheduler.start()
            logger.info("scheduler_started", jobs=len(self._jobs))

    def shutdown(self) -> None:
        for job in list(self._jobs.values()):
            job.stop()
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        logger.info("scheduler_shutdown")
