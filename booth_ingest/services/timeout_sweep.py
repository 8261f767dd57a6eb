"""
Service for failing jobs whose terminal callback never arrived.

A job that is still pending/crawling/processing once its grace period has
passed is moved to ``failed`` with a timeout message. The move is the same
conditional UPDATE the receiver uses, so a callback that lands at the same
moment either wins cleanly or finds the job already failed.

Run periodically via ``booth-ingest sweep`` or any external scheduler.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from booth_ingest.core.exceptions import JobTimeout
from booth_ingest.core.locks import JobLockRegistry
from booth_ingest.entities.base import utcnow
from booth_ingest.entities.crawl_job import ACTIVE_STATUSES, JobStatus
from booth_ingest.repositories.crawl_job_repo import CrawlJobRepository
from booth_ingest.repositories.crawl_page_repo import CrawlPageRepository
from booth_ingest.services.job_state import terminal_fields
from booth_ingest.services.metrics_service import MetricsRecorder

logger = logging.getLogger(__name__)


class TimeoutSweeper:
    def __init__(
        self,
        session: Session,
        grace_period_minutes: int = 30,
        job_locks: JobLockRegistry | None = None,
    ) -> None:
        self.session = session
        self.grace_period_minutes = grace_period_minutes
        self.job_locks = job_locks or JobLockRegistry()
        self.job_repo = CrawlJobRepository(session)
        self.page_repo = CrawlPageRepository(session)
        self.metrics = MetricsRecorder(session)

    @property
    def timeout_message(self) -> str:
        return f"Timed out: no terminal callback within {self.grace_period_minutes} minutes"

    def sweep(self, now: datetime | None = None) -> list[str]:
        """
        Fail every non-terminal job older than the grace period.

        Args:
            now: Reference time (naive UTC); defaults to the current time

        Returns:
            Provider job ids that were moved to failed by this sweep
        """
        now = now or utcnow()
        cutoff = now - timedelta(minutes=self.grace_period_minutes)
        timed_out: list[str] = []

        for job in self.job_repo.get_stale_jobs(created_before=cutoff):
            with self.job_locks.hold(job.job_id):
                job = self.job_repo.refresh(job)
                if job.is_terminal:
                    continue
                values = terminal_fields(job.created_at, job.started_at, now)
                values["pages_received"] = self.page_repo.count_pages(job.job_id)
                values["error_message"] = self.timeout_message
                moved = self.job_repo.transition(
                    job.job_id, ACTIVE_STATUSES, JobStatus.failed, **values
                )
                if not moved:
                    continue
                job = self.job_repo.refresh(job)

            logger.warning("%s", JobTimeout(f"Job {job.job_id} ({job.source_name}) timed out"))
            self.metrics.record(job)
            timed_out.append(job.job_id)

        if timed_out:
            logger.info("Timeout sweep failed %d jobs", len(timed_out))
        return timed_out
