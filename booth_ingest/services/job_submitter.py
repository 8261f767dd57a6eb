"""
Service for starting crawl jobs.

Submission is fire-and-forget: the provider is asked to crawl the source and
call our webhook, and the caller gets a job id back immediately. The job row
is written only after the provider has accepted the crawl, so a rejected
request leaves nothing behind in storage.

Architecture:
    POST /jobs, CLI submit -> JobSubmitter -> CrawlProviderClient (Firecrawl)
                                           -> CrawlJobRepository (crawl_jobs)
                                           -> CrawlSourceRepository (crawl_sources)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from booth_ingest.core.config import Settings
from booth_ingest.core.crawl_client import CrawlProviderClient
from booth_ingest.core.exceptions import (
    CrawlServiceError,
    PersistenceError,
    SourceBusy,
    SourceNotFound,
    SourceRecentlyCrawled,
)
from booth_ingest.entities.base import utcnow
from booth_ingest.entities.crawl_job import JobStatus
from booth_ingest.entities.crawl_source import CrawlSource
from booth_ingest.repositories.crawl_job_repo import CrawlJobRepository
from booth_ingest.repositories.crawl_source_repo import CrawlSourceRepository

logger = logging.getLogger(__name__)


@dataclass
class SubmitResult:
    job_id: str
    status: str
    check_url: str


class JobSubmitter:
    """
    Starts asynchronous crawls for configured sources.

    Handles:
    - Resolving the source by name or id
    - Page-limit defaults and clamping
    - Recrawl cooldown and the one-active-job-per-source lock
    - Recording the job only after the provider accepted it
    """

    def __init__(
        self, session: Session, crawl_client: CrawlProviderClient, settings: Settings
    ) -> None:
        self.session = session
        self.crawl_client = crawl_client
        self.settings = settings
        self.source_repo = CrawlSourceRepository(session)
        self.job_repo = CrawlJobRepository(session)

    def resolve_page_limit(self, source: CrawlSource, override: int | None) -> int:
        limit = override or source.page_limit or self.settings.DEFAULT_PAGE_LIMIT
        return max(1, min(int(limit), self.settings.MAX_PAGE_LIMIT))

    def submit(
        self, source: str, page_limit: int | None = None, force: bool = False
    ) -> SubmitResult:
        """
        Start a crawl for *source* and return without waiting for it.

        Args:
            source: Source name or numeric id
            page_limit: Optional override of the source's page limit
            force: Skip the recrawl cooldown (never the active-job lock)

        Returns:
            SubmitResult with the provider job id and its status URL

        Raises:
            SourceNotFound: unknown or disabled source
            SourceRecentlyCrawled: completed crawl within the cooldown window
            SourceBusy: the source already has a job in flight
            CrawlServiceError: the provider rejected the crawl
            PersistenceError: the crawl started but the job row could not be written
        """
        src = self.source_repo.resolve(source)
        if src is None or not src.enabled:
            raise SourceNotFound(f"Source '{source}' not found or disabled")

        limit = self.resolve_page_limit(src, page_limit)
        now = utcnow()

        if not force:
            since = now - timedelta(hours=self.settings.RECRAWL_COOLDOWN_HOURS)
            recent = self.job_repo.get_recent_completed_for_source(src.id, since)
            if recent is not None:
                raise SourceRecentlyCrawled(
                    f"Source '{src.name}' was crawled at {recent.created_at:%Y-%m-%d %H:%M} "
                    f"(job {recent.job_id}); pass force to recrawl"
                )

        active = self.job_repo.get_active_for_source(src.id)
        if active is not None:
            raise SourceBusy(
                f"Source '{src.name}' already has job {active.job_id} in status {active.status}"
            )

        webhook_url = self.settings.webhook_url
        try:
            job_id = self.crawl_client.start_crawl(
                src.source_url,
                limit,
                webhook_url,
                metadata={"source_id": src.id, "source_name": src.name},
            )
        except CrawlServiceError as exc:
            logger.error("Crawl provider rejected %s: %s", src.name, exc)
            self.source_repo.touch_last_attempted(src.id, now)
            raise

        try:
            self.source_repo.touch_last_attempted(src.id, now)
            self.job_repo.create_job(
                job_id=job_id,
                source_id=src.id,
                source_name=src.name,
                page_limit=limit,
                webhook_url=webhook_url,
            )
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error(
                "Crawl job %s for %s started but could not be recorded: %s",
                job_id,
                src.name,
                exc,
            )
            raise PersistenceError(
                f"Crawl job {job_id} started but could not be recorded"
            ) from exc

        logger.info("Submitted crawl job %s for %s (limit=%d)", job_id, src.name, limit)
        return SubmitResult(
            job_id=job_id,
            status=JobStatus.pending.value,
            check_url=f"/jobs/{job_id}",
        )
