"""
Repository for crawl job rows.

All state changes go through ``transition()`` and ``increment_pages()``,
which are single conditional UPDATE statements (``... WHERE job_id = ? AND
status IN (...)``). A writer that lost a race simply matches zero rows, so a
terminal job can never be re-opened and page counts never overshoot the
limit even with concurrent callers.
"""
from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import exists, select, update
from sqlalchemy.orm import Session

from booth_ingest.entities.crawl_job import ACTIVE_STATUSES, TERMINAL_STATUSES, CrawlJob, JobStatus
from booth_ingest.entities.crawl_page import CrawlPage
from booth_ingest.repositories.base_repo import BaseRepository


class CrawlJobRepository(BaseRepository[CrawlJob]):
    """
    Repository for crawl job operations.

    Extends BaseRepository with job lookups by provider id and
    compare-and-set status updates.
    """

    def __init__(self, session: Session) -> None:
        super().__init__(session=session, model=CrawlJob)

    def create_job(
        self,
        job_id: str,
        source_id: int,
        source_name: str,
        page_limit: int,
        webhook_url: str | None = None,
    ) -> CrawlJob:
        """
        Create a new crawl job in pending status.

        Args:
            job_id: Identifier assigned by the crawl provider
            source_id: Source being crawled
            source_name: Denormalized source name for logs and metrics
            page_limit: Maximum pages requested from the provider
            webhook_url: Callback URL handed to the provider

        Returns:
            Created CrawlJob entity
        """
        job = CrawlJob(
            job_id=job_id,
            source_id=source_id,
            source_name=source_name,
            status=JobStatus.pending.value,
            page_limit=page_limit,
            pages_received=0,
            booths_found=0,
            booths_inserted=0,
            booths_updated=0,
            webhook_url=webhook_url,
        )
        return self.create(job, commit=True)

    def get_by_job_id(self, job_id: str) -> Optional[CrawlJob]:
        stmt = select(CrawlJob).where(CrawlJob.job_id == job_id)
        return self.session.execute(stmt).scalars().first()

    def transition(
        self,
        job_id: str,
        from_statuses: Iterable[str],
        to_status: str,
        **values: Any,
    ) -> bool:
        """
        Move a job to *to_status* if it is still in one of *from_statuses*.

        Args:
            job_id: Provider job id
            from_statuses: Statuses the row must currently hold
            to_status: Target status
            **values: Extra columns to write in the same statement

        Returns:
            True if the row was updated, False if the job was missing or had
            already moved on
        """
        stmt = (
            update(CrawlJob)
            .where(CrawlJob.job_id == job_id)
            .where(CrawlJob.status.in_([str(s) for s in from_statuses]))
            .values(status=str(to_status), **values)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        self.session.commit()
        return result.rowcount == 1

    def increment_pages(self, job_id: str) -> bool:
        """
        Count one more received page, unless the job hit its page limit or
        is no longer accepting pages.

        Returns:
            True if the counter moved
        """
        stmt = (
            update(CrawlJob)
            .where(CrawlJob.job_id == job_id)
            .where(CrawlJob.pages_received < CrawlJob.page_limit)
            .where(
                CrawlJob.status.in_(
                    [JobStatus.pending.value, JobStatus.crawling.value]
                )
            )
            .values(pages_received=CrawlJob.pages_received + 1)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        self.session.commit()
        return result.rowcount == 1

    def refresh(self, job: CrawlJob) -> CrawlJob:
        self.session.refresh(job)
        return job

    def list_jobs(
        self,
        status: str | None = None,
        source_id: int | None = None,
        limit: int = 50,
    ) -> List[CrawlJob]:
        stmt = select(CrawlJob).order_by(CrawlJob.created_at.desc(), CrawlJob.id.desc())
        if status:
            stmt = stmt.where(CrawlJob.status == status)
        if source_id is not None:
            stmt = stmt.where(CrawlJob.source_id == source_id)
        return list(self.session.execute(stmt.limit(limit)).scalars().all())

    def get_active_for_source(self, source_id: int) -> Optional[CrawlJob]:
        stmt = (
            select(CrawlJob)
            .where(CrawlJob.source_id == source_id)
            .where(CrawlJob.status.in_([s.value for s in ACTIVE_STATUSES]))
            .order_by(CrawlJob.created_at.desc())
        )
        return self.session.execute(stmt).scalars().first()

    def get_recent_completed_for_source(
        self, source_id: int, since: datetime
    ) -> Optional[CrawlJob]:
        stmt = (
            select(CrawlJob)
            .where(CrawlJob.source_id == source_id)
            .where(CrawlJob.status == JobStatus.completed.value)
            .where(CrawlJob.created_at >= since)
            .order_by(CrawlJob.created_at.desc())
        )
        return self.session.execute(stmt).scalars().first()

    def get_stale_jobs(self, created_before: datetime, limit: int = 500) -> List[CrawlJob]:
        """Non-terminal jobs created before *created_before* (sweep candidates)."""
        stmt = (
            select(CrawlJob)
            .where(CrawlJob.status.in_([s.value for s in ACTIVE_STATUSES]))
            .where(CrawlJob.created_at < created_before)
            .order_by(CrawlJob.created_at)
            .limit(limit)
        )
        return list(self.session.execute(stmt).scalars().all())

    def list_finished_with_pages(self, source_id: int, limit: int = 10) -> List[CrawlJob]:
        """Terminal jobs of a source that still have stored pages, newest first."""
        has_pages = exists().where(CrawlPage.job_id == CrawlJob.job_id)
        stmt = (
            select(CrawlJob)
            .where(CrawlJob.source_id == source_id)
            .where(CrawlJob.status.in_([s.value for s in TERMINAL_STATUSES]))
            .where(has_pages)
            .order_by(CrawlJob.created_at.desc(), CrawlJob.id.desc())
            .limit(limit)
        )
        return list(self.session.execute(stmt).scalars().all())
