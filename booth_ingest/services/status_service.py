"""
Read-only job status lookups. Every read goes to storage.
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from booth_ingest.core.exceptions import JobNotFound, SourceNotFound
from booth_ingest.entities.crawl_job import CrawlJob
from booth_ingest.repositories.crawl_job_repo import CrawlJobRepository
from booth_ingest.repositories.crawl_source_repo import CrawlSourceRepository


class StatusService:
    def __init__(self, session: Session) -> None:
        self.session = session
        self.job_repo = CrawlJobRepository(session)
        self.source_repo = CrawlSourceRepository(session)

    def get_job(self, job_id: str) -> CrawlJob:
        """
        Current state of one job.

        Raises:
            JobNotFound: no job with this provider id
        """
        job = self.job_repo.get_by_job_id(job_id)
        if job is None:
            raise JobNotFound(f"Job '{job_id}' not found")
        # Rows may have been moved by conditional UPDATEs since they were loaded.
        return self.job_repo.refresh(job)

    def list_jobs(
        self,
        status: str | None = None,
        source: str | None = None,
        limit: int = 50,
    ) -> list[CrawlJob]:
        """
        Newest jobs first, optionally filtered.

        Raises:
            SourceNotFound: *source* names no known source
        """
        source_id = None
        if source:
            src = self.source_repo.resolve(source)
            if src is None:
                raise SourceNotFound(f"Source '{source}' not found")
            source_id = src.id
        return self.job_repo.list_jobs(status=status, source_id=source_id, limit=limit)
