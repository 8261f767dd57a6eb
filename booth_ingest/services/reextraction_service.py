"""
Service for re-running extraction over stored crawl pages.

Pages delivered by the crawl provider stay in ``crawl_pages`` after a job
finishes. Re-extraction feeds them through the current prompt and upsert
path again without a new crawl, which is how an improved extractor is
applied to sources that were already crawled. The job row itself is never
touched: its counters describe the original run.

Architecture:
    CLI reextract -> ReextractionService -> CrawlPageRepository (stored pages)
                                         -> ExtractionService -> CompletionClient
                                         -> BoothUpsertService
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from booth_ingest.core.context import AppContext
from booth_ingest.core.exceptions import JobNotFound, JobStillRunning, SourceNotFound
from booth_ingest.repositories.crawl_job_repo import CrawlJobRepository
from booth_ingest.repositories.crawl_page_repo import CrawlPageRepository
from booth_ingest.repositories.crawl_source_repo import CrawlSourceRepository
from booth_ingest.services.booth_upsert_service import BoothUpsertService
from booth_ingest.services.extraction_service import ExtractionService
from booth_ingest.services.job_state import PagePayload

logger = logging.getLogger(__name__)

MAX_BATCH_JOBS = 50


@dataclass
class ReextractResult:
    job_id: str
    pages: int = 0
    booths_found: int = 0
    booths_inserted: int = 0
    booths_updated: int = 0
    booths_unchanged: int = 0
    failed: int = 0


class ReextractionService:
    def __init__(self, session: Session, context: AppContext) -> None:
        self.session = session
        self.context = context
        self.job_repo = CrawlJobRepository(session)
        self.page_repo = CrawlPageRepository(session)
        self.source_repo = CrawlSourceRepository(session)
        self.extraction = ExtractionService(
            context.completion_client,
            context.rate_limiter,
            max_chars=context.settings.EXTRACTION_MAX_CHARS,
        )
        self.upserts = BoothUpsertService(session)

    def reextract(self, job_id: str) -> ReextractResult:
        """
        Extract and upsert booths again from one finished job's stored pages.

        Raises:
            JobNotFound: no such job
            JobStillRunning: the job has not reached completed or failed
        """
        with self.context.job_locks.hold(job_id):
            job = self.job_repo.get_by_job_id(job_id)
            if job is None:
                raise JobNotFound(f"Job '{job_id}' not found")
            self.job_repo.refresh(job)
            if not job.is_terminal:
                raise JobStillRunning(f"Job {job_id} is still {job.status}")

            result = ReextractResult(job_id=job_id)
            pages = self.page_repo.list_pages(job_id)
            result.pages = len(pages)
            if not pages:
                logger.info("Job %s has no stored pages to re-extract", job_id)
                return result

            source = self.source_repo.get_by_id(job.source_id)
            entities = self.extraction.extract_pages(
                [PagePayload(p.url, p.content, p.content_format) for p in pages],
                source_name=job.source_name,
                extractor_type=source.extractor_type if source is not None else None,
            )
            summary = self.upserts.upsert_many(entities, job.source_name)

        result.booths_found = summary.found
        result.booths_inserted = summary.inserted
        result.booths_updated = summary.updated
        result.booths_unchanged = summary.unchanged
        result.failed = summary.failed
        logger.info(
            "Re-extracted job %s: %d pages, %d booths (%d new, %d updated)",
            job_id,
            result.pages,
            result.booths_found,
            result.booths_inserted,
            result.booths_updated,
        )
        return result

    def reextract_source(self, source: str, limit: int = 10) -> list[ReextractResult]:
        """
        Re-extract the newest finished jobs of *source* that have stored pages.

        Raises:
            SourceNotFound: unknown source name or id
        """
        src = self.source_repo.resolve(source)
        if src is None:
            raise SourceNotFound(f"Source '{source}' not found")

        limit = max(1, min(limit, MAX_BATCH_JOBS))
        jobs = self.job_repo.list_finished_with_pages(src.id, limit=limit)
        logger.info("Re-extracting %d job(s) for source %s", len(jobs), src.name)
        return [self.reextract(job.job_id) for job in jobs]
