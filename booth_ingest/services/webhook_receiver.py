"""
Service for applying crawl-provider callbacks to jobs.

Each callback arrives as a ``CrawlEvent``. The receiver looks the job up,
asks ``job_state.next_transition`` what the event means in the job's current
status, and applies the answer:

    started / page  -> buffer pages, pending|crawling -> crawling
    completed       -> buffer final pages, -> processing, extract, upsert,
                       -> completed | failed, metric row
    failed          -> failed, metric row

Callbacks for one job are serialized by the per-job lock. Every status write
is a conditional UPDATE, so a callback racing the timeout sweep can never
re-open a terminal job.

Architecture:
    POST /webhooks/crawl -> WebhookReceiver -> CrawlJobRepository / CrawlPageRepository
                                            -> ExtractionService -> CompletionClient
                                            -> BoothUpsertService
                                            -> MetricsRecorder
"""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import Any

from sqlalchemy.orm import Session

from booth_ingest.core.context import AppContext
from booth_ingest.core.exceptions import CrawlServiceError, UnknownJobCallback
from booth_ingest.dtos.webhook_dto import WebhookPage
from booth_ingest.entities.base import utcnow
from booth_ingest.entities.crawl_job import CrawlJob, JobStatus
from booth_ingest.repositories.crawl_job_repo import CrawlJobRepository
from booth_ingest.repositories.crawl_page_repo import CrawlPageRepository
from booth_ingest.repositories.crawl_source_repo import CrawlSourceRepository
from booth_ingest.services.booth_upsert_service import BoothUpsertService, UpsertSummary
from booth_ingest.services.extraction_service import ExtractionService
from booth_ingest.services.job_state import (
    CrawlEvent,
    EventKind,
    PagePayload,
    next_transition,
    processing_outcome,
    terminal_fields,
)
from booth_ingest.services.metrics_service import MetricsRecorder

logger = logging.getLogger(__name__)

NO_CONTENT_MESSAGE = "No page content received"
_MAX_ERROR_CHARS = 500


class WebhookOutcome(StrEnum):
    ignored = "ignored"
    accepted = "accepted"
    completed = "completed"
    failed = "failed"


class WebhookReceiver:
    """
    Applies provider callbacks to stored jobs.

    Handles:
    - Unknown and late (terminal) callbacks, acknowledged and ignored
    - Page buffering with the job's page limit and per-URL dedup
    - The extraction + upsert run when the crawl completes
    - Terminal bookkeeping: counters, timestamps, metric row
    """

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
        self.metrics = MetricsRecorder(session)

    def handle(self, event: CrawlEvent) -> WebhookOutcome:
        with self.context.job_locks.hold(event.job_id):
            return self._handle_locked(event)

    def _handle_locked(self, event: CrawlEvent) -> WebhookOutcome:
        job = self.job_repo.get_by_job_id(event.job_id)
        if job is None:
            exc = UnknownJobCallback(
                f"Callback '{event.kind}' for unknown job {event.job_id}"
            )
            logger.warning("%s", exc)
            return WebhookOutcome.ignored
        job = self.job_repo.refresh(job)
        current = job.status

        transition = next_transition(current, event)
        if transition is None:
            logger.warning(
                "Ignoring '%s' callback for job %s in status %s (%d pages in payload)",
                event.kind,
                job.job_id,
                current,
                len(event.pages),
            )
            return WebhookOutcome.ignored

        if event.kind in (EventKind.failed, EventKind.timeout):
            message = (event.error or "Crawl failed")[:_MAX_ERROR_CHARS]
            return self._close(job, transition.from_statuses, JobStatus.failed, message)

        # Pages first: the counter only moves while the job is pending/crawling.
        if transition.append_pages:
            self._append_pages(job, event.pages)

        values: dict[str, Any] = {}
        if transition.sets_started_at:
            values["started_at"] = utcnow()
        if transition.to_status != current or values:
            moved = self.job_repo.transition(
                job.job_id, transition.from_statuses, transition.to_status, **values
            )
            if not moved:
                logger.warning(
                    "Job %s changed status concurrently; dropping '%s'",
                    job.job_id,
                    event.kind,
                )
                return WebhookOutcome.ignored
            logger.info("Job %s: %s -> %s", job.job_id, current, transition.to_status)

        if transition.run_extraction:
            return self._process(job)
        return WebhookOutcome.accepted

    def _append_pages(self, job: CrawlJob, pages: tuple[PagePayload, ...]) -> int:
        added = 0
        for page in pages:
            if self.page_repo.has_page(job.job_id, page.url):
                logger.debug("Duplicate page %s for job %s", page.url, job.job_id)
                continue
            if not self.job_repo.increment_pages(job.job_id):
                logger.warning(
                    "Job %s reached its page limit (%d); dropping %s",
                    job.job_id,
                    job.page_limit,
                    page.url,
                )
                continue
            self.page_repo.add_page(
                job.job_id, page.url, page.content, page.content_format
            )
            added += 1
        return added

    def _fetch_from_provider(self, job: CrawlJob) -> int:
        """Pull pages once from the provider when no callback carried any."""
        try:
            documents = self.context.crawl_client.get_crawl_pages(
                job.job_id, max_results=job.page_limit
            )
        except CrawlServiceError as exc:
            logger.error("Could not fetch pages for job %s: %s", job.job_id, exc)
            return 0

        added = 0
        for doc in documents:
            if added >= job.page_limit:
                break
            payload = WebhookPage(
                url=doc.page_url, markdown=doc.markdown, html=doc.html
            ).to_payload()
            if payload is None:
                continue
            if self.page_repo.add_page(
                job.job_id, payload.url, payload.content, payload.content_format
            ):
                added += 1
        logger.info("Fetched %d pages from provider for job %s", added, job.job_id)
        return added

    def _process(self, job: CrawlJob) -> WebhookOutcome:
        try:
            if self.page_repo.count_pages(job.job_id) == 0:
                self._fetch_from_provider(job)
            pages = self.page_repo.list_pages(job.job_id)
            if pages:
                source = self.source_repo.get_by_id(job.source_id)
                entities = self.extraction.extract_pages(
                    [PagePayload(p.url, p.content, p.content_format) for p in pages],
                    source_name=job.source_name,
                    extractor_type=source.extractor_type if source is not None else None,
                )
                summary = self.upserts.upsert_many(entities, job.source_name)
        except Exception as exc:
            self.session.rollback()
            logger.exception("Processing failed for job %s", job.job_id)
            return self._finish(
                job, succeeded=False, error=f"Processing failed: {type(exc).__name__}"
            )

        if not pages:
            return self._finish(job, succeeded=False, error=NO_CONTENT_MESSAGE)
        return self._finish(job, succeeded=True, summary=summary)

    def _finish(
        self,
        job: CrawlJob,
        succeeded: bool,
        error: str | None = None,
        summary: UpsertSummary | None = None,
    ) -> WebhookOutcome:
        transition = processing_outcome(succeeded)
        counts: dict[str, Any] = {}
        if summary is not None:
            counts = {
                "booths_found": summary.found,
                "booths_inserted": summary.inserted,
                "booths_updated": summary.updated,
            }
        return self._close(
            job, transition.from_statuses, transition.to_status, error, **counts
        )

    def _close(
        self,
        job: CrawlJob,
        from_statuses: frozenset[JobStatus],
        to_status: JobStatus,
        error: str | None = None,
        **counts: Any,
    ) -> WebhookOutcome:
        job = self.job_repo.refresh(job)
        values = terminal_fields(job.created_at, job.started_at, utcnow())
        values["pages_received"] = self.page_repo.count_pages(job.job_id)
        if error:
            values["error_message"] = error
        values.update(counts)

        if not self.job_repo.transition(job.job_id, from_statuses, to_status, **values):
            logger.warning("Job %s was closed concurrently; keeping its state", job.job_id)
            return WebhookOutcome.ignored

        job = self.job_repo.refresh(job)
        if to_status is JobStatus.failed:
            logger.warning("Job %s failed: %s", job.job_id, error)
        else:
            logger.info("Job %s completed", job.job_id)
        self.metrics.record(job)

        if to_status is JobStatus.completed:
            return WebhookOutcome.completed
        return WebhookOutcome.failed
