"""
Service for recording per-job crawl metrics.

One row is appended for every job that reaches a terminal status. A failure
to write the row is logged and never changes the job's own outcome.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from booth_ingest.dtos.metric_dto import SourceMetricSummary
from booth_ingest.entities.crawl_job import CrawlJob
from booth_ingest.entities.crawl_metric import CrawlMetric
from booth_ingest.repositories.crawl_metric_repo import CrawlMetricRepository

logger = logging.getLogger(__name__)


class MetricsRecorder:
    def __init__(self, session: Session) -> None:
        self.session = session
        self.metric_repo = CrawlMetricRepository(session)

    def record(self, job: CrawlJob) -> CrawlMetric | None:
        try:
            metric = self.metric_repo.create_from_job(job)
        except SQLAlchemyError:
            self.metric_repo.rollback()
            logger.exception("Failed to record metrics for job %s", job.job_id)
            return None

        logger.info(
            "Job %s (%s) %s: %d pages, %d booths found, %d inserted, %d updated, %s ms",
            job.job_id,
            job.source_name,
            job.status,
            job.pages_received,
            job.booths_found,
            job.booths_inserted,
            job.booths_updated,
            job.duration_ms,
        )
        return metric

    def recent(self, limit: int = 50) -> list[CrawlMetric]:
        return self.metric_repo.recent(limit)

    def summary_by_source(self) -> list[SourceMetricSummary]:
        """Attempts, outcomes and average duration per source."""
        rows = self.metric_repo.summary_by_source()
        return [
            SourceMetricSummary(
                source_id=row["source_id"],
                source_name=row["source_name"],
                attempts=row["attempts"] or 0,
                completed=row["completed"] or 0,
                failed=row["failed"] or 0,
                booths_inserted=row["booths_inserted"] or 0,
                booths_updated=row["booths_updated"] or 0,
                avg_duration_ms=(
                    float(row["avg_duration_ms"])
                    if row["avg_duration_ms"] is not None
                    else None
                ),
            )
            for row in rows
        ]
