"""
Repository for crawl metrics (append-only).
"""

from __future__ import annotations

from typing import List

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from booth_ingest.entities.crawl_job import CrawlJob, JobStatus
from booth_ingest.entities.crawl_metric import CrawlMetric
from booth_ingest.repositories.base_repo import BaseRepository


class CrawlMetricRepository(BaseRepository[CrawlMetric]):
    def __init__(self, session: Session) -> None:
        super().__init__(session=session, model=CrawlMetric)

    def create_from_job(self, job: CrawlJob) -> CrawlMetric:
        metric = CrawlMetric(
            job_id=job.job_id,
            source_id=job.source_id,
            source_name=job.source_name,
            status=job.status,
            pages_received=job.pages_received,
            booths_found=job.booths_found,
            booths_inserted=job.booths_inserted,
            booths_updated=job.booths_updated,
            duration_ms=job.duration_ms,
            error_message=job.error_message,
        )
        return self.create(metric, commit=True)

    def recent(self, limit: int = 50) -> List[CrawlMetric]:
        stmt = (
            select(CrawlMetric)
            .order_by(CrawlMetric.recorded_at.desc(), CrawlMetric.id.desc())
            .limit(limit)
        )
        return list(self.session.execute(stmt).scalars().all())

    def summary_by_source(self) -> list[dict]:
        stmt = (
            select(
                CrawlMetric.source_id,
                CrawlMetric.source_name,
                func.count(CrawlMetric.id).label("attempts"),
                func.sum(
                    case((CrawlMetric.status == JobStatus.completed.value, 1), else_=0)
                ).label("completed"),
                func.sum(
                    case((CrawlMetric.status == JobStatus.failed.value, 1), else_=0)
                ).label("failed"),
                func.sum(CrawlMetric.booths_inserted).label("booths_inserted"),
                func.sum(CrawlMetric.booths_updated).label("booths_updated"),
                func.avg(CrawlMetric.duration_ms).label("avg_duration_ms"),
            )
            .group_by(CrawlMetric.source_id, CrawlMetric.source_name)
            .order_by(CrawlMetric.source_name)
        )
        return [dict(row._mapping) for row in self.session.execute(stmt)]
