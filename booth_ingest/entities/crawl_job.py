"""
Entity for tracking asynchronous crawl jobs.

One row per crawl attempt against a source. ``job_id`` is assigned by the
crawl provider; the row is created ``pending`` by the submitter and then only
moved forward (pending -> crawling -> processing -> completed | failed).
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from booth_ingest.entities.base import Base, utcnow


class JobStatus(StrEnum):
    pending = "pending"
    crawling = "crawling"
    processing = "processing"
    completed = "completed"
    failed = "failed"


TERMINAL_STATUSES = frozenset({JobStatus.completed, JobStatus.failed})
ACTIVE_STATUSES = frozenset(
    {JobStatus.pending, JobStatus.crawling, JobStatus.processing}
)


class CrawlJob(Base):
    __tablename__ = "crawl_jobs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    job_id: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    source_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("crawl_sources.id"), nullable=False, index=True
    )
    source_name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=JobStatus.pending.value, index=True
    )

    page_limit: Mapped[int] = mapped_column(Integer, nullable=False)
    pages_received: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    booths_found: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    booths_inserted: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    booths_updated: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    webhook_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, index=True
    )
    started_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    duration_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
