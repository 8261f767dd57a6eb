"""
Entity for per-job crawl metrics.
Append-only: one row per job that reached a terminal state.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from booth_ingest.entities.base import Base, utcnow


class CrawlMetric(Base):
    __tablename__ = "crawl_metrics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    job_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    source_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    source_name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)

    pages_received: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    booths_found: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    booths_inserted: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    booths_updated: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    duration_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    recorded_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
