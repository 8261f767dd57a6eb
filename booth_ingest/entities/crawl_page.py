"""
Entity for buffered page payloads.
Pages delivered by webhook callbacks are kept here until the terminal
callback hands them to extraction.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from booth_ingest.entities.base import Base, utcnow


class CrawlPage(Base):
    __tablename__ = "crawl_pages"
    __table_args__ = (UniqueConstraint("job_id", "url", name="uq_crawl_pages_job_url"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    job_id: Mapped[str] = mapped_column(
        String(255), ForeignKey("crawl_jobs.job_id"), nullable=False, index=True
    )
    url: Mapped[str] = mapped_column(String(2048), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    content_format: Mapped[str] = mapped_column(
        String(20), nullable=False, default="markdown"
    )  # markdown, html
    received_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
