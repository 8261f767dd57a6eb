"""
Entity for configured crawl origins.
Operators create and edit sources; the job submitter only touches
``last_attempted_at``.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from booth_ingest.entities.base import Base, utcnow


class CrawlSource(Base):
    __tablename__ = "crawl_sources"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    source_url: Mapped[str] = mapped_column(String(2048), nullable=False)
    extractor_type: Mapped[str] = mapped_column(
        String(100), nullable=False, default="generic"
    )  # directory, city_guide, blog, community, operator, generic
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=50)
    page_limit: Mapped[int | None] = mapped_column(Integer, nullable=True)

    last_attempted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
