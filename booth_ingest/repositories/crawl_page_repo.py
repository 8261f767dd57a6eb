"""
Repository for the per-job page buffer.
"""

from __future__ import annotations

from typing import List

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from booth_ingest.entities.crawl_page import CrawlPage
from booth_ingest.repositories.base_repo import BaseRepository


class CrawlPageRepository(BaseRepository[CrawlPage]):
    def __init__(self, session: Session) -> None:
        super().__init__(session=session, model=CrawlPage)

    def has_page(self, job_id: str, url: str) -> bool:
        stmt = select(CrawlPage.id).where(CrawlPage.job_id == job_id, CrawlPage.url == url)
        return self.session.execute(stmt).first() is not None

    def add_page(self, job_id: str, url: str, content: str, content_format: str) -> bool:
        """
        Buffer one page for *job_id*.

        Returns:
            False when the same URL was already buffered for this job
        """
        if self.has_page(job_id, url):
            return False
        try:
            self.create(
                CrawlPage(
                    job_id=job_id, url=url, content=content, content_format=content_format
                ),
                commit=True,
            )
        except IntegrityError:
            # Lost a race with a concurrent insert of the same page.
            self.session.rollback()
            return False
        return True

    def list_pages(self, job_id: str) -> List[CrawlPage]:
        stmt = select(CrawlPage).where(CrawlPage.job_id == job_id).order_by(CrawlPage.id)
        return list(self.session.execute(stmt).scalars().all())

    def count_pages(self, job_id: str) -> int:
        stmt = select(func.count(CrawlPage.id)).where(CrawlPage.job_id == job_id)
        return int(self.session.execute(stmt).scalar_one())
