"""
Repository for crawl source configuration.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from booth_ingest.dtos.source_dto import CrawlSourceCreate
from booth_ingest.entities.crawl_source import CrawlSource
from booth_ingest.repositories.base_repo import BaseRepository


class CrawlSourceRepository(BaseRepository[CrawlSource]):
    def __init__(self, session: Session) -> None:
        super().__init__(session=session, model=CrawlSource)

    def create_from_dto(self, dto: CrawlSourceCreate) -> CrawlSource:
        return self.create(CrawlSource(**dto.model_dump()), commit=True)

    def get_by_name(self, name: str) -> Optional[CrawlSource]:
        stmt = select(CrawlSource).where(CrawlSource.name == name)
        return self.session.execute(stmt).scalars().first()

    def resolve(self, ref: str | int) -> Optional[CrawlSource]:
        """
        Look a source up by name, falling back to its numeric id.

        Args:
            ref: Source name, or an id given as int or digit string

        Returns:
            CrawlSource or None if nothing matches
        """
        if isinstance(ref, int):
            return self.get_by_id(ref)
        source = self.get_by_name(ref)
        if source is None and ref.strip().isdigit():
            source = self.get_by_id(int(ref))
        return source

    def list_sources(self, *, enabled_only: bool = False) -> List[CrawlSource]:
        stmt = select(CrawlSource).order_by(CrawlSource.priority.desc(), CrawlSource.name)
        if enabled_only:
            stmt = stmt.where(CrawlSource.enabled.is_(True))
        return list(self.session.execute(stmt).scalars().all())

    def touch_last_attempted(self, source_id: int, when: datetime) -> None:
        """Write only the timestamp column; config fields belong to operators."""
        self.session.execute(
            update(CrawlSource)
            .where(CrawlSource.id == source_id)
            .values(last_attempted_at=when)
        )
        self.session.commit()

    def set_enabled(self, source: CrawlSource, enabled: bool) -> CrawlSource:
        source.enabled = enabled
        return self.save(source)
