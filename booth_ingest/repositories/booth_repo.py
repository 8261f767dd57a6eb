"""
Repository for booth records.
"""

from __future__ import annotations

from typing import Any, List

from sqlalchemy import select
from sqlalchemy.orm import Session

from booth_ingest.entities.booth import Booth
from booth_ingest.repositories.base_repo import BaseRepository


class BoothRepository(BaseRepository[Booth]):
    def __init__(self, session: Session) -> None:
        super().__init__(session=session, model=Booth)

    def find_by_identity_key(self, identity_key: str) -> List[Booth]:
        return sorted(self.find_by(identity_key=identity_key), key=lambda b: b.id)

    def slug_taken(self, slug: str) -> bool:
        return self.session.execute(select(Booth.id).where(Booth.slug == slug)).first() is not None

    def next_free_slug(self, base: str) -> str:
        """Return *base*, or *base* with the first free ``-N`` suffix (N >= 2)."""
        if not self.slug_taken(base):
            return base
        n = 2
        while self.slug_taken(f"{base}-{n}"):
            n += 1
        return f"{base}-{n}"

    def create_booth(self, fields: dict[str, Any]) -> Booth:
        return self.create(Booth(**fields), commit=True)

    def apply_changes(self, booth: Booth, changes: dict[str, Any]) -> Booth:
        for key, value in changes.items():
            setattr(booth, key, value)
        return self.save(booth, commit=True)
