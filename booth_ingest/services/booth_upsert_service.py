"""
Service for persisting extracted booths with deduplication.

Each candidate is resolved against existing booths by identity key
(``name|city``). A miss inserts a new booth; a hit merges field by field
using the pure policy in ``services.dedup``. Every record is committed on its
own, so one bad record is rolled back and counted without touching the rest
of the batch.

Architecture:
    WebhookReceiver -> BoothUpsertService -> BoothRepository -> booths table
                                          -> dedup (identity key, scoring, merge)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from booth_ingest.core.exceptions import PersistenceError
from booth_ingest.dtos.booth_dto import ExtractedBooth
from booth_ingest.entities.base import utcnow
from booth_ingest.entities.booth import Booth
from booth_ingest.repositories.booth_repo import BoothRepository
from booth_ingest.services.dedup import (
    COORDINATE_FIELDS,
    MERGE_FIELDS,
    identity_key,
    merge_fields,
    pick_merge_target,
    slugify,
)

logger = logging.getLogger(__name__)


class UpsertOutcome(StrEnum):
    inserted = "inserted"
    updated = "updated"
    unchanged = "unchanged"


@dataclass
class UpsertSummary:
    found: int = 0
    inserted: int = 0
    updated: int = 0
    unchanged: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.errors)


def _existing_fields(booth: Booth) -> dict:
    return {f: getattr(booth, f) for f in ("name", *MERGE_FIELDS, *COORDINATE_FIELDS)}


class BoothUpsertService:
    def __init__(self, session: Session) -> None:
        self.session = session
        self.booth_repo = BoothRepository(session)

    def upsert(self, entity: ExtractedBooth, source_name: str) -> UpsertOutcome:
        """
        Insert or merge one extracted booth.

        Args:
            entity: Validated extraction result
            source_name: Source credited in the booth's attribution list

        Returns:
            What happened to the stored record

        Raises:
            PersistenceError: the write failed; the session has been rolled back
        """
        key = identity_key(entity.name, entity.city)
        try:
            candidates = self.booth_repo.find_by_identity_key(key)
            if not candidates:
                self._insert(entity, key, source_name)
                return UpsertOutcome.inserted
            target = pick_merge_target(candidates)
            return self._merge(target, entity, source_name)
        except SQLAlchemyError as exc:
            self.booth_repo.rollback()
            raise PersistenceError(f"Failed to persist booth '{entity.name}': {exc}") from exc

    def upsert_many(
        self, entities: list[ExtractedBooth], source_name: str
    ) -> UpsertSummary:
        """
        Upsert a batch; per-record failures are logged and counted, never raised.
        """
        summary = UpsertSummary(found=len(entities))
        for entity in entities:
            try:
                outcome = self.upsert(entity, source_name)
            except PersistenceError as exc:
                logger.error("%s", exc)
                summary.errors.append(str(exc))
                continue

            if outcome is UpsertOutcome.inserted:
                summary.inserted += 1
            elif outcome is UpsertOutcome.updated:
                summary.updated += 1
            else:
                summary.unchanged += 1

        logger.info(
            "Upserted %d booths from %s: %d inserted, %d updated, %d unchanged, %d failed",
            summary.found,
            source_name,
            summary.inserted,
            summary.updated,
            summary.unchanged,
            summary.failed,
        )
        return summary

    def _insert(self, entity: ExtractedBooth, key: str, source_name: str) -> Booth:
        data = entity.model_dump(exclude={"source_url"})
        data["status"] = data.get("status") or "active"
        slug = self.booth_repo.next_free_slug(slugify(entity.name, entity.city))
        booth = self.booth_repo.create_booth(
            {
                **data,
                "slug": slug,
                "identity_key": key,
                "source_names": [source_name],
                "source_urls": [entity.source_url] if entity.source_url else [],
                "provenance_notes": f"{utcnow():%Y-%m-%d} created from {source_name}",
            }
        )
        logger.debug("Inserted booth %s (%s)", booth.slug, source_name)
        return booth

    def _merge(self, booth: Booth, entity: ExtractedBooth, source_name: str) -> UpsertOutcome:
        changes = merge_fields(
            _existing_fields(booth),
            entity.model_dump(),
            existing_slug=booth.slug,
            incoming_slug=slugify(entity.name, entity.city),
        )

        notes = []
        if changes:
            notes.append(f"merged {', '.join(sorted(changes))}")

        source_names = list(booth.source_names or [])
        if source_name not in source_names:
            source_names.append(source_name)
            changes["source_names"] = source_names
            notes.append("attributed")

        source_urls = list(booth.source_urls or [])
        if entity.source_url and entity.source_url not in source_urls:
            source_urls.append(entity.source_url)
            changes["source_urls"] = source_urls

        if not notes:
            # A new page URL alone is recorded but does not count as an update.
            if changes:
                self.booth_repo.apply_changes(booth, changes)
            return UpsertOutcome.unchanged

        line = f"{utcnow():%Y-%m-%d} {' and '.join(notes)} from {source_name}"
        changes["provenance_notes"] = (
            f"{booth.provenance_notes}\n{line}" if booth.provenance_notes else line
        )
        self.booth_repo.apply_changes(booth, changes)
        logger.debug("Updated booth %s from %s: %s", booth.slug, source_name, sorted(changes))
        return UpsertOutcome.updated
