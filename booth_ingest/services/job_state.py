"""
Crawl-job state machine.

Webhook callbacks and the timeout sweep are modelled as ``CrawlEvent``
values; ``next_transition`` is the single place that decides what an event
does to a job in a given status. It is pure so the same rules apply whether
the event comes from the HTTP endpoint, a test, or a replayed log.

    pending -> crawling -> processing -> completed | failed

Terminal states are never left. Events for terminal jobs yield no
transition.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

from booth_ingest.entities.crawl_job import ACTIVE_STATUSES, TERMINAL_STATUSES, JobStatus


class EventKind(StrEnum):
    started = "started"
    page = "page"
    completed = "completed"
    failed = "failed"
    timeout = "timeout"


@dataclass(frozen=True)
class PagePayload:
    url: str
    content: str
    content_format: str = "markdown"


@dataclass(frozen=True)
class CrawlEvent:
    job_id: str
    kind: EventKind
    pages: tuple[PagePayload, ...] = field(default_factory=tuple)
    error: str | None = None


@dataclass(frozen=True)
class Transition:
    """Outcome of applying one event.

    ``from_statuses`` is what the conditional UPDATE must still find in the
    row for the write to apply; ``to_status`` may equal the current status
    when the event only appends pages.
    """

    from_statuses: frozenset[JobStatus]
    to_status: JobStatus
    append_pages: bool = False
    run_extraction: bool = False
    sets_started_at: bool = False

    @property
    def is_terminal(self) -> bool:
        return self.to_status in TERMINAL_STATUSES


# Allowed moves, including self-loops used for page appends.
ALLOWED = {
    JobStatus.pending: {JobStatus.crawling, JobStatus.processing, JobStatus.failed},
    JobStatus.crawling: {JobStatus.crawling, JobStatus.processing, JobStatus.failed},
    JobStatus.processing: {JobStatus.completed, JobStatus.failed},
    JobStatus.completed: set(),
    JobStatus.failed: set(),
}


def can_transition(current: str, target: str) -> bool:
    return JobStatus(target) in ALLOWED[JobStatus(current)]


def next_transition(current: str, event: CrawlEvent) -> Transition | None:
    """Return the transition ``event`` causes from ``current``, or None."""
    status = JobStatus(current)
    if status in TERMINAL_STATUSES:
        return None

    if event.kind in (EventKind.started, EventKind.page):
        if status is JobStatus.processing:
            # Crawl already declared finished; stray progress is ignored.
            return None
        return Transition(
            from_statuses=frozenset({status}),
            to_status=JobStatus.crawling,
            append_pages=event.kind is EventKind.page,
            sets_started_at=status is JobStatus.pending,
        )

    if event.kind is EventKind.completed:
        if status is JobStatus.processing:
            return None
        return Transition(
            from_statuses=frozenset({status}),
            to_status=JobStatus.processing,
            append_pages=True,
            run_extraction=True,
            sets_started_at=status is JobStatus.pending,
        )

    if event.kind in (EventKind.failed, EventKind.timeout):
        return Transition(
            from_statuses=frozenset(ACTIVE_STATUSES),
            to_status=JobStatus.failed,
        )

    return None


def processing_outcome(succeeded: bool) -> Transition:
    """Transition that closes out a job after extraction and persistence."""
    return Transition(
        from_statuses=frozenset({JobStatus.processing}),
        to_status=JobStatus.completed if succeeded else JobStatus.failed,
    )


def terminal_fields(
    created_at: datetime, started_at: datetime | None, now: datetime
) -> dict[str, Any]:
    """Timestamp columns written together with a move into a terminal status."""
    fields: dict[str, Any] = {
        "completed_at": now,
        "duration_ms": max(0, int((now - created_at).total_seconds() * 1000)),
    }
    if started_at is None:
        fields["started_at"] = now
    return fields
