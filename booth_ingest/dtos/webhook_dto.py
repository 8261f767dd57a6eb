"""
DTOs for crawl-provider webhook callbacks.

Two payload dialects are accepted and normalized into one ``CrawlEvent``:

* the simplified contract: ``{"jobId", "type": "page", "page": {"url",
  "content"}}`` and ``{"jobId", "type": "completed" | "failed", "pages",
  "error"}``;
* Firecrawl's native payload: ``{"id", "type": "crawl.page", "data":
  [{"markdown", "html", "metadata": {"sourceURL"}}], "error"}``.
"""

import hashlib
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from booth_ingest.services.job_state import CrawlEvent, EventKind, PagePayload

EVENT_TYPES = {
    "started": EventKind.started,
    "crawl.started": EventKind.started,
    "page": EventKind.page,
    "crawl.page": EventKind.page,
    "completed": EventKind.completed,
    "crawl.completed": EventKind.completed,
    "failed": EventKind.failed,
    "crawl.failed": EventKind.failed,
}


class WebhookPage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    url: str | None = None
    content: str | None = None
    markdown: str | None = None
    html: str | None = None
    metadata: dict[str, Any] | None = None

    def to_payload(self) -> PagePayload | None:
        if self.content:
            text, fmt = self.content, "markdown"
        elif self.markdown:
            text, fmt = self.markdown, "markdown"
        elif self.html:
            text, fmt = self.html, "html"
        else:
            return None

        url = self.url
        if not url and self.metadata:
            url = self.metadata.get("sourceURL") or self.metadata.get("url")
        if not url:
            # Identical anonymous pages collapse onto the same key.
            url = "urn:sha1:" + hashlib.sha1(text.encode("utf-8")).hexdigest()
        return PagePayload(url=url, content=text, content_format=fmt)


class CrawlWebhookPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    job_id: str | None = Field(default=None, alias="jobId")
    id: str | None = None
    type: str
    success: bool | None = None
    page: WebhookPage | None = None
    pages: list[WebhookPage] | None = None
    data: list[WebhookPage] | None = None
    error: str | None = None

    @field_validator("type")
    @classmethod
    def _known_type(cls, value: str) -> str:
        if value not in EVENT_TYPES:
            raise ValueError(f"unsupported webhook type: {value}")
        return value

    @model_validator(mode="after")
    def _require_job_id(self) -> "CrawlWebhookPayload":
        if not (self.job_id or self.id):
            raise ValueError("jobId (or id) is required")
        return self

    @property
    def resolved_job_id(self) -> str:
        return self.job_id or self.id or ""

    def to_event(self) -> CrawlEvent:
        raw_pages: list[WebhookPage] = []
        if self.page is not None:
            raw_pages.append(self.page)
        raw_pages.extend(self.pages or [])
        raw_pages.extend(self.data or [])

        pages = tuple(p for p in (raw.to_payload() for raw in raw_pages) if p is not None)
        return CrawlEvent(
            job_id=self.resolved_job_id,
            kind=EVENT_TYPES[self.type],
            pages=pages,
            error=self.error,
        )


class WebhookAck(BaseModel):
    received: bool
    outcome: str
