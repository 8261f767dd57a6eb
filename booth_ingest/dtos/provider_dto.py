"""
Boundary models for the two external providers.

Both Firecrawl and the Anthropic Messages API return loosely-shaped JSON.
Responses are validated here, before anything reaches business logic;
unknown keys are ignored and missing optional ones default to None.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class FirecrawlStartResponse(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    success: bool | None = None
    id: str | None = None
    job_id: str | None = Field(default=None, alias="jobId")
    error: str | None = None

    @property
    def resolved_id(self) -> str | None:
        return self.id or self.job_id


class FirecrawlDocument(BaseModel):
    """One crawled page as Firecrawl delivers it (webhook or status call)."""

    model_config = ConfigDict(extra="ignore")

    url: str | None = None
    markdown: str | None = None
    html: str | None = None
    metadata: dict[str, Any] | None = None

    @property
    def page_url(self) -> str | None:
        if self.url:
            return self.url
        if self.metadata:
            return (
                self.metadata.get("sourceURL")
                or self.metadata.get("source_url")
                or self.metadata.get("url")
            )
        return None


class FirecrawlStatusResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    status: str | None = None
    data: list[FirecrawlDocument] = Field(default_factory=list)
    next: str | None = None


class CompletionContentBlock(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str
    text: str | None = None


class CompletionResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    content: list[CompletionContentBlock] = Field(default_factory=list)
    stop_reason: str | None = None

    @property
    def text(self) -> str:
        return "".join(block.text or "" for block in self.content if block.type == "text")
