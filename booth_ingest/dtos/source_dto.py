"""
DTOs for crawl source configuration.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CrawlSourceCreate(BaseModel):
    """DTO for registering a crawl source."""

    name: str = Field(..., min_length=1, max_length=255)
    source_url: str = Field(..., min_length=1, max_length=2048)
    extractor_type: str = Field(default="generic", max_length=100)
    enabled: bool = True
    priority: int = Field(default=50, ge=0, le=100)
    page_limit: int | None = Field(default=None, ge=1)


class CrawlSourceRead(BaseModel):
    id: int
    name: str
    source_url: str
    extractor_type: str
    enabled: bool
    priority: int
    page_limit: int | None
    last_attempted_at: datetime | None

    model_config = ConfigDict(from_attributes=True)
