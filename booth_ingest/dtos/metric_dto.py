"""
DTOs for crawl metrics views.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class CrawlMetricRead(BaseModel):
    job_id: str
    source_id: int
    source_name: str
    status: str
    pages_received: int
    booths_found: int
    booths_inserted: int
    booths_updated: int
    duration_ms: int | None
    error_message: str | None
    recorded_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SourceMetricSummary(BaseModel):
    source_id: int
    source_name: str
    attempts: int
    completed: int
    failed: int
    booths_inserted: int
    booths_updated: int
    avg_duration_ms: float | None
