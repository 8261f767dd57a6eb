"""
DTOs for crawl job submission and status reads.
API payloads use camelCase keys; Python attributes stay snake_case.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class JobSubmitRequest(CamelModel):
    source: str = Field(..., min_length=1, description="Source name or numeric id")
    page_limit: int | None = Field(
        default=None, ge=1, description="Override for the source's page-limit hint"
    )
    force: bool = Field(
        default=False, description="Ignore the recently-crawled skip heuristic"
    )


class JobSubmitResponse(CamelModel):
    job_id: str
    status: str
    check_url: str


class JobStatusRead(CamelModel):
    job_id: str
    source_id: int
    source_name: str
    status: str
    page_limit: int
    pages_received: int
    booths_found: int
    booths_inserted: int
    booths_updated: int
    error_message: str | None = None
    created_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None
    duration_ms: int | None = None
