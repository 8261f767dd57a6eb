import asyncio

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from booth_ingest.core.context import AppContext, get_context
from booth_ingest.core.database import get_db
from booth_ingest.dtos.crawl_job_dto import (
    JobStatusRead,
    JobSubmitRequest,
    JobSubmitResponse,
)
from booth_ingest.entities.crawl_job import JobStatus
from booth_ingest.services.job_submitter import JobSubmitter
from booth_ingest.services.status_service import StatusService

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.post("", status_code=202, response_model=JobSubmitResponse)
async def submit_job(
    body: JobSubmitRequest,
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_context),
):
    submitter = JobSubmitter(db, context.crawl_client, context.settings)
    result = await asyncio.to_thread(
        submitter.submit, body.source, body.page_limit, body.force
    )
    return JobSubmitResponse(
        job_id=result.job_id, status=result.status, check_url=result.check_url
    )


@router.get("", response_model=list[JobStatusRead])
async def list_jobs(
    status: JobStatus | None = None,
    source: str | None = None,
    limit: int = Query(default=50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    svc = StatusService(db)
    return svc.list_jobs(status=status, source=source, limit=limit)


@router.get("/{job_id}", response_model=JobStatusRead)
async def get_job(job_id: str, db: Session = Depends(get_db)):
    svc = StatusService(db)
    return svc.get_job(job_id)
