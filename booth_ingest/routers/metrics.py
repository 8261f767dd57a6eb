from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from booth_ingest.core.database import get_db
from booth_ingest.dtos.metric_dto import CrawlMetricRead, SourceMetricSummary
from booth_ingest.services.metrics_service import MetricsRecorder

router = APIRouter(prefix="/metrics", tags=["metrics"])


@router.get("", response_model=list[CrawlMetricRead])
async def recent_metrics(
    limit: int = Query(default=50, ge=1, le=500), db: Session = Depends(get_db)
):
    return MetricsRecorder(db).recent(limit)


@router.get("/summary", response_model=list[SourceMetricSummary])
async def metrics_summary(db: Session = Depends(get_db)):
    return MetricsRecorder(db).summary_by_source()
