from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from booth_ingest.core.database import get_db
from booth_ingest.dtos.source_dto import CrawlSourceRead
from booth_ingest.repositories.crawl_source_repo import CrawlSourceRepository

router = APIRouter(prefix="/sources", tags=["sources"])


@router.get("", response_model=list[CrawlSourceRead])
async def list_sources(enabled_only: bool = False, db: Session = Depends(get_db)):
    repo = CrawlSourceRepository(db)
    return repo.list_sources(enabled_only=enabled_only)
