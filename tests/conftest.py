"""
Shared test fixtures for booth-ingest.

Provides:
- engine / session_factory / db_session: In-memory SQLite with all tables created
- crawl_client / completion_client: Fakes standing in for Firecrawl and Anthropic
- context: AppContext wired to the fakes, with a zero-delay rate limiter
- source / job: A registered source and a pending job for it
- client: FastAPI TestClient with DB and context dependencies overridden
"""

import os

# Force sqlite for tests; must be set before any booth_ingest imports.
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

import json

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from booth_ingest.core.config import Settings
from booth_ingest.core.context import AppContext
from booth_ingest.core.exceptions import CrawlServiceError
from booth_ingest.core.rate_limiter import MinIntervalRateLimiter
from booth_ingest.dtos.source_dto import CrawlSourceCreate
from booth_ingest.entities import Base
from booth_ingest.repositories.crawl_job_repo import CrawlJobRepository
from booth_ingest.repositories.crawl_source_repo import CrawlSourceRepository


class FakeCrawlClient:
    """Records start_crawl calls; hands out job-1, job-2, ..."""

    def __init__(self) -> None:
        self.calls: list[dict] = []
        self.error: CrawlServiceError | None = None
        self.pages: list = []
        self.page_fetches: list[str] = []

    def start_crawl(self, url, limit, webhook_url, metadata=None):
        self.calls.append(
            {"url": url, "limit": limit, "webhook_url": webhook_url, "metadata": metadata}
        )
        if self.error is not None:
            raise self.error
        return f"job-{len(self.calls)}"

    def get_crawl_pages(self, job_id, max_results=None):
        self.page_fetches.append(job_id)
        return list(self.pages)


class FakeCompletionClient:
    """
    Returns canned replies.

    ``replies`` is consumed in order; once empty, ``default`` is returned.
    Entries that are exceptions are raised instead.
    """

    def __init__(self, default: str = "[]") -> None:
        self.default = default
        self.replies: list = []
        self.prompts: list[str] = []

    def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        reply = self.replies.pop(0) if self.replies else self.default
        if isinstance(reply, Exception):
            raise reply
        return reply


def booths_json(*booths: dict) -> str:
    """Completion reply wrapping *booths* in some chatter, like a real model."""
    return "Here are the booths I found:\n" + json.dumps(list(booths)) + "\nLet me know!"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine)


@pytest.fixture
def db_session(session_factory):
    """In-memory SQLite for unit tests. Never hits production DB."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def test_settings():
    return Settings(
        PUBLIC_BASE_URL="http://ingest.test",
        FIRECRAWL_API_KEY="fc-test",
        ANTHROPIC_API_KEY="sk-test",
        DEFAULT_PAGE_LIMIT=50,
        MAX_PAGE_LIMIT=500,
        EXTRACTION_DELAY_SECONDS=0.0,
        JOB_GRACE_PERIOD_MINUTES=30,
        RECRAWL_COOLDOWN_HOURS=24,
    )


@pytest.fixture
def crawl_client():
    return FakeCrawlClient()


@pytest.fixture
def completion_client():
    return FakeCompletionClient()


@pytest.fixture
def context(test_settings, session_factory, crawl_client, completion_client):
    return AppContext(
        settings=test_settings,
        session_factory=session_factory,
        crawl_client=crawl_client,
        completion_client=completion_client,
        rate_limiter=MinIntervalRateLimiter(0),
    )


@pytest.fixture
def source(db_session: Session):
    """An enabled directory source."""
    return CrawlSourceRepository(db_session).create_from_dto(
        CrawlSourceCreate(
            name="photobooth-net",
            source_url="https://booths.example.com/locations",
            extractor_type="directory",
        )
    )


@pytest.fixture
def job(db_session: Session, source):
    """A pending job for ``source`` with a page limit of 2."""
    return CrawlJobRepository(db_session).create_job(
        job_id="job-1",
        source_id=source.id,
        source_name=source.name,
        page_limit=2,
        webhook_url="http://ingest.test/webhooks/crawl",
    )


@pytest.fixture
def client(db_session: Session, context):
    """FastAPI TestClient with DB and context dependencies overridden."""
    from fastapi.testclient import TestClient

    from booth_ingest.core.context import get_context
    from booth_ingest.core.database import get_db
    from booth_ingest.main import app

    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_context] = lambda: context
    with TestClient(app, raise_server_exceptions=False) as tc:
        yield tc
    app.dependency_overrides.clear()
