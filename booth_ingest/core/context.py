"""
Application context.

Everything long-lived that the services share (settings, the session
factory, the two provider clients, the extraction rate limiter and the
per-job locks) is built once at process start and passed down explicitly.
Tests build their own context around fakes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from fastapi import Request
from sqlalchemy.orm import Session

from booth_ingest.core.completion_client import CompletionClient
from booth_ingest.core.config import Settings, settings as default_settings
from booth_ingest.core.crawl_client import CrawlProviderClient
from booth_ingest.core.locks import JobLockRegistry
from booth_ingest.core.rate_limiter import MinIntervalRateLimiter


@dataclass
class AppContext:
    settings: Settings
    session_factory: Callable[[], Session]
    crawl_client: CrawlProviderClient
    completion_client: CompletionClient
    rate_limiter: MinIntervalRateLimiter
    job_locks: JobLockRegistry = field(default_factory=JobLockRegistry)


def build_context(
    settings: Settings | None = None,
    session_factory: Callable[[], Session] | None = None,
) -> AppContext:
    settings = settings or default_settings
    if session_factory is None:
        from booth_ingest.core.database import SessionLocal

        session_factory = SessionLocal

    return AppContext(
        settings=settings,
        session_factory=session_factory,
        crawl_client=CrawlProviderClient(
            api_key=settings.FIRECRAWL_API_KEY,
            api_url=settings.FIRECRAWL_BASE_URL,
            wait_for_ms=settings.FIRECRAWL_WAIT_FOR_MS,
        ),
        completion_client=CompletionClient(
            api_key=settings.ANTHROPIC_API_KEY,
            model=settings.ANTHROPIC_MODEL,
            base_url=settings.ANTHROPIC_BASE_URL,
            max_tokens=settings.COMPLETION_MAX_TOKENS,
            timeout=settings.COMPLETION_REQUEST_TIMEOUT,
        ),
        rate_limiter=MinIntervalRateLimiter(settings.EXTRACTION_DELAY_SECONDS),
    )


def get_context(request: Request) -> AppContext:
    """FastAPI dependency: the context built at application startup."""
    return request.app.state.context
