"""Firecrawl client: starts async crawls and fetches crawl results."""

from __future__ import annotations

import logging
from typing import Any

from firecrawl import Firecrawl
from firecrawl.v2.types import PaginationConfig, ScrapeOptions, WebhookConfig
from pydantic import ValidationError

from booth_ingest.core.exceptions import CrawlServiceError
from booth_ingest.dtos.provider_dto import (
    FirecrawlDocument,
    FirecrawlStartResponse,
    FirecrawlStatusResponse,
)

logger = logging.getLogger(__name__)

WEBHOOK_EVENTS = ["started", "page", "completed", "failed"]

# Firecrawl error bodies can be long; keep logs and messages short.
_MAX_ERROR_CHARS = 500


def _as_dict(result: Any) -> Any:
    return result.model_dump(mode="json", exclude_none=True) if hasattr(result, "model_dump") else result


def _provider_error(exc: Exception, action: str) -> CrawlServiceError:
    status_code = getattr(exc, "status_code", None)
    message = str(exc)[:_MAX_ERROR_CHARS] or type(exc).__name__
    if status_code is None:
        message = f"{action} failed: {message}"
    return CrawlServiceError(message, status_code=status_code)


class CrawlProviderClient:
    def __init__(
        self,
        api_key: str | None,
        api_url: str = "https://api.firecrawl.dev",
        wait_for_ms: int = 8000,
        app: Firecrawl | None = None,
    ) -> None:
        self.api_key = api_key
        self.api_url = api_url.rstrip("/")
        self.wait_for_ms = wait_for_ms
        self._app = app

    @property
    def app(self) -> Firecrawl:
        if not self.api_key:
            raise CrawlServiceError("FIRECRAWL_API_KEY is not configured")
        if self._app is None:
            self._app = Firecrawl(api_key=self.api_key, api_url=self.api_url)
        return self._app

    def start_crawl(
        self,
        url: str,
        limit: int,
        webhook_url: str,
        metadata: dict[str, Any] | None = None,
    ) -> str:
        """
        Request an asynchronous crawl and return the provider's job id.

        The call returns as soon as Firecrawl has accepted the job; progress
        arrives later on ``webhook_url``.

        Raises:
            CrawlServiceError: missing key, provider rejection, network failure,
                or no job id in the response
        """
        app = self.app
        webhook = WebhookConfig(
            url=webhook_url,
            events=WEBHOOK_EVENTS,
            # Firecrawl rejects nulls in webhook metadata.
            metadata={k: str(v) for k, v in (metadata or {}).items() if v is not None} or None,
        )
        scrape_options = ScrapeOptions(
            formats=["markdown", "html"],
            only_main_content=False,
            wait_for=self.wait_for_ms,
        )

        try:
            result = app.start_crawl(
                url,
                limit=limit,
                scrape_options=scrape_options,
                webhook=webhook,
            )
        except Exception as exc:  # noqa: BLE001
            raise _provider_error(exc, "Crawl request") from exc

        try:
            parsed = FirecrawlStartResponse.model_validate(_as_dict(result))
        except ValidationError as exc:
            raise CrawlServiceError(f"Unexpected crawl provider response: {exc}") from exc

        job_id = parsed.resolved_id
        if not job_id:
            raise CrawlServiceError(parsed.error or "Crawl provider did not return a job id")

        logger.info("Crawl provider accepted %s (limit=%d) as job %s", url, limit, job_id)
        return job_id

    def get_crawl_pages(self, job_id: str, max_results: int | None = None) -> list[FirecrawlDocument]:
        """
        Fetch the pages of a finished crawl; the SDK follows ``next`` links.

        Raises:
            CrawlServiceError: missing key, provider error, or unusable payload
        """
        app = self.app
        pagination = PaginationConfig(auto_paginate=True, max_wait_time=30, max_results=max_results)
        try:
            status = app.get_crawl_status(job_id, pagination_config=pagination)
        except Exception as exc:  # noqa: BLE001
            raise _provider_error(exc, "Crawl status request") from exc

        try:
            parsed = FirecrawlStatusResponse.model_validate(_as_dict(status))
        except ValidationError as exc:
            raise CrawlServiceError(f"Unexpected crawl status response: {exc}") from exc

        logger.info(
            "Fetched %d pages for crawl job %s (status=%s)", len(parsed.data), job_id, parsed.status
        )
        return parsed.data
