"""
Tests for the Firecrawl and Anthropic client wrappers.

The SDK clients are replaced by MagicMocks; no network access.
"""

from unittest.mock import MagicMock

import anthropic
import httpx
import pytest
from pydantic import BaseModel

from booth_ingest.core.completion_client import CompletionClient
from booth_ingest.core.crawl_client import CrawlProviderClient
from booth_ingest.core.exceptions import CompletionServiceError, CrawlServiceError


class _ProviderError(Exception):
    def __init__(self, message, status_code):
        super().__init__(message)
        self.status_code = status_code


class _StartedCrawl(BaseModel):
    id: str
    url: str | None = None


@pytest.fixture
def app():
    return MagicMock()


class TestCrawlProviderClient:
    def _client(self, app, api_key="fc-test"):
        return CrawlProviderClient(api_key, api_url="https://fc.test/", wait_for_ms=500, app=app)

    def test_start_crawl(self, app):
        app.start_crawl.return_value = _StartedCrawl(id="abc-123", url="https://fc.test/v2/crawl/abc-123")

        job_id = self._client(app).start_crawl(
            "https://booths.example.com",
            limit=20,
            webhook_url="http://ingest.test/webhooks/crawl",
            metadata={"source_id": 7, "source_name": "photobooth-net", "note": None},
        )

        assert job_id == "abc-123"
        args, kwargs = app.start_crawl.call_args
        assert args[0] == "https://booths.example.com"
        assert kwargs["limit"] == 20
        assert kwargs["scrape_options"].formats == ["markdown", "html"]
        assert kwargs["scrape_options"].only_main_content is False
        assert kwargs["scrape_options"].wait_for == 500
        webhook = kwargs["webhook"]
        assert webhook.url == "http://ingest.test/webhooks/crawl"
        assert webhook.metadata == {"source_id": "7", "source_name": "photobooth-net"}
        assert "completed" in webhook.events

    def test_rejection_carries_status(self, app):
        app.start_crawl.side_effect = _ProviderError("Payment required", status_code=402)

        with pytest.raises(CrawlServiceError) as excinfo:
            self._client(app).start_crawl("https://x", 5, "http://hook")

        assert excinfo.value.status_code == 402
        assert str(excinfo.value) == "Crawl provider error (402): Payment required"

    def test_network_error(self, app):
        app.start_crawl.side_effect = ConnectionError("refused")

        with pytest.raises(CrawlServiceError, match="refused") as excinfo:
            self._client(app).start_crawl("https://x", 5, "http://hook")

        assert excinfo.value.status_code is None

    def test_missing_job_id(self, app):
        app.start_crawl.return_value = {"success": False, "error": "bad url"}

        with pytest.raises(CrawlServiceError, match="bad url"):
            self._client(app).start_crawl("https://x", 5, "http://hook")

    def test_missing_api_key(self, app):
        with pytest.raises(CrawlServiceError):
            self._client(app, api_key=None).start_crawl("https://x", 5, "http://hook")
        app.start_crawl.assert_not_called()

    def test_get_crawl_pages(self, app):
        app.get_crawl_status.return_value = {
            "status": "completed",
            "data": [
                {"markdown": "# A", "metadata": {"source_url": "https://a"}},
                {"html": "<p>B</p>", "metadata": {"sourceURL": "https://b"}},
            ],
        }

        pages = self._client(app).get_crawl_pages("abc", max_results=5)

        assert [p.page_url for p in pages] == ["https://a", "https://b"]
        args, kwargs = app.get_crawl_status.call_args
        assert args[0] == "abc"
        assert kwargs["pagination_config"].auto_paginate is True
        assert kwargs["pagination_config"].max_results == 5

    def test_get_crawl_pages_provider_error(self, app):
        app.get_crawl_status.side_effect = _ProviderError("Job not found", status_code=404)

        with pytest.raises(CrawlServiceError) as excinfo:
            self._client(app).get_crawl_pages("abc")

        assert excinfo.value.status_code == 404


def _request():
    return httpx.Request("POST", "https://api.anthropic.com/v1/messages")


class TestCompletionClient:
    def _client(self, sdk, api_key="sk-test"):
        return CompletionClient(api_key, model="claude-test", max_tokens=1024, client=sdk)

    def test_complete(self, app):
        app.messages.create.return_value = {
            "content": [
                {"type": "text", "text": "[{\"name\": "},
                {"type": "text", "text": "\"A\"}]"},
            ],
            "stop_reason": "end_turn",
        }

        assert self._client(app).complete("prompt") == '[{"name": "A"}]'

        kwargs = app.messages.create.call_args.kwargs
        assert kwargs["model"] == "claude-test"
        assert kwargs["max_tokens"] == 1024
        assert kwargs["messages"] == [{"role": "user", "content": "prompt"}]

    def test_api_status_error(self, app):
        app.messages.create.side_effect = anthropic.APIStatusError(
            "overloaded", response=httpx.Response(529, request=_request()), body=None
        )

        with pytest.raises(CompletionServiceError) as excinfo:
            self._client(app).complete("prompt")
        assert excinfo.value.status_code == 529

    def test_timeout(self, app):
        app.messages.create.side_effect = anthropic.APITimeoutError(request=_request())

        with pytest.raises(CompletionServiceError):
            self._client(app).complete("prompt")

    def test_unexpected_shape(self, app):
        app.messages.create.return_value = {"content": "not a list of blocks"}

        with pytest.raises(CompletionServiceError):
            self._client(app).complete("prompt")

    def test_missing_api_key(self, app):
        with pytest.raises(CompletionServiceError):
            self._client(app, api_key="").complete("prompt")
        app.messages.create.assert_not_called()
