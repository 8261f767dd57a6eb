"""
Tests for webhook payload parsing into CrawlEvents.
"""

import pytest
from pydantic import ValidationError

from booth_ingest.dtos.webhook_dto import CrawlWebhookPayload
from booth_ingest.services.job_state import EventKind


class TestCrawlWebhookPayload:
    def test_simplified_page(self):
        event = CrawlWebhookPayload.model_validate(
            {"jobId": "job-1", "type": "page", "page": {"url": "https://a", "content": "# A"}}
        ).to_event()

        assert event.job_id == "job-1"
        assert event.kind is EventKind.page
        assert event.pages[0].url == "https://a"
        assert event.pages[0].content_format == "markdown"

    def test_simplified_completed_with_pages(self):
        event = CrawlWebhookPayload.model_validate(
            {
                "jobId": "job-1",
                "type": "completed",
                "pages": [{"url": "https://a", "content": "A"}, {"url": "https://b", "content": "B"}],
            }
        ).to_event()

        assert event.kind is EventKind.completed
        assert [p.url for p in event.pages] == ["https://a", "https://b"]

    def test_firecrawl_page_prefers_markdown(self):
        event = CrawlWebhookPayload.model_validate(
            {
                "id": "fc-1",
                "type": "crawl.page",
                "data": [
                    {"markdown": "# A", "html": "<h1>A</h1>", "metadata": {"sourceURL": "https://a"}},
                    {"html": "<p>B</p>", "metadata": {"url": "https://b"}},
                    {"metadata": {"sourceURL": "https://empty"}},
                ],
            }
        ).to_event()

        assert event.job_id == "fc-1"
        assert [(p.url, p.content_format) for p in event.pages] == [
            ("https://a", "markdown"),
            ("https://b", "html"),
        ]

    def test_failed_carries_error(self):
        event = CrawlWebhookPayload.model_validate(
            {"id": "fc-1", "type": "crawl.failed", "error": "Blocked by robots.txt"}
        ).to_event()

        assert event.kind is EventKind.failed
        assert event.error == "Blocked by robots.txt"

    def test_page_without_url_gets_stable_key(self):
        payload = {"jobId": "job-1", "type": "page", "page": {"content": "same text"}}

        first = CrawlWebhookPayload.model_validate(payload).to_event()
        second = CrawlWebhookPayload.model_validate(payload).to_event()

        assert first.pages[0].url.startswith("urn:sha1:")
        assert first.pages[0].url == second.pages[0].url

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            CrawlWebhookPayload.model_validate({"jobId": "job-1", "type": "exploded"})

    def test_missing_job_id_rejected(self):
        with pytest.raises(ValidationError):
            CrawlWebhookPayload.model_validate({"type": "completed"})
