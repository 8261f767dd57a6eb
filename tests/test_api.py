"""
Tests for FastAPI endpoints. Covers:
  job submission and status reads (camelCase payloads)
  webhook receiver, both payload dialects
  structured error responses with request ids
  sources / metrics views
"""

from unittest.mock import patch

from conftest import booths_json

from booth_ingest.core.exceptions import CrawlServiceError


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


class TestPublicEndpoints:
    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["status"] == "healthy"

    def test_request_id_header(self, client):
        r = client.get("/health")
        assert r.headers.get("X-Request-ID")

    def test_request_id_propagated(self, client):
        r = client.get("/health", headers={"X-Request-ID": "abc-123"})
        assert r.headers["X-Request-ID"] == "abc-123"


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------


class TestJobs:
    def test_submit(self, client, source):
        r = client.post("/jobs", json={"source": "photobooth-net", "pageLimit": 2})

        assert r.status_code == 202
        assert r.json() == {"jobId": "job-1", "status": "pending", "checkUrl": "/jobs/job-1"}

    def test_submit_unknown_source(self, client):
        r = client.post("/jobs", json={"source": "nope"})

        assert r.status_code == 404
        body = r.json()
        assert body["error"] == "source_not_found"
        assert body["request_id"] == r.headers["X-Request-ID"]

    def test_submit_busy_source(self, client, source):
        client.post("/jobs", json={"source": "photobooth-net"})
        r = client.post("/jobs", json={"source": "photobooth-net", "force": True})

        assert r.status_code == 409
        assert r.json()["error"] == "source_busy"

    def test_submit_provider_rejection(self, client, source, crawl_client):
        crawl_client.error = CrawlServiceError("Insufficient credits", status_code=402)

        r = client.post("/jobs", json={"source": "photobooth-net"})

        assert r.status_code == 502
        body = r.json()
        assert body["error"] == "crawl_service_error"
        assert "402" in body["message"]
        assert client.get("/jobs").json() == []

    def test_submit_invalid_body(self, client):
        r = client.post("/jobs", json={"pageLimit": 0})

        assert r.status_code == 422
        assert r.json()["error"] == "validation_error"

    def test_get_job(self, client, job):
        r = client.get("/jobs/job-1")

        assert r.status_code == 200
        body = r.json()
        assert body["jobId"] == "job-1"
        assert body["sourceName"] == "photobooth-net"
        assert body["status"] == "pending"
        assert body["pageLimit"] == 2
        assert body["pagesReceived"] == 0
        assert body["completedAt"] is None

    def test_get_missing_job(self, client):
        r = client.get("/jobs/nope")

        assert r.status_code == 404
        assert r.json()["error"] == "job_not_found"

    def test_list_jobs(self, client, job):
        assert [j["jobId"] for j in client.get("/jobs").json()] == ["job-1"]
        assert client.get("/jobs", params={"status": "failed"}).json() == []
        assert client.get("/jobs", params={"status": "bogus"}).status_code == 422

    def test_submit_runs_in_worker_thread(self, client, source):
        with patch("booth_ingest.routers.jobs.asyncio.to_thread") as mock_to_thread:
            async def _run(fn, *args, **kwargs):
                return fn(*args, **kwargs)

            mock_to_thread.side_effect = _run
            r = client.post("/jobs", json={"source": "photobooth-net"})

        assert r.status_code == 202
        mock_to_thread.assert_called_once()


# ---------------------------------------------------------------------------
# Webhooks
# ---------------------------------------------------------------------------


class TestWebhooks:
    def test_simplified_payloads_end_to_end(self, client, job, completion_client):
        completion_client.default = booths_json({"name": "Joe's Bar", "city": "Springfield"})

        r = client.post(
            "/webhooks/crawl",
            json={"jobId": "job-1", "type": "page", "page": {"url": "https://a/1", "content": "x"}},
        )
        assert r.status_code == 200
        assert r.json() == {"received": True, "outcome": "accepted"}

        r = client.post("/webhooks/crawl", json={"jobId": "job-1", "type": "completed"})
        assert r.json() == {"received": True, "outcome": "completed"}

        body = client.get("/jobs/job-1").json()
        assert body["status"] == "completed"
        assert body["pagesReceived"] == 1
        assert body["boothsInserted"] == 1

    def test_firecrawl_payloads(self, client, job):
        r = client.post(
            "/webhooks/crawl",
            json={
                "success": True,
                "type": "crawl.page",
                "id": "job-1",
                "data": [
                    {
                        "markdown": "# Booths",
                        "metadata": {"sourceURL": "https://a/1", "statusCode": 200},
                    }
                ],
            },
        )
        assert r.json()["outcome"] == "accepted"

        r = client.post(
            "/webhooks/crawl",
            json={"success": False, "type": "crawl.failed", "id": "job-1", "error": "Blocked"},
        )
        assert r.json()["outcome"] == "failed"
        body = client.get("/jobs/job-1").json()
        assert body["status"] == "failed"
        assert body["errorMessage"] == "Blocked"
        assert body["pagesReceived"] == 1

    def test_unknown_job_acknowledged(self, client):
        r = client.post("/webhooks/crawl", json={"jobId": "ghost", "type": "completed"})

        assert r.status_code == 200
        assert r.json() == {"received": True, "outcome": "ignored"}

    def test_malformed_payload(self, client):
        assert client.post("/webhooks/crawl", json={"type": "page"}).status_code == 422
        assert (
            client.post("/webhooks/crawl", json={"jobId": "job-1", "type": "exploded"}).status_code
            == 422
        )


# ---------------------------------------------------------------------------
# Sources & metrics
# ---------------------------------------------------------------------------


class TestViews:
    def test_sources(self, client, source):
        (row,) = client.get("/sources").json()
        assert row["name"] == "photobooth-net"
        assert row["extractor_type"] == "directory"

    def test_metrics(self, client, job):
        client.post("/webhooks/crawl", json={"jobId": "job-1", "type": "failed", "error": "x"})

        (metric,) = client.get("/metrics").json()
        assert metric["status"] == "failed"

        (summary,) = client.get("/metrics/summary").json()
        assert summary["attempts"] == 1
        assert summary["failed"] == 1


class TestErrorHandling:
    def test_unhandled_exception_returns_500(self, client, job):
        with patch(
            "booth_ingest.routers.jobs.StatusService.get_job",
            side_effect=RuntimeError("kaboom"),
        ):
            r = client.get("/jobs/job-1")

        assert r.status_code == 500
        body = r.json()
        assert body["error"] == "internal_error"
        assert body["detail"] is None
        assert r.headers.get("X-Request-ID")
