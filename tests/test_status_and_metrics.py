"""
Tests for StatusService and MetricsRecorder.
"""

from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from booth_ingest.core.exceptions import JobNotFound, SourceNotFound
from booth_ingest.repositories.crawl_job_repo import CrawlJobRepository
from booth_ingest.services.metrics_service import MetricsRecorder
from booth_ingest.services.status_service import StatusService


class TestStatusService:
    def test_get_job(self, db_session, job):
        assert StatusService(db_session).get_job("job-1").job_id == "job-1"

    def test_get_job_reflects_latest_write(self, db_session, job):
        svc = StatusService(db_session)
        svc.get_job("job-1")
        CrawlJobRepository(db_session).transition("job-1", ["pending"], "crawling")

        assert svc.get_job("job-1").status == "crawling"

    def test_missing_job(self, db_session):
        with pytest.raises(JobNotFound):
            StatusService(db_session).get_job("nope")

    def test_list_jobs_by_source(self, db_session, job):
        svc = StatusService(db_session)

        assert [j.job_id for j in svc.list_jobs(source="photobooth-net")] == ["job-1"]
        assert svc.list_jobs(status="completed") == []

    def test_list_jobs_unknown_source(self, db_session):
        with pytest.raises(SourceNotFound):
            StatusService(db_session).list_jobs(source="nope")


class TestMetricsRecorder:
    def _close(self, db_session, job_id, status, **values):
        repo = CrawlJobRepository(db_session)
        repo.transition(job_id, ["pending"], status, **values)
        return repo.refresh(repo.get_by_job_id(job_id))

    def test_record_and_summary(self, db_session, job, source):
        recorder = MetricsRecorder(db_session)
        CrawlJobRepository(db_session).create_job("job-2", source.id, source.name, page_limit=5)

        recorder.record(
            self._close(db_session, "job-1", "completed", booths_inserted=3, duration_ms=1000)
        )
        recorder.record(
            self._close(db_session, "job-2", "failed", error_message="x", duration_ms=3000)
        )

        assert [m.job_id for m in recorder.recent()] == ["job-2", "job-1"]

        (summary,) = recorder.summary_by_source()
        assert summary.source_name == "photobooth-net"
        assert summary.attempts == 2
        assert summary.completed == 1
        assert summary.failed == 1
        assert summary.booths_inserted == 3
        assert summary.avg_duration_ms == 2000.0

    def test_record_failure_is_swallowed(self, db_session, job):
        recorder = MetricsRecorder(db_session)

        with patch.object(
            recorder.metric_repo,
            "create_from_job",
            side_effect=OperationalError("INSERT", {}, Exception("locked")),
        ):
            assert recorder.record(job) is None

    def test_empty_summary(self, db_session):
        assert MetricsRecorder(db_session).summary_by_source() == []
