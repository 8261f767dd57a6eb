"""
Unit tests for crawl job, page and source repositories.
"""

from datetime import timedelta

import pytest

from booth_ingest.entities.base import utcnow
from booth_ingest.repositories.crawl_job_repo import CrawlJobRepository
from booth_ingest.repositories.crawl_page_repo import CrawlPageRepository
from booth_ingest.repositories.crawl_source_repo import CrawlSourceRepository


@pytest.fixture
def job_repo(db_session):
    return CrawlJobRepository(db_session)


@pytest.fixture
def page_repo(db_session):
    return CrawlPageRepository(db_session)


class TestCrawlJobRepository:
    """Test crawl job repository functionality."""

    def test_create_job(self, job):
        assert job.id is not None
        assert job.status == "pending"
        assert job.page_limit == 2
        assert job.pages_received == 0
        assert job.booths_found == 0
        assert job.started_at is None

    def test_get_by_job_id(self, job_repo, job):
        assert job_repo.get_by_job_id("job-1").id == job.id
        assert job_repo.get_by_job_id("missing") is None

    def test_transition_applies_when_status_matches(self, job_repo, job, db_session):
        assert job_repo.transition("job-1", ["pending"], "crawling") is True

        db_session.refresh(job)
        assert job.status == "crawling"

    def test_transition_refused_when_status_moved_on(self, job_repo, job, db_session):
        job_repo.transition("job-1", ["pending"], "failed", error_message="boom")

        assert job_repo.transition("job-1", ["pending", "crawling"], "crawling") is False
        db_session.refresh(job)
        assert job.status == "failed"
        assert job.error_message == "boom"

    def test_transition_unknown_job(self, job_repo):
        assert job_repo.transition("missing", ["pending"], "crawling") is False

    def test_increment_pages_stops_at_limit(self, job_repo, job, db_session):
        assert job_repo.increment_pages("job-1") is True
        assert job_repo.increment_pages("job-1") is True
        assert job_repo.increment_pages("job-1") is False

        db_session.refresh(job)
        assert job.pages_received == 2

    def test_increment_pages_refused_once_processing(self, job_repo, job):
        job_repo.transition("job-1", ["pending"], "processing")

        assert job_repo.increment_pages("job-1") is False

    def test_list_jobs_filters(self, job_repo, job, source):
        job_repo.create_job("job-2", source.id, source.name, page_limit=5)
        job_repo.transition("job-2", ["pending"], "failed")

        assert [j.job_id for j in job_repo.list_jobs(status="failed")] == ["job-2"]
        assert len(job_repo.list_jobs(source_id=source.id)) == 2
        assert len(job_repo.list_jobs(limit=1)) == 1

    def test_active_and_recent_lookups(self, job_repo, job, source):
        assert job_repo.get_active_for_source(source.id).job_id == "job-1"

        job_repo.transition("job-1", ["pending"], "completed")

        assert job_repo.get_active_for_source(source.id) is None
        since = utcnow() - timedelta(hours=1)
        assert job_repo.get_recent_completed_for_source(source.id, since).job_id == "job-1"

    def test_get_stale_jobs(self, job_repo, job):
        assert job_repo.get_stale_jobs(created_before=job.created_at) == []
        stale = job_repo.get_stale_jobs(created_before=utcnow() + timedelta(minutes=1))
        assert [j.job_id for j in stale] == ["job-1"]


class TestCrawlPageRepository:
    def test_add_page_dedups_by_url(self, page_repo, job):
        assert page_repo.add_page("job-1", "https://a/1", "x", "markdown") is True
        assert page_repo.add_page("job-1", "https://a/1", "y", "markdown") is False

        assert page_repo.count_pages("job-1") == 1
        assert page_repo.list_pages("job-1")[0].content == "x"


class TestCrawlSourceRepository:
    def test_resolve_by_name_or_id(self, db_session, source):
        repo = CrawlSourceRepository(db_session)

        assert repo.resolve("photobooth-net").id == source.id
        assert repo.resolve(str(source.id)).id == source.id
        assert repo.resolve(source.id).id == source.id
        assert repo.resolve("missing") is None

    def test_list_sources_enabled_only(self, db_session, source):
        repo = CrawlSourceRepository(db_session)
        repo.set_enabled(source, False)

        assert repo.list_sources(enabled_only=True) == []
        assert len(repo.list_sources()) == 1
