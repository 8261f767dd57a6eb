"""
Error taxonomy for the ingestion pipeline.

Every error carries a short ``error_code`` (the only thing callers ever see
besides the message) and the HTTP status the API maps it to. Page-local and
record-local errors (``ExtractionParseError``, ``CompletionServiceError``,
``PersistenceError`` during a batch) are absorbed by the services that raise
them; the rest propagate to the caller.
"""

from __future__ import annotations


class IngestError(Exception):
    """Base class for all pipeline errors."""

    error_code = "ingest_error"
    http_status = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class SourceNotFound(IngestError):
    error_code = "source_not_found"
    http_status = 404


class SourceBusy(IngestError):
    """The source already has a job that has not reached a terminal state."""

    error_code = "source_busy"
    http_status = 409


class SourceRecentlyCrawled(IngestError):
    error_code = "source_recently_crawled"
    http_status = 409


class CrawlServiceError(IngestError):
    """The crawl provider rejected a request or returned an unusable response."""

    error_code = "crawl_service_error"
    http_status = 502

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"Crawl provider error ({self.status_code}): {self.message}"


class CompletionServiceError(IngestError):
    error_code = "completion_service_error"
    http_status = 502

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UnknownJobCallback(IngestError):
    """A webhook arrived for a job id we never recorded (or already purged)."""

    error_code = "unknown_job"
    http_status = 200


class ExtractionParseError(IngestError):
    error_code = "extraction_parse_error"
    http_status = 500


class PersistenceError(IngestError):
    error_code = "persistence_error"
    http_status = 500


class JobTimeout(IngestError):
    error_code = "job_timeout"
    http_status = 500


class JobNotFound(IngestError):
    error_code = "job_not_found"
    http_status = 404


class JobStillRunning(IngestError):
    """The job has not reached a terminal state, so its pages may still change."""

    error_code = "job_still_running"
    http_status = 409
