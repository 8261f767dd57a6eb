"""
booth-ingest command line

Commands:
    add-source      - Register a crawl source
    enable-source   - Allow crawls for a source
    disable-source  - Stop crawls for a source
    list-sources    - Show configured sources
    submit          - Start a crawl job for a source
    status          - Show one job
    sweep           - Fail jobs whose terminal callback never arrived
    reextract       - Re-run extraction over stored pages (no new crawl)
    metrics         - Per-source crawl summary
    serve           - Run the HTTP API (job submission + webhook receiver)

Examples:
    booth-ingest add-source photobooth-net https://www.photobooth.net/locations/ --extractor-type directory
    booth-ingest submit photobooth-net --page-limit 20
    booth-ingest sweep --interval 300
    booth-ingest reextract --source photobooth-net --limit 5
"""

import logging
import sys
import time

import click
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from booth_ingest.core.config import settings
from booth_ingest.core.context import AppContext, build_context
from booth_ingest.core.exceptions import IngestError
from booth_ingest.core.logging_config import configure_logging
from booth_ingest.dtos.source_dto import CrawlSourceCreate
from booth_ingest.repositories.crawl_source_repo import CrawlSourceRepository
from booth_ingest.services.job_submitter import JobSubmitter
from booth_ingest.services.metrics_service import MetricsRecorder
from booth_ingest.services.reextraction_service import ReextractionService, ReextractResult
from booth_ingest.services.status_service import StatusService
from booth_ingest.services.timeout_sweep import TimeoutSweeper

logger = logging.getLogger(__name__)


def _context(ctx: click.Context) -> AppContext:
    return ctx.obj["context"]


def _fail(message: str) -> None:
    click.secho(f"Error: {message}", fg="red", err=True)
    sys.exit(1)


@click.group()
@click.version_option(version="0.1.0", prog_name="booth-ingest")
@click.pass_context
def cli(ctx):
    """Crawl photo booth directories and ingest the booths they list."""
    ctx.ensure_object(dict)
    if "context" not in ctx.obj:
        configure_logging(settings.LOG_LEVEL)
        ctx.obj["context"] = build_context(settings)


@cli.command("add-source")
@click.argument("name")
@click.argument("url")
@click.option("--extractor-type", default="generic", show_default=True, help="Source category hint for extraction")
@click.option("--priority", default=50, show_default=True, type=click.IntRange(0, 100))
@click.option("--page-limit", type=int, default=None, help="Default page limit for this source")
@click.option("--disabled", is_flag=True, help="Register the source without enabling it")
@click.pass_context
def add_source(ctx, name, url, extractor_type, priority, page_limit, disabled):
    """Register a crawl source NAME rooted at URL."""
    try:
        dto = CrawlSourceCreate(
            name=name,
            source_url=url,
            extractor_type=extractor_type,
            priority=priority,
            page_limit=page_limit,
            enabled=not disabled,
        )
    except ValidationError as exc:
        _fail(str(exc))

    with _context(ctx).session_factory() as session:
        repo = CrawlSourceRepository(session)
        if repo.get_by_name(name) is not None:
            _fail(f"Source '{name}' already exists")
        source = repo.create_from_dto(dto)
        click.echo(f"Added source {source.id}: {source.name} ({source.source_url})")


def _set_enabled(ctx: click.Context, source_ref: str, enabled: bool) -> None:
    with _context(ctx).session_factory() as session:
        repo = CrawlSourceRepository(session)
        source = repo.resolve(source_ref)
        if source is None:
            _fail(f"Source '{source_ref}' not found")
        repo.set_enabled(source, enabled)
        click.echo(f"{source.name}: {'enabled' if enabled else 'disabled'}")


@cli.command("enable-source")
@click.argument("source")
@click.pass_context
def enable_source(ctx, source):
    """Allow crawls for SOURCE (name or id)."""
    _set_enabled(ctx, source, True)


@cli.command("disable-source")
@click.argument("source")
@click.pass_context
def disable_source(ctx, source):
    """Stop crawls for SOURCE (name or id)."""
    _set_enabled(ctx, source, False)


@cli.command("list-sources")
@click.option("--enabled-only", is_flag=True)
@click.pass_context
def list_sources(ctx, enabled_only):
    with _context(ctx).session_factory() as session:
        sources = CrawlSourceRepository(session).list_sources(enabled_only=enabled_only)
        if not sources:
            click.echo("No sources configured.")
            return
        for src in sources:
            state = click.style("on ", fg="green") if src.enabled else click.style("off", fg="red")
            last = f"{src.last_attempted_at:%Y-%m-%d %H:%M}" if src.last_attempted_at else "never"
            click.echo(
                f"{src.id:>4}  {state}  p{src.priority:<3} {src.name:<30} "
                f"{src.extractor_type:<12} last={last}  {src.source_url}"
            )


@cli.command("submit")
@click.argument("source")
@click.option("--page-limit", type=click.IntRange(min=1), default=None)
@click.option("--force", is_flag=True, help="Crawl even if the source was crawled recently")
@click.pass_context
def submit(ctx, source, page_limit, force):
    """Start a crawl job for SOURCE (name or id)."""
    context = _context(ctx)
    with context.session_factory() as session:
        submitter = JobSubmitter(session, context.crawl_client, context.settings)
        try:
            result = submitter.submit(source, page_limit=page_limit, force=force)
        except IngestError as exc:
            _fail(str(exc))
    click.secho(f"Submitted job {result.job_id} ({result.status})", fg="green")
    click.echo(f"Check: {result.check_url}")


@cli.command("status")
@click.argument("job_id")
@click.pass_context
def status(ctx, job_id):
    """Show the current state of JOB_ID."""
    with _context(ctx).session_factory() as session:
        try:
            job = StatusService(session).get_job(job_id)
        except IngestError as exc:
            _fail(str(exc))

        color = {"completed": "green", "failed": "red"}.get(job.status, "yellow")
        click.echo(f"Job:       {job.job_id}")
        click.echo(f"Source:    {job.source_name}")
        click.echo("Status:    " + click.style(job.status, fg=color))
        click.echo(f"Pages:     {job.pages_received}/{job.page_limit}")
        click.echo(
            f"Booths:    {job.booths_found} found, "
            f"{job.booths_inserted} inserted, {job.booths_updated} updated"
        )
        click.echo(f"Created:   {job.created_at}")
        if job.completed_at:
            click.echo(f"Completed: {job.completed_at} ({job.duration_ms} ms)")
        if job.error_message:
            click.echo(f"Error:     {job.error_message}")


@cli.command("sweep")
@click.option("--interval", type=click.IntRange(min=1), default=None, help="Repeat every N seconds")
@click.pass_context
def sweep(ctx, interval):
    """Fail jobs that outlived the grace period without a terminal callback."""
    context = _context(ctx)
    while True:
        with context.session_factory() as session:
            sweeper = TimeoutSweeper(
                session,
                grace_period_minutes=context.settings.JOB_GRACE_PERIOD_MINUTES,
                job_locks=context.job_locks,
            )
            try:
                timed_out = sweeper.sweep()
            except SQLAlchemyError as exc:
                if interval is None:
                    _fail(f"Sweep failed: {exc}")
                logger.exception("Sweep failed; retrying in %ds", interval)
                timed_out = None
        if timed_out is not None:
            click.echo(
                f"Timed out {len(timed_out)} job(s)"
                + (f": {', '.join(timed_out)}" if timed_out else "")
            )
        if interval is None:
            return
        time.sleep(interval)


def _echo_reextract(result: ReextractResult) -> None:
    click.echo(
        f"{result.job_id}: {result.pages} page(s), {result.booths_found} booth(s) found, "
        f"{result.booths_inserted} inserted, {result.booths_updated} updated, "
        f"{result.failed} failed"
    )


@cli.command("reextract")
@click.argument("job_id", required=False)
@click.option("--source", "source_ref", default=None, help="Re-extract the newest finished jobs of a source")
@click.option("--limit", default=10, show_default=True, type=click.IntRange(1, 50))
@click.pass_context
def reextract(ctx, job_id, source_ref, limit):
    """Run extraction again over the stored pages of JOB_ID (or of --source)."""
    if (job_id is None) == (source_ref is None):
        _fail("Pass either a JOB_ID or --source")

    context = _context(ctx)
    with context.session_factory() as session:
        service = ReextractionService(session, context)
        try:
            if job_id is not None:
                results = [service.reextract(job_id)]
            else:
                results = service.reextract_source(source_ref, limit=limit)
        except IngestError as exc:
            _fail(str(exc))

    if not results:
        click.echo("No finished jobs with stored pages.")
        return
    for result in results:
        _echo_reextract(result)


@cli.command("metrics")
@click.pass_context
def metrics(ctx):
    """Per-source attempts, outcomes and booth counts."""
    with _context(ctx).session_factory() as session:
        rows = MetricsRecorder(session).summary_by_source()
    if not rows:
        click.echo("No metrics recorded yet.")
        return

    click.echo("=" * 78)
    click.secho(
        f"{'SOURCE':<30} {'RUNS':>5} {'OK':>5} {'FAIL':>5} {'NEW':>6} {'UPD':>6} {'AVG s':>8}",
        bold=True,
    )
    click.echo("=" * 78)
    for row in rows:
        avg = f"{row.avg_duration_ms / 1000:.1f}" if row.avg_duration_ms is not None else "-"
        click.echo(
            f"{row.source_name:<30} {row.attempts:>5} {row.completed:>5} {row.failed:>5} "
            f"{row.booths_inserted:>6} {row.booths_updated:>6} {avg:>8}"
        )


@cli.command("serve")
@click.option("--host", default="0.0.0.0", show_default=True)
@click.option("--port", default=8000, show_default=True, type=int)
@click.option("--reload", is_flag=True)
def serve(host, port, reload):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run("booth_ingest.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    cli()
