import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from booth_ingest.core.config import settings
from booth_ingest.core.context import build_context
from booth_ingest.core.exceptions import IngestError
from booth_ingest.core.logging_config import configure_logging
from booth_ingest.routers import jobs, metrics, sources, webhooks

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)
    app.state.context = build_context(settings)
    logger.info("booth-ingest started; webhooks at %s", settings.webhook_url)
    yield


app = FastAPI(title="booth-ingest", version="0.1.0", lifespan=lifespan)

# ---------------------------------------------------------------------------
# Middleware: request-id injection
# ---------------------------------------------------------------------------


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


# ---------------------------------------------------------------------------
# Global exception handlers
# ---------------------------------------------------------------------------


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")


def _error_response(
    request: Request, status_code: int, error: str, message: str, detail=None
) -> JSONResponse:
    response = JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "message": message,
            "detail": detail,
            "request_id": _request_id(request),
        },
    )
    # Handlers for bare Exception run outside the middleware's response path.
    response.headers["X-Request-ID"] = _request_id(request)
    return response


@app.exception_handler(IngestError)
async def ingest_error_handler(request: Request, exc: IngestError):
    if exc.http_status >= 500:
        logger.error(
            "%s: %s", exc.error_code, exc, extra={"request_id": _request_id(request)}
        )
    return _error_response(request, exc.http_status, exc.error_code, str(exc))


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    return _error_response(
        request,
        422,
        "validation_error",
        "Request validation failed",
        jsonable_errors(exc.errors()),
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return _error_response(
        request,
        422,
        "validation_error",
        "Request validation failed",
        jsonable_errors(exc.errors()),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return _error_response(request, exc.status_code, "http_error", str(exc.detail))


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception", extra={"request_id": _request_id(request)})
    return _error_response(
        request,
        500,
        "internal_error",
        "An unexpected error occurred",
        str(exc) if settings.DEBUG else None,
    )


def jsonable_errors(errors: list) -> list:
    """Pydantic error dicts may carry the raw exception under ``ctx``."""
    cleaned = []
    for err in errors:
        err = dict(err)
        if "ctx" in err:
            err["ctx"] = {k: str(v) for k, v in err["ctx"].items()}
        err.pop("input", None)
        cleaned.append(err)
    return cleaned


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.get("/health")
async def health():
    return {"status": "healthy", "service": "booth-ingest", "version": "0.1.0"}


app.include_router(jobs.router)
app.include_router(webhooks.router)
app.include_router(sources.router)
app.include_router(metrics.router)
