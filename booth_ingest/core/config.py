from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    value = os.getenv(name, default)
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./booth_ingest.db")
    DEBUG: bool = _env_flag("DEBUG", "false")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Base URL the crawl provider can reach us on; webhooks are built from it.
    PUBLIC_BASE_URL: str = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000")

    FIRECRAWL_API_KEY: str | None = os.getenv("FIRECRAWL_API_KEY")
    FIRECRAWL_BASE_URL: str = os.getenv("FIRECRAWL_BASE_URL", "https://api.firecrawl.dev")
    FIRECRAWL_WAIT_FOR_MS: int = int(os.getenv("FIRECRAWL_WAIT_FOR_MS", "8000"))

    ANTHROPIC_API_KEY: str | None = os.getenv("ANTHROPIC_API_KEY")
    ANTHROPIC_BASE_URL: str = os.getenv("ANTHROPIC_BASE_URL", "https://api.anthropic.com")
    ANTHROPIC_MODEL: str = os.getenv("ANTHROPIC_MODEL", "claude-sonnet-4-5-20250929")
    COMPLETION_MAX_TOKENS: int = int(os.getenv("COMPLETION_MAX_TOKENS", "4096"))

    COMPLETION_REQUEST_TIMEOUT: float = float(
        os.getenv("COMPLETION_REQUEST_TIMEOUT", "120")
    )

    DEFAULT_PAGE_LIMIT: int = int(os.getenv("DEFAULT_PAGE_LIMIT", "50"))
    MAX_PAGE_LIMIT: int = int(os.getenv("MAX_PAGE_LIMIT", "500"))

    # Page text beyond this many characters is cut before prompting.
    EXTRACTION_MAX_CHARS: int = int(os.getenv("EXTRACTION_MAX_CHARS", "50000"))
    # Minimum spacing between consecutive completion calls (provider quota).
    EXTRACTION_DELAY_SECONDS: float = float(os.getenv("EXTRACTION_DELAY_SECONDS", "1.0"))

    JOB_GRACE_PERIOD_MINUTES: int = int(os.getenv("JOB_GRACE_PERIOD_MINUTES", "30"))
    RECRAWL_COOLDOWN_HOURS: int = int(os.getenv("RECRAWL_COOLDOWN_HOURS", "24"))

    @property
    def webhook_url(self) -> str:
        return f"{self.PUBLIC_BASE_URL.rstrip('/')}/webhooks/crawl"


settings = Settings()
