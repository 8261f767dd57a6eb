"""Anthropic Messages client used by the extraction step."""

from __future__ import annotations

import logging

import anthropic
from pydantic import ValidationError

from booth_ingest.core.exceptions import CompletionServiceError
from booth_ingest.dtos.provider_dto import CompletionResponse

logger = logging.getLogger(__name__)


class CompletionClient:
    def __init__(
        self,
        api_key: str | None,
        model: str,
        base_url: str = "https://api.anthropic.com",
        max_tokens: int = 4096,
        timeout: float = 120,
        client: anthropic.Anthropic | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._client = client

    @property
    def client(self) -> anthropic.Anthropic:
        """Lazy initialization of the Anthropic client."""
        if not self.api_key:
            raise CompletionServiceError("ANTHROPIC_API_KEY is not configured")
        if self._client is None:
            self._client = anthropic.Anthropic(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.timeout,
            )
        return self._client

    def complete(self, prompt: str) -> str:
        """
        Send a single-turn prompt and return the reply text.

        Raises:
            CompletionServiceError: missing key, API failure, or a response
                that is not a Messages payload
        """
        client = self.client
        try:
            message = client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIStatusError as exc:
            raise CompletionServiceError(
                f"Completion provider returned {exc.status_code}: {str(exc)[:300]}",
                status_code=exc.status_code,
            ) from exc
        except anthropic.APIError as exc:
            raise CompletionServiceError(f"Completion request failed: {exc}") from exc

        raw = message.model_dump() if hasattr(message, "model_dump") else message
        try:
            parsed = CompletionResponse.model_validate(raw)
        except ValidationError as exc:
            raise CompletionServiceError(f"Unexpected completion response: {exc}") from exc

        if parsed.stop_reason == "max_tokens":
            logger.warning("Completion hit max_tokens; reply may be truncated")

        return parsed.text
