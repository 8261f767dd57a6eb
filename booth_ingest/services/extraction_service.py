"""
Service for turning crawled page content into booth candidates.

Each page becomes one completion call: the prompt states the output shape
(a JSON array with a fixed field set), the extraction rules, and the page
text cut to ``EXTRACTION_MAX_CHARS``. The reply is free text and is treated
as untrusted: the first ``[`` .. last ``]`` span is parsed as JSON, each item
is validated through ``ExtractedBooth``, and anything unusable is dropped.

A failed page (provider error, no array, bad JSON) yields zero entities and
never aborts the job. Calls are spaced by the shared rate limiter.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable
from typing import Any

from bs4 import BeautifulSoup
from pydantic import ValidationError

from booth_ingest.core.completion_client import CompletionClient
from booth_ingest.core.exceptions import CompletionServiceError, ExtractionParseError
from booth_ingest.core.rate_limiter import MinIntervalRateLimiter
from booth_ingest.dtos.booth_dto import ExtractedBooth
from booth_ingest.services.job_state import PagePayload

logger = logging.getLogger(__name__)

JSON_ARRAY = re.compile(r"\[[\s\S]*\]")

OUTPUT_FIELDS = (
    "name",
    "address",
    "city",
    "state",
    "country",
    "postal_code",
    "latitude",
    "longitude",
    "status",
    "machine_type",
    "machine_model",
    "cost",
    "hours",
    "description",
    "website",
    "photo_url",
)

SOURCE_HINTS = {
    "directory": "This is a directory of photo booths. Extract every listing with complete details.",
    "city_guide": "This is a city guide article. Look for recommended venues and the addresses mentioned in the text.",
    "blog": "This is a blog post. Extract any photo booth locations mentioned, including ones from personal experiences.",
    "community": "This is community content (forum or social post). Extract user-reported locations.",
    "operator": "This is a photo booth operator's site. Extract all of their booth locations.",
}

RULES = """RULES:
- Only include real, physical analog photo booth locations.
- Every item MUST have a name and a location hint (street address, city or country).
- Include every booth mentioned; do not stop after the first few.
- Only give latitude/longitude when the page states them explicitly. Never guess coordinates.
- status is "active" if the booth is operating, "closed" if the page says it was removed or closed.
- Use null for anything the page does not state."""


def page_text(page: PagePayload) -> str:
    """Plain text for a buffered page; HTML is stripped down to its text."""
    if page.content_format == "html":
        soup = BeautifulSoup(page.content, "lxml")
        for tag in soup(["script", "style", "noscript"]):
            tag.decompose()
        return soup.get_text("\n", strip=True)
    return page.content


def build_prompt(
    content: str,
    max_chars: int,
    source_name: str | None = None,
    extractor_type: str | None = None,
) -> str:
    truncated = content[:max_chars]
    example = json.dumps([{f: "..." for f in OUTPUT_FIELDS}])

    intro = "Extract ALL analog photo booth locations from the content below"
    if source_name:
        intro += f" (source: {source_name})"
    parts = [intro + ".", ""]

    hint = SOURCE_HINTS.get(extractor_type or "")
    if hint:
        parts += [hint, ""]

    parts += [
        "Return ONLY a JSON array of objects with exactly these keys:",
        example,
        "",
        RULES,
        "",
        "CONTENT:",
        truncated,
    ]
    return "\n".join(parts)


def parse_json_array(text: str) -> list[Any]:
    """
    Find and decode the JSON array inside a free-text completion.

    Raises:
        ExtractionParseError: no array-shaped span, invalid JSON, or the span
            decodes to something other than a list
    """
    match = JSON_ARRAY.search(text or "")
    if not match:
        raise ExtractionParseError("No JSON array found in completion")
    try:
        decoded = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise ExtractionParseError(f"Invalid JSON in completion: {exc}") from exc
    if not isinstance(decoded, list):
        raise ExtractionParseError("Completion JSON is not an array")
    return decoded


def parse_completion(text: str, source_url: str | None = None) -> list[ExtractedBooth]:
    """Validated booths from a completion; empty on any parse failure."""
    try:
        items = parse_json_array(text)
    except ExtractionParseError as exc:
        logger.warning("%s; treating page as empty", exc)
        return []

    booths: list[ExtractedBooth] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            booth = ExtractedBooth.model_validate({**item, "source_url": source_url})
        except ValidationError:
            logger.debug("Dropping extracted item without a usable name: %r", item)
            continue
        booths.append(booth)

    dropped = len(items) - len(booths)
    if dropped:
        logger.info("Dropped %d of %d extracted items", dropped, len(items))
    return booths


class ExtractionService:
    def __init__(
        self,
        completion_client: CompletionClient,
        rate_limiter: MinIntervalRateLimiter,
        max_chars: int = 50000,
    ) -> None:
        self.completion_client = completion_client
        self.rate_limiter = rate_limiter
        self.max_chars = max_chars

    def extract_page(
        self,
        page: PagePayload,
        source_name: str | None = None,
        extractor_type: str | None = None,
    ) -> list[ExtractedBooth]:
        text = page_text(page)
        if not text.strip():
            logger.info("Page %s has no text; skipping extraction", page.url)
            return []

        prompt = build_prompt(text, self.max_chars, source_name, extractor_type)
        self.rate_limiter.wait()
        try:
            reply = self.completion_client.complete(prompt)
        except CompletionServiceError as exc:
            logger.error("Extraction call failed for %s: %s", page.url, exc)
            return []

        booths = parse_completion(reply, source_url=page.url)
        logger.info("Extracted %d booths from %s", len(booths), page.url)
        return booths

    def extract_pages(
        self,
        pages: Iterable[PagePayload],
        source_name: str | None = None,
        extractor_type: str | None = None,
    ) -> list[ExtractedBooth]:
        results: list[ExtractedBooth] = []
        for page in pages:
            results.extend(self.extract_page(page, source_name, extractor_type))
        return results
