"""
Dedup policy: identity keys, completeness scoring and field merging.

Nothing in here touches the database, so merge-policy changes never need
to go near the write path in ``booth_upsert_service``.
"""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Mapping
from typing import Any

# Fields the merge may fill in or replace. name/city form the identity key
# and are never rewritten by a merge.
MERGE_FIELDS = (
    "address",
    "state",
    "country",
    "postal_code",
    "status",
    "machine_type",
    "machine_model",
    "cost",
    "hours",
    "description",
    "website",
    "photo_url",
)
COORDINATE_FIELDS = ("latitude", "longitude")

_WS = re.compile(r"\s+")
_SLUG_SUFFIX = re.compile(r"-\d+$")
_HAS_DIGIT = re.compile(r"\d")


def _norm(value: str | None) -> str:
    return _WS.sub(" ", (value or "").strip().lower())


def identity_key(name: str, city: str | None) -> str:
    """Lower-cased, whitespace-normalized ``name|city``."""
    return f"{_norm(name)}|{_norm(city)}"


def slugify(name: str, city: str | None = None) -> str:
    text = f"{name} {city or ''}"
    text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    text = text.lower().replace("'", "")
    slug = re.sub(r"[^a-z0-9]+", "-", text).strip("-")
    return slug[:200] or "booth"


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def completeness_score(fields: Mapping[str, Any], slug: str | None = None) -> float:
    """
    Score how complete a booth's data is; higher wins merges.

    Address quality dominates (a street number is the strongest signal that
    the address is real), then coordinates and descriptive content. A slug
    without a ``-N`` suffix marks the original record rather than a later
    duplicate.
    """
    score = 0.0
    address = fields.get("address") or ""
    name = fields.get("name") or ""

    if _present(fields.get("latitude")) and _present(fields.get("longitude")):
        score += 10
    if _present(fields.get("postal_code")):
        score += 3
    if _present(fields.get("state")):
        score += 2

    if address:
        if _HAS_DIGIT.search(address):
            score += 15
        if address.strip().lower() != name.strip().lower():
            score += 10
        score += min(len(address) / 10, 10)

    if _present(fields.get("description")):
        score += 20
    if _present(fields.get("photo_url")):
        score += 15
    if _present(fields.get("machine_type")):
        score += 8
    if _present(fields.get("machine_model")):
        score += 8
    if _present(fields.get("hours")):
        score += 7
    if _present(fields.get("cost")):
        score += 5

    if slug is not None and not _SLUG_SUFFIX.search(slug):
        score += 12

    return score


def merge_fields(
    existing: Mapping[str, Any],
    incoming: Mapping[str, Any],
    existing_slug: str | None = None,
    incoming_slug: str | None = None,
) -> dict[str, Any]:
    """
    Decide which fields of *existing* the *incoming* data should change.

    A field changes when the existing value is empty and the incoming one is
    not, or when both are set, differ, and the incoming side scores strictly
    higher. An incoming empty value never overwrites anything.

    Returns:
        Mapping of field name to new value (empty when nothing changes)
    """
    incoming_wins = completeness_score(incoming, incoming_slug) > completeness_score(
        existing, existing_slug
    )
    changes: dict[str, Any] = {}

    for field in MERGE_FIELDS:
        new = incoming.get(field)
        if not _present(new):
            continue
        old = existing.get(field)
        if not _present(old) or (incoming_wins and old != new):
            changes[field] = new

    # Coordinates move as a pair so a record never ends up with half of each.
    new_pair = tuple(incoming.get(f) for f in COORDINATE_FIELDS)
    old_pair = tuple(existing.get(f) for f in COORDINATE_FIELDS)
    if all(_present(v) for v in new_pair):
        if not all(_present(v) for v in old_pair) or (incoming_wins and old_pair != new_pair):
            changes.update(dict(zip(COORDINATE_FIELDS, new_pair)))

    return changes


def pick_merge_target(candidates: list[Any]) -> Any:
    """Highest-scoring existing record; oldest wins ties."""

    def _key(booth: Any) -> tuple[float, int]:
        fields = {f: getattr(booth, f, None) for f in ("name", *MERGE_FIELDS, *COORDINATE_FIELDS)}
        return (completeness_score(fields, booth.slug), -booth.id)

    return max(candidates, key=_key)
