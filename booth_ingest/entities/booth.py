"""
Entity for persisted booth locations.

Booths are created when an extracted entity matches nothing on
``identity_key`` and merged (never destructively) when it does.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from booth_ingest.entities.base import Base, utcnow


class Booth(Base):
    __tablename__ = "booths"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    # Not unique: the legacy dataset already holds some same-key duplicates.
    identity_key: Mapped[str] = mapped_column(String(512), nullable=False, index=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str | None] = mapped_column(String(512), nullable=True)
    city: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    state: Mapped[str | None] = mapped_column(String(100), nullable=True)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    postal_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")

    machine_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    machine_model: Mapped[str | None] = mapped_column(String(100), nullable=True)
    cost: Mapped[str | None] = mapped_column(String(100), nullable=True)
    hours: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    website: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    photo_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)

    # Attribution: which sources (and pages) reported this booth.
    source_names: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    source_urls: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    provenance_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )
