from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, Text, text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


# ---------------------------
# Core: consents
# ---------------------------


class Consent(Base):
    """Local bookkeeping row for an upstream consent.

    The upstream aggregator owns the authoritative lifecycle status. ``status``
    here is the value recorded at creation time (``0`` = pending) and is never
    updated locally; live status is joined in at read time.
    """

    __tablename__ = "consents"

    # Opaque identifier issued by the upstream aggregator.
    consent_id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    # Upstream-defined integer enumeration; treated as opaque.
    status: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("now()")
    )

    __table_args__ = (Index("ix_consents_created_at", "created_at"),)


__all__ = [
    "Base",
    "Consent",
]
