"""Consent store: local bookkeeping rows for upstream consents.

Rows are inserted once by the onboarding flow and read back newest first by
the listing endpoint. There is no update or delete path; the upstream system
owns the authoritative lifecycle status.
"""

from __future__ import annotations

from datetime import UTC, datetime

from db.models.consents import Consent
from sqlalchemy import select
from sqlalchemy.orm import Session

from .models import ConsentRecord

PENDING_STATUS = 0


def _row_to_record(row: Consent) -> ConsentRecord:
    return {
        "consent_id": row.consent_id,
        "name": row.name,
        "status": row.status,
        "created_at": row.created_at.isoformat() if row.created_at is not None else None,
    }


def insert_consent(
    session: Session,
    *,
    consent_id: str,
    name: str,
    status: int = PENDING_STATUS,
    created_at: datetime | None = None,
) -> ConsentRecord:
    """Insert a consent row and flush it (callers own the transaction scope)."""

    row = Consent(
        consent_id=consent_id,
        name=name,
        status=status,
        created_at=created_at or datetime.now(UTC),
    )
    session.add(row)
    session.flush()
    return _row_to_record(row)


def list_consents(session: Session) -> list[ConsentRecord]:
    """Return all consent rows ordered by creation time, newest first."""

    stmt = select(Consent).order_by(Consent.created_at.desc(), Consent.consent_id)
    return [_row_to_record(row) for row in session.scalars(stmt)]


__all__ = ["PENDING_STATUS", "insert_consent", "list_consents"]
