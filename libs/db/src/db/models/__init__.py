"""Shared SQLAlchemy models registry for the workspace database.

Currently includes the consent bookkeeping model used by ``accounting_connect``.
"""

from .consents import Base, Consent

__all__ = [
    "Base",
    "Consent",
]
