"""SQLite repository adapters.

This package contains the session and order stores implemented on top of
SQLite/Peewee.
"""

from .attestation_order_repository import SqliteAttestationOrderStore
from .session_repository import SqliteSessionStore

__all__ = [
    "SqliteAttestationOrderStore",
    "SqliteSessionStore",
]
