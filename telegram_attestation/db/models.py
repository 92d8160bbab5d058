"""Peewee ORM models for the attestation database."""

from __future__ import annotations

import datetime as _dt
from typing import Any

import peewee

from telegram_attestation.core.time_utils import UTC

# A proxy that will be initialised with the concrete database instance at runtime.
database_proxy: peewee.Database = peewee.DatabaseProxy()


def _utcnow() -> _dt.datetime:
    """Naive UTC now; SQLite round-trips naive datetimes losslessly."""
    return _dt.datetime.now(UTC).replace(tzinfo=None)


class BaseModel(peewee.Model):
    """Base Peewee model bound to the lazily initialised database proxy."""

    def save(self, *args: Any, **kwargs: Any) -> int:
        if hasattr(self, "updated_at"):
            self.updated_at = _utcnow()
        return super().save(*args, **kwargs)

    class Meta:
        database = database_proxy
        legacy_table_names = False


class AttestationSession(BaseModel):
    token = peewee.TextField(unique=True)
    device_address = peewee.TextField(unique=True)
    wallet_address = peewee.TextField(null=True)
    created_at = peewee.DateTimeField(default=_utcnow)
    expires_at = peewee.DateTimeField()

    class Meta:
        table_name = "attestation_sessions"


class AttestationOrder(BaseModel):
    user_id = peewee.BigIntegerField()
    username = peewee.TextField()
    address = peewee.TextField()
    status = peewee.TextField(default="pending")  # pending | attested
    unit = peewee.TextField(null=True)
    user_device_address = peewee.TextField(null=True)
    attested_at = peewee.DateTimeField(null=True)
    updated_at = peewee.DateTimeField(default=_utcnow)
    created_at = peewee.DateTimeField(default=_utcnow)

    class Meta:
        table_name = "attestation_orders"
        indexes = (
            (("user_id", "username", "address"), False),
            (("status",), False),
        )


ALL_MODELS: tuple[type[BaseModel], ...] = (AttestationSession, AttestationOrder)
