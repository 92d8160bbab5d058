"""SQLite implementation of the pairing session store.

Sessions are keyed by device address (one live session per device). Expired
rows read as absent and are removed on the next access.
"""

from __future__ import annotations

import datetime as dt
import logging
import secrets

from telegram_attestation.core.time_utils import UTC, ensure_utc
from telegram_attestation.db.models import AttestationSession as SessionRow
from telegram_attestation.domain.exceptions.domain_exceptions import ResourceNotFoundError
from telegram_attestation.domain.models.attestation import AttestationSession
from telegram_attestation.infrastructure.persistence.sqlite.base import SqliteBaseRepository

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TTL_SEC = 3600


def _now() -> dt.datetime:
    return dt.datetime.now(UTC).replace(tzinfo=None)


def _to_domain(row: SessionRow) -> AttestationSession:
    return AttestationSession(
        id=row.token,
        device_address=row.device_address,
        wallet_address=row.wallet_address,
        created_at=ensure_utc(row.created_at),
        expires_at=ensure_utc(row.expires_at),
    )


def _live_row(device_address: str) -> SessionRow | None:
    row = SessionRow.get_or_none(SessionRow.device_address == device_address)
    if row is None:
        return None
    if row.expires_at <= _now():
        row.delete_instance()
        return None
    return row


class SqliteSessionStore(SqliteBaseRepository):
    """Pairing sessions persisted in ``attestation_sessions``."""

    def __init__(self, session_manager, *, ttl_sec: int = DEFAULT_SESSION_TTL_SEC) -> None:
        super().__init__(session_manager)
        self._ttl_sec = ttl_sec

    async def create_session(
        self, device_address: str, *, ttl_sec: int | None = None
    ) -> AttestationSession:
        """Start a fresh session for a device, replacing any previous one."""
        ttl = ttl_sec or self._ttl_sec

        def _create() -> AttestationSession:
            SessionRow.delete().where(SessionRow.device_address == device_address).execute()
            now = _now()
            row = SessionRow.create(
                token=secrets.token_hex(16),
                device_address=device_address,
                created_at=now,
                expires_at=now + dt.timedelta(seconds=ttl),
            )
            return _to_domain(row)

        session = await self._execute(_create, operation_name="create_session")
        logger.info("session_created", extra={"ttl_sec": ttl})
        return session

    async def get_session(self, device_address: str | None) -> AttestationSession | None:
        if not device_address:
            return None

        def _get() -> AttestationSession | None:
            row = _live_row(device_address)
            return _to_domain(row) if row else None

        return await self._execute(_get, operation_name="get_session")

    async def get_session_wallet_address(self, device_address: str | None) -> str | None:
        session = await self.get_session(device_address)
        return session.wallet_address if session else None

    async def set_session_wallet_address(self, device_address: str, wallet_address: str) -> None:
        """Bind a verified wallet address to the device's live session.

        Raises:
            ResourceNotFoundError: The device has no live session.
        """

        def _update() -> bool:
            row = _live_row(device_address)
            if row is None:
                return False
            row.wallet_address = wallet_address
            row.save()
            return True

        updated = await self._execute(_update, operation_name="set_session_wallet_address")
        if not updated:
            raise ResourceNotFoundError(
                "No live session for device", {"device_address": device_address}
            )

    async def delete_session(self, device_address: str) -> None:
        def _delete() -> int:
            return SessionRow.delete().where(SessionRow.device_address == device_address).execute()

        await self._execute(_delete, operation_name="delete_session")

    async def purge_expired(self) -> int:
        def _purge() -> int:
            return SessionRow.delete().where(SessionRow.expires_at <= _now()).execute()

        removed = await self._execute(_purge, operation_name="purge_expired_sessions")
        if removed:
            logger.info("expired_sessions_purged", extra={"count": removed})
        return removed
