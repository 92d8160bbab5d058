from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import uvicorn

from telegram_attestation.adapters.obyte.attestation_issuer import AttestationIssuerClient
from telegram_attestation.adapters.obyte.device_notifier import DeviceHubNotifier
from telegram_attestation.adapters.telegram.attestation_strategy import (
    TelegramAttestationStrategy,
)
from telegram_attestation.adapters.telegram.telegram_client import TelegramClient, safe_reply
from telegram_attestation.api.main import create_app
from telegram_attestation.core.logging_utils import setup_json_logging
from telegram_attestation.core.wallet_address import ObyteAddressValidator
from telegram_attestation.infrastructure.persistence.sqlite.repositories import (
    SqliteAttestationOrderStore,
    SqliteSessionStore,
)

if TYPE_CHECKING:
    from telegram_attestation.config import AppConfig
    from telegram_attestation.db.session import DatabaseSessionManager

SESSION_PURGE_INTERVAL_SEC = 600

logger = logging.getLogger(__name__)


@dataclass
class TelegramBot:
    """Wires config, storage, Obyte clients and the attestation strategy."""

    cfg: AppConfig
    db: DatabaseSessionManager

    def __post_init__(self) -> None:
        setup_json_logging(self.cfg.runtime.log_level, log_file=self.cfg.runtime.log_file)
        logger.info(
            "bot_init",
            extra={
                "db_path": self.cfg.runtime.db_path,
                "log_level": self.cfg.runtime.log_level,
                "testnet": self.cfg.runtime.testnet,
            },
        )

        obyte = self.cfg.obyte
        self.sessions = SqliteSessionStore(self.db, ttl_sec=self.cfg.runtime.session_ttl_sec)
        self.orders = SqliteAttestationOrderStore(self.db)
        self.validator = ObyteAddressValidator()
        self.notifier = DeviceHubNotifier(
            obyte.device_hub_url,
            obyte.device_hub_token,
            obyte.http_timeout_sec,
            max_retries=obyte.http_max_retries,
        )
        self.issuer = AttestationIssuerClient(
            obyte.issuer_url,
            obyte.issuer_token,
            obyte.http_timeout_sec,
        )

        self.strategy = TelegramAttestationStrategy(
            token=self.cfg.telegram.bot_token,
            domain=self.cfg.telegram.domain,
            bot_username=self.cfg.telegram.bot_username,
            sessions=self.sessions,
            orders=self.orders,
            validator=self.validator,
            notifier=self.notifier,
            issuer=self.issuer,
            testnet=self.cfg.runtime.testnet,
            reply_func=safe_reply,
        )
        self.telegram_client = TelegramClient(self.cfg.telegram)

    def build_pairing_app(self):
        return create_app(
            self.strategy,
            self.sessions,
            validator=self.validator,
            pairing_secret=self.cfg.runtime.pairing_api_secret,
        )

    async def start(self) -> None:
        """Start the bot and, when enabled, the pairing API."""
        tasks: list[asyncio.Task[None]] = []
        async with contextlib.AsyncExitStack() as stack:
            await stack.enter_async_context(self.notifier)
            await stack.enter_async_context(self.issuer)

            tasks.append(
                asyncio.create_task(self._run_session_purge_loop(), name="session_purge_loop")
            )
            if self.cfg.runtime.pairing_api_enabled:
                tasks.append(asyncio.create_task(self._serve_pairing_api(), name="pairing_api"))

            try:
                await self.telegram_client.start(self.strategy.handle_start)
            finally:
                for task in tasks:
                    task.cancel()
                for task in tasks:
                    with contextlib.suppress(asyncio.CancelledError):
                        await task
                self.db.close()

    async def _serve_pairing_api(self) -> None:
        runtime = self.cfg.runtime
        config = uvicorn.Config(
            self.build_pairing_app(),
            host=runtime.pairing_api_host,
            port=runtime.pairing_api_port,
            log_config=None,
            access_log=False,
        )
        server = uvicorn.Server(config)
        logger.info(
            "pairing_api_started",
            extra={"host": runtime.pairing_api_host, "port": runtime.pairing_api_port},
        )
        await server.serve()

    async def _run_session_purge_loop(self) -> None:
        while True:
            try:
                await self.sessions.purge_expired()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.warning("session_purge_failed", extra={"error": str(exc)})
            await asyncio.sleep(SESSION_PURGE_INTERVAL_SEC)
