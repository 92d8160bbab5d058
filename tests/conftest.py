"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

import pytest

from telegram_attestation.adapters.telegram.attestation_strategy import (
    TelegramAttestationStrategy,
)
from telegram_attestation.core.wallet_address import ObyteAddressValidator
from telegram_attestation.db.session import DatabaseSessionManager
from telegram_attestation.domain.models.attestation import AttestationSession

BOT_TOKEN = "1000000000:TESTTOKENPLACEHOLDER1234567890ABC"
DEVICE = "0" + "D" * 32
WALLET = "A" * 32
OTHER_WALLET = "B" * 32
SESSION_TOKEN = "abcd1234ef567890abcd1234ef567890"


class FakeMessage:
    """Minimal stand-in for a pyrogram ``Message`` in a private chat."""

    def __init__(
        self,
        payload: str | None = None,
        *,
        user_id: int | None = 42,
        username: str | None = "alice",
    ) -> None:
        self.command = ["start", payload] if payload is not None else ["start"]
        self.text = "/start" + (f" {payload}" if payload is not None else "")
        self.from_user = SimpleNamespace(id=user_id, username=username)
        self.replies: list[tuple[str, str | None]] = []
        self.deleted = False

    async def reply_text(self, text: str, parse_mode: Any = None) -> None:
        self.replies.append((text, parse_mode))

    async def delete(self) -> None:
        self.deleted = True

    @property
    def texts(self) -> list[str]:
        return [text for text, _ in self.replies]


def make_session(
    device_address: str = DEVICE,
    wallet_address: str | None = WALLET,
    token: str = SESSION_TOKEN,
) -> AttestationSession:
    return AttestationSession(
        id=token, device_address=device_address, wallet_address=wallet_address
    )


@pytest.fixture
def sessions() -> AsyncMock:
    store = AsyncMock()
    store.get_session.return_value = make_session()
    store.get_session_wallet_address.return_value = WALLET
    return store


@pytest.fixture
def orders() -> AsyncMock:
    store = AsyncMock()
    store.get_attestation_order.return_value = None
    store.create_attestation_order.return_value = 1
    return store


@pytest.fixture
def notifier() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def issuer() -> AsyncMock:
    client = AsyncMock()
    client.post_attestation_profile.return_value = "UNIT42"
    return client


@pytest.fixture
def strategy(sessions, orders, notifier, issuer) -> TelegramAttestationStrategy:
    return TelegramAttestationStrategy(
        token=BOT_TOKEN,
        domain="https://attest.example.org",
        bot_username="obyte_attest_bot",
        sessions=sessions,
        orders=orders,
        validator=ObyteAddressValidator(),
        notifier=notifier,
        issuer=issuer,
    )


@pytest.fixture
def db(tmp_path):
    manager = DatabaseSessionManager(str(tmp_path / "attestation.db"))
    manager.migrate()
    yield manager
    manager.close()


def device_texts(notifier: AsyncMock) -> list[str]:
    return [call.args[2] for call in notifier.send_message_to_device.await_args_list]
