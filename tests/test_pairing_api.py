from datetime import UTC, datetime
from unittest.mock import AsyncMock

import peewee
import pytest
from fastapi.testclient import TestClient

from telegram_attestation.adapters.telegram import messages
from telegram_attestation.api.main import create_app
from telegram_attestation.domain.exceptions.domain_exceptions import (
    NotificationError,
    ResourceNotFoundError,
)
from telegram_attestation.domain.models.attestation import AttestationSession
from telegram_attestation.infrastructure.persistence.sqlite.repositories import (
    SqliteSessionStore,
)
from tests.conftest import DEVICE, WALLET, device_texts

SECRET = "pairing-secret-0123456789"


def _app(strategy, sessions, secret: str = ""):
    return TestClient(create_app(strategy, sessions, pairing_secret=secret))


def test_health():
    client = _app(AsyncMock(), AsyncMock())

    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["status"] == "healthy"
    assert response.headers["X-Correlation-ID"].startswith("api-")


def test_attestation_requested_drives_strategy():
    strategy = AsyncMock()
    client = _app(strategy, AsyncMock())

    response = client.post("/pairing/attestation-requested", json={"device_address": DEVICE})

    assert response.status_code == 200
    assert response.json()["success"] is True
    strategy.on_attestation_process_requested.assert_awaited_once_with(DEVICE)


def test_address_added_drives_strategy():
    strategy = AsyncMock()
    client = _app(strategy, AsyncMock())

    response = client.post(
        "/pairing/address-added",
        json={"device_address": DEVICE, "wallet_address": WALLET},
    )

    assert response.status_code == 200
    strategy.on_address_added.assert_awaited_once_with(DEVICE, WALLET)


def test_wallet_verified_binds_session_before_notifying():
    strategy = AsyncMock()
    sessions = AsyncMock()
    client = _app(strategy, sessions)

    response = client.post(
        "/pairing/wallet-verified",
        json={"device_address": DEVICE, "wallet_address": WALLET},
    )

    assert response.status_code == 200
    assert response.json()["data"]["session_bound"] is True
    sessions.set_session_wallet_address.assert_awaited_once_with(DEVICE, WALLET)
    strategy.wallet_address_verified.assert_awaited_once_with(DEVICE, WALLET)


def test_wallet_verified_with_invalid_address_skips_binding():
    strategy = AsyncMock()
    sessions = AsyncMock()
    client = _app(strategy, sessions)

    response = client.post(
        "/pairing/wallet-verified",
        json={"device_address": DEVICE, "wallet_address": "bogus"},
    )

    assert response.status_code == 200
    sessions.set_session_wallet_address.assert_not_awaited()
    strategy.wallet_address_verified.assert_awaited_once_with(DEVICE, "bogus")


def test_wallet_verified_without_session_still_reaches_strategy(strategy, sessions, notifier):
    sessions.set_session_wallet_address.side_effect = ResourceNotFoundError("no session")
    sessions.get_session.return_value = None
    client = _app(strategy, sessions)

    response = client.post(
        "/pairing/wallet-verified",
        json={"device_address": DEVICE, "wallet_address": WALLET},
    )

    assert response.status_code == 200
    assert response.json()["data"]["session_bound"] is False
    assert device_texts(notifier) == [messages.INVALID_SESSION]


def test_create_session_returns_token_and_expiry(db):
    client = _app(AsyncMock(), SqliteSessionStore(db))

    response = client.post("/pairing/sessions", json={"device_address": DEVICE})

    assert response.status_code == 200
    data = response.json()["data"]
    assert len(data["session_id"]) == 32
    assert data["device_address"] == DEVICE
    assert data["expires_at"].endswith("Z")


def test_create_session_passes_device_to_store():
    sessions = AsyncMock()
    sessions.create_session.return_value = AttestationSession(
        id="tok",
        device_address=DEVICE,
        expires_at=datetime(2030, 1, 1, tzinfo=UTC),
    )
    client = _app(AsyncMock(), sessions)

    response = client.post("/pairing/sessions", json={"device_address": DEVICE})

    sessions.create_session.assert_awaited_once_with(DEVICE)
    assert response.json()["data"] == {
        "session_id": "tok",
        "device_address": DEVICE,
        "expires_at": "2030-01-01T00:00:00Z",
    }


@pytest.mark.parametrize("device_address", ["", "A" * 32, "0" + "a" * 32])
def test_invalid_device_address_is_rejected(device_address):
    strategy = AsyncMock()
    client = _app(strategy, AsyncMock())

    response = client.post(
        "/pairing/attestation-requested", json={"device_address": device_address}
    )

    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "VALIDATION_ERROR"
    strategy.on_attestation_process_requested.assert_not_awaited()


def test_secret_header_is_enforced_when_configured():
    strategy = AsyncMock()
    client = _app(strategy, AsyncMock(), secret=SECRET)

    missing = client.post("/pairing/attestation-requested", json={"device_address": DEVICE})
    wrong = client.post(
        "/pairing/attestation-requested",
        json={"device_address": DEVICE},
        headers={"X-Pairing-Secret": "nope"},
    )
    ok = client.post(
        "/pairing/attestation-requested",
        json={"device_address": DEVICE},
        headers={"X-Pairing-Secret": SECRET},
    )

    assert missing.status_code == 401
    assert missing.json()["error"]["code"] == "UNAUTHORIZED"
    assert wrong.status_code == 401
    assert ok.status_code == 200
    strategy.on_attestation_process_requested.assert_awaited_once_with(DEVICE)


def test_health_does_not_require_secret():
    client = _app(AsyncMock(), AsyncMock(), secret=SECRET)

    assert client.get("/health").status_code == 200


def test_device_relay_failure_maps_to_bad_gateway():
    strategy = AsyncMock()
    strategy.on_attestation_process_requested.side_effect = NotificationError("hub down")
    client = _app(strategy, AsyncMock())

    response = client.post("/pairing/attestation-requested", json={"device_address": DEVICE})

    assert response.status_code == 502
    body = response.json()
    assert body["error"]["code"] == "EXTERNAL_API_ERROR"
    assert body["error"]["retryable"] is True


def test_database_failure_maps_to_service_unavailable():
    sessions = AsyncMock()
    sessions.create_session.side_effect = peewee.OperationalError("disk I/O error")
    client = _app(AsyncMock(), sessions)

    response = client.post("/pairing/sessions", json={"device_address": DEVICE})

    assert response.status_code == 503
    assert response.json()["error"]["code"] == "DATABASE_ERROR"
