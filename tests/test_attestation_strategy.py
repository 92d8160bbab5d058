import base64

import pytest

from telegram_attestation.adapters.telegram import messages
from telegram_attestation.adapters.telegram.attestation_strategy import (
    TelegramAttestationStrategy,
)
from telegram_attestation.core.deep_link import decode_start_payload, encode_start_payload
from telegram_attestation.core.wallet_address import ObyteAddressValidator
from telegram_attestation.domain.exceptions.domain_exceptions import (
    AttestationIssuanceError,
    NotificationError,
)
from telegram_attestation.domain.models.attestation import (
    AttestationData,
    AttestationOrder,
    AttestationStatus,
)
from tests.conftest import (
    DEVICE,
    OTHER_WALLET,
    SESSION_TOKEN,
    WALLET,
    FakeMessage,
    device_texts,
)

ALICE = AttestationData(user_id=42, username="alice")


def _pending_order(address: str = WALLET, device_address: str | None = DEVICE):
    return AttestationOrder(
        id=1,
        user_id=42,
        username="alice",
        address=address,
        device_address=device_address,
    )


def _valid_payload() -> str:
    return encode_start_payload(DEVICE, SESSION_TOKEN)


def _assert_no_order_mutation(orders, issuer):
    orders.create_attestation_order.assert_not_awaited()
    orders.update_wallet_address_in_attestation_order.assert_not_awaited()
    orders.update_device_address_in_attestation_order.assert_not_awaited()
    orders.update_unit_and_change_status.assert_not_awaited()
    issuer.post_attestation_profile.assert_not_awaited()


# ---- construction ------------------------------------------------------------


@pytest.mark.parametrize(("token", "domain"), [("", "https://x.org"), ("123:abc", "")])
def test_constructor_requires_token_and_domain(token, domain, sessions, orders, notifier, issuer):
    with pytest.raises(ValueError):
        TelegramAttestationStrategy(
            token=token,
            domain=domain,
            bot_username="bot",
            sessions=sessions,
            orders=orders,
            validator=ObyteAddressValidator(),
            notifier=notifier,
            issuer=issuer,
        )


# ---- device-side events ------------------------------------------------------


@pytest.mark.asyncio
async def test_wallet_verified_sends_confirmation_and_deep_link(strategy, notifier):
    await strategy.wallet_address_verified(DEVICE, WALLET)

    texts = device_texts(notifier)
    assert texts[0] == messages.wallet_verified(WALLET)
    assert texts[1].startswith(
        "Please continue in telegram: \n https://t.me/obyte_attest_bot?start="
    )

    link_payload = texts[1].split("?start=", 1)[1]
    decoded = decode_start_payload(link_payload)
    assert decoded.device_address == DEVICE
    assert decoded.session_id == SESSION_TOKEN[:4]
    for call in notifier.send_message_to_device.await_args_list:
        assert call.args[0] == DEVICE
        assert call.args[1] == "text"


@pytest.mark.asyncio
async def test_wallet_verified_rejects_invalid_address(strategy, notifier, sessions):
    await strategy.wallet_address_verified(DEVICE, "not-an-address")

    assert device_texts(notifier) == [messages.INVALID_WALLET_ADDRESS]
    sessions.get_session.assert_not_awaited()


@pytest.mark.asyncio
async def test_wallet_verified_without_session_reports_invalid_session(
    strategy, notifier, sessions
):
    sessions.get_session.return_value = None

    await strategy.wallet_address_verified(DEVICE, WALLET)

    assert device_texts(notifier) == [messages.INVALID_SESSION]


@pytest.mark.asyncio
async def test_wallet_verified_propagates_notifier_failure(strategy, notifier):
    notifier.send_message_to_device.side_effect = NotificationError("hub down")

    with pytest.raises(NotificationError):
        await strategy.wallet_address_verified(DEVICE, WALLET)


@pytest.mark.asyncio
async def test_attestation_requested_without_session_sends_welcome_then_prompt(
    strategy, notifier, sessions
):
    sessions.get_session.return_value = None

    await strategy.on_attestation_process_requested(DEVICE)

    assert device_texts(notifier) == [messages.WELCOME, messages.ASK_ADDRESS]


@pytest.mark.asyncio
async def test_attestation_requested_with_session_only_prompts(strategy, notifier):
    await strategy.on_attestation_process_requested(DEVICE)

    assert device_texts(notifier) == [messages.ASK_ADDRESS]


@pytest.mark.asyncio
async def test_address_added_asks_for_signature(strategy, notifier):
    await strategy.on_address_added(DEVICE, WALLET)

    (text,) = device_texts(notifier)
    assert WALLET in text
    assert f"sign-message-request:I own the address {WALLET}" in text


def test_view_attestation_data_links_wallet_on_explorer(strategy):
    text = strategy.view_attestation_data(42, "alice<b>", WALLET)

    assert "ID: 42" in text
    assert "Username: alice&lt;b&gt;" in text
    assert f"<a href='https://explorer.obyte.org/{WALLET}'>{WALLET}</a>" in text


def test_view_attestation_data_without_address(strategy):
    text = strategy.view_attestation_data(None, None, None)

    assert "ID: N/A" in text
    assert "Username: N/A" in text
    assert "Wallet address" not in text


# ---- /start flow -------------------------------------------------------------


@pytest.mark.asyncio
async def test_start_happy_path_attests_and_notifies(strategy, orders, issuer, sessions, notifier):
    orders.get_attestation_order.side_effect = [None, _pending_order()]
    message = FakeMessage(_valid_payload())

    await strategy.handle_start(message)

    assert message.texts[0] == messages.WELCOME
    assert message.replies[1][1] == "HTML"
    assert "Username: alice" in message.texts[1]
    assert message.replies[2] == (messages.attested_chat("UNIT42", testnet=False), "HTML")
    assert 'href="https://explorer.obyte.org/UNIT42"' in message.texts[2]
    assert message.deleted is True

    orders.create_attestation_order.assert_awaited_once_with(ALICE, WALLET, is_pending=True)
    orders.update_device_address_in_attestation_order.assert_awaited_once_with(1, DEVICE)
    issuer.post_attestation_profile.assert_awaited_once_with(WALLET, ALICE)
    orders.update_unit_and_change_status.assert_awaited_once_with(ALICE, WALLET, "UNIT42")
    sessions.delete_session.assert_awaited_once_with(DEVICE)
    assert device_texts(notifier) == [messages.attested_device("UNIT42", testnet=False)]


@pytest.mark.asyncio
async def test_start_on_testnet_links_testnet_explorer(strategy, orders):
    strategy.testnet = True
    orders.get_attestation_order.side_effect = [None, _pending_order()]
    message = FakeMessage(_valid_payload())

    await strategy.handle_start(message)

    assert "https://testnetexplorer.obyte.org/UNIT42" in message.texts[-1]


@pytest.mark.asyncio
async def test_start_with_undecodable_payload_only_reports_error(
    strategy, sessions, orders, issuer
):
    message = FakeMessage("%%%not-base64%%%")

    await strategy.handle_start(message)

    assert message.texts == [messages.PAYLOAD_ERROR]
    sessions.get_session.assert_not_awaited()
    _assert_no_order_mutation(orders, issuer)


@pytest.mark.asyncio
async def test_start_with_malformed_escape_in_payload_only_reports_error(
    strategy, sessions, orders, issuer
):
    message = FakeMessage(base64.b64encode(b"a=%ZZ").decode())

    await strategy.handle_start(message)

    assert message.texts == [messages.PAYLOAD_ERROR]
    sessions.get_session.assert_not_awaited()
    orders.get_attestation_order.assert_not_awaited()
    _assert_no_order_mutation(orders, issuer)


@pytest.mark.asyncio
async def test_start_without_username_asks_to_set_one(strategy, issuer):
    message = FakeMessage(_valid_payload(), username=None)

    await strategy.handle_start(message)

    assert message.texts == [messages.WELCOME, messages.USERNAME_NOT_FOUND]
    issuer.post_attestation_profile.assert_not_awaited()


@pytest.mark.asyncio
async def test_start_without_payload_reports_invalid_session(strategy, orders):
    message = FakeMessage()

    await strategy.handle_start(message)

    assert message.texts == [messages.WELCOME, messages.INVALID_SESSION]
    orders.get_attestation_order.assert_not_awaited()


@pytest.mark.asyncio
async def test_start_with_expired_session_reports_invalid_session(strategy, sessions):
    sessions.get_session.return_value = None
    message = FakeMessage(_valid_payload())

    await strategy.handle_start(message)

    assert message.texts == [messages.WELCOME, messages.INVALID_SESSION]


@pytest.mark.asyncio
async def test_start_with_mismatched_session_prefix_reports_invalid_session(
    strategy, orders, issuer
):
    message = FakeMessage(encode_start_payload(DEVICE, "ffff0000"))

    await strategy.handle_start(message)

    assert message.texts == [messages.WELCOME, messages.INVALID_SESSION]
    orders.get_attestation_order.assert_not_awaited()
    _assert_no_order_mutation(orders, issuer)


@pytest.mark.asyncio
async def test_start_without_verified_wallet_sends_pairing_instructions(strategy, sessions):
    sessions.get_session_wallet_address.return_value = None
    message = FakeMessage(_valid_payload())

    await strategy.handle_start(message)

    assert message.replies[-1] == (
        messages.pairing_instructions("https://attest.example.org"),
        "HTML",
    )
    assert "<a href='https://attest.example.org/pairing'>" in message.texts[-1]


@pytest.mark.asyncio
async def test_start_when_already_attested_skips_issuer(strategy, orders, issuer, notifier):
    orders.get_attestation_order.return_value = AttestationOrder(
        id=7,
        user_id=42,
        username="alice",
        address=WALLET,
        status=AttestationStatus.ATTESTED,
        unit="OLDUNIT",
    )
    message = FakeMessage(_valid_payload())

    await strategy.handle_start(message)

    assert message.texts[-1] == messages.ALREADY_ATTESTED
    issuer.post_attestation_profile.assert_not_awaited()
    orders.create_attestation_order.assert_not_awaited()
    (device_text,) = device_texts(notifier)
    assert "https://explorer.obyte.org/OLDUNIT" in device_text
    assert messages.ATTEST_COMMAND in device_text


@pytest.mark.asyncio
async def test_start_reuses_pending_order_and_updates_its_address(strategy, orders):
    orders.get_attestation_order.side_effect = [
        _pending_order(address=OTHER_WALLET),
        _pending_order(),
    ]
    message = FakeMessage(_valid_payload())

    await strategy.handle_start(message)

    orders.create_attestation_order.assert_not_awaited()
    orders.update_wallet_address_in_attestation_order.assert_awaited_once_with(1, WALLET)
    assert message.texts[-1] == messages.attested_chat("UNIT42", testnet=False)


@pytest.mark.asyncio
async def test_start_issuer_failure_reports_unknown_error(strategy, orders, issuer, sessions):
    orders.get_attestation_order.side_effect = [None, _pending_order()]
    issuer.post_attestation_profile.side_effect = AttestationIssuanceError("issuer down")
    message = FakeMessage(_valid_payload())

    await strategy.handle_start(message)

    assert message.texts[-1] == messages.UNKNOWN_ERROR
    orders.update_unit_and_change_status.assert_not_awaited()
    sessions.delete_session.assert_not_awaited()


@pytest.mark.asyncio
async def test_start_device_notification_failure_does_not_break_chat_reply(
    strategy, orders, notifier
):
    orders.get_attestation_order.side_effect = [None, _pending_order()]
    notifier.send_message_to_device.side_effect = NotificationError("hub down")
    message = FakeMessage(_valid_payload())

    await strategy.handle_start(message)

    assert message.texts[-1] == messages.attested_chat("UNIT42", testnet=False)


@pytest.mark.asyncio
async def test_start_tolerates_undeletable_message(strategy, orders):
    orders.get_attestation_order.side_effect = [None, _pending_order()]
    message = FakeMessage(_valid_payload())

    async def _refuse_delete():
        raise RuntimeError("message can't be deleted")

    message.delete = _refuse_delete

    await strategy.handle_start(message)

    assert message.texts[-1] == messages.attested_chat("UNIT42", testnet=False)


@pytest.mark.asyncio
async def test_start_uses_custom_reply_func(sessions, orders, notifier, issuer):
    sent = []

    async def _reply(message, text, *, parse_mode=None):
        sent.append((text, parse_mode))

    strategy = TelegramAttestationStrategy(
        token="123:abc",
        domain="https://attest.example.org",
        bot_username="bot",
        sessions=sessions,
        orders=orders,
        validator=ObyteAddressValidator(),
        notifier=notifier,
        issuer=issuer,
        reply_func=_reply,
    )

    await strategy.handle_start(FakeMessage("%%%"))

    assert sent == [(messages.PAYLOAD_ERROR, None)]
