"""Telegram attestation strategy.

Links a Telegram account to a verified Obyte wallet address:

1. The wallet-pairing flow verifies an address and the paired device gets a
   ``t.me`` deep link carrying its device address and a session prefix.
2. The user opens the link; ``/start`` decodes the payload, checks the
   session, finds or creates the attestation order and asks the issuer to
   post the profile.
3. Both the chat and the paired device receive the attestation unit.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from telegram_attestation.adapters.telegram import messages
from telegram_attestation.core.deep_link import (
    build_start_link,
    decode_start_payload,
    encode_start_payload,
    session_prefix,
)
from telegram_attestation.core.html_utils import escape_html, explorer_url
from telegram_attestation.core.logging_utils import generate_correlation_id, mask_address
from telegram_attestation.domain.exceptions.domain_exceptions import (
    InvalidSessionError,
    MissingIdentityError,
    PayloadDecodeError,
    WalletAddressNotFoundError,
)
from telegram_attestation.domain.models.attestation import AttestationData, StartPayload

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from telegram_attestation.protocols import (
        Issuer,
        Notifier,
        OrderStore,
        SessionStore,
        Validator,
    )

    ReplyFunc = Callable[..., Awaitable[Any]]

logger = logging.getLogger(__name__)

DEVICE_MESSAGE_TYPE = "text"


async def _reply_text(message: Any, text: str, *, parse_mode: str | None = None) -> None:
    if parse_mode is not None:
        await message.reply_text(text, parse_mode=parse_mode)
    else:
        await message.reply_text(text)


class TelegramAttestationStrategy:
    """Adapts the attestation workflow to Telegram chats."""

    def __init__(
        self,
        *,
        token: str,
        domain: str,
        bot_username: str,
        sessions: SessionStore,
        orders: OrderStore,
        validator: Validator,
        notifier: Notifier,
        issuer: Issuer,
        testnet: bool = False,
        reply_func: ReplyFunc | None = None,
    ) -> None:
        if not token:
            msg = "TelegramAttestationStrategy: Telegram bot token is required (BOT_TOKEN)"
            raise ValueError(msg)
        if not domain:
            msg = "TelegramAttestationStrategy: domain is required (DOMAIN)"
            raise ValueError(msg)

        self.token = token
        self.domain = domain
        self.bot_username = bot_username
        self.testnet = testnet
        self._sessions = sessions
        self._orders = orders
        self._validator = validator
        self._notifier = notifier
        self._issuer = issuer
        self._reply = reply_func or _reply_text

    # ---- device-side events -------------------------------------------------

    async def wallet_address_verified(self, device_address: str, wallet_address: str) -> None:
        if not self._validator.is_wallet_address(wallet_address):
            await self._send_to_device(device_address, messages.INVALID_WALLET_ADDRESS)
            return

        session = await self._sessions.get_session(device_address)
        if session is None:
            logger.warning(
                "wallet_verified_without_session",
                extra={"device_address": mask_address(device_address)},
            )
            await self._send_to_device(device_address, messages.INVALID_SESSION)
            return

        url = self.build_deep_link(device_address, session.id)
        await self._send_to_device(device_address, messages.wallet_verified(wallet_address))
        await self._send_to_device(device_address, messages.continue_in_telegram(url))
        logger.info(
            "deep_link_sent",
            extra={"device_address": mask_address(device_address)},
        )

    async def on_attestation_process_requested(self, device_address: str) -> None:
        session = await self._sessions.get_session(device_address)

        # Without a session the device gets the welcome text and the address
        # prompt; with one, only the prompt.
        if not session:
            await self._send_to_device(device_address, messages.WELCOME)

        await self._send_to_device(device_address, messages.ASK_ADDRESS)

    async def on_address_added(self, device_address: str, wallet_address: str) -> None:
        await self._send_to_device(device_address, messages.ask_verify(wallet_address))

    def build_deep_link(self, device_address: str, session_id: str) -> str:
        payload = encode_start_payload(device_address, session_id)
        return build_start_link(self.bot_username, payload)

    def view_attestation_data(
        self, user_id: int | str | None, username: str | None, address: str | None
    ) -> str:
        text = (
            "<b>Your data for attestation:</b> \n\n"
            f"ID: {user_id if user_id is not None else 'N/A'} \n"
            f"Username: {escape_html(username) if username else 'N/A'}"
        )
        if address:
            link = explorer_url(address, testnet=self.testnet)
            text += f"\nWallet address: <a href='{link}'>{address}</a>"
        return text

    # ---- chat-side flow -----------------------------------------------------

    async def handle_start(self, message: Any) -> None:
        """Handle ``/start [payload]`` from a private chat."""
        cid = generate_correlation_id()

        try:
            payload = self._parse_payload(message)
        except PayloadDecodeError as exc:
            logger.warning("start_payload_decode_failed", extra={"cid": cid, "error": exc.message})
            await self._reply(message, messages.PAYLOAD_ERROR)
            return

        await self._reply(message, messages.WELCOME)

        try:
            data = self._identity(message)
            await self._check_session(payload)
            address = await self._resolve_wallet_address(payload)
        except MissingIdentityError:
            await self._reply(message, messages.USERNAME_NOT_FOUND)
            return
        except InvalidSessionError:
            logger.info(
                "start_invalid_session",
                extra={"cid": cid, "device_address": mask_address(payload.device_address)},
            )
            await self._reply(message, messages.INVALID_SESSION)
            return
        except WalletAddressNotFoundError:
            await self._reply(
                message, messages.pairing_instructions(self.domain), parse_mode="HTML"
            )
            return

        await self._reply(
            message,
            self.view_attestation_data(data.user_id, data.username, address),
            parse_mode="HTML",
        )
        await self._attest(message, data, address, payload.device_address, cid=cid)

    def _parse_payload(self, message: Any) -> StartPayload:
        raw = _start_parameter(message)
        if not raw:
            return StartPayload(device_address=None, session_id=None)
        return decode_start_payload(raw)

    def _identity(self, message: Any) -> AttestationData:
        user = getattr(message, "from_user", None)
        username = getattr(user, "username", None)
        user_id = getattr(user, "id", None)
        if not username or not user_id:
            raise MissingIdentityError("Telegram username or id is missing")
        return AttestationData(user_id=int(user_id), username=str(username))

    async def _check_session(self, payload: StartPayload) -> None:
        session = await self._sessions.get_session(payload.device_address)
        if (
            session is None
            or not payload.session_id
            or session_prefix(session.id) != session_prefix(payload.session_id)
        ):
            raise InvalidSessionError("Session is missing or does not match the start payload")

    async def _resolve_wallet_address(self, payload: StartPayload) -> str:
        address = await self._sessions.get_session_wallet_address(payload.device_address)
        if not address:
            raise WalletAddressNotFoundError("No verified wallet address for this device")
        return address

    async def _attest(
        self,
        message: Any,
        data: AttestationData,
        address: str,
        device_address: str | None,
        *,
        cid: str,
    ) -> None:
        existing = await self._orders.get_attestation_order(data, address)

        if existing is not None and existing.is_attested:
            if device_address:
                await self._send_to_device(
                    device_address,
                    messages.already_attested_device(existing.unit, testnet=self.testnet),
                    best_effort=True,
                )
            logger.info(
                "attestation_already_done",
                extra={"cid": cid, "order_id": existing.id, "unit": existing.unit},
            )
            await self._reply(message, messages.ALREADY_ATTESTED)
            return

        if existing is not None:
            order_id = existing.id
            if existing.address != address:
                await self._orders.update_wallet_address_in_attestation_order(order_id, address)
        else:
            order_id = await self._orders.create_attestation_order(data, address, is_pending=True)

        if device_address:
            await self._orders.update_device_address_in_attestation_order(order_id, device_address)

        try:
            await self._delete_start_message(message, cid=cid)

            order = await self._orders.get_attestation_order(data, address, exclude_attested=True)
            unit = await self._issuer.post_attestation_profile(address, data)
            await self._orders.update_unit_and_change_status(data, address, unit)
            if device_address:
                await self._sessions.delete_session(device_address)

            logger.info(
                "attestation_completed",
                extra={"cid": cid, "order_id": order_id, "unit": unit},
            )
            await self._reply(
                message, messages.attested_chat(unit, testnet=self.testnet), parse_mode="HTML"
            )

            target_device = (order.device_address if order else None) or device_address
            if target_device:
                await self._send_to_device(
                    target_device,
                    messages.attested_device(unit, testnet=self.testnet),
                    best_effort=True,
                )
        except Exception:
            logger.exception(
                "attestation_processing_failed",
                extra={"cid": cid, "order_id": order_id},
            )
            await self._reply(message, messages.UNKNOWN_ERROR)

    async def _delete_start_message(self, message: Any, *, cid: str) -> None:
        delete = getattr(message, "delete", None)
        if delete is None:
            return
        try:
            await delete()
        except Exception as exc:
            logger.warning("start_message_delete_failed", extra={"cid": cid, "error": str(exc)})

    async def _send_to_device(
        self, device_address: str, text: str, *, best_effort: bool = False
    ) -> None:
        try:
            await self._notifier.send_message_to_device(device_address, DEVICE_MESSAGE_TYPE, text)
        except Exception as exc:
            if not best_effort:
                raise
            logger.warning(
                "device_notification_failed",
                extra={"device_address": mask_address(device_address), "error": str(exc)},
            )


def _start_parameter(message: Any) -> str | None:
    """Return the deep-link parameter of a ``/start`` message, if any."""
    command = getattr(message, "command", None)
    if isinstance(command, list | tuple) and len(command) > 1:
        return str(command[1]).strip() or None
    text = str(getattr(message, "text", "") or "").strip()
    parts = text.split(maxsplit=1)
    if len(parts) == 2 and parts[0].lower().startswith("/start"):
        return parts[1].strip() or None
    return None
