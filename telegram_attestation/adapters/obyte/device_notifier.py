"""Paired-device messaging through the Obyte device relay."""

from __future__ import annotations

import logging

import httpx

from telegram_attestation.adapters.obyte.http_client import ObyteClientError, ObyteServiceClient
from telegram_attestation.core.logging_utils import mask_address
from telegram_attestation.domain.exceptions.domain_exceptions import NotificationError

logger = logging.getLogger(__name__)


class DeviceHubNotifier(ObyteServiceClient):
    """Sends chat messages to paired Obyte wallets.

    The relay accepts ``POST /messages`` with the device address, the message
    type and the body, and forwards it over the hub to the device.
    """

    async def send_message_to_device(
        self, device_address: str, message_type: str, text: str
    ) -> None:
        payload = {"device_address": device_address, "type": message_type, "text": text}
        try:
            await self._post_json("/messages", payload, "send_message_to_device")
        except (ObyteClientError, httpx.HTTPError, ValueError) as exc:
            raise NotificationError(
                "Failed to message paired device",
                {"device_address": device_address, "error": str(exc)},
            ) from exc

        logger.debug(
            "device_message_sent",
            extra={"device_address": mask_address(device_address), "type": message_type},
        )
