"""Client for the attestation issuer that posts profiles to the Obyte ledger."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

from telegram_attestation.adapters.obyte.http_client import ObyteClientError, ObyteServiceClient
from telegram_attestation.domain.exceptions.domain_exceptions import AttestationIssuanceError

if TYPE_CHECKING:
    from telegram_attestation.domain.models.attestation import AttestationData

logger = logging.getLogger(__name__)


class AttestationIssuerClient(ObyteServiceClient):
    """Posts ``{"address", "profile"}`` to ``/attestations`` and returns the unit."""

    async def post_attestation_profile(self, address: str, data: AttestationData) -> str:
        payload = {"address": address, "profile": data.as_profile()}
        try:
            # A repeated POST may publish a second unit for the same address.
            body = await self._post_json(
                "/attestations", payload, "post_attestation_profile", retry=False
            )
        except (ObyteClientError, httpx.HTTPError, ValueError) as exc:
            raise AttestationIssuanceError(
                "Attestation issuer request failed", {"error": str(exc)}
            ) from exc

        unit = body.get("unit") if isinstance(body, dict) else None
        if not isinstance(unit, str) or not unit:
            raise AttestationIssuanceError(
                "Attestation issuer returned no unit", {"response": str(body)[:200]}
            )

        logger.info("attestation_profile_posted", extra={"unit": unit})
        return unit
