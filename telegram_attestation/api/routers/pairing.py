"""Pairing events pushed by the wallet-pairing flow."""

from __future__ import annotations

import hmac

from fastapi import APIRouter, Depends, Header, Request

from telegram_attestation.api.exceptions import AuthenticationError, ExternalServiceError
from telegram_attestation.api.models import DeviceEvent, WalletEvent, success_response
from telegram_attestation.core.logging_utils import get_logger, mask_address
from telegram_attestation.domain.exceptions.domain_exceptions import (
    NotificationError,
    ResourceNotFoundError,
)

logger = get_logger(__name__)


async def require_pairing_secret(
    request: Request,
    x_pairing_secret: str | None = Header(default=None, alias="X-Pairing-Secret"),
) -> None:
    expected = request.app.state.pairing_secret
    if not expected:
        return
    if not x_pairing_secret or not hmac.compare_digest(x_pairing_secret, expected):
        logger.warning("pairing_secret_rejected", extra={"path": request.url.path})
        raise AuthenticationError()


router = APIRouter(dependencies=[Depends(require_pairing_secret)])


def _cid(request: Request) -> str | None:
    return getattr(request.state, "correlation_id", None)


@router.post("/attestation-requested")
async def attestation_requested(event: DeviceEvent, request: Request):
    strategy = request.app.state.strategy
    try:
        await strategy.on_attestation_process_requested(event.device_address)
    except NotificationError as exc:
        raise ExternalServiceError("device_hub", exc.message) from exc
    return success_response({"device_address": event.device_address}, correlation_id=_cid(request))


@router.post("/address-added")
async def address_added(event: WalletEvent, request: Request):
    strategy = request.app.state.strategy
    try:
        await strategy.on_address_added(event.device_address, event.wallet_address)
    except NotificationError as exc:
        raise ExternalServiceError("device_hub", exc.message) from exc
    return success_response({"device_address": event.device_address}, correlation_id=_cid(request))


@router.post("/wallet-verified")
async def wallet_verified(event: WalletEvent, request: Request):
    state = request.app.state
    bound = False
    if state.validator.is_wallet_address(event.wallet_address):
        try:
            await state.sessions.set_session_wallet_address(
                event.device_address, event.wallet_address
            )
            bound = True
        except ResourceNotFoundError:
            # The strategy tells the device its session is gone.
            logger.info(
                "wallet_verified_session_missing",
                extra={"device_address": mask_address(event.device_address)},
            )

    try:
        await state.strategy.wallet_address_verified(event.device_address, event.wallet_address)
    except NotificationError as exc:
        raise ExternalServiceError("device_hub", exc.message) from exc

    return success_response(
        {"device_address": event.device_address, "session_bound": bound},
        correlation_id=_cid(request),
    )


@router.post("/sessions")
async def create_session(event: DeviceEvent, request: Request):
    session = await request.app.state.sessions.create_session(event.device_address)
    return success_response(
        {
            "session_id": session.id,
            "device_address": session.device_address,
            "expires_at": session.expires_at.isoformat().replace("+00:00", "Z"),
        },
        correlation_id=_cid(request),
    )
