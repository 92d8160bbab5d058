"""Request and response models for the pairing API."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from telegram_attestation.core.wallet_address import ObyteAddressValidator

_validator = ObyteAddressValidator()


class DeviceEvent(BaseModel):
    device_address: str = Field(..., min_length=1, max_length=64)

    @field_validator("device_address")
    @classmethod
    def _check_device_address(cls, value: str) -> str:
        value = value.strip()
        if not _validator.is_device_address(value):
            msg = "device_address is not a valid Obyte device address"
            raise ValueError(msg)
        return value


class WalletEvent(DeviceEvent):
    # Format is checked by the strategy so the device receives the
    # "invalid wallet address" notice instead of an HTTP error.
    wallet_address: str = Field(..., min_length=1, max_length=64)


class MetaInfo(BaseModel):
    correlation_id: str = ""
    timestamp: str = Field(
        default_factory=lambda: datetime.now(UTC).isoformat().replace("+00:00", "Z")
    )


class ErrorDetail(BaseModel):
    code: str
    message: str
    retryable: bool = False
    details: dict[str, Any] | None = None


def success_response(data: dict[str, Any], *, correlation_id: str | None = None) -> dict[str, Any]:
    """Build a standardized success envelope."""
    return {
        "success": True,
        "data": data,
        "meta": MetaInfo(correlation_id=correlation_id or "").model_dump(),
    }


def error_response(detail: ErrorDetail, *, correlation_id: str | None = None) -> dict[str, Any]:
    """Build a standardized error envelope."""
    return {
        "success": False,
        "error": detail.model_dump(),
        "meta": MetaInfo(correlation_id=correlation_id or "").model_dump(),
    }
