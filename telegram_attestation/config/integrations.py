from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from ._validators import _validate_http_url


class ObyteIntegrationsConfig(BaseModel):
    """Endpoints of the Obyte-side services the bot talks to."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    device_hub_url: str = Field(
        default="",
        validation_alias="DEVICE_HUB_URL",
        description="Relay endpoint that forwards text messages to paired devices",
    )
    device_hub_token: str = Field(
        default="",
        validation_alias="DEVICE_HUB_TOKEN",
        description="Bearer token for the device relay (optional)",
    )
    issuer_url: str = Field(
        default="",
        validation_alias="ATTESTATION_ISSUER_URL",
        description="Attestation issuer endpoint that posts profiles to the ledger",
    )
    issuer_token: str = Field(
        default="",
        validation_alias="ATTESTATION_ISSUER_TOKEN",
        description="Bearer token for the attestation issuer (optional)",
    )
    http_timeout_sec: float = Field(
        default=30.0,
        validation_alias="HTTP_TIMEOUT_SEC",
        description="Default request timeout for integration clients",
    )
    http_max_retries: int = Field(
        default=3,
        validation_alias="HTTP_MAX_RETRIES",
        description="Maximum retry attempts for transient device relay failures",
    )

    @field_validator("device_hub_url", "issuer_url", mode="before")
    @classmethod
    def _validate_urls(cls, value: Any, info: ValidationInfo) -> str:
        return _validate_http_url(value, name=info.field_name.replace("_", " "))

    @field_validator("device_hub_token", "issuer_token", mode="before")
    @classmethod
    def _strip_tokens(cls, value: Any) -> str:
        return str(value or "").strip()

    @field_validator("http_timeout_sec", mode="before")
    @classmethod
    def _validate_timeout(cls, value: Any) -> float:
        if value in (None, ""):
            return 30.0
        try:
            parsed = float(str(value))
        except ValueError as exc:
            msg = "HTTP timeout must be a valid number"
            raise ValueError(msg) from exc
        if parsed <= 0 or parsed > 600:
            msg = "HTTP timeout must be between 0 and 600 seconds"
            raise ValueError(msg)
        return parsed

    @field_validator("http_max_retries", mode="before")
    @classmethod
    def _validate_retries(cls, value: Any) -> int:
        if value in (None, ""):
            return 3
        try:
            parsed = int(str(value))
        except ValueError as exc:
            msg = "HTTP max retries must be a valid integer"
            raise ValueError(msg) from exc
        if parsed < 0 or parsed > 10:
            msg = "HTTP max retries must be between 0 and 10"
            raise ValueError(msg)
        return parsed
