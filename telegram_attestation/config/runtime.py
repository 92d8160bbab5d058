from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from ._validators import _parse_bool

logger = logging.getLogger(__name__)


class RuntimeConfig(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    db_path: str = Field(default="/data/attestation.db", validation_alias="DB_PATH")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str | None = Field(default=None, validation_alias="LOG_FILE")
    testnet: bool = Field(default=False, validation_alias="OBYTE_TESTNET")
    session_ttl_sec: int = Field(default=3600, validation_alias="SESSION_TTL_SEC")
    db_operation_timeout_sec: float = Field(
        default=30.0, validation_alias="DB_OPERATION_TIMEOUT_SEC"
    )
    pairing_api_enabled: bool = Field(default=True, validation_alias="PAIRING_API_ENABLED")
    pairing_api_host: str = Field(default="0.0.0.0", validation_alias="PAIRING_API_HOST")
    pairing_api_port: int = Field(default=8080, validation_alias="PAIRING_API_PORT")
    pairing_api_secret: str = Field(default="", validation_alias="PAIRING_API_SECRET")

    @field_validator("log_level", mode="before")
    @classmethod
    def _validate_log_level(cls, value: Any) -> str:
        log_level = str(value or "INFO").upper()
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if log_level not in valid_levels:
            msg = f"Invalid log level: {value}. Must be one of {valid_levels}"
            raise ValueError(msg)
        return log_level

    @field_validator("log_file", mode="before")
    @classmethod
    def _validate_log_file(cls, value: Any) -> str | None:
        if value is None:
            return None
        trimmed = str(value).strip()
        return trimmed or None

    @field_validator("testnet", "pairing_api_enabled", mode="before")
    @classmethod
    def _parse_flags(cls, value: Any, info: ValidationInfo) -> bool:
        default = cls.model_fields[info.field_name].default
        return _parse_bool(value, default=bool(default))

    @field_validator("session_ttl_sec", mode="before")
    @classmethod
    def _validate_session_ttl(cls, value: Any) -> int:
        try:
            parsed = int(str(value or 3600))
        except ValueError as exc:
            msg = "Session TTL must be a valid integer"
            raise ValueError(msg) from exc
        if parsed < 60 or parsed > 7 * 24 * 3600:
            msg = "Session TTL must be between 60 seconds and 7 days"
            raise ValueError(msg)
        return parsed

    @field_validator("db_operation_timeout_sec", mode="before")
    @classmethod
    def _validate_db_timeout(cls, value: Any) -> float:
        try:
            parsed = float(str(value or 30.0))
        except ValueError as exc:
            msg = "DB operation timeout must be a valid number"
            raise ValueError(msg) from exc
        if parsed <= 0:
            msg = "DB operation timeout must be positive"
            raise ValueError(msg)
        return parsed

    @field_validator("pairing_api_port", mode="before")
    @classmethod
    def _validate_port(cls, value: Any) -> int:
        try:
            port = int(str(value or 8080))
        except ValueError as exc:
            msg = "Pairing API port must be a valid integer"
            raise ValueError(msg) from exc
        if port <= 0 or port > 65535:
            msg = "Pairing API port must be between 1 and 65535"
            raise ValueError(msg)
        return port

    @field_validator("pairing_api_secret", mode="before")
    @classmethod
    def _validate_secret(cls, value: Any) -> str:
        if value in (None, ""):
            return ""
        secret = str(value).strip()
        if len(secret) < 16:
            logger.warning(
                "Pairing API secret is shorter than 16 characters - this is insecure for production"
            )
        return secret
