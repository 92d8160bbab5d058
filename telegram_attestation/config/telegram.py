from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from ._validators import _ensure_api_key, _validate_bot_token


class TelegramConfig(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    api_id: int = Field(
        default=0,
        validation_alias=AliasChoices("API_ID", "TELEGRAM_API_ID"),
        description="Telegram API ID (MTProto credentials used by the bot client)",
    )
    api_hash: str = Field(
        default="",
        validation_alias=AliasChoices("API_HASH", "TELEGRAM_API_HASH"),
        description="Telegram API hash",
    )
    bot_token: str = Field(
        default="",
        validation_alias=AliasChoices("BOT_TOKEN", "TELEGRAM_BOT_TOKEN"),
        description="Telegram bot token",
    )
    bot_username: str = Field(
        default="",
        validation_alias=AliasChoices("TELEGRAM_BOT_USERNAME", "BOT_USERNAME"),
        description="Bot username used to build t.me deep links",
    )
    domain: str = Field(
        default="",
        validation_alias=AliasChoices("DOMAIN", "ATTESTATION_DOMAIN"),
        description="Public domain of the attestation service (pairing page host)",
    )

    @field_validator("api_id", mode="before")
    @classmethod
    def _parse_api_id(cls, value: Any) -> int:
        if isinstance(value, int):
            api_id = value
        elif value is None or value == "":
            return 0
        else:
            try:
                api_id = int(str(value))
            except ValueError as exc:
                msg = "API ID must be a valid integer"
                raise ValueError(msg) from exc

        if api_id < 0:
            msg = "API ID must be non-negative"
            raise ValueError(msg)
        if api_id > 2**31 - 1:
            msg = "API ID too large"
            raise ValueError(msg)
        return api_id

    @field_validator("api_hash", mode="before")
    @classmethod
    def _validate_api_hash(cls, value: Any) -> str:
        api_hash = str(value or "")
        if not api_hash:
            return ""
        return _ensure_api_key(api_hash, name="API Hash")

    @field_validator("bot_token", mode="before")
    @classmethod
    def _validate_token(cls, value: Any) -> str:
        return _validate_bot_token(value)

    @field_validator("bot_username", mode="before")
    @classmethod
    def _normalize_username(cls, value: Any) -> str:
        username = str(value or "").strip().lstrip("@")
        if any(ch.isspace() or ch == "/" for ch in username):
            msg = "Bot username contains invalid characters"
            raise ValueError(msg)
        return username

    @field_validator("domain", mode="before")
    @classmethod
    def _normalize_domain(cls, value: Any) -> str:
        return str(value or "").strip().rstrip("/")
