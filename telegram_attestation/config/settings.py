from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from typing import Self

    from pydantic.fields import FieldInfo

from pydantic import AliasChoices, BaseModel, Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .integrations import ObyteIntegrationsConfig
from .runtime import RuntimeConfig
from .telegram import TelegramConfig

logger = logging.getLogger(__name__)

_SECTIONS: tuple[tuple[str, type[BaseModel]], ...] = (
    ("telegram", TelegramConfig),
    ("runtime", RuntimeConfig),
    ("obyte", ObyteIntegrationsConfig),
)


def _env_names(field: FieldInfo) -> list[str]:
    alias = field.validation_alias
    if isinstance(alias, AliasChoices):
        return [choice for choice in alias.choices if isinstance(choice, str)]
    return [alias] if isinstance(alias, str) else []


def _first_present(names: list[str], source: dict[str, Any]) -> str | None:
    return next((name for name in names if name in source), None)


@dataclass(frozen=True)
class AppConfig:
    telegram: TelegramConfig
    runtime: RuntimeConfig
    obyte: ObyteIntegrationsConfig


class Settings(BaseSettings):
    """Application settings loaded automatically from environment variables.

    Each section is populated from the flat env names declared as the
    ``validation_alias`` of its fields.
    """

    model_config = SettingsConfigDict(
        extra="ignore",
        populate_by_name=True,
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    allow_stub_telegram: bool = Field(default=False, exclude=True)
    telegram: TelegramConfig = Field(default_factory=TelegramConfig)
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)
    obyte: ObyteIntegrationsConfig = Field(default_factory=ObyteIntegrationsConfig)

    @model_validator(mode="before")
    @classmethod
    def _build_nested_from_env(cls, data: dict[str, Any]) -> dict[str, Any]:
        """Fill each section from flat env names; constructor values win."""
        if not isinstance(data, dict):
            return data

        source = {**os.environ, **data}
        result = dict(data)
        for section, model in _SECTIONS:
            from_env = {
                name: source[env_name]
                for name, field in model.model_fields.items()
                if (env_name := _first_present(_env_names(field), source))
            }
            explicit = result.get(section)
            if isinstance(explicit, BaseModel):
                continue
            result[section] = {**from_env, **(explicit or {})}
        return result

    @model_validator(mode="after")
    def _ensure_telegram_identity(self) -> Self:
        if self.allow_stub_telegram:
            return self
        missing = [
            env_name
            for env_name, value in (
                ("API_ID", self.telegram.api_id),
                ("API_HASH", self.telegram.api_hash),
                ("BOT_TOKEN", self.telegram.bot_token),
                ("TELEGRAM_BOT_USERNAME", self.telegram.bot_username),
                ("DOMAIN", self.telegram.domain),
            )
            if not value
        ]
        if missing:
            msg = f"Missing required configuration: {', '.join(missing)}"
            raise RuntimeError(msg)
        return self

    def as_app_config(self) -> AppConfig:
        return AppConfig(telegram=self.telegram, runtime=self.runtime, obyte=self.obyte)


def load_config(*, allow_stub_telegram: bool = False) -> AppConfig:
    """Load application configuration from environment variables.

    Uses pydantic-settings to automatically load from:
    1. Environment variables
    2. .env file (if present)

    Args:
        allow_stub_telegram: If True, use stub Telegram credentials when not provided.
                           Useful for tests and tooling that never reach Telegram.

    Returns:
        Immutable AppConfig instance with all configuration sections.

    Raises:
        RuntimeError: If configuration validation fails.
    """
    overrides: dict[str, Any] = {"allow_stub_telegram": allow_stub_telegram}
    using_stub_telegram = False

    if allow_stub_telegram:
        telegram_overrides: dict[str, Any] = {}
        if not os.getenv("API_ID") and not os.getenv("TELEGRAM_API_ID"):
            telegram_overrides["api_id"] = "1"
            using_stub_telegram = True
        if not os.getenv("API_HASH") and not os.getenv("TELEGRAM_API_HASH"):
            telegram_overrides["api_hash"] = "test_api_hash_placeholder_value___"
            using_stub_telegram = True
        if not os.getenv("BOT_TOKEN") and not os.getenv("TELEGRAM_BOT_TOKEN"):
            telegram_overrides["bot_token"] = "1000000000:TESTTOKENPLACEHOLDER1234567890ABC"
            using_stub_telegram = True
        if not os.getenv("TELEGRAM_BOT_USERNAME") and not os.getenv("BOT_USERNAME"):
            telegram_overrides["bot_username"] = "attestation_stub_bot"
            using_stub_telegram = True
        if not os.getenv("DOMAIN") and not os.getenv("ATTESTATION_DOMAIN"):
            telegram_overrides["domain"] = "http://localhost:8080"
            using_stub_telegram = True
        if telegram_overrides:
            overrides["telegram"] = telegram_overrides

    try:
        settings = Settings(**overrides)
    except (ValidationError, RuntimeError) as exc:
        msg = f"Configuration validation failed: {exc}"
        raise RuntimeError(msg) from exc

    if using_stub_telegram:
        logger.warning(
            "Using stub Telegram settings: "
            "real BOT_TOKEN/TELEGRAM_BOT_USERNAME/DOMAIN were not provided"
        )

    return settings.as_app_config()
