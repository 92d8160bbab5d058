from __future__ import annotations

from .integrations import ObyteIntegrationsConfig
from .runtime import RuntimeConfig
from .settings import AppConfig, Settings, load_config
from .telegram import TelegramConfig

__all__ = [
    "AppConfig",
    "ObyteIntegrationsConfig",
    "RuntimeConfig",
    "Settings",
    "TelegramConfig",
    "load_config",
]
