from __future__ import annotations

import asyncio
import contextlib
import functools
import logging
from typing import TYPE_CHECKING, Any

from telegram_attestation.adapters.telegram import messages

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from pyrogram import Client, filters
    from pyrogram.enums import ParseMode

    from telegram_attestation.config import TelegramConfig
else:
    _pyrogram_bootstrap_loop: asyncio.AbstractEventLoop | None = None
    _previous_loop: asyncio.AbstractEventLoop | None = None
    try:
        # Pyrogram's sync adapter grabs an event loop at import time; newer
        # interpreters raise when none exists, so provision a temporary one.
        with contextlib.suppress(RuntimeError):
            _previous_loop = asyncio.get_event_loop()

        if _previous_loop is None or _previous_loop.is_closed():
            _pyrogram_bootstrap_loop = asyncio.new_event_loop()
            asyncio.set_event_loop(_pyrogram_bootstrap_loop)

        # Runtime aliases that tests can monkeypatch
        from pyrogram import Client, filters
        from pyrogram.enums import ParseMode
    finally:
        if _pyrogram_bootstrap_loop is not None:
            if _previous_loop is not None and not _previous_loop.is_closed():
                asyncio.set_event_loop(_previous_loop)
            else:
                asyncio.set_event_loop(None)

logger = logging.getLogger(__name__)


async def safe_reply(message: Any, text: str, *, parse_mode: str | None = None) -> Any:
    """Reply with pyrogram's parse mode enum resolved from a plain name."""
    if parse_mode is None:
        return await message.reply_text(text)
    return await message.reply_text(text, parse_mode=ParseMode[parse_mode.upper()])


def intercept_errors(
    handler: Callable[[Any], Awaitable[None]],
) -> Callable[[Any], Awaitable[None]]:
    """Last-resort guard: log anything a handler leaks and send a fallback reply."""

    @functools.wraps(handler)
    async def _wrapped(message: Any) -> None:
        try:
            await handler(message)
        except asyncio.CancelledError:
            raise
        except Exception:
            uid = getattr(getattr(message, "from_user", None), "id", None)
            logger.exception("bot_handler_error", extra={"uid": uid})
            try:
                await message.reply_text(messages.BOT_ERROR)
            except Exception as reply_exc:
                logger.warning("bot_error_reply_failed", extra={"error": str(reply_exc)})

    return _wrapped


class TelegramClient:
    """Handles Pyrogram client setup and the /start handler registration."""

    def __init__(self, cfg: TelegramConfig, *, session_name: str = "telegram_attestation_bot"):
        self.cfg = cfg
        self.client: Client = Client(
            name=session_name,
            api_id=cfg.api_id,
            api_hash=cfg.api_hash,
            bot_token=cfg.bot_token,
            in_memory=True,
        )

    def register_start_handler(self, handler: Callable[[Any], Awaitable[None]]) -> None:
        guarded = intercept_errors(handler)

        @self.client.on_message(filters.command("start") & filters.private)
        async def _on_start(_client: Any, message: Any) -> None:
            await guarded(message)

    async def start(self, start_handler: Callable[[Any], Awaitable[None]]) -> None:
        """Register handlers, connect and block until cancelled."""
        self.register_start_handler(start_handler)

        try:
            await self.client.start()
        except Exception:
            logger.exception("telegram_launch_failed")
            raise

        logger.info("telegram_attestation_started", extra={"bot": self.cfg.bot_username})
        try:
            await idle()
        finally:
            with contextlib.suppress(Exception):
                await self.client.stop()
            logger.info("telegram_attestation_stopped")


async def idle() -> None:
    """Wait forever (or until cancelled)."""
    await asyncio.Event().wait()
