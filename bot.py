from __future__ import annotations

import asyncio
import logging

import uvloop

from telegram_attestation.adapters.telegram.telegram_bot import TelegramBot
from telegram_attestation.config import load_config
from telegram_attestation.db.session import DatabaseSessionManager


async def main() -> None:
    cfg = load_config()
    db = DatabaseSessionManager(
        path=cfg.runtime.db_path,
        operation_timeout=cfg.runtime.db_operation_timeout_sec,
    )
    db.migrate()

    bot = TelegramBot(cfg=cfg, db=db)
    await bot.start()


def run() -> None:
    uvloop.install()
    try:
        asyncio.run(main())
    except KeyboardInterrupt:  # pragma: no cover
        logging.getLogger(__name__).info("shutdown")


if __name__ == "__main__":
    run()
