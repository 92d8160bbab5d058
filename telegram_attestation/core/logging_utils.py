from __future__ import annotations

import datetime as dt
import json
import logging
import os
import sys
import uuid
from typing import Any

from loguru import logger as loguru_logger

from telegram_attestation.core.time_utils import UTC

# Attributes every LogRecord carries; anything else came in through ``extra``.
_STANDARD_FIELDS = frozenset(
    {
        "args",
        "msg",
        "name",
        "levelno",
        "levelname",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "getMessage",
        "message",
    }
)

# Fields that identify one attestation flow across chat, device and ledger.
_ATTESTATION_FIELDS = frozenset({"device_address", "order_id", "unit", "uid"})

_NOISY_LOGGERS = (
    "pyrogram",
    "pyrogram.session",
    "pyrogram.session.session",
    "httpx",
    "httpcore",
    "peewee",
)


class EnhancedJsonFormatter(logging.Formatter):
    """JSON formatter used when loguru is not requested."""

    def __init__(self, include_location: bool = True, include_process_info: bool = True):
        super().__init__()
        self.include_location = include_location
        self.include_process_info = include_process_info
        self.hostname = os.uname().nodename if hasattr(os, "uname") else "unknown"

    def format(self, record: logging.LogRecord) -> str:
        base: dict[str, Any] = {
            "timestamp": dt.datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "hostname": self.hostname,
        }

        if self.include_location:
            base.update(
                {
                    "module": record.module,
                    "function": record.funcName,
                    "line": record.lineno,
                }
            )

        if self.include_process_info:
            base.update({"process": record.process, "thread": record.thread})

        if record.exc_info:
            base["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        extra_fields: dict[str, Any] = {}
        attestation_fields: dict[str, Any] = {}
        for key, value in record.__dict__.items():
            if key.startswith("_") or key in _STANDARD_FIELDS or key in base:
                continue
            if key in _ATTESTATION_FIELDS:
                attestation_fields[key] = value
            elif key in ("cid", "correlation_id"):
                base["correlation_id"] = value
            else:
                extra_fields[key] = value

        if attestation_fields:
            base["attestation"] = attestation_fields
        if extra_fields:
            base["extra"] = extra_fields

        return json.dumps(
            base, ensure_ascii=False, default=self._json_serializer, separators=(",", ":")
        )

    def _json_serializer(self, obj: Any) -> str:
        if hasattr(obj, "__dict__"):
            return f"<{obj.__class__.__name__}>"
        return str(obj)


class _InterceptHandler(logging.Handler):
    """Bridge stdlib records (and their ``extra`` fields) into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        level_to_use: int | str
        try:
            level_to_use = loguru_logger.level(record.levelname).name
        except ValueError:
            level_to_use = record.levelno

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if not key.startswith("_") and key not in _STANDARD_FIELDS
        }
        loguru_logger.bind(**extra).opt(depth=6, exception=record.exc_info).log(
            level_to_use, record.getMessage()
        )


def setup_json_logging(
    level: str = "INFO",
    include_location: bool = True,
    include_process_info: bool = True,
    use_loguru: bool = True,
    log_file: str | None = None,
    max_file_size: str = "100 MB",
    retention: str = "30 days",
) -> None:
    """Configure JSON logging with optional file output.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        include_location: Include file/line information in logs
        include_process_info: Include process/thread information
        use_loguru: Route stdlib logging through loguru sinks
        log_file: Optional log file path for persistent logging
        max_file_size: Maximum size per log file (loguru format)
        retention: Log retention period (loguru format)
    """
    lvl = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()

    if use_loguru:
        loguru_logger.remove()
        loguru_logger.add(
            sys.stdout,
            level=level.upper(),
            serialize=True,
            enqueue=True,
            backtrace=True,
            diagnose=False,
        )
        if log_file:
            loguru_logger.add(
                log_file,
                level=level.upper(),
                serialize=True,
                rotation=max_file_size,
                retention=retention,
                compression="gz",
                enqueue=True,
            )

        root.handlers.clear()
        root.setLevel(lvl)
        root.addHandler(_InterceptHandler())
    else:
        formatter = EnhancedJsonFormatter(
            include_location=include_location, include_process_info=include_process_info
        )
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        root.handlers.clear()
        root.setLevel(lvl)
        root.addHandler(console_handler)

        if log_file:
            from logging.handlers import RotatingFileHandler

            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=100 * 1024 * 1024,
                backupCount=5,
            )
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)

    for noisy_logger in _NOISY_LOGGERS:
        logging.getLogger(noisy_logger).setLevel(max(lvl, logging.INFO))

    logging.getLogger(__name__).info(
        "json_logging_initialized",
        extra={"level": level, "use_loguru": use_loguru, "log_file": log_file},
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance by name."""
    return logging.getLogger(name)


def generate_correlation_id() -> str:
    """Generate a short correlation ID for tracing a chat turn across logs."""
    return uuid.uuid4().hex[:12]


def mask_address(address: str | None, visible: int = 6) -> str | None:
    """Shorten a device or wallet address for log output."""
    if not address:
        return address
    if len(address) <= visible * 2:
        return address
    return f"{address[:visible]}...{address[-visible:]}"


__all__ = [
    "EnhancedJsonFormatter",
    "generate_correlation_id",
    "get_logger",
    "mask_address",
    "setup_json_logging",
]
