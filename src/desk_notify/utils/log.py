from __future__ import annotations

import logging
import sys
from contextlib import suppress
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from typing import Any

import structlog

from desk_notify.config import ConfigError, get_settings

notification_id_var: ContextVar[int | None] = ContextVar("notification_id", default=None)


def set_notification_id(nid: int | None) -> None:
    notification_id_var.set(nid)


def add_contextvars(_, __, event_dict: dict[str, Any]) -> dict[str, Any]:
    nid = notification_id_var.get()
    if nid is not None:
        event_dict.setdefault("notification_id", nid)
    return event_dict


def rename_event_to_msg(_, __, event_dict: dict[str, Any]) -> dict[str, Any]:
    if "msg" not in event_dict and "event" in event_dict:
        event_dict["msg"] = event_dict.pop("event")
    return event_dict


def _configure_structlog() -> structlog.stdlib.BoundLogger:
    try:
        s = get_settings()
    except ConfigError:
        # reported by the command once it runs
        s = None
    level = str(s.log_level if s is not None else "WARNING").upper()

    root = logging.getLogger()
    root.setLevel(level)

    # Avoid duplicates if re-imported
    if getattr(root, "_desk_notify_structlog_configured", False):
        return structlog.get_logger("desk_notify")

    foreign_pre_chain = [
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
        structlog.stdlib.add_log_level,
        add_contextvars,
        structlog.processors.format_exc_info,
        rename_event_to_msg,
    ]

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.processors.JSONRenderer(),
        foreign_pre_chain=foreign_pre_chain,
    )

    root.handlers.clear()

    # stdout is reserved for the notification id and outcome JSON.
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    root.addHandler(stream_handler)

    if s is not None and s.log_file is not None:
        s.log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            filename=str(s.log_file),
            maxBytes=int(s.log_max_bytes),
            backupCount=int(s.log_backup_count),
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
            structlog.stdlib.add_log_level,
            add_contextvars,
            structlog.processors.format_exc_info,
            rename_event_to_msg,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root._desk_notify_structlog_configured = True
    return structlog.get_logger("desk_notify")


logger = _configure_structlog()


def set_log_level(level: str) -> None:
    """
    Best-effort runtime log level override (CLI convenience).
    Does not change handlers/formatters; only raises/lowers filtering level.
    """
    try:
        lvl = getattr(logging, str(level).upper(), logging.WARNING)
        root = logging.getLogger()
        root.setLevel(lvl)
        for h in root.handlers:
            with suppress(Exception):
                h.setLevel(lvl)
    except Exception:
        # keep existing configuration
        return
