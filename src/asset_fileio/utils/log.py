from __future__ import annotations

import logging
import sys
from contextlib import contextmanager, suppress
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterator

import structlog

from asset_fileio.config import get_settings

LOGGER_NAME = "asset_fileio"

op_id_var: ContextVar[str | None] = ContextVar("op_id", default=None)


@contextmanager
def bind_op_id(op_id: str) -> Iterator[None]:
    """
    Tag every event logged inside the block with `op_id` (e.g. the asset being packed).
    """
    token = op_id_var.set(op_id)
    try:
        yield
    finally:
        op_id_var.reset(token)


def _log_path() -> Path | None:
    s = get_settings()
    if not s.log_dir:
        return None
    return Path(s.log_dir) / "asset_fileio.log"


def add_contextvars(_, __, event_dict: dict[str, Any]) -> dict[str, Any]:
    oid = op_id_var.get()
    if oid:
        event_dict.setdefault("op_id", oid)
    return event_dict


def stringify_paths(_, __, event_dict: dict[str, Any]) -> dict[str, Any]:
    for k, v in list(event_dict.items()):
        if hasattr(v, "__fspath__"):
            event_dict[k] = str(v)
    return event_dict


def rename_event_to_msg(_, __, event_dict: dict[str, Any]) -> dict[str, Any]:
    if "msg" not in event_dict and "event" in event_dict:
        event_dict["msg"] = event_dict.pop("event")
    return event_dict


def _configure_structlog() -> structlog.stdlib.BoundLogger:
    s = get_settings()
    level = str(s.log_level).upper()

    # Library logger: handlers and level stay on "asset_fileio"; the host app owns the root logger.
    pkg = logging.getLogger(LOGGER_NAME)
    pkg.setLevel(level)

    # Avoid duplicates if re-imported
    if getattr(pkg, "_asset_fileio_structlog_configured", False):
        return structlog.get_logger(LOGGER_NAME)

    foreign_pre_chain = [
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
        structlog.stdlib.add_log_level,
        add_contextvars,
        stringify_paths,
        structlog.processors.format_exc_info,
        rename_event_to_msg,
    ]

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.processors.JSONRenderer(),
        foreign_pre_chain=foreign_pre_chain,
    )

    if bool(s.log_to_stdout):
        stream_handler = logging.StreamHandler(sys.stdout)
        stream_handler.setFormatter(formatter)
        pkg.addHandler(stream_handler)

    log_path = _log_path()
    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            filename=str(log_path),
            maxBytes=int(s.log_max_bytes),
            backupCount=int(s.log_backup_count),
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        pkg.addHandler(file_handler)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
            structlog.stdlib.add_log_level,
            add_contextvars,
            stringify_paths,
            structlog.processors.format_exc_info,
            rename_event_to_msg,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    pkg._asset_fileio_structlog_configured = True
    return structlog.get_logger(LOGGER_NAME)


logger = _configure_structlog()


def set_log_level(level: str) -> None:
    """
    Best-effort runtime log level override.
    Does not change handlers/formatters; only raises/lowers filtering level.
    """
    try:
        lvl = getattr(logging, str(level).upper(), logging.INFO)
        pkg = logging.getLogger(LOGGER_NAME)
        pkg.setLevel(lvl)
        for h in pkg.handlers:
            with suppress(Exception):
                h.setLevel(lvl)
    except Exception:
        # keep existing configuration
        return
