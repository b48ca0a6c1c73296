from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TextIO

import structlog
from structlog.typing import EventDict, Processor

from tubedeck.config import AppSettings
from tubedeck.telemetry import TELEMETRY_LOGGER_NAME

ROOT_LOGGER_NAME = "tubedeck"
LOG_FILE_NAME = "tubedeck.log"
TELEMETRY_LOG_FILE_NAME = "tubedeck-telemetry.log"


def configure_application_logging(settings: AppSettings) -> Path:
    """Console + JSON file logging for the API process. Returns the log file path."""
    log_dir = settings.log_dir
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    _configure_structlog()
    logger = _prepare_logger(ROOT_LOGGER_NAME, level=logging.DEBUG)

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(_build_file_formatter())

    logger.addHandler(_build_console_handler(sys.stdout, settings.log_level))
    logger.addHandler(file_handler)

    telemetry_log_file = log_dir / TELEMETRY_LOG_FILE_NAME
    telemetry_logger = _prepare_logger(TELEMETRY_LOGGER_NAME, level=logging.INFO)
    telemetry_handler = logging.FileHandler(telemetry_log_file, encoding="utf-8")
    telemetry_handler.setLevel(logging.INFO)
    telemetry_handler.setFormatter(_build_file_formatter())
    telemetry_logger.addHandler(telemetry_handler)

    logger.info(
        "logging configured console_level=%s path=%s telemetry_path=%s",
        settings.log_level.upper(),
        log_file,
        telemetry_log_file,
    )
    return log_file


def configure_cli_logging(*, verbose: bool) -> None:
    """CLI output goes through rich; logs stay on stderr and only surface problems."""
    _configure_structlog()
    logger = _prepare_logger(ROOT_LOGGER_NAME, level=logging.DEBUG)
    logger.addHandler(_build_console_handler(sys.stderr, "DEBUG" if verbose else "WARNING"))


def _prepare_logger(name: str, *, level: int) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    return logger


def _build_console_handler(stream: TextIO, raw_level: str) -> logging.Handler:
    handler = logging.StreamHandler(stream=stream)
    handler.setLevel(_resolve_log_level(raw_level))
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_shared_pre_chain(),
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.dev.ConsoleRenderer(colors=_stream_supports_color(stream)),
            ],
        )
    )
    return handler


def _resolve_log_level(raw_level: str) -> int:
    resolved = getattr(logging, raw_level.strip().upper(), None)
    if isinstance(resolved, int):
        return resolved
    return logging.INFO


def _configure_structlog() -> None:
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def _build_file_formatter() -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_shared_pre_chain(),
        processors=[
            _add_source_location,
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(sort_keys=True),
        ],
    )


def _shared_pre_chain() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
    ]


def _add_source_location(
    _logger: logging.Logger,
    _method_name: str,
    event_dict: EventDict,
) -> EventDict:
    record = event_dict.get("_record")
    if isinstance(record, logging.LogRecord):
        event_dict["module"] = record.module
        event_dict["lineno"] = record.lineno
        event_dict["func_name"] = record.funcName
    return event_dict


def _stream_supports_color(stream: object) -> bool:
    isatty = getattr(stream, "isatty", None)
    if callable(isatty):
        try:
            return bool(isatty())
        except (OSError, ValueError):
            return False
    return False
