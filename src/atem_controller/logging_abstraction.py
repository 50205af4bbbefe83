"""Logging abstraction layer for the ATEM controller.

Provides dual-format logging (JSON + human-readable) with correlation tracking
and structured context. Engine modules log through plain
``logging.getLogger(__name__)``; this module only decides where those records
go and how they look.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import cast, override

from atem_controller.correlation import get_correlation_id

__all__ = [
    "AtemLogger",
    "HumanReadableFormatter",
    "JSONFormatter",
    "get_logger",
]

# Attributes every LogRecord carries; anything else came in through ``extra=``
_STANDARD_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime", "correlation_id", "extra_data"}


def _record_context(record: logging.LogRecord) -> dict[str, object]:
    """Collect structured context from a record.

    Supports both ``AtemLogger`` (context nested under ``extra_data``) and plain
    ``logger.info(..., extra={...})`` calls (context as record attributes).
    """
    context: dict[str, object] = {}
    extra_data = getattr(record, "extra_data", None)
    if isinstance(extra_data, Mapping) and extra_data:
        context.update(cast("Mapping[str, object]", extra_data))
    for key, value in vars(record).items():
        if key not in _STANDARD_RECORD_ATTRS and not key.startswith("_"):
            context[key] = value
    return context


class JSONFormatter(logging.Formatter):
    """Formatter that outputs structured JSON logs."""

    @override
    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: dict[str, object] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
            "correlation_id": get_correlation_id(),
        }

        context = _record_context(record)
        if context:
            log_data["context"] = context

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            log_data["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(log_data, default=str)


class HumanReadableFormatter(logging.Formatter):
    """Formatter that outputs human-readable logs with correlation IDs."""

    def __init__(self) -> None:
        # Format: timestamp level [module:line] correlation_id > message
        super().__init__(
            fmt="%(asctime)s.%(msecs)03d %(levelname)s [%(module)s:%(lineno)d] %(correlation_id)s > %(message)s",
            datefmt="%m/%d/%y %H:%M:%S",
        )

    @override
    def format(self, record: logging.LogRecord) -> str:
        """Format log record as human-readable text."""
        correlation_id = get_correlation_id()
        # UUID v7 prefixes are timestamp bits; the tail is what tells attempts apart
        record.correlation_id = f"[{correlation_id[-8:]}]" if correlation_id else "[--------]"

        formatted = super().format(record)

        context = _record_context(record)
        if context:
            context_str = " | ".join(f"{k}={v}" for k, v in context.items())
            formatted = f"{formatted} | {context_str}"

        return formatted


class AtemLogger:
    """Logger wrapper providing dual-format output (JSON + human-readable).

    Used by the harness to configure the ``atem_controller`` logger tree once;
    engine modules keep using module-level ``logging.getLogger(__name__)``.
    """

    def __init__(
        self,
        name: str,
        log_format: str = "human",
        json_file: str | Path | None = None,
        human_output: str | None = "stdout",
        level: int | None = None,
    ) -> None:
        """Initialize AtemLogger.

        Args:
            name: Logger name (``atem_controller`` configures the whole package)
            log_format: Output format - "json", "human", or "both"
            json_file: Path for JSON output file (None to disable file output)
            human_output: "stdout", "stderr", or file path for human-readable output
            level: Explicit log level (defaults to DEBUG when ATEM_DEBUG is set)

        """
        self.name: str = name
        self.logger: logging.Logger = logging.getLogger(name)
        self.log_format: str = log_format

        if level is None:
            from atem_controller.const import ATEM_DEBUG

            level = logging.DEBUG if ATEM_DEBUG else logging.INFO
        self.logger.setLevel(level)

        # Don't add handlers if already configured (avoid duplicates)
        if not self.logger.handlers:
            self._configure_handlers(json_file, human_output)

    def _configure_handlers(
        self,
        json_file: str | Path | None,
        human_output: str | None,
    ) -> None:
        """Configure log handlers based on format settings."""
        handler_level = self.logger.level

        if self.log_format in ("json", "both") and json_file:
            try:
                json_path = Path(json_file)
                json_path.parent.mkdir(parents=True, exist_ok=True)
                json_handler = logging.FileHandler(json_path, mode="a")
            except OSError as e:
                print(f"Warning: Failed to create JSON log file {json_file}: {e}", file=sys.stderr)
            else:
                json_handler.setFormatter(JSONFormatter())
                json_handler.setLevel(handler_level)
                self.logger.addHandler(json_handler)

        if self.log_format == "json" and not json_file:
            # JSON requested without a file: emit JSON on stdout instead
            stream_handler = logging.StreamHandler(sys.stdout)
            stream_handler.setFormatter(JSONFormatter())
            stream_handler.setLevel(handler_level)
            self.logger.addHandler(stream_handler)

        if self.log_format in ("human", "both"):
            normalized_output = human_output or "stdout"
            human_handler: logging.Handler
            if normalized_output == "stdout":
                human_handler = logging.StreamHandler(sys.stdout)
            elif normalized_output == "stderr":
                human_handler = logging.StreamHandler(sys.stderr)
            else:
                try:
                    human_path = Path(normalized_output)
                    human_path.parent.mkdir(parents=True, exist_ok=True)
                    human_handler = logging.FileHandler(human_path, mode="a")
                except OSError as e:
                    print(f"Warning: Failed to create human log file {human_output}: {e}", file=sys.stderr)
                    human_handler = logging.StreamHandler(sys.stdout)

            human_handler.setFormatter(HumanReadableFormatter())
            human_handler.setLevel(handler_level)
            self.logger.addHandler(human_handler)

    def _log(self, level: int, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        extra_payload: Mapping[str, object] | None = None
        if extra:
            extra_payload = {"extra_data": dict(extra)}

        self.logger.log(level, msg, *args, extra=extra_payload)

    def debug(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        """Log debug message with optional structured context."""
        self._log(logging.DEBUG, msg, *args, extra=extra)

    def info(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        """Log info message with optional structured context."""
        self._log(logging.INFO, msg, *args, extra=extra)

    def warning(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        """Log warning message with optional structured context."""
        self._log(logging.WARNING, msg, *args, extra=extra)

    def error(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        """Log error message with optional structured context."""
        self._log(logging.ERROR, msg, *args, extra=extra)

    def set_level(self, level: int) -> None:
        """Set logging level on the logger and all of its handlers."""
        self.logger.setLevel(level)
        for handler in self.logger.handlers:
            handler.setLevel(level)

    @property
    def handlers(self) -> list[logging.Handler]:
        """Get list of handlers."""
        return self.logger.handlers


def get_logger(
    name: str,
    log_format: str | None = None,
    json_file: str | Path | None = None,
    human_output: str | None = None,
    level: int | None = None,
) -> AtemLogger:
    """Get or create an AtemLogger instance.

    Args:
        name: Logger name
        log_format: Override default format ("json", "human", or "both")
        json_file: Override default JSON output file
        human_output: Override default human-readable output
        level: Override default level

    Returns:
        AtemLogger instance

    """
    from atem_controller.const import (
        ATEM_LOG_FORMAT,
        ATEM_LOG_HUMAN_OUTPUT,
        ATEM_LOG_JSON_FILE,
    )

    return AtemLogger(
        name=name,
        log_format=log_format or ATEM_LOG_FORMAT,
        json_file=json_file or ATEM_LOG_JSON_FILE,
        human_output=human_output or ATEM_LOG_HUMAN_OUTPUT,
        level=level,
    )
