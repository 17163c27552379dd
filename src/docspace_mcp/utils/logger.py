# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Logging utilities for the DocSpace MCP server.

Everything is written to ``stderr``: the stdio transport owns ``stdout`` for
JSON-RPC framing, so a single stray log line there would corrupt the stream.

Plain and colored text output use the standard library formatter. JSON output
is opt-in (``DOCSPACE_LOG_JSON``) and serialized with orjson unless a custom
serializer is supplied.
"""

from __future__ import annotations

from collections.abc import Callable
import logging
import os
import sys
from typing import Any, ClassVar, Final

import orjson


RESET: Final[str] = "\033[0m"

DEBUG_COLOR: Final[str] = "\033[36m"
INFO_COLOR: Final[str] = "\033[32m"
WARNING_COLOR: Final[str] = "\033[33m"
ERROR_COLOR: Final[str] = "\033[1;31m"
CRITICAL_COLOR: Final[str] = "\033[1;35m"

LOGGER_COLOR: Final[str] = "\033[94m"

DEFAULT_LOGGER_NAME: Final[str] = "docspace_mcp"
ENV_LOG_LEVEL: Final[str] = "DOCSPACE_LOG_LEVEL"
ENV_LOG_JSON: Final[str] = "DOCSPACE_LOG_JSON"
ENV_NO_COLOR: Final[str] = "NO_COLOR"
DEFAULT_FORMAT: Final[str] = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DEFAULT_DATEFMT: Final[str] = "%Y-%m-%d %H:%M:%S"

JsonSerializer = Callable[[dict[str, Any]], str]
PayloadTransformer = Callable[[dict[str, Any]], dict[str, Any]]

# Attributes every record carries; anything else arrived through ``extra``.
_RECORD_ATTRS: Final[frozenset[str]] = frozenset(
    vars(logging.LogRecord("", logging.NOTSET, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}

_TRUTHY: Final[frozenset[str]] = frozenset({"1", "true", "yes", "y", "on"})


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the level and logger name."""

    LEVEL_COLORS: ClassVar[dict[int, str]] = {
        logging.DEBUG: DEBUG_COLOR,
        logging.INFO: INFO_COLOR,
        logging.WARNING: WARNING_COLOR,
        logging.ERROR: ERROR_COLOR,
        logging.CRITICAL: CRITICAL_COLOR,
    }

    def format(self, record: logging.LogRecord) -> str:
        original = record.levelname, record.name
        color = self.LEVEL_COLORS.get(record.levelno, "")
        record.levelname = f"{color}{record.levelname}{RESET}"
        record.name = f"{LOGGER_COLOR}{record.name}{RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname, record.name = original


class DocSpaceHandler(logging.StreamHandler):  # type: ignore[type-arg]
    """Stream handler owned by this package, always bound to ``stderr``."""

    def __init__(self) -> None:
        super().__init__(sys.stderr)


class StructuredJSONFormatter(logging.Formatter):
    """Serialize log records, including ``extra`` fields, as one JSON object per line."""

    def __init__(
        self,
        serializer: JsonSerializer,
        *,
        datefmt: str | None = None,
        payload_transformer: PayloadTransformer | None = None,
    ) -> None:
        super().__init__(datefmt=datefmt)
        self._serializer = serializer
        self._transformer = payload_transformer

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = dict(
            timestamp=self.formatTime(record, self.datefmt),
            level=record.levelname.lower(),
            logger=record.name,
            message=record.getMessage(),
        )
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        context = {key: value for key, value in vars(record).items() if key not in _RECORD_ATTRS}
        if context:
            payload["context"] = context

        if self._transformer is not None:
            payload = self._transformer(payload)
        return self._serializer(payload)


def _orjson_serializer(payload: dict[str, Any]) -> str:
    return orjson.dumps(payload, default=str).decode()


def _installed_handlers(root: logging.Logger) -> list[DocSpaceHandler]:
    return [handler for handler in root.handlers if isinstance(handler, DocSpaceHandler)]


def _env_flag(key: str) -> bool:
    return os.getenv(key, "").strip().lower() in _TRUTHY


def _resolve_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    name = (level or os.getenv(ENV_LOG_LEVEL) or "INFO").strip().upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def _build_formatter(
    *,
    use_json: bool,
    use_color: bool,
    json_serializer: JsonSerializer | None,
    payload_transformer: PayloadTransformer | None,
    fmt: str | None,
    datefmt: str | None,
) -> logging.Formatter:
    if use_json:
        return StructuredJSONFormatter(
            json_serializer or _orjson_serializer, datefmt=datefmt, payload_transformer=payload_transformer
        )
    formatter_cls = ColoredFormatter if use_color else logging.Formatter
    return formatter_cls(fmt or DEFAULT_FORMAT, datefmt=datefmt)


def setup_logger(
    *,
    level: int | str | None = None,
    use_json: bool | None = None,
    use_color: bool | None = None,
    json_serializer: JsonSerializer | None = None,
    payload_transformer: PayloadTransformer | None = None,
    fmt: str | None = None,
    datefmt: str | None = DEFAULT_DATEFMT,
    force: bool = False,
) -> None:
    """Install the package handler on the root logger.

    Args:
        level: Log level. Falls back to ``DOCSPACE_LOG_LEVEL`` then ``INFO``.
        use_json: Emit JSON lines. Defaults to ``DOCSPACE_LOG_JSON``.
        use_color: Colorize plain output. Defaults to on unless ``NO_COLOR``
            is set or JSON output is selected.
        json_serializer: Converts the payload dict into a string.
        payload_transformer: Adjusts the payload before serialization.
        fmt: Format string for plain-text logging.
        datefmt: Date format for both plain and JSON output.
        force: Replace a handler installed by an earlier call.
    """
    root = logging.getLogger()
    installed = _installed_handlers(root)
    if installed and not force:
        return
    for stale in installed:
        root.removeHandler(stale)
        stale.close()

    json_output = _env_flag(ENV_LOG_JSON) if use_json is None else use_json
    if use_color is None:
        use_color = not json_output and not os.getenv(ENV_NO_COLOR)

    resolved_level = _resolve_level(level)
    root.setLevel(resolved_level)

    handler = DocSpaceHandler()
    handler.setLevel(resolved_level)
    handler.setFormatter(
        _build_formatter(
            use_json=json_output,
            use_color=use_color,
            json_serializer=json_serializer,
            payload_transformer=payload_transformer,
            fmt=fmt,
            datefmt=datefmt,
        )
    )
    root.addHandler(handler)


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a named logger, installing the default handler on first use."""
    if not _installed_handlers(logging.getLogger()):
        setup_logger()
    return logging.getLogger(name or DEFAULT_LOGGER_NAME)


__all__ = [
    "DEFAULT_LOGGER_NAME",
    "ColoredFormatter",
    "DocSpaceHandler",
    "StructuredJSONFormatter",
    "get_logger",
    "setup_logger",
]
