"""Structured logging for the turn server.

structlog events are rendered by stdlib logging handlers, so third-party
loggers and structlog share one output. Controlled by environment variables:

- LOG_FORMAT: "json" for log aggregation; "console" or unset for readable output.
- LOG_LEVEL: standard level name, INFO by default.
"""

from __future__ import annotations

import contextlib
import logging
import os
import sys
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Iterator, MutableMapping
    from typing import Any

LOG_FILE_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"

_LOG_FORMATS = ("console", "json")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _serialize_enums(
    _logger: object,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Replace Enum instances with their .value (rejection kinds, actor types)."""
    for key, value in event_dict.items():
        if isinstance(value, Enum):
            event_dict[key] = value.value
    return event_dict


def _env_choice(name: str, default: str, choices: tuple[str, ...]) -> str:
    value = os.environ.get(name) or default
    if value.lower() not in (c.lower() for c in choices):
        raise ValueError(f"Invalid {name}={value!r}. Must be one of {', '.join(choices)}.")
    return value


def _formatter(renderer: structlog.typing.Processor) -> logging.Formatter:
    # format_exc_info runs here rather than in structlog.configure so each
    # handler renders the traceback once.
    return structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )


def setup_logging(log_dir: Path | str | None = None) -> Path | None:
    """Route structlog through the root logger, writing to stdout and optionally a file.

    With a non-empty log_dir, events are also appended to a new
    "<timestamp>.log" file there. Returns that file's path, or None.
    """
    json_mode = _env_choice("LOG_FORMAT", "console", _LOG_FORMATS).lower() == "json"
    level = getattr(logging, _env_choice("LOG_LEVEL", "INFO", _LOG_LEVELS).upper())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            _serialize_enums,
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    # httpx logs every webhook request at INFO.
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    console = structlog.processors.JSONRenderer() if json_mode else structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(_formatter(console))
    root.addHandler(stdout_handler)

    if not log_dir:
        return None

    dir_path = Path(log_dir)
    dir_path.mkdir(parents=True, exist_ok=True)
    file_path = dir_path / f"{datetime.now(tz=UTC).strftime(LOG_FILE_TIMESTAMP_FORMAT)}.log"
    file_handler = logging.FileHandler(file_path)
    file_handler.setFormatter(
        _formatter(structlog.processors.JSONRenderer() if json_mode else structlog.dev.ConsoleRenderer(colors=False)),
    )
    root.addHandler(file_handler)
    return file_path


@contextlib.contextmanager
def bound_log_context(**values: object) -> Iterator[None]:
    """Bind key/values into structlog contextvars for the duration of the block.

    Only the keys bound here are removed on exit, so an outer request-level
    context survives.
    """
    structlog.contextvars.bind_contextvars(**values)
    try:
        yield
    finally:
        structlog.contextvars.unbind_contextvars(*values)
