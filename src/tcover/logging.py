"""Log rendering for tcover.

Library modules log through ``logging.getLogger(__name__)`` and never
configure handlers themselves. The CLI calls :func:`configure_logging`
once, choosing between:

- JSON lines (``log_format: json``), one object per record
- a compact terminal layout, colored when stderr is a TTY

Fields bound with :func:`log_context` (the result file and model under
evaluation, usually) are attached to every record emitted inside the
block. Records may also carry the evaluation fields in ``RECORD_FIELDS``
through ``extra=``.

Example:
    Basic usage::

        from tcover.logging import configure_logging, log_context

        configure_logging(level="DEBUG", json_format=True)

        with log_context(file="results/CASA/sa_apache_1.txt", model="apache"):
            evaluator.evaluate_coverage(suite, 2)
"""

from __future__ import annotations

import json
import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, TextIO

_bound_fields: ContextVar[dict[str, Any]] = ContextVar("tcover_bound_fields", default={})

# evaluation details a record may carry via ``extra=``
RECORD_FIELDS = ("subset", "strength", "clause", "assignment")

LOGGER_NAME = "tcover"


def _record_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        name: getattr(record, name)
        for name in RECORD_FIELDS
        if getattr(record, name, None) is not None
    }


class StructuredFormatter(logging.Formatter):
    """Render records as single-line JSON objects.

    Attributes:
        include_location: Add the emitting file, line and function.
        extra_fields: Static fields merged into every object without
            overriding the standard keys.
    """

    def __init__(
        self,
        include_location: bool = False,
        extra_fields: dict[str, Any] | None = None,
    ) -> None:
        super().__init__()
        self.include_location = include_location
        self.extra_fields = extra_fields or {}

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: dict[str, Any] = {
            "timestamp": created.isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(_record_fields(record))

        if self.include_location:
            entry["location"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

        bound = _bound_fields.get()
        if bound:
            entry["context"] = dict(bound)

        if record.exc_info and record.exc_info[0] is not None:
            error = record.exc_info[1]
            entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(error) if error else None,
                "traceback": self.formatException(record.exc_info),
            }
            # TcoverError subclasses
            code = getattr(error, "error_code", None)
            if code is not None:
                entry["exception"]["code"] = code.value

        for key, value in self.extra_fields.items():
            entry.setdefault(key, value)

        return json.dumps(entry, default=str, ensure_ascii=False)


class HumanReadableFormatter(logging.Formatter):
    """Compact one-line layout for terminals.

    ``12:04:31.207 WARNING  oracle       Constraint contradiction ... [model=apache]``
    """

    COLORS = {
        "DEBUG": "\033[2m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[1;31m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__()
        self.use_colors = use_colors and self._supports_color()

    @staticmethod
    def _supports_color() -> bool:
        if os.environ.get("NO_COLOR"):
            return False
        return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        stamp = datetime.fromtimestamp(record.created).strftime(datefmt or "%H:%M:%S")
        return f"{stamp}.{int(record.msecs):03d}"

    def format(self, record: logging.LogRecord) -> str:
        level = f"{record.levelname:8}"
        if self.use_colors:
            level = f"{self.COLORS.get(record.levelname, '')}{level}{self.RESET}"

        # tcover.solver.oracle -> oracle
        source = record.name.rsplit(".", 1)[-1]
        line = f"{self.formatTime(record)} {level} {source:12} {record.getMessage()}"

        fields = {**_bound_fields.get(), **_record_fields(record)}
        if fields:
            line += " [" + " ".join(f"{k}={v}" for k, v in fields.items()) + "]"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(
    level: int | str = logging.INFO,
    json_format: bool = False,
    include_location: bool = False,
    stream: TextIO | None = None,
) -> None:
    """Install a single handler on the ``tcover`` logger.

    Calling it again replaces the previous handler. Output goes to stderr
    unless ``stream`` is given, so ``--json`` reports on stdout stay
    parseable.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(
        StructuredFormatter(include_location=include_location)
        if json_format
        else HumanReadableFormatter()
    )

    logger = logging.getLogger(LOGGER_NAME)
    for old in list(logger.handlers):
        logger.removeHandler(old)
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """A logger under ``tcover``; bare names are prefixed."""
    if name == LOGGER_NAME or name.startswith(LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


@contextmanager
def log_context(**fields: Any) -> Iterator[None]:
    """Bind ``fields`` to every record logged inside the block.

    Nested blocks extend the outer fields; the outer set is restored on exit.
    """
    token = _bound_fields.set({**_bound_fields.get(), **fields})
    try:
        yield
    finally:
        _bound_fields.reset(token)


def get_context() -> dict[str, Any]:
    """The fields currently bound by :func:`log_context`."""
    return dict(_bound_fields.get())
