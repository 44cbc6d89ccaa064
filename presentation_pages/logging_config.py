from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

PACKAGE_LOGGER = "presentation_pages"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | op=%(operation)s | %(message)s"

_operation: ContextVar[str] = ContextVar("page_operation", default="-")


class _OperationFilter(logging.Filter):
    """Stamps each record with the page operation that is running."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.operation = _operation.get()
        return True


@contextmanager
def operation_context(name: str) -> Iterator[None]:
    token = _operation.set(name)
    try:
        yield
    finally:
        _operation.reset(token)


def init_logging(level: str | int | None = None) -> logging.Logger:
    logger = logging.getLogger(PACKAGE_LOGGER)
    if logger.handlers:
        return logger
    if level is None:
        level = os.getenv("PAGES_LOG_LEVEL", "INFO")
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        level = resolved if isinstance(resolved, int) else logging.INFO

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(_OperationFilter())
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger


def get_logger(name: str) -> logging.Logger:
    init_logging()
    return logging.getLogger(name)
