"""
Structured logging for the extraction service.

structlog is configured once on import: console output for development,
JSON lines when LOG_JSON is set. Every entry carries whichever of
trace_id, batch_id and meeting_id are bound by logging_context().
"""

import logging
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Generator

import structlog
from structlog.types import Processor

from .config import config

CONTEXT_KEYS = ('trace_id', 'batch_id', 'meeting_id')

# One immutable mapping per context; asyncio tasks each get their own copy
_log_context: ContextVar[dict[str, str]] = ContextVar('meeting_insights_log_context', default={})


def current_context() -> dict[str, str]:
    """Ids bound by the innermost logging_context()."""
    return dict(_log_context.get())


def add_context_info(
    logger: structlog.types.WrappedLogger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Processor that stamps the bound ids onto each entry."""
    for key, value in _log_context.get().items():
        event_dict.setdefault(key, value)
    return event_dict


def configure_logging(
    json_output: bool | None = None,
    log_level: str | None = None,
) -> None:
    """
    Configure structlog for the application.

    Args:
        json_output: JSON lines if True; defaults to config.LOG_JSON
        log_level: Override log level (defaults to config.LOG_LEVEL)
    """
    if json_output is None:
        json_output = config.LOG_JSON
    level_num = getattr(logging, (log_level or config.LOG_LEVEL).upper(), logging.INFO)

    logging.basicConfig(format='%(message)s', stream=sys.stdout, level=level_num)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_context_info,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt='iso'),
    ]
    if json_output:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level_num),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


@contextmanager
def logging_context(**ids: str | None) -> Generator[None, None, None]:
    """
    Bind trace_id, batch_id and/or meeting_id for the enclosed block.

    Usage:
        with logging_context(batch_id=batch_id, meeting_id=meeting.id):
            logger.info('orchestrator.meeting_started')

    Ids passed as None keep their outer value. The outer binding is
    restored on exit.
    """
    unknown = set(ids) - set(CONTEXT_KEYS)
    if unknown:
        raise TypeError(f'Unknown logging context keys: {sorted(unknown)}')

    bound = {**_log_context.get(), **{k: v for k, v in ids.items() if v is not None}}
    token = _log_context.set(bound)
    try:
        yield
    finally:
        _log_context.reset(token)


class PipelineTimer:
    """
    Accumulates wall-clock milliseconds per extraction stage.

    A stage entered twice (one model call per attempt) adds up.
    """

    def __init__(self):
        self.stages: dict[str, float] = {}
        self.start_time = time.perf_counter()

    @contextmanager
    def stage(self, name: str) -> Generator[None, None, None]:
        started = time.perf_counter()
        try:
            yield
        finally:
            elapsed = (time.perf_counter() - started) * 1000
            self.stages[name] = self.stages.get(name, 0.0) + elapsed

    @property
    def total_ms(self) -> float:
        return (time.perf_counter() - self.start_time) * 1000

    def summary(self) -> dict[str, Any]:
        """Rounded totals, ready to splat into a log call."""
        return {
            'total_ms': round(self.total_ms, 2),
            'stages': {k: round(v, 2) for k, v in self.stages.items()},
        }


configure_logging()
