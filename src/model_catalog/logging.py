"""
Structured logging configuration for the model catalog.

Uses structlog for structured, context-aware logging with:
- JSON output for production runs
- Pretty console output for development
- Automatic timing context
- Run / model / stage propagation through context variables
"""

import logging
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Generator

import structlog
from structlog.types import Processor

from .config import get_settings

# Context variables for run-scoped data
_run_id: ContextVar[str | None] = ContextVar('run_id', default=None)
_model_id: ContextVar[str | None] = ContextVar('model_id', default=None)
_stage: ContextVar[str | None] = ContextVar('stage', default=None)


def get_run_id() -> str | None:
    """Get the current run ID from context."""
    return _run_id.get()


def get_model_id() -> str | None:
    """Get the model currently being processed."""
    return _model_id.get()


def get_stage() -> str | None:
    """Get the current pipeline stage."""
    return _stage.get()


def add_context_info(
    logger: structlog.types.WrappedLogger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Processor that adds context variables to log entries."""
    run_id = get_run_id()
    model_id = get_model_id()
    stage = get_stage()

    if run_id:
        event_dict['run_id'] = run_id
    if model_id:
        event_dict.setdefault('model_id', model_id)
    if stage:
        event_dict['stage'] = stage

    return event_dict


def configure_logging(
    json_output: bool = False,
    log_level: str | None = None,
) -> None:
    """
    Configure structlog for the application.

    Args:
        json_output: If True, output JSON logs (for CI / scheduled runs).
                    If False, output pretty console logs (for development).
        log_level: Override log level (defaults to LOG_LEVEL setting)
    """
    level = log_level or get_settings().LOG_LEVEL
    level_num = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        format='%(message)s',
        stream=sys.stdout,
        level=level_num,
    )

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_context_info,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt='iso'),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_output:
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level_num),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


@contextmanager
def logging_context(
    run_id: str | None = None,
    model_id: str | None = None,
    stage: str | None = None,
) -> Generator[None, None, None]:
    """
    Context manager for setting logging context variables.

    Usage:
        with logging_context(run_id="abc123", stage="process"):
            logger.info("model_unchanged")  # Includes run_id and stage
    """
    run_token = _run_id.set(run_id) if run_id is not None else None
    model_token = _model_id.set(model_id) if model_id is not None else None
    stage_token = _stage.set(stage) if stage is not None else None

    try:
        yield
    finally:
        if stage_token is not None:
            _stage.reset(stage_token)
        if model_token is not None:
            _model_id.reset(model_token)
        if run_token is not None:
            _run_id.reset(run_token)


class PipelineTimer:
    """
    Timer for tracking run stage durations.

    Usage:
        timer = PipelineTimer()
        with timer.stage("fetch_sources"):
            ...
        with timer.stage("process"):
            ...
        print(timer.summary())
    """

    def __init__(self):
        self.stages: dict[str, float] = {}
        self.start_time: float = time.perf_counter()

    @contextmanager
    def stage(self, name: str) -> Generator[None, None, None]:
        """Time a run stage and expose it as the logging `stage`."""
        started = time.perf_counter()
        with logging_context(stage=name):
            try:
                yield
            finally:
                self.stages[name] = (time.perf_counter() - started) * 1000

    def record(self, name: str, duration_ms: float) -> None:
        """Manually record a stage duration."""
        self.stages[name] = duration_ms

    @property
    def total_ms(self) -> float:
        """Total elapsed time since timer creation in milliseconds."""
        return (time.perf_counter() - self.start_time) * 1000

    def summary(self) -> dict[str, Any]:
        """Get timing summary as a dictionary."""
        return {
            'total_ms': round(self.total_ms, 2),
            'stages': {k: round(v, 2) for k, v in self.stages.items()},
        }


# Development mode by default; the CLI reconfigures from settings.
configure_logging(json_output=False)
