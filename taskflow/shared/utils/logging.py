"""Structured logging for the lifecycle engine using structlog."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog


def _drop_unset(
    logger: Any, method_name: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    """Remove keys whose value is None so optional fields stay out of the line."""
    return {key: value for key, value in event_dict.items() if value is not None}


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
    service_name: str = "taskflow",
) -> None:
    """
    Configure structlog output for engine decisions.

    Transition decisions are logged at DEBUG, so hosts that want an audit
    trail of accepted and rejected transitions run with level DEBUG.

    Args:
        level: Minimum level emitted (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: One JSON object per line if True, coloured console otherwise
        service_name: Value of the ``service`` key on every entry
    """
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        _drop_unset,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if json_format:
        processors += [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level.upper())),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(service=service_name)


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


@contextmanager
def transition_context(
    item_id: str | None,
    item_kind: str,
    actor_id: str | None,
    actor_role: str | None,
) -> Iterator[None]:
    """
    Bind the work item and actor of one decision to every entry logged inside.

    The bindings are removed on exit, so nothing leaks into the next
    decision made on the same thread or task.
    """
    with structlog.contextvars.bound_contextvars(
        item_id=item_id,
        item_kind=item_kind,
        actor_id=actor_id,
        actor_role=actor_role,
    ):
        yield
