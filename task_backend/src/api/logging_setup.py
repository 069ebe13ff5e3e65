"""
structlog configuration.

Console rendering for local development, one JSON object per line in
production. Values bound with structlog.contextvars (the request id) are merged
into every event.
"""
from __future__ import annotations

import logging

import structlog


# PUBLIC_INTERFACE
def configure_logging(level: str = "INFO", json_output: bool = False) -> None:
    """Configure structlog for the process. Safe to call more than once."""
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_output:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        # ConsoleRenderer formats exceptions itself.
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        cache_logger_on_first_use=False,
    )
