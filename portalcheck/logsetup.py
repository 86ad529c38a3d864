"""structlog setup shared by the test harness and scripts."""
from __future__ import annotations

import logging

import structlog

from portalcheck.config import LogSettings

# Above CRITICAL: the stdlib root logger drops everything.
_SILENT = logging.CRITICAL + 1


def resolve_level(settings: LogSettings) -> int:
    if not settings.enabled:
        return _SILENT
    level = logging.getLevelName(settings.level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {settings.level!r}")
    return level


def configure_logging(settings: LogSettings) -> None:
    """Configure structlog and the stdlib root logger to the same level."""
    level = resolve_level(settings)
    renderer = (
        structlog.processors.JSONRenderer()
        if settings.json
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    # ReturnLogger renders but never writes, which is how "disabled" works.
    factory = (
        structlog.PrintLoggerFactory()
        if settings.enabled
        else structlog.ReturnLoggerFactory()
    )
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(min(level, logging.CRITICAL)),
        context_class=dict,
        logger_factory=factory,
        cache_logger_on_first_use=False,
    )
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        force=True,
    )
