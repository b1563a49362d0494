"""Logging setup for ReportQL entry points."""

import logging

from rich.logging import RichHandler

from reportql.config import get_settings


def configure_logging(level: str | int | None = None) -> None:
    """
    Route log records through rich.

    Library modules only create `logging.getLogger(__name__)` loggers;
    scripts call this once at startup.
    """
    if level is None:
        level = get_settings().log_level
    if isinstance(level, str):
        level = level.upper()

    logging.basicConfig(
        level=level,
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )
