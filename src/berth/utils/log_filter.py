"""Logging suppression helpers.

Temporarily silence verbose loggers during operations where their INFO
output would be noise, such as loading configuration from the CLI or
running ``--quiet`` commands, while keeping warnings and errors visible.

Examples:
    Quiet a single logger::

        >>> with quiet_logger("CONFIG"):
        ...     load_settings()

    Quiet several loggers below ERROR::

        >>> with suppress_logger_level(["berth.catalog", "berth.pipeline"], logging.ERROR):
        ...     pipeline.ensure_bundle("redis")
"""

import logging
from contextlib import contextmanager


@contextmanager
def suppress_logger_level(logger_name: str | list[str], level: int):
    """Context manager to temporarily raise logger level to suppress messages.

    Args:
        logger_name: Name of logger(s) to modify.
        level: The temporary log level; messages below it are suppressed.

    Yields:
        Dictionary mapping logger names to their original levels
    """
    logger_names = [logger_name] if isinstance(logger_name, str) else logger_name

    loggers = [logging.getLogger(name) for name in logger_names]
    original_levels = {name: logger.level for name, logger in zip(logger_names, loggers)}

    for logger in loggers:
        logger.setLevel(level)

    try:
        yield original_levels
    finally:
        for name, logger in zip(logger_names, loggers):
            logger.setLevel(original_levels[name])


@contextmanager
def quiet_logger(logger_name: str | list[str]):
    """Suppress INFO and DEBUG messages from logger(s), keep WARNING and above."""
    with suppress_logger_level(logger_name, logging.WARNING) as levels:
        yield levels


__all__ = [
    "suppress_logger_level",
    "quiet_logger",
]
