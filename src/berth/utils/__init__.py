"""Shared utilities for berth.

Modules:
    config: Configuration builder and access functions
    logger: Rich component logging
    log_filter: Temporary logging suppression helpers
"""

from . import config, log_filter, logger

__all__ = ["config", "logger", "log_filter"]
