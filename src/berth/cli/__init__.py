"""Command-line interface for berth.

Commands:
    - up, down, restart, pull, logs, exec: service lifecycle
    - status, validate: inspection
    - list, search, show, download, update, remove: catalog and bundles
    - config: per-service environment files
    - init: scaffold a new service from a template

Uses Click with a lazily loaded command group; output goes through the Rich
console in :mod:`berth.cli.styles`.
"""

from .main import cli, main

__all__ = ["cli", "main"]
