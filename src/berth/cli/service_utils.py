"""Shared plumbing for CLI commands.

Config loading, wiring of the pipeline and service manager, and the common
error handling every command wraps its body in.
"""

import os
import traceback
from collections.abc import Iterator
from contextlib import contextmanager

import click
import yaml

from berth.bundles.exceptions import BerthError
from berth.deployment.lifecycle import ServiceManager, build_service_manager
from berth.deployment.runtime_helper import verify_runtime_is_running
from berth.utils.config import ConfigBuilder, get_config_builder
from berth.utils.log_filter import quiet_logger

from .styles import Messages, Styles, console

INTERRUPTED_EXIT_CODE = 130


def load_config() -> ConfigBuilder:
    """Load the user configuration, aborting with a readable message on error."""
    try:
        with quiet_logger(["CONFIG"]):
            return get_config_builder()
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        console.print(Messages.error(f"Could not load configuration: {e}"))
        raise click.Abort() from None


def open_manager(config: ConfigBuilder, require_running: bool = True) -> ServiceManager:
    """Build a ServiceManager, checking the container runtime first.

    With ``require_running`` the runtime daemon must answer ``ps``; otherwise
    only the binaries need to be installed. The returned manager is a context
    manager that closes its catalog client.
    """
    manager = build_service_manager(config)
    if require_running:
        running, message = verify_runtime_is_running(config)
        if not running:
            manager.close()
            console.print(Messages.error("Container runtime is not available"))
            console.print(f"\n{message}\n", style=Styles.WARNING)
            raise click.Abort()
    return manager


@contextmanager
def command_errors(action: str) -> Iterator[None]:
    """Turn berth errors into styled output and a non-zero exit.

    ``BerthError`` and ``OSError`` abort with exit code 1; an interrupt exits
    with 130. Set ``DEBUG`` to see the traceback.
    """
    try:
        yield
    except KeyboardInterrupt:
        console.print("\n⚠️  Operation cancelled by user", style=Styles.WARNING)
        click.get_current_context().exit(INTERRUPTED_EXIT_CODE)
    except (BerthError, OSError) as e:
        console.print(Messages.error(f"{action} failed"))
        console.print(f"\n{e}\n", style=Styles.ERROR, markup=False)

        if os.environ.get("DEBUG"):
            console.print(traceback.format_exc(), style=Styles.DIM, markup=False)
        raise click.Abort() from None
