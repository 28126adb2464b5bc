"""Main CLI entry point for berth.

All commands hang off the ``berth`` group. Command modules are imported only
when invoked, which keeps ``berth --help`` fast.
"""

import importlib
import sys

import click
import yaml

from berth import __version__

# Fix Windows console encoding to support Unicode characters (✓, ✗, ⚠️, etc.)
if sys.platform == "win32":
    import io

    if sys.stdout.encoding.lower() != "utf-8":
        sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding="utf-8", errors="replace", line_buffering=True)
    if sys.stderr.encoding.lower() != "utf-8":
        sys.stderr = io.TextIOWrapper(sys.stderr.buffer, encoding="utf-8", errors="replace", line_buffering=True)


# Command name -> (module, attribute)
COMMANDS = {
    "up": ("berth.cli.lifecycle_cmd", "up"),
    "down": ("berth.cli.lifecycle_cmd", "down"),
    "restart": ("berth.cli.lifecycle_cmd", "restart"),
    "pull": ("berth.cli.lifecycle_cmd", "pull"),
    "logs": ("berth.cli.lifecycle_cmd", "logs"),
    "exec": ("berth.cli.lifecycle_cmd", "exec_cmd"),
    "status": ("berth.cli.status_cmd", "status"),
    "validate": ("berth.cli.validate_cmd", "validate"),
    "list": ("berth.cli.catalog_cmd", "list_cmd"),
    "search": ("berth.cli.catalog_cmd", "search"),
    "show": ("berth.cli.catalog_cmd", "show"),
    "download": ("berth.cli.catalog_cmd", "download"),
    "update": ("berth.cli.catalog_cmd", "update"),
    "remove": ("berth.cli.catalog_cmd", "remove"),
    "config": ("berth.cli.config_cmd", "config"),
    "init": ("berth.cli.init_cmd", "init"),
}

ALIASES = {"ps": "status", "ls": "list"}


class LazyGroup(click.Group):
    """Click group that lazily loads subcommands only when invoked."""

    def get_command(self, ctx, cmd_name):
        cmd_name = ALIASES.get(cmd_name, cmd_name)
        if cmd_name not in COMMANDS:
            return None

        module_name, attribute = COMMANDS[cmd_name]
        return getattr(importlib.import_module(module_name), attribute)

    def list_commands(self, ctx):
        return list(COMMANDS)


@click.group(cls=LazyGroup)
@click.version_option(version=__version__, prog_name="berth")
def cli():
    """berth - run containerized services by name.

    Service bundles are downloaded from the catalog on first use and kept
    under ~/.berth/services (override with BERTH_HOME).

    Examples:

    \b
      berth up postgres        Start PostgreSQL
      berth status             Show running containers
      berth logs postgres -f   Follow logs
      berth down postgres      Stop PostgreSQL
      berth init myapp         Create a new service
      berth search sql         Search the catalog
      berth list --all         List every catalog service
    """
    from .styles import initialize_theme_from_config

    try:
        initialize_theme_from_config()
    except (ValueError, OSError, yaml.YAMLError):
        # The default theme is used; commands report config errors themselves
        pass


def main():
    """Entry point for the berth CLI."""
    try:
        cli()
    except KeyboardInterrupt:
        click.echo("\nGoodbye!", err=True)
        sys.exit(130)
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
