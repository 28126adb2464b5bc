"""Lifecycle commands: up, down, restart, pull, logs and exec.

Thin wrappers around :class:`berth.deployment.lifecycle.ServiceManager`.
``up`` acquires the bundle on first use; the other verbs need it installed.
Service names are escaped before they reach Rich markup.
"""

import click
from rich.markup import escape

from .service_utils import command_errors, load_config, open_manager
from .styles import Messages, Styles, console


@click.command()
@click.argument("service")
def up(service: str):
    """Start a service, downloading its bundle first if needed.

    Examples:

    \b
      $ berth up postgres
      $ berth up redis
    """
    label = escape(service)
    with command_errors(f"Starting {label}"):
        config = load_config()
        with open_manager(config) as manager:
            with console.status(f"[dim]Starting {label}...[/dim]"):
                manager.up(service)

            console.print(Messages.success(f"{label} is up"))
            console.print(Messages.label_value("Location", str(manager.store.resolve_path(service))))
            console.print(f"\nView logs: [command]berth logs {label}[/command]")


@click.command()
@click.argument("service")
@click.option("--volumes", "-v", is_flag=True, help="Also remove named volumes (destroys data)")
def down(service: str, volumes: bool):
    """Stop and remove a service's containers."""
    label = escape(service)
    with command_errors(f"Stopping {label}"):
        with open_manager(load_config()) as manager:
            with console.status(f"[dim]Stopping {label}...[/dim]"):
                manager.down(service, volumes=volumes)

        console.print(Messages.success(f"{label} has been stopped"))
        if volumes:
            console.print("   Named volumes were removed", style=Styles.DIM)


@click.command()
@click.argument("service")
def restart(service: str):
    """Restart a service (down, then up)."""
    label = escape(service)
    with command_errors(f"Restarting {label}"):
        with open_manager(load_config()) as manager:
            with console.status(f"[dim]Restarting {label}...[/dim]"):
                manager.restart(service)

        console.print(Messages.success(f"{label} has been restarted"))
        console.print(f"\nView logs: [command]berth logs {label}[/command]")


@click.command()
@click.argument("service")
def pull(service: str):
    """Pull the latest images for a service."""
    label = escape(service)
    with command_errors(f"Pulling images for {label}"):
        with open_manager(load_config()) as manager:
            with console.status(f"[dim]Pulling latest images for {label}...[/dim]"):
                manager.pull(service)

        console.print(Messages.success(f"Images for {label} have been updated"))
        console.print(f"\nTo apply updates: [command]berth restart {label}[/command]")


@click.command()
@click.argument("service")
@click.option("--follow", "-f", is_flag=True, help="Follow log output")
@click.option("--tail", "-n", type=int, default=None, help="Number of lines to show from the end (default: 100)")
@click.option("--timestamps", "-t", is_flag=True, help="Show timestamps")
def logs(service: str, follow: bool, tail: int | None, timestamps: bool):
    """Show a service's container logs.

    With --follow, press Ctrl+C to stop.
    """
    label = escape(service)
    with command_errors(f"Reading logs for {label}"):
        with open_manager(load_config()) as manager:
            console.print(f"📋 Logs for [header]{label}[/header]\n", style=Styles.DIM)
            manager.logs(service, follow=follow, tail=tail, timestamps=timestamps)


@click.command(name="exec", context_settings={"ignore_unknown_options": True})
@click.argument("service")
@click.argument("command", nargs=-1, type=click.UNPROCESSED)
@click.option("--interactive", "-i", is_flag=True, help="Keep STDIN open and allocate a TTY")
def exec_cmd(service: str, command: tuple[str, ...], interactive: bool):
    """Run a command in a service's running container.

    Without COMMAND an interactive shell is opened.

    Examples:

    \b
      $ berth exec postgres psql -U postgres
      $ berth exec redis
    """
    with command_errors(f"Executing in {escape(service)}"):
        with open_manager(load_config()) as manager:
            if not command:
                console.print("Opening interactive shell...\n", style=Styles.DIM)
            manager.exec_in(service, list(command), interactive=interactive)
