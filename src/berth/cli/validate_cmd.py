"""Validate command: static descriptor checks plus the compose config check."""

import click
from rich.markup import escape

from .service_utils import command_errors, load_config, open_manager
from .styles import Messages, Styles, console


@click.command()
@click.argument("service")
def validate(service: str):
    """Validate a service's docker-compose.yml.

    Exits with status 1 when issues were found; warnings alone pass.
    """
    label = escape(service)
    with command_errors(f"Validating {label}"):
        with open_manager(load_config(), require_running=False) as manager:
            with console.status(f"[dim]Validating {label} configuration...[/dim]"):
                report = manager.validate(service)

    if report.issues:
        console.print(Messages.error(f"Found {len(report.issues)} issue(s) in {label}:"))
        for issue in report.issues:
            console.print(f"   • {issue}", style=Styles.ERROR, markup=False)
    else:
        console.print(Messages.success(f"{label} configuration is valid"))

    if report.warnings:
        console.print(Messages.warning(f"{len(report.warnings)} warning(s):"))
        for warning in report.warnings:
            console.print(f"   • {warning}", style=Styles.WARNING, markup=False)

    if not report.is_valid:
        raise click.Abort()
