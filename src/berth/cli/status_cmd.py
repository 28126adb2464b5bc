"""Status command: a table of running containers."""

import click
from rich.table import Table

from .service_utils import command_errors, load_config, open_manager
from .styles import Messages, Styles, console

SHORT_ID_LENGTH = 12


@click.command()
@click.option("--verbose", "-v", is_flag=True, help="Show additional hints")
def status(verbose: bool):
    """Show the status of running containers."""
    with command_errors("Checking container status"):
        with open_manager(load_config()) as manager:
            with console.status("[dim]Checking container status...[/dim]"):
                containers = manager.status()

        if not containers:
            console.print(Messages.warning("No containers are currently running"))
            console.print("\nStart a service with: [command]berth up <service>[/command]")
            return

        table = Table(title="🐳 Container Status", border_style=Styles.BORDER, header_style=Styles.HEADER)
        table.add_column("ID", style=Styles.DIM)
        table.add_column("Name", style=Styles.BOLD)
        table.add_column("Image", style=Styles.SECONDARY)
        table.add_column("Status")
        table.add_column("Ports", style=Styles.COMMAND)

        for container in containers:
            status_style = Styles.SUCCESS if container.running else Styles.ERROR
            table.add_row(
                container.id[:SHORT_ID_LENGTH],
                container.name,
                container.image,
                f"[{status_style}]{container.status}[/{status_style}]",
                container.ports or "N/A",
            )

        console.print(table)
        console.print(f"\nTotal: {len(containers)} container(s) running", style=Styles.INFO)
        if verbose:
            console.print("\n💡 Use [command]berth logs <service>[/command] to view container logs")
