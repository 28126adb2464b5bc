"""Catalog and bundle commands: list, search, show, download, update, remove.

None of these need a container runtime; they work on the local bundle store
and the remote catalog only.
"""

import click
from rich.markup import escape

from berth.bundles.catalog import CatalogClient
from berth.bundles.exceptions import ServiceNotInstalledError
from berth.bundles.pipeline import build_pipeline
from berth.bundles.store import BundleStore
from berth.bundles.templates import match_kind
from berth.deployment.lifecycle import describe_bundle

from .service_utils import command_errors, load_config
from .styles import Messages, Styles, console

MAX_LISTED_VOLUMES = 3


@click.command(name="list")
@click.option("--all", "-a", "show_all", is_flag=True, help="List every service in the remote catalog")
def list_cmd(show_all: bool):
    """List installed services, or the whole catalog with --all."""
    with command_errors("Listing services"):
        config = load_config()

        if show_all:
            with CatalogClient.from_config(config) as catalog:
                with console.status("[dim]Fetching available services...[/dim]"):
                    names = catalog.list_available()
            installed = set(BundleStore(config.services_dir).list_installed())

            console.print(Messages.header("\nAvailable services:\n"))
            for name in names:
                marker = " [success](installed)[/success]" if name in installed else ""
                console.print(f"  • [accent]{escape(name)}[/accent]{marker}")
            console.print(f"\nTotal: {len(names)} service(s)", style=Styles.DIM)
            return

        store = BundleStore(config.services_dir)
        names = store.list_installed()
        if not names:
            console.print(Messages.warning("No services installed yet"))
            console.print("\nSee what is available: [command]berth list --all[/command]")
            return

        console.print(Messages.header(f"\nInstalled services ({store.root}):\n"))
        for name in names:
            marker = "" if store.exists(name) else " [warning](incomplete)[/warning]"
            console.print(f"  • [accent]{escape(name)}[/accent]{marker}")


@click.command()
@click.argument("query")
def search(query: str):
    """Search the catalog for services whose name contains QUERY."""
    if not query.strip():
        console.print(Messages.warning("Please provide a search query"))
        console.print("\nExample: [command]berth search postgres[/command]")
        return

    with command_errors("Searching services"):
        config = load_config()
        with CatalogClient.from_config(config) as catalog:
            with console.status("[dim]Searching services...[/dim]"):
                results = catalog.search(query)

        if not results:
            console.print(Messages.warning(f'No services found matching "{escape(query)}"'))
            console.print("\nTry a different term or [command]berth list --all[/command]")
            return

        console.print(Messages.header(f'\n🔍 Search results for "{escape(query)}":'))
        for index, name in enumerate(results, 1):
            console.print(f"\n{index}. [bold]{escape(name)}[/bold]", style=Styles.SUCCESS)
            kind = match_kind(name)
            if kind is not None:
                console.print(f"   {kind.description}", style=Styles.DIM)
            console.print(f"   To install: [command]berth up {escape(name)}[/command]")
        console.print(f"\nFound {len(results)} service(s)", style=Styles.DIM)


@click.command()
@click.argument("service")
def show(service: str):
    """Show the files and containers of an installed service."""
    label = escape(service)
    with command_errors(f"Showing {label}"):
        config = load_config()
        info = describe_bundle(BundleStore(config.services_dir), service)

        console.print(f"\n[header]{label.upper()}[/header]\n")
        console.print(Messages.label_value("Location", escape(str(info.path))))
        console.print(Messages.label_value("Files", escape(", ".join(info.files))))

        if info.services:
            console.print("\n🐳 Containers:", style=Styles.BOLD)
        for name, details in info.services.items():
            console.print(f"\n   [accent]{escape(str(name))}[/accent]")
            if details["image"]:
                console.print(f"      Image: {details['image']}", style=Styles.DIM, markup=False)
            for port in details["ports"]:
                console.print(f"      Port: {port}", style=Styles.DIM, markup=False)
            for volume in details["volumes"][:MAX_LISTED_VOLUMES]:
                console.print(f"      Volume: {volume}", style=Styles.DIM, markup=False)
            if len(details["volumes"]) > MAX_LISTED_VOLUMES:
                hidden = len(details["volumes"]) - MAX_LISTED_VOLUMES
                console.print(f"      ... and {hidden} more", style=Styles.DIM)

        console.print("\n💡 Quick commands:", style=Styles.WARNING)
        for verb, help_text in (("up", "Start the service"), ("down", "Stop the service"), ("logs", "View logs")):
            console.print(f"   [command]berth {verb} {label}[/command]  {help_text}")


@click.command()
@click.argument("service")
def download(service: str):
    """Download a service bundle without starting it."""
    label = escape(service)
    with command_errors(f"Downloading {label}"):
        config = load_config()
        with CatalogClient.from_config(config) as catalog:
            pipeline = build_pipeline(config, catalog)
            already = pipeline.store.exists(service)
            with console.status(f"[dim]Downloading {label}...[/dim]"):
                path = pipeline.ensure_bundle(service)

        if already:
            console.print(Messages.info(f"{label} is already installed"))
        else:
            console.print(Messages.success(f"Downloaded {label}"))
        console.print(Messages.label_value("Location", str(path)))


@click.command()
@click.argument("service")
def update(service: str):
    """Re-download a service bundle, keeping a backup of the current one."""
    label = escape(service)
    with command_errors(f"Updating {label}"):
        config = load_config()
        with CatalogClient.from_config(config) as catalog:
            pipeline = build_pipeline(config, catalog)
            with console.status(f"[dim]Updating {label}...[/dim]"):
                path = pipeline.update_bundle(service)

        console.print(Messages.success(f"Updated {label}"))
        console.print(Messages.label_value("Location", str(path)))
        console.print(f"Backups: {pipeline.store.backup_dir}", style=Styles.DIM)


@click.command()
@click.argument("service")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
def remove(service: str, yes: bool):
    """Delete an installed service bundle from disk.

    Running containers are not stopped; run 'berth down' first.
    """
    label = escape(service)
    with command_errors(f"Removing {label}"):
        config = load_config()
        store = BundleStore(config.services_dir)
        path = store.resolve_path(service)
        if not store.is_present(service):
            raise ServiceNotInstalledError(service, path)
        if not yes:
            click.confirm(f"Delete {path}?", abort=True)

        with CatalogClient.from_config(config) as catalog:
            build_pipeline(config, catalog).remove_bundle(service)
        console.print(Messages.success(f"Removed {label}"))
