"""Init command: scaffold a new local service bundle from a template."""

import shutil

import click
import questionary
from rich.markup import escape

from berth.bundles.store import BundleStore
from berth.bundles.templates import INIT_TEMPLATES, render_init_template

from .service_utils import command_errors, load_config
from .styles import Messages, Styles, console, get_questionary_style

DATABASE_TYPES = ["postgres", "mysql"]


@click.command()
@click.argument("service")
@click.option(
    "--template",
    "-t",
    type=click.Choice(list(INIT_TEMPLATES), case_sensitive=False),
    default=None,
    help="Template to use (prompted for when omitted)",
)
@click.option(
    "--db-type",
    type=click.Choice(DATABASE_TYPES, case_sensitive=False),
    default=None,
    help="Database for the 'database' template (prompted for when omitted)",
)
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing service without asking")
def init(service: str, template: str | None, db_type: str | None, force: bool):
    """Create a new service bundle from a template.

    Available templates:

    \b
      - basic:    Simple single-container setup
      - database: PostgreSQL or MySQL database
      - webapp:   App, database, and reverse proxy
      - empty:    Create from scratch

    Examples:

    \b
      $ berth init myapp
      $ berth init mydb --template database --db-type mysql
    """
    style = get_questionary_style()

    with command_errors(f"Initializing {escape(service)}"):
        store = BundleStore(load_config().services_dir)
        path = store.resolve_path(service)

        if store.is_present(service) and not force:
            overwrite = questionary.confirm(
                f'Service "{service}" already exists. Overwrite?', default=False, style=style
            ).ask()
            if not overwrite:
                console.print("Initialization cancelled.", style=Styles.DIM)
                return

        if template is None:
            template = questionary.select(
                "Select a template:",
                choices=[questionary.Choice(label, value=key) for key, label in INIT_TEMPLATES.items()],
                style=style,
            ).ask()
            if template is None:
                raise click.Abort()

        if template == "database" and db_type is None:
            db_type = questionary.select("Select database type:", choices=DATABASE_TYPES, style=style).ask()
            if db_type is None:
                raise click.Abort()

        content = render_init_template(template.lower(), service, (db_type or "postgres").lower())

        if path.exists():
            shutil.rmtree(path)
        path.mkdir(parents=True)
        for filename, text in content.files.items():
            (path / filename).write_text(text)

        console.print(Messages.success(f'Service "{service}" initialized'))
        console.print(Messages.label_value("Location", str(path)))
        console.print("Files created:", style=Styles.DIM)
        for filename in content.files:
            console.print(f"  • {filename}", style=Styles.DIM)

        console.print("\n💡 Next steps:", style=Styles.WARNING)
        console.print(f"  1. Edit [path]{path / 'docker-compose.yml'}[/path]")
        console.print(f"  2. Run: [command]berth up {service}[/command]")
