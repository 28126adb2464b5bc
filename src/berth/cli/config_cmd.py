"""Config command: manage a service's ``.env`` file.

Without options an interactive wizard walks through the bundle's env sample
and writes ``.env``. ``--edit`` opens it in ``$VISUAL``/``$EDITOR``,
``--reset`` restores it from the sample (after a backup), ``--show`` prints
it and ``--set KEY=VALUE`` changes single variables non-interactively.
"""

import shlex
import subprocess
from pathlib import Path

import click
import questionary
from rich.markup import escape

from berth.bundles.envfile import (
    BASIC_ENV_HEADER,
    ENV_FILE_NAME,
    ensure_env_file,
    find_env_sample,
    parse_env_file,
    reset_env_file,
    resolve_editor,
    set_env_value,
    write_env_file,
)
from berth.bundles.exceptions import ServiceNotInstalledError
from berth.bundles.store import BundleStore

from .service_utils import command_errors, load_config
from .styles import Messages, Styles, console, get_questionary_style


def _restart_hint(service: str) -> None:
    console.print("\n💡 Restart the service to apply changes:", style=Styles.WARNING)
    console.print(f"   [command]berth restart {service}[/command]\n")


def _show_env(env_path: Path) -> None:
    if not env_path.is_file():
        console.print(Messages.warning("No .env file found"))
        console.print(f"\nCreate one with: [command]berth config {env_path.parent.name}[/command]")
        return

    entries = parse_env_file(env_path)
    if not entries:
        console.print(Messages.warning("No configuration found"))
        return

    console.print(Messages.header("\nCurrent configuration:\n"))
    for entry in entries:
        console.print(entry.key, style=Styles.BOLD, markup=False)
        console.print(f"  Value: {entry.value or '(empty)'}", style=Styles.DIM, markup=False)
        if entry.comment:
            console.print(f"  Note: {entry.comment}", style=Styles.DIM, markup=False)
    console.print(f"\nTotal: {len(entries)} variable(s)", style=Styles.INFO)
    console.print(Messages.path(str(env_path)))


def _edit_env(service: str, bundle_path: Path) -> None:
    env_path = ensure_env_file(bundle_path)
    editor = resolve_editor()
    console.print(f"\n📝 Opening {ENV_FILE_NAME} in [command]{editor}[/command]...\n")

    result = subprocess.run([*shlex.split(editor), str(env_path)])
    if result.returncode == 0:
        console.print(Messages.success("File saved"))
        _restart_hint(service)
    else:
        console.print(Messages.error(f"Editor exited with code {result.returncode}"))
        raise click.Abort()


def _reset_env(service: str, bundle_path: Path) -> None:
    try:
        _, backup = reset_env_file(bundle_path)
    except FileNotFoundError:
        console.print(Messages.warning(f"{service} ships no env sample, nothing to reset to"))
        return

    if backup is not None:
        console.print(f"Backup created: {backup.name}", style=Styles.DIM)
    console.print(Messages.success("Configuration reset to defaults"))
    console.print(f"\nEdit it with: [command]berth config {service} --edit[/command]")


def _set_values(service: str, bundle_path: Path, assignments: tuple[str, ...]) -> None:
    for assignment in assignments:
        key, sep, value = assignment.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"expected KEY=VALUE, got {assignment!r}", param_hint="--set")
        set_env_value(bundle_path, key.strip(), value)
        console.print(Messages.success(f"{key.strip()} updated"))
    _restart_hint(service)


def _wizard(service: str, bundle_path: Path) -> None:
    style = get_questionary_style()
    env_path = bundle_path / ENV_FILE_NAME
    sample = find_env_sample(bundle_path)

    console.print(Messages.header(f"\n⚙️  Configure {service}\n"))

    existing = {}
    if env_path.is_file():
        console.print(Messages.warning("Existing .env file found"))
        action = questionary.select(
            "What would you like to do?",
            choices=[
                questionary.Choice("Edit existing configuration", value="edit"),
                questionary.Choice("Reset to defaults (from sample)", value="reset"),
                questionary.Choice("View current configuration", value="view"),
                questionary.Choice("Cancel", value="cancel"),
            ],
            style=style,
        ).ask()

        if action is None or action == "cancel":
            console.print("Configuration cancelled.", style=Styles.DIM)
            return
        if action == "view":
            _show_env(env_path)
            return
        if action == "reset":
            _reset_env(service, bundle_path)
            return
        existing = {entry.key: entry.value for entry in parse_env_file(env_path)}

    if sample is None:
        console.print(Messages.warning("No env sample found for this service"))
        if questionary.confirm("Create an empty .env file?", default=True, style=style).ask():
            env_path.write_text(BASIC_ENV_HEADER)
            console.print(Messages.success(f"Created {env_path}"))
        return

    entries = parse_env_file(sample)
    if not entries:
        console.print(Messages.warning("Sample file is empty or invalid"))
        return

    console.print(f"Found {len(entries)} configuration option(s)", style=Styles.INFO)
    console.print("Press Enter to keep default values\n", style=Styles.DIM)

    answers = {}
    for entry in entries:
        message = f"{entry.key} ({entry.comment})" if entry.comment else entry.key
        answer = questionary.text(message, default=existing.get(entry.key) or entry.value, style=style).ask()
        if answer is None:
            console.print("Configuration cancelled.", style=Styles.DIM)
            return
        answers[entry.key] = answer

    write_env_file(bundle_path, service, entries, answers)
    console.print(Messages.success(f"Configuration saved to {ENV_FILE_NAME}"))
    _restart_hint(service)


@click.command()
@click.argument("service")
@click.option("--edit", "-e", is_flag=True, help="Open .env in your editor")
@click.option("--reset", "-r", is_flag=True, help="Reset .env to the bundle's sample (keeps a backup)")
@click.option("--show", "-s", is_flag=True, help="Show the current .env")
@click.option("--set", "assignments", multiple=True, metavar="KEY=VALUE", help="Set a variable (repeatable)")
def config(service: str, edit: bool, reset: bool, show: bool, assignments: tuple[str, ...]):
    """Configure a service's environment variables.

    Examples:

    \b
      $ berth config postgres
      $ berth config postgres --show
      $ berth config postgres --set POSTGRES_PASSWORD=secret
    """
    with command_errors(f"Configuring {escape(service)}"):
        store = BundleStore(load_config().services_dir)
        bundle_path = store.resolve_path(service)
        if not store.exists(service):
            raise ServiceNotInstalledError(service, bundle_path)

        if edit:
            _edit_env(service, bundle_path)
        elif reset:
            _reset_env(service, bundle_path)
        elif show:
            _show_env(bundle_path / ENV_FILE_NAME)
        elif assignments:
            _set_values(service, bundle_path, assignments)
        else:
            _wizard(service, bundle_path)
