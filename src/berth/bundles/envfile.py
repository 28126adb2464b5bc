"""Per-bundle ``.env`` management.

Bundles may ship an env sample (``env.sample``, ``.env.sample``,
``.env.example`` or ``env.example``). The ``berth config`` wizard reads the
sample, prompts for each variable and writes ``.env`` next to the
descriptor, where the compose binary picks it up automatically.

Values are parsed with python-dotenv. Comments directly above a variable
(no blank line in between) are kept as that variable's description.
"""

import os
import shutil
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from dotenv import dotenv_values, set_key

from berth.utils.logger import get_logger

logger = get_logger("envfile")

ENV_FILE_NAME = ".env"
ENV_SAMPLE_NAMES = ("env.sample", ".env.sample", ".env.example", "env.example")
DEFAULT_EDITOR = "nano"
BASIC_ENV_HEADER = "# Environment configuration\n\n"


@dataclass
class EnvEntry:
    key: str
    value: str
    comment: str = ""


def find_env_sample(bundle_path: Path) -> Path | None:
    """First env sample present in the bundle, in :data:`ENV_SAMPLE_NAMES` order."""
    for name in ENV_SAMPLE_NAMES:
        candidate = bundle_path / name
        if candidate.is_file():
            return candidate
    return None


def _collect_comments(lines: list[str]) -> dict[str, str]:
    comments: dict[str, str] = {}
    pending: list[str] = []
    for line in lines:
        stripped = line.strip()
        if stripped.startswith("#"):
            text = stripped.lstrip("#").strip()
            if text:
                pending.append(text)
        elif not stripped:
            pending = []
        elif "=" in stripped:
            key = stripped.split("=", 1)[0].strip()
            if key.startswith("export "):
                key = key[len("export ") :].strip()
            comments[key] = " ".join(pending)
            pending = []
    return comments


def parse_env_file(path: Path) -> list[EnvEntry]:
    """Variables of an env file in file order; missing file yields ``[]``."""
    if not path.is_file():
        return []

    values = dotenv_values(path, interpolate=False)
    comments = _collect_comments(path.read_text().splitlines())
    return [EnvEntry(key, value or "", comments.get(key, "")) for key, value in values.items()]


def render_env_file(service: str, entries: list[EnvEntry], answers: dict[str, str]) -> str:
    """Build ``.env`` text from sample entries and the user's answers."""
    lines = [
        f"# {service} configuration",
        f"# Generated by berth on {datetime.now().isoformat(timespec='seconds')}",
        "",
    ]
    for entry in entries:
        if entry.comment:
            lines.append(f"# {entry.comment}")
        lines.append(f"{entry.key}={answers.get(entry.key, entry.value)}")
        lines.append("")
    return "\n".join(lines)


def write_env_file(bundle_path: Path, service: str, entries: list[EnvEntry], answers: dict[str, str]) -> Path:
    env_path = bundle_path / ENV_FILE_NAME
    env_path.write_text(render_env_file(service, entries, answers))
    logger.info(f"Wrote {env_path}")
    return env_path


def backup_env_file(env_path: Path) -> Path | None:
    """Copy ``.env`` to ``.env.backup-<epoch ms>``; None if there is no ``.env``."""
    if not env_path.is_file():
        return None
    backup = env_path.with_name(f"{env_path.name}.backup-{int(time.time() * 1000)}")
    shutil.copy2(env_path, backup)
    return backup


def reset_env_file(bundle_path: Path) -> tuple[Path, Path | None]:
    """Replace ``.env`` with the bundle's sample, backing up the old file.

    Returns:
        (env path, backup path or None)

    Raises:
        FileNotFoundError: if the bundle has no env sample
    """
    sample = find_env_sample(bundle_path)
    if sample is None:
        raise FileNotFoundError(f"No env sample found in {bundle_path}")

    env_path = bundle_path / ENV_FILE_NAME
    backup = backup_env_file(env_path)
    shutil.copyfile(sample, env_path)
    return env_path, backup


def ensure_env_file(bundle_path: Path) -> Path:
    """Create ``.env`` from the sample (or an empty header) if it is missing."""
    env_path = bundle_path / ENV_FILE_NAME
    if env_path.exists():
        return env_path

    sample = find_env_sample(bundle_path)
    if sample is not None:
        shutil.copyfile(sample, env_path)
    else:
        env_path.write_text(BASIC_ENV_HEADER)
    return env_path


def set_env_value(bundle_path: Path, key: str, value: str) -> Path:
    """Set one variable in ``.env``, creating the file if needed."""
    env_path = ensure_env_file(bundle_path)
    set_key(env_path, key, value, quote_mode="never")
    return env_path


def resolve_editor() -> str:
    """``VISUAL``, then ``EDITOR``, then nano."""
    return os.environ.get("VISUAL") or os.environ.get("EDITOR") or DEFAULT_EDITOR
