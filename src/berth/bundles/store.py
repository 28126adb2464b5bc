"""Bundle Store: maps service names to on-disk bundle directories.

The store never writes. The acquisition pipeline creates the root lazily and
owns every mutation; the store answers "where would this service live" and
"is it installed".

Layout::

    <root>/
        redis/
            docker-compose.yml      # presence defines "installed"
            README.md
        .backups/                   # timestamped copies from update
        .staging-*/                 # in-flight acquisitions, never listed
"""

import re
from pathlib import Path

from berth.bundles.exceptions import InvalidServiceNameError

COMPOSE_FILE_NAME = "docker-compose.yml"
README_FILE_NAME = "README.md"
BACKUP_DIR_NAME = ".backups"
HIDDEN_PREFIX = "."
SERVICE_NAME_PATTERN = re.compile(r"[A-Za-z0-9][A-Za-z0-9._-]*")


def validate_service_name(name: str) -> str:
    """Return ``name`` unchanged if it is safe to use as a path component.

    Names are restricted to ASCII letters, digits, ``.``, ``_`` and ``-`` and
    must start with a letter or digit. The same name is used as a directory,
    a URL path segment and inside generated YAML, so anything else is refused.

    :raises InvalidServiceNameError: for empty names, ``.``/``..``, names with
        path separators, hidden (dot-prefixed) names, and any character
        outside the allowed set
    """
    if not isinstance(name, str) or not name.strip():
        raise InvalidServiceNameError(str(name), "name must be a non-empty string")
    if name in (".", ".."):
        raise InvalidServiceNameError(name, "relative path segments are not allowed")
    if "/" in name or "\\" in name:
        raise InvalidServiceNameError(name, "path separators are not allowed")
    if name.startswith(HIDDEN_PREFIX):
        raise InvalidServiceNameError(name, "names starting with '.' are reserved")
    if not SERVICE_NAME_PATTERN.fullmatch(name):
        raise InvalidServiceNameError(
            name, "only letters, digits, '.', '_' and '-' are allowed, starting with a letter or digit"
        )
    return name


class BundleStore:
    """Resolve and enumerate bundles under a fixed root directory.

    Attributes:
        root: Directory holding one subdirectory per installed service
    """

    def __init__(self, root: str | Path):
        self.root = Path(root).expanduser()

    def resolve_path(self, name: str) -> Path:
        """Join the root with a validated service name. No I/O."""
        return self.root / validate_service_name(name)

    def descriptor_path(self, name: str) -> Path:
        return self.resolve_path(name) / COMPOSE_FILE_NAME

    def exists(self, name: str) -> bool:
        """True iff the bundle directory exists and holds the descriptor.

        A directory without a descriptor is a partial or corrupt download and
        counts as not installed.
        """
        path = self.resolve_path(name)
        return path.is_dir() and (path / COMPOSE_FILE_NAME).is_file()

    def is_present(self, name: str) -> bool:
        """True if anything (complete or not) sits at the bundle path."""
        return self.resolve_path(name).exists()

    def list_installed(self) -> list[str]:
        """Sorted names of bundle directories; descriptor presence is not checked."""
        if not self.root.is_dir():
            return []
        return sorted(
            entry.name
            for entry in self.root.iterdir()
            if entry.is_dir() and not entry.name.startswith(HIDDEN_PREFIX)
        )

    @property
    def backup_dir(self) -> Path:
        return self.root / BACKUP_DIR_NAME

    def list_files(self, name: str) -> list[str]:
        """Relative paths of every file in a bundle, sorted."""
        path = self.resolve_path(name)
        if not path.is_dir():
            return []
        return sorted(str(p.relative_to(path)) for p in path.rglob("*") if p.is_file())
