"""Acquisition strategies.

Each strategy fills a staging directory handed to it by the pipeline and
returns the directory that holds the finished bundle (either the staging
directory itself or a subdirectory of it). Strategies never touch the final
bundle path; the pipeline verifies the result, renames it into place and
removes the staging directory whatever happens.

Failures are raised as :class:`~berth.bundles.exceptions.BerthError`
subclasses or ``OSError``; the pipeline records them and moves on.

Strategies, in default order:

1. :class:`SparseNetworkFetch` - shallow, sparse ``git clone`` of one subtree
2. :class:`RawFileFetch` - catalog listing plus one raw download per file
3. :class:`LocalMirrorCopy` - copy from an on-disk mirror of the catalog
4. :class:`TemplateSynthesis` - built-in template, no external dependency
"""

import shutil
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path

from berth.bundles.catalog import CatalogClient
from berth.bundles.exceptions import StrategyError
from berth.bundles.store import COMPOSE_FILE_NAME
from berth.bundles.templates import synthesize
from berth.utils.logger import get_logger

logger = get_logger("strategies")

DEFAULT_GIT_TIMEOUT = 300.0


class FetchStrategy(ABC):
    """Common interface for one way of producing a bundle."""

    name: str = "strategy"

    @abstractmethod
    def attempt(self, service: str, staging: Path) -> Path:
        """Populate ``staging`` and return the directory holding the bundle."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class SparseNetworkFetch(FetchStrategy):
    """Fetch only ``<services_root>/<service>`` from the catalog's git repository.

    Runs::

        git clone --depth 1 --filter=blob:none --sparse --branch <branch> <repo> <staging>/repo
        git -C <staging>/repo sparse-checkout set <services_root>/<service>
    """

    name = "sparse-network-fetch"

    def __init__(
        self,
        repo_url: str,
        branch: str = "main",
        services_root: str = "services",
        timeout: float = DEFAULT_GIT_TIMEOUT,
        git_binary: str = "git",
    ):
        self.repo_url = repo_url
        self.branch = branch
        self.services_root = services_root.strip("/")
        self.timeout = timeout
        self.git_binary = git_binary

    def _git(self, service: str, args: list[str]) -> None:
        cmd = [self.git_binary, *args]
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except subprocess.TimeoutExpired as e:
            raise StrategyError(self.name, service, f"git timed out after {self.timeout:.0f}s") from e
        except FileNotFoundError as e:
            raise StrategyError(self.name, service, f"'{self.git_binary}' is not installed") from e

        if result.returncode != 0:
            detail = (result.stderr or result.stdout).strip().splitlines()
            reason = detail[-1] if detail else f"exit code {result.returncode}"
            raise StrategyError(self.name, service, f"git {args[0]} failed: {reason}")

    def attempt(self, service: str, staging: Path) -> Path:
        if shutil.which(self.git_binary) is None:
            raise StrategyError(self.name, service, f"'{self.git_binary}' is not installed")

        checkout = staging / "repo"
        subtree = f"{self.services_root}/{service}"
        self._git(
            service,
            [
                "clone",
                "--depth",
                "1",
                "--filter=blob:none",
                "--sparse",
                "--branch",
                self.branch,
                self.repo_url,
                str(checkout),
            ],
        )
        self._git(service, ["-C", str(checkout), "sparse-checkout", "set", subtree])

        bundle = checkout / self.services_root / service
        if not bundle.is_dir():
            raise StrategyError(self.name, service, f"'{subtree}' does not exist in {self.repo_url}")
        return bundle


class RawFileFetch(FetchStrategy):
    """List the service's files through the catalog API and download each one."""

    name = "raw-file-fetch"

    def __init__(self, catalog: CatalogClient):
        self.catalog = catalog

    def attempt(self, service: str, staging: Path) -> Path:
        filenames = self.catalog.list_files(service)
        if not filenames:
            raise StrategyError(self.name, service, "catalog lists no files")

        for filename in filenames:
            if "/" in filename or filename in (".", ".."):
                raise StrategyError(self.name, service, f"refusing unsafe filename {filename!r}")
            content = self.catalog.fetch_file_content(service, filename)
            (staging / filename).write_bytes(content)
            logger.debug(f"Downloaded {service}/{filename} ({len(content)} bytes)")
        return staging


class LocalMirrorCopy(FetchStrategy):
    """Copy a bundle from a local checkout of the catalog repository.

    Both ``<mirror>/<services_root>/<service>`` and ``<mirror>/<service>`` are
    accepted; the first one holding a descriptor wins.
    """

    name = "local-mirror-copy"

    def __init__(self, mirror_root: str | Path | None, services_root: str = "services"):
        self.mirror_root = Path(mirror_root).expanduser() if mirror_root else None
        self.services_root = services_root.strip("/")

    def find_source(self, service: str) -> Path | None:
        if self.mirror_root is None or not self.mirror_root.is_dir():
            return None
        for candidate in (self.mirror_root / self.services_root / service, self.mirror_root / service):
            if (candidate / COMPOSE_FILE_NAME).is_file():
                return candidate
        return None

    def attempt(self, service: str, staging: Path) -> Path:
        if self.mirror_root is None or not self.mirror_root.is_dir():
            raise StrategyError(self.name, service, f"no local mirror at {self.mirror_root}")

        source = self.find_source(service)
        if source is None:
            raise StrategyError(self.name, service, f"not present in mirror {self.mirror_root}")

        shutil.copytree(source, staging, dirs_exist_ok=True)
        logger.debug(f"Copied {service} from {source}")
        return staging


class TemplateSynthesis(FetchStrategy):
    """Write the built-in template for the service; only disk errors can fail it."""

    name = "template-synthesis"

    def attempt(self, service: str, staging: Path) -> Path:
        content = synthesize(service)
        for filename, text in content.files.items():
            (staging / filename).write_text(text)
        logger.debug(f"Synthesized {service} from the '{content.kind}' template")
        return staging


STRATEGY_NAMES = {
    "sparse": SparseNetworkFetch,
    "raw": RawFileFetch,
    "mirror": LocalMirrorCopy,
    "template": TemplateSynthesis,
}
