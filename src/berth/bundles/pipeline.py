"""Acquisition Pipeline: guarantee a complete bundle exists on disk.

``ensure_bundle`` is idempotent. When the store already reports the bundle as
installed it returns the path without doing anything else; otherwise it walks
the configured strategies in order and installs the first result that holds a
descriptor.

Every attempt stages into a uniquely named sibling of the final path
(``<root>/.staging-<service>-<pid>-<random>``) and is moved into place with a
single directory rename. A concurrent invocation acquiring the same service can
therefore never expose a half-written bundle; if it wins the race, our staged
copy is discarded and its bundle is used.

Examples:
    >>> pipeline = build_pipeline(get_config_builder())
    >>> pipeline.ensure_bundle("redis")
    PosixPath('/home/me/.berth/services/redis')
"""

import os
import shutil
import tempfile
import time
from datetime import datetime
from pathlib import Path

from berth.bundles.catalog import CatalogClient
from berth.bundles.exceptions import (
    AcquisitionFailedError,
    BerthError,
    ServiceNotInstalledError,
    StrategyError,
    StrategyFailure,
)
from berth.bundles.store import COMPOSE_FILE_NAME, BundleStore
from berth.bundles.strategies import (
    DEFAULT_GIT_TIMEOUT,
    STRATEGY_NAMES,
    FetchStrategy,
    LocalMirrorCopy,
    RawFileFetch,
    SparseNetworkFetch,
    TemplateSynthesis,
)
from berth.utils.logger import get_logger

logger = get_logger("pipeline")

STAGING_PREFIX = ".staging-"
BACKUP_TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"


class AcquisitionPipeline:
    """Install bundles using an ordered list of fetch strategies.

    Attributes:
        store: Bundle store whose root receives installed bundles
        strategies: Strategies tried in order; the first success wins
    """

    def __init__(self, store: BundleStore, strategies: list[FetchStrategy]):
        if not strategies:
            raise ValueError("At least one acquisition strategy is required")
        self.store = store
        self.strategies = list(strategies)

    def ensure_bundle(self, name: str) -> Path:
        """Return the bundle path, acquiring the bundle first if needed.

        :raises InvalidServiceNameError: before any filesystem access
        :raises AcquisitionFailedError: when every strategy failed
        """
        path = self.store.resolve_path(name)
        if self.store.exists(name):
            logger.debug(f"{name} already installed at {path}")
            return path

        self.store.root.mkdir(parents=True, exist_ok=True)
        if path.exists():
            logger.warning(f"Removing incomplete bundle at {path} (no {COMPOSE_FILE_NAME})")
            _remove(path)

        logger.key_info(f"Acquiring {name}")
        started = time.monotonic()
        failures: list[StrategyFailure] = []
        for strategy in self.strategies:
            logger.info(f"Trying {strategy.name} for {name}")
            try:
                installed = self._install_with(strategy, name, path)
            except (BerthError, OSError) as e:
                logger.debug(f"{strategy.name} failed for {name}: {e}")
                failures.append(StrategyFailure(strategy.name, e))
                continue

            logger.success(f"Installed {name} via {strategy.name}")
            logger.timing(f"Acquired {name} in {time.monotonic() - started:.2f}s")
            return installed

        raise AcquisitionFailedError(name, failures)

    def _install_with(self, strategy: FetchStrategy, name: str, path: Path) -> Path:
        staging = Path(
            tempfile.mkdtemp(prefix=f"{STAGING_PREFIX}{name}-{os.getpid()}-", dir=self.store.root)
        )
        try:
            source = strategy.attempt(name, staging)
            if not (source / COMPOSE_FILE_NAME).is_file():
                raise StrategyError(strategy.name, name, f"result has no {COMPOSE_FILE_NAME}")

            try:
                source.rename(path)
            except OSError:
                if self.store.exists(name):
                    logger.info(f"{name} was installed concurrently, keeping the existing bundle")
                    return path
                raise
            return path
        finally:
            shutil.rmtree(staging, ignore_errors=True)

    def backup_bundle(self, name: str) -> Path:
        """Copy the bundle to ``<root>/.backups/<name>-<timestamp>`` and return the copy."""
        path = self.store.resolve_path(name)
        if not path.is_dir():
            raise ServiceNotInstalledError(name, path)

        self.store.backup_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now().strftime(BACKUP_TIMESTAMP_FORMAT)
        backup = self.store.backup_dir / f"{name}-{stamp}"
        counter = 1
        while backup.exists():
            backup = self.store.backup_dir / f"{name}-{stamp}-{counter}"
            counter += 1

        shutil.copytree(path, backup, symlinks=True)
        logger.info(f"Backed up {name} to {backup}")
        return backup

    def update_bundle(self, name: str) -> Path:
        """Back up, remove and re-acquire a bundle.

        The backup is a copy, so a failure at any point leaves it intact. It
        is not restored automatically; the raised error names it.

        :raises ServiceNotInstalledError: if nothing is installed under ``name``
        :raises AcquisitionFailedError: if re-acquisition failed (backup kept)
        """
        backup = self.backup_bundle(name)
        _remove(self.store.resolve_path(name))
        try:
            return self.ensure_bundle(name)
        except AcquisitionFailedError as e:
            logger.error(f"Update of {name} failed; previous bundle kept at {backup}")
            raise AcquisitionFailedError(name, e.failures, backup_path=backup) from e

    def remove_bundle(self, name: str) -> None:
        path = self.store.resolve_path(name)
        if not path.exists():
            raise ServiceNotInstalledError(name, path)
        _remove(path)
        logger.info(f"Removed {path}")


def _remove(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


def build_strategies(config, catalog: CatalogClient) -> list[FetchStrategy]:
    """Instantiate strategies in the order given by ``acquisition.strategies``."""
    order = config.get("acquisition.strategies") or list(STRATEGY_NAMES)
    services_root = config.get("catalog.services_root", "services")

    strategies: list[FetchStrategy] = []
    for key in order:
        if key == "sparse":
            strategies.append(
                SparseNetworkFetch(
                    repo_url=config.get("catalog.repo_url"),
                    branch=config.get("catalog.branch", "main"),
                    services_root=services_root,
                    timeout=float(config.get("catalog.git_timeout", DEFAULT_GIT_TIMEOUT)),
                )
            )
        elif key == "raw":
            strategies.append(RawFileFetch(catalog))
        elif key == "mirror":
            strategies.append(LocalMirrorCopy(config.get("catalog.mirror_path"), services_root))
        elif key == "template":
            strategies.append(TemplateSynthesis())
        else:
            raise ValueError(
                f"Unknown acquisition strategy '{key}'. Choose from: {', '.join(STRATEGY_NAMES)}"
            )
    return strategies


def build_pipeline(config, catalog: CatalogClient | None = None) -> AcquisitionPipeline:
    """Wire store, catalog client and strategies from a ConfigBuilder."""
    catalog = catalog or CatalogClient.from_config(config)
    store = BundleStore(config.services_dir)
    return AcquisitionPipeline(store, build_strategies(config, catalog))
