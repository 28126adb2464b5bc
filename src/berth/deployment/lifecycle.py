"""Lifecycle operations on installed bundles.

:class:`ServiceManager` is what the CLI commands call. It combines the
acquisition pipeline (``up``, ``download`` and ``update`` make sure the bundle
exists first) with two process runners: one for the compose binary, run in the
bundle directory, and one for the plain container binary used for ``ps`` and
``exec``.

Examples:
    >>> with build_service_manager(get_config_builder()) as manager:
    ...     manager.up("redis")
    ...     [c.name for c in manager.status()]
    ['redis-redis-1']
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from berth.bundles.catalog import CatalogClient
from berth.bundles.exceptions import NoRunningContainerError, ServiceNotInstalledError
from berth.bundles.pipeline import AcquisitionPipeline, build_pipeline
from berth.bundles.store import COMPOSE_FILE_NAME, README_FILE_NAME, BundleStore
from berth.bundles.validation import ValidationReport, describe_services, validate_descriptor
from berth.deployment.process_runner import IOMode, ProcessOutcome, ProcessRunner
from berth.deployment.runtime_helper import get_compose_command, get_container_command
from berth.utils.logger import get_logger

logger = get_logger("lifecycle")

DEFAULT_LOG_TAIL = 100
DEFAULT_SHELL = "/bin/sh"
PS_FORMAT = "{{.ID}}|{{.Names}}|{{.Image}}|{{.Status}}|{{.Ports}}"


@dataclass
class ContainerInfo:
    """One line of ``ps`` output."""

    id: str
    name: str
    image: str
    status: str
    ports: str = ""

    @property
    def running(self) -> bool:
        return self.status.lower().startswith("up")

    @classmethod
    def from_ps_line(cls, line: str) -> "ContainerInfo":
        fields = line.split("|")
        fields += [""] * (5 - len(fields))
        return cls(*(field.strip() for field in fields[:5]))


@dataclass
class BundleInfo:
    """What ``show`` reports about an installed bundle."""

    name: str
    path: Path
    files: list[str]
    services: dict[str, dict[str, Any]]
    readme: str | None = None


def describe_bundle(store: BundleStore, name: str) -> BundleInfo:
    """Files, README and compose services of an installed bundle.

    :raises ServiceNotInstalledError: if the bundle is missing or incomplete
    """
    path = store.resolve_path(name)
    if not store.exists(name):
        raise ServiceNotInstalledError(name, path)

    readme_path = path / README_FILE_NAME
    return BundleInfo(
        name=name,
        path=path,
        files=store.list_files(name),
        services=describe_services(path / COMPOSE_FILE_NAME),
        readme=readme_path.read_text() if readme_path.is_file() else None,
    )


class ServiceManager:
    """Drive the lifecycle verbs of installed services.

    Attributes:
        pipeline: Acquisition pipeline (and through it, the bundle store)
        compose: Runner for the orchestration binary, e.g. ``docker compose``
        container: Runner for the container binary, e.g. ``docker``
        catalog: Catalog client owned by this manager, closed by :meth:`close`
    """

    def __init__(
        self,
        pipeline: AcquisitionPipeline,
        compose: ProcessRunner,
        container: ProcessRunner,
        catalog: CatalogClient | None = None,
    ):
        self.pipeline = pipeline
        self.compose = compose
        self.container = container
        self.catalog = catalog

    def close(self) -> None:
        if self.catalog is not None:
            self.catalog.close()

    def __enter__(self) -> "ServiceManager":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def store(self) -> BundleStore:
        return self.pipeline.store

    def installed_path(self, name: str) -> Path:
        """Bundle path of an installed service.

        :raises ServiceNotInstalledError: if the bundle is missing or incomplete
        """
        path = self.store.resolve_path(name)
        if not self.store.exists(name):
            raise ServiceNotInstalledError(name, path)
        return path

    # ---- acquisition ----

    def download(self, name: str) -> Path:
        return self.pipeline.ensure_bundle(name)

    def update(self, name: str) -> Path:
        return self.pipeline.update_bundle(name)

    def remove(self, name: str) -> None:
        self.pipeline.remove_bundle(name)

    def show(self, name: str) -> BundleInfo:
        return describe_bundle(self.store, name)

    # ---- compose verbs ----

    def up(self, name: str) -> ProcessOutcome:
        """Acquire the bundle if needed, then start it detached."""
        path = self.pipeline.ensure_bundle(name)
        logger.info(f"Starting {name} from {path}")
        return self.compose.run(path, "up", ["-d"]).check()

    def down(self, name: str, volumes: bool = False) -> ProcessOutcome:
        path = self.installed_path(name)
        logger.info(f"Stopping {name}")
        return self.compose.run(path, "down", ["-v"] if volumes else []).check()

    def restart(self, name: str) -> ProcessOutcome:
        self.down(name)
        return self.up(name)

    def pull(self, name: str) -> ProcessOutcome:
        path = self.installed_path(name)
        logger.info(f"Pulling images for {name}")
        return self.compose.run(path, "pull").check()

    def logs(
        self,
        name: str,
        follow: bool = False,
        tail: int | None = None,
        timestamps: bool = False,
    ) -> ProcessOutcome:
        """Stream logs to the terminal.

        Without ``follow`` the last :data:`DEFAULT_LOG_TAIL` lines are shown
        unless ``tail`` says otherwise.

        :raises KeyboardInterrupt: after the child exited, if the user interrupted
        """
        path = self.installed_path(name)
        args = []
        if follow:
            args.append("-f")
        if tail is None and not follow:
            tail = DEFAULT_LOG_TAIL
        if tail is not None:
            args += ["--tail", str(tail)]
        if timestamps:
            args.append("-t")

        outcome = self.compose.run(path, "logs", args, io_mode=IOMode.INHERITED)
        if outcome.interrupted:
            raise KeyboardInterrupt
        return outcome.check()

    def validate(self, name: str) -> ValidationReport:
        """Static descriptor checks plus the compose ``config --quiet`` check.

        A failing check becomes an issue in the report; it is never raised.
        """
        path = self.installed_path(name)
        report = validate_descriptor(name, path / COMPOSE_FILE_NAME)

        outcome = self.compose.run(path, "config", ["--quiet"])
        if not outcome.ok:
            detail = (outcome.stderr or "").strip() or f"exit code {outcome.exit_code}"
            report.issues.append(f"Compose configuration check failed: {detail}")
        return report

    # ---- container binary ----

    def status(self) -> list[ContainerInfo]:
        """Running containers, as reported by ``ps``."""
        outcome = self.container.run(None, "ps", ["--format", PS_FORMAT]).check()
        return [ContainerInfo.from_ps_line(line) for line in outcome.stdout.splitlines() if line.strip()]

    def find_container(self, name: str) -> str | None:
        """First running container whose name contains the service name."""
        outcome = self.container.run(
            None, "ps", ["--filter", f"name={name}", "--format", "{{.Names}}"]
        ).check()
        names = [line.strip() for line in outcome.stdout.splitlines() if line.strip()]
        return names[0] if names else None

    def exec_in(self, name: str, command: list[str] | None = None, interactive: bool = False) -> ProcessOutcome:
        """Run a command (default: a shell) inside the service's container.

        A shell is always interactive.

        :raises NoRunningContainerError: if no container for the service is running
        """
        path = self.installed_path(name)
        container = self.find_container(name)
        if container is None:
            raise NoRunningContainerError(name)

        args = []
        if interactive or not command:
            args.append("-it")
        args.append(container)
        args.extend(command or [DEFAULT_SHELL])

        outcome = self.container.run(path, "exec", args, io_mode=IOMode.INHERITED)
        if outcome.interrupted:
            raise KeyboardInterrupt
        return outcome.check()


def build_service_manager(config, pipeline: AcquisitionPipeline | None = None) -> ServiceManager:
    """Wire pipeline and runners from a ConfigBuilder.

    Runtime detection runs here, so a missing container runtime surfaces as
    ``BinaryNotFoundError`` before any verb is attempted. When no pipeline is
    given, the manager owns the catalog client it creates; use it as a context
    manager or call :meth:`ServiceManager.close`.
    """
    compose = ProcessRunner(get_compose_command(config))
    container = ProcessRunner(get_container_command(config))
    if pipeline is not None:
        return ServiceManager(pipeline, compose, container)

    catalog = CatalogClient.from_config(config)
    return ServiceManager(build_pipeline(config, catalog), compose, container, catalog=catalog)
