"""Exception hierarchy for bundle acquisition and service lifecycle.

Every failure berth surfaces to a user derives from :class:`BerthError`. Errors
carry the service they concern and an :class:`ErrorCategory` so that callers
can decide how to react without isinstance chains:

**Validation Errors**: the request itself is unusable (bad service name,
service not installed). Nothing was attempted.

**Network Errors**: the remote catalog could not be reached or returned
something unexpected. Raised by the catalog client and absorbed by the
acquisition pipeline, which falls back to the next strategy.

**Acquisition Errors**: a fetch strategy failed, or every strategy failed.
Only :class:`AcquisitionFailedError` escapes the pipeline.

**Runtime Errors**: the external compose or container binary is missing,
exited non-zero or was killed by a signal.

Examples:
    Distinguishing a missing binary from a failing one::

        >>> try:
        ...     runner.run(path, "config", ["--quiet"]).check()
        ... except BinaryNotFoundError as e:
        ...     console.print(e.install_hint)
        ... except NonZeroExitError as e:
        ...     issues.append(e.stderr)
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any


class ErrorCategory(Enum):
    """High-level error categories used for reporting and recovery decisions."""

    VALIDATION = "validation"  # Bad input, nothing attempted
    NETWORK = "network"  # Catalog unreachable or malformed
    ACQUISITION = "acquisition"  # Fetch strategy failures
    RUNTIME = "runtime"  # External binaries


class BerthError(Exception):
    """Base exception class for berth operations.

    :param message: Human-readable error description
    :type message: str
    :param category: Error category
    :type category: ErrorCategory
    :param service: Service name the error concerns, if any
    :type service: str, optional
    :param technical_details: Additional information for debugging
    :type technical_details: dict[str, Any], optional
    """

    def __init__(
        self,
        message: str,
        category: ErrorCategory,
        service: str | None = None,
        technical_details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.service = service
        self.technical_details = technical_details or {}

    def is_network_error(self) -> bool:
        return self.category == ErrorCategory.NETWORK

    def is_runtime_error(self) -> bool:
        return self.category == ErrorCategory.RUNTIME

    def __str__(self) -> str:
        return self.message


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class InvalidServiceNameError(BerthError):
    """Raised when a service name cannot be used as a directory name."""

    def __init__(self, name: str, reason: str):
        super().__init__(
            f"Invalid service name {name!r}: {reason}",
            ErrorCategory.VALIDATION,
            service=name,
            technical_details={"reason": reason},
        )
        self.reason = reason


class ServiceNotInstalledError(BerthError):
    """Raised when an operation needs a bundle that is not on disk."""

    def __init__(self, service: str, path: Path):
        super().__init__(
            f"Service '{service}' is not installed (expected {path}). "
            f"Run 'berth download {service}' or 'berth up {service}' first.",
            ErrorCategory.VALIDATION,
            service=service,
            technical_details={"path": str(path)},
        )
        self.path = path


# =============================================================================
# NETWORK ERRORS (Catalog Client)
# =============================================================================


class CatalogUnreachableError(BerthError):
    """Raised on transport failure or a non-2xx catalog response."""

    def __init__(self, url: str, reason: str, status_code: int | None = None):
        super().__init__(
            f"Catalog unreachable at {url}: {reason}",
            ErrorCategory.NETWORK,
            technical_details={"url": url, "status_code": status_code},
        )
        self.url = url
        self.status_code = status_code


class CatalogMalformedError(BerthError):
    """Raised when the catalog answers with an unexpected document shape."""

    def __init__(self, url: str, reason: str):
        super().__init__(
            f"Catalog response from {url} is malformed: {reason}",
            ErrorCategory.NETWORK,
            technical_details={"url": url},
        )
        self.url = url


class ServiceNotInCatalogError(BerthError):
    """Raised when the catalog has no entry for the requested service."""

    def __init__(self, service: str, url: str):
        super().__init__(
            f"Service '{service}' not found in catalog ({url})",
            ErrorCategory.NETWORK,
            service=service,
            technical_details={"url": url},
        )


class DownloadFailedError(BerthError):
    """Raised when a single catalog file cannot be downloaded."""

    def __init__(self, service: str, filename: str, url: str, reason: str):
        super().__init__(
            f"Failed to download {filename} for '{service}' from {url}: {reason}",
            ErrorCategory.NETWORK,
            service=service,
            technical_details={"filename": filename, "url": url},
        )
        self.filename = filename


# =============================================================================
# ACQUISITION ERRORS (Pipeline)
# =============================================================================


class StrategyError(BerthError):
    """Raised by a fetch strategy for failures that are not catalog errors."""

    def __init__(self, strategy: str, service: str, reason: str):
        super().__init__(
            f"{strategy} could not provide '{service}': {reason}",
            ErrorCategory.ACQUISITION,
            service=service,
            technical_details={"strategy": strategy},
        )
        self.strategy = strategy


@dataclass
class StrategyFailure:
    """One failed acquisition attempt: which strategy and why."""

    strategy: str
    error: Exception

    def __str__(self) -> str:
        return f"{self.strategy}: {self.error}"


class AcquisitionFailedError(BerthError):
    """Raised when every acquisition strategy failed for a service."""

    def __init__(self, service: str, failures: list[StrategyFailure], backup_path: Path | None = None):
        lines = [f"Could not acquire service '{service}'. Tried:"]
        lines.extend(f"  {i}. {failure}" for i, failure in enumerate(failures, 1))
        if backup_path is not None:
            lines.append(f"The previous bundle was kept at {backup_path}")
        super().__init__(
            "\n".join(lines),
            ErrorCategory.ACQUISITION,
            service=service,
            technical_details={"strategies": [f.strategy for f in failures]},
        )
        self.failures = failures
        self.backup_path = backup_path


# =============================================================================
# RUNTIME ERRORS (Process Runner)
# =============================================================================


class BinaryNotFoundError(BerthError):
    """Raised when an external binary is not on PATH."""

    def __init__(self, binary: str, install_hint: str = ""):
        message = f"'{binary}' is not installed or not in PATH"
        if install_hint:
            message = f"{message}\n{install_hint}"
        super().__init__(message, ErrorCategory.RUNTIME, technical_details={"binary": binary})
        self.binary = binary
        self.install_hint = install_hint


class NonZeroExitError(BerthError):
    """Raised by ``ProcessOutcome.check`` for a non-zero exit code."""

    def __init__(self, command: list[str], exit_code: int, stderr: str | None = None):
        message = f"'{' '.join(command)}' failed with exit code {exit_code}"
        if stderr:
            message = f"{message}\n{stderr.strip()}"
        super().__init__(
            message,
            ErrorCategory.RUNTIME,
            technical_details={"command": command, "exit_code": exit_code},
        )
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr


class SignalTerminatedError(BerthError):
    """Raised by ``ProcessOutcome.check`` when the child was killed by a signal."""

    def __init__(self, command: list[str], signal_number: int):
        super().__init__(
            f"'{' '.join(command)}' was terminated by signal {signal_number}",
            ErrorCategory.RUNTIME,
            technical_details={"command": command, "signal": signal_number},
        )
        self.command = command
        self.signal_number = signal_number


class NoRunningContainerError(BerthError):
    """Raised when ``exec`` finds no running container for a service."""

    def __init__(self, service: str):
        super().__init__(
            f"No running container found for '{service}'. Start it first: berth up {service}",
            ErrorCategory.RUNTIME,
            service=service,
        )
