"""Process Runner: the one place berth spawns the orchestration binaries.

A :class:`ProcessRunner` wraps an argv prefix (``["docker", "compose"]`` for
lifecycle verbs, ``["docker"]`` for container introspection) and runs
``<prefix> <verb> [args...]`` with the bundle directory as working directory.

The caller picks the :class:`IOMode` per verb:

- ``CAPTURED``: stdout and stderr are buffered and returned as text. Used for
  short non-interactive verbs (``up -d``, ``pull``, ``config --quiet``, ``ps``).
- ``INHERITED``: the child shares the controlling terminal. Used for streaming
  logs and interactive exec. SIGINT and SIGTERM received while waiting are
  forwarded to the child, which then gets a grace period before it is
  terminated and finally killed, so no orphan outlives the parent.
"""

import shutil
import signal
import subprocess
import threading
import time
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from berth.bundles.exceptions import BinaryNotFoundError, NonZeroExitError, SignalTerminatedError
from berth.deployment.runtime_helper import INSTALL_HINT
from berth.utils.logger import get_logger

logger = get_logger("runner")

FORWARDED_SIGNALS = (signal.SIGINT, signal.SIGTERM)
GRACE_PERIOD = 10.0
POLL_INTERVAL = 0.1


class IOMode(Enum):
    CAPTURED = "captured"
    INHERITED = "inherited"


@dataclass
class ProcessOutcome:
    """Result of one invocation.

    ``stdout``/``stderr`` are only populated in ``CAPTURED`` mode. A negative
    ``exit_code`` means the child was killed by that signal number.
    ``forwarded_signal`` is set when the parent received an interrupt while
    the child was running.
    """

    command: list[str]
    exit_code: int
    stdout: str | None = None
    stderr: str | None = None
    io_mode: IOMode = IOMode.CAPTURED
    forwarded_signal: int | None = None

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def signal(self) -> int | None:
        return -self.exit_code if self.exit_code < 0 else None

    @property
    def interrupted(self) -> bool:
        return self.forwarded_signal is not None

    def check(self) -> "ProcessOutcome":
        """Return self on success, raise the matching runtime error otherwise.

        :raises SignalTerminatedError: if the child was killed by a signal
        :raises NonZeroExitError: for any other non-zero exit code
        """
        if self.signal is not None:
            raise SignalTerminatedError(self.command, self.signal)
        if self.exit_code != 0:
            raise NonZeroExitError(self.command, self.exit_code, self.stderr)
        return self


class ProcessRunner:
    """Run verbs of one external binary against bundle directories."""

    def __init__(self, command: Sequence[str], grace_period: float = GRACE_PERIOD):
        if not command:
            raise ValueError("ProcessRunner needs a non-empty command prefix")
        self.command = list(command)
        self.grace_period = grace_period

    def __repr__(self) -> str:
        return f"ProcessRunner({' '.join(self.command)!r})"

    def _resolve_binary(self) -> str:
        binary = shutil.which(self.command[0])
        if binary is None:
            raise BinaryNotFoundError(self.command[0], INSTALL_HINT)
        return binary

    def run(
        self,
        cwd: str | Path | None,
        verb: str,
        extra_args: Sequence[str] = (),
        io_mode: IOMode = IOMode.CAPTURED,
    ) -> ProcessOutcome:
        """Run ``<command> <verb> <extra_args>`` in ``cwd`` (None: current directory).

        A non-zero exit is returned, not raised; call ``check()`` to raise.

        :raises BinaryNotFoundError: if the binary is not on PATH
        """
        command = [*self.command, verb, *extra_args]
        argv = [self._resolve_binary(), *command[1:]]
        logger.debug(f"Running {' '.join(command)} in {cwd} ({io_mode.value})")

        if io_mode is IOMode.CAPTURED:
            result = subprocess.run(argv, cwd=cwd, capture_output=True, text=True)
            return ProcessOutcome(command, result.returncode, result.stdout, result.stderr, io_mode)

        exit_code, forwarded = self._run_inherited(argv, cwd)
        return ProcessOutcome(command, exit_code, io_mode=io_mode, forwarded_signal=forwarded)

    def _run_inherited(self, argv: list[str], cwd: str | Path | None) -> tuple[int, int | None]:
        process = subprocess.Popen(argv, cwd=cwd)
        received: list[int] = []

        def forward(signum, frame):
            received.append(signum)
            if process.poll() is None:
                logger.debug(f"Forwarding signal {signum} to pid {process.pid}")
                process.send_signal(signum)

        # Handlers can only be installed from the main thread
        previous = {}
        if threading.current_thread() is threading.main_thread():
            for sig in FORWARDED_SIGNALS:
                previous[sig] = signal.signal(sig, forward)

        try:
            exit_code = self._wait(process, received)
        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler)

        return exit_code, (received[0] if received else None)

    def _wait(self, process: subprocess.Popen, received: list[int]) -> int:
        deadline = None
        while True:
            try:
                return process.wait(timeout=POLL_INTERVAL)
            except subprocess.TimeoutExpired:
                pass

            if received and deadline is None:
                deadline = time.monotonic() + self.grace_period
            if deadline is not None and time.monotonic() >= deadline:
                break

        logger.warning(f"pid {process.pid} ignored the interrupt, terminating")
        process.terminate()
        try:
            return process.wait(timeout=self.grace_period)
        except subprocess.TimeoutExpired:
            logger.warning(f"pid {process.pid} did not terminate, killing")
            process.kill()
            return process.wait()
