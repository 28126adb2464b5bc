"""Container runtime detection for Docker and Podman.

Picks the compose command used for lifecycle verbs and the plain runtime
binary used for container introspection (``ps``, ``exec``).

Examples:
    Basic usage::

        from berth.deployment.runtime_helper import get_compose_command

        cmd = get_compose_command(config)
        # Returns: ['docker', 'compose'], ['podman', 'compose'] or ['docker-compose']
"""

import os
import platform
import shutil
import subprocess

from berth.bundles.exceptions import BinaryNotFoundError

RUNTIME_CHECK_TIMEOUT = 5

INSTALL_HINT = (
    "No container runtime with compose support found. Install Docker Desktop 4.0+ or Podman 4.0+\n"
    "Docker: https://docs.docker.com/get-docker/\n"
    "Compose: https://docs.docker.com/compose/install/\n"
    "Podman: https://podman.io/getting-started/installation"
)

COMPOSE_CANDIDATES = {
    "docker": (["docker", "compose"], ["docker-compose"]),
    "podman": (["podman", "compose"], ["podman-compose"]),
}

STANDALONE_RUNTIMES = {"docker-compose": "docker", "podman-compose": "podman"}

# Module-level cache for the compose command
_cached_compose_cmd: list[str] | None = None


def _preferred_runtimes(config=None) -> list[str]:
    """Runtimes to try (priority: env var > config > auto)."""
    config_runtime = None
    if config is not None:
        config_runtime = config.get("container_runtime", "auto")

    env_runtime = os.getenv("CONTAINER_RUNTIME")
    if env_runtime:
        config_runtime = env_runtime

    if config_runtime and config_runtime.lower() in COMPOSE_CANDIDATES:
        return [config_runtime.lower()]
    # Auto-detect: Docker first, then Podman
    return ["docker", "podman"]


def get_compose_command(config=None) -> list[str]:
    """Get the compose command prefix.

    Result is cached after first detection.

    Args:
        config: Optional ConfigBuilder or mapping with ``container_runtime``

    Returns:
        Command list such as ['docker', 'compose']

    Raises:
        BinaryNotFoundError: If no runtime with working compose support is found
    """
    global _cached_compose_cmd

    if _cached_compose_cmd is not None:
        return _cached_compose_cmd.copy()

    for runtime in _preferred_runtimes(config):
        for candidate in COMPOSE_CANDIDATES[runtime]:
            if not shutil.which(candidate[0]):
                continue
            try:
                result = subprocess.run(
                    [*candidate, "version"], capture_output=True, timeout=RUNTIME_CHECK_TIMEOUT
                )
            except (subprocess.TimeoutExpired, FileNotFoundError):
                continue

            if result.returncode == 0:
                _cached_compose_cmd = list(candidate)
                return _cached_compose_cmd.copy()

    raise BinaryNotFoundError("docker compose", INSTALL_HINT)


def get_container_command(config=None) -> list[str]:
    """Get the plain runtime binary used for ``ps`` and ``exec``.

    Raises:
        BinaryNotFoundError: If the runtime binary is not on PATH
    """
    compose = get_compose_command(config)
    runtime = STANDALONE_RUNTIMES.get(compose[0], compose[0])
    if not shutil.which(runtime):
        raise BinaryNotFoundError(runtime, INSTALL_HINT)
    return [runtime]


def reset_runtime_cache() -> None:
    global _cached_compose_cmd
    _cached_compose_cmd = None


def verify_runtime_is_running(config=None) -> tuple[bool, str]:
    """Verify that the detected container runtime daemon answers.

    Returns:
        Tuple of (is_running, error_message); the message is empty when running
    """
    try:
        runtime = get_container_command(config)[0]
    except BinaryNotFoundError as e:
        return False, str(e)

    try:
        result = subprocess.run([runtime, "ps"], capture_output=True, text=True, timeout=RUNTIME_CHECK_TIMEOUT)
    except subprocess.TimeoutExpired:
        return False, f"{runtime.capitalize()} command timed out. The service may not be running."

    if result.returncode == 0:
        return True, ""

    stderr = result.stderr.lower()
    if "cannot connect to the docker daemon" in stderr or "docker daemon" in stderr:
        return False, _get_docker_not_running_message()
    if "cannot connect to podman" in stderr or "connection refused" in stderr:
        return False, _get_podman_not_running_message()
    return False, f"{runtime.capitalize()} is installed but not responding:\n{result.stderr}"


def _get_docker_not_running_message() -> str:
    """Get platform-specific message for Docker not running."""
    system = platform.system()

    if system == "Darwin":
        return (
            "Docker Desktop is not running.\n\n"
            "To fix this:\n"
            "1. Open Docker Desktop from Applications\n"
            "2. Wait for Docker to start (whale icon in menu bar should be steady)\n"
            "3. Try your command again"
        )
    elif system == "Windows":
        return (
            "Docker Desktop is not running.\n\n"
            "To fix this:\n"
            "1. Start Docker Desktop from the Start menu\n"
            "2. Wait for Docker to start (system tray icon should be running)\n"
            "3. Try your command again"
        )
    else:
        return (
            "Docker daemon is not running.\n\n"
            "To fix this:\n"
            "1. Start Docker: sudo systemctl start docker\n"
            "2. Check status: sudo systemctl status docker\n\n"
            "If permission issues, add user to docker group:\n"
            "sudo usermod -aG docker $USER\n"
            "(then log out and back in)"
        )


def _get_podman_not_running_message() -> str:
    """Get platform-specific message for Podman not running."""
    if platform.system() in ["Darwin", "Windows"]:
        return (
            "Podman machine is not running.\n\n"
            "To fix this:\n"
            "1. Start Podman: podman machine start\n"
            "2. Check status: podman machine list"
        )
    return (
        "Podman service is not responding.\n\n"
        "To fix this:\n"
        "1. Check status: systemctl --user status podman.socket\n"
        "2. Start if needed: systemctl --user start podman.socket"
    )
