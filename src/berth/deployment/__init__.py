"""Container runtime integration.

Runtime detection, the process runner that spawns the compose and container
binaries, and the lifecycle operations built on top of them.
"""

from .lifecycle import ContainerInfo, ServiceManager, build_service_manager
from .process_runner import IOMode, ProcessOutcome, ProcessRunner
from .runtime_helper import get_compose_command, get_container_command, verify_runtime_is_running

__all__ = [
    "ServiceManager",
    "build_service_manager",
    "ContainerInfo",
    "IOMode",
    "ProcessOutcome",
    "ProcessRunner",
    "get_compose_command",
    "get_container_command",
    "verify_runtime_is_running",
]
