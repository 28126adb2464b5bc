"""
Component Logger Framework

Provides colored logging for berth components with:
- Unified API for all components (store, catalog, pipeline, runner)
- Rich terminal output with component-specific colors
- Graceful fallbacks when configuration is unavailable

Usage:
    logger = get_logger("pipeline")
    logger.key_info("Acquiring redis")
    logger.info("Trying sparse fetch")
    logger.debug("Detailed trace")
    logger.success("Bundle installed")
    logger.warning("Something to note")
    logger.error("Something went wrong")
    logger.timing("Fetch took 2.5 seconds")

    # Custom loggers with explicit parameters
    logger = get_logger(name="custom_component", color="blue")
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

# Colors per component; unknown components log in white
COMPONENT_COLORS = {
    "store": "cyan",
    "catalog": "blue",
    "pipeline": "magenta",
    "strategies": "magenta",
    "templates": "green",
    "runner": "yellow",
    "cli": "bright_magenta",
    "runtime": "yellow",
    "lifecycle": "bright_blue",
    "envfile": "bright_cyan",
    "validation": "bright_green",
}


class ComponentLogger:
    """
    Rich-formatted logger with color coding and message hierarchy.

    Message Types:
    - key_info: Important operational information
    - info: Normal operational messages
    - debug: Detailed tracing information
    - warning: Warning messages
    - error: Error messages
    - success: Success messages
    - timing: Timing information
    """

    def __init__(self, base_logger: logging.Logger, component_name: str, color: str = "white"):
        self.base_logger = base_logger
        self.component_name = component_name
        self.color = color

    def _format_message(self, message: str, style: str, emoji: str = "") -> str:
        """Format message with Rich markup and emoji prefix."""
        prefix = f"{emoji}{self.component_name.title()}: "
        if style:
            return f"[{style}]{prefix}{message}[/{style}]"
        return f"{prefix}{message}"

    def key_info(self, message: str) -> None:
        style = f"bold {self.color}" if self.color != "white" else "bold white"
        self.base_logger.info(self._format_message(message, style))

    def info(self, message: str) -> None:
        self.base_logger.info(self._format_message(message, self.color))

    def debug(self, message: str) -> None:
        style = f"dim {self.color}" if self.color != "white" else "dim white"
        self.base_logger.debug(self._format_message(message, style, "🔍 "))

    def warning(self, message: str) -> None:
        self.base_logger.warning(self._format_message(message, "bold yellow", "⚠️  "))

    def error(self, message: str, exc_info: bool = False) -> None:
        self.base_logger.error(self._format_message(message, "bold red", "❌ "), exc_info=exc_info)

    def success(self, message: str) -> None:
        self.base_logger.info(self._format_message(message, "bold green", "✅ "))

    def timing(self, message: str) -> None:
        self.base_logger.info(self._format_message(message, "bold white", "🕒 "))

    def exception(self, message: str, *args, **kwargs) -> None:
        self.base_logger.exception(self._format_message(message, "bold red", "❌ "), *args, **kwargs)

    @property
    def level(self) -> int:
        return self.base_logger.level

    @property
    def name(self) -> str:
        return self.base_logger.name

    def setLevel(self, level: int) -> None:
        self.base_logger.setLevel(level)

    def isEnabledFor(self, level: int) -> bool:
        return self.base_logger.isEnabledFor(level)


def _setup_rich_logging(level: int = logging.INFO) -> None:
    """Configure Rich logging for the root logger (called once)."""
    root_logger = logging.getLogger()

    # Prevent duplicate handler registration
    for handler in root_logger.handlers:
        if isinstance(handler, RichHandler):
            return

    root_logger.setLevel(level)

    # Security-conscious defaults: hide locals to prevent secrets from .env leaking
    try:
        from berth.utils.config import get_config_value

        rich_tracebacks = get_config_value("logging.rich_tracebacks", True)
        show_traceback_locals = get_config_value("logging.show_traceback_locals", False)
        show_full_paths = get_config_value("logging.show_full_paths", False)
        configured_level = get_config_value("logging.level")
        if isinstance(configured_level, str):
            root_logger.setLevel(configured_level.upper())
    except Exception:
        rich_tracebacks = True
        show_traceback_locals = False
        show_full_paths = False

    handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=rich_tracebacks,
        markup=True,
        show_path=show_full_paths,
        show_time=True,
        show_level=True,
        tracebacks_show_locals=show_traceback_locals,
    )

    root_logger.addHandler(handler)

    # Reduce third-party library noise
    for lib in ["httpx", "httpcore", "urllib3"]:
        logging.getLogger(lib).setLevel(logging.WARNING)


def get_logger(
    component_name: str | None = None,
    level: int = logging.INFO,
    *,
    name: str | None = None,
    color: str | None = None,
) -> ComponentLogger:
    """
    Get a component logger backed by the shared Rich handler.

    Args:
        component_name: Component name (e.g., 'pipeline', 'catalog')
        level: Logging level used when the root handler is first installed
        name: Direct logger name for custom loggers (keyword-only)
        color: Direct color specification (keyword-only)

    Returns:
        ComponentLogger instance

    Examples:
        logger = get_logger("pipeline")
        logger = get_logger(name="test_logger", color="blue")
    """
    _setup_rich_logging(level)

    if name is not None:
        return ComponentLogger(logging.getLogger(name), name, color or "white")

    if component_name is None:
        raise ValueError(
            "Component name is required. Usage: get_logger('component_name') or "
            "get_logger(name='custom_name', color='blue')"
        )

    base_logger = logging.getLogger(f"berth.{component_name}")
    return ComponentLogger(base_logger, component_name, COMPONENT_COLORS.get(component_name, "white"))
