"""Centralized color and style management for the berth CLI.

Every command prints through the shared :data:`console` using semantic style
names (success, error, warning, path, command) rather than raw colors, so the
look can be changed in one place via the ``cli.theme`` config key.
"""

import sys
from dataclasses import dataclass

from questionary import Style as QuestionaryStyle
from rich.console import Console
from rich.theme import Theme

from berth.utils.logger import get_logger

logger = get_logger("cli")


# ============================================================================
# THEME CONFIGURATION
# ============================================================================


@dataclass
class ColorTheme:
    """A complete color theme for the CLI.

    Error and warning colors are fixed UI conventions; the rest define the
    tool's look. Darker variations are derived automatically.
    """

    # Fixed standard colors
    error: str = "#ff0000"
    warning: str = "#ffaa00"

    # Theme colors
    primary: str = "#2f80c8"
    success: str = "#3fb27f"
    accent: str = "#7fc8f8"
    command: str = "#e0a458"
    path: str = "#9aa5b1"
    info: str = "#5fa8d3"

    # Neutral colors
    text_primary: str = "#ffffff"
    text_secondary: str = "#888888"
    text_dim: str = "#666666"
    border_default: str = "#555555"
    border_dim: str = "#444444"

    def __post_init__(self):
        self.primary_dark = self._adjust_brightness(self.primary, 0.85)
        self.header = self.primary
        self.subheader = self.primary_dark

    @staticmethod
    def _adjust_brightness(hex_color: str, factor: float) -> str:
        """Scale each RGB channel of ``#rrggbb`` by ``factor``, clamped to 0-255."""
        hex_color = hex_color.lstrip("#")
        r, g, b = int(hex_color[0:2], 16), int(hex_color[2:4], 16), int(hex_color[4:6], 16)
        r = max(0, min(255, int(r * factor)))
        g = max(0, min(255, int(g * factor)))
        b = max(0, min(255, int(b * factor)))
        return f"#{r:02x}{g:02x}{b:02x}"


HARBOR_THEME = ColorTheme()

MONO_THEME = ColorTheme(
    primary="#ffffff",
    success="#cccccc",
    accent="#bbbbbb",
    command="#dddddd",
    path="#aaaaaa",
    info="#cccccc",
)

THEME_REGISTRY = {
    "default": HARBOR_THEME,
    "harbor": HARBOR_THEME,
    "mono": MONO_THEME,
}


# ============================================================================
# ACTIVE THEME MANAGEMENT
# ============================================================================

_active_theme = HARBOR_THEME


def get_active_theme() -> ColorTheme:
    return _active_theme


def set_theme(theme: ColorTheme):
    """Set a new active theme on the shared console and rebuild the prompt style.

    The console is updated in place since command modules hold a reference to it.
    """
    global _active_theme, custom_style
    _active_theme = theme
    console.push_theme(_build_rich_theme(theme))
    custom_style = _build_questionary_style(theme)


def load_theme_from_config(config_path: str | None = None) -> ColorTheme:
    """Theme named by ``cli.theme`` in the config; unknown names fall back to default."""
    from berth.utils.config import get_config_value

    theme_name = get_config_value("cli.theme", "default", config_path)
    theme = THEME_REGISTRY.get(theme_name)
    if theme is None:
        logger.warning(f"Unknown theme '{theme_name}', using default")
        theme = HARBOR_THEME
    return theme


def initialize_theme_from_config(config_path: str | None = None):
    """Apply the configured theme at CLI startup."""
    set_theme(load_theme_from_config(config_path))


def _build_rich_theme(theme: ColorTheme) -> Theme:
    return Theme(
        {
            # Status styles
            "success": f"bold {theme.success}",
            "error": f"bold {theme.error}",
            "warning": f"bold {theme.warning}",
            "info": f"bold {theme.info}",
            # Text styles
            "primary": f"bold {theme.primary}",
            "secondary": theme.text_secondary,
            "dim": theme.text_dim,
            "bold": "bold",
            "bold_primary": f"bold {theme.primary}",
            # Component-specific styles
            "header": f"bold {theme.header}",
            "subheader": f"bold {theme.subheader}",
            "label": "bold",
            "value": theme.success,
            "path": theme.path,
            "command": theme.command,
            "accent": theme.accent,
            # Borders
            "border": theme.border_default,
            "border_dim": theme.border_dim,
        }
    )


def _build_questionary_style(theme: ColorTheme) -> QuestionaryStyle:
    return QuestionaryStyle(
        [
            ("qmark", f"fg:{theme.accent} bold"),
            ("question", "bold"),
            ("answer", f"fg:{theme.primary} bold"),
            ("pointer", f"fg:{theme.primary} bold"),
            ("highlighted", f"fg:{theme.primary} bold"),
            ("selected", f"fg:{theme.accent}"),
            ("separator", f"fg:{theme.text_dim}"),
            ("instruction", f"fg:{theme.text_dim} italic"),
            ("text", f"fg:{theme.text_secondary}"),
            ("disabled", f"fg:{theme.text_dim}"),
        ]
    )


# ============================================================================
# CONSOLE INSTANCE
# ============================================================================

berth_theme = _build_rich_theme(_active_theme)
custom_style = _build_questionary_style(_active_theme)

# On Windows, force UTF-8 encoding to support Unicode characters (✓, ✗, ⚠️, etc.)
if sys.platform == "win32":
    console = Console(theme=berth_theme, force_terminal=True, legacy_windows=False)
else:
    console = Console(theme=berth_theme)


def get_questionary_style() -> QuestionaryStyle:
    return custom_style


# ============================================================================
# STYLE HELPERS
# ============================================================================


class Styles:
    """Style names defined in the Rich theme, for use in markup."""

    # Status indicators
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

    # Text styles
    BOLD = "bold"
    DIM = "dim"
    PRIMARY = "primary"
    SECONDARY = "secondary"
    BOLD_PRIMARY = "bold_primary"

    # Component styles
    HEADER = "header"
    SUBHEADER = "subheader"
    LABEL = "label"
    VALUE = "value"
    PATH = "path"
    COMMAND = "command"
    ACCENT = "accent"

    # Borders
    BORDER = "border"
    BORDER_DIM = "border_dim"


class Messages:
    """Pre-formatted message helpers for common patterns."""

    @staticmethod
    def success(text: str) -> str:
        """Format a success message with checkmark."""
        return f"[success]✓ {text}[/success]"

    @staticmethod
    def error(text: str) -> str:
        """Format an error message with X mark."""
        return f"[error]✗ {text}[/error]"

    @staticmethod
    def warning(text: str) -> str:
        """Format a warning message with warning symbol."""
        return f"[warning]⚠️  {text}[/warning]"

    @staticmethod
    def info(text: str) -> str:
        """Format an info message with info symbol."""
        return f"[info]ℹ️  {text}[/info]"

    @staticmethod
    def header(text: str) -> str:
        return f"[header]{text}[/header]"

    @staticmethod
    def label_value(label: str, value: str) -> str:
        return f"[label]{label}:[/label] [value]{value}[/value]"

    @staticmethod
    def command(text: str) -> str:
        return f"[command]{text}[/command]"

    @staticmethod
    def path(text: str) -> str:
        return f"[path]{text}[/path]"


__all__ = [
    "ColorTheme",
    "HARBOR_THEME",
    "MONO_THEME",
    "THEME_REGISTRY",
    "get_active_theme",
    "set_theme",
    "load_theme_from_config",
    "initialize_theme_from_config",
    "console",
    "get_questionary_style",
    "custom_style",
    "Styles",
    "Messages",
]
