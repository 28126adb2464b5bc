"""Tests for CLI theming."""

from berth.cli import styles
from berth.cli.styles import HARBOR_THEME, MONO_THEME, ColorTheme, Messages, load_theme_from_config


def write_config(berth_home, text):
    berth_home.mkdir(parents=True, exist_ok=True)
    (berth_home / "config.yml").write_text(text)


def test_default_theme(berth_home):
    assert load_theme_from_config() is HARBOR_THEME


def test_configured_theme(berth_home):
    write_config(berth_home, "cli:\n  theme: mono\n")

    assert load_theme_from_config() is MONO_THEME


def test_unknown_theme_falls_back(berth_home):
    write_config(berth_home, "cli:\n  theme: neon\n")

    assert load_theme_from_config() is HARBOR_THEME


def test_set_theme_updates_shared_console():
    console = styles.console
    try:
        styles.set_theme(MONO_THEME)

        assert styles.get_active_theme() is MONO_THEME
        assert styles.console is console
        assert str(console.get_style("path").color.name) == MONO_THEME.path
    finally:
        styles.set_theme(HARBOR_THEME)


def test_darker_primary_is_derived():
    theme = ColorTheme(primary="#c8c8c8")

    assert theme.primary_dark == "#aaaaaa"
    assert theme.header == "#c8c8c8"


def test_messages():
    assert Messages.success("done") == "[success]✓ done[/success]"
    assert Messages.label_value("Location", "/tmp") == "[label]Location:[/label] [value]/tmp[/value]"
