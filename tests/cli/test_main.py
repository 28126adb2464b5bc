"""Tests for main CLI entry point.

Tests the main CLI group and lazy command loading mechanism.
"""

from unittest import mock

import click
import pytest
from click.testing import CliRunner

from berth import __version__
from berth.cli.main import ALIASES, COMMANDS, LazyGroup, cli, main


@pytest.fixture
def runner():
    """Provide a Click CLI runner for testing."""
    return CliRunner()


class TestLazyGroup:
    """Test the LazyGroup command loading mechanism."""

    def test_get_command_imports_module_on_demand(self):
        group = LazyGroup(name="test")

        with mock.patch("importlib.import_module") as mock_import:
            mock_import.return_value = mock.Mock()
            group.get_command(mock.Mock(), "up")

        mock_import.assert_called_once_with("berth.cli.lifecycle_cmd")

    def test_get_command_returns_none_for_invalid_command(self):
        group = LazyGroup(name="test")

        assert group.get_command(mock.Mock(), "nonexistent_command") is None

    @pytest.mark.parametrize("alias, target", sorted(ALIASES.items()))
    def test_aliases_resolve(self, alias, target):
        group = LazyGroup(name="test")

        assert group.get_command(mock.Mock(), alias) is group.get_command(mock.Mock(), target)

    def test_every_command_loads(self):
        group = LazyGroup(name="test")
        ctx = mock.Mock()

        for name in group.list_commands(ctx):
            assert isinstance(group.get_command(ctx, name), click.Command), name

    def test_list_commands(self):
        commands = LazyGroup(name="test").list_commands(mock.Mock())

        for expected in ["up", "down", "restart", "status", "logs", "exec", "pull", "validate"]:
            assert expected in commands
        assert commands == list(COMMANDS)


class TestCliGroup:
    """Test the main CLI group."""

    def test_cli_group_help(self, runner):
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "berth" in result.output.lower()
        assert "search" in result.output

    def test_cli_version_option(self, runner):
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    @mock.patch("berth.cli.styles.initialize_theme_from_config")
    def test_cli_initializes_theme(self, mock_init_theme, runner):
        runner.invoke(cli, ["search", "--help"])

        assert mock_init_theme.called

    @mock.patch("berth.cli.styles.initialize_theme_from_config")
    def test_cli_ignores_broken_config_for_theme(self, mock_init_theme, runner):
        mock_init_theme.side_effect = ValueError("bad config")

        result = runner.invoke(cli, ["search", "   "])

        assert result.exit_code == 0

    def test_unknown_command(self, runner):
        result = runner.invoke(cli, ["launch"])

        assert result.exit_code == 2
        assert "No such command" in result.output


class TestMainFunction:
    """Test the main entry point function."""

    @mock.patch("berth.cli.main.cli")
    def test_main_calls_cli(self, mock_cli):
        main()

        assert mock_cli.called

    @mock.patch("berth.cli.main.cli")
    @mock.patch("click.echo")
    def test_main_handles_keyboard_interrupt(self, mock_echo, mock_cli):
        mock_cli.side_effect = KeyboardInterrupt()

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 130
        assert mock_echo.called

    @mock.patch("berth.cli.main.cli")
    @mock.patch("click.echo")
    def test_main_handles_general_exception(self, mock_echo, mock_cli):
        mock_cli.side_effect = Exception("Test error")

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 1
        assert "error" in str(mock_echo.call_args).lower()
