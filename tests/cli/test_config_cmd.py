"""Tests for the config command (.env management)."""

from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner
from dotenv import dotenv_values

from berth.cli.main import cli

SAMPLE = """# Port on the host
DB_PORT=5432
DB_USER=admin
"""


@pytest.fixture
def cli_runner():
    return CliRunner()


@pytest.fixture
def bundle(berth_home, make_bundle):
    return make_bundle(berth_home / "services", "postgres", files={"env.sample": SAMPLE})


def answers(*values):
    """Mocks for successive questionary prompts returning ``values``."""
    return [MagicMock(ask=MagicMock(return_value=value)) for value in values]


def test_not_installed(cli_runner):
    result = cli_runner.invoke(cli, ["config", "postgres", "--show"])

    assert result.exit_code == 1
    assert "not installed" in result.output


class TestShow:
    def test_show(self, cli_runner, bundle):
        (bundle / ".env").write_text(SAMPLE)

        result = cli_runner.invoke(cli, ["config", "postgres", "-s"])

        assert result.exit_code == 0
        assert "DB_PORT" in result.output
        assert "Value: 5432" in result.output
        assert "Note: Port on the host" in result.output
        assert "Total: 2 variable(s)" in result.output

    def test_show_without_env(self, cli_runner, bundle):
        result = cli_runner.invoke(cli, ["config", "postgres", "--show"])

        assert result.exit_code == 0
        assert "No .env file found" in result.output


class TestSet:
    def test_set_values(self, cli_runner, bundle):
        result = cli_runner.invoke(
            cli, ["config", "postgres", "--set", "DB_USER=alice", "--set", "DB_PASSWORD=s3cret"]
        )

        assert result.exit_code == 0
        values = dotenv_values(bundle / ".env")
        assert values["DB_USER"] == "alice"
        assert values["DB_PASSWORD"] == "s3cret"
        assert values["DB_PORT"] == "5432"
        assert "berth restart postgres" in result.output

    def test_bad_assignment(self, cli_runner, bundle):
        result = cli_runner.invoke(cli, ["config", "postgres", "--set", "NOVALUE"])

        assert result.exit_code == 2
        assert "KEY=VALUE" in result.output


class TestReset:
    def test_reset_keeps_backup(self, cli_runner, bundle):
        (bundle / ".env").write_text("DB_USER=custom\n")

        result = cli_runner.invoke(cli, ["config", "postgres", "--reset"])

        assert result.exit_code == 0
        assert (bundle / ".env").read_text() == SAMPLE
        assert len(list(bundle.glob(".env.backup-*"))) == 1

    def test_reset_without_sample(self, cli_runner, berth_home, make_bundle):
        make_bundle(berth_home / "services", "redis")

        result = cli_runner.invoke(cli, ["config", "redis", "-r"])

        assert result.exit_code == 0
        assert "nothing to reset" in result.output


class TestEdit:
    def test_opens_editor(self, cli_runner, bundle, monkeypatch):
        monkeypatch.setenv("VISUAL", "code --wait")

        with patch("berth.cli.config_cmd.subprocess.run", return_value=MagicMock(returncode=0)) as mock_run:
            result = cli_runner.invoke(cli, ["config", "postgres", "--edit"])

        assert result.exit_code == 0
        mock_run.assert_called_once_with(["code", "--wait", str(bundle / ".env")])
        assert (bundle / ".env").read_text() == SAMPLE

    def test_editor_failure(self, cli_runner, bundle, monkeypatch):
        monkeypatch.setenv("VISUAL", "vim")

        with patch("berth.cli.config_cmd.subprocess.run", return_value=MagicMock(returncode=1)):
            result = cli_runner.invoke(cli, ["config", "postgres", "-e"])

        assert result.exit_code == 1
        assert "Editor exited with code 1" in result.output


class TestWizard:
    def test_writes_env_from_answers(self, cli_runner, bundle):
        with patch("berth.cli.config_cmd.questionary.text", side_effect=answers("6543", "admin")) as text:
            result = cli_runner.invoke(cli, ["config", "postgres"])

        assert result.exit_code == 0
        assert text.call_args_list[0].kwargs["default"] == "5432"
        assert dotenv_values(bundle / ".env") == {"DB_PORT": "6543", "DB_USER": "admin"}
        assert "# Port on the host" in (bundle / ".env").read_text()

    def test_cancel_writes_nothing(self, cli_runner, bundle):
        with patch("berth.cli.config_cmd.questionary.text", side_effect=answers(None)):
            result = cli_runner.invoke(cli, ["config", "postgres"])

        assert result.exit_code == 0
        assert "cancelled" in result.output
        assert not (bundle / ".env").exists()

    def test_existing_env_defaults_to_current_values(self, cli_runner, bundle):
        (bundle / ".env").write_text("DB_PORT=7000\nDB_USER=bob\n")

        with patch("berth.cli.config_cmd.questionary.select", side_effect=answers("edit")), patch(
            "berth.cli.config_cmd.questionary.text", side_effect=answers("7000", "bob")
        ) as text:
            result = cli_runner.invoke(cli, ["config", "postgres"])

        assert result.exit_code == 0
        assert [c.kwargs["default"] for c in text.call_args_list] == ["7000", "bob"]

    def test_no_sample_offers_empty_env(self, cli_runner, berth_home, make_bundle):
        path = make_bundle(berth_home / "services", "redis")

        with patch("berth.cli.config_cmd.questionary.confirm", side_effect=answers(True)):
            result = cli_runner.invoke(cli, ["config", "redis"])

        assert result.exit_code == 0
        assert (path / ".env").read_text().startswith("# Environment configuration")
