"""Unit tests for runtime_helper module."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from berth.bundles.exceptions import BinaryNotFoundError
from berth.deployment import runtime_helper
from berth.deployment.runtime_helper import (
    get_compose_command,
    get_container_command,
    verify_runtime_is_running,
)


class TestGetComposeCommand:
    """Tests for get_compose_command function."""

    @patch("shutil.which")
    @patch("subprocess.run")
    def test_detect_docker_when_available(self, mock_run, mock_which):
        """Should detect Docker and check only the compose plugin."""
        mock_which.return_value = "/usr/bin/docker"
        mock_run.return_value = MagicMock(returncode=0)

        cmd = get_compose_command()

        assert cmd == ["docker", "compose"]
        mock_which.assert_called_with("docker")
        assert mock_run.call_count == 1
        assert mock_run.call_args[0][0] == ["docker", "compose", "version"]

    @patch("shutil.which")
    @patch("subprocess.run")
    def test_detect_podman_when_docker_not_available(self, mock_run, mock_which):
        """Should detect Podman when Docker not available."""
        mock_which.side_effect = lambda name: "/usr/bin/podman" if name == "podman" else None
        mock_run.return_value = MagicMock(returncode=0)

        cmd = get_compose_command()

        assert cmd == ["podman", "compose"]
        assert mock_run.call_args[0][0] == ["podman", "compose", "version"]

    @patch("shutil.which")
    @patch("subprocess.run")
    def test_prefer_docker_when_both_available(self, mock_run, mock_which):
        """Should prefer Docker when both runtimes are available."""
        mock_which.side_effect = lambda x: f"/usr/bin/{x}"
        mock_run.return_value = MagicMock(returncode=0)

        assert get_compose_command() == ["docker", "compose"]
        mock_which.assert_called_once_with("docker")

    @patch("shutil.which")
    @patch("subprocess.run")
    def test_falls_back_to_standalone_compose(self, mock_run, mock_which):
        """Should use docker-compose when the compose plugin is missing."""
        mock_which.side_effect = lambda x: f"/usr/bin/{x}" if x in ("docker", "docker-compose") else None
        mock_run.side_effect = lambda cmd, **kwargs: MagicMock(returncode=0 if cmd[0] == "docker-compose" else 1)

        assert get_compose_command() == ["docker-compose"]

    @patch("shutil.which")
    @patch("subprocess.run")
    def test_check_timeout_is_skipped(self, mock_run, mock_which):
        """A hanging check counts as unavailable."""
        mock_which.side_effect = lambda x: f"/usr/bin/{x}"

        def run(cmd, **kwargs):
            if cmd[0] == "docker":
                raise subprocess.TimeoutExpired(cmd, kwargs.get("timeout"))
            return MagicMock(returncode=0 if cmd[0] == "podman" else 1)

        mock_run.side_effect = run

        assert get_compose_command() == ["podman", "compose"]

    @patch("shutil.which")
    def test_raise_error_when_no_runtime_available(self, mock_which):
        """Should raise BinaryNotFoundError with install links."""
        mock_which.return_value = None

        with pytest.raises(BinaryNotFoundError) as exc_info:
            get_compose_command()

        error_msg = str(exc_info.value)
        assert "Docker Desktop 4.0+" in error_msg
        assert "Podman 4.0+" in error_msg
        assert "https://docs.docker.com/get-docker/" in error_msg
        assert "https://podman.io/getting-started/installation" in error_msg

    @pytest.mark.parametrize("runtime", ["docker", "podman"])
    @patch("shutil.which")
    @patch("subprocess.run")
    def test_config_based_runtime_selection(self, mock_run, mock_which, runtime):
        """Should respect the container_runtime setting."""
        mock_which.return_value = f"/usr/bin/{runtime}"
        mock_run.return_value = MagicMock(returncode=0)

        cmd = get_compose_command({"container_runtime": runtime})

        assert cmd == [runtime, "compose"]
        mock_which.assert_called_once_with(runtime)

    @pytest.mark.parametrize("config_value", ["auto", "AUTO", None])
    @patch("shutil.which")
    @patch("subprocess.run")
    def test_auto_detection_with_various_config_values(self, mock_run, mock_which, config_value):
        """Should auto-detect when config is 'auto', uppercase, or missing."""
        mock_which.return_value = "/usr/bin/docker"
        mock_run.return_value = MagicMock(returncode=0)

        config = {"container_runtime": config_value} if config_value else {}

        assert get_compose_command(config) == ["docker", "compose"]

    @patch("shutil.which")
    @patch("subprocess.run")
    def test_env_var_overrides_config(self, mock_run, mock_which, monkeypatch):
        """CONTAINER_RUNTIME wins over the config file."""
        monkeypatch.setenv("CONTAINER_RUNTIME", "podman")
        mock_which.side_effect = lambda x: f"/usr/bin/{x}"
        mock_run.return_value = MagicMock(returncode=0)

        assert get_compose_command({"container_runtime": "docker"}) == ["podman", "compose"]

    @patch("shutil.which")
    @patch("subprocess.run")
    def test_result_is_cached(self, mock_run, mock_which):
        """Detection runs once until the cache is reset."""
        mock_which.return_value = "/usr/bin/docker"
        mock_run.return_value = MagicMock(returncode=0)

        first = get_compose_command()
        first.append("mutated")
        second = get_compose_command()

        assert second == ["docker", "compose"]
        assert mock_run.call_count == 1

        runtime_helper.reset_runtime_cache()
        get_compose_command()
        assert mock_run.call_count == 2


class TestGetContainerCommand:
    @patch("shutil.which")
    @patch("subprocess.run")
    def test_plain_runtime_for_compose_plugin(self, mock_run, mock_which):
        mock_which.return_value = "/usr/bin/docker"
        mock_run.return_value = MagicMock(returncode=0)

        assert get_container_command() == ["docker"]

    @patch("shutil.which")
    @patch("subprocess.run")
    def test_standalone_compose_maps_to_runtime(self, mock_run, mock_which):
        mock_which.side_effect = lambda x: f"/usr/bin/{x}" if x in ("podman", "podman-compose") else None
        mock_run.side_effect = lambda cmd, **kwargs: MagicMock(returncode=0 if cmd[0] == "podman-compose" else 1)

        assert get_container_command() == ["podman"]

    @patch("shutil.which")
    @patch("subprocess.run")
    def test_missing_runtime_binary(self, mock_run, mock_which):
        mock_which.side_effect = lambda x: "/usr/bin/docker-compose" if x == "docker-compose" else None
        mock_run.return_value = MagicMock(returncode=0)

        with pytest.raises(BinaryNotFoundError) as exc_info:
            get_container_command({"container_runtime": "docker"})

        assert exc_info.value.binary == "docker"


class TestVerifyRuntimeIsRunning:
    """Tests for verify_runtime_is_running function."""

    @patch("shutil.which")
    @patch("subprocess.run")
    def test_running(self, mock_run, mock_which):
        mock_which.return_value = "/usr/bin/docker"
        mock_run.return_value = MagicMock(returncode=0, stderr="")

        assert verify_runtime_is_running() == (True, "")
        assert mock_run.call_args[0][0] == ["docker", "ps"]

    @patch("shutil.which")
    def test_not_installed(self, mock_which):
        mock_which.return_value = None

        is_running, message = verify_runtime_is_running()

        assert not is_running
        assert "not installed" in message

    @patch("platform.system", return_value="Linux")
    @patch("shutil.which")
    @patch("subprocess.run")
    def test_docker_daemon_down(self, mock_run, mock_which, _system):
        mock_which.return_value = "/usr/bin/docker"
        mock_run.side_effect = [
            MagicMock(returncode=0),
            MagicMock(returncode=1, stderr="Cannot connect to the Docker daemon at unix:///var/run/docker.sock"),
        ]

        is_running, message = verify_runtime_is_running()

        assert not is_running
        assert "sudo systemctl start docker" in message

    @patch("platform.system", return_value="Darwin")
    @patch("shutil.which")
    @patch("subprocess.run")
    def test_podman_machine_down(self, mock_run, mock_which, _system):
        mock_which.side_effect = lambda x: "/usr/bin/podman" if x == "podman" else None
        mock_run.side_effect = [
            MagicMock(returncode=0),
            MagicMock(returncode=125, stderr="Cannot connect to Podman. connection refused"),
        ]

        is_running, message = verify_runtime_is_running()

        assert not is_running
        assert "podman machine start" in message

    @patch("shutil.which")
    @patch("subprocess.run")
    def test_timeout(self, mock_run, mock_which):
        mock_which.return_value = "/usr/bin/docker"
        mock_run.side_effect = [MagicMock(returncode=0), subprocess.TimeoutExpired(["docker", "ps"], 5)]

        is_running, message = verify_runtime_is_running()

        assert not is_running
        assert "timed out" in message

    @patch("shutil.which")
    @patch("subprocess.run")
    def test_other_failure_includes_stderr(self, mock_run, mock_which):
        mock_which.return_value = "/usr/bin/docker"
        mock_run.side_effect = [MagicMock(returncode=0), MagicMock(returncode=1, stderr="permission denied")]

        is_running, message = verify_runtime_is_running()

        assert not is_running
        assert "permission denied" in message
