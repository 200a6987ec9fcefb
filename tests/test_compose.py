"""
Tests for the docker compose gateway.
"""

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, Mock, patch

import pytest

from wpstack.compose import ComposeGateway, ComposeOptions, to_argv
from wpstack.errors import ComposeCommandError
from wpstack.models import CommandResult

OPTIONS = ComposeOptions(config_path=Path("/work/docker-compose.yml"))
BASE = ["docker", "compose", "-f", "/work/docker-compose.yml"]


def fake_process(returncode: int = 0, stdout: bytes = b"", stderr: bytes = b""):
    process = Mock()
    process.returncode = returncode
    process.communicate = AsyncMock(return_value=(stdout, stderr))
    process.wait = AsyncMock(return_value=returncode)
    return process


class TestToArgv:
    def test_string_is_split(self):
        assert to_argv("wp theme list --fields=name") == [
            "wp", "theme", "list", "--fields=name"
        ]

    def test_quoted_string(self):
        assert to_argv("wp option update blogname 'My Site'") == [
            "wp", "option", "update", "blogname", "My Site"
        ]

    def test_list_is_kept(self):
        assert to_argv(["wp", "theme", "activate", "my theme"]) == [
            "wp", "theme", "activate", "my theme"
        ]


class TestComposeGateway:
    """Test compose command construction and result handling."""

    @pytest.fixture
    def gateway(self):
        return ComposeGateway()

    @patch("wpstack.compose.asyncio.create_subprocess_exec")
    def test_run_once(self, mock_exec, gateway):
        mock_exec.return_value = fake_process(0, b"name\ntwentytwentyone\n", b"")

        result = asyncio.run(gateway.run_once("cli", "wp theme list --fields=name", OPTIONS))

        assert result == CommandResult(0, "name\ntwentytwentyone\n", "")
        args = mock_exec.call_args.args
        assert list(args) == BASE + ["run", "--rm", "cli", "wp", "theme", "list", "--fields=name"]

    @patch("wpstack.compose.asyncio.create_subprocess_exec")
    def test_non_zero_exit_raises(self, mock_exec, gateway):
        mock_exec.return_value = fake_process(3, b"partial output", b"Error: no database")

        with pytest.raises(ComposeCommandError) as exc_info:
            asyncio.run(gateway.run_once("cli", "wp db check", OPTIONS))

        error = exc_info.value
        assert error.exit_code == 3
        assert error.out == "partial output"
        assert error.err == "Error: no database"
        assert error.command[-3:] == ["wp", "db", "check"]

    @patch("wpstack.compose.asyncio.create_subprocess_exec")
    def test_non_zero_exit_returned_without_check(self, mock_exec, gateway):
        mock_exec.return_value = fake_process(1, b"", b"Error")

        result = asyncio.run(
            gateway.run_once("cli", "wp theme list --fields=name", OPTIONS, check=False)
        )

        assert result.exit_code == 1
        assert not result.success

    @patch("wpstack.compose.asyncio.create_subprocess_exec")
    def test_password_masked_in_error(self, mock_exec, gateway):
        mock_exec.return_value = fake_process(1)

        with pytest.raises(ComposeCommandError) as exc_info:
            asyncio.run(
                gateway.run_once("cli", ["wp", "core", "install", "--admin_password=password"], OPTIONS)
            )

        assert "--admin_password=***" in str(exc_info.value)

    @patch("wpstack.compose.asyncio.create_subprocess_exec")
    def test_exec_captured(self, mock_exec, gateway):
        mock_exec.return_value = fake_process(0)

        asyncio.run(gateway.exec("wordpress", "chown www-data:www-data wp-content", OPTIONS))

        assert list(mock_exec.call_args.args) == BASE + [
            "exec", "-T", "wordpress", "chown", "www-data:www-data", "wp-content"
        ]
        assert "stdout" in mock_exec.call_args.kwargs

    @patch("wpstack.compose.sys.stdin")
    @patch("wpstack.compose.asyncio.create_subprocess_exec")
    def test_exec_interactive_passes_exit_code(self, mock_exec, mock_stdin, gateway):
        mock_stdin.isatty.return_value = True
        mock_exec.return_value = fake_process(5)

        result = asyncio.run(
            gateway.exec("cli", ["wp", "shell"], OPTIONS, check=False, interactive=True)
        )

        assert result.exit_code == 5
        assert list(mock_exec.call_args.args) == BASE + ["exec", "cli", "wp", "shell"]
        assert mock_exec.call_args.kwargs == {}

    @patch("wpstack.compose.asyncio.create_subprocess_exec")
    def test_up_and_down(self, mock_exec, gateway):
        mock_exec.return_value = fake_process(0)

        asyncio.run(gateway.up(OPTIONS))
        assert list(mock_exec.call_args.args) == BASE + ["up", "-d"]

        asyncio.run(gateway.up(OPTIONS, services=["wordpress", "tests-wordpress"]))
        assert list(mock_exec.call_args.args) == BASE + ["up", "-d", "wordpress", "tests-wordpress"]

        asyncio.run(gateway.down(OPTIONS))
        assert list(mock_exec.call_args.args) == BASE + ["down"]

    @patch("wpstack.compose.asyncio.create_subprocess_exec")
    def test_podman_runtime(self, mock_exec):
        mock_exec.return_value = fake_process(0)

        asyncio.run(ComposeGateway("podman").ps(OPTIONS))

        assert mock_exec.call_args.args[:2] == ("podman", "compose")

    @patch("wpstack.compose.asyncio.create_subprocess_exec")
    def test_missing_runtime(self, mock_exec, gateway):
        mock_exec.side_effect = FileNotFoundError("docker")

        with pytest.raises(ComposeCommandError) as exc_info:
            asyncio.run(gateway.down(OPTIONS))

        assert exc_info.value.exit_code == 127
        assert "not found" in exc_info.value.err

    @patch("wpstack.compose.asyncio.create_subprocess_exec")
    def test_debug_logs_output(self, mock_exec, gateway, caplog):
        mock_exec.return_value = fake_process(0, b"Success: Installed.", b"")
        options = ComposeOptions(config_path=OPTIONS.config_path, log=True)

        with caplog.at_level("INFO", logger="wpstack.compose"):
            asyncio.run(gateway.run_once("cli", "wp core version", options))

        assert "Success: Installed." in caplog.text

    def test_options_from_config(self, test_config):
        options = ComposeOptions.from_config(test_config)

        assert options.config_path == test_config.docker_compose_config_path
        assert options.log is False
