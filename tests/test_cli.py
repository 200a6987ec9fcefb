"""
Tests for CLI functionality.
"""

from unittest.mock import AsyncMock, Mock, patch

import pytest
from click.testing import CliRunner

from wpstack.cli import cli, create_controller
from wpstack.compose import ComposeGateway
from wpstack.errors import ComposeCommandError, ValidationError
from wpstack.models import EnvironmentSelector


@pytest.fixture(autouse=True)
def quiet_logging():
    with patch("wpstack.cli.setup_logging") as mock_setup:
        yield mock_setup


@pytest.fixture
def controller():
    controller = Mock()
    controller.start = AsyncMock(return_value="WordPress started at http://localhost:8888/")
    controller.stop = AsyncMock(return_value="Stopped WordPress.")
    controller.clean = AsyncMock(return_value="Cleaned tests environment.")
    controller.run = AsyncMock(return_value=0)
    controller.status = AsyncMock(return_value="NAME  STATUS")
    with patch("wpstack.cli.create_controller", return_value=controller):
        yield controller


def invoke(*args):
    return CliRunner().invoke(cli, ["--no-color", *args])


class TestCLIBasics:
    """Test basic CLI functionality."""

    def test_cli_help(self, isolated_test_env):
        result = invoke("--help")

        assert result.exit_code == 0
        assert "local WordPress development and tests environments" in result.output
        for command in ("start", "stop", "clean", "run", "status"):
            assert command in result.output

    def test_cli_version(self, isolated_test_env):
        result = invoke("--version")

        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_logging_options(self, isolated_test_env, controller, quiet_logging):
        result = invoke("--verbose", "stop")

        assert result.exit_code == 0
        assert quiet_logging.call_args.kwargs["verbose"] is True

    def test_debug_raises_console_level(self, isolated_test_env, controller, quiet_logging):
        invoke("--debug", "stop")

        assert quiet_logging.call_args.kwargs["log_level"] == "INFO"

    def test_invalid_settings(self, isolated_test_env, monkeypatch):
        monkeypatch.setenv("WP_ENV_PORT", "not-a-port")

        result = invoke("start")

        assert result.exit_code == 1
        assert "Invalid settings" in result.stderr


class TestLifecycleCommands:
    """Test start, stop, clean, run and status."""

    def test_start(self, isolated_test_env, controller):
        result = invoke("start")

        assert result.exit_code == 0
        assert "✔ WordPress started at http://localhost:8888/" in result.stdout
        assert "(in 0s" in result.stdout
        controller.start.assert_awaited_once()

    def test_stop(self, isolated_test_env, controller):
        result = invoke("stop")

        assert result.exit_code == 0
        assert "Stopped WordPress." in result.stdout

    def test_clean_defaults_to_tests(self, isolated_test_env, controller):
        result = invoke("clean")

        assert result.exit_code == 0
        controller.clean.assert_awaited_once_with(EnvironmentSelector.TESTS)

    def test_clean_all(self, isolated_test_env, controller):
        result = invoke("clean", "all")

        assert result.exit_code == 0
        controller.clean.assert_awaited_once_with(EnvironmentSelector.ALL)

    def test_clean_invalid_environment(self, isolated_test_env, controller):
        result = invoke("clean", "staging")

        assert result.exit_code == 2
        controller.clean.assert_not_called()

    def test_run_passes_options_through(self, isolated_test_env, controller):
        controller.run.return_value = 4

        result = invoke("run", "cli", "wp", "plugin", "list", "--status=active")

        assert result.exit_code == 4
        controller.run.assert_awaited_once_with(
            "cli", ["wp", "plugin", "list", "--status=active"]
        )

    def test_run_requires_command(self, isolated_test_env, controller):
        result = invoke("run", "cli")

        assert result.exit_code == 2

    def test_status(self, isolated_test_env, controller):
        result = invoke("status")

        assert result.exit_code == 0
        assert "NAME  STATUS" in result.stdout


class TestFailureReporting:
    """Test exit codes and output for failed operations."""

    def test_validation_failure(self, isolated_test_env):
        with patch(
            "wpstack.cli.create_controller",
            side_effect=ValidationError("No .wp-env.json file found"),
        ):
            result = invoke("start")

        assert result.exit_code == 1
        assert "✖ No .wp-env.json file found" in result.stderr
        assert "Traceback" not in result.stderr

    def test_backend_failure(self, isolated_test_env, controller):
        controller.start.side_effect = ComposeCommandError(
            17, "compose stdout\n", "compose stderr\n", ["docker", "compose", "up"]
        )

        result = invoke("start")

        assert result.exit_code == 17
        assert "Error while running docker compose command." in result.stderr
        assert "compose stdout" in result.stdout
        assert "compose stderr" in result.stderr

    def test_internal_failure(self, isolated_test_env, controller):
        controller.stop.side_effect = RuntimeError("something broke")

        result = invoke("stop")

        assert result.exit_code == 1
        assert "✖ something broke" in result.stderr
        assert "Traceback" in result.stderr


class TestCreateController:
    def test_resolves_current_directory(self, test_settings, plugin_project, monkeypatch):
        monkeypatch.chdir(plugin_project)

        controller = create_controller(test_settings)

        assert controller.config.name == "my-plugin"
        assert isinstance(controller.gateway, ComposeGateway)
        assert controller.gateway.container_runtime == "docker"
        assert controller.db_check_attempts == 3
