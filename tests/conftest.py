"""
Pytest configuration and fixtures for wpstack tests.

Provides common fixtures and test utilities across all test modules.
"""

import os
from collections.abc import Generator
from pathlib import Path

import pytest

from fake_compose import FakeComposeGateway
from wpstack.config import Config, WpstackSettings


@pytest.fixture
def isolated_test_env(monkeypatch) -> Generator[dict[str, str], None, None]:
    """
    Clear wpstack-related environment variables for the duration of a test.

    Yields:
        Dictionary of original environment variables
    """
    original_env = os.environ.copy()

    for key in list(os.environ.keys()):
        if key.startswith(("WPSTACK_", "WP_ENV_")):
            monkeypatch.delenv(key)

    yield original_env


@pytest.fixture
def test_settings(isolated_test_env, tmp_path: Path) -> WpstackSettings:
    """
    Create test settings with a throwaway home directory.

    Returns:
        Test settings instance
    """
    return WpstackSettings(
        home=tmp_path / "home",
        db_check_attempts=3,
        db_check_delay=0,
    )


@pytest.fixture
def plugin_project(tmp_path: Path) -> Path:
    """
    Create a directory containing a minimal plugin.

    Returns:
        Path to the plugin directory
    """
    project = tmp_path / "my-plugin"
    project.mkdir()
    (project / "my-plugin.php").write_text(
        "<?php\n/**\n * Plugin Name: My Plugin\n */\n"
    )
    return project


@pytest.fixture
def test_config(tmp_path: Path) -> Config:
    """
    Create a resolved configuration without touching the filesystem.

    Returns:
        Test configuration instance
    """
    work_directory = tmp_path / "work"
    return Config(
        name="my-plugin",
        project_directory=tmp_path / "my-plugin",
        work_directory_path=work_directory,
        docker_compose_config_path=work_directory / "docker-compose.yml",
        port=8888,
        tests_port=8889,
        config={"WP_DEBUG": True, "SCRIPT_DEBUG": True},
        plugin_sources=(tmp_path / "my-plugin",),
    )


@pytest.fixture
def fake_gateway() -> FakeComposeGateway:
    """Provide a recording compose gateway."""
    return FakeComposeGateway()


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "container: marks tests that require containers")


# Test utilities
class TestHelper:
    """Helper class for common test operations."""

    @staticmethod
    def create_test_file(path: Path, content: str = "") -> None:
        """Create a test file with given content."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)

    @staticmethod
    def relative_files(root: Path) -> set:
        """All files and directories under root, relative to it."""
        return {str(path.relative_to(root)) for path in root.rglob("*")}


@pytest.fixture
def test_helper() -> TestHelper:
    """Provide test helper utilities."""
    return TestHelper()
