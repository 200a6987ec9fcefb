"""
Configuration management for wpstack

Settings come from environment variables and an optional .env file via
Pydantic settings. The project itself is described by a .wp-env.json file, or
detected from the current directory, and resolved once into an immutable
``Config`` that every lifecycle operation reads.
"""

import hashlib
import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ValidationError
from .models import Environment

logger = logging.getLogger(__name__)

PROJECT_CONFIG_FILE = ".wp-env.json"
DESCRIPTOR_FILE = "docker-compose.yml"
TESTS_CORE_DIRECTORY = "tests-WordPress"

DEFAULT_WP_CONFIG: Dict[str, Any] = {
    "WP_DEBUG": True,
    "SCRIPT_DEBUG": True,
}


def _validate_port(value: int) -> int:
    if not 0 < value < 65536:
        raise ValueError(f"port must be between 1 and 65535, got {value}")
    return value


class WpstackSettings(BaseSettings):
    """
    Process-level settings for wpstack.

    Configuration is loaded from:
    1. Environment variables (highest priority)
    2. .env file
    3. Default values (lowest priority)
    """

    model_config = SettingsConfigDict(
        env_prefix="WPSTACK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Logging configuration
    log_level: str = Field(
        default="WARNING",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    log_dir: Optional[str] = Field(
        default=None,
        description="Directory for log files (file logging disabled when unset)",
    )
    verbose: bool = Field(
        default=False,
        description="Enable verbose console output",
    )
    debug: bool = Field(
        default=False,
        description="Show docker compose output for every command",
    )

    # Container configuration
    container_runtime: str = Field(
        default="docker",
        description="Container runtime (docker or podman)",
    )
    home: Path = Field(
        default_factory=lambda: Path.home() / ".wpstack",
        description="Directory holding generated working directories",
    )

    # Ports are read from the unprefixed variables wp-env users already know
    port: int = Field(
        default=8888,
        validation_alias="WP_ENV_PORT",
        description="Host port of the development site",
    )
    tests_port: int = Field(
        default=8889,
        validation_alias="WP_ENV_TESTS_PORT",
        description="Host port of the tests site",
    )

    # Database readiness probing
    db_check_attempts: int = Field(
        default=30,
        description="How many times to probe the database before giving up",
    )
    db_check_delay: float = Field(
        default=5.0,
        description="Seconds to wait between database probes",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of: {', '.join(valid_levels)}")
        return v.upper()

    @field_validator("container_runtime")
    @classmethod
    def validate_container_runtime(cls, v: str) -> str:
        """Validate container runtime is supported."""
        valid_runtimes = ["docker", "podman"]
        if v.lower() not in valid_runtimes:
            raise ValueError(
                f"container_runtime must be one of: {', '.join(valid_runtimes)}"
            )
        return v.lower()

    @field_validator("port", "tests_port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        return _validate_port(v)

    @field_validator("db_check_attempts")
    @classmethod
    def validate_db_check_attempts(cls, v: int) -> int:
        if v < 1:
            raise ValueError("db_check_attempts must be at least 1")
        return v

    def port_overrides(self) -> Dict[str, int]:
        """Ports explicitly set through the environment (not defaults)."""
        overrides = {}
        for field_name in ("port", "tests_port"):
            if field_name in self.model_fields_set:
                overrides[field_name] = getattr(self, field_name)
        return overrides


class ProjectFile(BaseModel):
    """Schema of the .wp-env.json project file."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    core: Optional[str] = Field(None, description="Path to a WordPress checkout")
    plugins: List[str] = Field(default_factory=list, description="Plugin sources")
    themes: Optional[List[str]] = Field(None, description="Theme sources")
    port: Optional[int] = Field(None, description="Development site port")
    tests_port: Optional[int] = Field(
        None, alias="testsPort", description="Tests site port"
    )
    config: Dict[str, Any] = Field(
        default_factory=dict, description="wp-config.php values"
    )

    @field_validator("port", "tests_port")
    @classmethod
    def validate_port(cls, v: Optional[int]) -> Optional[int]:
        if v is None:
            return v
        return _validate_port(v)

    @field_validator("config")
    @classmethod
    def validate_config_values(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        """wp-config values must be strings or JSON scalars."""
        for key, value in v.items():
            if isinstance(value, (dict, list)):
                raise ValueError(
                    f"config value for '{key}' must be a string, number, boolean or null"
                )
        return v


class Config(BaseModel):
    """Resolved, read-only configuration of one project."""

    model_config = ConfigDict(frozen=True)

    name: str
    project_directory: Path
    work_directory_path: Path
    docker_compose_config_path: Path
    port: int = 8888
    tests_port: int = 8889
    debug: bool = False
    config: Mapping[str, Any] = Field(default_factory=dict, validate_default=True)
    core_source: Optional[Path] = None
    plugin_sources: Tuple[Path, ...] = ()
    theme_sources: Optional[Tuple[str, ...]] = None

    @field_validator("config")
    @classmethod
    def freeze_config(cls, v: Mapping[str, Any]) -> Mapping[str, Any]:
        return MappingProxyType(dict(v))

    def port_for(self, environment: Environment) -> int:
        """Host port of the given environment."""
        if environment is Environment.DEVELOPMENT:
            return self.port
        return self.tests_port

    @property
    def tests_core_path(self) -> Path:
        """Working copy of the core source used by the tests environment."""
        return self.work_directory_path / TESTS_CORE_DIRECTORY


def work_directory_for(project_directory: Path, home: Path) -> Path:
    """Working directory of a project, stable across invocations."""
    digest = hashlib.md5(str(project_directory).encode("utf-8")).hexdigest()
    return home / digest


def read_project_file(path: Path) -> ProjectFile:
    """Load and validate a .wp-env.json file."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON in {path}: {e}")
    except UnicodeDecodeError as e:
        raise ValidationError(f"{path} is not valid UTF-8: {e}")

    if not isinstance(data, dict):
        raise ValidationError(f"{path} must contain a JSON object")

    try:
        return ProjectFile.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid {PROJECT_CONFIG_FILE}: {e}")


def detect_project_file(project_directory: Path) -> ProjectFile:
    """
    Describe a directory without a .wp-env.json file.

    The directory is treated as a plugin, a theme or a WordPress checkout,
    whichever matches first.
    """
    for php_file in sorted(project_directory.glob("*.php")):
        if _has_header(php_file, "Plugin Name:"):
            logger.debug(f"Detected plugin in {project_directory}")
            return ProjectFile(plugins=["."])

    style = project_directory / "style.css"
    if style.is_file() and _has_header(style, "Theme Name:"):
        logger.debug(f"Detected theme in {project_directory}")
        return ProjectFile(themes=["."])

    if (project_directory / "wp-includes" / "version.php").is_file():
        logger.debug(f"Detected WordPress checkout in {project_directory}")
        return ProjectFile(core=".")

    raise ValidationError(
        "No .wp-env.json file found and the current directory is not a "
        "WordPress installation, a plugin or a theme."
    )


def _has_header(path: Path, header: str) -> bool:
    try:
        with open(path, "r", encoding="utf-8", errors="ignore") as f:
            return header in f.read(8192)
    except OSError:
        return False


def _resolve_source(project_directory: Path, source: str, kind: str) -> Path:
    # Local sources start with ".", "/" or "~"; anything else is a remote source
    if not source.startswith((".", "/", "~")):
        raise ValidationError(
            f"Invalid or unrecognized {kind} source: '{source}'. "
            "Only local directory sources are supported."
        )
    path = (project_directory / Path(source).expanduser()).resolve()
    if not path.is_dir():
        raise ValidationError(f"The {kind} source '{source}' does not exist: {path}")
    return path


def load_config(
    settings: WpstackSettings,
    project_directory: Optional[Path] = None,
) -> Config:
    """
    Resolve the configuration of a project.

    Args:
        settings: Process settings (ports, home directory, debug flag)
        project_directory: Directory containing the project, defaults to cwd

    Returns:
        Immutable project configuration

    Raises:
        ValidationError: If the project file or its sources are invalid
    """
    project_directory = (project_directory or Path.cwd()).resolve()
    config_path = project_directory / PROJECT_CONFIG_FILE

    if config_path.exists():
        logger.debug(f"Reading project configuration from {config_path}")
        project_file = read_project_file(config_path)
    else:
        project_file = detect_project_file(project_directory)

    core_source = (
        _resolve_source(project_directory, project_file.core, "core")
        if project_file.core
        else None
    )
    plugin_sources = tuple(
        _resolve_source(project_directory, source, "plugin")
        for source in project_file.plugins
    )
    theme_sources = None
    if project_file.themes is not None:
        theme_sources = tuple(
            str(_resolve_source(project_directory, source, "theme"))
            for source in project_file.themes
        )

    ports = {
        "port": project_file.port or settings.port,
        "tests_port": project_file.tests_port or settings.tests_port,
    }
    ports.update(settings.port_overrides())

    if ports["port"] == ports["tests_port"]:
        raise ValidationError(
            f"The development and tests sites cannot share port {ports['port']}."
        )

    wp_config = dict(DEFAULT_WP_CONFIG)
    wp_config.update(project_file.config)

    work_directory = work_directory_for(project_directory, settings.home)

    return Config(
        name=project_directory.name,
        project_directory=project_directory,
        work_directory_path=work_directory,
        docker_compose_config_path=work_directory / DESCRIPTOR_FILE,
        port=ports["port"],
        tests_port=ports["tests_port"],
        debug=settings.debug,
        config=wp_config,
        core_source=core_source,
        plugin_sources=plugin_sources,
        theme_sources=theme_sources,
    )


def load_settings(cli_overrides: Optional[dict] = None) -> WpstackSettings:
    """
    Load settings with optional CLI overrides.

    Args:
        cli_overrides: CLI argument overrides

    Returns:
        Loaded settings
    """
    # Init arguments take priority over environment variables and .env
    return WpstackSettings(**(cli_overrides or {}))
