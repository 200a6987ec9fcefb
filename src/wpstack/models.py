"""
Data models for wpstack

Defines the environment identities, the fixed service names of the compose
stack, command results and the states of the WordPress configuration sequence.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class Environment(str, Enum):
    """One of the two independent WordPress stacks."""

    DEVELOPMENT = "development"
    TESTS = "tests"


class EnvironmentSelector(str, Enum):
    """Selects which environments an operation such as ``clean`` targets."""

    ALL = "all"
    DEVELOPMENT = "development"
    TESTS = "tests"

    def environments(self) -> Tuple[Environment, ...]:
        """Expand the selector into the environments it targets."""
        if self is EnvironmentSelector.ALL:
            return (Environment.DEVELOPMENT, Environment.TESTS)
        return (Environment(self.value),)


# Logical service names in the generated docker-compose.yml
WORDPRESS_SERVICE = "wordpress"
TESTS_WORDPRESS_SERVICE = "tests-wordpress"
CLI_SERVICE = "cli"
TESTS_CLI_SERVICE = "tests-cli"
MYSQL_SERVICE = "mysql"

SERVICES = (
    MYSQL_SERVICE,
    WORDPRESS_SERVICE,
    TESTS_WORDPRESS_SERVICE,
    CLI_SERVICE,
    TESTS_CLI_SERVICE,
)


def web_service(environment: Environment) -> str:
    """Name of the web server service for an environment."""
    if environment is Environment.DEVELOPMENT:
        return WORDPRESS_SERVICE
    return TESTS_WORDPRESS_SERVICE


def cli_service(environment: Environment) -> str:
    """Name of the WP-CLI runner service for an environment."""
    if environment is Environment.DEVELOPMENT:
        return CLI_SERVICE
    return TESTS_CLI_SERVICE


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a single compose command."""

    exit_code: int
    out: str = ""
    err: str = ""

    @property
    def success(self) -> bool:
        return self.exit_code == 0


class SequenceState(Enum):
    """States a WordPress instance moves through while being configured."""

    NOT_INSTALLED = "not_installed"
    INSTALLED = "installed"
    CONFIGURED = "configured"
    PLUGINS_ACTIVE = "plugins_active"
    THEME_RESOLVED = "theme_resolved"
    READY = "ready"
