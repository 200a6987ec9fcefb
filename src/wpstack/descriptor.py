"""
Generation of the docker-compose.yml describing a project's stack.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List

import yaml

from .config import Config
from .models import (
    CLI_SERVICE,
    MYSQL_SERVICE,
    TESTS_CLI_SERVICE,
    TESTS_WORDPRESS_SERVICE,
    WORDPRESS_SERVICE,
    Environment,
)

logger = logging.getLogger(__name__)

DB_PASSWORD = "password"
WORDPRESS_ROOT = "/var/www/html"


def _database_environment(database_name: str) -> Dict[str, str]:
    return {
        "WORDPRESS_DB_HOST": MYSQL_SERVICE,
        "WORDPRESS_DB_USER": "root",
        "WORDPRESS_DB_PASSWORD": DB_PASSWORD,
        "WORDPRESS_DB_NAME": database_name,
    }


def _volumes(config: Config, environment: Environment) -> List[str]:
    """Bind mounts shared by an environment's web and CLI services."""
    if config.core_source is None:
        core_volume = (
            "wordpress" if environment is Environment.DEVELOPMENT else "tests-wordpress"
        )
    elif environment is Environment.DEVELOPMENT:
        core_volume = str(config.core_source)
    else:
        core_volume = str(config.tests_core_path)

    volumes = [f"{core_volume}:{WORDPRESS_ROOT}"]
    for plugin in config.plugin_sources:
        volumes.append(f"{plugin}:{WORDPRESS_ROOT}/wp-content/plugins/{plugin.name}")
    for theme in config.theme_sources or ():
        volumes.append(f"{theme}:{WORDPRESS_ROOT}/wp-content/themes/{Path(theme).name}")
    return volumes


def build_descriptor(config: Config) -> Dict[str, Any]:
    """Build the compose document for a project."""
    services: Dict[str, Any] = {
        MYSQL_SERVICE: {
            "image": "mariadb",
            "environment": {"MYSQL_ROOT_PASSWORD": DB_PASSWORD},
        },
    }

    for environment, web, cli, database in (
        (Environment.DEVELOPMENT, WORDPRESS_SERVICE, CLI_SERVICE, "wordpress"),
        (Environment.TESTS, TESTS_WORDPRESS_SERVICE, TESTS_CLI_SERVICE, "tests-wordpress"),
    ):
        volumes = _volumes(config, environment)
        services[web] = {
            "image": "wordpress",
            "depends_on": [MYSQL_SERVICE],
            "ports": [f"{config.port_for(environment)}:80"],
            "environment": _database_environment(database),
            "volumes": volumes,
        }
        services[cli] = {
            "image": "wordpress:cli",
            "depends_on": [web],
            "user": "33:33",
            # Keep the container alive so commands can be exec'd into it
            "command": "tail -f /dev/null",
            "environment": _database_environment(database),
            "volumes": list(volumes),
        }

    descriptor: Dict[str, Any] = {"services": services}
    if config.core_source is None:
        descriptor["volumes"] = {"wordpress": {}, "tests-wordpress": {}}
    return descriptor


def write_descriptor(config: Config) -> Path:
    """Write the compose file into the project's working directory."""
    path = config.docker_compose_config_path
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        yaml.safe_dump(build_descriptor(config), f, default_flow_style=False, sort_keys=False)

    logger.debug(f"Compose file written to {path}")
    return path
