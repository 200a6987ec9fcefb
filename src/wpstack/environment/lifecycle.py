"""
Environment lifecycle: start, stop, clean, run and status.

Composes the compose gateway, the file synchronizer and the WordPress
sequencer into the operations offered on the command line.
"""

import logging

from ..compose import Command, ComposeGateway, ComposeOptions
from ..config import Config
from ..descriptor import write_descriptor
from ..errors import ValidationError
from ..filesync import copy_tree
from ..models import SERVICES, Environment, EnvironmentSelector
from .wordpress import (
    configure_wordpress,
    is_wordpress_installed,
    make_content_directories_writable,
    reset_database,
    wait_for_database,
)

logger = logging.getLogger(__name__)


class EnvironmentController:
    """Runs lifecycle operations for one project."""

    def __init__(
        self,
        config: Config,
        gateway: ComposeGateway,
        db_check_attempts: int = 30,
        db_check_delay: float = 5.0,
    ):
        self.config = config
        self.gateway = gateway
        self.db_check_attempts = db_check_attempts
        self.db_check_delay = db_check_delay
        self.options = ComposeOptions.from_config(config)

    async def start(self) -> str:
        """
        Start both environments and configure any that are not installed.

        Returns:
            Summary naming the development and tests URLs
        """
        config = self.config
        logger.info(f"Starting WordPress environments for {config.name}")

        write_descriptor(config)

        if config.core_source is not None:
            copy_tree(config.core_source, config.tests_core_path)

        await self.gateway.up(self.options)

        if config.core_source is None:
            for environment in Environment:
                await make_content_directories_writable(self.gateway, environment, config)

        await wait_for_database(
            self.gateway,
            config,
            attempts=self.db_check_attempts,
            delay=self.db_check_delay,
        )

        for environment in Environment:
            if await is_wordpress_installed(self.gateway, environment, config):
                logger.debug(f"WordPress {environment.value} already installed")
                continue
            await configure_wordpress(self.gateway, environment, config)

        return (
            "WordPress development site started at "
            f"http://localhost:{config.port}/\n"
            "WordPress test site started at "
            f"http://localhost:{config.tests_port}/"
        )

    async def stop(self) -> str:
        """Stop both environments. Stopping a stopped stack is not an error."""
        if not self.config.docker_compose_config_path.exists():
            logger.debug("No compose file found, nothing has been started")
            return "WordPress is not running."

        await self.gateway.down(self.options)
        return "Stopped WordPress."

    async def clean(
        self, selector: EnvironmentSelector = EnvironmentSelector.TESTS
    ) -> str:
        """Reset the selected databases and set WordPress up again on them."""
        try:
            selector = EnvironmentSelector(selector)
        except ValueError:
            raise ValidationError(
                f"Unknown environment '{selector}'. "
                f"Choose one of: {', '.join(s.value for s in EnvironmentSelector)}"
            )
        await reset_database(self.gateway, selector, self.config)

        for environment in selector.environments():
            await configure_wordpress(self.gateway, environment, self.config)

        if selector is EnvironmentSelector.ALL:
            return "Cleaned development and tests environments."
        return f"Cleaned {selector.value} environment."

    async def run(self, container: str, command: Command) -> int:
        """
        Run a command in one of the running containers.

        Returns:
            The command's own exit code
        """
        if container not in SERVICES:
            raise ValidationError(
                f"Unknown container '{container}'. "
                f"Choose one of: {', '.join(SERVICES)}"
            )
        if not command:
            raise ValidationError("No command given to run.")

        result = await self.gateway.exec(
            container, command, self.options, check=False, interactive=True
        )
        return result.exit_code

    async def status(self) -> str:
        if not self.config.docker_compose_config_path.exists():
            return "WordPress is not running."
        result = await self.gateway.ps(self.options)
        return result.out.rstrip()
