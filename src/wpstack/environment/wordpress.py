"""
WordPress readiness and configuration.

``WordPressSequencer`` drives one environment from freshly started containers
to a configured site:

    NOT_INSTALLED -> INSTALLED -> CONFIGURED -> PLUGINS_ACTIVE
        -> THEME_RESOLVED -> READY

Every step is a WP-CLI command run in the environment's CLI container and the
state only advances when the command succeeds. Steps run one at a time since
concurrent WP-CLI calls against the same site race on the options table.

The module also holds the flows that do not depend on the sequence: database
reset, database connectivity checks and content directory ownership repair.
"""

import asyncio
import json
import logging
from pathlib import PurePath
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..compose import ComposeGateway, ComposeOptions
from ..config import Config
from ..errors import ComposeCommandError, SequenceStateError
from ..models import (
    CLI_SERVICE,
    Environment,
    EnvironmentSelector,
    SequenceState,
    cli_service,
    web_service,
)

logger = logging.getLogger(__name__)

ADMIN_USER = "admin"
ADMIN_PASSWORD = "password"
ADMIN_EMAIL = "wordpress@example.com"


def config_set_command(key: str, value: Any) -> List[str]:
    """WP-CLI command writing one wp-config.php constant."""
    if isinstance(value, str):
        return ["wp", "config", "set", key, value]
    # Non-strings are written as PHP literals rather than quoted strings
    return ["wp", "config", "set", key, json.dumps(value), "--raw"]


def theme_slug(source: str) -> str:
    """Directory name WordPress knows a theme source by."""
    return PurePath(source).name or source


class WordPressSequencer:
    """Configures the WordPress instance of a single environment."""

    def __init__(
        self,
        gateway: ComposeGateway,
        config: Config,
        environment: Environment,
        state: SequenceState = SequenceState.NOT_INSTALLED,
    ):
        self.gateway = gateway
        self.config = config
        self.environment = environment
        self.state = state
        self.theme: Optional[str] = None
        self.options = ComposeOptions.from_config(config)

        self._transitions: Dict[SequenceState, Callable[[], Awaitable[None]]] = {
            SequenceState.NOT_INSTALLED: self.install,
            SequenceState.INSTALLED: self.apply_config,
            SequenceState.CONFIGURED: self.activate_plugins,
            SequenceState.PLUGINS_ACTIVE: self.resolve_theme,
            SequenceState.THEME_RESOLVED: self.activate_theme,
        }

    @property
    def service(self) -> str:
        return cli_service(self.environment)

    @property
    def is_ready(self) -> bool:
        return self.state is SequenceState.READY

    async def _run(self, command, check: bool = True):
        return await self.gateway.run_once(
            self.service, command, self.options, check=check
        )

    def _require(self, expected: SequenceState) -> None:
        if self.state is not expected:
            raise SequenceStateError(
                f"Cannot leave state {expected.value} for {self.environment.value}: "
                f"sequence is in state {self.state.value}"
            )

    def _advance(self, new_state: SequenceState) -> None:
        logger.debug(f"{self.environment.value}: {self.state.value} -> {new_state.value}")
        self.state = new_state

    async def install(self) -> None:
        """Install WordPress core."""
        self._require(SequenceState.NOT_INSTALLED)
        port = self.config.port_for(self.environment)
        logger.info(f"Installing WordPress for {self.environment.value}")
        await self._run(
            [
                "wp",
                "core",
                "install",
                f"--url=localhost:{port}",
                f"--title={self.config.name}",
                f"--admin_user={ADMIN_USER}",
                f"--admin_password={ADMIN_PASSWORD}",
                f"--admin_email={ADMIN_EMAIL}",
                "--skip-email",
            ]
        )
        self._advance(SequenceState.INSTALLED)

    async def apply_config(self) -> None:
        """Write every configured wp-config.php value."""
        self._require(SequenceState.INSTALLED)
        for key, value in self.config.config.items():
            await self._run(config_set_command(key, value))
        self._advance(SequenceState.CONFIGURED)

    async def activate_plugins(self) -> None:
        self._require(SequenceState.CONFIGURED)
        await self._run("wp plugin activate --all")
        self._advance(SequenceState.PLUGINS_ACTIVE)

    async def resolve_theme(self) -> None:
        """
        Pick the theme to activate.

        The first declared theme source wins. Without declared themes the first
        installed theme is used; a failing theme query means there is no theme
        to activate, which is not an error.
        """
        self._require(SequenceState.PLUGINS_ACTIVE)

        if self.config.theme_sources is not None:
            self.theme = self.config.theme_sources[0] if self.config.theme_sources else None
        else:
            result = await self._run("wp theme list --fields=name", check=False)
            if result.exit_code != 0:
                logger.warning(
                    f"Could not list themes for {self.environment.value} "
                    f"(exit code {result.exit_code}); no theme will be activated"
                )
                self.theme = None
            else:
                # Line 0 is the "name" header
                lines = result.out.splitlines()
                self.theme = lines[1].strip() if len(lines) > 1 and lines[1].strip() else None

        self._advance(SequenceState.THEME_RESOLVED)

    async def activate_theme(self) -> None:
        self._require(SequenceState.THEME_RESOLVED)
        if self.theme:
            await self._run(["wp", "theme", "activate", theme_slug(self.theme)])
        self._advance(SequenceState.READY)

    async def step(self) -> SequenceState:
        """Perform the transition out of the current state."""
        if self.is_ready:
            return self.state
        await self._transitions[self.state]()
        return self.state

    async def run(self) -> SequenceState:
        """Step until the site is ready. A failing step aborts the sequence."""
        while not self.is_ready:
            await self.step()
        logger.info(f"WordPress {self.environment.value} environment is ready")
        return self.state


async def configure_wordpress(
    gateway: ComposeGateway, environment: Environment, config: Config
) -> SequenceState:
    """Install and configure WordPress for one environment."""
    return await WordPressSequencer(gateway, config, environment).run()


async def reset_database(
    gateway: ComposeGateway, selector: EnvironmentSelector, config: Config
) -> None:
    """
    Reset the development database, the tests database, or both.

    Both databases are reset concurrently when ``selector`` is ``all``; they
    share no state. Every reset runs to completion before the first failure
    is raised.
    """
    options = ComposeOptions.from_config(config)
    tasks = [
        gateway.run_once(cli_service(environment), "wp db reset --yes", options)
        for environment in selector.environments()
    ]
    logger.info(f"Resetting database(s): {selector.value}")
    results = await asyncio.gather(*tasks, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result


async def make_content_directories_writable(
    gateway: ComposeGateway, environment: Environment, config: Config
) -> None:
    """
    Give www-data ownership of wp-content and its plugins and themes
    directories.

    Volume binds create these directories as root when the stack comes up
    without a core source, which prevents WordPress from writing to them.
    """
    await gateway.exec(
        web_service(environment),
        "chown -R www-data:www-data wp-content wp-content/plugins wp-content/themes",
        ComposeOptions.from_config(config),
    )


async def check_database_connection(gateway: ComposeGateway, config: Config) -> None:
    """Raise ComposeCommandError unless the database accepts connections."""
    await gateway.run_once(CLI_SERVICE, "wp db check", ComposeOptions.from_config(config))


async def wait_for_database(
    gateway: ComposeGateway,
    config: Config,
    attempts: int = 30,
    delay: float = 5.0,
) -> None:
    """
    Probe the database until it is reachable.

    Raises:
        ComposeCommandError: The last probe failure once all attempts are used
    """
    for attempt in range(1, attempts + 1):
        try:
            await check_database_connection(gateway, config)
            logger.debug(f"Database ready after {attempt} attempt(s)")
            return
        except ComposeCommandError:
            if attempt == attempts:
                logger.error(f"Database not reachable after {attempts} attempts")
                raise
            logger.debug(f"Database not ready (attempt {attempt}/{attempts})")
            await asyncio.sleep(delay)


async def is_wordpress_installed(
    gateway: ComposeGateway, environment: Environment, config: Config
) -> bool:
    result = await gateway.run_once(
        cli_service(environment),
        "wp core is-installed",
        ComposeOptions.from_config(config),
        check=False,
    )
    return result.exit_code == 0
