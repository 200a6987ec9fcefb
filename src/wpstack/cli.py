"""
Command-line interface for wpstack

Starts, stops, cleans and runs commands in the development and tests
WordPress environments of the project in the current directory.
"""

import asyncio
import sys
import time
from typing import Awaitable, Callable, Optional, Tuple, TypeVar

import click
from pydantic import ValidationError as PydanticValidationError

from . import __version__
from .compose import ComposeGateway
from .config import WpstackSettings, load_config, load_settings
from .environment import EnvironmentController
from .logging_config import setup_logging
from .models import EnvironmentSelector
from .outcome import (
    BackendFailure,
    InternalFailure,
    Outcome,
    ValidationFailure,
    classify,
    exit_code_for,
)
from .output import Styler

T = TypeVar("T")


def create_controller(settings: WpstackSettings) -> EnvironmentController:
    """Resolve the project in the current directory and wire its controller."""
    config = load_config(settings)
    gateway = ComposeGateway(settings.container_runtime)
    return EnvironmentController(
        config,
        gateway,
        db_check_attempts=settings.db_check_attempts,
        db_check_delay=settings.db_check_delay,
    )


def report_failure(outcome: Outcome, styler: Styler) -> None:
    """Print a failed operation's outcome to the terminal."""
    if isinstance(outcome, ValidationFailure):
        click.echo(styler.failure(outcome.message), err=True)
    elif isinstance(outcome, BackendFailure):
        click.echo(styler.failure("Error while running docker compose command."), err=True)
        if outcome.out:
            click.echo(outcome.out, nl=False)
        if outcome.err:
            click.echo(outcome.err, err=True, nl=False)
    elif isinstance(outcome, InternalFailure):
        click.echo(styler.failure(outcome.message), err=True)
        click.echo(outcome.detail, err=True, nl=False)


def execute(
    ctx: click.Context,
    operation: Callable[[EnvironmentController], Awaitable[T]],
) -> Tuple[T, float]:
    """
    Run a lifecycle operation, exiting with the matching code on failure.

    Returns:
        The operation's result and the elapsed time in seconds
    """
    settings = ctx.obj["settings"]
    styler = ctx.obj["styler"]
    start_time = time.monotonic()

    try:
        controller = create_controller(settings)
        result = asyncio.run(operation(controller))
    except Exception as e:
        outcome = classify(e)
        report_failure(outcome, styler)
        sys.exit(exit_code_for(outcome))

    return result, time.monotonic() - start_time


def _echo_success(ctx: click.Context, message: str, elapsed: float) -> None:
    styler = ctx.obj["styler"]
    click.echo(f"{styler.success(message)} {styler.elapsed(elapsed)}")


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Set logging level",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output",
)
@click.option(
    "--debug",
    is_flag=True,
    help="Show the output of every docker compose command",
)
@click.option(
    "--no-color",
    is_flag=True,
    help="Disable colored output",
)
@click.version_option(version=__version__, prog_name="wpstack")
@click.pass_context
def cli(
    ctx: click.Context,
    log_level: Optional[str],
    verbose: bool,
    debug: bool,
    no_color: bool,
) -> None:
    """
    wpstack: local WordPress development and tests environments

    Run from a WordPress checkout, a plugin, a theme, or a directory with a
    .wp-env.json file. Development runs on port 8888 (override with
    WP_ENV_PORT) and tests on port 8889 (override with WP_ENV_TESTS_PORT).
    """
    styler = Styler(color=not no_color)

    overrides = {
        k: v for k, v in {
            "log_level": log_level.upper() if log_level else None,
            "verbose": verbose or None,
            "debug": debug or None,
        }.items() if v is not None
    }

    try:
        settings = load_settings(overrides)
    except PydanticValidationError as e:
        click.echo(styler.failure(f"Invalid settings: {e}"), err=True)
        sys.exit(1)

    level = settings.log_level
    if settings.debug and level in ("WARNING", "ERROR", "CRITICAL"):
        level = "INFO"
    setup_logging(log_dir=settings.log_dir, verbose=settings.verbose, log_level=level)

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings
    ctx.obj["styler"] = styler


@cli.command()
@click.pass_context
def start(ctx: click.Context) -> None:
    """Start WordPress for development and tests."""
    message, elapsed = execute(ctx, lambda controller: controller.start())
    _echo_success(ctx, message, elapsed)


@cli.command()
@click.pass_context
def stop(ctx: click.Context) -> None:
    """Stop WordPress for development and tests and free the ports."""
    message, elapsed = execute(ctx, lambda controller: controller.stop())
    _echo_success(ctx, message, elapsed)


@cli.command()
@click.argument(
    "environment",
    type=click.Choice([selector.value for selector in EnvironmentSelector]),
    default=EnvironmentSelector.TESTS.value,
    required=False,
)
@click.pass_context
def clean(ctx: click.Context, environment: str) -> None:
    """Clean the WordPress databases of ENVIRONMENT (default: tests)."""
    selector = EnvironmentSelector(environment)
    message, elapsed = execute(ctx, lambda controller: controller.clean(selector))
    _echo_success(ctx, message, elapsed)


@cli.command(
    context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False}
)
@click.argument("container")
@click.argument("command", nargs=-1, type=click.UNPROCESSED, required=True)
@click.pass_context
def run(ctx: click.Context, container: str, command: Tuple[str, ...]) -> None:
    """Run an arbitrary COMMAND in one of the containers."""
    exit_code, _ = execute(ctx, lambda controller: controller.run(container, list(command)))
    sys.exit(exit_code)


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show the containers of both environments."""
    output, _ = execute(ctx, lambda controller: controller.status())
    click.echo(output)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
