"""
Docker Compose gateway.

All container interaction goes through ``ComposeGateway``: one-shot ``run``
commands, ``exec`` into running services, and bringing the stack up and down.
Each call spawns ``<runtime> compose -f <descriptor> ...`` as an asyncio
subprocess.
"""

import asyncio
import logging
import shlex
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Union

from .config import Config
from .errors import ComposeCommandError
from .logging_config import mask_sensitive_data
from .models import CommandResult

logger = logging.getLogger(__name__)

Command = Union[str, Sequence[str]]


@dataclass(frozen=True)
class ComposeOptions:
    """Options shared by every compose invocation."""

    config_path: Path
    log: bool = False

    @classmethod
    def from_config(cls, config: Config) -> "ComposeOptions":
        return cls(config_path=config.docker_compose_config_path, log=config.debug)


def to_argv(command: Command) -> List[str]:
    """Normalize a command given as a string or an argument list."""
    if isinstance(command, str):
        return shlex.split(command)
    return [str(arg) for arg in command]


class ComposeGateway:
    """Runs docker compose commands against a generated descriptor."""

    def __init__(self, container_runtime: str = "docker"):
        self.container_runtime = container_runtime

    def _base_command(self, options: ComposeOptions) -> List[str]:
        return [self.container_runtime, "compose", "-f", str(options.config_path)]

    async def run_once(
        self,
        service: str,
        command: Command,
        options: ComposeOptions,
        check: bool = True,
    ) -> CommandResult:
        """Run a command in a fresh, auto-removed container of ``service``."""
        cmd = self._base_command(options) + ["run", "--rm", service] + to_argv(command)
        return await self._execute(cmd, options, check=check)

    async def exec(
        self,
        service: str,
        command: Command,
        options: ComposeOptions,
        check: bool = True,
        interactive: bool = False,
    ) -> CommandResult:
        """
        Run a command inside the running container of ``service``.

        When ``interactive`` is set the command shares this process's stdio and
        only its exit code is reported back.
        """
        cmd = self._base_command(options) + ["exec"]
        if not interactive or not sys.stdin.isatty():
            cmd.append("-T")
        cmd += [service] + to_argv(command)

        if interactive:
            return await self._execute_attached(cmd, check=check)
        return await self._execute(cmd, options, check=check)

    async def up(
        self, options: ComposeOptions, services: Optional[Sequence[str]] = None
    ) -> CommandResult:
        """Start the stack (or the given services) in the background."""
        cmd = self._base_command(options) + ["up", "-d"] + list(services or [])
        return await self._execute(cmd, options)

    async def down(self, options: ComposeOptions) -> CommandResult:
        """Stop and remove the stack's containers."""
        cmd = self._base_command(options) + ["down"]
        return await self._execute(cmd, options)

    async def ps(self, options: ComposeOptions) -> CommandResult:
        """List the stack's containers."""
        cmd = self._base_command(options) + ["ps"]
        return await self._execute(cmd, options)

    async def _spawn(self, cmd: List[str], **kwargs) -> asyncio.subprocess.Process:
        try:
            return await asyncio.create_subprocess_exec(*cmd, **kwargs)
        except FileNotFoundError:
            raise ComposeCommandError(
                127,
                err=f"{self.container_runtime} executable not found\n",
                command=cmd,
            )

    async def _execute(
        self, cmd: List[str], options: ComposeOptions, check: bool = True
    ) -> CommandResult:
        logger.debug(f"Running: {mask_sensitive_data(' '.join(cmd))}")
        start_time = asyncio.get_event_loop().time()

        process = await self._spawn(
            cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await process.communicate()

        result = CommandResult(
            exit_code=process.returncode,
            out=stdout.decode("utf-8", errors="replace") if stdout else "",
            err=stderr.decode("utf-8", errors="replace") if stderr else "",
        )

        duration = asyncio.get_event_loop().time() - start_time
        logger.debug(f"Completed: exit_code={result.exit_code}, duration={duration:.2f}s")

        if options.log:
            if result.out.strip():
                logger.info(mask_sensitive_data(result.out.strip()))
            if result.err.strip():
                logger.info(mask_sensitive_data(result.err.strip()))

        if check and not result.success:
            raise ComposeCommandError(result.exit_code, result.out, result.err, cmd)

        return result

    async def _execute_attached(self, cmd: List[str], check: bool) -> CommandResult:
        logger.debug(f"Running attached: {mask_sensitive_data(' '.join(cmd))}")

        process = await self._spawn(cmd)
        exit_code = await process.wait()

        if check and exit_code != 0:
            raise ComposeCommandError(exit_code, command=cmd)

        return CommandResult(exit_code=exit_code)
