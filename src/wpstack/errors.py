"""
Error types raised by wpstack.

Every failure that reaches the command line is one of these tagged types or an
unexpected exception; ``wpstack.outcome.classify`` tells them apart.
"""

from typing import Sequence

from .logging_config import mask_sensitive_data


class WpstackError(Exception):
    """Base class for wpstack errors."""


class ValidationError(WpstackError):
    """The user supplied invalid input (arguments, project file, sources)."""


class ComposeCommandError(WpstackError):
    """A docker compose invocation exited with a non-zero status."""

    def __init__(
        self,
        exit_code: int,
        out: str = "",
        err: str = "",
        command: Sequence[str] = (),
    ):
        self.exit_code = exit_code
        self.out = out
        self.err = err
        self.command = list(command)
        super().__init__(
            f"Command failed with exit code {exit_code}: "
            f"{mask_sensitive_data(' '.join(self.command))}"
        )


class SequenceStateError(WpstackError):
    """A configuration step was requested from the wrong sequence state."""
