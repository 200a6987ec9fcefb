"""
Classification of failed operations.

``classify`` turns any exception raised by a lifecycle operation into one of
three outcomes, which the command line reports and maps to an exit code.
"""

import traceback
from dataclasses import dataclass
from typing import Union

from .errors import ComposeCommandError, ValidationError


@dataclass(frozen=True)
class ValidationFailure:
    """The user did something wrong."""

    message: str


@dataclass(frozen=True)
class BackendFailure:
    """A docker compose command failed."""

    exit_code: int
    out: str
    err: str


@dataclass(frozen=True)
class InternalFailure:
    """A bug in wpstack."""

    error: BaseException
    detail: str

    @property
    def message(self) -> str:
        return str(self.error) or type(self.error).__name__


Outcome = Union[ValidationFailure, BackendFailure, InternalFailure]


def classify(error: BaseException) -> Outcome:
    """Classify an exception raised by a lifecycle operation."""
    if isinstance(error, ValidationError):
        return ValidationFailure(message=str(error))
    if isinstance(error, ComposeCommandError):
        return BackendFailure(exit_code=error.exit_code, out=error.out, err=error.err)
    detail = "".join(
        traceback.format_exception(type(error), error, error.__traceback__)
    )
    return InternalFailure(error=error, detail=detail)


def exit_code_for(outcome: Outcome) -> int:
    """Process exit code to report for an outcome."""
    if isinstance(outcome, BackendFailure):
        return outcome.exit_code
    return 1
