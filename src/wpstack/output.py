"""
Terminal formatting for the command line.
"""

from dataclasses import dataclass

import click


@dataclass(frozen=True)
class Styler:
    """Formats messages; holds no state beyond whether to use color."""

    color: bool = True

    def _style(self, text: str, **styles) -> str:
        if not self.color:
            return text
        return click.style(text, **styles)

    def success(self, text: str) -> str:
        return self._style(f"✔ {text}", fg="green")

    def failure(self, text: str) -> str:
        return self._style(f"✖ {text}", fg="red", bold=True)

    def heading(self, text: str) -> str:
        return self._style(text, fg="blue", bold=True)

    def elapsed(self, seconds: float) -> str:
        whole = int(seconds)
        millis = int((seconds - whole) * 1000)
        return self._style(f"(in {whole}s {millis}ms)", dim=True)
