"""
Output sink for the sync step.

Inside GitHub Actions, debug and error lines are written as workflow
commands so the runner annotates them. Elsewhere they are printed with
rich styling.
"""

import os
from typing import Optional

from rich.console import Console
from rich.markup import escape


def escape_data(value: str) -> str:
    """Escape a message for use in a workflow command."""
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def running_in_actions() -> bool:
    return os.getenv("GITHUB_ACTIONS") == "true"


class ActionsOutput:
    """
    Log sink passed explicitly to every sync component.

    Args:
        console: Console to write to. Defaults to a new stdout console.
        debug: Whether debug lines are shown outside of Actions.
        annotations: Emit workflow commands. Defaults to detecting the
            GitHub Actions runner.
    """

    def __init__(
        self,
        console: Optional[Console] = None,
        debug: bool = False,
        annotations: Optional[bool] = None,
    ):
        self.console = console or Console()
        self.debug_enabled = debug
        self.annotations = running_in_actions() if annotations is None else annotations
        self.failed_message: Optional[str] = None

    def _raw(self, line: str) -> None:
        self.console.print(line, markup=False, highlight=False, emoji=False, soft_wrap=True)

    def info(self, message: str) -> None:
        self._raw(message)

    def debug(self, message: str) -> None:
        if self.annotations:
            # The runner hides these unless step debugging is on
            self._raw(f"::debug::{escape_data(message)}")
        elif self.debug_enabled:
            self.console.print(f"[dim]{escape(message)}[/dim]", soft_wrap=True)

    def warning(self, message: str) -> None:
        if self.annotations:
            self._raw(f"::warning::{escape_data(message)}")
        else:
            self.console.print(f"[yellow]{escape(message)}[/yellow]", soft_wrap=True)

    def error(self, message: str) -> None:
        if self.annotations:
            self._raw(f"::error::{escape_data(message)}")
        else:
            self.console.print(f"[red]{escape(message)}[/red]", soft_wrap=True)

    def set_failed(self, message: str) -> None:
        """Record the step failure; the caller exits non-zero."""
        self.failed_message = message
        self.error(message)
