"""Console notifier - success and failure messages with follow-up actions.

Success offers to reveal the archive in the OS file browser; the choice text
follows the platform convention. Failure shows the message and, when the
error carries a ``Remediation``, offers it next to "Done".
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from pathlib import Path

import typer
from rich.console import Console
from rich.prompt import Confirm

from jarforge.core.errors import ExportError
from jarforge.core.logging import get_logger

logger = get_logger(__name__)


def reveal_label(platform: str | None = None) -> str:
    """Choice text for revealing a file, per OS."""
    platform = platform or sys.platform
    if platform == "win32":
        return "Reveal in File Explorer"
    if platform == "darwin":
        return "Reveal in Finder"
    return "Open Containing Folder"


def reveal_in_file_browser(path: Path) -> None:
    """Open the OS file browser with ``path`` selected."""
    typer.launch(str(path), locate=True)


class ConsoleNotifier:
    """``Notifier`` printing to a rich console."""

    def __init__(
        self,
        console: Console | None = None,
        *,
        interactive: bool | None = None,
        reveal: Callable[[Path], None] = reveal_in_file_browser,
    ) -> None:
        self._console = console or Console()
        self._interactive = self._console.is_interactive if interactive is None else interactive
        self._reveal = reveal

    def notify_success(self, output_path: Path) -> None:
        self._console.print(f"[bold green]Successfully exported jar to[/bold green]\n{output_path}")
        if not self._interactive:
            return
        label = reveal_label()
        if Confirm.ask(f"{label}?", console=self._console, default=False):
            self._reveal(output_path)

    def notify_failure(self, error: ExportError) -> None:
        self._console.print(f"[bold red]Export failed:[/bold red] {error.message}")
        if error.remediation is None or not self._interactive:
            return
        if Confirm.ask(f"{error.remediation.label}?", console=self._console, default=False):
            logger.info("notify.remediation", action=error.remediation.label)
            error.remediation.run()


__all__ = ["ConsoleNotifier", "reveal_label", "reveal_in_file_browser"]
