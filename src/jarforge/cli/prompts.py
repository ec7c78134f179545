"""Console prompter - the ``Prompter`` contract on a rich terminal.

Keys understood by every prompt::

    q        cancel the export
    b        go back (only when offered)

Multi-select: numbers or ranges toggle items (``1 3-5``), ``a`` checks all,
``n`` clears all, Enter accepts the checked items. Single-select: a number
picks the item. Save location: Enter accepts the proposed path.

Input is read on a daemon thread so the event loop keeps servicing the
cancellation token. A cancelled prompt abandons that thread, which never
holds up interpreter exit. End of input (Ctrl-D) counts as cancel.
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any, TypeVar

from rich.console import Console
from rich.table import Table

from jarforge.core.cancellation import CancellationToken, run_cancellable
from jarforge.core.errors import ExportCancelled
from jarforge.core.logging import get_logger
from jarforge.core.models import EntryPointRef
from jarforge.core.protocols import PromptResult
from jarforge.orchestration.dependencies import DependencyItem

logger = get_logger(__name__)

T = TypeVar("T")

CANCEL_KEYS = {"q", "quit"}
BACK_KEYS = {"b", "back"}
KEYWORDS = CANCEL_KEYS | BACK_KEYS | {"a", "n"}


def describe(item: Any) -> tuple[str, str]:
    """Label and detail columns for a prompt row."""
    if isinstance(item, DependencyItem):
        return item.label, f"{item.scope.value} · {item.kind.value}"
    if isinstance(item, EntryPointRef):
        return item.name, str(item.path) if item.path else ""
    return str(item), ""


def parse_selection(text: str, count: int) -> set[int]:
    """Parse ``"1 3-5,7"`` into zero-based indexes.

    Raises:
        ValueError: On malformed input or out-of-range numbers
    """
    indexes: set[int] = set()
    for part in text.replace(",", " ").split():
        if "-" in part:
            start_s, end_s = part.split("-", 1)
            start, end = int(start_s), int(end_s)
        else:
            start = end = int(part)
        if start > end or start < 1 or end > count:
            raise ValueError(f"out of range: {part}")
        indexes.update(range(start - 1, end))
    return indexes


class ConsolePrompter:
    """Numbered-list prompts on a rich console."""

    def __init__(
        self,
        console: Console | None = None,
        ask: Callable[[str], str] | None = None,
    ) -> None:
        self._console = console or Console()
        self._ask = ask or self._console.input

    async def prompt_multi_select(
        self,
        title: str,
        items: Sequence[T],
        preselected: Sequence[T],
        allow_back: bool,
        token: CancellationToken,
    ) -> PromptResult[list[T]]:
        checked = {i for i, item in enumerate(items) if item in preselected}
        hint = "numbers toggle, a = all, n = none, Enter = accept"
        hint += ", b = back, q = cancel" if allow_back else ", q = cancel"

        while True:
            self._render(title, items, checked)
            answer = await self._read(f"{hint}\n> ", token)
            if answer is None or answer in CANCEL_KEYS:
                return PromptResult.cancelled()
            if answer in BACK_KEYS and allow_back:
                return PromptResult.back()
            if answer == "":
                return PromptResult.accepted([items[i] for i in sorted(checked)])
            if answer == "a":
                checked = set(range(len(items)))
                continue
            if answer == "n":
                checked = set()
                continue
            try:
                checked ^= parse_selection(answer, len(items))
            except ValueError as e:
                self._console.print(f"[yellow]Invalid selection:[/yellow] {e}")

    async def prompt_single_select(
        self,
        title: str,
        items: Sequence[T],
        allow_back: bool,
        token: CancellationToken,
    ) -> PromptResult[T]:
        hint = "number = pick" + (", b = back" if allow_back else "") + ", q = cancel"

        while True:
            self._render(title, items, None)
            answer = await self._read(f"{hint}\n> ", token)
            if answer is None or answer in CANCEL_KEYS or answer == "":
                return PromptResult.cancelled()
            if answer in BACK_KEYS and allow_back:
                return PromptResult.back()
            try:
                (index,) = parse_selection(answer, len(items))
            except ValueError:
                self._console.print(f"[yellow]Pick one number between 1 and {len(items)}[/yellow]")
                continue
            return PromptResult.accepted(items[index])

    async def prompt_save_location(
        self,
        default_dir: Path,
        extension: str,
        token: CancellationToken,
    ) -> PromptResult[Path]:
        proposed = default_dir / f"{default_dir.name}{extension}"
        answer = await self._read(f"Save archive as [{proposed}] (q = cancel): ", token)
        if answer is None or answer in CANCEL_KEYS:
            return PromptResult.cancelled()
        if answer == "":
            return PromptResult.accepted(proposed)

        path = Path(answer).expanduser()
        if not path.is_absolute():
            path = default_dir / path
        if path.suffix.lower() != extension:
            path = path.with_name(path.name + extension)
        return PromptResult.accepted(path)

    # -- Helpers -----------------------------------------------------------

    async def _read(self, prompt: str, token: CancellationToken) -> str | None:
        """Read one line; None on end of input."""
        try:
            answer = await run_cancellable(
                self._ask_in_background(prompt), token, operation="prompt"
            )
        except EOFError:
            return None
        except ExportCancelled:
            self._console.print()
            raise
        text = answer.strip()
        # Keywords are case-insensitive; paths are not.
        return text.lower() if text.lower() in KEYWORDS else text

    def _ask_in_background(self, prompt: str) -> asyncio.Future[str]:
        """Run ``ask`` on a daemon thread and expose its answer as a future.

        The default executor is not used: ``asyncio.run`` joins its threads on
        shutdown, so a read blocked after cancellation would keep the process
        alive until the operator pressed Enter.
        """
        loop = asyncio.get_running_loop()
        future: asyncio.Future[str] = loop.create_future()

        def settle(answer: str | None, error: Exception | None) -> None:
            if future.done():
                return
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(answer or "")

        def worker() -> None:
            answer: str | None = None
            error: Exception | None = None
            try:
                answer = self._ask(prompt)
            except Exception as e:
                error = e
            try:
                loop.call_soon_threadsafe(settle, answer, error)
            except RuntimeError:
                # Loop already closed: the prompt was abandoned.
                logger.debug("prompt.answer_discarded", prompt=prompt.strip())

        threading.Thread(target=worker, name="jarforge-prompt", daemon=True).start()
        return future

    def _render(self, title: str, items: Sequence[Any], checked: set[int] | None) -> None:
        table = Table(title=title, show_lines=False)
        table.add_column("#", justify="right", style="cyan")
        if checked is not None:
            table.add_column("", justify="center")
        table.add_column("Item", style="bold")
        table.add_column("Details", style="dim")
        for i, item in enumerate(items):
            label, detail = describe(item)
            row = [str(i + 1)]
            if checked is not None:
                row.append("[green]x[/green]" if i in checked else " ")
            row.extend([label, detail])
            table.add_row(*row)
        self._console.print(table)


__all__ = ["ConsolePrompter", "describe", "parse_selection"]
