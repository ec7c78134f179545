"""Cooperative cancellation for long-running export operations.

Every suspension point of an export run (build, project-model queries,
prompts, the archive call) receives the run's ``CancellationToken``.
Cancellation is explicit: nothing is interrupted behind the caller's back,
the awaited operation is raced against the token and the loser is cancelled.

Architecture:
    ::

        CancellationToken
          ├── .cancel(reason)            ─ request cancellation (idempotent)
          ├── .cancelled                 ─ check without waiting
          ├── .raise_if_cancelled()      ─ raise ExportCancelled
          ├── .wait()                    ─ suspend until cancelled
          └── .on_cancel(callback)       ─ run callback once on cancel

        run_cancellable(awaitable, token, operation="...")
          ─ await the operation, or raise ExportCancelled as soon as the
            token fires (the operation task is cancelled)

Example::

    token = CancellationToken()
    loop.add_signal_handler(signal.SIGINT, token.cancel)

    paths = await run_cancellable(
        model.get_classpaths(project, "runtime"),
        token,
        operation="resolve classpaths",
    )
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from jarforge.core.errors import ExportCancelled
from jarforge.core.logging import get_logger

T = TypeVar("T")

logger = get_logger(__name__)


class CancellationToken:
    """Explicit cancellation signal shared by one export run."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: str | None = None
        self._callbacks: list[Callable[[], Any]] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str = "cancelled by operator") -> None:
        """Request cancellation. Subsequent calls are no-ops."""
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def on_cancel(self, callback: Callable[[], Any]) -> None:
        """Run ``callback`` once when the token is cancelled (immediately if it already is)."""
        if self.cancelled:
            callback()
        else:
            self._callbacks.append(callback)

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise ExportCancelled(self._reason or "Export cancelled")

    async def wait(self) -> None:
        await self._event.wait()


async def run_cancellable(
    awaitable: Awaitable[T],
    token: CancellationToken,
    operation: str = "operation",
) -> T:
    """Await ``awaitable`` unless ``token`` fires first.

    Args:
        awaitable: Coroutine or future to run
        token: The run's cancellation token
        operation: Name used in logs and the cancellation message

    Returns:
        The awaitable's result

    Raises:
        ExportCancelled: If the token was, or becomes, cancelled
    """
    if token.cancelled:
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        token.raise_if_cancelled()

    task = asyncio.ensure_future(awaitable)
    waiter = asyncio.ensure_future(token.wait())
    try:
        await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        task.cancel()
        raise
    finally:
        waiter.cancel()

    if task.done():
        return task.result()

    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
    logger.debug("cancellation.operation_cancelled", operation=operation, reason=token.reason)
    raise ExportCancelled(f"{operation} cancelled")


__all__ = ["CancellationToken", "run_cancellable"]
