"""Async subprocess helper shared by the build and archive adapters.

The child is killed when the awaiting task is cancelled, so cancelling an
export also stops a running build or generator.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from jarforge.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Exit status and captured output of a finished command."""

    argv: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str
    duration_seconds: float

    @property
    def ok(self) -> bool:
        return self.returncode == 0


async def run_command(
    argv: Sequence[str],
    *,
    cwd: Path | None = None,
    timeout: float | None = None,
) -> CommandResult:
    """Run ``argv`` to completion.

    Raises:
        FileNotFoundError: If the executable does not exist
        TimeoutError: If ``timeout`` elapsed (the child is killed)
    """
    start = time.monotonic()
    proc = await asyncio.create_subprocess_exec(
        *argv,
        cwd=str(cwd) if cwd else None,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        async with asyncio.timeout(timeout):
            stdout, stderr = await proc.communicate()
    except (asyncio.CancelledError, TimeoutError):
        if proc.returncode is None:
            proc.kill()
            await proc.wait()
        logger.warning("process.killed", argv=list(argv))
        raise

    result = CommandResult(
        argv=tuple(argv),
        returncode=proc.returncode,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
        duration_seconds=time.monotonic() - start,
    )
    logger.debug(
        "process.finished",
        argv=list(argv),
        returncode=result.returncode,
        duration_seconds=result.duration_seconds,
    )
    return result


__all__ = ["CommandResult", "run_command"]
