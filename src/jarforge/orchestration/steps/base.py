"""Step executor contract.

One executor type per ``ExportStep``; the engine keeps a mapping from step
to executor and calls ``execute`` with the run's metadata and cancellation
token. Executors hold their collaborators, never run state.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from jarforge.core.cancellation import CancellationToken
from jarforge.orchestration.metadata import ExportStep, StepMetadata
from jarforge.orchestration.step_result import StepOutcome


@runtime_checkable
class StepExecutor(Protocol):
    """Executes one export step."""

    step: ExportStep

    async def execute(self, metadata: StepMetadata, token: CancellationToken) -> StepOutcome:
        """Run the step against ``metadata`` and say where the run goes next.

        May raise ``ExportCancelled`` or any ``ExportError`` instead of
        returning ``StepOutcome.abort(...)``.
        """
        ...


__all__ = ["StepExecutor"]
