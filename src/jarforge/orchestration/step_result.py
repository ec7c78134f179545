"""Step Outcome - the value every export step executor returns.

Each executor reports how the run should continue with one of three
variants, which keeps the engine's transition table total and inspectable:

ARCHITECTURE
────────────
::

    StepOutcome
      ├── .advance(next_step)      → continue forward
      ├── .back(prior_step)        → operator asked to go back
      └── .abort(error | None)     → stop; None is a silent cancel

    Executors may also raise ExportCancelled / ExportError; the engine
    turns those into .abort(...) so both styles end up in the same place.

Example::

    async def execute(self, metadata, token):
        result = await prompter.prompt_single_select(...)
        if result.is_back:
            return StepOutcome.back(ExportStep.RESOLVE_PROJECT)
        if not result.is_accepted:
            return StepOutcome.abort()
        metadata.selected_entry_point = result.value.name
        return StepOutcome.advance(ExportStep.GENERATE)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from jarforge.core.errors import ExportError
from jarforge.orchestration.metadata import ExportStep


class OutcomeKind(str, Enum):
    ADVANCE = "advance"
    BACK = "back"
    ABORT = "abort"


@dataclass(frozen=True)
class StepOutcome:
    """
    Result from executing an export step.

    Attributes:
        kind: ADVANCE, BACK or ABORT
        next_step: Step to run next (ADVANCE and BACK only)
        error: Failure to report (ABORT only; None means silent cancel)
    """

    kind: OutcomeKind
    next_step: ExportStep | None = None
    error: ExportError | None = None

    def __post_init__(self):
        if self.kind != OutcomeKind.ABORT and self.next_step is None:
            raise ValueError(f"{self.kind.value} outcome requires a next step")
        if self.kind != OutcomeKind.ABORT and self.error is not None:
            raise ValueError(f"{self.kind.value} outcome cannot carry an error")

    # =========================================================================
    # Factories
    # =========================================================================

    @classmethod
    def advance(cls, next_step: ExportStep) -> StepOutcome:
        return cls(kind=OutcomeKind.ADVANCE, next_step=next_step)

    @classmethod
    def back(cls, prior_step: ExportStep) -> StepOutcome:
        return cls(kind=OutcomeKind.BACK, next_step=prior_step)

    @classmethod
    def abort(cls, error: ExportError | None = None) -> StepOutcome:
        return cls(kind=OutcomeKind.ABORT, error=error)

    @classmethod
    def from_exception(cls, exc: ExportError) -> StepOutcome:
        """Abort outcome for a raised error; cancellations stay silent."""
        return cls.abort(None if exc.silent else exc)

    # =========================================================================
    # Inspection
    # =========================================================================

    @property
    def is_advance(self) -> bool:
        return self.kind == OutcomeKind.ADVANCE

    @property
    def is_back(self) -> bool:
        return self.kind == OutcomeKind.BACK

    @property
    def is_abort(self) -> bool:
        return self.kind == OutcomeKind.ABORT

    @property
    def is_cancel(self) -> bool:
        return self.is_abort and self.error is None

    def to_dict(self) -> dict[str, Any]:
        """Serialize for logging."""
        result: dict[str, Any] = {"kind": self.kind.value}
        if self.next_step is not None:
            result["next_step"] = self.next_step.value
        if self.error is not None:
            result["error"] = self.error.to_dict()
        return result

    def __repr__(self) -> str:
        if self.is_abort:
            return f"StepOutcome(ABORT, error={self.error!r})"
        return f"StepOutcome({self.kind.name}, next_step={self.next_step.value})"


__all__ = ["OutcomeKind", "StepOutcome"]
