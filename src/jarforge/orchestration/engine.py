"""Export Workflow - the state machine that drives an export run.

The engine owns one ``StepMetadata`` per run and a dispatch table mapping
each ``ExportStep`` to its executor. It loops ``outcome =
executor.execute(metadata)`` until ``FINISH`` and maps outcomes to
transitions:

ARCHITECTURE
────────────
::

    run()
      ├── guard.hold(run_id)            ─ busy → SKIPPED (no-op)
      ├── model.trigger_build()         ─ False → ABORTED (silent)
      └── loop
            RESOLVE_PROJECT ─► RESOLVE_ENTRY_POINT ─► GENERATE ─► FINISH
                  ▲                    │ back             │ back
                  └────────────────────┴──────────────────┘

            advance(next)   → completed_steps += step; step = next
            back(prior)     → completed_steps rewound;  step = prior
            abort(None)     → CANCELLED
            abort(error)    → FAILED
            unregistered    → metadata.fresh(); step = RESOLVE_PROJECT
                              (at most ``max_resets`` times, then FAILED)

The guard is held from before the build until the run returns, whatever the
exit path.

Example::

    workflow = ExportWorkflow(
        default_executors(model, archive, prompter, settings),
        model,
    )
    result = await workflow.run(entry=project)
    if result.status == ExportStatus.COMPLETED:
        print(result.output_path)
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any

from jarforge.core.cancellation import CancellationToken, run_cancellable
from jarforge.core.errors import BuildError, ExportError, RecoveryError
from jarforge.core.logging import LogContext, get_logger
from jarforge.core.models import ProjectRef
from jarforge.core.protocols import ArchiveService, ProjectModel, Prompter
from jarforge.core.settings import ExportSettings
from jarforge.orchestration.guard import ExportGuard, get_export_guard
from jarforge.orchestration.metadata import ExportStep, StepMetadata
from jarforge.orchestration.step_result import StepOutcome
from jarforge.orchestration.steps import (
    GenerateArchiveExecutor,
    ResolveEntryPointExecutor,
    ResolveProjectExecutor,
    StepExecutor,
)

logger = get_logger(__name__)

INITIAL_STEP = ExportStep.RESOLVE_PROJECT


class ExportStatus(str, Enum):
    """Overall status of an export run."""

    COMPLETED = "completed"
    CANCELLED = "cancelled"  # Operator aborted; nothing reported
    FAILED = "failed"        # Reported to the operator
    ABORTED = "aborted"      # Pre-flight build failed; nothing reported
    SKIPPED = "skipped"      # Another export was in flight


@dataclass(frozen=True)
class StepTransition:
    """One executed step and where it sent the run."""

    step: ExportStep
    outcome: str
    next_step: ExportStep | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "step": self.step.value,
            "outcome": self.outcome,
            "next_step": self.next_step.value if self.next_step else None,
        }


@dataclass
class ExportResult:
    """Result of one export run."""

    run_id: str
    status: ExportStatus
    metadata: StepMetadata
    started_at: datetime
    completed_at: datetime | None = None
    error: ExportError | None = None
    transitions: list[StepTransition] = field(default_factory=list)
    resets: int = 0

    @property
    def output_path(self) -> Path | None:
        if self.status != ExportStatus.COMPLETED:
            return None
        return self.metadata.output_path

    @property
    def should_notify(self) -> bool:
        """Whether the operator gets a success or failure message."""
        return self.status in (ExportStatus.COMPLETED, ExportStatus.FAILED)

    @property
    def duration_seconds(self) -> float | None:
        if self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> dict[str, Any]:
        """Serialize for logging/storage."""
        return {
            "run_id": self.run_id,
            "status": self.status.value,
            "output_path": str(self.output_path) if self.output_path else None,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "error": self.error.to_dict() if self.error else None,
            "transitions": [t.to_dict() for t in self.transitions],
            "resets": self.resets,
            "metadata": self.metadata.to_dict(),
        }


def default_executors(
    model: ProjectModel,
    archive: ArchiveService,
    prompter: Prompter,
    settings: ExportSettings,
) -> dict[ExportStep, StepExecutor]:
    """The standard dispatch table."""
    return {
        ExportStep.RESOLVE_PROJECT: ResolveProjectExecutor(model, prompter),
        ExportStep.RESOLVE_ENTRY_POINT: ResolveEntryPointExecutor(model, prompter),
        ExportStep.GENERATE: GenerateArchiveExecutor(model, archive, prompter, settings),
    }


class ExportWorkflow:
    """Single-flight, cancellable export state machine."""

    def __init__(
        self,
        executors: Mapping[ExportStep, StepExecutor],
        model: ProjectModel,
        *,
        guard: ExportGuard | None = None,
        max_resets: int = 3,
    ) -> None:
        """Initialise the workflow.

        Args:
            executors: Dispatch table from step to executor
            model: Project model, used for the pre-flight build
            guard: Single-flight guard (defaults to the process-wide one)
            max_resets: Recovery resets allowed before the run fails
        """
        self._executors = dict(executors)
        self._model = model
        self._guard = guard or get_export_guard()
        self._max_resets = max_resets

    @property
    def guard(self) -> ExportGuard:
        return self._guard

    async def run(
        self,
        entry: ProjectRef | None = None,
        *,
        metadata: StepMetadata | None = None,
        token: CancellationToken | None = None,
    ) -> ExportResult:
        """Run the export pipeline once.

        Args:
            entry: Pre-selected project (ignored when ``metadata`` is given)
            metadata: Seed metadata, e.g. from ``StepMetadata.from_task``
            token: Cancellation token (a fresh one if omitted)

        Returns:
            ExportResult; never raises for export failures
        """
        run_id = str(uuid.uuid4())
        metadata = metadata if metadata is not None else StepMetadata(entry=entry)
        token = token or CancellationToken()
        started_at = datetime.now(UTC)

        with self._guard.hold(run_id) as acquired:
            if not acquired:
                logger.info("export.skipped", run_id=run_id, holder=self._guard.holder)
                return ExportResult(
                    run_id=run_id,
                    status=ExportStatus.SKIPPED,
                    metadata=metadata,
                    started_at=started_at,
                    completed_at=datetime.now(UTC),
                )

            async with LogContext(run_id=run_id):
                result = await self._run(run_id, metadata, token, started_at)

        logger.info(
            "export.complete",
            run_id=run_id,
            status=result.status.value,
            output_path=str(result.output_path) if result.output_path else None,
            duration_seconds=result.duration_seconds,
        )
        return result

    async def _run(
        self,
        run_id: str,
        metadata: StepMetadata,
        token: CancellationToken,
        started_at: datetime,
    ) -> ExportResult:
        result = ExportResult(
            run_id=run_id,
            status=ExportStatus.FAILED,
            metadata=metadata,
            started_at=started_at,
        )

        logger.info("export.start", entry=metadata.entry.name if metadata.entry else None)

        preflight = await self._preflight(token)
        if preflight is not None:
            return self._finish(result, preflight)

        step = INITIAL_STEP
        while step != ExportStep.FINISH:
            if token.cancelled:
                return self._finish(result, StepOutcome.abort())

            executor = self._executors.get(step)
            if executor is None:
                result.resets += 1
                logger.warning("export.unregistered_step", step=step.value, resets=result.resets)
                if result.resets > self._max_resets:
                    error = RecoveryError(
                        f"Export step {step.value} is not registered."
                    ).with_context(run_id=run_id, step=step.value)
                    return self._finish(result, StepOutcome.abort(error))
                result.metadata = result.metadata.fresh()
                step = INITIAL_STEP
                continue

            outcome = await self._execute(executor, step, result.metadata, token)
            result.transitions.append(StepTransition(step, outcome.kind.value, outcome.next_step))
            logger.info("export.step", step=step.value, **outcome.to_dict())

            if outcome.is_abort:
                return self._finish(result, outcome)
            if outcome.is_back:
                result.metadata.rewind_to(outcome.next_step)
            else:
                result.metadata.completed_steps.append(step)
            step = outcome.next_step

        result.status = ExportStatus.COMPLETED
        result.completed_at = datetime.now(UTC)
        return result

    async def _preflight(self, token: CancellationToken) -> StepOutcome | None:
        """Build the workspace; an abort outcome when the run must stop."""
        try:
            built = await run_cancellable(self._model.trigger_build(), token, operation="build workspace")
        except ExportError as exc:
            return StepOutcome.from_exception(exc)
        except Exception as exc:
            logger.exception("export.build_crashed")
            return StepOutcome.abort(BuildError(f"Build failed: {exc}", cause=exc))
        if not built:
            logger.warning("export.build_failed")
            return StepOutcome.abort(BuildError("Build failed. Fix compile errors before exporting."))
        return None

    async def _execute(
        self,
        executor: StepExecutor,
        step: ExportStep,
        metadata: StepMetadata,
        token: CancellationToken,
    ) -> StepOutcome:
        try:
            return await executor.execute(metadata, token)
        except ExportError as exc:
            if exc.context.step is None:
                exc.with_context(step=step.value)
            return StepOutcome.from_exception(exc)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.exception("export.step_crashed", step=step.value)
            error = ExportError(f"Export failed while running {step.value}: {exc}", cause=exc)
            return StepOutcome.abort(error.with_context(step=step.value))

    @staticmethod
    def _finish(result: ExportResult, outcome: StepOutcome) -> ExportResult:
        if outcome.is_cancel:
            result.status = ExportStatus.CANCELLED
        elif isinstance(outcome.error, BuildError):
            result.status = ExportStatus.ABORTED
            result.error = outcome.error
        else:
            result.status = ExportStatus.FAILED
            result.error = outcome.error
        result.metadata.output_path = None
        result.completed_at = datetime.now(UTC)
        return result


__all__ = [
    "ExportStatus",
    "ExportResult",
    "StepTransition",
    "ExportWorkflow",
    "default_executors",
    "INITIAL_STEP",
]
