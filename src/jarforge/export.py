"""Export command - runs the workflow and reports the outcome.

This is the outer caller of ``ExportWorkflow``: it wires the standard
executors, runs the pipeline once, and presents the terminal message.
Success and failure are reported through the ``Notifier``; cancellations,
build aborts and skipped runs (another export in flight) are silent.
"""

from __future__ import annotations

from jarforge.core.cancellation import CancellationToken
from jarforge.core.logging import get_logger
from jarforge.core.models import ProjectRef
from jarforge.core.protocols import ArchiveService, Notifier, ProjectModel, Prompter
from jarforge.core.settings import ExportSettings, get_settings
from jarforge.orchestration.engine import ExportResult, ExportWorkflow, default_executors
from jarforge.orchestration.guard import ExportGuard
from jarforge.orchestration.metadata import StepMetadata

logger = get_logger(__name__)


async def export_archive(
    model: ProjectModel,
    archive: ArchiveService,
    prompter: Prompter,
    notifier: Notifier,
    *,
    settings: ExportSettings | None = None,
    entry: ProjectRef | None = None,
    metadata: StepMetadata | None = None,
    token: CancellationToken | None = None,
    guard: ExportGuard | None = None,
) -> ExportResult:
    """Export an archive and notify the operator.

    Args:
        model: Project model service
        archive: Archive generation service
        prompter: Interactive selection surface
        notifier: Success/failure presentation
        settings: Export settings (process settings if omitted)
        entry: Pre-selected project
        metadata: Seed metadata (task presets); takes precedence over ``entry``
        token: Cancellation token
        guard: Single-flight guard (process-wide if omitted)

    Returns:
        The run's ExportResult
    """
    settings = settings or get_settings()
    workflow = ExportWorkflow(
        default_executors(model, archive, prompter, settings),
        model,
        guard=guard,
        max_resets=settings.max_resets,
    )
    result = await workflow.run(entry, metadata=metadata, token=token)

    if not result.should_notify:
        return result
    if result.error is not None:
        logger.error("export.failed", **result.error.to_dict())
        notifier.notify_failure(result.error)
    elif result.output_path is not None:
        notifier.notify_success(result.output_path)
    return result


__all__ = ["export_archive"]
