"""RESOLVE_ENTRY_POINT - choose the main class written to the manifest."""

from __future__ import annotations

from jarforge.core.cancellation import CancellationToken, run_cancellable
from jarforge.core.logging import get_logger
from jarforge.core.models import EntryPointRef
from jarforge.core.protocols import ProjectModel, Prompter
from jarforge.orchestration.metadata import ExportStep, StepMetadata
from jarforge.orchestration.step_result import StepOutcome

logger = get_logger(__name__)

SELECT_ENTRY_POINT_TITLE = "Export Jar : Determine main class"


class ResolveEntryPointExecutor:
    """Sets ``selected_entry_point``.

    No candidate leaves it unset (the archive has no Main-Class), one is
    taken as is, several are offered sorted by fully qualified name.
    """

    step = ExportStep.RESOLVE_ENTRY_POINT

    def __init__(self, model: ProjectModel, prompter: Prompter) -> None:
        self._model = model
        self._prompter = prompter

    async def execute(self, metadata: StepMetadata, token: CancellationToken) -> StepOutcome:
        if metadata.preset_entry_point:
            metadata.selected_entry_point = metadata.preset_entry_point
            return StepOutcome.advance(ExportStep.GENERATE)

        candidates = await self._candidates(metadata, token)

        if not candidates:
            metadata.selected_entry_point = None
            logger.info("entry_point.none")
            return StepOutcome.advance(ExportStep.GENERATE)
        if len(candidates) == 1:
            metadata.selected_entry_point = candidates[0].name
            logger.info("entry_point.auto", entry_point=candidates[0].name)
            return StepOutcome.advance(ExportStep.GENERATE)

        result = await self._prompter.prompt_single_select(
            SELECT_ENTRY_POINT_TITLE,
            candidates,
            metadata.project_was_picked,
            token,
        )
        token.raise_if_cancelled()
        if result.is_back:
            return StepOutcome.back(ExportStep.RESOLVE_PROJECT)
        if not result.is_accepted or result.value is None:
            return StepOutcome.abort()

        metadata.selected_entry_point = result.value.name
        logger.info("entry_point.selected", entry_point=result.value.name)
        return StepOutcome.advance(ExportStep.GENERATE)

    async def _candidates(
        self, metadata: StepMetadata, token: CancellationToken
    ) -> list[EntryPointRef]:
        by_name: dict[str, EntryPointRef] = {}
        for project in metadata.project_roots:
            found = await run_cancellable(
                self._model.list_entry_points(project.path),
                token,
                operation=f"resolve main classes of {project.name}",
            )
            for candidate in found:
                by_name.setdefault(candidate.name, candidate)
        return sorted(by_name.values(), key=lambda c: c.name)


__all__ = ["ResolveEntryPointExecutor", "SELECT_ENTRY_POINT_TITLE"]
