"""GENERATE - resolve elements, pick a destination, invoke the archive service.

Sequence inside the step::

    DependencyResolver.resolve()   ── ResolutionError when nothing is left
    select_elements()              ── False → back to RESOLVE_PROJECT
      (apply_preset_elements() instead when the task lists elements)
    destination                    ── task preset, default location or save prompt
    ArchiveService.generate()      ── False → GenerationError
    metadata.output_path = dest    ── → FINISH
"""

from __future__ import annotations

from pathlib import Path

from jarforge.core.cancellation import CancellationToken, run_cancellable
from jarforge.core.errors import GenerationError, ResolutionError
from jarforge.core.logging import get_logger
from jarforge.core.protocols import ArchiveService, ProjectModel, Prompter
from jarforge.core.settings import ExportSettings
from jarforge.orchestration.dependencies import DependencyResolver
from jarforge.orchestration.metadata import ExportStep, StepMetadata
from jarforge.orchestration.selection import apply_preset_elements, select_elements
from jarforge.orchestration.step_result import StepOutcome

logger = get_logger(__name__)

EXPORT_FAILED_MESSAGE = "Export jar failed."


def default_destination(workspace_root: Path, extension: str = ".jar") -> Path:
    """``<workspace>/<workspace name><extension>``."""
    return workspace_root / f"{workspace_root.name}{extension}"


class GenerateArchiveExecutor:
    """Produces the archive and records ``output_path``."""

    step = ExportStep.GENERATE

    def __init__(
        self,
        model: ProjectModel,
        archive: ArchiveService,
        prompter: Prompter,
        settings: ExportSettings,
        resolver: DependencyResolver | None = None,
    ) -> None:
        self._archive = archive
        self._prompter = prompter
        self._settings = settings
        self._resolver = resolver or DependencyResolver(
            model, archive_extensions=(settings.archive_extension,)
        )

    async def execute(self, metadata: StepMetadata, token: CancellationToken) -> StepOutcome:
        if metadata.workspace_root is None:
            raise ResolutionError("No workspace resolved for export.")

        items = await self._resolver.resolve(metadata.project_roots, metadata.workspace_root, token)
        if metadata.preset_elements is not None:
            apply_preset_elements(items, metadata.preset_elements, metadata)
        elif not await select_elements(items, metadata, self._prompter, token):
            return StepOutcome.back(ExportStep.RESOLVE_PROJECT)

        destination = await self._destination(metadata, token)
        if destination is None:
            return StepOutcome.abort()

        logger.info(
            "generate.start",
            destination=str(destination),
            entry_point=metadata.selected_entry_point,
            elements=len(metadata.elements),
        )
        succeeded = await run_cancellable(
            self._archive.generate(
                metadata.selected_entry_point or "",
                list(metadata.elements),
                destination,
                manifest=metadata.manifest_path,
            ),
            token,
            operation="generate archive",
        )
        if not succeeded:
            raise GenerationError(EXPORT_FAILED_MESSAGE).with_context(
                destination=str(destination),
            )

        metadata.output_path = destination
        return StepOutcome.advance(ExportStep.FINISH)

    async def _destination(self, metadata: StepMetadata, token: CancellationToken) -> Path | None:
        workspace_root = metadata.workspace_root
        extension = self._settings.archive_extension
        if metadata.preset_output_path is not None:
            preset = metadata.preset_output_path.expanduser()
            return preset if preset.is_absolute() else workspace_root / preset
        if self._settings.use_default_output_location:
            return default_destination(workspace_root, extension)

        result = await self._prompter.prompt_save_location(workspace_root, extension, token)
        token.raise_if_cancelled()
        if not result.is_accepted or result.value is None:
            return None
        return result.value


__all__ = ["GenerateArchiveExecutor", "default_destination", "EXPORT_FAILED_MESSAGE"]
