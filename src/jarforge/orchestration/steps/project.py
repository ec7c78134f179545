"""RESOLVE_PROJECT - decide which workspace and projects are exported."""

from __future__ import annotations

from pathlib import Path

from jarforge.core.cancellation import CancellationToken, run_cancellable
from jarforge.core.errors import ResolutionError
from jarforge.core.logging import get_logger
from jarforge.core.protocols import ProjectModel, Prompter
from jarforge.orchestration.metadata import ExportStep, StepMetadata
from jarforge.orchestration.step_result import StepOutcome

logger = get_logger(__name__)

SELECT_WORKSPACE_TITLE = "Export Jar : Determine project"


class ResolveProjectExecutor:
    """Populates ``workspace_root`` and ``project_roots``.

    With an ``entry`` the workspace is the one owning the entry and only the
    entry's project is exported (an entry that is the workspace itself
    exports every project). Otherwise a single workspace is taken as is and
    several are offered in a prompt.
    """

    step = ExportStep.RESOLVE_PROJECT

    def __init__(self, model: ProjectModel, prompter: Prompter) -> None:
        self._model = model
        self._prompter = prompter

    async def execute(self, metadata: StepMetadata, token: CancellationToken) -> StepOutcome:
        if metadata.entry is not None:
            workspace = metadata.entry.workspace or metadata.entry.path
        else:
            workspace = await self._choose_workspace(metadata, token)
            if workspace is None:
                return StepOutcome.abort()

        projects = list(
            await run_cancellable(
                self._model.list_projects(workspace),
                token,
                operation=f"list projects of {workspace}",
            )
        )
        if metadata.entry is not None and metadata.entry.path != workspace:
            projects = [p for p in projects if p.path == metadata.entry.path] or [metadata.entry]
        elif not projects and metadata.entry is not None:
            projects = [metadata.entry]
        if not projects:
            raise ResolutionError(f"No project found in {workspace}.").with_context(
                workspace=str(workspace),
            )

        metadata.workspace_root = workspace
        metadata.project_roots = projects
        logger.info(
            "project.resolved",
            workspace=str(workspace),
            projects=[p.name for p in projects],
            picked=metadata.project_was_picked,
        )
        return StepOutcome.advance(ExportStep.RESOLVE_ENTRY_POINT)

    async def _choose_workspace(
        self, metadata: StepMetadata, token: CancellationToken
    ) -> Path | None:
        workspaces = list(
            await run_cancellable(self._model.list_workspaces(), token, operation="list workspaces")
        )
        if not workspaces:
            raise ResolutionError("No workspace found. Please open a project folder first.")
        if len(workspaces) == 1:
            metadata.project_was_picked = False
            return workspaces[0]

        result = await self._prompter.prompt_single_select(
            SELECT_WORKSPACE_TITLE,
            sorted(workspaces),
            False,
            token,
        )
        token.raise_if_cancelled()
        if not result.is_accepted or result.value is None:
            return None
        metadata.project_was_picked = True
        return result.value


__all__ = ["ResolveProjectExecutor", "SELECT_WORKSPACE_TITLE"]
