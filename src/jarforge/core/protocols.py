"""
Collaborator contracts consumed by the export workflow.

The export engine never talks to a concrete project model, archive
generator or user interface. It depends on the shapes defined here, so any
object with matching methods works: the YAML descriptor model and command
archive service in ``jarforge.adapters``, the rich console surfaces in
``jarforge.cli``, or the fakes used by the test suite.

Architecture:
    ::

        protocols.py
        ├── ProjectModel    - projects, classpaths, entry points, build
        ├── ArchiveService  - generate(entry, elements, destination)
        ├── Prompter        - multi-select, single-select, save location
        └── Notifier        - success / failure presentation

        PromptResult        - ACCEPTED(value) | BACK | CANCELLED

All project-model, archive and prompt calls are coroutines. Prompts receive
the run's CancellationToken and must return ``PromptResult.cancelled()``
once it fires.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Generic, Protocol, TypeVar, runtime_checkable

from jarforge.core.models import ClasspathResult, DependencyScope, EntryPointRef, ProjectRef

if TYPE_CHECKING:
    from jarforge.core.cancellation import CancellationToken
    from jarforge.core.errors import ExportError

T = TypeVar("T")


class PromptAction(str, Enum):
    """How the operator left a prompt."""

    ACCEPTED = "accepted"
    BACK = "back"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class PromptResult(Generic[T]):
    """Outcome of an interactive prompt.

    ``value`` is only meaningful when ``action`` is ``ACCEPTED``.
    """

    action: PromptAction
    value: T | None = None

    @classmethod
    def accepted(cls, value: T) -> PromptResult[T]:
        return cls(PromptAction.ACCEPTED, value)

    @classmethod
    def back(cls) -> PromptResult[Any]:
        return cls(PromptAction.BACK)

    @classmethod
    def cancelled(cls) -> PromptResult[Any]:
        return cls(PromptAction.CANCELLED)

    @property
    def is_accepted(self) -> bool:
        return self.action == PromptAction.ACCEPTED

    @property
    def is_back(self) -> bool:
        return self.action == PromptAction.BACK


@runtime_checkable
class ProjectModel(Protocol):
    """The project/build model service."""

    async def list_workspaces(self) -> Sequence[Path]:
        """Workspace root folders available for export."""
        ...

    async def list_projects(self, root: Path) -> Sequence[ProjectRef]:
        """Projects under a workspace root."""
        ...

    async def get_classpaths(self, project: ProjectRef, scope: DependencyScope) -> ClasspathResult:
        """Classpath and modulepath entries of a project for one scope."""
        ...

    async def list_entry_points(self, root: Path) -> Sequence[EntryPointRef]:
        """Candidate program entry points under a project root."""
        ...

    async def trigger_build(self) -> bool:
        """Build the workspace; True when the build succeeded."""
        ...


@runtime_checkable
class ArchiveService(Protocol):
    """External archive generator (black box)."""

    async def generate(
        self,
        entry_point: str,
        elements: Sequence[str],
        destination: Path,
        *,
        manifest: Path | None = None,
    ) -> bool:
        """Write an archive at ``destination``; True on success."""
        ...


@runtime_checkable
class Prompter(Protocol):
    """Interactive selection surface."""

    async def prompt_multi_select(
        self,
        title: str,
        items: Sequence[T],
        preselected: Sequence[T],
        allow_back: bool,
        token: CancellationToken,
    ) -> PromptResult[list[T]]:
        ...

    async def prompt_single_select(
        self,
        title: str,
        items: Sequence[T],
        allow_back: bool,
        token: CancellationToken,
    ) -> PromptResult[T]:
        ...

    async def prompt_save_location(
        self,
        default_dir: Path,
        extension: str,
        token: CancellationToken,
    ) -> PromptResult[Path]:
        ...


@runtime_checkable
class Notifier(Protocol):
    """Presents the terminal message of a run to the operator."""

    def notify_success(self, output_path: Path) -> None:
        ...

    def notify_failure(self, error: ExportError) -> None:
        ...


__all__ = [
    "PromptAction",
    "PromptResult",
    "ProjectModel",
    "ArchiveService",
    "Prompter",
    "Notifier",
]
