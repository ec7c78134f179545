"""Step metadata - the single mutable record threaded through an export run.

One ``StepMetadata`` is created per pipeline invocation. The engine owns it
and hands it by reference to each step executor; executors mutate it and
return a ``StepOutcome``. No step observes another step's partial writes
because steps run strictly one after the other.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from jarforge.core.models import ProjectRef


class ExportStep(str, Enum):
    """States of the export pipeline, in execution order."""

    RESOLVE_PROJECT = "RESOLVE_PROJECT"
    RESOLVE_ENTRY_POINT = "RESOLVE_ENTRY_POINT"
    GENERATE = "GENERATE"
    FINISH = "FINISH"


@dataclass
class StepMetadata:
    """
    Mutable state of one export run.

    Attributes:
        entry: Pre-selected project (non-interactive invocation)
        workspace_root: Workspace folder under export
        project_roots: Projects under export, set by RESOLVE_PROJECT
        project_was_picked: The operator chose the workspace in a prompt,
            which enables "go back" in later prompts
        elements: Absolute paths chosen for inclusion, no duplicates
        selected_entry_point: Fully qualified entry point, if any
        manifest_path: Manifest override passed to the archive service
        output_path: Destination of the archive, set only on success
        completed_steps: Steps executed so far, in order
        task_name: Name of the preset task the run was seeded from
    """

    entry: ProjectRef | None = None
    workspace_root: Path | None = None
    project_roots: list[ProjectRef] = field(default_factory=list)
    project_was_picked: bool = False
    elements: list[str] = field(default_factory=list)
    selected_entry_point: str | None = None
    manifest_path: Path | None = None
    output_path: Path | None = None
    completed_steps: list[ExportStep] = field(default_factory=list)
    task_name: str | None = None

    # Presets survive recovery resets; everything else is re-derived.
    preset_entry_point: str | None = None
    preset_elements: list[str] | None = None
    preset_output_path: Path | None = None

    @classmethod
    def from_task(
        cls,
        entry: ProjectRef | None = None,
        *,
        task_name: str | None = None,
        main_class: str | None = None,
        manifest: Path | None = None,
        elements: list[str] | None = None,
        output_path: Path | None = None,
    ) -> StepMetadata:
        """Seed a run from a preset export task.

        ``elements`` replaces the selection prompt: workspace-relative or
        absolute paths, plus ``DependencyScope.placeholder`` names that stand
        for every archive of a scope. ``output_path`` replaces the save prompt.
        """
        return cls(
            entry=entry,
            task_name=task_name,
            manifest_path=manifest,
            preset_entry_point=main_class,
            preset_elements=list(elements) if elements is not None else None,
            preset_output_path=output_path,
        )

    def fresh(self) -> StepMetadata:
        """A new record keeping only the entry handle and task presets."""
        return StepMetadata.from_task(
            self.entry,
            task_name=self.task_name,
            main_class=self.preset_entry_point,
            manifest=self.manifest_path,
            elements=self.preset_elements,
            output_path=self.preset_output_path,
        )

    def add_element(self, path: str) -> bool:
        """Append ``path`` unless already present; True when appended."""
        if path in self.elements:
            return False
        self.elements.append(path)
        return True

    def rewind_to(self, step: ExportStep) -> None:
        """Forget ``step`` and every step completed after it."""
        if step in self.completed_steps:
            del self.completed_steps[self.completed_steps.index(step):]

    def to_dict(self) -> dict[str, Any]:
        """Serialize for logging."""
        return {
            "entry": self.entry.name if self.entry else None,
            "workspace_root": str(self.workspace_root) if self.workspace_root else None,
            "project_roots": [p.name for p in self.project_roots],
            "elements": list(self.elements),
            "selected_entry_point": self.selected_entry_point,
            "manifest_path": str(self.manifest_path) if self.manifest_path else None,
            "output_path": str(self.output_path) if self.output_path else None,
            "completed_steps": [s.value for s in self.completed_steps],
            "task_name": self.task_name,
            "preset_elements": self.preset_elements,
            "preset_output_path": str(self.preset_output_path) if self.preset_output_path else None,
        }


__all__ = ["ExportStep", "StepMetadata"]
