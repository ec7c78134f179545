"""Export step executors, one per ``ExportStep``."""

from jarforge.orchestration.steps.base import StepExecutor
from jarforge.orchestration.steps.entry_point import ResolveEntryPointExecutor
from jarforge.orchestration.steps.generate import GenerateArchiveExecutor, default_destination
from jarforge.orchestration.steps.project import ResolveProjectExecutor

__all__ = [
    "StepExecutor",
    "ResolveProjectExecutor",
    "ResolveEntryPointExecutor",
    "GenerateArchiveExecutor",
    "default_destination",
]
