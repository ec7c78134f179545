"""
Export orchestration - the step pipeline and dependency resolution.

Public surface::

    ExportWorkflow / default_executors   engine.py
    ExportResult / ExportStatus          engine.py
    StepMetadata / ExportStep            metadata.py
    StepOutcome                          step_result.py
    ExportGuard / get_export_guard       guard.py
    DependencyResolver / DependencyItem  dependencies.py
    select_elements                      selection.py
"""

from jarforge.orchestration.dependencies import (
    DependencyItem,
    DependencyKind,
    DependencyResolver,
    sort_dependency_items,
)
from jarforge.orchestration.engine import (
    ExportResult,
    ExportStatus,
    ExportWorkflow,
    StepTransition,
    default_executors,
)
from jarforge.orchestration.guard import ExportGuard, get_export_guard
from jarforge.orchestration.metadata import ExportStep, StepMetadata
from jarforge.orchestration.selection import select_elements
from jarforge.orchestration.step_result import OutcomeKind, StepOutcome
from jarforge.orchestration.steps import (
    GenerateArchiveExecutor,
    ResolveEntryPointExecutor,
    ResolveProjectExecutor,
    StepExecutor,
    default_destination,
)

__all__ = [
    # Engine
    "ExportWorkflow",
    "ExportResult",
    "ExportStatus",
    "StepTransition",
    "default_executors",
    # State
    "ExportStep",
    "StepMetadata",
    "OutcomeKind",
    "StepOutcome",
    # Single flight
    "ExportGuard",
    "get_export_guard",
    # Dependencies
    "DependencyItem",
    "DependencyKind",
    "DependencyResolver",
    "sort_dependency_items",
    "select_elements",
    # Steps
    "StepExecutor",
    "ResolveProjectExecutor",
    "ResolveEntryPointExecutor",
    "GenerateArchiveExecutor",
    "default_destination",
]
