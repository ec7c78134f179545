"""
jarforge - export a compiled project as a single distributable jar.

Resolves the runtime/test dependency closure of a project, lets the operator
choose the elements and the main class, and hands the result to an external
archive generator through a resumable, cancellable, single-flight pipeline.
"""

__version__ = "0.1.0"

from jarforge.export import export_archive
from jarforge.orchestration import ExportResult, ExportStatus, ExportWorkflow, StepMetadata

__all__ = [
    "__version__",
    "export_archive",
    "ExportWorkflow",
    "ExportResult",
    "ExportStatus",
    "StepMetadata",
]
