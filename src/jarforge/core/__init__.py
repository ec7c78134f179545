"""
jarforge core - errors, logging, settings, cancellation and collaborator contracts.

Everything the export workflow needs that is not part of the workflow itself
lives here, so ``jarforge.orchestration`` depends on shapes and primitives
only.
"""

from jarforge.core.cancellation import CancellationToken, run_cancellable
from jarforge.core.errors import (
    BuildError,
    ConfigError,
    ErrorCategory,
    ErrorContext,
    ExportCancelled,
    ExportError,
    GenerationError,
    RecoveryError,
    Remediation,
    ResolutionError,
)
from jarforge.core.logging import LogContext, configure_logging, get_logger
from jarforge.core.models import ClasspathResult, DependencyScope, EntryPointRef, ProjectRef
from jarforge.core.protocols import (
    ArchiveService,
    Notifier,
    ProjectModel,
    PromptAction,
    Prompter,
    PromptResult,
)
from jarforge.core.settings import ExportSettings, get_settings

__all__ = [
    # Cancellation
    "CancellationToken",
    "run_cancellable",
    # Errors
    "ErrorCategory",
    "ErrorContext",
    "Remediation",
    "ExportError",
    "ExportCancelled",
    "ResolutionError",
    "BuildError",
    "GenerationError",
    "ConfigError",
    "RecoveryError",
    # Logging
    "configure_logging",
    "get_logger",
    "LogContext",
    # Models
    "DependencyScope",
    "ProjectRef",
    "EntryPointRef",
    "ClasspathResult",
    # Protocols
    "ProjectModel",
    "ArchiveService",
    "Prompter",
    "Notifier",
    "PromptAction",
    "PromptResult",
    # Settings
    "ExportSettings",
    "get_settings",
]
