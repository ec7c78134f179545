"""
Structured error types for jarforge.

Every failure that can end an export run is a subclass of ``ExportError``.
Errors carry a category for routing (silent cancel vs. operator-facing
failure), structured context for logging, an optional chained cause, and an
optional ``Remediation`` that the notification surface offers next to the
message.

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                        ExportError                           │
        │        (category, remediation, context, cause)               │
        ├─────────────────────────────────────────────────────────────┤
        │                                                              │
        │  ExportCancelled     ResolutionError     GenerationError     │
        │  (CANCELLED)         (RESOLUTION)        (GENERATION)        │
        │                           │                                  │
        │                       BuildError                             │
        │                                                              │
        │  ConfigError         RecoveryError                           │
        │  (CONFIG)            (INTERNAL)                              │
        └─────────────────────────────────────────────────────────────┘

Examples:
    Attaching a remediation:

    >>> error = ConfigError(
    ...     "No archive generator configured.",
    ...     remediation=Remediation("Open Settings", open_settings),
    ... )
    >>> error.remediation.label
    'Open Settings'

    Adding context:

    >>> error = ResolutionError("No classpath found.").with_context(step="GENERATE")
    >>> error.context.step
    'GENERATE'

Tags:
    error-handling, exception-hierarchy, remediation, jarforge
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error categories used to decide how a failed run is reported.

    CANCELLED is the only silent category; every other category produces an
    operator-facing failure notification.
    """

    CANCELLED = "CANCELLED"      # Operator aborted a prompt or operation
    RESOLUTION = "RESOLUTION"    # Build failed, no classpath, no project
    GENERATION = "GENERATION"    # Archive service reported failure
    CONFIG = "CONFIG"            # Missing/invalid settings
    INTERNAL = "INTERNAL"        # Bugs, unexpected collaborator failures


@dataclass(frozen=True)
class Remediation:
    """An operator action offered alongside an error message.

    Attributes:
        label: Button/choice text shown to the operator (e.g. "Open Settings")
        action: Zero-argument callable run when the operator picks it
    """

    label: str
    action: Callable[[], Any]

    def run(self) -> Any:
        return self.action()


@dataclass
class ErrorContext:
    """Structured metadata attached to an error for logging.

    Attributes:
        run_id: Pipeline run identifier
        step: Step that raised the error
        workspace: Workspace root under export
        destination: Output path, when known
        metadata: Additional key-value pairs
    """

    run_id: str | None = None
    step: str | None = None
    workspace: str | None = None
    destination: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["run_id", "step", "workspace", "destination"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class ExportError(Exception):
    """
    Base exception for all jarforge errors.

    Subclasses set ``default_category`` so that raising code only needs to
    pass a message.

    Attributes:
        message: Human-readable message shown to the operator
        category: ErrorCategory used for reporting decisions
        remediation: Optional operator action surfaced with the message
        context: ErrorContext with structured metadata
        cause: Optional underlying exception
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        remediation: Remediation | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.remediation = remediation
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    @property
    def silent(self) -> bool:
        """True when the error must not be reported to the operator."""
        return self.category == ErrorCategory.CANCELLED

    def with_context(self, **kwargs: Any) -> ExportError:
        """
        Add context to this error (fluent API).

        Usage:
            raise GenerationError("Export jar failed.").with_context(
                destination=str(dest),
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        if self.remediation is not None:
            result["remediation"] = self.remediation.label
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CANCELLATION
# =============================================================================


class ExportCancelled(ExportError):
    """The operator aborted the run (dismissed a prompt or cancelled an operation).

    Never reported; the pipeline exits silently.
    """

    default_category = ErrorCategory.CANCELLED

    def __init__(self, message: str = "Export cancelled", **kwargs: Any):
        super().__init__(message, **kwargs)


# =============================================================================
# RESOLUTION / GENERATION
# =============================================================================


class ResolutionError(ExportError):
    """The export inputs could not be resolved (no project, no classpath)."""

    default_category = ErrorCategory.RESOLUTION


class BuildError(ResolutionError):
    """The pre-flight build did not succeed."""


class GenerationError(ExportError):
    """The archive service reported a failure."""

    default_category = ErrorCategory.GENERATION


# =============================================================================
# CONFIGURATION / INTERNAL
# =============================================================================


class ConfigError(ExportError):
    """Missing or invalid configuration."""

    default_category = ErrorCategory.CONFIG


class RecoveryError(ExportError):
    """The engine exhausted its reset budget while recovering from an
    unregistered step."""

    default_category = ErrorCategory.INTERNAL


__all__ = [
    "ErrorCategory",
    "Remediation",
    "ErrorContext",
    "ExportError",
    "ExportCancelled",
    "ResolutionError",
    "BuildError",
    "GenerationError",
    "ConfigError",
    "RecoveryError",
]
