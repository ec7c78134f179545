"""Value types exchanged with the project model service.

These are the shapes the external project/build model hands back: projects,
entry points and per-scope classpath results. They are immutable and carry
no behaviour beyond small conveniences.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class DependencyScope(str, Enum):
    """Classpath scope queried from the project model.

    The value is the display label used by the selection prompt and as the
    primary sort key, so ``RUNTIME`` ("Runtime") sorts before ``TEST`` ("Test").
    """

    RUNTIME = "Runtime"
    TEST = "Test"

    @property
    def query(self) -> str:
        """Scope name sent to the project model."""
        return self.name.lower()

    @property
    def placeholder(self) -> str:
        """Preset element standing for every archive of this scope."""
        return f"{self.value} Dependencies"


@dataclass(frozen=True)
class ProjectRef:
    """A project known to the project model.

    Attributes:
        name: Display name of the project
        path: Project root folder
        workspace: Root folder of the workspace the project belongs to
    """

    name: str
    path: Path
    workspace: Path | None = None


@dataclass(frozen=True)
class EntryPointRef:
    """A candidate program entry point (class declaring a main method).

    Attributes:
        name: Fully qualified class name, e.g. ``com.example.App``
        path: Source file declaring it, when known
    """

    name: str
    path: Path | None = None


@dataclass(frozen=True)
class ClasspathResult:
    """Classpath and modulepath entries of one project for one scope."""

    project_root: Path
    classpaths: tuple[str, ...] = field(default_factory=tuple)
    modulepaths: tuple[str, ...] = field(default_factory=tuple)

    def all_paths(self) -> tuple[str, ...]:
        """Classpath entries followed by modulepath entries."""
        return self.classpaths + self.modulepaths


__all__ = ["DependencyScope", "ProjectRef", "EntryPointRef", "ClasspathResult"]
