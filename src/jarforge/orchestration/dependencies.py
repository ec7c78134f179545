"""Dependency resolution - the candidate element set of an export.

For every project root the project model is queried twice, runtime scope
first and test scope second. Each returned classpath/modulepath entry is:

1. dropped if it does not exist on disk (stale entries are routine),
2. classified ``EXTERNAL`` (archive extension) or ``INTERNAL`` (class folder),
3. labelled relative to the workspace root, or by base name outside it,
4. deduplicated globally on its absolute path - the first query that finds
   a path fixes its scope, and runtime discoveries are pre-selected.

ARCHITECTURE
────────────
::

    DependencyResolver(model, archive_extensions, path_exists)
      └── .resolve(project_roots, workspace_root, token)
            → list[DependencyItem]   (discovery order)
            ✗ ResolutionError        (nothing left after filtering)

    sort_dependency_items(items)
      (scope label ↑, external before internal, label ↑)

Example::

    resolver = DependencyResolver(model)
    items = await resolver.resolve(metadata.project_roots, metadata.workspace_root, token)
    for item in sort_dependency_items(items):
        print(item.scope.value, item.kind.value, item.label)
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from jarforge.core.cancellation import CancellationToken, run_cancellable
from jarforge.core.errors import ResolutionError
from jarforge.core.logging import get_logger
from jarforge.core.models import DependencyScope, ProjectRef
from jarforge.core.protocols import ProjectModel

logger = get_logger(__name__)

DEFAULT_ARCHIVE_EXTENSIONS = (".jar",)

NO_CLASSPATH_MESSAGE = "No classpath found. Please make sure your project is valid."


class DependencyKind(str, Enum):
    """Whether an entry is a packaged archive or a loose class folder."""

    INTERNAL = "internal"
    EXTERNAL = "external"


_KIND_RANK = {DependencyKind.EXTERNAL: 0, DependencyKind.INTERNAL: 1}


@dataclass(frozen=True)
class DependencyItem:
    """
    One candidate element of the export.

    Attributes:
        label: Display path (workspace-relative, or base name)
        scope: RUNTIME or TEST, fixed by the first query that found it
        kind: EXTERNAL for archives, INTERNAL otherwise
        absolute_path: Normalised absolute path, the identity of the item
        preselected: Checked by default in the selection prompt
    """

    label: str
    scope: DependencyScope
    kind: DependencyKind
    absolute_path: str
    preselected: bool

    def sort_key(self) -> tuple[str, int, str]:
        return (self.scope.value, _KIND_RANK[self.kind], self.label)

    def __str__(self) -> str:
        return self.label

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "scope": self.scope.value,
            "kind": self.kind.value,
            "absolute_path": self.absolute_path,
            "preselected": self.preselected,
        }


def sort_dependency_items(items: Iterable[DependencyItem]) -> list[DependencyItem]:
    """Order items for presentation: runtime before test, archives first, then by label."""
    return sorted(items, key=DependencyItem.sort_key)


def normalize_path(path: str | os.PathLike[str]) -> str:
    """Absolute, normalised form of ``path`` used as the dedup key."""
    return os.path.normpath(os.path.abspath(os.fspath(path)))


def _default_path_exists(path: str) -> bool:
    return os.path.exists(path)


class DependencyResolver:
    """Collects, filters, classifies and deduplicates classpath entries."""

    def __init__(
        self,
        model: ProjectModel,
        archive_extensions: Sequence[str] = DEFAULT_ARCHIVE_EXTENSIONS,
        path_exists: Callable[[str], bool] = _default_path_exists,
    ) -> None:
        self._model = model
        self._archive_extensions = tuple(ext.lower() for ext in archive_extensions)
        self._path_exists = path_exists

    def classify(self, path: str) -> DependencyKind:
        suffix = os.path.splitext(path)[1].lower()
        if suffix in self._archive_extensions:
            return DependencyKind.EXTERNAL
        return DependencyKind.INTERNAL

    @staticmethod
    def label_for(path: str, workspace_root: Path | None) -> str:
        if workspace_root is not None:
            candidate = Path(path)
            root = Path(normalize_path(workspace_root))
            if candidate != root and candidate.is_relative_to(root):
                return str(candidate.relative_to(root))
        return os.path.basename(path)

    async def resolve(
        self,
        project_roots: Sequence[ProjectRef],
        workspace_root: Path | None,
        token: CancellationToken,
    ) -> list[DependencyItem]:
        """Resolve the deduplicated dependency set of ``project_roots``.

        Args:
            project_roots: Projects under export
            workspace_root: Folder that labels are made relative to
            token: The run's cancellation token

        Returns:
            Items in discovery order (runtime entries of the first project first)

        Raises:
            ResolutionError: If no existing entry was found
            ExportCancelled: If the token fires during a query
        """
        seen: set[str] = set()
        items: list[DependencyItem] = []
        skipped = 0

        for project in project_roots:
            for scope in (DependencyScope.RUNTIME, DependencyScope.TEST):
                result = await run_cancellable(
                    self._model.get_classpaths(project, scope),
                    token,
                    operation=f"resolve {scope.query} classpath of {project.name}",
                )
                for raw in result.all_paths():
                    item = self._to_item(raw, scope, workspace_root, seen)
                    if item is None:
                        skipped += 1
                        continue
                    items.append(item)

        logger.info(
            "dependencies.resolved",
            projects=len(project_roots),
            items=len(items),
            skipped=skipped,
        )

        if not items:
            raise ResolutionError(NO_CLASSPATH_MESSAGE).with_context(
                workspace=str(workspace_root) if workspace_root else None,
            )
        return items

    def _to_item(
        self,
        raw: str,
        scope: DependencyScope,
        workspace_root: Path | None,
        seen: set[str],
    ) -> DependencyItem | None:
        if not self._path_exists(raw):
            logger.debug("dependencies.missing_path", path=raw, scope=scope.query)
            return None
        absolute = normalize_path(raw)
        if absolute in seen:
            return None
        seen.add(absolute)
        return DependencyItem(
            label=self.label_for(absolute, workspace_root),
            scope=scope,
            kind=self.classify(absolute),
            absolute_path=absolute,
            preselected=scope == DependencyScope.RUNTIME,
        )


__all__ = [
    "DependencyKind",
    "DependencyItem",
    "DependencyResolver",
    "sort_dependency_items",
    "normalize_path",
    "NO_CLASSPATH_MESSAGE",
]
