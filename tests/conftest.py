"""
Shared pytest fixtures for jarforge tests.

This module provides in-memory collaborators for the export workflow:

- FakeProjectModel: workspaces, projects, classpaths and entry points from dicts
- FakeArchiveService: records calls, optionally writes the archive
- ScriptedPrompter: replays queued PromptResults and records every prompt
- RecordingNotifier: records success/failure notifications

Paths handed out by the fakes live under ``tmp_path`` so existence checks
made by the dependency resolver behave as they would on a real project.
"""

from __future__ import annotations

import sys
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from jarforge.core.models import ClasspathResult, DependencyScope, EntryPointRef, ProjectRef
from jarforge.core.protocols import PromptResult
from jarforge.core.settings import ExportSettings, get_settings
from jarforge.orchestration.guard import ExportGuard


# =============================================================================
# Fakes
# =============================================================================


class FakeProjectModel:
    """``ProjectModel`` backed by plain dictionaries."""

    def __init__(
        self,
        workspaces: Sequence[Path] = (),
        projects: dict[Path, list[ProjectRef]] | None = None,
        classpaths: dict[tuple[str, DependencyScope], list[str]] | None = None,
        modulepaths: dict[tuple[str, DependencyScope], list[str]] | None = None,
        entry_points: dict[Path, list[EntryPointRef]] | None = None,
        build_result: bool | Exception = True,
    ) -> None:
        self.workspaces = list(workspaces)
        self.projects = projects or {}
        self.classpaths = classpaths or {}
        self.modulepaths = modulepaths or {}
        self.entry_points = entry_points or {}
        self.build_result = build_result
        self.build_calls = 0
        self.classpath_queries: list[tuple[str, DependencyScope]] = []

    async def list_workspaces(self) -> list[Path]:
        return list(self.workspaces)

    async def list_projects(self, root: Path) -> list[ProjectRef]:
        return list(self.projects.get(root, []))

    async def get_classpaths(self, project: ProjectRef, scope: DependencyScope) -> ClasspathResult:
        self.classpath_queries.append((project.name, scope))
        return ClasspathResult(
            project_root=project.path,
            classpaths=tuple(self.classpaths.get((project.name, scope), [])),
            modulepaths=tuple(self.modulepaths.get((project.name, scope), [])),
        )

    async def list_entry_points(self, root: Path) -> list[EntryPointRef]:
        return list(self.entry_points.get(root, []))

    async def trigger_build(self) -> bool:
        self.build_calls += 1
        if isinstance(self.build_result, Exception):
            raise self.build_result
        return self.build_result


class FakeArchiveService:
    """``ArchiveService`` that records calls and writes a placeholder file."""

    def __init__(self, succeed: bool = True, write: bool = True) -> None:
        self.succeed = succeed
        self.write = write
        self.calls: list[dict[str, Any]] = []

    async def generate(
        self,
        entry_point: str,
        elements: Sequence[str],
        destination: Path,
        *,
        manifest: Path | None = None,
    ) -> bool:
        self.calls.append(
            {
                "entry_point": entry_point,
                "elements": list(elements),
                "destination": destination,
                "manifest": manifest,
            }
        )
        if self.succeed and self.write:
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_bytes(b"PK")
        return self.succeed


@dataclass
class PromptCall:
    kind: str
    title: str | None
    items: list[Any]
    preselected: list[Any] = field(default_factory=list)
    allow_back: bool = False


class ScriptedPrompter:
    """``Prompter`` answering from queues.

    Multi-select answers default to accepting the preselected items,
    single-select answers to the first item, save prompts to
    ``<dir>/<dir.name><ext>``.
    """

    def __init__(
        self,
        multi: Sequence[PromptResult] = (),
        single: Sequence[PromptResult] = (),
        save: Sequence[PromptResult] = (),
    ) -> None:
        self.multi = list(multi)
        self.single = list(single)
        self.save = list(save)
        self.calls: list[PromptCall] = []

    async def prompt_multi_select(self, title, items, preselected, allow_back, token):
        self.calls.append(PromptCall("multi", title, list(items), list(preselected), allow_back))
        if self.multi:
            return self.multi.pop(0)
        return PromptResult.accepted(list(preselected))

    async def prompt_single_select(self, title, items, allow_back, token):
        self.calls.append(PromptCall("single", title, list(items), allow_back=allow_back))
        if self.single:
            return self.single.pop(0)
        return PromptResult.accepted(items[0])

    async def prompt_save_location(self, default_dir, extension, token):
        self.calls.append(PromptCall("save", None, [default_dir, extension]))
        if self.save:
            return self.save.pop(0)
        return PromptResult.accepted(default_dir / f"{default_dir.name}{extension}")

    def kinds(self) -> list[str]:
        return [c.kind for c in self.calls]


class RecordingNotifier:
    def __init__(self) -> None:
        self.successes: list[Path] = []
        self.failures: list[Any] = []

    def notify_success(self, output_path: Path) -> None:
        self.successes.append(output_path)

    def notify_failure(self, error) -> None:
        self.failures.append(error)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Settings are cached per process; tests start from the environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def guard() -> ExportGuard:
    """A private guard so tests never contend on the process-wide one."""
    return ExportGuard()


@pytest.fixture
def settings() -> ExportSettings:
    return ExportSettings(use_default_output_location=True, _env_file=None)


@pytest.fixture
def workspace(tmp_path: Path) -> dict[str, Any]:
    """A workspace ``demo`` with one project and real classpath entries.

    Layout::

        demo/
          bin/                  runtime class folder
          test-bin/             test class folder
          lib/guava.jar         runtime archive
          lib/junit.jar         test archive
        /<tmp>/m2/commons.jar   runtime archive outside the workspace
    """
    root = tmp_path / "demo"
    for sub in ("bin", "test-bin", "lib"):
        (root / sub).mkdir(parents=True)
    (root / "lib" / "guava.jar").write_bytes(b"")
    (root / "lib" / "junit.jar").write_bytes(b"")
    outside = tmp_path / "m2"
    outside.mkdir()
    (outside / "commons.jar").write_bytes(b"")

    project = ProjectRef(name="demo", path=root, workspace=root)
    return {
        "root": root,
        "project": project,
        "bin": str(root / "bin"),
        "test_bin": str(root / "test-bin"),
        "guava": str(root / "lib" / "guava.jar"),
        "junit": str(root / "lib" / "junit.jar"),
        "commons": str(outside / "commons.jar"),
    }


@pytest.fixture
def model(workspace) -> FakeProjectModel:
    """Single-workspace model over the ``workspace`` fixture."""
    root = workspace["root"]
    return FakeProjectModel(
        workspaces=[root],
        projects={root: [workspace["project"]]},
        classpaths={
            ("demo", DependencyScope.RUNTIME): [workspace["bin"], workspace["guava"], workspace["commons"]],
            ("demo", DependencyScope.TEST): [workspace["test_bin"], workspace["junit"], workspace["guava"]],
        },
        entry_points={root: [EntryPointRef("com.acme.App")]},
    )
