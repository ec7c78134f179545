"""Project descriptor - a YAML-backed implementation of ``ProjectModel``.

The descriptor lists workspaces, their projects with per-scope classpath and
modulepath entries, candidate main classes, an optional build command, and
preset export tasks. It stands in for a live build-tool model: whatever
produces the compiled outputs (Maven, Gradle, a Makefile) only has to write
this file.

Example YAML::

    workspaces:
      - root: .
        build:
          command: [mvn, -q, compile]
          timeout_seconds: 300
        projects:
          - name: app
            path: app
            runtime:
              classpaths: [target/classes, ~/.m2/repository/com/acme/lib/1.0/lib-1.0.jar]
            test:
              classpaths: [target/test-classes]
            main_classes: [com.acme.App]
        tasks:
          - name: release
            project: app
            main_class: com.acme.App
            elements: [app/target/classes, Runtime Dependencies]
            output_path: dist/app.jar

Besides the declared tasks every workspace gets a default task named after
its folder. It lists the class folders of all its projects plus a
"Runtime Dependencies" / "Test Dependencies" placeholder for each scope that
has archives.

Relative workspace roots are resolved against the descriptor's folder,
relative project paths against their workspace root, and relative classpath
entries against their project folder.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from jarforge.adapters.process import run_command
from jarforge.core.errors import BuildError, ConfigError
from jarforge.core.logging import get_logger
from jarforge.core.models import ClasspathResult, DependencyScope, EntryPointRef, ProjectRef

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Descriptor schema
# ---------------------------------------------------------------------------


class ScopeSpec(BaseModel):
    """Entries of one classpath scope."""

    model_config = ConfigDict(extra="forbid")

    classpaths: list[str] = Field(default_factory=list)
    modulepaths: list[str] = Field(default_factory=list)


class ProjectSpec(BaseModel):
    """One project of a workspace."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    path: str = Field(default=".", description="Project folder, relative to the workspace root")
    runtime: ScopeSpec = Field(default_factory=ScopeSpec)
    test: ScopeSpec = Field(default_factory=ScopeSpec)
    main_classes: list[str] = Field(default_factory=list)

    def scope(self, scope: DependencyScope) -> ScopeSpec:
        return self.runtime if scope == DependencyScope.RUNTIME else self.test


class BuildSpec(BaseModel):
    """Command that brings the compiled outputs up to date."""

    model_config = ConfigDict(extra="forbid")

    command: list[str] = Field(..., min_length=1)
    timeout_seconds: float | None = Field(default=None, gt=0)


class TaskSpec(BaseModel):
    """A named export preset."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    project: str | None = None
    main_class: str | None = None
    manifest: str | None = None
    elements: list[str] | None = Field(
        default=None,
        description="Workspace-relative paths and scope placeholders; skips the selection prompt",
    )
    output_path: str | None = Field(default=None, description="Archive path, relative to the workspace root")


class WorkspaceSpec(BaseModel):
    """A workspace root and everything exported from it."""

    model_config = ConfigDict(extra="forbid")

    root: str = "."
    build: BuildSpec | None = None
    projects: list[ProjectSpec] = Field(default_factory=list)
    tasks: list[TaskSpec] = Field(default_factory=list)

    @field_validator("projects")
    @classmethod
    def validate_unique_projects(cls, v: list[ProjectSpec]) -> list[ProjectSpec]:
        names = [p.name for p in v]
        if len(names) != len(set(names)):
            duplicates = {n for n in names if names.count(n) > 1}
            raise ValueError(f"Duplicate project names: {duplicates}")
        return v

    @model_validator(mode="after")
    def validate_task_projects(self) -> WorkspaceSpec:
        names = {p.name for p in self.projects}
        for task in self.tasks:
            if task.project is not None and task.project not in names:
                raise ValueError(f"Task '{task.name}' references unknown project: {task.project}")
        return self


class ProjectDescriptor(BaseModel):
    """Top-level descriptor document."""

    model_config = ConfigDict(extra="forbid")

    workspaces: list[WorkspaceSpec] = Field(..., min_length=1)

    @classmethod
    def from_yaml(cls, yaml_content: str) -> ProjectDescriptor:
        """Parse and validate YAML content.

        Raises:
            ValueError: If YAML is invalid or doesn't match the schema
        """
        try:
            data = yaml.safe_load(yaml_content)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML: {e}") from e
        return cls.model_validate(data)

    @classmethod
    def from_yaml_file(cls, path: str | Path) -> ProjectDescriptor:
        content = Path(path).read_text(encoding="utf-8")
        return cls.from_yaml(content)


# ---------------------------------------------------------------------------
# ProjectModel implementation
# ---------------------------------------------------------------------------


def _resolve(base: Path, raw: str) -> Path:
    path = Path(raw).expanduser()
    return path if path.is_absolute() else (base / path)


class DescriptorProjectModel:
    """``ProjectModel`` backed by a ``ProjectDescriptor``."""

    def __init__(
        self,
        descriptor: ProjectDescriptor,
        base_dir: Path,
        *,
        build_timeout: float | None = None,
        archive_extension: str = ".jar",
    ) -> None:
        self._descriptor = descriptor
        self._build_timeout = build_timeout
        self._archive_extension = archive_extension.lower()
        self._workspaces: dict[Path, WorkspaceSpec] = {}
        for ws in descriptor.workspaces:
            root = _resolve(base_dir, ws.root).resolve()
            if root in self._workspaces:
                raise ConfigError(f"Workspace listed twice in descriptor: {root}")
            self._workspaces[root] = ws

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        *,
        build_timeout: float | None = None,
        archive_extension: str = ".jar",
    ) -> DescriptorProjectModel:
        """Load a descriptor file.

        Raises:
            ConfigError: If the file is missing or invalid
        """
        path = Path(path)
        try:
            descriptor = ProjectDescriptor.from_yaml_file(path)
        except (OSError, ValueError) as e:
            raise ConfigError(f"Cannot load project descriptor {path}: {e}", cause=e) from e
        return cls(
            descriptor,
            path.resolve().parent,
            build_timeout=build_timeout,
            archive_extension=archive_extension,
        )

    # -- ProjectModel ------------------------------------------------------

    async def list_workspaces(self) -> list[Path]:
        return list(self._workspaces)

    async def list_projects(self, root: Path) -> list[ProjectRef]:
        ws = self._workspaces.get(Path(root).resolve())
        if ws is None:
            return []
        root = Path(root).resolve()
        return [self._project_ref(root, spec) for spec in ws.projects]

    async def get_classpaths(self, project: ProjectRef, scope: DependencyScope) -> ClasspathResult:
        spec = self._find_project(project)
        project_dir = project.path
        if spec is None:
            logger.warning("descriptor.unknown_project", project=project.name)
            return ClasspathResult(project_root=project_dir)
        entries = spec.scope(scope)
        return ClasspathResult(
            project_root=project_dir,
            classpaths=tuple(str(_resolve(project_dir, p)) for p in entries.classpaths),
            modulepaths=tuple(str(_resolve(project_dir, p)) for p in entries.modulepaths),
        )

    async def list_entry_points(self, root: Path) -> list[EntryPointRef]:
        root = Path(root).resolve()
        found: list[EntryPointRef] = []
        for ws_root, ws in self._workspaces.items():
            for spec in ws.projects:
                project_dir = _resolve(ws_root, spec.path).resolve()
                if root in (project_dir, ws_root):
                    found.extend(EntryPointRef(name=name) for name in spec.main_classes)
        return found

    async def trigger_build(self) -> bool:
        for root, ws in self._workspaces.items():
            if ws.build is None:
                continue
            timeout = ws.build.timeout_seconds or self._build_timeout
            logger.info("descriptor.build", workspace=str(root), command=ws.build.command)
            try:
                result = await run_command(ws.build.command, cwd=root, timeout=timeout)
            except FileNotFoundError as e:
                raise BuildError(f"Build command not found: {ws.build.command[0]}", cause=e) from e
            except TimeoutError as e:
                raise BuildError(f"Build timed out after {timeout}s", cause=e) from e
            if not result.ok:
                logger.warning(
                    "descriptor.build_failed",
                    workspace=str(root),
                    returncode=result.returncode,
                    stderr=result.stderr[-2000:],
                )
                return False
        return True

    # -- Tasks -------------------------------------------------------------

    def tasks(self) -> list[tuple[Path, TaskSpec]]:
        """Declared tasks, then one default task per workspace, with their workspace root.

        A declared task named like a workspace folder replaces its default task.
        """
        declared = [(root, task) for root, ws in self._workspaces.items() for task in ws.tasks]
        names = {task.name for _, task in declared}
        defaults = [
            (root, self.default_task(root))
            for root in self._workspaces
            if root.name not in names
        ]
        return declared + defaults

    def default_task(self, root: Path) -> TaskSpec:
        """Task exporting every class folder of the workspace plus its archives.

        Archives are not listed one by one; each scope that has any is
        represented by its placeholder.
        """
        ws = self._workspaces[root]
        elements: list[str] = []
        scopes_with_archives: list[DependencyScope] = []
        for scope in (DependencyScope.RUNTIME, DependencyScope.TEST):
            for spec in ws.projects:
                project_dir = _resolve(root, spec.path).resolve()
                entries = spec.scope(scope)
                for raw in entries.classpaths + entries.modulepaths:
                    path = _resolve(project_dir, raw).resolve()
                    if path.suffix.lower() == self._archive_extension:
                        if scope not in scopes_with_archives:
                            scopes_with_archives.append(scope)
                        continue
                    element = str(path.relative_to(root)) if path.is_relative_to(root) else str(path)
                    if element not in elements:
                        elements.append(element)
        elements.extend(scope.placeholder for scope in scopes_with_archives)
        return TaskSpec(name=root.name, elements=elements)

    def find_task(self, name: str) -> tuple[ProjectRef, TaskSpec]:
        """Resolve a task by name into its entry project and spec.

        Raises:
            ConfigError: If no task has that name
        """
        for root, task in self.tasks():
            if task.name != name:
                continue
            ws = self._workspaces[root]
            if task.project is None:
                return ProjectRef(name=root.name, path=root, workspace=root), task
            spec = next(p for p in ws.projects if p.name == task.project)
            return self._project_ref(root, spec), task
        known = ", ".join(sorted(t.name for _, t in self.tasks())) or "none"
        raise ConfigError(f"Unknown export task '{name}' (known: {known})")

    def task_manifest(self, entry: ProjectRef, task: TaskSpec) -> Path | None:
        if task.manifest is None:
            return None
        return _resolve(entry.path, task.manifest)

    def task_output_path(self, entry: ProjectRef, task: TaskSpec) -> Path | None:
        if task.output_path is None:
            return None
        return _resolve(entry.workspace or entry.path, task.output_path)

    # -- Helpers -----------------------------------------------------------

    @staticmethod
    def _project_ref(root: Path, spec: ProjectSpec) -> ProjectRef:
        return ProjectRef(name=spec.name, path=_resolve(root, spec.path).resolve(), workspace=root)

    def _find_project(self, project: ProjectRef) -> ProjectSpec | None:
        roots: Sequence[Path] = (
            [project.workspace.resolve()] if project.workspace else list(self._workspaces)
        )
        for root in roots:
            ws = self._workspaces.get(root)
            if ws is None:
                continue
            for spec in ws.projects:
                if spec.name == project.name:
                    return spec
        return None


__all__ = [
    "ScopeSpec",
    "ProjectSpec",
    "BuildSpec",
    "TaskSpec",
    "WorkspaceSpec",
    "ProjectDescriptor",
    "DescriptorProjectModel",
]
