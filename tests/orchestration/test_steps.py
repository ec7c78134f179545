"""Tests for the step executors in isolation."""

import asyncio
from pathlib import Path

import pytest
from conftest import FakeArchiveService, FakeProjectModel, ScriptedPrompter

from jarforge.core.cancellation import CancellationToken
from jarforge.core.errors import ExportCancelled, GenerationError, ResolutionError
from jarforge.core.models import DependencyScope, EntryPointRef, ProjectRef
from jarforge.core.protocols import PromptResult
from jarforge.core.settings import ExportSettings
from jarforge.orchestration.metadata import ExportStep, StepMetadata
from jarforge.orchestration.steps import (
    GenerateArchiveExecutor,
    ResolveEntryPointExecutor,
    ResolveProjectExecutor,
    default_destination,
)
from jarforge.orchestration.steps.entry_point import SELECT_ENTRY_POINT_TITLE


# ---------------------------------------------------------------------------
# RESOLVE_PROJECT
# ---------------------------------------------------------------------------


class TestResolveProject:
    @pytest.mark.asyncio
    async def test_single_workspace_auto_picked(self, model, workspace):
        prompter = ScriptedPrompter()
        md = StepMetadata()
        outcome = await ResolveProjectExecutor(model, prompter).execute(md, CancellationToken())
        assert outcome.next_step == ExportStep.RESOLVE_ENTRY_POINT
        assert md.workspace_root == workspace["root"]
        assert md.project_roots == [workspace["project"]]
        assert md.project_was_picked is False
        assert prompter.calls == []

    @pytest.mark.asyncio
    async def test_several_workspaces_prompt(self, tmp_path):
        a, b = tmp_path / "a", tmp_path / "b"
        proj = ProjectRef("b", b, b)
        model = FakeProjectModel(workspaces=[b, a], projects={b: [proj]})
        prompter = ScriptedPrompter(single=[PromptResult.accepted(b)])
        md = StepMetadata()
        outcome = await ResolveProjectExecutor(model, prompter).execute(md, CancellationToken())
        assert outcome.is_advance
        assert prompter.calls[0].items == [a, b]
        assert prompter.calls[0].allow_back is False
        assert md.project_was_picked is True
        assert md.workspace_root == b

    @pytest.mark.asyncio
    async def test_dismissed_workspace_prompt_aborts(self, tmp_path):
        model = FakeProjectModel(workspaces=[tmp_path / "a", tmp_path / "b"])
        prompter = ScriptedPrompter(single=[PromptResult.cancelled()])
        outcome = await ResolveProjectExecutor(model, prompter).execute(StepMetadata(), CancellationToken())
        assert outcome.is_cancel

    @pytest.mark.asyncio
    async def test_no_workspace_raises(self):
        with pytest.raises(ResolutionError):
            await ResolveProjectExecutor(FakeProjectModel(), ScriptedPrompter()).execute(
                StepMetadata(), CancellationToken()
            )

    @pytest.mark.asyncio
    async def test_entry_uses_its_workspace(self, model, workspace):
        prompter = ScriptedPrompter()
        md = StepMetadata(entry=workspace["project"])
        await ResolveProjectExecutor(model, prompter).execute(md, CancellationToken())
        assert md.workspace_root == workspace["root"]
        assert prompter.calls == []

    @pytest.mark.asyncio
    async def test_entry_narrows_to_its_project(self, tmp_path):
        root = tmp_path / "ws"
        app, lib = ProjectRef("app", root / "app", root), ProjectRef("lib", root / "lib", root)
        model = FakeProjectModel(workspaces=[root], projects={root: [app, lib]})
        md = StepMetadata(entry=lib)
        await ResolveProjectExecutor(model, ScriptedPrompter()).execute(md, CancellationToken())
        assert md.workspace_root == root
        assert md.project_roots == [lib]

    @pytest.mark.asyncio
    async def test_workspace_entry_exports_all_projects(self, tmp_path):
        root = tmp_path / "ws"
        app, lib = ProjectRef("app", root / "app", root), ProjectRef("lib", root / "lib", root)
        model = FakeProjectModel(workspaces=[root], projects={root: [app, lib]})
        md = StepMetadata(entry=ProjectRef("ws", root, root))
        await ResolveProjectExecutor(model, ScriptedPrompter()).execute(md, CancellationToken())
        assert md.project_roots == [app, lib]

    @pytest.mark.asyncio
    async def test_entry_without_listed_projects_exports_itself(self, tmp_path):
        entry = ProjectRef("loose", tmp_path / "loose")
        md = StepMetadata(entry=entry)
        await ResolveProjectExecutor(FakeProjectModel(), ScriptedPrompter()).execute(md, CancellationToken())
        assert md.workspace_root == entry.path
        assert md.project_roots == [entry]

    @pytest.mark.asyncio
    async def test_workspace_without_projects_raises(self, tmp_path):
        model = FakeProjectModel(workspaces=[tmp_path])
        with pytest.raises(ResolutionError, match="No project found"):
            await ResolveProjectExecutor(model, ScriptedPrompter()).execute(StepMetadata(), CancellationToken())


# ---------------------------------------------------------------------------
# RESOLVE_ENTRY_POINT
# ---------------------------------------------------------------------------


def _md_for(*projects: ProjectRef, picked: bool = False) -> StepMetadata:
    return StepMetadata(
        workspace_root=projects[0].path,
        project_roots=list(projects),
        project_was_picked=picked,
    )


class TestResolveEntryPoint:
    @pytest.mark.asyncio
    async def test_none_found_leaves_unset(self, tmp_path):
        md = _md_for(ProjectRef("p", tmp_path))
        outcome = await ResolveEntryPointExecutor(FakeProjectModel(), ScriptedPrompter()).execute(
            md, CancellationToken()
        )
        assert outcome.next_step == ExportStep.GENERATE
        assert md.selected_entry_point is None

    @pytest.mark.asyncio
    async def test_single_candidate_auto(self, model, workspace):
        md = _md_for(workspace["project"])
        prompter = ScriptedPrompter()
        await ResolveEntryPointExecutor(model, prompter).execute(md, CancellationToken())
        assert md.selected_entry_point == "com.acme.App"
        assert prompter.calls == []

    @pytest.mark.asyncio
    async def test_candidates_deduped_and_sorted(self, tmp_path):
        a, b = ProjectRef("a", tmp_path / "a"), ProjectRef("b", tmp_path / "b")
        model = FakeProjectModel(
            entry_points={
                a.path: [EntryPointRef("z.Main"), EntryPointRef("a.Main")],
                b.path: [EntryPointRef("a.Main")],
            }
        )
        prompter = ScriptedPrompter(single=[PromptResult.accepted(EntryPointRef("z.Main"))])
        md = _md_for(a, b, picked=True)
        await ResolveEntryPointExecutor(model, prompter).execute(md, CancellationToken())
        call = prompter.calls[0]
        assert call.title == SELECT_ENTRY_POINT_TITLE
        assert [c.name for c in call.items] == ["a.Main", "z.Main"]
        assert call.allow_back is True
        assert md.selected_entry_point == "z.Main"

    @pytest.mark.asyncio
    async def test_back_goes_to_resolve_project(self, tmp_path):
        p = ProjectRef("p", tmp_path)
        model = FakeProjectModel(entry_points={tmp_path: [EntryPointRef("a.A"), EntryPointRef("b.B")]})
        prompter = ScriptedPrompter(single=[PromptResult.back()])
        outcome = await ResolveEntryPointExecutor(model, prompter).execute(
            _md_for(p, picked=True), CancellationToken()
        )
        assert outcome.is_back
        assert outcome.next_step == ExportStep.RESOLVE_PROJECT

    @pytest.mark.asyncio
    async def test_dismiss_aborts(self, tmp_path):
        p = ProjectRef("p", tmp_path)
        model = FakeProjectModel(entry_points={tmp_path: [EntryPointRef("a.A"), EntryPointRef("b.B")]})
        prompter = ScriptedPrompter(single=[PromptResult.cancelled()])
        outcome = await ResolveEntryPointExecutor(model, prompter).execute(_md_for(p), CancellationToken())
        assert outcome.is_cancel

    @pytest.mark.asyncio
    async def test_preset_skips_discovery(self, model, workspace):
        md = _md_for(workspace["project"])
        md.preset_entry_point = "com.acme.Cli"
        prompter = ScriptedPrompter()
        await ResolveEntryPointExecutor(model, prompter).execute(md, CancellationToken())
        assert md.selected_entry_point == "com.acme.Cli"
        assert prompter.calls == []


# ---------------------------------------------------------------------------
# GENERATE
# ---------------------------------------------------------------------------


def _generate_md(workspace, **kwargs) -> StepMetadata:
    return StepMetadata(
        workspace_root=workspace["root"],
        project_roots=[workspace["project"]],
        selected_entry_point="com.acme.App",
        **kwargs,
    )


class TestGenerate:
    def test_default_destination(self):
        assert default_destination(Path("/w/demo")) == Path("/w/demo/demo.jar")
        assert default_destination(Path("/w/demo"), ".war") == Path("/w/demo/demo.war")

    @pytest.mark.asyncio
    async def test_default_location_skips_save_prompt(self, model, workspace, settings):
        archive = FakeArchiveService()
        prompter = ScriptedPrompter()
        md = _generate_md(workspace)
        outcome = await GenerateArchiveExecutor(model, archive, prompter, settings).execute(
            md, CancellationToken()
        )
        expected = workspace["root"] / "demo.jar"
        assert outcome.next_step == ExportStep.FINISH
        assert md.output_path == expected
        assert prompter.kinds() == ["multi"]
        call = archive.calls[0]
        assert call["destination"] == expected
        assert call["entry_point"] == "com.acme.App"
        assert call["elements"] == [workspace["commons"], workspace["guava"], workspace["bin"]]

    @pytest.mark.asyncio
    async def test_save_prompt_used_when_not_default(self, model, workspace, tmp_path):
        chosen = tmp_path / "out" / "app.jar"
        prompter = ScriptedPrompter(save=[PromptResult.accepted(chosen)])
        settings = ExportSettings(use_default_output_location=False, _env_file=None)
        md = _generate_md(workspace)
        await GenerateArchiveExecutor(model, FakeArchiveService(), prompter, settings).execute(
            md, CancellationToken()
        )
        assert prompter.kinds() == ["multi", "save"]
        assert prompter.calls[1].items == [workspace["root"], ".jar"]
        assert md.output_path == chosen

    @pytest.mark.asyncio
    async def test_dismissed_save_prompt_aborts(self, model, workspace):
        prompter = ScriptedPrompter(save=[PromptResult.cancelled()])
        settings = ExportSettings(use_default_output_location=False, _env_file=None)
        archive = FakeArchiveService()
        md = _generate_md(workspace)
        outcome = await GenerateArchiveExecutor(model, archive, prompter, settings).execute(
            md, CancellationToken()
        )
        assert outcome.is_cancel
        assert archive.calls == []
        assert md.output_path is None

    @pytest.mark.asyncio
    async def test_archive_failure_raises(self, model, workspace, settings):
        md = _generate_md(workspace)
        with pytest.raises(GenerationError, match="Export jar failed.") as exc_info:
            await GenerateArchiveExecutor(
                model, FakeArchiveService(succeed=False), ScriptedPrompter(), settings
            ).execute(md, CancellationToken())
        assert exc_info.value.context.destination == str(workspace["root"] / "demo.jar")
        assert md.output_path is None

    @pytest.mark.asyncio
    async def test_back_from_selection(self, model, workspace, settings):
        prompter = ScriptedPrompter(multi=[PromptResult.back()])
        archive = FakeArchiveService()
        md = _generate_md(workspace, project_was_picked=True)
        outcome = await GenerateArchiveExecutor(model, archive, prompter, settings).execute(
            md, CancellationToken()
        )
        assert outcome.is_back
        assert outcome.next_step == ExportStep.RESOLVE_PROJECT
        assert archive.calls == []

    @pytest.mark.asyncio
    async def test_missing_workspace_raises(self, model, settings):
        with pytest.raises(ResolutionError):
            await GenerateArchiveExecutor(
                model, FakeArchiveService(), ScriptedPrompter(), settings
            ).execute(StepMetadata(), CancellationToken())

    @pytest.mark.asyncio
    async def test_manifest_passed_through(self, model, workspace, settings):
        archive = FakeArchiveService()
        md = _generate_md(workspace, manifest_path=Path("/m/MANIFEST.MF"))
        await GenerateArchiveExecutor(model, archive, ScriptedPrompter(), settings).execute(
            md, CancellationToken()
        )
        assert archive.calls[0]["manifest"] == Path("/m/MANIFEST.MF")

    @pytest.mark.asyncio
    async def test_cancel_during_generation(self, model, workspace, settings):
        token = CancellationToken()

        class SlowArchive(FakeArchiveService):
            async def generate(self, *args, **kwargs):
                token.cancel()
                await asyncio.sleep(10)
                return True

        md = _generate_md(workspace)
        with pytest.raises(ExportCancelled):
            await GenerateArchiveExecutor(model, SlowArchive(), ScriptedPrompter(), settings).execute(md, token)
        assert md.output_path is None


class TestGeneratePresets:
    @pytest.mark.asyncio
    async def test_preset_elements_skip_selection(self, model, workspace, settings):
        archive = FakeArchiveService()
        prompter = ScriptedPrompter()
        md = _generate_md(workspace, preset_elements=["bin", "Runtime Dependencies"])
        await GenerateArchiveExecutor(model, archive, prompter, settings).execute(md, CancellationToken())
        assert prompter.calls == []
        assert archive.calls[0]["elements"] == [workspace["bin"], workspace["commons"], workspace["guava"]]

    @pytest.mark.asyncio
    async def test_test_placeholder_expands_to_test_archives(self, model, workspace, settings):
        md = _generate_md(workspace, preset_elements=["Test Dependencies", workspace["test_bin"]])
        await GenerateArchiveExecutor(model, FakeArchiveService(), ScriptedPrompter(), settings).execute(
            md, CancellationToken()
        )
        # guava is a runtime item, so only junit counts as a test archive.
        assert md.elements == [workspace["junit"], workspace["test_bin"]]

    @pytest.mark.asyncio
    async def test_unmatched_presets_skipped(self, model, workspace, settings):
        md = _generate_md(workspace, preset_elements=["gone", "bin"])
        await GenerateArchiveExecutor(model, FakeArchiveService(), ScriptedPrompter(), settings).execute(
            md, CancellationToken()
        )
        assert md.elements == [workspace["bin"]]

    @pytest.mark.asyncio
    async def test_no_preset_matches_raises(self, model, workspace, settings):
        archive = FakeArchiveService()
        md = _generate_md(workspace, preset_elements=["gone"])
        with pytest.raises(ResolutionError, match="No elements selected."):
            await GenerateArchiveExecutor(model, archive, ScriptedPrompter(), settings).execute(
                md, CancellationToken()
            )
        assert archive.calls == []

    @pytest.mark.asyncio
    async def test_preset_output_path_skips_save_prompt(self, model, workspace):
        settings = ExportSettings(use_default_output_location=False, _env_file=None)
        prompter = ScriptedPrompter()
        md = _generate_md(workspace, preset_output_path=Path("dist") / "app.jar")
        await GenerateArchiveExecutor(model, FakeArchiveService(), prompter, settings).execute(
            md, CancellationToken()
        )
        assert prompter.kinds() == ["multi"]
        assert md.output_path == workspace["root"] / "dist" / "app.jar"

    @pytest.mark.asyncio
    async def test_absolute_output_path_kept(self, model, workspace, settings, tmp_path):
        target = tmp_path / "elsewhere" / "x.jar"
        md = _generate_md(workspace, preset_output_path=target)
        await GenerateArchiveExecutor(model, FakeArchiveService(), ScriptedPrompter(), settings).execute(
            md, CancellationToken()
        )
        assert md.output_path == target


def test_scope_values_are_display_labels():
    assert DependencyScope.RUNTIME.value == "Runtime"
    assert DependencyScope.TEST.query == "test"
