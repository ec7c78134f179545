"""
Root Typer application for the jarforge CLI.

Commands::

    jarforge export DESCRIPTOR [--task NAME] [--default-output/--ask-output]
    jarforge tasks DESCRIPTOR
    jarforge classpath DESCRIPTOR [--json]

Exit codes of ``export``: 0 exported (or another export was already
running), 1 failed, 2 invalid descriptor or configuration, 130 cancelled.
"""

from __future__ import annotations

import asyncio
import json
import signal
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table
from typer import Typer

from jarforge.adapters.archive import CommandArchiveService
from jarforge.adapters.descriptor import DescriptorProjectModel
from jarforge.cli.notify import ConsoleNotifier
from jarforge.cli.prompts import ConsolePrompter
from jarforge.core.cancellation import CancellationToken
from jarforge.core.errors import ExportError, Remediation
from jarforge.core.logging import clear_context, configure_logging
from jarforge.core.settings import ExportSettings, get_settings
from jarforge.export import export_archive
from jarforge.orchestration.dependencies import DependencyResolver, sort_dependency_items
from jarforge.orchestration.engine import ExportResult, ExportStatus
from jarforge.orchestration.metadata import StepMetadata

app = Typer(
    name="jarforge",
    help="jarforge: export a compiled project as a single runnable jar.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()
err_console = Console(stderr=True)

EXIT_CODES = {
    ExportStatus.COMPLETED: 0,
    ExportStatus.SKIPPED: 0,
    ExportStatus.FAILED: 1,
    ExportStatus.ABORTED: 1,
    ExportStatus.CANCELLED: 130,
}


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import version as pkg_version

        typer.echo(f"jarforge {pkg_version('jarforge')}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """jarforge CLI: resolve dependencies and export jars."""
    _setup_logging(get_settings(), json_logs=False)


# ── Helpers ──────────────────────────────────────────────────────────────


def _setup_logging(settings: ExportSettings, json_logs: bool) -> None:
    json_format = {"json": True, "console": False}.get(settings.log_format)
    configure_logging(level=settings.log_level, json_format=True if json_logs else json_format)


def _load_model(descriptor: Path, settings: ExportSettings) -> DescriptorProjectModel:
    try:
        return DescriptorProjectModel.from_file(
            descriptor,
            build_timeout=settings.build_timeout_seconds,
            archive_extension=settings.archive_extension,
        )
    except ExportError as e:
        err_console.print(f"[bold red]Error:[/bold red] {e.message}")
        raise typer.Exit(code=2) from e


SETTINGS_EXAMPLE = (
    "JARFORGE_ARCHIVE_COMMAND='"
    '["jar-generator", "--main-class={main_class}", "--out", "{destination}", "{elements}"]'
    "'"
)


def _open_settings(env_file: Path = Path(".env")) -> None:
    """Reveal the settings file, or explain what to set when there is none."""
    env_file = env_file.resolve()
    if env_file.is_file():
        typer.launch(str(env_file), locate=True)
        return
    err_console.print(f"Set [bold]JARFORGE_ARCHIVE_COMMAND[/bold] in the environment or in {env_file}, e.g.")
    err_console.print(f"  {SETTINGS_EXAMPLE}", markup=False, highlight=False, soft_wrap=True)


async def _run_export(
    model: DescriptorProjectModel,
    settings: ExportSettings,
    metadata: StepMetadata | None,
) -> ExportResult:
    token = CancellationToken()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, token.cancel)
    except NotImplementedError:  # pragma: no cover - Windows event loops
        pass

    archive = CommandArchiveService(
        settings.archive_command,
        settings_remediation=Remediation("Open Settings", _open_settings),
    )
    try:
        return await export_archive(
            model,
            archive,
            ConsolePrompter(console),
            ConsoleNotifier(console),
            settings=settings,
            metadata=metadata,
            token=token,
        )
    finally:
        try:
            loop.remove_signal_handler(signal.SIGINT)
        except NotImplementedError:  # pragma: no cover
            pass


# ── Commands ─────────────────────────────────────────────────────────────


@app.command("export")
def export_cmd(
    descriptor: Path = typer.Argument(..., exists=True, dir_okay=False, help="Project descriptor (YAML)"),
    task: str | None = typer.Option(None, "--task", "-t", help="Run a preset export task"),
    manifest: Path | None = typer.Option(None, "--manifest", help="Manifest override"),
    default_output: bool | None = typer.Option(
        None,
        "--default-output/--ask-output",
        help="Write <workspace>/<workspace>.jar instead of asking.",
    ),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit JSON log lines on stderr."),
) -> None:
    """Export a jar from a project descriptor."""
    settings = get_settings()
    if default_output is not None:
        settings = settings.model_copy(update={"use_default_output_location": default_output})
    if json_logs:
        _setup_logging(settings, json_logs)

    model = _load_model(descriptor, settings)

    metadata: StepMetadata | None = None
    if task is not None:
        try:
            entry, spec = model.find_task(task)
        except ExportError as e:
            err_console.print(f"[bold red]Error:[/bold red] {e.message}")
            raise typer.Exit(code=2) from e
        metadata = StepMetadata.from_task(
            entry,
            task_name=spec.name,
            main_class=spec.main_class,
            manifest=manifest or model.task_manifest(entry, spec),
            elements=spec.elements,
            output_path=model.task_output_path(entry, spec),
        )
    elif manifest is not None:
        metadata = StepMetadata(manifest_path=manifest)

    try:
        result = asyncio.run(_run_export(model, settings, metadata))
    finally:
        clear_context()
    raise typer.Exit(code=EXIT_CODES[result.status])


@app.command("tasks")
def tasks_cmd(
    descriptor: Path = typer.Argument(..., exists=True, dir_okay=False, help="Project descriptor (YAML)"),
) -> None:
    """List preset export tasks."""
    settings = get_settings()
    model = _load_model(descriptor, settings)

    table = Table(title="Export tasks")
    table.add_column("Name", style="bold")
    table.add_column("Workspace")
    table.add_column("Project")
    table.add_column("Main class")
    table.add_column("Elements")
    table.add_column("Output")
    for root, spec in model.tasks():
        table.add_row(
            spec.name,
            str(root),
            spec.project or "(all)",
            spec.main_class or "",
            "\n".join(spec.elements) if spec.elements is not None else "(ask)",
            spec.output_path or "",
        )
    console.print(table)


@app.command("classpath")
def classpath_cmd(
    descriptor: Path = typer.Argument(..., exists=True, dir_okay=False, help="Project descriptor (YAML)"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Print the resolved, sorted dependency set of every workspace."""
    settings = get_settings()
    model = _load_model(descriptor, settings)
    resolver = DependencyResolver(model, archive_extensions=(settings.archive_extension,))

    async def _resolve() -> dict[str, list]:
        token = CancellationToken()
        resolved: dict[str, list] = {}
        for root in await model.list_workspaces():
            projects = await model.list_projects(root)
            items = await resolver.resolve(projects, root, token)
            resolved[str(root)] = sort_dependency_items(items)
        return resolved

    try:
        resolved = asyncio.run(_resolve())
    except ExportError as e:
        err_console.print(f"[bold red]Error:[/bold red] {e.message}")
        raise typer.Exit(code=1) from e

    if json_out:
        payload = {root: [item.to_dict() for item in items] for root, items in resolved.items()}
        console.print_json(json.dumps(payload))
        return

    for root, items in resolved.items():
        table = Table(title=root)
        table.add_column("Scope")
        table.add_column("Kind")
        table.add_column("Label", style="bold")
        table.add_column("Default", justify="center")
        for item in items:
            table.add_row(
                item.scope.value,
                item.kind.value,
                item.label,
                "[green]x[/green]" if item.preselected else "",
            )
        console.print(table)
