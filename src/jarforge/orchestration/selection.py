"""Element selection - lets the operator choose what goes into the archive.

A single resolved item is included without asking. Otherwise the sorted
items are offered in a multi-select prompt, pre-checked according to
``DependencyItem.preselected``. Nothing is written to ``metadata.elements``
unless the operator accepts.

A run seeded from a task with preset elements skips the prompt: each preset
is a path (workspace-relative or absolute) matched against the resolved
items, or a scope placeholder ("Runtime Dependencies", "Test Dependencies")
that expands to every archive of that scope.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from jarforge.core.cancellation import CancellationToken
from jarforge.core.errors import ExportCancelled, ResolutionError
from jarforge.core.logging import get_logger
from jarforge.core.protocols import Prompter
from jarforge.core.models import DependencyScope
from jarforge.orchestration.dependencies import (
    DependencyItem,
    DependencyKind,
    normalize_path,
    sort_dependency_items,
)
from jarforge.orchestration.metadata import StepMetadata

logger = get_logger(__name__)

SELECT_ELEMENTS_TITLE = "Export Jar : Determine elements"


async def select_elements(
    items: Sequence[DependencyItem],
    metadata: StepMetadata,
    prompter: Prompter,
    token: CancellationToken,
) -> bool:
    """Append the chosen elements to ``metadata.elements``.

    Args:
        items: Resolved dependency items (any order)
        metadata: The run's metadata; only ``elements`` is written
        prompter: Interactive surface
        token: The run's cancellation token

    Returns:
        True if elements were chosen, False if the operator asked to go back

    Raises:
        ExportCancelled: If the prompt was dismissed or the token fired
        ResolutionError: If ``items`` is empty or nothing was checked
    """
    if not items:
        raise ResolutionError("No elements to export.")

    if len(items) == 1:
        metadata.add_element(items[0].absolute_path)
        logger.info("selection.auto", element=items[0].absolute_path)
        return True

    ordered = sort_dependency_items(items)
    preselected = [item for item in ordered if item.preselected]

    result = await prompter.prompt_multi_select(
        SELECT_ELEMENTS_TITLE,
        ordered,
        preselected,
        metadata.project_was_picked,
        token,
    )
    token.raise_if_cancelled()

    if result.is_back:
        logger.info("selection.back")
        return False
    if not result.is_accepted:
        raise ExportCancelled("Element selection dismissed")

    chosen = result.value or []
    if not chosen:
        raise ResolutionError("No elements selected.")
    for item in chosen:
        metadata.add_element(item.absolute_path)

    logger.info("selection.accepted", selected=len(chosen), offered=len(ordered))
    return True


def apply_preset_elements(
    items: Sequence[DependencyItem],
    presets: Sequence[str],
    metadata: StepMetadata,
) -> None:
    """Append the items named by ``presets`` to ``metadata.elements``.

    Presets matching nothing resolved are skipped with a warning.

    Raises:
        ResolutionError: If no preset matched any item
    """
    placeholders = {scope.placeholder: scope for scope in DependencyScope}
    by_path = {item.absolute_path: item for item in items}
    ordered = sort_dependency_items(items)
    matched = 0

    for preset in presets:
        scope = placeholders.get(preset)
        if scope is not None:
            chosen = [i for i in ordered if i.scope == scope and i.kind == DependencyKind.EXTERNAL]
        else:
            path = Path(preset).expanduser()
            if not path.is_absolute() and metadata.workspace_root is not None:
                path = metadata.workspace_root / path
            item = by_path.get(normalize_path(path))
            chosen = [item] if item is not None else []

        if not chosen:
            logger.warning("selection.preset_unmatched", preset=preset)
            continue
        for item in chosen:
            if metadata.add_element(item.absolute_path):
                matched += 1

    if not matched:
        raise ResolutionError("No elements selected.").with_context(presets=list(presets))
    logger.info("selection.preset", selected=matched, presets=len(presets))


__all__ = ["select_elements", "apply_preset_elements", "SELECT_ELEMENTS_TITLE"]
