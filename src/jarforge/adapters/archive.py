"""Command archive service - runs an external generator to write the archive.

The generator is a black box configured as an argv template
(``JARFORGE_ARCHIVE_COMMAND``). Placeholders:

==================  =======================================================
``{main_class}``    Fully qualified entry point
``{destination}``   Absolute output path
``{manifest}``      Manifest override
``{elements}``      Must be a whole token; expands to one token per element
==================  =======================================================

A token whose placeholder has no value (no entry point, no manifest) is
dropped, so optional flags can be written as ``--main-class={main_class}``.

Example::

    JARFORGE_ARCHIVE_COMMAND='["jar-generator", "--main-class={main_class}",
                              "--out", "{destination}", "{elements}"]'
"""

from __future__ import annotations

import string
from collections.abc import Sequence
from pathlib import Path

from jarforge.adapters.process import run_command
from jarforge.core.errors import ConfigError, GenerationError, Remediation
from jarforge.core.logging import get_logger

logger = get_logger(__name__)

ELEMENTS_TOKEN = "{elements}"

_formatter = string.Formatter()


def expand_command(
    template: Sequence[str],
    *,
    main_class: str,
    elements: Sequence[str],
    destination: Path,
    manifest: Path | None = None,
) -> list[str]:
    """Expand an argv template.

    Raises:
        ConfigError: On an unknown placeholder
    """
    values = {
        "main_class": main_class or None,
        "destination": str(destination),
        "manifest": str(manifest) if manifest else None,
    }
    argv: list[str] = []
    for token in template:
        if token == ELEMENTS_TOKEN:
            argv.extend(elements)
            continue
        fields = [f for _, f, _, _ in _formatter.parse(token) if f]
        unknown = [f for f in fields if f not in values]
        if unknown:
            raise ConfigError(f"Unknown placeholder in archive command: {{{unknown[0]}}}")
        if any(values[f] is None for f in fields):
            continue
        argv.append(token.format_map(values))
    return argv


class CommandArchiveService:
    """``ArchiveService`` that shells out to a configured generator."""

    def __init__(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        timeout: float | None = None,
        settings_remediation: Remediation | None = None,
    ) -> None:
        self._command = list(command)
        self._cwd = cwd
        self._timeout = timeout
        self._settings_remediation = settings_remediation

    async def generate(
        self,
        entry_point: str,
        elements: Sequence[str],
        destination: Path,
        *,
        manifest: Path | None = None,
    ) -> bool:
        if not self._command:
            raise ConfigError(
                "No archive generator configured. Set JARFORGE_ARCHIVE_COMMAND.",
                remediation=self._settings_remediation,
            )

        argv = expand_command(
            self._command,
            main_class=entry_point,
            elements=elements,
            destination=destination,
            manifest=manifest,
        )
        destination.parent.mkdir(parents=True, exist_ok=True)
        try:
            result = await run_command(argv, cwd=self._cwd, timeout=self._timeout)
        except FileNotFoundError as e:
            raise ConfigError(
                f"Archive generator not found: {argv[0]}",
                remediation=self._settings_remediation,
                cause=e,
            ) from e
        except TimeoutError as e:
            raise GenerationError(
                f"Archive generator timed out after {self._timeout}s", cause=e
            ) from e

        if not result.ok:
            logger.warning(
                "archive.generator_failed",
                returncode=result.returncode,
                stderr=result.stderr[-2000:],
            )
            return False
        if not destination.exists():
            logger.warning("archive.missing_output", destination=str(destination))
            return False
        return True


__all__ = ["CommandArchiveService", "expand_command", "ELEMENTS_TOKEN"]
