"""
CLI layer for jarforge.

Terminal transport only: argument parsing, rich prompts and notifications.
The export itself lives in ``jarforge.export`` and ``jarforge.orchestration``.

Entry point::

    jarforge --help
"""

from jarforge.cli.app import app

__all__ = ["app"]
