"""Concrete collaborators: YAML project descriptor and command archive service."""

from jarforge.adapters.archive import CommandArchiveService, expand_command
from jarforge.adapters.descriptor import DescriptorProjectModel, ProjectDescriptor
from jarforge.adapters.process import CommandResult, run_command

__all__ = [
    "CommandArchiveService",
    "expand_command",
    "DescriptorProjectModel",
    "ProjectDescriptor",
    "CommandResult",
    "run_command",
]
