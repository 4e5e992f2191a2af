"""Destination model and file writer for sliced projects."""

from depslice.output.destination import DestinationFile, DestinationType
from depslice.output.writer import copy_manifest, create_project_structure, write_files

__all__ = [
    "DestinationFile",
    "DestinationType",
    "copy_manifest",
    "create_project_structure",
    "write_files",
]
