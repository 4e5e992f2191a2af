"""Write the sliced project to disk."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from depslice.config import SOURCE_ROOT
from depslice.output.destination import DestinationFile

logger = logging.getLogger("depslice.writer")


def project_root(path: str | Path) -> Path:
    """Strip a trailing ``src/main/java`` to get the build project root."""
    path = Path(path)
    suffix = Path(SOURCE_ROOT).parts
    if len(path.parts) >= len(suffix) and path.parts[-len(suffix):] == suffix:
        return Path(*path.parts[: -len(suffix)])
    return path


def create_project_structure(output_path: str | Path) -> Path:
    """Scaffold a Maven-style tree and return its main source root."""
    root = project_root(output_path)
    source_root = root / SOURCE_ROOT
    source_root.mkdir(parents=True, exist_ok=True)
    (root / "src" / "test" / "java").mkdir(parents=True, exist_ok=True)
    return source_root


def copy_manifest(base_path: str | Path, output_path: str | Path, manifest: str = "pom.xml") -> Path:
    """Copy the build manifest from the original project root to the output root.

    A missing manifest raises FileNotFoundError.
    """
    source = project_root(base_path) / manifest
    target = project_root(output_path) / manifest
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(source, target)
    logger.info("Copied %s to %s", source, target)
    return target


def write_files(dependencies: dict[str, DestinationFile], output_path: str | Path) -> list[Path]:
    """Render every destination file under the output source root."""
    source_root = project_root(output_path) / SOURCE_ROOT
    written = []
    for name in sorted(dependencies):
        dest = dependencies[name]
        target = source_root / dest.path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(dest.render(), encoding="utf-8")
        logger.debug("Wrote %s", target)
        written.append(target)
    return written
