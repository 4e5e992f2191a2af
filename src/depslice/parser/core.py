"""Source discovery and parsing for a Java source root."""

from __future__ import annotations

import fnmatch
import logging
import os
from pathlib import Path

from depslice.config import SOURCE_ROOT, IndexerConfig
from depslice.exceptions import ParserError
from depslice.parser.models import SourceFile, detect_language

logger = logging.getLogger("depslice.parser")


def parse_file(file_path: str, source: str | None = None) -> SourceFile | None:
    """Parse one compilation unit. Non-Java paths give None."""
    if detect_language(file_path) != "java":
        return None

    from depslice.parser.tree_sitter_parser import is_available, parse_java_file

    if not is_available():
        raise ParserError(
            "tree-sitter-java is not installed. Install it with: pip install tree-sitter-java"
        )
    return parse_java_file(file_path, source)


def parse_directory(
    root: str | Path,
    config: IndexerConfig | None = None,
    progress_callback: callable | None = None,
) -> list[SourceFile]:
    """Parse every Java file under a source root.

    Args:
        root: Source root to scan (e.g. ``src/main/java``).
        config: Indexer configuration for exclusion patterns.
        progress_callback: Optional callback(file_path, current, total) for progress.

    Returns:
        One SourceFile per parsed file, with paths relative to ``root``.
    """
    root = Path(root).resolve()
    files = collect_files(root, config)

    results = []
    for i, file_path in enumerate(files, start=1):
        if progress_callback:
            progress_callback(str(file_path), i, len(files))

        rel_path = file_path.relative_to(root).as_posix()
        try:
            parsed = parse_file(rel_path, file_path.read_text(encoding="utf-8", errors="replace"))
        except ParserError:
            raise
        except Exception as e:
            logger.warning("Skipping %s: %s", rel_path, e)
            continue
        if parsed is None:
            continue
        for error in parsed.errors:
            logger.debug("%s: %s", rel_path, error)
        results.append(parsed)
    return results


def collect_files(root: str | Path, config: IndexerConfig | None = None) -> list[Path]:
    """All Java files under ``root`` that pass the exclusion and size filters, sorted."""
    root = Path(root).resolve()
    config = config or IndexerConfig()
    patterns = config.exclude_patterns + _read_gitignore(root)
    max_size = config.max_file_size_kb * 1024

    files = []
    for dirpath, dirnames, filenames in os.walk(root):
        rel_dir = Path(dirpath).relative_to(root)
        dirnames[:] = [d for d in dirnames if not _should_exclude(rel_dir / d, patterns)]

        for filename in filenames:
            if detect_language(filename) is None or _should_exclude(rel_dir / filename, patterns):
                continue
            full_path = Path(dirpath) / filename
            try:
                too_big = full_path.stat().st_size > max_size
            except OSError:
                continue
            if too_big:
                logger.debug("Skipping %s: larger than %d KB", full_path, config.max_file_size_kb)
                continue
            files.append(full_path)

    return sorted(files)


def _should_exclude(path: Path, patterns: list[str]) -> bool:
    """True if the relative path, or any one of its components, matches a pattern."""
    text = path.as_posix()
    return any(
        fnmatch.fnmatch(text, pattern) or any(fnmatch.fnmatch(part, pattern) for part in path.parts)
        for pattern in patterns
    )


def _read_gitignore(source_root: Path) -> list[str]:
    """Patterns from the .gitignore of the source root or of the project owning it."""
    candidates = [source_root / ".gitignore"]
    parts = Path(SOURCE_ROOT).parts
    if source_root.parts[-len(parts):] == parts:
        candidates.append(source_root.parents[len(parts) - 1] / ".gitignore")

    patterns = []
    for gitignore in candidates:
        if not gitignore.is_file():
            continue
        try:
            lines = gitignore.read_text().splitlines()
        except OSError:
            continue
        for line in lines:
            line = line.strip()
            if line and not line.startswith("#"):
                patterns.append(line.rstrip("/"))
    return patterns
