"""Configuration management for DepSlice."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from depslice.exceptions import ConfigError

DEPSLICE_DIR = ".depslice"
CONFIG_FILE = "config.json"
SOURCE_ROOT = "src/main/java"


class SolverConfig(BaseModel):
    """What to slice and where to put the result."""

    base_path: str = SOURCE_ROOT
    output_path: str = "depslice-out"
    manifest: str | None = "pom.xml"
    methods: list[str] = Field(default_factory=list)  # seeds, "pkg.Owner#member"


class IndexerConfig(BaseModel):
    """Indexer configuration."""

    exclude_patterns: list[str] = Field(
        default_factory=lambda: [
            ".git",
            ".depslice",
            ".idea",
            ".gradle",
            "target",
            "build",
            "out",
            "node_modules",
            "package-info.java",
            "module-info.java",
        ]
    )
    max_file_size_kb: int = 1024


class ProjectConfig(BaseModel):
    """Full project configuration."""

    name: str = ""
    root_path: str = "."
    solver: SolverConfig = Field(default_factory=SolverConfig)
    indexer: IndexerConfig = Field(default_factory=IndexerConfig)


def find_project_root(start: Path | None = None) -> Path | None:
    """Walk up from `start` looking for a .depslice directory."""
    current = (start or Path.cwd()).resolve()
    while current != current.parent:
        if (current / DEPSLICE_DIR).is_dir():
            return current
        current = current.parent
    if (current / DEPSLICE_DIR).is_dir():
        return current
    return None


def get_depslice_dir(root: Path) -> Path:
    """Get the .depslice directory for a project root."""
    return root / DEPSLICE_DIR


def load_config(root: Path) -> ProjectConfig:
    """Load configuration from .depslice/config.json."""
    config_path = get_depslice_dir(root) / CONFIG_FILE
    if config_path.exists():
        try:
            data = json.loads(config_path.read_text())
            return ProjectConfig(**data)
        except (json.JSONDecodeError, ValidationError) as e:
            raise ConfigError(f"Invalid settings in {config_path}: {e}") from e
    return ProjectConfig(name=root.name, root_path=str(root))


def save_config(root: Path, config: ProjectConfig) -> None:
    """Save configuration to .depslice/config.json."""
    ds_dir = get_depslice_dir(root)
    ds_dir.mkdir(parents=True, exist_ok=True)
    config_path = ds_dir / CONFIG_FILE
    config_path.write_text(json.dumps(config.model_dump(), indent=2))


def set_config_value(config: ProjectConfig, key: str, value: Any) -> ProjectConfig:
    """Set a nested config value using dot notation (e.g., 'solver.output_path')."""
    parts = key.split(".")
    data = config.model_dump()
    target = data
    for part in parts[:-1]:
        if part not in target or not isinstance(target[part], dict):
            raise KeyError(f"Invalid config key: {key}")
        target = target[part]
    if parts[-1] not in target:
        raise KeyError(f"Invalid config key: {key}")
    target[parts[-1]] = value
    return ProjectConfig(**data)


def resolve_paths(root: Path, config: ProjectConfig) -> tuple[Path, Path]:
    """Return the absolute (source root, output root) for a project."""
    base = Path(os.path.expanduser(config.solver.base_path))
    output = Path(os.path.expanduser(config.solver.output_path))
    if not base.is_absolute():
        base = root / base
    if not output.is_absolute():
        output = root / output
    return base.resolve(), output.resolve()


def parse_seed(seed: str) -> tuple[str, str]:
    """Split a ``pkg.Owner#member`` seed into its owner and member parts."""
    owner, sep, member = seed.strip().partition("#")
    if not sep or not owner or not member:
        raise ConfigError(f"Seed '{seed}' must look like 'package.Type#member'")
    return owner, member
