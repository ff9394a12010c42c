"""Configuration management for smite."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError

from smite.exceptions import ConfigError

SMITE_DIR = ".smite"
CONFIG_FILE = "config.json"
PRD_FILE = "prd.json"


class SchedulerConfig(BaseModel):
    """Batch scheduler configuration."""

    # "structural" hashes edges/priorities; "counts" is "<total>-<completed>"
    fingerprint: Literal["structural", "counts"] = "structural"
    prd_file: str = PRD_FILE


class CacheConfig(BaseModel):
    """Semantic cache configuration."""

    max_size: int = Field(default=100, ge=1)
    ttl_seconds: float = Field(default=3600.0, gt=0)
    similarity_threshold: float = Field(default=0.8, ge=0.0, le=1.0)
    min_keyword_length: int = Field(default=3, ge=1)


class RouterConfig(BaseModel):
    """Search router configuration."""

    cache_enabled: bool = True
    default_max_results: int = 50
    default_timeout: float = 30.0
    min_score: float = 0.0
    context_lines: int = 2
    enable_fallback: bool = True
    max_fallbacks: int = 2


class BackendConfig(BaseModel):
    """External semantic search backend (mgrep) configuration."""

    executable: str = "mgrep"
    timeout: float = 30.0


class IndexerConfig(BaseModel):
    """File walking configuration for the in-process literal matcher."""

    exclude_patterns: list[str] = Field(
        default_factory=lambda: [
            "node_modules",
            "__pycache__",
            ".git",
            ".smite",
            "dist",
            "build",
            ".venv",
            "venv",
            ".env",
            "*.pyc",
            "*.pyo",
            "*.so",
            "*.dylib",
            "*.dll",
            "*.exe",
            "*.min.js",
            "*.min.css",
            "*.map",
            "*.lock",
            "package-lock.json",
            "yarn.lock",
        ]
    )
    max_file_size_kb: int = 500


class ProjectConfig(BaseModel):
    """Full project configuration."""

    name: str = ""
    root_path: str = "."
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    router: RouterConfig = Field(default_factory=RouterConfig)
    backend: BackendConfig = Field(default_factory=BackendConfig)
    indexer: IndexerConfig = Field(default_factory=IndexerConfig)


def find_project_root(start: Path | None = None) -> Path | None:
    """Walk up from `start` looking for a .smite directory."""
    current = (start or Path.cwd()).resolve()
    while current != current.parent:
        if (current / SMITE_DIR).is_dir():
            return current
        current = current.parent
    if (current / SMITE_DIR).is_dir():
        return current
    return None


def get_smite_dir(root: Path) -> Path:
    """Get the .smite directory for a project root."""
    return root / SMITE_DIR


def load_config(root: Path) -> ProjectConfig:
    """Load configuration from .smite/config.json."""
    config_path = get_smite_dir(root) / CONFIG_FILE
    if config_path.exists():
        try:
            data = json.loads(config_path.read_text())
            return ProjectConfig(**data)
        except (json.JSONDecodeError, ValidationError) as e:
            raise ConfigError(f"Invalid config at {config_path}: {e}") from e
    return ProjectConfig(name=root.name, root_path=str(root))


def save_config(root: Path, config: ProjectConfig) -> None:
    """Save configuration to .smite/config.json."""
    smite_dir = get_smite_dir(root)
    smite_dir.mkdir(parents=True, exist_ok=True)
    config_path = smite_dir / CONFIG_FILE
    config_path.write_text(json.dumps(config.model_dump(), indent=2))


def set_config_value(config: ProjectConfig, key: str, value: Any) -> ProjectConfig:
    """Set a nested config value using dot notation (e.g., 'cache.max_size')."""
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
    try:
        return ProjectConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid value for {key}: {value!r}") from e
