"""Centralized project configuration and path resolution."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import logging
import os
from pathlib import Path
import tomllib
from typing import Any

from omegaconf import OmegaConf
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .scoring_config import ScoringConfig, ScoringConfigRegistry, merge_config

DEFAULT_INPUT_FILE = "data/session_export.csv"
DEFAULT_OUTPUT_DIR = "outputs"
DEFAULT_CONFIG_FILE = "config/swing_lab.yaml"
DEFAULT_LOG_LEVEL = "WARNING"
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class PathSettings(BaseModel):
    """File and directory locations for this project."""

    input_file: str = DEFAULT_INPUT_FILE
    output_dir: str = DEFAULT_OUTPUT_DIR

    @field_validator("input_file", "output_dir")
    @classmethod
    def _non_empty_path(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("path values must not be empty")
        return cleaned


class RuntimeSettings(BaseModel):
    """Runtime behavior controls for the CLI and pipelines."""

    create_output_dirs: bool = False
    log_level: str = DEFAULT_LOG_LEVEL

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of: {', '.join(_LOG_LEVELS)}")
        return level


class SwingLabConfig(BaseModel):
    """Typed configuration model for project behavior.

    ``scoring`` holds partial threshold overrides in the same nested shape as
    :class:`~swing_lab.scoring_config.ScoringConfig`.
    """

    model_config = ConfigDict(extra="ignore")
    paths: PathSettings = Field(default_factory=PathSettings)
    runtime: RuntimeSettings = Field(default_factory=RuntimeSettings)
    scoring: dict[str, dict[str, float]] = Field(default_factory=dict)


@dataclass(frozen=True)
class ProjectPaths:
    """Resolved canonical project paths."""

    project_root: Path
    input_file: Path
    output_dir: Path


def find_project_root(start: Path | None = None) -> Path:
    """Find the project root by locating `pyproject.toml`."""
    env_root = os.getenv("SWING_LAB_PROJECT_ROOT")
    if env_root:
        return _resolve_path(Path(env_root), Path.cwd())

    cursor = (start or Path.cwd()).resolve()
    for candidate in (cursor, *cursor.parents):
        if (candidate / "pyproject.toml").exists():
            return candidate

    module_cursor = Path(__file__).resolve()
    for candidate in (module_cursor, *module_cursor.parents):
        if (candidate / "pyproject.toml").exists():
            return candidate

    raise FileNotFoundError("Could not find project root containing pyproject.toml")


@lru_cache(maxsize=1)
def default_project_config() -> SwingLabConfig:
    """Load config with OmegaConf merge + Pydantic validation."""
    project_root = find_project_root()
    merged = _load_merged_config(project_root)
    try:
        return SwingLabConfig.model_validate(merged)
    except ValidationError as exc:
        raise ValueError(f"Invalid swing_lab config: {exc}") from exc


@lru_cache(maxsize=1)
def default_project_paths() -> ProjectPaths:
    """Resolve canonical paths from validated project config."""
    project_root = find_project_root()
    config = default_project_config()
    output_dir = _resolve_path(Path(config.paths.output_dir), project_root)

    if config.runtime.create_output_dirs:
        output_dir.mkdir(parents=True, exist_ok=True)

    return ProjectPaths(
        project_root=project_root,
        input_file=_resolve_path(Path(config.paths.input_file), project_root),
        output_dir=output_dir,
    )


def resolve_input_file(input_path: str | Path | None = None) -> Path:
    """Resolve an explicit or default export file path."""
    paths = default_project_paths()
    if input_path is None:
        return paths.input_file
    return _resolve_path(Path(input_path), paths.project_root)


def resolve_output_dir(output_dir: str | Path | None = None) -> Path:
    """Resolve an explicit or default output directory path."""
    paths = default_project_paths()
    if output_dir is None:
        return paths.output_dir
    return _resolve_path(Path(output_dir), paths.project_root)


def load_project_scoring_config() -> ScoringConfig:
    """Default thresholds with the project's `scoring` overrides merged in."""
    return merge_config(ScoringConfig(), default_project_config().scoring)


def build_project_registry() -> ScoringConfigRegistry:
    """Registry whose active default version carries the project thresholds."""
    return ScoringConfigRegistry.with_defaults(load_project_scoring_config())


def configure_logging(level: str | None = None) -> None:
    """Configure root logging from an explicit level or `runtime.log_level`."""
    resolved = (level or default_project_config().runtime.log_level).upper()
    logging.basicConfig(level=getattr(logging, resolved, logging.WARNING), format="%(name)s: %(message)s")


def clear_project_config_cache() -> None:
    """Clear cached config; useful for tests or env-var changes."""
    default_project_config.cache_clear()
    default_project_paths.cache_clear()


def _load_merged_config(project_root: Path) -> dict[str, Any]:
    base_cfg = {
        "paths": {
            "input_file": DEFAULT_INPUT_FILE,
            "output_dir": DEFAULT_OUTPUT_DIR,
        },
        "runtime": {
            "create_output_dirs": False,
            "log_level": DEFAULT_LOG_LEVEL,
        },
        "scoring": {},
    }
    merged = OmegaConf.merge(
        base_cfg,
        _load_pyproject_config(project_root),
        _load_file_config(project_root),
        _load_env_overrides(),
    )
    raw = OmegaConf.to_container(merged, resolve=True)
    return raw if isinstance(raw, dict) else {}


def _load_file_config(project_root: Path) -> dict[str, Any]:
    env_path = os.getenv("SWING_LAB_CONFIG_FILE")
    if env_path:
        cfg_path = _resolve_path(Path(env_path), project_root)
        if not cfg_path.exists():
            raise FileNotFoundError(f"SWING_LAB_CONFIG_FILE points to missing file: {cfg_path}")
    else:
        cfg_path = project_root / DEFAULT_CONFIG_FILE
        if not cfg_path.exists():
            return {}

    loaded = OmegaConf.load(cfg_path)
    raw = OmegaConf.to_container(loaded, resolve=True)
    return raw if isinstance(raw, dict) else {}


def _load_env_overrides() -> dict[str, Any]:
    paths: dict[str, Any] = {}
    if env_input := os.getenv("SWING_LAB_INPUT_FILE"):
        paths["input_file"] = env_input
    if env_output := os.getenv("SWING_LAB_OUTPUT_DIR"):
        paths["output_dir"] = env_output

    runtime: dict[str, Any] = {}
    if env_create_output := os.getenv("SWING_LAB_CREATE_OUTPUT_DIRS"):
        runtime["create_output_dirs"] = _parse_env_bool(env_create_output)
    if env_log_level := os.getenv("SWING_LAB_LOG_LEVEL"):
        runtime["log_level"] = env_log_level

    overrides: dict[str, Any] = {}
    if paths:
        overrides["paths"] = paths
    if runtime:
        overrides["runtime"] = runtime
    return overrides


def _resolve_path(path: Path, project_root: Path) -> Path:
    if path.is_absolute():
        return path.expanduser().resolve()
    return (project_root / path).resolve()


def _parse_env_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    raise ValueError("SWING_LAB_CREATE_OUTPUT_DIRS must be one of: 1,true,yes,on,0,false,no,off")


def _load_pyproject_config(project_root: Path) -> dict[str, Any]:
    pyproject_path = project_root / "pyproject.toml"
    if not pyproject_path.exists():
        return {}

    with pyproject_path.open("rb") as handle:
        pyproject = tomllib.load(handle)

    tool_cfg = pyproject.get("tool", {}).get("swing_lab", {})
    if not isinstance(tool_cfg, dict):
        return {}
    return {key: value for key, value in tool_cfg.items() if key in {"paths", "runtime", "scoring"}}
