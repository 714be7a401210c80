from __future__ import annotations

from pathlib import Path

import pytest

from swing_lab.config import (
    build_project_registry,
    clear_project_config_cache,
    default_project_config,
    default_project_paths,
    load_project_scoring_config,
    resolve_input_file,
    resolve_output_dir,
)


def test_default_paths_resolve_under_project_root() -> None:
    clear_project_config_cache()
    paths = default_project_paths()
    assert (paths.project_root / "pyproject.toml").exists()
    assert paths.input_file.as_posix().endswith("data/session_export.csv")
    assert paths.output_dir.as_posix().endswith("outputs")


def test_env_override_for_input_file(monkeypatch, tmp_path: Path) -> None:
    custom = tmp_path / "hittrax_export.csv"
    custom.write_text("Velo,LA\n", encoding="utf-8")

    monkeypatch.setenv("SWING_LAB_INPUT_FILE", str(custom))
    clear_project_config_cache()

    assert resolve_input_file() == custom.resolve()

    monkeypatch.delenv("SWING_LAB_INPUT_FILE", raising=False)
    clear_project_config_cache()


def test_env_override_for_output_dir(monkeypatch, tmp_path: Path) -> None:
    custom_output = tmp_path / "exports"
    monkeypatch.setenv("SWING_LAB_OUTPUT_DIR", str(custom_output))
    clear_project_config_cache()

    assert resolve_output_dir() == custom_output.resolve()

    monkeypatch.delenv("SWING_LAB_OUTPUT_DIR", raising=False)
    clear_project_config_cache()


def test_external_yaml_config_file_override(monkeypatch, tmp_path: Path) -> None:
    custom_output = tmp_path / "yaml_exports"
    cfg = tmp_path / "swing_lab.yaml"
    cfg.write_text(
        "\n".join(
            [
                "paths:",
                f"  output_dir: {custom_output.as_posix()}",
                "runtime:",
                "  log_level: debug",
                "scoring:",
                "  hard_hit:",
                "    ev_threshold: 90",
                "  barrel:",
                "    ev_min: 97",
            ]
        ),
        encoding="utf-8",
    )

    monkeypatch.setenv("SWING_LAB_CONFIG_FILE", str(cfg))
    clear_project_config_cache()

    model = default_project_config()
    assert model.runtime.log_level == "DEBUG"
    assert default_project_paths().output_dir == custom_output.resolve()

    scoring = load_project_scoring_config()
    assert scoring.hard_hit.ev_threshold == 90.0
    assert scoring.barrel.ev_min == 97.0
    assert scoring.barrel.ev_cap == 116.0

    registry = build_project_registry()
    assert registry.active_config() == scoring

    monkeypatch.delenv("SWING_LAB_CONFIG_FILE", raising=False)
    clear_project_config_cache()


def test_missing_config_file_env_raises(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("SWING_LAB_CONFIG_FILE", str(tmp_path / "nope.yaml"))
    clear_project_config_cache()

    with pytest.raises(FileNotFoundError):
        default_project_config()

    monkeypatch.delenv("SWING_LAB_CONFIG_FILE", raising=False)
    clear_project_config_cache()


def test_invalid_scoring_override_raises(monkeypatch, tmp_path: Path) -> None:
    cfg = tmp_path / "bad.yaml"
    cfg.write_text("scoring:\n  sweet_spot:\n    la_min: 40\n    la_max: 10\n", encoding="utf-8")
    monkeypatch.setenv("SWING_LAB_CONFIG_FILE", str(cfg))
    clear_project_config_cache()

    with pytest.raises(ValueError):
        load_project_scoring_config()

    monkeypatch.delenv("SWING_LAB_CONFIG_FILE", raising=False)
    clear_project_config_cache()


def test_create_output_dirs_runtime_flag(monkeypatch, tmp_path: Path) -> None:
    custom_output = tmp_path / "auto_created_outputs"
    monkeypatch.setenv("SWING_LAB_OUTPUT_DIR", str(custom_output))
    monkeypatch.setenv("SWING_LAB_CREATE_OUTPUT_DIRS", "true")
    clear_project_config_cache()

    paths = default_project_paths()
    assert paths.output_dir == custom_output.resolve()
    assert custom_output.exists()

    monkeypatch.delenv("SWING_LAB_OUTPUT_DIR", raising=False)
    monkeypatch.delenv("SWING_LAB_CREATE_OUTPUT_DIRS", raising=False)
    clear_project_config_cache()
