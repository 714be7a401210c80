from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from swing_lab.exceptions import ConfigVersionInUseError, ScoringConfigNotSetError, UnknownConfigVersionError
from swing_lab.scoring_config import (
    DEFAULT_CONFIG_NAME,
    ScoringConfig,
    ScoringConfigRegistry,
    diff_configs,
    flatten_config,
    merge_config,
    unflatten_config,
)


def test_defaults_match_statcast_definitions() -> None:
    config = ScoringConfig()
    assert config.hard_hit.ev_threshold == 95.0
    assert (config.sweet_spot.la_min, config.sweet_spot.la_max) == (8.0, 32.0)
    assert config.barrel.ev_min == 98.0
    assert config.barrel.ev_cap == 116.0
    assert config.grade_scale.elite_min == 70.0


def test_merge_keeps_unspecified_leaves() -> None:
    base = ScoringConfig()
    merged = merge_config(base, {"barrel": {"ev_min": 97}, "contact_score": {"barrel_bonus": 20}})

    assert merged.barrel.ev_min == 97.0
    assert merged.barrel.ev_cap == base.barrel.ev_cap
    assert merged.barrel.base_la_min == base.barrel.base_la_min
    assert merged.contact_score.barrel_bonus == 20.0
    assert merged.contact_score.hard_hit_bonus == base.contact_score.hard_hit_bonus
    assert merged.hard_hit == base.hard_hit
    assert base.barrel.ev_min == 98.0


def test_merge_rejects_invalid_thresholds() -> None:
    with pytest.raises(ValueError):
        merge_config(ScoringConfig(), {"barrel": {"ev_cap": 90}})
    with pytest.raises(ValueError):
        merge_config(ScoringConfig(), {"hard_hit": {"not_a_field": 1}})


def test_config_is_immutable() -> None:
    config = ScoringConfig()
    with pytest.raises(Exception):
        config.hard_hit.ev_threshold = 80.0  # type: ignore[misc]


def test_flatten_and_unflatten_round_trip() -> None:
    config = merge_config(ScoringConfig(), {"sweet_spot": {"la_min": 10, "la_max": 30}})
    flat = flatten_config(config)
    assert flat["sweet_spot.la_min"] == 10.0
    assert unflatten_config(flat) == config
    assert flatten_config(unflatten_config(flat)) == flat


def test_diff_lists_changed_paths() -> None:
    old = ScoringConfig()
    new = merge_config(old, {"hard_hit": {"ev_threshold": 92}})
    diffs = diff_configs(old, new)
    assert [(d.path, d.old_value, d.new_value) for d in diffs] == [("hard_hit.ev_threshold", 95.0, 92.0)]


def test_empty_registry_raises_when_active_config_requested() -> None:
    registry = ScoringConfigRegistry()
    with pytest.raises(ScoringConfigNotSetError):
        registry.active_config()
    with pytest.raises(RuntimeError):
        registry.active_version()


def test_registry_versions_activation_and_reset() -> None:
    registry = ScoringConfigRegistry.with_defaults()
    default = registry.active_version()
    assert default.id == "config_v1"
    assert default.is_default
    assert default.name == DEFAULT_CONFIG_NAME

    derived = registry.create_version(
        "Youth tweak",
        "Lower hard-hit cutoff",
        {"hard_hit": {"ev_threshold": 85}},
        base_version_id=default.id,
    )
    assert derived.id == "config_v2"
    assert registry.active_version().id == "config_v1"

    registry.activate(derived.id)
    assert registry.active_config().hard_hit.ev_threshold == 85.0
    assert registry.is_active(derived.id)
    assert [d.path for d in registry.diff(default.id, derived.id)] == ["hard_hit.ev_threshold"]

    registry.reset_to_default()
    assert registry.active_version().id == default.id
    assert len(registry) == 2


def test_registry_unknown_and_in_use_versions() -> None:
    registry = ScoringConfigRegistry.with_defaults()
    other = registry.register(ScoringConfig(), name="copy")

    with pytest.raises(UnknownConfigVersionError):
        registry.activate("config_v99")
    with pytest.raises(ConfigVersionInUseError):
        registry.remove("config_v1")
    with pytest.raises(ConfigVersionInUseError):
        registry.remove(other.id, referenced_version_ids=[other.id])

    registry.remove(other.id)
    assert other.id not in registry


def test_concurrent_readers_see_whole_configs() -> None:
    registry = ScoringConfigRegistry.with_defaults()
    low = registry.create_version("low", "", {"hard_hit": {"ev_threshold": 80}, "barrel": {"ev_min": 90}})
    high = registry.create_version("high", "", {"hard_hit": {"ev_threshold": 99}, "barrel": {"ev_min": 100}})
    allowed = {(80.0, 90.0), (99.0, 100.0), (95.0, 98.0)}

    def flip_and_read(i: int) -> tuple[float, float]:
        registry.activate(low.id if i % 2 else high.id)
        config = registry.active_config()
        return config.hard_hit.ev_threshold, config.barrel.ev_min

    with ThreadPoolExecutor(max_workers=8) as pool:
        seen = set(pool.map(flip_and_read, range(200)))
    assert seen <= allowed
