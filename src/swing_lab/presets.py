"""Scoring presets and default cohort references for repeatable threshold choices."""

from __future__ import annotations

from dataclasses import dataclass, field

from .peers import CohortReference, PercentileBand
from .scoring_config import DEFAULT_CONFIG_NAME, ScoringConfig

# Expected average exit velocity (mph) by level.
EXIT_VELO_REFERENCE_MPH: dict[str, float] = {
    "10u": 55.0,
    "11u": 60.0,
    "12u": 65.0,
    "13u": 72.0,
    "14u": 78.0,
    "15u": 83.0,
    "16u": 88.0,
    "17u": 92.0,
    "18u": 95.0,
    "college": 100.0,
    "pro": 110.0,
}

# Bat speed (mph) percentile bands by youth/high-school level.
BAT_SPEED_BANDS: dict[str, PercentileBand] = {
    "10u": PercentileBand(30, 38, 46),
    "11u": PercentileBand(33, 42, 50),
    "12u": PercentileBand(38, 48, 58),
    "13u": PercentileBand(45, 55, 65),
    "14u": PercentileBand(50, 60, 70),
    "15u": PercentileBand(53, 63, 73),
    "16u": PercentileBand(56, 66, 76),
    "17u": PercentileBand(58, 68, 78),
    "18u": PercentileBand(60, 70, 80),
}


@dataclass(frozen=True)
class LevelThresholds:
    """Barrel and hard-hit cutoffs for one playing level."""

    barrel_ev_min: float
    barrel_la_min: float
    barrel_la_max: float
    hard_hit_ev_min: float
    label: str


@dataclass(frozen=True)
class PeerBenchmark:
    avg_exit_velo: float
    barrel_rate: float
    hard_hit_rate: float

    def as_metrics(self) -> dict[str, float]:
        return {
            "avg_exit_velo": self.avg_exit_velo,
            "barrel_rate": self.barrel_rate,
            "hard_hit_rate": self.hard_hit_rate,
        }


LEVEL_THRESHOLDS: dict[str, LevelThresholds] = {
    "youth": LevelThresholds(65, 10, 30, 60, "Youth (12U)"),
    "middle_school": LevelThresholds(70, 10, 30, 65, "Middle School"),
    "high_school": LevelThresholds(80, 10, 30, 75, "High School"),
    "college": LevelThresholds(90, 8, 32, 85, "College"),
    "pro": LevelThresholds(95, 8, 32, 95, "Professional"),
}

# Typical session averages by level; rates are percentages of balls in play.
PEER_BENCHMARKS: dict[str, PeerBenchmark] = {
    "youth": PeerBenchmark(55, 5, 15),
    "middle_school": PeerBenchmark(62, 6, 20),
    "high_school": PeerBenchmark(75, 8, 30),
    "college": PeerBenchmark(86, 10, 38),
    "pro": PeerBenchmark(89, 12, 42),
}

DEFAULT_PEER_LEVEL = "high_school"
MIN_PEER_BALLS_IN_PLAY = 5


@dataclass(frozen=True)
class ScoringPreset:
    """Single source of truth for threshold and cohort choices."""

    name: str
    rationale: str
    config: ScoringConfig
    cohorts: dict[str, CohortReference]
    level_thresholds: dict[str, LevelThresholds] = field(default_factory=lambda: dict(LEVEL_THRESHOLDS))
    peer_benchmarks: dict[str, PeerBenchmark] = field(default_factory=lambda: dict(PEER_BENCHMARKS))


def default_cohort_references() -> dict[str, CohortReference]:
    cohorts: dict[str, CohortReference] = {}
    for level, exit_velo in EXIT_VELO_REFERENCE_MPH.items():
        metrics = {"avg_exit_velo": exit_velo}
        bands: dict[str, PercentileBand] = {}
        bat_speed = BAT_SPEED_BANDS.get(level)
        if bat_speed is not None:
            metrics["bat_speed"] = bat_speed.p50
            bands["bat_speed"] = bat_speed
        cohorts[level] = CohortReference(level=level, metrics=metrics, bands=bands, source="benchmark")
    return cohorts


def preferred_scoring_preset() -> ScoringPreset:
    """StatCast-aligned thresholds with level benchmarks for peer comparison."""
    return ScoringPreset(
        name=DEFAULT_CONFIG_NAME,
        rationale=(
            "Uses public StatCast hard-hit, sweet-spot and barrel definitions so launch-monitor "
            "sessions read the same as MLB contact data; contact weights favour exit velocity "
            "and the 18-22 degree line-drive band."
        ),
        config=ScoringConfig(),
        cohorts=default_cohort_references(),
    )
