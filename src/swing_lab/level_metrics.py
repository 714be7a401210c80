"""Level-adjusted launch-monitor metrics, Ball score drivers and peer deltas."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Sequence

import numpy as np

from .constants import SCALE_MAX, SCALE_MIN
from .normalize import Swing
from .peers import PeerComparison, normalize_level
from .presets import (
    DEFAULT_PEER_LEVEL,
    LEVEL_THRESHOLDS,
    MIN_PEER_BALLS_IN_PLAY,
    PEER_BENCHMARKS,
    LevelThresholds,
)
from .scales import clamp, round_half_up

logger = logging.getLogger(__name__)

SWEET_SPOT_LA_MIN = 8.0
SWEET_SPOT_LA_MAX = 32.0
OPTIMAL_LA_MIN = 10.0
OPTIMAL_LA_MAX = 25.0

DRIVER_BASE_SCORE = 50
CONTACT_RATE_POSITIVE_MIN = 70.0
LEAGUE_BARREL_PCT = 8.0
LEAGUE_HARD_HIT_PCT = 35.0
LEAGUE_OPTIMAL_LA_PCT = 40.0


@dataclass(frozen=True)
class LaDistribution:
    """Launch-angle buckets: GB < 5, LD 5-20, FB 20-35 inclusive, PU > 35."""

    ground_ball: int = 0
    line_drive: int = 0
    fly_ball: int = 0
    pop_up: int = 0
    ground_ball_pct: float = 0.0
    line_drive_pct: float = 0.0
    fly_ball_pct: float = 0.0
    pop_up_pct: float = 0.0


@dataclass(frozen=True)
class ScoreDriver:
    label: str
    impact: int
    context: str
    is_positive: bool


@dataclass(frozen=True)
class ScoreComponents:
    """Drivers sorted by absolute impact; the final score is clamped to the 20-80 scale."""

    drivers: tuple[ScoreDriver, ...]
    total_explained: int
    raw_score: int
    final_score: int


@dataclass(frozen=True)
class LevelAdjustedStats:
    level: str
    thresholds: LevelThresholds
    total_swings: int = 0
    balls_in_play: int = 0
    contact_rate: float = 0.0
    avg_exit_velo: float = 0.0
    max_exit_velo: float = 0.0
    avg_launch_angle: float = 0.0
    avg_distance: float = 0.0
    max_distance: float = 0.0
    barrel_count: int = 0
    barrel_rate: float = 0.0
    hard_hit_count: int = 0
    hard_hit_rate: float = 0.0
    sweet_spot_count: int = 0
    sweet_spot_pct: float = 0.0
    optimal_la_pct: float = 0.0
    la_distribution: LaDistribution = field(default_factory=LaDistribution)
    score_components: ScoreComponents | None = None

    @property
    def ball_score(self) -> int:
        if self.score_components is None:
            return SCALE_MIN
        return self.score_components.final_score


def resolve_player_level(level: str | None) -> str:
    """Known level key for ``level``; missing or unknown levels fall back to high school."""
    if not level:
        return DEFAULT_PEER_LEVEL
    key = normalize_level(level)
    if key not in LEVEL_THRESHOLDS:
        logger.info("Unknown player level %r; using %s thresholds", level, DEFAULT_PEER_LEVEL)
        return DEFAULT_PEER_LEVEL
    return key


def level_thresholds(level: str | None = None) -> LevelThresholds:
    return LEVEL_THRESHOLDS[resolve_player_level(level)]


def la_distribution(launch_angles: Sequence[float]) -> LaDistribution:
    angles = np.asarray(launch_angles, dtype=float)
    total = angles.size
    if total == 0:
        return LaDistribution()

    ground_ball = int((angles < 5).sum())
    line_drive = int(((angles >= 5) & (angles < 20)).sum())
    fly_ball = int(((angles >= 20) & (angles <= 35)).sum())
    pop_up = int((angles > 35).sum())
    return LaDistribution(
        ground_ball=ground_ball,
        line_drive=line_drive,
        fly_ball=fly_ball,
        pop_up=pop_up,
        ground_ball_pct=_pct(ground_ball, total),
        line_drive_pct=_pct(line_drive, total),
        fly_ball_pct=_pct(fly_ball, total),
        pop_up_pct=_pct(pop_up, total),
    )


def score_drivers(
    avg_exit_velo: float,
    contact_rate: float,
    barrel_pct: float,
    avg_launch_angle: float,
    optimal_la_pct: float,
    hard_hit_pct: float,
    level: str | None = None,
) -> ScoreComponents:
    """Explain a Ball score as signed point contributions around a 50 baseline.

    Each driver measures one input against a benchmark: contact against 50%,
    exit velocity against the level's hard-hit cutoff, barrels against 8%,
    hard hits against 35% and optimal launch angles against 40%.
    """
    thresholds = level_thresholds(level)
    ev_benchmark = thresholds.hard_hit_ev_min

    drivers = [
        ScoreDriver(
            label="Contact Rate",
            impact=round_half_up(contact_rate * 0.2) - 10,
            context=f"{contact_rate:.0f}% contact",
            is_positive=contact_rate >= CONTACT_RATE_POSITIVE_MIN,
        ),
        ScoreDriver(
            label="Exit Velocity",
            impact=round_half_up((avg_exit_velo - ev_benchmark) * 0.5),
            context=f"{avg_exit_velo:.1f} mph avg",
            is_positive=avg_exit_velo >= ev_benchmark,
        ),
        ScoreDriver(
            label="Barrel Rate",
            impact=round_half_up((barrel_pct - LEAGUE_BARREL_PCT) * 1.5),
            context=f"{barrel_pct:.1f}% barrels",
            is_positive=barrel_pct >= LEAGUE_BARREL_PCT,
        ),
        ScoreDriver(
            label="Hard Hit Rate",
            impact=round_half_up((hard_hit_pct - LEAGUE_HARD_HIT_PCT) * 0.3),
            context=f"{hard_hit_pct:.1f}% hard hit",
            is_positive=hard_hit_pct >= LEAGUE_HARD_HIT_PCT,
        ),
        ScoreDriver(
            label="LA Quality",
            impact=round_half_up((optimal_la_pct - LEAGUE_OPTIMAL_LA_PCT) * 0.2),
            context=f"{avg_launch_angle:.1f}° avg",
            is_positive=OPTIMAL_LA_MIN <= avg_launch_angle <= OPTIMAL_LA_MAX,
        ),
    ]
    drivers.sort(key=lambda driver: abs(driver.impact), reverse=True)

    total_explained = sum(driver.impact for driver in drivers)
    raw_score = DRIVER_BASE_SCORE + total_explained
    return ScoreComponents(
        drivers=tuple(drivers),
        total_explained=total_explained,
        raw_score=raw_score,
        final_score=int(clamp(raw_score, SCALE_MIN, SCALE_MAX)),
    )


def level_adjusted_stats(swings: Sequence[Swing], level: str | None = None) -> LevelAdjustedStats:
    """Session stats with barrel and hard-hit cutoffs taken from the player's level."""
    key = resolve_player_level(level)
    thresholds = LEVEL_THRESHOLDS[key]
    total = len(swings)
    if total == 0:
        logger.warning("No swings for level-adjusted stats")

    in_play = [swing for swing in swings if not swing.is_miss]
    n_in_play = len(in_play)
    velos = np.array([swing.exit_velo_mph for swing in in_play], dtype=float)
    angles = np.array([swing.launch_angle_deg for swing in in_play], dtype=float)
    distances = np.array(
        [swing.distance_ft for swing in in_play if swing.distance_ft is not None and swing.distance_ft > 0],
        dtype=float,
    )

    contact_rate = n_in_play / total * 100.0 if total else 0.0
    avg_exit_velo = float(velos.mean()) if n_in_play else 0.0
    avg_launch_angle = float(angles.mean()) if n_in_play else 0.0

    barrel_count = int(
        (
            (velos >= thresholds.barrel_ev_min)
            & (angles >= thresholds.barrel_la_min)
            & (angles <= thresholds.barrel_la_max)
        ).sum()
    )
    hard_hit_count = int((velos >= thresholds.hard_hit_ev_min).sum())
    sweet_spot_count = int(((angles >= SWEET_SPOT_LA_MIN) & (angles <= SWEET_SPOT_LA_MAX)).sum())
    optimal_la_count = int(((angles >= OPTIMAL_LA_MIN) & (angles <= OPTIMAL_LA_MAX)).sum())

    barrel_rate = barrel_count / n_in_play * 100.0 if n_in_play else 0.0
    hard_hit_rate = hard_hit_count / n_in_play * 100.0 if n_in_play else 0.0
    sweet_spot_pct = sweet_spot_count / n_in_play * 100.0 if n_in_play else 0.0
    optimal_la_pct = optimal_la_count / n_in_play * 100.0 if n_in_play else 0.0

    components = score_drivers(
        avg_exit_velo,
        contact_rate,
        barrel_rate,
        avg_launch_angle,
        optimal_la_pct,
        hard_hit_rate,
        key,
    )
    return LevelAdjustedStats(
        level=key,
        thresholds=thresholds,
        total_swings=total,
        balls_in_play=n_in_play,
        contact_rate=_round1(contact_rate),
        avg_exit_velo=_round1(avg_exit_velo),
        max_exit_velo=_round1(velos.max()) if n_in_play else 0.0,
        avg_launch_angle=_round1(avg_launch_angle),
        avg_distance=float(round_half_up(distances.mean())) if distances.size else 0.0,
        max_distance=float(round_half_up(distances.max())) if distances.size else 0.0,
        barrel_count=barrel_count,
        barrel_rate=_round1(barrel_rate),
        hard_hit_count=hard_hit_count,
        hard_hit_rate=_round1(hard_hit_rate),
        sweet_spot_count=sweet_spot_count,
        sweet_spot_pct=_round1(sweet_spot_pct),
        optimal_la_pct=_round1(optimal_la_pct),
        la_distribution=la_distribution(angles),
        score_components=components,
    )


def compare_session_to_peers(stats: LevelAdjustedStats, level: str | None = None) -> PeerComparison:
    """Signed deltas of the session's rounded stats against the level's peer benchmark.

    Deltas are always reported; ``available`` is False below the minimum
    number of balls in play.
    """
    key = resolve_player_level(level or stats.level)
    reference = PEER_BENCHMARKS[key].as_metrics()
    subject = {
        "avg_exit_velo": stats.avg_exit_velo,
        "barrel_rate": stats.barrel_rate,
        "hard_hit_rate": stats.hard_hit_rate,
    }
    available = stats.balls_in_play >= MIN_PEER_BALLS_IN_PLAY
    reason = ""
    if not available:
        reason = (
            f"Need at least {MIN_PEER_BALLS_IN_PLAY} balls in play for a peer comparison; "
            f"got {stats.balls_in_play}."
        )
    return PeerComparison(
        level=key,
        available=available,
        reason=reason,
        deltas={name: _round1(subject[name] - reference[name]) for name in subject},
        subject=subject,
        reference=reference,
    )


def _pct(count: int, total: int) -> float:
    return _round1(count / total * 100.0)


def _round1(value: float) -> float:
    return round_half_up(float(value) * 10) / 10
