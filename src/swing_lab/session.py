"""Session statistics and the legacy points-based Ball score."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Sequence

import numpy as np

from .normalize import Swing
from .scales import round_half_up

logger = logging.getLogger(__name__)

QUALITY_LA_MIN = 10.0
QUALITY_LA_MAX = 25.0
SESSION_BARREL_MIN_EV = 95.0
POP_UP_LA_MIN = 50.0

# (minimum exit velocity, points); first match wins.
VELOCITY_POINT_TIERS: tuple[tuple[float, int], ...] = ((100.0, 20), (95.0, 15), (90.0, 10), (85.0, 5))
VELOCITY_FLOOR_POINTS = 2
RESULT_BONUSES: tuple[tuple[str, int], ...] = (("HR", 25), ("3B", 20), ("2B", 15), ("1B", 10))
LINE_DRIVE_BONUS = 5
MISS_POINTS = -5
FOUL_POINTS = 0

# (minimum points per swing, Ball score); below the last breakpoint -> 30.
BALL_SCORE_BREAKPOINTS: tuple[tuple[float, int], ...] = (
    (35.0, 80),
    (30.0, 70),
    (25.0, 60),
    (20.0, 55),
    (15.0, 50),
    (10.0, 45),
    (5.0, 40),
)
BALL_SCORE_FLOOR = 30


@dataclass(frozen=True)
class SessionStats:
    """Aggregate over one session's swings. Ball-in-play stats exclude misses."""

    source: str = ""
    total_swings: int = 0
    misses: int = 0
    fouls: int = 0
    balls_in_play: int = 0
    contact_rate: float = 0.0

    avg_exit_velo: float = 0.0
    max_exit_velo: float = 0.0
    min_exit_velo: float = 0.0
    velo_90_plus: int = 0
    velo_95_plus: int = 0
    velo_100_plus: int = 0

    avg_launch_angle: float = 0.0
    ground_ball_count: int = 0
    line_drive_count: int = 0
    fly_ball_count: int = 0
    pop_up_count: int = 0

    max_distance: float = 0.0
    avg_distance: float = 0.0

    quality_hits: int = 0
    barrel_hits: int = 0
    quality_hit_pct: float = 0.0
    barrel_pct: float = 0.0

    total_points: int = 0
    points_per_swing: float = 0.0
    ball_score: int = BALL_SCORE_FLOOR

    results_breakdown: dict[str, int] = field(default_factory=dict)
    hit_types_breakdown: dict[str, int] = field(default_factory=dict)

    @property
    def has_data(self) -> bool:
        return self.total_swings > 0


def is_foul(swing: Swing) -> bool:
    return swing.result.strip().lower() == "foul"


def swing_points(swing: Swing, *, fouls_determinable: bool = True) -> int:
    """Additive per-swing points; never clamped."""
    if fouls_determinable and is_foul(swing):
        return FOUL_POINTS
    if swing.is_miss:
        return MISS_POINTS

    points = VELOCITY_FLOOR_POINTS
    for min_velo, tier_points in VELOCITY_POINT_TIERS:
        if swing.exit_velo_mph >= min_velo:
            points = tier_points
            break

    angle = swing.launch_angle_deg
    if QUALITY_LA_MIN <= angle <= QUALITY_LA_MAX:
        points += 10
    elif 8.0 <= angle <= 30.0:
        points += 5
    elif angle < 0:
        points -= 5

    result = swing.result.strip().upper()
    for code, bonus in RESULT_BONUSES:
        if code in result:
            points += bonus
            break
    else:
        if swing.hit_type.strip().lower() == "ld":
            points += LINE_DRIVE_BONUS
    return points


def ball_score_from_points(points_per_swing: float) -> int:
    """Map points per swing onto the 20-80 Ball scale."""
    for min_points, score in BALL_SCORE_BREAKPOINTS:
        if points_per_swing >= min_points:
            return score
    return BALL_SCORE_FLOOR


def summarize_swings(swings: Sequence[Swing], *, source: str = "") -> SessionStats:
    """Reduce an ordered swing list to session statistics."""
    total = len(swings)
    if total == 0:
        logger.warning("No swings to summarize for source %r", source)
        return SessionStats(source=source)

    has_result = any(swing.result.strip() for swing in swings)
    # Misses, fouls and balls in play partition the session; a recorded foul is never a miss.
    fouls = sum(1 for swing in swings if is_foul(swing)) if has_result else 0
    misses = sum(1 for swing in swings if swing.is_miss and not (has_result and is_foul(swing)))
    in_play = [
        swing for swing in swings if not swing.is_miss and not (has_result and is_foul(swing))
    ]
    n_in_play = len(in_play)

    velos = np.array([swing.exit_velo_mph for swing in in_play], dtype=float)
    angles = np.array([swing.launch_angle_deg for swing in in_play], dtype=float)
    distances = np.array(
        [swing.distance_ft for swing in in_play if swing.distance_ft is not None and swing.distance_ft > 0],
        dtype=float,
    )

    quality_mask = (angles >= QUALITY_LA_MIN) & (angles <= QUALITY_LA_MAX)
    quality_hits = int(quality_mask.sum())
    barrel_hits = int((quality_mask & (velos >= SESSION_BARREL_MIN_EV)).sum())

    points = [swing_points(swing, fouls_determinable=has_result) for swing in swings]
    total_points = int(sum(points))
    points_per_swing = total_points / total

    results_breakdown: dict[str, int] = {}
    for swing in swings:
        label = swing.result or ("Miss" if swing.is_miss else "Unknown")
        results_breakdown[label] = results_breakdown.get(label, 0) + 1
    hit_types_breakdown: dict[str, int] = {}
    for swing in in_play:
        label = swing.hit_type or "Unknown"
        hit_types_breakdown[label] = hit_types_breakdown.get(label, 0) + 1

    return SessionStats(
        source=source,
        total_swings=total,
        misses=misses,
        fouls=fouls,
        balls_in_play=n_in_play,
        contact_rate=_round1((total - misses) / total * 100.0),
        avg_exit_velo=_round1(velos.mean()) if n_in_play else 0.0,
        max_exit_velo=_round1(velos.max()) if n_in_play else 0.0,
        min_exit_velo=_round1(velos.min()) if n_in_play else 0.0,
        velo_90_plus=int((velos >= 90).sum()),
        velo_95_plus=int((velos >= 95).sum()),
        velo_100_plus=int((velos >= 100).sum()),
        avg_launch_angle=_round1(angles.mean()) if n_in_play else 0.0,
        ground_ball_count=int((angles < QUALITY_LA_MIN).sum()),
        line_drive_count=quality_hits,
        fly_ball_count=int(((angles > QUALITY_LA_MAX) & (angles <= POP_UP_LA_MIN)).sum()),
        pop_up_count=int((angles > POP_UP_LA_MIN).sum()),
        max_distance=float(round_half_up(distances.max())) if distances.size else 0.0,
        avg_distance=float(round_half_up(distances.mean())) if distances.size else 0.0,
        quality_hits=quality_hits,
        barrel_hits=barrel_hits,
        quality_hit_pct=_round1(quality_hits / n_in_play * 100.0) if n_in_play else 0.0,
        barrel_pct=_round1(barrel_hits / n_in_play * 100.0) if n_in_play else 0.0,
        total_points=total_points,
        points_per_swing=_round1(points_per_swing),
        ball_score=ball_score_from_points(points_per_swing),
        results_breakdown=results_breakdown,
        hit_types_breakdown=hit_types_breakdown,
    )


def _round1(value: float) -> float:
    return round(float(value), 1)
