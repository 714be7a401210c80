"""Per-swing contact classification and the configurable contact-quality score."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import Sequence

import numpy as np
import pandas as pd

from .normalize import Swing
from .scales import clamp, percent_to_scale, round_half_up
from .scoring_config import ScoringConfig

logger = logging.getLogger(__name__)


class BattedBallType(str, Enum):
    GROUND_BALL = "GB"
    LINE_DRIVE = "LD"
    FLY_BALL = "FB"
    POP_UP = "PU"
    UNKNOWN = "UNK"


@dataclass(frozen=True)
class BarrelWindow:
    """Admissible barrel launch-angle range at one exit velocity (inclusive)."""

    la_min: float
    la_max: float

    @property
    def width(self) -> float:
        return self.la_max - self.la_min

    def contains(self, launch_angle: float) -> bool:
        return self.la_min <= launch_angle <= self.la_max


@dataclass(frozen=True)
class ContactScore:
    """Contact-quality score with the additive components that produced it.

    ``breakdown`` is empty for non-contact swings.
    """

    score: int
    breakdown: dict[str, float] = field(default_factory=dict)
    la_label: str = ""


@dataclass(frozen=True)
class SwingClassification:
    exit_velo_mph: float
    launch_angle_deg: float
    is_hard_hit: bool
    is_sweet_spot: bool
    is_barrel: bool
    batted_ball_type: BattedBallType
    contact: ContactScore

    @property
    def contact_score(self) -> int:
        return self.contact.score


def is_hard_hit(exit_velo: float, config: ScoringConfig) -> bool:
    return exit_velo >= config.hard_hit.ev_threshold


def is_sweet_spot(launch_angle: float, config: ScoringConfig) -> bool:
    return config.sweet_spot.la_min <= launch_angle <= config.sweet_spot.la_max


def barrel_window(exit_velo: float, config: ScoringConfig) -> BarrelWindow | None:
    """Barrel angle window at ``exit_velo``; None below the barrel velocity floor.

    The window widens linearly from the base range at ``ev_min`` to the capped
    range at ``ev_cap`` and stays at the capped range above it.
    """
    barrel = config.barrel
    if exit_velo < barrel.ev_min:
        return None
    fraction = clamp((exit_velo - barrel.ev_min) / (barrel.ev_cap - barrel.ev_min), 0.0, 1.0)
    return BarrelWindow(
        la_min=barrel.base_la_min - fraction * (barrel.base_la_min - barrel.capped_la_min),
        la_max=barrel.base_la_max + fraction * (barrel.capped_la_max - barrel.base_la_max),
    )


def is_barrel(exit_velo: float, launch_angle: float, config: ScoringConfig) -> bool:
    window = barrel_window(exit_velo, config)
    return window is not None and window.contains(launch_angle)


def batted_ball_type(launch_angle: float | None, config: ScoringConfig) -> BattedBallType:
    """Half-open bands: [-inf, gb_max) GB, [ld_min, ld_max) LD, [ld_max, fb_max) FB, [fb_max, inf) PU."""
    if launch_angle is None or np.isnan(launch_angle):
        return BattedBallType.UNKNOWN
    bands = config.batted_ball_types
    if launch_angle < bands.gb_max:
        return BattedBallType.GROUND_BALL
    if bands.ld_min <= launch_angle < bands.ld_max:
        return BattedBallType.LINE_DRIVE
    if bands.ld_max <= launch_angle < bands.fb_max:
        return BattedBallType.FLY_BALL
    if launch_angle >= bands.fb_max:
        return BattedBallType.POP_UP
    # Only reachable when gb_max < ld_min leaves a gap.
    return BattedBallType.UNKNOWN


def _angle_adjustment(launch_angle: float, config: ScoringConfig) -> tuple[float, str]:
    weights = config.contact_score
    sweet = config.sweet_spot
    if weights.optimal_la_min <= launch_angle <= weights.optimal_la_max:
        return weights.optimal_bonus, "optimal"
    if weights.very_good_la_min <= launch_angle <= weights.very_good_la_max:
        return weights.very_good_bonus, "very_good"
    if sweet.la_min <= launch_angle <= sweet.la_max:
        return weights.sweet_spot_la_bonus, "sweet_spot"
    if 0 <= launch_angle < sweet.la_min:
        return weights.flat_penalty, "flat"
    if sweet.la_max < launch_angle <= weights.pop_up_la_min:
        return weights.high_penalty, "high"
    if launch_angle > weights.pop_up_la_min:
        return weights.pop_up_penalty, "pop_up"
    return weights.negative_la_penalty, "negative"


def contact_quality_score(exit_velo: float, launch_angle: float, config: ScoringConfig) -> ContactScore:
    """0-100 contact quality from velocity, launch angle and quality bonuses."""
    if exit_velo <= 0:
        return ContactScore(score=0)

    weights = config.contact_score
    fraction = clamp((exit_velo - weights.ev_min) / (weights.ev_max - weights.ev_min), 0.0, 1.0)
    ev_points = fraction * weights.ev_max_points
    la_points, la_label = _angle_adjustment(launch_angle, config)

    hard_hit = is_hard_hit(exit_velo, config)
    barrel = is_barrel(exit_velo, launch_angle, config)
    # Barrel supersedes the plain sweet-spot bonus.
    sweet_spot = is_sweet_spot(launch_angle, config) and not barrel

    breakdown = {
        "ev_points": round(ev_points, 1),
        "la_points": la_points,
        "hard_hit_bonus": weights.hard_hit_bonus if hard_hit else 0.0,
        "sweet_spot_bonus": weights.sweet_spot_bonus if sweet_spot else 0.0,
        "barrel_bonus": weights.barrel_bonus if barrel else 0.0,
    }
    raw = ev_points + la_points + breakdown["hard_hit_bonus"] + breakdown["sweet_spot_bonus"] + breakdown["barrel_bonus"]
    return ContactScore(
        score=int(clamp(round_half_up(raw), 0, 100)),
        breakdown=breakdown,
        la_label=la_label,
    )


def classify_swing(exit_velo: float, launch_angle: float, config: ScoringConfig) -> SwingClassification:
    contact = exit_velo > 0
    return SwingClassification(
        exit_velo_mph=exit_velo,
        launch_angle_deg=launch_angle,
        is_hard_hit=contact and is_hard_hit(exit_velo, config),
        is_sweet_spot=contact and is_sweet_spot(launch_angle, config),
        is_barrel=contact and is_barrel(exit_velo, launch_angle, config),
        batted_ball_type=batted_ball_type(launch_angle, config) if contact else BattedBallType.UNKNOWN,
        contact=contact_quality_score(exit_velo, launch_angle, config),
    )


def score_swings(swings: Sequence[Swing], config: ScoringConfig) -> pd.DataFrame:
    """Per-swing classification table in input order."""
    columns = [
        "swing_index",
        "exit_velo_mph",
        "launch_angle_deg",
        "distance_ft",
        "result",
        "is_contact",
        "is_hard_hit",
        "is_sweet_spot",
        "is_barrel",
        "batted_ball_type",
        "la_label",
        "contact_score",
    ]
    rows = []
    for idx, swing in enumerate(swings):
        classification = classify_swing(swing.exit_velo_mph, swing.launch_angle_deg, config)
        rows.append(
            {
                "swing_index": idx,
                "exit_velo_mph": swing.exit_velo_mph,
                "launch_angle_deg": swing.launch_angle_deg,
                "distance_ft": swing.distance_ft,
                "result": swing.result,
                "is_contact": not swing.is_miss,
                "is_hard_hit": classification.is_hard_hit,
                "is_sweet_spot": classification.is_sweet_spot,
                "is_barrel": classification.is_barrel,
                "batted_ball_type": classification.batted_ball_type.value,
                "la_label": classification.contact.la_label,
                "contact_score": classification.contact_score,
            }
        )
    return pd.DataFrame(rows, columns=columns)


def contact_quality_summary(scored: pd.DataFrame) -> dict[str, float | int]:
    """Session rates over contact swings of a :func:`score_swings` table."""
    contact = scored.loc[scored["is_contact"].astype(bool)] if not scored.empty else scored
    total = int(len(contact))
    if total == 0:
        return {"total_events": 0}

    def pct(mask: pd.Series) -> float:
        return round(float(mask.sum()) / total * 100.0, 1)

    bb_types = contact["batted_ball_type"]
    summary: dict[str, float | int] = {
        "total_events": total,
        "avg_ev": round(float(contact["exit_velo_mph"].mean()), 1),
        "max_ev": round(float(contact["exit_velo_mph"].max()), 1),
        "min_ev": round(float(contact["exit_velo_mph"].min()), 1),
        "avg_la": round(float(contact["launch_angle_deg"].mean()), 1),
        "hard_hit_pct": pct(contact["is_hard_hit"]),
        "sweet_spot_pct": pct(contact["is_sweet_spot"]),
        "barrel_pct": pct(contact["is_barrel"]),
        "gb_pct": pct(bb_types == BattedBallType.GROUND_BALL.value),
        "ld_pct": pct(bb_types == BattedBallType.LINE_DRIVE.value),
        "fb_pct": pct(bb_types == BattedBallType.FLY_BALL.value),
        "pu_pct": pct(bb_types == BattedBallType.POP_UP.value),
        "avg_contact_score": round(float(contact["contact_score"].mean()), 1),
        "max_contact_score": int(contact["contact_score"].max()),
        "min_contact_score": int(contact["contact_score"].min()),
    }
    distances = pd.to_numeric(contact["distance_ft"], errors="coerce")
    distances = distances[distances > 0]
    if not distances.empty:
        summary["avg_distance"] = round_half_up(float(distances.mean()))
        summary["max_distance"] = round_half_up(float(distances.max()))
    return summary


def ball_pillar_score(swings: Sequence[Swing], config: ScoringConfig) -> int | None:
    """Mean contact score of balls in play on the 20-80 scale; None without contact."""
    scores = [
        contact_quality_score(swing.exit_velo_mph, swing.launch_angle_deg, config).score
        for swing in swings
        if not swing.is_miss
    ]
    if not scores:
        logger.debug("No contact swings; Ball pillar unavailable")
        return None
    return percent_to_scale(float(np.mean(scores)))


def contact_score_label(score: float) -> str:
    """Player-facing label for a 0-100 contact score."""
    for cutoff, label in (
        (90, "Elite"),
        (80, "Excellent"),
        (70, "Very Good"),
        (60, "Good"),
        (50, "Average"),
        (40, "Below Average"),
        (30, "Poor"),
    ):
        if score >= cutoff:
            return label
    return "Very Poor"
