"""Rounding and scale conversions used by every scorer."""

from __future__ import annotations

import math

from .constants import SCALE_MAX, SCALE_MIN


def round_half_up(value: float) -> int:
    """Round .5 away from zero toward +inf, matching coach-sheet arithmetic."""
    return int(math.floor(value + 0.5))


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def percent_to_scale(score_0_100: float) -> int:
    """Map a 0-100 score linearly onto the 20-80 scouting scale."""
    bounded = clamp(float(score_0_100), 0.0, 100.0)
    return round_half_up(SCALE_MIN + bounded * (SCALE_MAX - SCALE_MIN) / 100.0)
