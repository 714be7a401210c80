from __future__ import annotations

import numpy as np

from swing_lab.normalize import Swing
from swing_lab.pillars import (
    BattedBallType,
    ball_pillar_score,
    barrel_window,
    batted_ball_type,
    classify_swing,
    contact_quality_score,
    contact_quality_summary,
    contact_score_label,
    is_barrel,
    is_hard_hit,
    is_sweet_spot,
    score_swings,
)
from swing_lab.scoring_config import ScoringConfig, merge_config

CONFIG = ScoringConfig()


def test_hard_hit_and_sweet_spot_predicates() -> None:
    assert is_hard_hit(95.0, CONFIG)
    assert not is_hard_hit(94.9, CONFIG)
    assert is_sweet_spot(8.0, CONFIG)
    assert is_sweet_spot(32.0, CONFIG)
    assert not is_sweet_spot(32.1, CONFIG)


def test_predicates_follow_supplied_config() -> None:
    lenient = merge_config(CONFIG, {"hard_hit": {"ev_threshold": 90}})
    assert is_hard_hit(92.0, lenient)
    assert not is_hard_hit(92.0, CONFIG)


def test_barrel_window_endpoints() -> None:
    assert barrel_window(97.9, CONFIG) is None
    base = barrel_window(98.0, CONFIG)
    assert (base.la_min, base.la_max) == (26.0, 30.0)
    capped = barrel_window(116.0, CONFIG)
    assert (capped.la_min, capped.la_max) == (8.0, 50.0)
    mid = barrel_window(107.0, CONFIG)
    assert mid.la_min == 17.0
    assert mid.la_max == 40.0


def test_barrel_window_width_is_monotonic_and_flat_above_cap() -> None:
    widths = [barrel_window(v, CONFIG).width for v in np.linspace(98.0, 116.0, 73)]
    assert all(later >= earlier for earlier, later in zip(widths, widths[1:]))

    above = {barrel_window(v, CONFIG).width for v in (116.0, 118.5, 125.0)}
    assert above == {42.0}


def test_is_barrel_uses_window() -> None:
    assert is_barrel(98.0, 28.0, CONFIG)
    assert not is_barrel(98.0, 20.0, CONFIG)
    assert is_barrel(110.0, 20.0, CONFIG)
    assert not is_barrel(97.0, 28.0, CONFIG)


def test_batted_ball_boundaries_belong_to_band_above() -> None:
    assert batted_ball_type(9.99, CONFIG) is BattedBallType.GROUND_BALL
    assert batted_ball_type(10.0, CONFIG) is BattedBallType.LINE_DRIVE
    assert batted_ball_type(25.0, CONFIG) is BattedBallType.FLY_BALL
    assert batted_ball_type(50.0, CONFIG) is BattedBallType.POP_UP
    assert batted_ball_type(-20.0, CONFIG) is BattedBallType.GROUND_BALL
    assert batted_ball_type(None, CONFIG) is BattedBallType.UNKNOWN


def test_non_contact_short_circuits() -> None:
    for ev in (0.0, -4.0):
        result = contact_quality_score(ev, 20.0, CONFIG)
        assert result.score == 0
        assert result.breakdown == {}


def test_contact_score_components() -> None:
    # 101 mph barrel window starts at 23 deg, so 20 deg earns the sweet-spot bonus instead.
    result = contact_quality_score(101.0, 20.0, CONFIG)
    assert result.la_label == "optimal"
    assert not is_barrel(101.0, 20.0, CONFIG)
    assert result.breakdown == {
        "ev_points": 52.2,
        "la_points": 15.0,
        "hard_hit_bonus": 10.0,
        "sweet_spot_bonus": 10.0,
        "barrel_bonus": 0.0,
    }
    assert result.score == 87


def test_barrel_supersedes_sweet_spot_bonus() -> None:
    result = contact_quality_score(100.0, 28.0, CONFIG)
    assert is_barrel(100.0, 28.0, CONFIG)
    assert result.breakdown["barrel_bonus"] == 15.0
    assert result.breakdown["sweet_spot_bonus"] == 0.0

    plain = contact_quality_score(85.0, 28.0, CONFIG)
    assert plain.breakdown["barrel_bonus"] == 0.0
    assert plain.breakdown["sweet_spot_bonus"] == 10.0


def test_angle_adjustments_are_exclusive() -> None:
    labels = {
        20.0: ("optimal", 15.0),
        13.0: ("very_good", 10.0),
        30.0: ("sweet_spot", 5.0),
        4.0: ("flat", -5.0),
        40.0: ("high", -5.0),
        60.0: ("pop_up", -15.0),
        -8.0: ("negative", -10.0),
    }
    for angle, (label, points) in labels.items():
        result = contact_quality_score(80.0, angle, CONFIG)
        assert result.la_label == label
        assert result.breakdown["la_points"] == points


def test_contact_score_always_in_bounds() -> None:
    for ev in np.linspace(-10.0, 130.0, 29):
        for la in np.linspace(-60.0, 90.0, 31):
            score = contact_quality_score(float(ev), float(la), CONFIG).score
            assert 0 <= score <= 100


def test_classify_swing_for_miss() -> None:
    classification = classify_swing(0.0, 25.0, CONFIG)
    assert not classification.is_sweet_spot
    assert classification.batted_ball_type is BattedBallType.UNKNOWN
    assert classification.contact_score == 0


def test_score_swings_table_and_summary() -> None:
    swings = [
        Swing(exit_velo_mph=101.0, launch_angle_deg=20.0, distance_ft=400.0, result="HR"),
        Swing(exit_velo_mph=0.0, launch_angle_deg=0.0),
        Swing(exit_velo_mph=70.0, launch_angle_deg=-5.0, distance_ft=20.0),
    ]
    table = score_swings(swings, CONFIG)
    assert list(table["swing_index"]) == [0, 1, 2]
    assert list(table["is_contact"]) == [True, False, True]
    assert table.loc[1, "contact_score"] == 0

    summary = contact_quality_summary(table)
    assert summary["total_events"] == 2
    assert summary["hard_hit_pct"] == 50.0
    assert summary["gb_pct"] == 50.0
    assert summary["max_distance"] == 400

    assert contact_quality_summary(score_swings([], CONFIG)) == {"total_events": 0}


def test_ball_pillar_score_scale() -> None:
    assert ball_pillar_score([Swing(exit_velo_mph=0.0, launch_angle_deg=0.0)], CONFIG) is None
    score = ball_pillar_score([Swing(exit_velo_mph=115.0, launch_angle_deg=20.0)], CONFIG)
    assert score == 80
    weak = ball_pillar_score([Swing(exit_velo_mph=60.0, launch_angle_deg=-10.0)], CONFIG)
    assert weak == 20


def test_contact_score_label() -> None:
    assert contact_score_label(95) == "Elite"
    assert contact_score_label(50) == "Average"
    assert contact_score_label(10) == "Very Poor"
