from __future__ import annotations

from swing_lab.normalize import Swing
from swing_lab.session import ball_score_from_points, summarize_swings, swing_points


def _swing(ev: float, la: float, result: str = "", hit_type: str = "", distance: float | None = None) -> Swing:
    return Swing(exit_velo_mph=ev, launch_angle_deg=la, distance_ft=distance, result=result, hit_type=hit_type)


def test_empty_session_is_zeroed_without_data() -> None:
    stats = summarize_swings([])
    assert not stats.has_data
    assert stats.total_swings == 0
    assert stats.contact_rate == 0.0
    assert stats.results_breakdown == {}


def test_contact_rate_bounds() -> None:
    all_contact = summarize_swings([_swing(90, 12), _swing(80, 5)])
    assert all_contact.contact_rate == 100.0

    mixed = summarize_swings([_swing(0, 0), _swing(90, 12), _swing(0, 0), _swing(85, 30)])
    assert mixed.misses == 2
    assert mixed.contact_rate == 50.0

    all_miss = summarize_swings([_swing(0, 0), _swing(0, 0)])
    assert all_miss.contact_rate == 0.0
    assert 0.0 <= all_miss.contact_rate <= 100.0


def test_fouls_only_counted_when_results_exist() -> None:
    with_results = summarize_swings([_swing(88, 40, "Foul"), _swing(92, 15, "1B"), _swing(0, 0)])
    assert with_results.fouls == 1
    assert with_results.balls_in_play == 1
    assert with_results.avg_exit_velo == 92.0

    without_results = summarize_swings([_swing(88, 40), _swing(92, 15), _swing(0, 0)])
    assert without_results.fouls == 0
    assert without_results.balls_in_play == 2
    assert without_results.avg_exit_velo == 90.0


def test_misses_never_enter_velocity_stats() -> None:
    stats = summarize_swings([_swing(0, 0), _swing(100, 20, distance=380), _swing(80, -5, distance=0)])
    assert stats.min_exit_velo == 80.0
    assert stats.max_exit_velo == 100.0
    assert stats.velo_100_plus == 1
    assert stats.max_distance == 380.0
    assert stats.avg_distance == 380.0


def test_quality_and_barrel_counts_and_buckets() -> None:
    swings = [
        _swing(96, 10),  # quality + barrel
        _swing(94, 25),  # quality only
        _swing(99, 26),  # fly ball
        _swing(70, 5),  # ground ball
        _swing(75, 55),  # pop-up
    ]
    stats = summarize_swings(swings)
    assert stats.quality_hits == 2
    assert stats.barrel_hits == 1
    assert stats.quality_hit_pct == 40.0
    assert stats.barrel_pct == 20.0
    assert stats.ground_ball_count == 1
    assert stats.line_drive_count == 2
    assert stats.fly_ball_count == 1
    assert stats.pop_up_count == 1


def test_swing_points_bands() -> None:
    assert swing_points(_swing(0, 0)) == -5
    assert swing_points(_swing(90, 20, "foul")) == 0
    assert swing_points(_swing(101, 15, "HR")) == 55
    assert swing_points(_swing(96, 29, "2b")) == 15 + 5 + 15
    assert swing_points(_swing(84, -3)) == 2 - 5
    assert swing_points(_swing(86, 40, "", "LD")) == 5 + 0 + 5
    assert swing_points(_swing(91, 12, "Out", "gb")) == 10 + 10


def test_ball_score_breakpoints() -> None:
    assert ball_score_from_points(35) == 80
    assert ball_score_from_points(34.9) == 70
    assert ball_score_from_points(25) == 60
    assert ball_score_from_points(20) == 55
    assert ball_score_from_points(15) == 50
    assert ball_score_from_points(10) == 45
    assert ball_score_from_points(5) == 40
    assert ball_score_from_points(4.9) == 30
    assert ball_score_from_points(-5) == 30


def test_points_and_breakdowns() -> None:
    swings = [_swing(101, 15, "HR", "FB"), _swing(0, 0), _swing(90, 20, "Foul", "LD")]
    stats = summarize_swings(swings, source="ava")
    assert stats.source == "ava"
    assert stats.total_points == 55 - 5 + 0
    assert stats.points_per_swing == 16.7
    assert stats.ball_score == 50
    assert stats.results_breakdown == {"HR": 1, "Miss": 1, "Foul": 1}
    assert stats.hit_types_breakdown == {"FB": 1}


def test_zero_velocity_foul_is_a_foul_not_a_miss() -> None:
    stats = summarize_swings([_swing(0, 0, "Foul"), _swing(90, 15, "1B"), _swing(0, 0)])
    assert stats.misses == 1
    assert stats.fouls == 1
    assert stats.balls_in_play == 1
    assert stats.misses + stats.fouls + stats.balls_in_play == stats.total_swings
    assert stats.contact_rate == 66.7
    assert swing_points(_swing(0, 0, "Foul")) == 0
    assert swing_points(_swing(0, 0, "Foul"), fouls_determinable=False) == -5


def test_distances_round_half_up() -> None:
    stats = summarize_swings([_swing(90, 15, distance=300), _swing(92, 18, distance=301)])
    assert stats.avg_distance == 301.0

    single = summarize_swings([_swing(95, 20, distance=300.5)])
    assert single.max_distance == 301.0
    assert single.avg_distance == 301.0
