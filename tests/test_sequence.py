from __future__ import annotations

import pytest

from swing_lab.constants import IDEAL_SEGMENT_ORDER
from swing_lab.sequence import (
    DEFECT_ARMS_BEFORE_TORSO,
    DEFECT_BAT_DRAG,
    DEFECT_EARLY_TORSO,
    DEFECT_LATE_LEGS,
    DEFECT_NO_CLEAR_SEQUENCE,
    SIGNAL_ANGLE,
    SegmentSeries,
    analyze_peak_times,
    analyze_sequence,
    brain_consistency_score,
    count_inversions,
    find_peak,
    playback_state,
    sequence_score,
)

IDEAL_TIMES = {segment: 100.0 * idx for idx, segment in enumerate(IDEAL_SEGMENT_ORDER)}


def test_ideal_order_scores_100_without_defects() -> None:
    analysis = analyze_peak_times(IDEAL_TIMES, swing_id="s1")
    assert analysis.actual_order == IDEAL_SEGMENT_ORDER
    assert analysis.inversions == 0
    assert analysis.sequence_score == 100
    assert analysis.sequence_match
    assert analysis.defects == ()
    assert analysis.errors == ()
    assert analysis.summary.startswith("Body-to-Bat sequence: in sequence")


def test_reversed_order_scores_zero_with_every_defect() -> None:
    reversed_times = {segment: -t for segment, t in IDEAL_TIMES.items()}
    analysis = analyze_peak_times(reversed_times)
    assert analysis.actual_order == tuple(reversed(IDEAL_SEGMENT_ORDER))
    assert analysis.inversions == 15
    assert analysis.sequence_score == 0
    assert not analysis.sequence_match
    assert analysis.defects == (
        DEFECT_EARLY_TORSO,
        DEFECT_LATE_LEGS,
        DEFECT_ARMS_BEFORE_TORSO,
        DEFECT_BAT_DRAG,
        DEFECT_NO_CLEAR_SEQUENCE,
    )


def test_swapped_legs_reports_position_errors() -> None:
    times = dict(IDEAL_TIMES, rear_leg=10.0, lead_leg=0.0)
    analysis = analyze_peak_times(times)
    assert analysis.inversions == 1
    assert analysis.sequence_score == 93
    assert analysis.defects == ()
    errors = {error.segment: (error.expected_position, error.actual_position) for error in analysis.errors}
    assert errors == {"rear_leg": (1, 2), "lead_leg": (2, 1)}
    assert analysis.summary == "Body-to-Bat sequence: out of sequence. Lead Leg fired early. Rear Leg fired late."


def test_simultaneous_peaks_keep_ideal_order() -> None:
    times = dict(IDEAL_TIMES, lead_leg=0.0)
    analysis = analyze_peak_times(times)
    assert analysis.actual_order[:2] == ("rear_leg", "lead_leg")
    assert analysis.inversions == 0


def test_missing_segment_never_matches_and_skips_rules() -> None:
    times = {segment: t for segment, t in IDEAL_TIMES.items() if segment != "bat"}
    analysis = analyze_peak_times(times)
    assert analysis.sequence_score == 100
    assert not analysis.sequence_match
    assert DEFECT_BAT_DRAG not in analysis.defects
    assert not analysis.is_complete
    assert analysis.missing_segments == ("bat",)

    single = analyze_peak_times({"torso": 5.0})
    assert single.sequence_score == 100
    assert not single.sequence_match


def test_sequence_score_bounds() -> None:
    assert sequence_score(0, 6) == 100
    assert sequence_score(15, 6) == 0
    assert sequence_score(0, 1) == 100
    assert count_inversions(("torso", "rear_leg", "lead_leg")) == 2


def test_energy_and_angle_peaks_differ() -> None:
    series = SegmentSeries(
        segment="torso",
        timestamps=(0.0, 10.0, 20.0, 30.0, 40.0, 50.0),
        values=(0.0, 0.0, 5.0, 6.0, 6.0, 6.0),
    )
    energy_peak = find_peak(series)
    assert energy_peak.peak_time == 30.0
    angle_peak = find_peak(series, signal=SIGNAL_ANGLE)
    assert angle_peak.peak_time == 20.0
    assert angle_peak.peak_value == pytest.approx(0.3)


def test_series_validation_and_empty_series() -> None:
    with pytest.raises(ValueError):
        SegmentSeries(segment="bat", timestamps=(0.0, 1.0), values=(1.0,))
    assert find_peak(SegmentSeries(segment="bat", timestamps=(), values=())) is None
    with pytest.raises(ValueError):
        find_peak(SegmentSeries(segment="bat", timestamps=(0.0,), values=(1.0,)), signal="velocity")


def test_analyze_sequence_from_series() -> None:
    timestamps = tuple(float(t) for t in range(0, 70, 10))
    series = []
    for idx, segment in enumerate(IDEAL_SEGMENT_ORDER):
        values = [0.0] * len(timestamps)
        values[idx] = 10.0 + idx
        series.append(SegmentSeries(segment=segment, timestamps=timestamps, values=tuple(values)))
    series.append(SegmentSeries(segment="head", timestamps=timestamps, values=(1.0,) * len(timestamps)))

    analysis = analyze_sequence(series, swing_id="swing-7")
    assert analysis.swing_id == "swing-7"
    assert analysis.sequence_match
    assert "head" not in analysis.peaks
    assert analysis.peaks["bat"].peak_time == 50.0


def test_brain_consistency_score() -> None:
    assert brain_consistency_score([]) is None
    assert brain_consistency_score([70, 70, 70]) == 80
    assert brain_consistency_score([100, 0]) == 20
    assert brain_consistency_score([80, 60]) == 63
    assert brain_consistency_score([0, 0]) == 80


def test_playback_state() -> None:
    analysis = analyze_peak_times(IDEAL_TIMES)
    state = playback_state(analysis, 210.0)
    assert state.segment_states["rear_leg"] == "peaked"
    assert state.segment_states["lead_leg"] == "peaked"
    assert state.segment_states["torso"] == "active"
    assert state.segment_states["bottom_arm"] == "pending"
    assert state.peaked_segments == ("rear_leg", "lead_leg")
    assert state.next_segment == "bottom_arm"

    partial = analyze_peak_times({"torso": 0.0})
    assert playback_state(partial, 0.0).segment_states["bat"] == "inactive"
