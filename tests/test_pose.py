from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from swing_lab.constants import IDEAL_SEGMENT_ORDER
from swing_lab.pose import (
    analyze_pose_sequence,
    angular_speed,
    average_position,
    segment_series_from_pose,
)

FRAMES = 7


def _joint(columns: dict, name: str, x: float, y: float, moves_at: int | None = None) -> None:
    columns[f"{name}_x"] = [x + (10.0 if moves_at is not None and i >= moves_at else 0.0) for i in range(FRAMES)]
    columns[f"{name}_y"] = [float(y)] * FRAMES


def _pose_frame() -> pd.DataFrame:
    """Right-handed swing where each segment jumps 10 px in its own frame, rear leg first."""
    columns: dict = {"time_ms": [10.0 * i for i in range(FRAMES)]}
    _joint(columns, "right_knee", 5, 50, moves_at=1)
    _joint(columns, "right_ankle", 5, 80, moves_at=1)
    _joint(columns, "left_knee", -5, 50, moves_at=2)
    _joint(columns, "left_ankle", -5, 80, moves_at=2)
    _joint(columns, "left_hip", -1, 0)
    _joint(columns, "right_hip", 1, 0)
    columns["left_shoulder_x"] = [-1.0] * 3 + [9.0] * 4
    columns["left_shoulder_y"] = [10.0] * 3 + [-1.0] * 4
    columns["right_shoulder_x"] = [1.0] * 3 + [11.0] * 4
    columns["right_shoulder_y"] = [10.0] * 3 + [1.0] * 4
    _joint(columns, "left_elbow", -3, 20, moves_at=4)
    _joint(columns, "left_wrist", -2, 25, moves_at=4)
    _joint(columns, "right_elbow", 3, 20, moves_at=5)
    _joint(columns, "right_wrist", 2, 25, moves_at=5)
    _joint(columns, "bat_end", 0, 40, moves_at=6)
    return pd.DataFrame(columns)


def test_segment_curves_follow_joint_motion() -> None:
    series = segment_series_from_pose(_pose_frame())
    assert [s.segment for s in series] == list(IDEAL_SEGMENT_ORDER)
    assert series[0].timestamps == (10.0, 20.0, 30.0, 40.0, 50.0, 60.0)

    peaks = [int(np.argmax(s.values)) for s in series]
    assert peaks == [0, 1, 2, 3, 4, 5]

    by_segment = {s.segment: s.values for s in series}
    assert by_segment["rear_leg"][0] == pytest.approx(1000.0)
    assert by_segment["torso"][2] == pytest.approx(9000.0)
    assert by_segment["bat"] == pytest.approx((0.0, 0.0, 0.0, 0.0, 0.0, 1000.0))


def test_pose_sequence_in_ideal_order() -> None:
    analysis = analyze_pose_sequence(_pose_frame(), swing_id="p1")
    assert analysis.swing_id == "p1"
    assert analysis.actual_order == IDEAL_SEGMENT_ORDER
    assert analysis.sequence_match
    assert analysis.sequence_score == 100


def test_left_handed_batter_mirrors_sides() -> None:
    analysis = analyze_pose_sequence(_pose_frame(), dominant_hand="l", smooth_window=1)
    assert analysis.actual_order == ("lead_leg", "rear_leg", "torso", "top_arm", "bottom_arm", "bat")
    assert not analysis.sequence_match


def test_bat_estimated_from_wrists_without_bat_end() -> None:
    frame = _pose_frame().drop(columns=["bat_end_x", "bat_end_y"])
    bat = {s.segment: s.values for s in segment_series_from_pose(frame)}["bat"]
    assert bat == pytest.approx((0.0, 0.0, 0.0, 750.0, 750.0, 0.0))


def test_untracked_bat_frames_fall_back_to_wrists() -> None:
    frame = _pose_frame()
    frame.loc[3, "bat_end_x"] = np.nan
    bat = {s.segment: s.values for s in segment_series_from_pose(frame)}["bat"]
    assert bat[2] == pytest.approx(0.0)
    assert bat[3] == pytest.approx(750.0)
    assert bat[5] == pytest.approx(1000.0)


def test_pelvis_column_overrides_hips() -> None:
    frame = _pose_frame()
    frame["pelvis_x"] = 0.0
    frame["pelvis_y"] = 0.0
    frame = frame.drop(columns=["left_hip_x", "left_hip_y", "right_hip_x", "right_hip_y"])
    torso = {s.segment: s.values for s in segment_series_from_pose(frame)}["torso"]
    assert torso[2] == pytest.approx(9000.0)


def test_stalled_clock_gives_zero_speeds() -> None:
    frame = _pose_frame()
    frame["time_ms"] = 0.0
    for series in segment_series_from_pose(frame):
        assert all(value == 0.0 for value in series.values)


def test_average_position_skips_missing_joints() -> None:
    a = np.array([[0.0, 0.0], [np.nan, 1.0], [np.nan, np.nan]])
    b = np.array([[2.0, 4.0], [4.0, 6.0], [np.nan, 3.0]])
    assert average_position(a, b).tolist() == [[1.0, 2.0], [4.0, 6.0], [0.0, 0.0]]


def test_angular_speed_wraps_across_pi() -> None:
    points = np.array([[-1.0, 0.01], [-1.0, -0.01]])
    pivots = np.zeros((2, 2))
    speed = angular_speed(points, pivots, np.array([1000.0]))
    assert speed[0] == pytest.approx(np.degrees(0.02), rel=1e-3)


def test_invalid_pose_inputs() -> None:
    with pytest.raises(ValueError):
        segment_series_from_pose(_pose_frame(), dominant_hand="switch")
    with pytest.raises(KeyError):
        segment_series_from_pose(_pose_frame().drop(columns=["right_knee_x"]))
    with pytest.raises(KeyError):
        segment_series_from_pose(_pose_frame(), time_column="frame")

    single = analyze_pose_sequence(_pose_frame().iloc[:1])
    assert single.actual_order == ()
    assert not single.is_complete
