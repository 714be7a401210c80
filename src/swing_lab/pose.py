"""Per-segment speed curves from 2D pose keypoints for kinetic-sequence analysis.

Pose tables carry one row per video frame, a time column in milliseconds and
``<joint>_x`` / ``<joint>_y`` pixel columns per keypoint. Each segment's curve
is a speed proxy sampled between consecutive frames, so a table of ``n`` frames
yields ``n - 1`` samples stamped with the later frame's time.
"""

from __future__ import annotations

import logging

import numpy as np
import pandas as pd

from .constants import IDEAL_SEGMENT_ORDER
from .sequence import SIGNAL_ENERGY, SegmentSeries, SwingSequenceAnalysis, analyze_sequence

logger = logging.getLogger(__name__)

POSE_TIME_COLUMN = "time_ms"
POSE_SMOOTH_WINDOW = 3
# Bat barrel travels farther than the hands for the same rotation.
BAT_FROM_WRIST_FACTOR = 1.5

REQUIRED_JOINTS = (
    "left_knee",
    "right_knee",
    "left_ankle",
    "right_ankle",
    "left_shoulder",
    "right_shoulder",
    "left_elbow",
    "right_elbow",
    "left_wrist",
    "right_wrist",
)


def has_joint(frame: pd.DataFrame, joint: str) -> bool:
    return f"{joint}_x" in frame.columns and f"{joint}_y" in frame.columns


def joint_positions(frame: pd.DataFrame, joint: str) -> np.ndarray:
    """(n_frames, 2) pixel positions; non-numeric cells become NaN."""
    if not has_joint(frame, joint):
        raise KeyError(f"Pose table has no columns for joint '{joint}'")
    xy = frame[[f"{joint}_x", f"{joint}_y"]].apply(pd.to_numeric, errors="coerce")
    return xy.to_numpy(dtype=float)


def average_position(*positions: np.ndarray) -> np.ndarray:
    """Per-frame mean of the joints with finite coordinates; (0, 0) when none are."""
    stacked = np.stack(positions)
    valid = np.isfinite(stacked).all(axis=2, keepdims=True)
    counts = valid.sum(axis=0).astype(float)
    totals = np.where(valid, stacked, 0.0).sum(axis=0)
    return np.divide(totals, counts, out=np.zeros_like(totals), where=counts > 0)


def linear_speed(positions: np.ndarray, dt_ms: np.ndarray) -> np.ndarray:
    """Pixels per second between consecutive frames; 0 where time does not advance."""
    step = np.diff(positions, axis=0)
    distance = np.hypot(step[:, 0], step[:, 1])
    speed = np.divide(distance, dt_ms / 1000.0, out=np.zeros_like(distance), where=dt_ms > 0)
    return np.nan_to_num(speed, nan=0.0, posinf=0.0, neginf=0.0)


def angular_speed(points: np.ndarray, pivots: np.ndarray, dt_ms: np.ndarray) -> np.ndarray:
    """Degrees per second swept by ``points`` about the previous frame's pivot."""
    pivot = pivots[:-1]
    before = np.arctan2(points[:-1, 1] - pivot[:, 1], points[:-1, 0] - pivot[:, 0])
    after = np.arctan2(points[1:, 1] - pivot[:, 1], points[1:, 0] - pivot[:, 0])
    swept = np.abs((after - before + np.pi) % (2 * np.pi) - np.pi)
    speed = np.divide(np.degrees(swept), dt_ms / 1000.0, out=np.zeros_like(swept), where=dt_ms > 0)
    return np.nan_to_num(speed, nan=0.0, posinf=0.0, neginf=0.0)


def segment_series_from_pose(
    frame: pd.DataFrame,
    *,
    dominant_hand: str = "R",
    time_column: str = POSE_TIME_COLUMN,
) -> list[SegmentSeries]:
    """Speed curve for every segment of the kinetic chain, in ideal firing order.

    Legs and arms use the mean speed of their two joints. The torso uses the
    shoulder midpoint's rotation about the pelvis (or the hip midpoint when no
    pelvis keypoint is tracked). The bat uses ``bat_end`` where it is tracked
    in both frames, otherwise the wrist midpoint's speed scaled up.
    """
    hand = str(dominant_hand).strip().upper()
    if hand not in ("R", "L"):
        raise ValueError(f"dominant_hand must be 'R' or 'L', got {dominant_hand!r}")
    if time_column not in frame.columns:
        raise KeyError(f"Pose table has no time column '{time_column}'")
    missing = [joint for joint in REQUIRED_JOINTS if not has_joint(frame, joint)]
    if not has_joint(frame, "pelvis"):
        missing.extend(joint for joint in ("left_hip", "right_hip") if not has_joint(frame, joint))
    if missing:
        raise KeyError(f"Pose table is missing joints: {missing}")

    times = pd.to_numeric(frame[time_column], errors="coerce").to_numpy(dtype=float)
    timestamps = tuple(float(t) for t in times[1:])
    if len(times) < 2:
        logger.warning("Pose table has %d frame(s); no segment speeds can be computed", len(times))
    dt_ms = np.diff(times)

    rear, lead = ("right", "left") if hand == "R" else ("left", "right")
    joints = {joint: joint_positions(frame, joint) for joint in REQUIRED_JOINTS}

    def pair_speed(first: str, second: str) -> np.ndarray:
        return (linear_speed(joints[first], dt_ms) + linear_speed(joints[second], dt_ms)) / 2.0

    if has_joint(frame, "pelvis"):
        pelvis = joint_positions(frame, "pelvis")
    else:
        pelvis = average_position(joint_positions(frame, "left_hip"), joint_positions(frame, "right_hip"))
    shoulders = average_position(joints["left_shoulder"], joints["right_shoulder"])

    curves = {
        "rear_leg": pair_speed(f"{rear}_knee", f"{rear}_ankle"),
        "lead_leg": pair_speed(f"{lead}_knee", f"{lead}_ankle"),
        "torso": angular_speed(shoulders, pelvis, dt_ms),
        "bottom_arm": pair_speed(f"{lead}_elbow", f"{lead}_wrist"),
        "top_arm": pair_speed(f"{rear}_elbow", f"{rear}_wrist"),
        "bat": _bat_speed(frame, joints, dt_ms),
    }
    return [
        SegmentSeries(segment=segment, timestamps=timestamps, values=tuple(float(v) for v in curves[segment]))
        for segment in IDEAL_SEGMENT_ORDER
    ]


def analyze_pose_sequence(
    frame: pd.DataFrame,
    *,
    swing_id: str = "",
    dominant_hand: str = "R",
    time_column: str = POSE_TIME_COLUMN,
    smooth_window: int = POSE_SMOOTH_WINDOW,
) -> SwingSequenceAnalysis:
    series = segment_series_from_pose(frame, dominant_hand=dominant_hand, time_column=time_column)
    return analyze_sequence(series, swing_id=swing_id, signal=SIGNAL_ENERGY, smooth_window=smooth_window)


def _bat_speed(frame: pd.DataFrame, joints: dict[str, np.ndarray], dt_ms: np.ndarray) -> np.ndarray:
    wrists = average_position(joints["left_wrist"], joints["right_wrist"])
    estimated = linear_speed(wrists, dt_ms) * BAT_FROM_WRIST_FACTOR
    if not has_joint(frame, "bat_end"):
        return estimated
    bat_end = joint_positions(frame, "bat_end")
    tracked = np.isfinite(bat_end).all(axis=1)
    both_tracked = tracked[:-1] & tracked[1:]
    return np.where(both_tracked, linear_speed(bat_end, dt_ms), estimated)
