"""Kinetic-sequence analysis: segment peak timing, firing order and ordering defects.

Peak activation for each body segment is taken from its time series (energy
magnitude directly, or the differentiated angle for angle signals). The
observed firing order is compared with the ideal proximal-to-distal order by
counting pairwise inversions.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Iterable, Mapping, Sequence

import numpy as np

from .constants import ARM_SEGMENTS, IDEAL_SEGMENT_ORDER, LEG_SEGMENTS, SCALE_MAX, SCALE_MIN, SEGMENT_DISPLAY_NAMES
from .scales import round_half_up

logger = logging.getLogger(__name__)

SIGNAL_ENERGY = "energy"
SIGNAL_ANGLE = "angle"

DEFECT_EARLY_TORSO = "early_torso"
DEFECT_LATE_LEGS = "late_legs"
DEFECT_ARMS_BEFORE_TORSO = "arms_before_torso"
DEFECT_BAT_DRAG = "bat_drag"
DEFECT_NO_CLEAR_SEQUENCE = "no_clear_sequence"
NO_CLEAR_SEQUENCE_MIN_DEFECTS = 3

# Coefficient of variation at which Brain consistency bottoms out.
CONSISTENCY_CV_FLOOR = 0.5
PLAYBACK_ACTIVATION_WINDOW_MS = 50.0


@dataclass(frozen=True)
class SegmentSeries:
    """Uniformly sampled signal for one body segment (timestamps in ms)."""

    segment: str
    timestamps: tuple[float, ...]
    values: tuple[float, ...]

    def __post_init__(self) -> None:
        if len(self.timestamps) != len(self.values):
            raise ValueError(
                f"{self.segment}: timestamps ({len(self.timestamps)}) and values "
                f"({len(self.values)}) must have the same length"
            )


@dataclass(frozen=True)
class SegmentPeak:
    segment: str
    peak_time: float
    peak_value: float | None = None
    peak_index: int | None = None


@dataclass(frozen=True)
class SequenceError:
    """A segment that fired out of its ideal slot (1-based positions)."""

    segment: str
    expected_position: int
    actual_position: int
    description: str


@dataclass(frozen=True)
class SwingSequenceAnalysis:
    swing_id: str
    ideal_order: tuple[str, ...]
    peaks: dict[str, SegmentPeak]
    actual_order: tuple[str, ...]
    inversions: int
    sequence_match: bool
    sequence_score: int
    defects: tuple[str, ...]
    errors: tuple[SequenceError, ...]
    summary: str

    @property
    def is_complete(self) -> bool:
        return all(segment in self.peaks for segment in IDEAL_SEGMENT_ORDER)

    @property
    def missing_segments(self) -> tuple[str, ...]:
        return tuple(segment for segment in IDEAL_SEGMENT_ORDER if segment not in self.peaks)


@dataclass(frozen=True)
class PlaybackState:
    current_time: float
    segment_states: dict[str, str]
    peaked_segments: tuple[str, ...]
    next_segment: str | None


def differentiate(values: Sequence[float], timestamps: Sequence[float]) -> np.ndarray:
    """Central-difference derivative of ``values`` with respect to ``timestamps``."""
    y = np.asarray(values, dtype=float)
    if y.size < 2:
        return np.zeros_like(y)
    return np.gradient(y, np.asarray(timestamps, dtype=float))


def smooth_curve(values: Sequence[float], window: int = 3) -> np.ndarray:
    """Centered moving average; edges average over the samples available."""
    y = np.asarray(values, dtype=float)
    if window <= 1 or y.size == 0:
        return y
    kernel = np.ones(int(window), dtype=float)
    totals = np.convolve(y, kernel, mode="same")
    counts = np.convolve(np.ones_like(y), kernel, mode="same")
    return totals / counts


def find_peak(series: SegmentSeries, *, signal: str = SIGNAL_ENERGY, smooth_window: int = 1) -> SegmentPeak | None:
    """Time and magnitude of the segment's peak activation; None for an empty series."""
    if not series.values:
        return None
    if signal not in (SIGNAL_ENERGY, SIGNAL_ANGLE):
        raise ValueError(f"signal must be '{SIGNAL_ENERGY}' or '{SIGNAL_ANGLE}', got {signal!r}")

    curve = np.asarray(series.values, dtype=float)
    if signal == SIGNAL_ANGLE:
        curve = differentiate(curve, series.timestamps)
    magnitude = np.abs(smooth_curve(curve, smooth_window))
    if not np.isfinite(magnitude).any():
        return None
    # nanargmax returns the first index on ties.
    idx = int(np.nanargmax(np.where(np.isfinite(magnitude), magnitude, np.nan)))
    return SegmentPeak(
        segment=series.segment,
        peak_time=float(series.timestamps[idx]),
        peak_value=float(magnitude[idx]),
        peak_index=idx,
    )


def extract_peaks(
    series: Iterable[SegmentSeries],
    *,
    signal: str = SIGNAL_ENERGY,
    smooth_window: int = 1,
) -> dict[str, SegmentPeak]:
    peaks: dict[str, SegmentPeak] = {}
    for item in series:
        if item.segment not in IDEAL_SEGMENT_ORDER:
            logger.warning("Ignoring unknown segment %r", item.segment)
            continue
        peak = find_peak(item, signal=signal, smooth_window=smooth_window)
        if peak is None:
            logger.debug("No usable samples for segment %s", item.segment)
            continue
        peaks[item.segment] = peak
    return peaks


def actual_firing_order(peaks: Mapping[str, SegmentPeak]) -> tuple[str, ...]:
    """Segments by ascending peak time; simultaneous peaks keep ideal order."""
    present = [segment for segment in IDEAL_SEGMENT_ORDER if segment in peaks]
    return tuple(sorted(present, key=lambda segment: peaks[segment].peak_time))


def count_inversions(actual: Sequence[str], ideal: Sequence[str] = IDEAL_SEGMENT_ORDER) -> int:
    """Pairs whose relative order in ``actual`` disagrees with ``ideal``."""
    rank = {segment: idx for idx, segment in enumerate(ideal)}
    positions = [rank[segment] for segment in actual if segment in rank]
    return sum(
        1
        for i in range(len(positions))
        for j in range(i + 1, len(positions))
        if positions[i] > positions[j]
    )


def sequence_score(inversions: int, n_segments: int) -> int:
    if n_segments < 2:
        return 100
    max_inversions = n_segments * (n_segments - 1) / 2
    return round_half_up(100.0 * (1.0 - inversions / max_inversions))


def classify_defects(actual: Sequence[str]) -> tuple[str, ...]:
    """Named ordering defects; rules involving an absent segment do not fire."""
    position = {segment: idx for idx, segment in enumerate(actual)}
    legs = [position[segment] for segment in LEG_SEGMENTS if segment in position]
    arms = [position[segment] for segment in ARM_SEGMENTS if segment in position]
    torso = position.get("torso")

    defects: list[str] = []
    if torso is not None and any(torso < leg for leg in legs):
        defects.append(DEFECT_EARLY_TORSO)
    if any(leg > 2 for leg in legs):
        defects.append(DEFECT_LATE_LEGS)
    if torso is not None and any(arm < torso for arm in arms):
        defects.append(DEFECT_ARMS_BEFORE_TORSO)
    if "bat" in position and actual[-1] != "bat":
        defects.append(DEFECT_BAT_DRAG)
    if len(defects) >= NO_CLEAR_SEQUENCE_MIN_DEFECTS:
        defects.append(DEFECT_NO_CLEAR_SEQUENCE)
    return tuple(defects)


def _position_errors(actual: Sequence[str]) -> tuple[SequenceError, ...]:
    expected = [segment for segment in IDEAL_SEGMENT_ORDER if segment in actual]
    errors = []
    for expected_idx, segment in enumerate(expected):
        actual_idx = actual.index(segment)
        if actual_idx == expected_idx:
            continue
        timing = "early" if actual_idx < expected_idx else "late"
        errors.append(
            SequenceError(
                segment=segment,
                expected_position=expected_idx + 1,
                actual_position=actual_idx + 1,
                description=(
                    f"{SEGMENT_DISPLAY_NAMES[segment]} fired {timing} "
                    f"(position {actual_idx + 1} instead of {expected_idx + 1})"
                ),
            )
        )
    return tuple(errors)


def _summary(actual: Sequence[str], errors: Sequence[SequenceError]) -> str:
    if not actual:
        return "Body-to-Bat sequence: no segment data."
    if not errors:
        order = " -> ".join(SEGMENT_DISPLAY_NAMES[segment] for segment in actual)
        return f"Body-to-Bat sequence: in sequence ({order})."
    parts = []
    early = [SEGMENT_DISPLAY_NAMES[e.segment] for e in errors if e.actual_position < e.expected_position]
    late = [SEGMENT_DISPLAY_NAMES[e.segment] for e in errors if e.actual_position > e.expected_position]
    if early:
        parts.append(f"{', '.join(early)} fired early")
    if late:
        parts.append(f"{', '.join(late)} fired late")
    return f"Body-to-Bat sequence: out of sequence. {'. '.join(parts)}."


def analyze_peaks(peaks: Mapping[str, SegmentPeak], *, swing_id: str = "") -> SwingSequenceAnalysis:
    known = {segment: peak for segment, peak in peaks.items() if segment in IDEAL_SEGMENT_ORDER}
    actual = actual_firing_order(known)
    inversions = count_inversions(actual)
    errors = _position_errors(actual)
    complete = len(actual) == len(IDEAL_SEGMENT_ORDER)
    if not complete:
        logger.debug("Swing %s is missing segments %s", swing_id or "?", [s for s in IDEAL_SEGMENT_ORDER if s not in known])
    return SwingSequenceAnalysis(
        swing_id=swing_id,
        ideal_order=IDEAL_SEGMENT_ORDER,
        peaks=dict(known),
        actual_order=actual,
        inversions=inversions,
        sequence_match=complete and inversions == 0,
        sequence_score=sequence_score(inversions, len(actual)),
        defects=classify_defects(actual),
        errors=errors,
        summary=_summary(actual, errors),
    )


def analyze_sequence(
    series: Iterable[SegmentSeries],
    *,
    swing_id: str = "",
    signal: str = SIGNAL_ENERGY,
    smooth_window: int = 1,
) -> SwingSequenceAnalysis:
    """Extract per-segment peaks from time series and analyze the firing order."""
    peaks = extract_peaks(series, signal=signal, smooth_window=smooth_window)
    return analyze_peaks(peaks, swing_id=swing_id)


def analyze_peak_times(peak_times: Mapping[str, float], *, swing_id: str = "") -> SwingSequenceAnalysis:
    """Analyze already-extracted peak times keyed by segment name."""
    peaks = {
        segment: SegmentPeak(segment=segment, peak_time=float(time))
        for segment, time in peak_times.items()
        if time is not None
    }
    return analyze_peaks(peaks, swing_id=swing_id)


def brain_consistency_score(sequence_scores: Sequence[float]) -> int | None:
    """20-80 repeatability score; lower coefficient of variation scores higher.

    The coefficient of variation uses the population standard deviation and is
    defined as 0 when the mean score is 0.
    """
    if len(sequence_scores) == 0:
        return None
    values = np.asarray(sequence_scores, dtype=float)
    mean = float(values.mean())
    cv = float(values.std()) / mean if mean != 0 else 0.0
    penalty = min(cv / CONSISTENCY_CV_FLOOR, 1.0)
    return round_half_up(SCALE_MAX - (SCALE_MAX - SCALE_MIN) * penalty)


def playback_state(
    analysis: SwingSequenceAnalysis,
    current_time: float,
    *,
    activation_window: float = PLAYBACK_ACTIVATION_WINDOW_MS,
) -> PlaybackState:
    """Per-segment overlay state at ``current_time`` during video playback."""
    states: dict[str, str] = {}
    peaked: list[str] = []
    for segment in IDEAL_SEGMENT_ORDER:
        peak = analysis.peaks.get(segment)
        if peak is None:
            states[segment] = "inactive"
            continue
        if current_time >= peak.peak_time + activation_window:
            states[segment] = "peaked"
            peaked.append(segment)
        elif abs(peak.peak_time - current_time) <= activation_window:
            states[segment] = "active"
        else:
            states[segment] = "pending"

    next_segment = next(
        (segment for segment in analysis.actual_order if states[segment] == "pending"),
        None,
    )
    return PlaybackState(
        current_time=current_time,
        segment_states=states,
        peaked_segments=tuple(peaked),
        next_segment=next_segment,
    )
