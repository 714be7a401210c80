"""One-pass session analysis from a raw measurement export."""

from __future__ import annotations

from dataclasses import dataclass
import io
import logging
from pathlib import Path
from typing import Any, Mapping, Sequence

import pandas as pd

from .composite import FourBScore, build_four_b_score
from .detection import DetectionResult, detect_export_format
from .exceptions import ScoringConfigNotSetError
from .normalize import Swing, coerce_scalar, normalize_swings, swings_to_frame
from .pillars import ball_pillar_score, contact_quality_summary, score_swings
from .scoring_config import ScoringConfig, ScoringConfigRegistry
from .sequence import SegmentSeries
from .session import SessionStats, summarize_swings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionAnalysisResults:
    """Container for one-pass session analysis outputs."""

    detection: DetectionResult
    config: ScoringConfig
    config_version_id: str | None
    swings: list[Swing]
    swings_df: pd.DataFrame
    session_stats: SessionStats
    scored_swings: pd.DataFrame
    contact_summary: dict[str, float | int]
    four_b_score: FourBScore


def load_export(path: str | Path) -> tuple[list[str], list[dict[str, str]]]:
    """Read a CSV export as text cells; coercion happens at normalization."""
    csv_path = Path(path)
    if not csv_path.exists():
        raise FileNotFoundError(f"Export not found: {csv_path}")
    frame = pd.read_csv(csv_path, dtype=str, keep_default_na=False, skipinitialspace=True)
    logger.debug("Loaded %d rows from %s", len(frame), csv_path)
    return _headers_and_rows(frame)


def parse_export_text(text: str) -> tuple[list[str], list[dict[str, str]]]:
    if not text.strip():
        return [], []
    frame = pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False, skipinitialspace=True)
    return _headers_and_rows(frame)


def _headers_and_rows(frame: pd.DataFrame) -> tuple[list[str], list[dict[str, str]]]:
    headers = [str(col).strip() for col in frame.columns]
    frame = frame.set_axis(headers, axis=1)
    return headers, frame.to_dict(orient="records")


def resolve_config(
    config: ScoringConfig | None,
    registry: ScoringConfigRegistry | None,
) -> tuple[ScoringConfig, str | None]:
    """Explicit config wins; otherwise the registry's active version."""
    if config is not None:
        return config, None
    if registry is None:
        raise ScoringConfigNotSetError()
    version = registry.active_version()
    return version.config, version.id


def run_session_analysis(
    headers: Sequence[str],
    rows: Sequence[Mapping[str, Any]],
    *,
    config: ScoringConfig | None = None,
    registry: ScoringConfigRegistry | None = None,
    brain: float | None = None,
    body: float | None = None,
    bat: float | None = None,
    source: str = "",
) -> SessionAnalysisResults:
    """Detect, normalize, aggregate and score one session export.

    Brain, Body and Bat come from other pipelines; Ball is scored here from
    contact quality.
    """
    active_config, version_id = resolve_config(config, registry)
    detection = detect_export_format(headers)

    if detection.field_map is None:
        logger.warning(
            "%s export carries no swing fields; session stats will be empty",
            detection.export_format.display_name,
        )
        swings: list[Swing] = []
    else:
        swings = normalize_swings(rows, detection.field_map, default_source=source)

    session_stats = summarize_swings(swings, source=source or detection.export_format.value)
    scored = score_swings(swings, active_config)
    four_b = build_four_b_score(
        brain=brain,
        body=body,
        bat=bat,
        ball=ball_pillar_score(swings, active_config),
        config=active_config,
        config_version_id=version_id,
    )
    return SessionAnalysisResults(
        detection=detection,
        config=active_config,
        config_version_id=version_id,
        swings=swings,
        swings_df=swings_to_frame(swings),
        session_stats=session_stats,
        scored_swings=scored,
        contact_summary=contact_quality_summary(scored),
        four_b_score=four_b,
    )


def segment_series_from_frame(
    frame: pd.DataFrame,
    *,
    time_column: str,
    segment_columns: Mapping[str, str],
) -> list[SegmentSeries]:
    """Build per-segment series from a motion-capture table.

    ``segment_columns`` maps segment name to the column holding its signal.
    Rows with a non-numeric time are dropped; non-numeric values become 0.
    """
    if time_column not in frame.columns:
        raise KeyError(f"Missing time column: {time_column}")
    times = [coerce_scalar(value) for value in frame[time_column]]
    keep = [scalar.number is not None for scalar in times]
    timestamps = tuple(scalar.as_number() for scalar, ok in zip(times, keep) if ok)

    series: list[SegmentSeries] = []
    for segment, column in segment_columns.items():
        if column not in frame.columns:
            logger.warning("Column %r for segment %s not found", column, segment)
            continue
        values = tuple(
            coerce_scalar(value).as_number() for value, ok in zip(frame[column], keep) if ok
        )
        series.append(SegmentSeries(segment=segment, timestamps=timestamps, values=values))
    return series
