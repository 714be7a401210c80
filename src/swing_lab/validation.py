"""Cross-source reconciliation of composites from two independent pipelines."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
import logging
import math
from typing import Any, Sequence

import pandas as pd

from .constants import ACCURACY_HIGH_MAX_DELTA, ACCURACY_MEDIUM_MAX_DELTA

logger = logging.getLogger(__name__)

TIER_HIGH = "High"
TIER_MEDIUM = "Medium"
TIER_LOW = "Low"
ACCURACY_TIERS = (TIER_HIGH, TIER_MEDIUM, TIER_LOW)
_KEY = ["subject_id", "date"]


@dataclass(frozen=True)
class ScoreRecord:
    """A persisted composite from one pipeline."""

    subject_id: str
    date: Any
    composite: float | None


@dataclass(frozen=True)
class ValidationRecord:
    subject_id: str
    date: date
    composite_a: float
    composite_b: float
    delta: float
    tier: str


@dataclass(frozen=True)
class ValidationReport:
    records: tuple[ValidationRecord, ...]
    tier_counts: dict[str, int]
    mean_delta: float | None
    closest: tuple[ValidationRecord, ...]
    largest: tuple[ValidationRecord, ...]
    unmatched_a: int
    unmatched_b: int
    spot_check_n: int = 5
    notes: list[str] = field(default_factory=list)

    @property
    def matched(self) -> int:
        return len(self.records)


def accuracy_tier(delta: float) -> str:
    delta = abs(delta)
    if delta < ACCURACY_HIGH_MAX_DELTA:
        return TIER_HIGH
    if delta < ACCURACY_MEDIUM_MAX_DELTA:
        return TIER_MEDIUM
    return TIER_LOW


def _normalize_date(value: Any) -> date | None:
    if value is None or value == "":
        return None
    ts = pd.to_datetime(value, errors="coerce")
    if pd.isna(ts):
        return None
    return ts.date()


def _records_frame(records: Sequence[ScoreRecord], label: str) -> tuple[pd.DataFrame, int]:
    """Keyed frame of usable records and the count of unusable ones."""
    rows = []
    invalid = 0
    for record in records:
        record_date = _normalize_date(record.date)
        if record.composite is None or not math.isfinite(float(record.composite)) or record_date is None:
            invalid += 1
            continue
        rows.append(
            {"subject_id": str(record.subject_id), "date": record_date, "composite": float(record.composite)}
        )
    frame = pd.DataFrame(rows, columns=["subject_id", "date", "composite"])

    duplicated = frame.duplicated(subset=_KEY, keep="last")
    if duplicated.any():
        logger.warning(
            "Pipeline %s has %d duplicate (subject_id, date) records; keeping the last of each",
            label,
            int(duplicated.sum()),
        )
        frame = frame.loc[~duplicated]
    if invalid:
        logger.debug("Pipeline %s has %d records without a finite composite or a date", label, invalid)
    return frame.reset_index(drop=True), invalid


def _merge(records_a: Sequence[ScoreRecord], records_b: Sequence[ScoreRecord]) -> tuple[pd.DataFrame, int, int]:
    frame_a, invalid_a = _records_frame(records_a, "A")
    frame_b, invalid_b = _records_frame(records_b, "B")
    merged = frame_a.merge(frame_b, on=_KEY, how="outer", suffixes=("_a", "_b"), indicator=True)
    unmatched_a = int((merged["_merge"] == "left_only").sum()) + invalid_a
    unmatched_b = int((merged["_merge"] == "right_only").sum()) + invalid_b
    matched = merged.loc[merged["_merge"] == "both"].copy()
    matched["delta"] = (matched["composite_a"] - matched["composite_b"]).abs()
    matched = matched.sort_values(_KEY, kind="mergesort").reset_index(drop=True)
    return matched, unmatched_a, unmatched_b


def _to_records(frame: pd.DataFrame) -> list[ValidationRecord]:
    return [
        ValidationRecord(
            subject_id=str(row.subject_id),
            date=row.date,
            composite_a=float(row.composite_a),
            composite_b=float(row.composite_b),
            delta=float(row.delta),
            tier=accuracy_tier(float(row.delta)),
        )
        for row in frame.itertuples(index=False)
    ]


def reconcile_scores(
    records_a: Sequence[ScoreRecord],
    records_b: Sequence[ScoreRecord],
) -> list[ValidationRecord]:
    """Pair composites on exact (subject_id, date) matches."""
    matched, _, _ = _merge(records_a, records_b)
    return _to_records(matched)


def build_validation_report(
    records_a: Sequence[ScoreRecord],
    records_b: Sequence[ScoreRecord],
    *,
    spot_check_n: int = 5,
) -> ValidationReport:
    """Tier counts, mean delta, spot-check extremes and unmatched coverage."""
    if spot_check_n < 0:
        raise ValueError("spot_check_n must be >= 0")
    matched, unmatched_a, unmatched_b = _merge(records_a, records_b)
    records = _to_records(matched)

    tier_counts = {tier: 0 for tier in ACCURACY_TIERS}
    for record in records:
        tier_counts[record.tier] += 1

    notes: list[str] = []
    if unmatched_a or unmatched_b:
        notes.append(f"{unmatched_a} pipeline-A and {unmatched_b} pipeline-B records had no exact match.")
    if not records:
        notes.append("No matched subject/date pairs; accuracy cannot be assessed.")

    closest_idx = matched.nsmallest(spot_check_n, "delta", keep="first").index if records else []
    largest_idx = matched.nlargest(spot_check_n, "delta", keep="first").index if records else []
    return ValidationReport(
        records=tuple(records),
        tier_counts=tier_counts,
        mean_delta=round(float(matched["delta"].mean()), 2) if records else None,
        closest=tuple(records[i] for i in closest_idx),
        largest=tuple(records[i] for i in largest_idx),
        unmatched_a=unmatched_a,
        unmatched_b=unmatched_b,
        spot_check_n=spot_check_n,
        notes=notes,
    )
