"""Comparison of a subject's metrics against cohort references by level."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import re
from typing import Mapping, Sequence

import numpy as np

from .scales import round_half_up

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PercentileBand:
    """10th/50th/90th percentile values of one metric within a cohort."""

    p10: float
    p50: float
    p90: float

    def __post_init__(self) -> None:
        if not (self.p10 <= self.p50 <= self.p90):
            raise ValueError("PercentileBand requires p10 <= p50 <= p90")


@dataclass(frozen=True)
class CohortReference:
    """Reference values for one level. ``metrics`` holds the comparison baseline."""

    level: str
    metrics: dict[str, float] = field(default_factory=dict)
    bands: dict[str, PercentileBand] = field(default_factory=dict)
    sample_size: int | None = None
    source: str = ""

    @property
    def has_data(self) -> bool:
        return bool(self.metrics)


@dataclass(frozen=True)
class PeerComparison:
    level: str
    available: bool
    reason: str = ""
    deltas: dict[str, float] = field(default_factory=dict)
    subject: dict[str, float] = field(default_factory=dict)
    reference: dict[str, float] = field(default_factory=dict)
    percentiles: dict[str, int] = field(default_factory=dict)


def normalize_level(level: str) -> str:
    """'13U' -> '13u', 'High School' -> 'high_school'."""
    return re.sub(r"[\s\-]+", "_", str(level).strip().lower())


def percentile_estimate(value: float, band: PercentileBand) -> int:
    """Piecewise-linear percentile through the band's 10/50/90 anchors, capped to [1, 99]."""
    if value <= band.p10:
        if band.p10 <= 0:
            return 1
        return max(1, round_half_up(value / band.p10 * 10))
    if value <= band.p50:
        return 10 + round_half_up((value - band.p10) / (band.p50 - band.p10) * 40)
    if value <= band.p90:
        return 50 + round_half_up((value - band.p50) / (band.p90 - band.p50) * 40)
    spread = band.p90 - band.p50
    if spread <= 0:
        return 99
    return min(99, 90 + round_half_up((value - band.p90) / spread * 9))


def compare_to_cohort(
    subject_metrics: Mapping[str, float | None],
    level: str,
    cohorts: Mapping[str, CohortReference],
) -> PeerComparison:
    """Signed ``subject - reference`` deltas for every metric both sides carry."""
    key = normalize_level(level)
    cohort = cohorts.get(key)
    if cohort is None:
        cohort = next((ref for name, ref in cohorts.items() if normalize_level(name) == key), None)
    if cohort is None:
        logger.info("No cohort reference for level %r", level)
        return PeerComparison(level=key, available=False, reason=f"No cohort reference for level '{level}'.")
    if not cohort.has_data:
        return PeerComparison(level=key, available=False, reason=f"Cohort '{cohort.level}' has no reference data.")

    subject = {
        name: float(value)
        for name, value in subject_metrics.items()
        if value is not None and not np.isnan(value)
    }
    shared = [name for name in cohort.metrics if name in subject]
    if not shared:
        return PeerComparison(
            level=key,
            available=False,
            reason=f"No metrics shared with cohort '{cohort.level}'.",
            subject=subject,
        )

    percentiles = {
        name: percentile_estimate(subject[name], cohort.bands[name])
        for name in shared
        if name in cohort.bands
    }
    return PeerComparison(
        level=key,
        available=True,
        deltas={name: round(subject[name] - cohort.metrics[name], 2) for name in shared},
        subject={name: subject[name] for name in shared},
        reference={name: cohort.metrics[name] for name in shared},
        percentiles=percentiles,
    )


def cohort_from_scores(level: str, composites: Sequence[float | None], *, metric: str = "composite") -> CohortReference:
    """Population summary of a cohort's composites; empty cohorts carry no data."""
    values = np.asarray([value for value in composites if value is not None], dtype=float)
    if values.size == 0:
        return CohortReference(level=normalize_level(level), sample_size=0, source="population")
    p10, p50, p90 = (float(x) for x in np.percentile(values, [10, 50, 90]))
    return CohortReference(
        level=normalize_level(level),
        metrics={metric: round(float(values.mean()), 1)},
        bands={metric: PercentileBand(p10=p10, p50=p50, p90=p90)},
        sample_size=int(values.size),
        source="population",
    )
