"""Brain/Body/Bat/Ball composite, grade ladder and weakest-link selection."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Mapping

from .constants import PILLAR_ORDER, PILLAR_WEIGHTS
from .scales import round_half_up
from .scoring_config import ScoringConfig

logger = logging.getLogger(__name__)

NO_DATA_GRADE = "No Data"


@dataclass(frozen=True)
class CompositeResult:
    """Composite value and how it was computed."""

    value: int | None
    is_partial: bool
    pillars_used: tuple[str, ...]

    @property
    def has_data(self) -> bool:
        return self.value is not None


@dataclass(frozen=True)
class FourBScore:
    brain: float | None
    body: float | None
    bat: float | None
    ball: float | None
    composite: int | None
    grade: str
    weakest_pillar: str | None
    is_partial: bool
    config_version_id: str | None = None

    @property
    def has_data(self) -> bool:
        return self.composite is not None

    def pillars(self) -> dict[str, float | None]:
        return {name: getattr(self, name) for name in PILLAR_ORDER}


def _present(scores: Mapping[str, float | None]) -> list[tuple[str, float]]:
    return [(name, float(scores[name])) for name in PILLAR_ORDER if scores.get(name) is not None]


def weakest_pillar(scores: Mapping[str, float | None]) -> str | None:
    """Lowest present pillar; ties go to the earliest in Brain, Body, Bat, Ball order."""
    present = _present(scores)
    if not present:
        return None
    name, _ = min(present, key=lambda item: item[1])
    return name


def composite_score(scores: Mapping[str, float | None]) -> CompositeResult:
    """Weighted composite when all four pillars are present, else the mean of those present."""
    present = _present(scores)
    if not present:
        return CompositeResult(value=None, is_partial=False, pillars_used=())

    used = tuple(name for name, _ in present)
    if len(present) == len(PILLAR_ORDER):
        raw = sum(value * PILLAR_WEIGHTS[name] for name, value in present)
        return CompositeResult(value=round_half_up(raw), is_partial=False, pillars_used=used)

    raw = sum(value for _, value in present) / len(present)
    logger.debug("Partial composite from %s", ", ".join(used))
    return CompositeResult(value=round_half_up(raw), is_partial=True, pillars_used=used)


def grade_label(score: float | None, config: ScoringConfig) -> str:
    if score is None:
        return NO_DATA_GRADE
    scale = config.grade_scale
    for cutoff, label in (
        (scale.elite_min, "Plus-Plus"),
        (scale.plus_min, "Plus"),
        (scale.above_avg_min, "Above Avg"),
        (scale.average_min, "Average"),
        (scale.below_avg_min, "Below Avg"),
        (scale.fringe_min, "Fringe"),
    ):
        if score >= cutoff:
            return label
    return "Poor"


def build_four_b_score(
    *,
    brain: float | None = None,
    body: float | None = None,
    bat: float | None = None,
    ball: float | None = None,
    config: ScoringConfig,
    config_version_id: str | None = None,
) -> FourBScore:
    scores = {"brain": brain, "body": body, "bat": bat, "ball": ball}
    result = composite_score(scores)
    return FourBScore(
        brain=brain,
        body=body,
        bat=bat,
        ball=ball,
        composite=result.value,
        grade=grade_label(result.value, config),
        weakest_pillar=weakest_pillar(scores),
        is_partial=result.is_partial,
        config_version_id=config_version_id,
    )


def trend_direction(previous: float, current: float, config: ScoringConfig) -> str:
    """'improving', 'declining' or 'stable' relative to the configured threshold."""
    change = current - previous
    threshold = config.trend_analysis.stable_threshold
    if change > threshold:
        return "improving"
    if change < -threshold:
        return "declining"
    return "stable"
