"""Row-to-Swing normalization with typed scalar coercion and header lookup."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
import logging
import math
from typing import Any, Callable, Mapping, Optional, Sequence

import pandas as pd

from .constants import MISS_EXIT_VELO_MPH
from .detection import FieldMap

logger = logging.getLogger(__name__)


class ValueKind(str, Enum):
    NUMBER = "number"
    TEXT = "text"
    MISSING = "missing"


@dataclass(frozen=True)
class ScalarValue:
    """Tagged cell value produced once at the ingestion boundary."""

    kind: ValueKind
    number: float | None = None
    text: str = ""

    @property
    def is_missing(self) -> bool:
        return self.kind is ValueKind.MISSING

    def as_number(self, default: float = 0.0) -> float:
        return self.number if self.number is not None else default

    def as_text(self) -> str:
        if self.kind is ValueKind.NUMBER and self.number is not None:
            return _format_number(self.number)
        return self.text


MISSING = ScalarValue(ValueKind.MISSING)


def coerce_scalar(raw: Any) -> ScalarValue:
    """Tag a raw cell as number, text or missing.

    Numeric-looking strings (``"101"``, ``" 15.5 "``) become numbers; empty
    strings, None and NaN are missing.
    """
    if raw is None:
        return MISSING
    if isinstance(raw, ScalarValue):
        return raw
    if isinstance(raw, bool):
        return ScalarValue(ValueKind.TEXT, text=str(raw).lower())
    if isinstance(raw, (int, float)):
        value = float(raw)
        if math.isnan(value):
            return MISSING
        if math.isinf(value):
            return ScalarValue(ValueKind.TEXT, text=str(raw))
        return ScalarValue(ValueKind.NUMBER, number=value)

    text = str(raw).strip()
    if not text:
        return MISSING
    try:
        value = float(text)
    except ValueError:
        return ScalarValue(ValueKind.TEXT, text=text)
    if math.isnan(value) or math.isinf(value):
        return ScalarValue(ValueKind.TEXT, text=text)
    return ScalarValue(ValueKind.NUMBER, number=value, text=text)


LookupStrategy = Callable[[Mapping[str, Any], str], Optional[str]]


def exact_key(row: Mapping[str, Any], name: str) -> str | None:
    return name if name in row else None


def case_insensitive_key(row: Mapping[str, Any], name: str) -> str | None:
    target = name.strip().lower()
    for key in row:
        if str(key).strip().lower() == target:
            return key
    return None


def substring_key(row: Mapping[str, Any], name: str) -> str | None:
    target = name.strip().lower()
    if not target:
        return None
    for key in row:
        if target in str(key).strip().lower():
            return key
    return None


DEFAULT_LOOKUP_CHAIN: tuple[LookupStrategy, ...] = (exact_key, case_insensitive_key, substring_key)


def lookup_value(
    row: Mapping[str, Any],
    name: str | None,
    strategies: Sequence[LookupStrategy] = DEFAULT_LOOKUP_CHAIN,
) -> ScalarValue:
    """Resolve ``name`` in ``row`` with the first strategy that finds a key."""
    if not name:
        return MISSING
    for strategy in strategies:
        key = strategy(row, name)
        if key is not None:
            return coerce_scalar(row[key])
    return MISSING


@dataclass(frozen=True)
class Swing:
    """One batting attempt; ``exit_velo_mph == 0`` marks a miss."""

    exit_velo_mph: float
    launch_angle_deg: float
    distance_ft: float | None = None
    result: str = ""
    hit_type: str = ""
    source: str = ""

    @property
    def is_miss(self) -> bool:
        return self.exit_velo_mph <= MISS_EXIT_VELO_MPH


def normalize_swings(
    rows: Sequence[Mapping[str, Any]],
    field_map: FieldMap,
    *,
    default_source: str = "",
) -> list[Swing]:
    """Apply ``field_map`` to each row, in order, producing canonical swings."""
    swings: list[Swing] = []
    malformed = 0
    for row in rows:
        exit_velo = lookup_value(row, field_map.exit_velo)
        launch_angle = lookup_value(row, field_map.launch_angle)
        if exit_velo.kind is ValueKind.TEXT or launch_angle.kind is ValueKind.TEXT:
            malformed += 1

        distance: float | None = None
        if field_map.distance:
            distance = max(lookup_value(row, field_map.distance).as_number(), 0.0)

        user = lookup_value(row, field_map.user).as_text() if field_map.user else ""
        swings.append(
            Swing(
                exit_velo_mph=max(exit_velo.as_number(), MISS_EXIT_VELO_MPH),
                launch_angle_deg=launch_angle.as_number(),
                distance_ft=distance,
                result=lookup_value(row, field_map.result).as_text(),
                hit_type=lookup_value(row, field_map.hit_type).as_text(),
                source=user or default_source,
            )
        )
    if malformed:
        logger.debug("Defaulted %d malformed velocity/angle cells to 0", malformed)
    return swings


def swings_to_frame(swings: Sequence[Swing]) -> pd.DataFrame:
    """One row per swing with canonical column names."""
    columns = ["exit_velo_mph", "launch_angle_deg", "distance_ft", "result", "hit_type", "source"]
    if not swings:
        return pd.DataFrame(columns=[*columns, "is_miss"])
    out = pd.DataFrame([asdict(swing) for swing in swings], columns=columns)
    out["is_miss"] = out["exit_velo_mph"] <= MISS_EXIT_VELO_MPH
    return out


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(value)
