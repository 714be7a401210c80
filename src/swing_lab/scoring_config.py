"""Versioned scoring thresholds and the caller-owned active-version registry."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
import itertools
import logging
import threading
from typing import Any, Iterable, Mapping

from omegaconf import OmegaConf
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .exceptions import ConfigVersionInUseError, ScoringConfigNotSetError, UnknownConfigVersionError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "StatCast defaults v1"

_THRESHOLD_GROUP = ConfigDict(frozen=True, extra="forbid")


class HardHitThresholds(BaseModel):
    """Hard-hit exit-velocity cutoff (mph)."""

    model_config = _THRESHOLD_GROUP
    ev_threshold: float = 95.0


class SweetSpotThresholds(BaseModel):
    """Inclusive sweet-spot launch-angle window (degrees)."""

    model_config = _THRESHOLD_GROUP
    la_min: float = 8.0
    la_max: float = 32.0

    @model_validator(mode="after")
    def _ordered(self) -> SweetSpotThresholds:
        if self.la_min > self.la_max:
            raise ValueError("sweet_spot.la_min must be <= sweet_spot.la_max")
        return self


class BarrelEnvelope(BaseModel):
    """Velocity-expanding barrel angle window.

    At ``ev_min`` the window is ``[base_la_min, base_la_max]``; it widens
    linearly with velocity and reaches ``[capped_la_min, capped_la_max]`` at
    ``ev_cap``.
    """

    model_config = _THRESHOLD_GROUP
    ev_min: float = 98.0
    ev_cap: float = 116.0
    base_la_min: float = 26.0
    base_la_max: float = 30.0
    capped_la_min: float = 8.0
    capped_la_max: float = 50.0

    @model_validator(mode="after")
    def _consistent_envelope(self) -> BarrelEnvelope:
        if self.ev_cap <= self.ev_min:
            raise ValueError("barrel.ev_cap must be > barrel.ev_min")
        if not (self.capped_la_min <= self.base_la_min <= self.base_la_max <= self.capped_la_max):
            raise ValueError(
                "barrel angles must satisfy capped_la_min <= base_la_min <= base_la_max <= capped_la_max"
            )
        return self


class BattedBallBands(BaseModel):
    """Half-open launch-angle bands; each boundary belongs to the band above."""

    model_config = _THRESHOLD_GROUP
    gb_max: float = 10.0
    ld_min: float = 10.0
    ld_max: float = 25.0
    fb_max: float = 50.0

    @model_validator(mode="after")
    def _ordered(self) -> BattedBallBands:
        if not (self.gb_max <= self.ld_min <= self.ld_max <= self.fb_max):
            raise ValueError("batted_ball_types must satisfy gb_max <= ld_min <= ld_max <= fb_max")
        return self


class ContactScoreWeights(BaseModel):
    """Normalization range, angle adjustments and quality bonuses for contact scoring."""

    model_config = _THRESHOLD_GROUP
    ev_min: float = 60.0
    ev_max: float = 115.0
    ev_max_points: float = 70.0

    optimal_la_min: float = 18.0
    optimal_la_max: float = 22.0
    optimal_bonus: float = 15.0
    very_good_la_min: float = 12.0
    very_good_la_max: float = 28.0
    very_good_bonus: float = 10.0
    sweet_spot_la_bonus: float = 5.0

    flat_penalty: float = -5.0
    high_penalty: float = -5.0
    pop_up_la_min: float = 50.0
    pop_up_penalty: float = -15.0
    negative_la_penalty: float = -10.0

    hard_hit_bonus: float = 10.0
    sweet_spot_bonus: float = 10.0
    barrel_bonus: float = 15.0

    @model_validator(mode="after")
    def _valid_range(self) -> ContactScoreWeights:
        if self.ev_max <= self.ev_min:
            raise ValueError("contact_score.ev_max must be > contact_score.ev_min")
        if self.ev_max_points < 0:
            raise ValueError("contact_score.ev_max_points must be >= 0")
        return self


class TrendAnalysis(BaseModel):
    model_config = _THRESHOLD_GROUP
    stable_threshold: float = 3.0


class GradeScale(BaseModel):
    """Minimum 20-80 score for each grade label, best grade first."""

    model_config = _THRESHOLD_GROUP
    elite_min: float = 70.0
    plus_min: float = 60.0
    above_avg_min: float = 55.0
    average_min: float = 45.0
    below_avg_min: float = 40.0
    fringe_min: float = 30.0

    @model_validator(mode="after")
    def _descending(self) -> GradeScale:
        ladder = [
            self.elite_min,
            self.plus_min,
            self.above_avg_min,
            self.average_min,
            self.below_avg_min,
            self.fringe_min,
        ]
        if any(lower > upper for upper, lower in zip(ladder, ladder[1:])):
            raise ValueError("grade_scale cutoffs must be non-increasing from elite_min to fringe_min")
        return self


class ScoringConfig(BaseModel):
    """Immutable snapshot of every threshold the pillar scorer and grade ladder read."""

    model_config = _THRESHOLD_GROUP
    hard_hit: HardHitThresholds = Field(default_factory=HardHitThresholds)
    sweet_spot: SweetSpotThresholds = Field(default_factory=SweetSpotThresholds)
    barrel: BarrelEnvelope = Field(default_factory=BarrelEnvelope)
    batted_ball_types: BattedBallBands = Field(default_factory=BattedBallBands)
    contact_score: ContactScoreWeights = Field(default_factory=ContactScoreWeights)
    trend_analysis: TrendAnalysis = Field(default_factory=TrendAnalysis)
    grade_scale: GradeScale = Field(default_factory=GradeScale)


class ScoringConfigVersion(BaseModel):
    """Named, versioned wrapper around a :class:`ScoringConfig`."""

    model_config = ConfigDict(frozen=True)
    id: str
    version: str
    name: str
    description: str = ""
    created_at: datetime
    created_by: str = "coach"
    is_default: bool = False
    config: ScoringConfig = Field(default_factory=ScoringConfig)


@dataclass(frozen=True)
class ConfigDiff:
    """One changed threshold between two configs."""

    path: str
    old_value: float
    new_value: float


def merge_config(base: ScoringConfig, overrides: Mapping[str, Any] | None) -> ScoringConfig:
    """Deep-merge partial overrides onto ``base``; unspecified leaves keep the base value."""
    if not overrides:
        return base
    merged = OmegaConf.merge(
        OmegaConf.create(base.model_dump()),
        OmegaConf.create(_plain_dict(overrides)),
    )
    raw = OmegaConf.to_container(merged, resolve=True)
    try:
        return ScoringConfig.model_validate(raw)
    except ValidationError as exc:
        raise ValueError(f"Invalid scoring config overrides: {exc}") from exc


def flatten_config(config: ScoringConfig) -> dict[str, float]:
    """Flatten to ``{"group.field": value}`` in declaration order."""
    flat: dict[str, float] = {}
    for group_name, group in config.model_dump().items():
        for key, value in group.items():
            flat[f"{group_name}.{key}"] = value
    return flat


def unflatten_config(record: Mapping[str, Any]) -> ScoringConfig:
    """Inverse of :func:`flatten_config`; absent leaves take their defaults."""
    nested: dict[str, dict[str, Any]] = {}
    for path, value in record.items():
        group, _, key = str(path).partition(".")
        if not key:
            raise ValueError(f"Expected a dotted 'group.field' key, got {path!r}")
        nested.setdefault(group, {})[key] = value
    try:
        return ScoringConfig.model_validate(nested)
    except ValidationError as exc:
        raise ValueError(f"Invalid scoring config record: {exc}") from exc


def diff_configs(old: ScoringConfig, new: ScoringConfig) -> list[ConfigDiff]:
    old_flat = flatten_config(old)
    new_flat = flatten_config(new)
    return [
        ConfigDiff(path=path, old_value=old_flat[path], new_value=new_flat[path])
        for path in old_flat
        if old_flat[path] != new_flat[path]
    ]


class ScoringConfigRegistry:
    """Caller-owned store of config versions with exactly one published active version.

    The version map and the active pointer are guarded by one lock. Versions
    are immutable, so activation is a single reference swap and concurrent
    readers see either the old or the new config, never a mix.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._versions: dict[str, ScoringConfigVersion] = {}
        self._active: ScoringConfigVersion | None = None
        self._counter = itertools.count(1)

    @classmethod
    def with_defaults(cls, config: ScoringConfig | None = None) -> ScoringConfigRegistry:
        """Registry seeded with an active default version."""
        registry = cls()
        registry.register(
            config or ScoringConfig(),
            name=DEFAULT_CONFIG_NAME,
            description="Public StatCast definitions and coach-set contact weights.",
            created_by="system",
            is_default=True,
            activate=True,
        )
        return registry

    def register(
        self,
        config: ScoringConfig,
        *,
        name: str,
        description: str = "",
        created_by: str = "coach",
        is_default: bool = False,
        activate: bool = False,
    ) -> ScoringConfigVersion:
        with self._lock:
            version = str(next(self._counter))
            record = ScoringConfigVersion(
                id=f"config_v{version}",
                version=version,
                name=name,
                description=description,
                created_at=datetime.now(timezone.utc),
                created_by=created_by,
                is_default=is_default,
                config=config,
            )
            self._versions[record.id] = record
            if activate:
                self._active = record
        logger.info("Registered scoring config %s (%s)%s", record.id, name, " [active]" if activate else "")
        return record

    def create_version(
        self,
        name: str,
        description: str,
        overrides: Mapping[str, Any] | None,
        *,
        base_version_id: str | None = None,
        created_by: str = "coach",
        activate: bool = False,
    ) -> ScoringConfigVersion:
        """Derive a new version from a base version (default thresholds when omitted)."""
        base = self.get(base_version_id).config if base_version_id else ScoringConfig()
        config = merge_config(base, overrides)
        return self.register(
            config,
            name=name,
            description=description,
            created_by=created_by,
            activate=activate,
        )

    def activate(self, version_id: str) -> ScoringConfigVersion:
        with self._lock:
            record = self._versions.get(version_id)
            if record is None:
                raise UnknownConfigVersionError(version_id)
            previous = self._active
            self._active = record
        logger.info(
            "Activated scoring config %s (previous: %s)",
            version_id,
            previous.id if previous is not None else "none",
        )
        return record

    def reset_to_default(self) -> ScoringConfigVersion:
        """Activate the newest default version, registering one when none exists."""
        with self._lock:
            defaults = [record for record in self._versions.values() if record.is_default]
        if not defaults:
            return self.register(
                ScoringConfig(),
                name=DEFAULT_CONFIG_NAME,
                created_by="system",
                is_default=True,
                activate=True,
            )
        return self.activate(defaults[-1].id)

    def active_version(self) -> ScoringConfigVersion:
        with self._lock:
            record = self._active
        if record is None:
            raise ScoringConfigNotSetError()
        return record

    def active_config(self) -> ScoringConfig:
        return self.active_version().config

    def is_active(self, version_id: str) -> bool:
        with self._lock:
            return self._active is not None and self._active.id == version_id

    def get(self, version_id: str) -> ScoringConfigVersion:
        with self._lock:
            record = self._versions.get(version_id)
        if record is None:
            raise UnknownConfigVersionError(version_id)
        return record

    def versions(self) -> list[ScoringConfigVersion]:
        """All retained versions in creation order."""
        with self._lock:
            return list(self._versions.values())

    def diff(self, old_version_id: str, new_version_id: str) -> list[ConfigDiff]:
        return diff_configs(self.get(old_version_id).config, self.get(new_version_id).config)

    def remove(self, version_id: str, *, referenced_version_ids: Iterable[str] = ()) -> None:
        """Drop a version that is neither active nor referenced by stored scores."""
        referenced = set(referenced_version_ids)
        with self._lock:
            if version_id not in self._versions:
                raise UnknownConfigVersionError(version_id)
            if self._active is not None and self._active.id == version_id:
                raise ConfigVersionInUseError(version_id, "version is active")
            if version_id in referenced:
                raise ConfigVersionInUseError(version_id, "version is referenced by stored scores")
            del self._versions[version_id]
        logger.info("Removed scoring config %s", version_id)

    def __contains__(self, version_id: object) -> bool:
        with self._lock:
            return version_id in self._versions

    def __len__(self) -> int:
        with self._lock:
            return len(self._versions)


def _plain_dict(value: Mapping[str, Any]) -> dict[str, Any]:
    return {
        str(key): _plain_dict(item) if isinstance(item, Mapping) else item
        for key, item in value.items()
    }
