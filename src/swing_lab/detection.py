"""Measurement-export format detection from column headers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
import re
from typing import Callable, Sequence

logger = logging.getLogger(__name__)


class ExportFormat(str, Enum):
    REBOOT_ME = "reboot_me"
    REBOOT_IK = "reboot_ik"
    HITTRAX = "hittrax"
    TRACKMAN = "trackman"
    FLIGHTSCOPE = "flightscope"
    RAPSODO = "rapsodo"
    DIAMOND_KINETICS = "diamond_kinetics"
    GENERIC = "generic"
    UNKNOWN = "unknown"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def is_launch_monitor(self) -> bool:
        return self in _LAUNCH_MONITOR_FORMATS

    @property
    def is_motion_capture(self) -> bool:
        return self in (ExportFormat.REBOOT_ME, ExportFormat.REBOOT_IK)


_DISPLAY_NAMES = {
    ExportFormat.REBOOT_ME: "Reboot Motion - Momentum/Energy",
    ExportFormat.REBOOT_IK: "Reboot Motion - Inverse Kinematics",
    ExportFormat.HITTRAX: "HitTrax",
    ExportFormat.TRACKMAN: "Trackman",
    ExportFormat.FLIGHTSCOPE: "FlightScope",
    ExportFormat.RAPSODO: "Rapsodo",
    ExportFormat.DIAMOND_KINETICS: "Diamond Kinetics",
    ExportFormat.GENERIC: "Launch Monitor",
    ExportFormat.UNKNOWN: "Unknown Format",
}

_LAUNCH_MONITOR_FORMATS = (
    ExportFormat.HITTRAX,
    ExportFormat.TRACKMAN,
    ExportFormat.FLIGHTSCOPE,
    ExportFormat.RAPSODO,
    ExportFormat.DIAMOND_KINETICS,
    ExportFormat.GENERIC,
)


@dataclass(frozen=True)
class FormatSignature:
    """Near-unique header names for one vendor.

    ``exact`` entries must equal a normalized header; ``contains`` entries may
    appear anywhere inside one.
    """

    export_format: ExportFormat
    exact: tuple[str, ...] = ()
    contains: tuple[str, ...] = ()


# Checked in order; the first match wins.
FORMAT_SIGNATURES: tuple[FormatSignature, ...] = (
    FormatSignature(ExportFormat.REBOOT_ME, contains=("kinetic energy",)),
    FormatSignature(
        ExportFormat.REBOOT_IK,
        contains=("pelvis rot", "torso rot", "thorax rot", "left elbow", "right elbow", "left knee", "right knee"),
    ),
    FormatSignature(ExportFormat.HITTRAX, exact=("res", "pts", "horiz angle")),
    FormatSignature(ExportFormat.TRACKMAN, exact=("exit speed", "exitspeed")),
    FormatSignature(ExportFormat.FLIGHTSCOPE, exact=("ball speed", "ballspeed")),
    FormatSignature(ExportFormat.RAPSODO, exact=("exit velo", "exitvelo")),
    FormatSignature(ExportFormat.DIAMOND_KINETICS, exact=("exit velocity", "exitvelocity")),
)

EXIT_VELO_ALIASES = (
    "velo",
    "exit velocity",
    "exitvelocity",
    "ev",
    "ev mph",
    "exit velo",
    "exitvelo",
    "ball speed",
    "ballspeed",
    "exit speed",
    "exitspeed",
)
LAUNCH_ANGLE_ALIASES = ("la", "launch angle", "launchangle", "angle", "vert angle", "vertical angle", "vla")
DISTANCE_ALIASES = (
    "dist",
    "distance",
    "carry",
    "total distance",
    "totaldistance",
    "projected distance",
    "proj dist",
)
RESULT_ALIASES = ("res", "result", "outcome", "play result")
HIT_TYPE_ALIASES = ("type", "hit type", "hittype", "bb type")
USER_ALIASES = ("user", "player", "name", "hitter", "batter")

LAUNCH_MONITOR_CONTEXT_HEADERS = (
    "res",
    "result",
    "outcome",
    "pts",
    "points",
    "horiz angle",
    "spray angle",
    "pitch speed",
    "strike zone",
    "user",
    "player",
    "hitter",
    "batter",
)


@dataclass(frozen=True)
class FieldMap:
    """Canonical field name -> actual header name in the export."""

    exit_velo: str
    launch_angle: str
    distance: str | None = None
    result: str | None = None
    hit_type: str | None = None
    user: str | None = None

    def as_dict(self) -> dict[str, str]:
        pairs = {
            "exitVelo": self.exit_velo,
            "launchAngle": self.launch_angle,
            "distance": self.distance,
            "result": self.result,
            "hitType": self.hit_type,
            "user": self.user,
        }
        return {key: value for key, value in pairs.items() if value is not None}


@dataclass(frozen=True)
class DetectionResult:
    export_format: ExportFormat
    field_map: FieldMap | None
    confidence: str
    matched_headers: tuple[str, ...] = ()

    @property
    def category(self) -> str:
        if self.export_format.is_motion_capture:
            return "motion_capture"
        if self.export_format.is_launch_monitor:
            return "launch_monitor"
        return "unknown"


def normalize_header(header: str) -> str:
    """Lowercase, collapse separators to single spaces and drop punctuation."""
    text = str(header).strip().lower()
    text = re.sub(r"[\s_\-.]+", " ", text)
    text = re.sub(r"[^\w\s#]", "", text)
    return text.strip()


def detect_export_format(headers: Sequence[str]) -> DetectionResult:
    """Identify the export's vendor format and build its canonical field map."""
    normalized = [normalize_header(header) for header in headers]

    for signature in FORMAT_SIGNATURES:
        matched = _signature_matches(signature, headers, normalized)
        if not matched:
            continue
        if signature.export_format.is_motion_capture:
            logger.debug("Detected %s from headers %s", signature.export_format.value, matched)
            return DetectionResult(
                export_format=signature.export_format,
                field_map=None,
                confidence="high" if len(matched) >= 2 else "medium",
                matched_headers=matched,
            )
        field_map = build_field_map(headers)
        if field_map is None:
            # Vendor column without velocity/angle data is not a usable launch-monitor export.
            continue
        logger.debug("Detected %s from headers %s", signature.export_format.value, matched)
        return DetectionResult(
            export_format=signature.export_format,
            field_map=field_map,
            confidence=_launch_monitor_confidence(normalized),
            matched_headers=matched,
        )

    if _has_generic_velocity_and_angle(normalized):
        field_map = build_field_map(headers) or _generic_field_map(headers)
        if field_map is not None:
            logger.debug("Detected generic launch-monitor export")
            return DetectionResult(
                export_format=ExportFormat.GENERIC,
                field_map=field_map,
                confidence=_launch_monitor_confidence(normalized),
            )

    logger.warning("Could not detect export format from headers: %s", list(headers)[:10])
    return DetectionResult(export_format=ExportFormat.UNKNOWN, field_map=None, confidence="low")


def build_field_map(headers: Sequence[str]) -> FieldMap | None:
    """Map canonical fields onto headers; None without velocity and angle columns."""
    claimed: set[str] = set()
    exit_velo = find_matching_header(headers, EXIT_VELO_ALIASES, claimed)
    launch_angle = find_matching_header(headers, LAUNCH_ANGLE_ALIASES, claimed)
    if exit_velo is None or launch_angle is None:
        return None
    return FieldMap(
        exit_velo=exit_velo,
        launch_angle=launch_angle,
        distance=find_matching_header(headers, DISTANCE_ALIASES, claimed),
        result=find_matching_header(headers, RESULT_ALIASES, claimed),
        hit_type=find_matching_header(headers, HIT_TYPE_ALIASES, claimed),
        user=find_matching_header(headers, USER_ALIASES, claimed),
    )


def find_matching_header(
    headers: Sequence[str],
    aliases: Sequence[str],
    claimed: set[str] | None = None,
) -> str | None:
    """First header equal to an alias, else first header containing one.

    Aliases are tried in priority order and headers in export order. Headers
    already in ``claimed`` are skipped and the match is added to it.
    """
    claimed = claimed if claimed is not None else set()
    candidates = [(header, normalize_header(header)) for header in headers if header not in claimed]

    for alias in aliases:
        for header, norm in candidates:
            if norm == alias:
                claimed.add(header)
                return header

    for alias in aliases:
        # Two-letter aliases ("la", "ev") only match whole headers.
        if len(alias) < 3:
            continue
        for header, norm in candidates:
            if alias in norm:
                claimed.add(header)
                return header
    return None


def _signature_matches(
    signature: FormatSignature,
    headers: Sequence[str],
    normalized: Sequence[str],
) -> tuple[str, ...]:
    matched: list[str] = []
    for header, norm in zip(headers, normalized):
        if norm in signature.exact or any(token in norm for token in signature.contains):
            matched.append(header)
    return tuple(matched)


def _has_generic_velocity_and_angle(normalized: Sequence[str]) -> bool:
    has_velocity = any("velo" in norm or "speed" in norm for norm in normalized)
    has_angle = any("angle" in norm or "la" in norm.split() for norm in normalized)
    return has_velocity and has_angle


def _generic_field_map(headers: Sequence[str]) -> FieldMap | None:
    """Loosest mapping: first velocity-like header and first angle-like header."""
    claimed: set[str] = set()
    exit_velo = _first_header_where(headers, lambda norm: "velo" in norm or "speed" in norm, claimed)
    launch_angle = _first_header_where(headers, lambda norm: "angle" in norm or "la" in norm.split(), claimed)
    if exit_velo is None or launch_angle is None:
        return None
    return FieldMap(
        exit_velo=exit_velo,
        launch_angle=launch_angle,
        distance=find_matching_header(headers, DISTANCE_ALIASES, claimed),
        result=find_matching_header(headers, RESULT_ALIASES, claimed),
        hit_type=find_matching_header(headers, HIT_TYPE_ALIASES, claimed),
        user=find_matching_header(headers, USER_ALIASES, claimed),
    )


def _first_header_where(
    headers: Sequence[str],
    predicate: Callable[[str], bool],
    claimed: set[str],
) -> str | None:
    for header in headers:
        if header not in claimed and predicate(normalize_header(header)):
            claimed.add(header)
            return header
    return None


def _launch_monitor_confidence(normalized: Sequence[str]) -> str:
    context = sum(1 for norm in normalized if norm in LAUNCH_MONITOR_CONTEXT_HEADERS)
    return "high" if context >= 2 else "medium"
