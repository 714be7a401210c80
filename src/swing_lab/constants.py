"""Fixed constants shared across the scoring engine."""

from __future__ import annotations

MISS_EXIT_VELO_MPH = 0.0

SCALE_MIN = 20
SCALE_MAX = 80

PILLAR_ORDER: tuple[str, ...] = ("brain", "body", "bat", "ball")
PILLAR_WEIGHTS: dict[str, float] = {
    "brain": 0.15,
    "body": 0.40,
    "bat": 0.20,
    "ball": 0.25,
}

IDEAL_SEGMENT_ORDER: tuple[str, ...] = (
    "rear_leg",
    "lead_leg",
    "torso",
    "bottom_arm",
    "top_arm",
    "bat",
)
SEGMENT_DISPLAY_NAMES: dict[str, str] = {
    "rear_leg": "Rear Leg",
    "lead_leg": "Lead Leg",
    "torso": "Torso",
    "bottom_arm": "Bottom Arm",
    "top_arm": "Top Arm",
    "bat": "Bat",
}
LEG_SEGMENTS: tuple[str, ...] = ("rear_leg", "lead_leg")
ARM_SEGMENTS: tuple[str, ...] = ("bottom_arm", "top_arm")

ACCURACY_HIGH_MAX_DELTA = 5.0
ACCURACY_MEDIUM_MAX_DELTA = 10.0
