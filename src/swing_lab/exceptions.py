"""Exceptions raised by the scoring engine."""

from __future__ import annotations


class SwingLabError(Exception):
    """Base class for swing_lab errors."""


class ScoringConfigNotSetError(SwingLabError, RuntimeError):
    def __init__(self) -> None:
        super().__init__(
            "No active scoring config has been published; call "
            "ScoringConfigRegistry.activate() before scoring."
        )


class UnknownConfigVersionError(SwingLabError, KeyError):
    def __init__(self, version_id: str) -> None:
        self.version_id = version_id
        super().__init__(f"Unknown scoring config version: {version_id}")


class ConfigVersionInUseError(SwingLabError):
    def __init__(self, version_id: str, reason: str) -> None:
        self.version_id = version_id
        self.reason = reason
        super().__init__(f"Scoring config version {version_id} cannot be removed: {reason}")
