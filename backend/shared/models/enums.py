"""Domain enumerations for the Match Tracker."""
from __future__ import annotations

from enum import Enum


class FixtureStatus(str, Enum):
    """Fixture statuses as the provider spells them. Unknown values pass through as plain strings."""
    PENDING = "Pendiente"
    IN_PROGRESS = "En juego"
    FINISHED = "Finalizado"

    @property
    def is_terminal(self) -> bool:
        return self == FixtureStatus.FINISHED

    @classmethod
    def parse(cls, value: str | None) -> "FixtureStatus | None":
        """Typed view of a raw status string; None for provider-specific values."""
        try:
            return cls(value)
        except ValueError:
            return None


class TrackerState(str, Enum):
    WAITING = "waiting"
    POLLING = "polling"
    STOPPED = "stopped"


class TickOutcome(str, Enum):
    """Result label of a single tracker tick, used for metrics and logs."""
    COUNTDOWN = "countdown"
    NOT_FOUND = "not_found"
    UPDATED = "updated"
    FINISHED = "finished"
    ERROR = "error"
    SKIPPED = "skipped"
