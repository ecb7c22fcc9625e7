"""
Change detection between two snapshots of the same fixture.

This is a change detector, not a delta detector: two goals landing between
polls, or a score correction, read as a single scoring event for that side.
Scores are compared as the provider's raw strings, never parsed.
"""
from __future__ import annotations

from shared.models.domain import Fixture, PollOutcome


def diff_fixtures(previous: Fixture, current: Fixture) -> PollOutcome:
    return PollOutcome(
        status_changed=previous.status != current.status,
        home_scored=previous.score.home.total != current.score.home.total,
        away_scored=previous.score.away.total != current.score.away.total,
    )
