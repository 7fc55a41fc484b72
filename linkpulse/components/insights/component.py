"""
Insights component - engagement velocity, creator rank and audience personas.

Invariants:
- Results are recomputed on demand and never stored
- Empty history gives zero/cold velocity and no personas
- Rank progress stays within 0-100
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from linkpulse.core.entities import ClickEvent, LinkData
from linkpulse.rules.models import AnalyticsRules

from ._impl import (
    calculate_creator_rank,
    calculate_velocity,
    generate_personas,
    personas_from_events,
    velocity_from_events,
)
from .models import AudiencePersona, CreatorRank, EngagementVelocity


# --- Component Entry Points ---


def run_velocity(
    links: Sequence[LinkData],
    *,
    now: datetime | int,
    events: Sequence[ClickEvent] | None = None,
    rules: AnalyticsRules | None = None,
) -> EngagementVelocity:
    """
    Engagement velocity for a creator.

    When ``events`` is given it is used instead of the links' embedded
    click history.
    """
    velocity_rules = rules.velocity if rules else None
    if events is not None:
        return velocity_from_events(events, now, velocity_rules)
    return calculate_velocity(links, now, velocity_rules)


def run_creator_rank(
    links: Sequence[LinkData],
    *,
    now: datetime | int,
    velocity: EngagementVelocity | None = None,
    rules: AnalyticsRules | None = None,
) -> CreatorRank:
    return calculate_creator_rank(
        links,
        now=now,
        velocity=velocity,
        rules=rules.velocity if rules else None,
    )


def run_personas(
    links: Sequence[LinkData],
    *,
    events: Sequence[ClickEvent] | None = None,
) -> list[AudiencePersona]:
    if events is not None:
        return personas_from_events(events)
    return generate_personas(links)
