"""
Insights component models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

VelocityTrend = Literal["exploding", "rising", "stable", "cooling", "cold"]
RankLevel = Literal["Bronze", "Silver", "Gold", "Platinum", "Diamond"]


@dataclass(frozen=True)
class EngagementVelocity:
    """Current click rate compared with the recent baseline."""

    current_cpm: float = 0.0
    historical_avg_cpm: float = 0.0
    multiplier: float = 0.0
    trend: VelocityTrend = "cold"


COLD_VELOCITY = EngagementVelocity()


@dataclass(frozen=True)
class CreatorRank:
    """Gamified standing of a creator."""

    score: int
    level: RankLevel
    percentile: float
    next_milestone: str
    progress_to_next: int
    badges: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class AudiencePersona:
    """An audience archetype matched from click behaviour."""

    id: str
    name: str
    emoji: str
    description: str
    match_score: int
    traits: list[str] = field(default_factory=list)
    color: str = ""
