"""
Insights component - derived engagement metrics.
"""

from ._impl import (
    MAX_PERSONAS,
    calculate_creator_rank,
    calculate_velocity,
    generate_personas,
    personas_from_events,
    round_half_up,
    velocity_from_events,
)
from .component import run_creator_rank, run_personas, run_velocity
from .models import (
    COLD_VELOCITY,
    AudiencePersona,
    CreatorRank,
    EngagementVelocity,
    RankLevel,
    VelocityTrend,
)

__all__ = [
    # Entry points
    "run_creator_rank",
    "run_personas",
    "run_velocity",
    # Pure functions
    "MAX_PERSONAS",
    "calculate_creator_rank",
    "calculate_velocity",
    "generate_personas",
    "personas_from_events",
    "round_half_up",
    "velocity_from_events",
    # Models
    "COLD_VELOCITY",
    "AudiencePersona",
    "CreatorRank",
    "EngagementVelocity",
    "RankLevel",
    "VelocityTrend",
]
