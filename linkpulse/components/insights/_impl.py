"""
Derived metrics - engagement velocity, creator rank and audience personas.

Key behaviors:
- Velocity compares the trailing hour against the 30-day baseline
- A zero baseline is replaced by a small epsilon, never divided by
- Rank bands are half-open: a score must exceed the lower bound
- Personas need a minimum share of clicks; only the top two are kept
- All clock-dependent functions take ``now`` explicitly
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime

from linkpulse.core.entities import ClickEvent, LinkData
from linkpulse.rules.models import VelocityRules

from .models import COLD_VELOCITY, AudiencePersona, CreatorRank, EngagementVelocity

_MS_PER_MINUTE = 60 * 1000
_MINUTES_PER_DAY = 24 * 60
_MS_PER_DAY = _MINUTES_PER_DAY * _MS_PER_MINUTE


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves away from zero for non-negative values."""
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def _click_history(links: Iterable[LinkData]) -> list[ClickEvent]:
    return [event for link in links for event in link.click_history]


def _to_ms(now: datetime | int) -> int:
    if isinstance(now, datetime):
        return int(now.timestamp() * 1000)
    return now


# --- Velocity ---


def velocity_from_events(
    events: Sequence[ClickEvent],
    now: datetime | int,
    rules: VelocityRules | None = None,
) -> EngagementVelocity:
    """
    Engagement velocity over a flat list of click events.

    Current rate counts clicks strictly after ``now - window``. The baseline
    counts clicks strictly between ``now - history`` and ``now - window``,
    spread over the observed days.
    """
    if not events:
        return COLD_VELOCITY

    rules = rules or VelocityRules()
    now_ms = _to_ms(now)
    window_minutes = rules.current_window_minutes
    window_start = now_ms - window_minutes * _MS_PER_MINUTE
    history_start = now_ms - rules.historical_window_days * _MS_PER_DAY

    recent = sum(1 for e in events if e.timestamp > window_start)
    historical = sum(1 for e in events if history_start < e.timestamp < window_start)

    current_cpm = recent / window_minutes
    days_observed = max(1.0, (window_start - history_start) / _MS_PER_DAY)
    historical_cpm = historical / days_observed / _MINUTES_PER_DAY

    baseline = historical_cpm if historical_cpm > 0 else rules.epsilon
    multiplier = current_cpm / baseline

    if current_cpm == 0:
        trend = "cold"
    elif multiplier > rules.exploding_multiplier:
        trend = "exploding"
    elif multiplier > rules.rising_multiplier:
        trend = "rising"
    elif multiplier < rules.cooling_multiplier:
        trend = "cooling"
    else:
        trend = "stable"

    return EngagementVelocity(
        current_cpm=round_half_up(current_cpm, 4),
        historical_avg_cpm=round_half_up(historical_cpm, 4),
        multiplier=round_half_up(multiplier, 1),
        trend=trend,
    )


def calculate_velocity(
    links: Sequence[LinkData],
    now: datetime | int,
    rules: VelocityRules | None = None,
) -> EngagementVelocity:
    """Engagement velocity over the click history of every link."""
    return velocity_from_events(_click_history(links), now, rules)


# --- Creator rank ---


@dataclass(frozen=True)
class _RankBand:
    level: str
    floor: int
    span: int | None
    percentile: float
    next_milestone: str


# Highest band first; a score belongs to the first band whose floor it exceeds.
_RANK_BANDS: tuple[_RankBand, ...] = (
    _RankBand("Diamond", 10000, None, 0.1, "Influencer"),
    _RankBand("Platinum", 5000, 5000, 1, "Diamond (10k)"),
    _RankBand("Gold", 1000, 4000, 5, "Platinum (5k)"),
    _RankBand("Silver", 200, 800, 20, "Gold (1k)"),
)
_BRONZE = _RankBand("Bronze", 0, 200, 50, "Silver (200)")


def _rank_band(score: int) -> _RankBand:
    for band in _RANK_BANDS:
        if score > band.floor:
            return band
    return _BRONZE


def calculate_creator_rank(
    links: Sequence[LinkData],
    now: datetime | int | None = None,
    velocity: EngagementVelocity | None = None,
    rules: VelocityRules | None = None,
) -> CreatorRank:
    """
    Rank a creator by total clicks plus ten points per link.

    ``velocity`` may be passed when it is already known; otherwise it is
    computed from the links' click history.
    """
    total_clicks = sum(link.clicks for link in links)
    score = total_clicks + 10 * len(links)
    band = _rank_band(score)

    if band.span is None:
        progress = 100
    else:
        raw = (score - band.floor) / band.span * 100
        progress = int(min(100, max(0, round_half_up(raw))))

    if velocity is None:
        if now is None:
            now = datetime.now(UTC)
        velocity = calculate_velocity(links, now, rules)

    badges: list[str] = []
    if score > 0:
        badges.append("First Click")
    if score > 1000:
        badges.append("Club 1K")
    if velocity.trend == "exploding":
        badges.append("Viral Now")

    return CreatorRank(
        score=score,
        level=band.level,  # type: ignore[arg-type]
        percentile=band.percentile,
        next_milestone=band.next_milestone,
        progress_to_next=progress,
        badges=badges,
    )


# --- Personas ---

_NIGHT_HOURS = frozenset({23, 0, 1, 2, 3, 4})
_LUNCH_HOURS = frozenset({11, 12, 13, 14})
_SOCIAL_MARKERS = ("t.co", "twitter", "instagram", "facebook", "linkedin")


def _utc_hour(event: ClickEvent) -> int:
    return datetime.fromtimestamp(event.timestamp / 1000, tz=UTC).hour


@dataclass(frozen=True)
class _Archetype:
    id: str
    name: str
    emoji: str
    description: str
    traits: tuple[str, ...]
    color: str
    threshold: float
    matches: Callable[[ClickEvent], bool]


_ARCHETYPES: tuple[_Archetype, ...] = (
    _Archetype(
        id="night_owl",
        name="The Night Owl",
        emoji="\U0001f989",
        description="Browses while the world sleeps. Likely deep in focus mode.",
        traits=("Late Night", "Focused", "Mobile Heavy"),
        color="indigo",
        threshold=0.2,
        matches=lambda e: _utc_hour(e) in _NIGHT_HOURS,
    ),
    _Archetype(
        id="lunch_breaker",
        name="The Lunch Breaker",
        emoji="\U0001f96a",
        description="Checks in during pauses. Needs quick, bite-sized info.",
        traits=("Mid-Day", "Quick Scan", "Mobile"),
        color="orange",
        threshold=0.25,
        matches=lambda e: _utc_hour(e) in _LUNCH_HOURS,
    ),
    _Archetype(
        id="desktop_pro",
        name="The Desktop Pro",
        emoji="\U0001f4bb",
        description="Browsing from a workstation. Professional intent.",
        traits=("Big Screen", "Professional", "High Attention"),
        color="blue",
        threshold=0.4,
        matches=lambda e: e.device == "desktop",
    ),
    _Archetype(
        id="social_glider",
        name="The Social Glider",
        emoji="\U0001f98b",
        description="Flying in from social feeds. Visual appetite.",
        traits=("Social Media", "Visual", "Fast"),
        color="pink",
        threshold=0.5,
        matches=lambda e: any(marker in e.referrer for marker in _SOCIAL_MARKERS),
    ),
)

MAX_PERSONAS = 2


def personas_from_events(events: Sequence[ClickEvent]) -> list[AudiencePersona]:
    """
    Match audience archetypes against a flat list of click events.

    Hours are taken in UTC. Ties keep archetype order.
    """
    total = len(events)
    if total == 0:
        return []

    personas: list[AudiencePersona] = []
    for archetype in _ARCHETYPES:
        ratio = sum(1 for e in events if archetype.matches(e)) / total
        if ratio <= archetype.threshold:
            continue
        personas.append(
            AudiencePersona(
                id=archetype.id,
                name=archetype.name,
                emoji=archetype.emoji,
                description=archetype.description,
                match_score=int(round_half_up(ratio * 100)),
                traits=list(archetype.traits),
                color=archetype.color,
            )
        )

    personas.sort(key=lambda p: p.match_score, reverse=True)
    return personas[:MAX_PERSONAS]


def generate_personas(links: Sequence[LinkData]) -> list[AudiencePersona]:
    """Audience personas over the click history of every link."""
    return personas_from_events(_click_history(links))
