"""
Enrichment component - user-agent classification and IP geolocation.

Invariants:
- Classification is pure and local
- Geolocation never raises; every failure maps to "Unknown"
- Invalid or private IPs never reach the network
"""

from __future__ import annotations

from linkpulse.core.cache import TTLCache
from linkpulse.rules.models import GeolocationRules

from ._geolocation import GeolocationResolver
from ._useragent import parse_user_agent
from .models import GeolocationResult, ParsedUserAgent
from .ports import GeolocationPort


class NullGeolocation:
    """Geolocation port used when lookups are disabled."""

    def resolve(self, ip_address: str) -> GeolocationResult:
        return GeolocationResult()

    def resolve_country(self, ip_address: str) -> str:
        return GeolocationResult().country


def create_geolocation_resolver(
    rules: GeolocationRules | None = None,
) -> GeolocationPort:
    """Build the resolver described by the geolocation rules."""
    rules = rules or GeolocationRules()
    if not rules.enabled:
        return NullGeolocation()

    cache: TTLCache[str, GeolocationResult] | None = None
    if rules.cache_ttl_seconds > 0:
        cache = TTLCache(
            max_age_seconds=rules.cache_ttl_seconds,
            max_entries=rules.cache_max_entries,
        )

    return GeolocationResolver(
        provider_url=rules.provider_url,
        timeout_seconds=rules.timeout_seconds,
        cache=cache,
    )


def run_resolve_country(ip_address: str, *, resolver: GeolocationPort) -> str:
    """Resolve a visitor country. Always returns a name or "Unknown"."""
    return resolver.resolve_country(ip_address)


def run_parse_user_agent(user_agent: str | None) -> ParsedUserAgent:
    """Classify a raw user-agent string."""
    return parse_user_agent(user_agent)
