"""
Enrichment component port definitions.
"""

from __future__ import annotations

from typing import Protocol

from .models import GeolocationResult


class GeolocationPort(Protocol):
    """IP geolocation interface. Implementations must never raise."""

    def resolve(self, ip_address: str) -> GeolocationResult:
        """Detailed lookup; unknown location on failure."""
        ...

    def resolve_country(self, ip_address: str) -> str:
        """Country name or "Unknown"."""
        ...
