"""
Enrichment component models.

Results of user-agent classification and IP geolocation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from linkpulse.core.entities import UNKNOWN_COUNTRY, DeviceType, OSType

BrowserType = Literal["Chrome", "Firefox", "Safari", "Edge", "Opera", "Other"]

UNKNOWN_COUNTRY_CODE = "XX"


@dataclass(frozen=True)
class ParsedUserAgent:
    """Classification of a raw user-agent string."""

    device: DeviceType
    os: OSType
    browser: BrowserType = "Other"
    browser_version: str = "Unknown"
    os_version: str = "Unknown"


@dataclass(frozen=True)
class GeolocationResult:
    """Provider lookup result. Only ``country`` is guaranteed."""

    country: str = UNKNOWN_COUNTRY
    country_code: str = UNKNOWN_COUNTRY_CODE
    city: str | None = None
    region: str | None = None
    region_name: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    isp: str | None = None
    timezone: str | None = None
    ip: str | None = None

    @property
    def resolved(self) -> bool:
        return self.country != UNKNOWN_COUNTRY


UNKNOWN_LOCATION = GeolocationResult()
