"""
Enrichment component - device/OS classification and geolocation.
"""

from ._geolocation import (
    DEFAULT_PROVIDER_URL,
    DEFAULT_TIMEOUT_SECONDS,
    GeolocationError,
    GeolocationResolver,
    is_private_ip,
    is_valid_ip_address,
)
from ._useragent import (
    classify,
    detect_browser,
    detect_browser_version,
    detect_os_version,
    parse_user_agent,
)
from .component import (
    NullGeolocation,
    create_geolocation_resolver,
    run_parse_user_agent,
    run_resolve_country,
)
from .models import (
    UNKNOWN_COUNTRY_CODE,
    UNKNOWN_LOCATION,
    BrowserType,
    GeolocationResult,
    ParsedUserAgent,
)
from .ports import GeolocationPort

__all__ = [
    # Entry points
    "create_geolocation_resolver",
    "run_parse_user_agent",
    "run_resolve_country",
    # User agent
    "classify",
    "detect_browser",
    "detect_browser_version",
    "detect_os_version",
    "parse_user_agent",
    # Geolocation
    "DEFAULT_PROVIDER_URL",
    "DEFAULT_TIMEOUT_SECONDS",
    "GeolocationError",
    "GeolocationResolver",
    "NullGeolocation",
    "is_private_ip",
    "is_valid_ip_address",
    # Models
    "BrowserType",
    "GeolocationResult",
    "ParsedUserAgent",
    "UNKNOWN_COUNTRY_CODE",
    "UNKNOWN_LOCATION",
    # Ports
    "GeolocationPort",
]
