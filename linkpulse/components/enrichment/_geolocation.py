"""
GeolocationResolver - IP to country with fail-soft semantics.

Called synchronously in the click ingestion path, so it never raises and
never blocks longer than the provider timeout.

Key behaviors:
- Syntactically invalid IPs return "Unknown" without a network call
- Private/local IPs return "Unknown" without a network call
- Provider lookups use a bounded timeout (default 5s)
- Network errors, non-2xx responses and provider failure status
  all collapse to "Unknown"
"""

from __future__ import annotations

import logging
import re
from typing import Any
from urllib.parse import quote

import httpx

from linkpulse.core.cache import TTLCache
from linkpulse.core.entities import UNKNOWN_COUNTRY

from .models import UNKNOWN_COUNTRY_CODE, UNKNOWN_LOCATION, GeolocationResult

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER_URL = "https://ipwho.is"
DEFAULT_TIMEOUT_SECONDS = 5.0

_IPV4_PATTERN = re.compile(r"([0-9]{1,3}\.){3}[0-9]{1,3}")
_IPV6_PATTERN = re.compile(r"([0-9a-fA-F]{0,4}:){2,7}[0-9a-fA-F]{0,4}")
_IPV6_V4_SUFFIX_PATTERN = re.compile(r"([0-9a-fA-F]{0,4}:){2,6}([0-9]{1,3}\.){3}[0-9]{1,3}")

_LOCAL_ADDRESSES = frozenset({"127.0.0.1", "::1", "localhost"})


class GeolocationError(Exception):
    """Provider lookup failed. Never escapes the resolver."""


def is_valid_ip_address(ip: Any) -> bool:
    """IPv4 dotted quad with octets 0-255, or a permissive IPv6 form."""
    if not ip or not isinstance(ip, str):
        return False

    if _IPV4_PATTERN.fullmatch(ip):
        return all(0 <= int(part) <= 255 for part in ip.split("."))

    if _IPV6_PATTERN.fullmatch(ip):
        return True

    return bool(_IPV6_V4_SUFFIX_PATTERN.fullmatch(ip))


def is_private_ip(ip: str) -> bool:
    """Loopback, RFC 1918 and link-local addresses."""
    if ip in _LOCAL_ADDRESSES:
        return True

    parts = ip.split(".")
    if len(parts) != 4 or not all(p.isdigit() for p in parts):
        return False

    first, second = int(parts[0]), int(parts[1])
    if first == 10:
        return True
    if first == 172 and 16 <= second <= 31:
        return True
    if first == 192 and second == 168:
        return True
    if first == 169 and second == 254:
        return True
    return False


def _parse_provider_payload(data: dict[str, Any]) -> GeolocationResult:
    connection = data.get("connection")
    isp = connection.get("isp") if isinstance(connection, dict) else None
    timezone = data.get("timezone")
    if isinstance(timezone, dict):
        timezone = timezone.get("id")

    return GeolocationResult(
        country=data.get("country") or UNKNOWN_COUNTRY,
        country_code=data.get("country_code") or UNKNOWN_COUNTRY_CODE,
        city=data.get("city"),
        region=data.get("region_code"),
        region_name=data.get("region"),
        latitude=data.get("latitude"),
        longitude=data.get("longitude"),
        isp=isp or data.get("isp"),
        timezone=timezone,
        ip=data.get("ip"),
    )


class GeolocationResolver:
    """
    Resolves visitor location from an IP address.

    Owns its httpx client unless one is injected; call ``close()`` (or use
    as a context manager) to release the connection pool.
    """

    def __init__(
        self,
        client: httpx.Client | None = None,
        provider_url: str = DEFAULT_PROVIDER_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        cache: TTLCache[str, GeolocationResult] | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout_seconds)
        self._provider_url = provider_url.rstrip("/")
        self._timeout = timeout_seconds
        self._cache = cache

    def __enter__(self) -> GeolocationResolver:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def _fetch(self, ip: str) -> GeolocationResult:
        try:
            response = self._client.get(
                f"{self._provider_url}/{quote(ip, safe='')}",
                timeout=self._timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise GeolocationError(f"{type(e).__name__}: {e}") from e

        if not isinstance(data, dict):
            raise GeolocationError("Unexpected provider payload")
        if data.get("success") is False:
            raise GeolocationError(data.get("message") or "Geolocation lookup failed")

        return _parse_provider_payload(data)

    def resolve(self, ip_address: str) -> GeolocationResult:
        """Detailed lookup. Returns UNKNOWN_LOCATION on any failure."""
        try:
            if not is_valid_ip_address(ip_address) or is_private_ip(ip_address):
                return UNKNOWN_LOCATION

            if self._cache is not None:
                cached = self._cache.get(ip_address)
                if cached is not None:
                    return cached

            result = self._fetch(ip_address)
        except Exception as e:
            logger.warning("Geolocation lookup failed for %s: %s", ip_address, e)
            return UNKNOWN_LOCATION

        if self._cache is not None and result.resolved:
            self._cache.set(ip_address, result)
        return result

    def resolve_country(self, ip_address: str) -> str:
        """Country name for an IP, or "Unknown". Never raises."""
        return self.resolve(ip_address).country
