"""
Domain entities for LinkPulse click analytics.

- ClickEvent: immutable fact record of one visit through a short link
- ClickEventWithLinkId: ClickEvent plus its owning link (dedupe/export identity)
- ClickEventInput: raw click record as handed to the click store
- LinkData: a short link with its click history and optional configuration

JSON uses the camelCase field names of the stored records. Optional
structured fields keep the absent-vs-null distinction: ``None`` means
"explicitly cleared", an absent key means "unset". ``to_json`` only writes
the fields that were set, so a round trip reproduces the same document.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

DeviceType = Literal["mobile", "desktop", "tablet", "unknown"]
OSType = Literal["ios", "android", "windows", "macos", "linux", "unknown"]
LinkCategory = Literal["social", "marketing", "product", "other"]

UNKNOWN_COUNTRY = "Unknown"
DIRECT_REFERRER = "direct"

_DEVICE_VALUES = frozenset({"mobile", "desktop", "tablet", "unknown"})
_OS_VALUES = frozenset({"ios", "android", "windows", "macos", "linux", "unknown"})


def _normalize_enum(value: Any, allowed: frozenset[str]) -> Any:
    # Older records carry display casing ("Mobile", "MacOS") or "Other".
    if isinstance(value, str):
        lowered = value.strip().lower()
        return lowered if lowered in allowed else "unknown"
    return value


class _Entity(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_json(self) -> str:
        """Serialize with stored-record field names, omitting unset fields."""
        return self.model_dump_json(by_alias=True, exclude_unset=True)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)

    @classmethod
    def from_json(cls, data: str | bytes) -> Any:
        return cls.model_validate_json(data)


# --- Click events ---


class ClickEvent(_Entity):
    """Immutable click fact. Corrections are new events, never edits."""

    timestamp: int = Field(ge=0)
    referrer: str = DIRECT_REFERRER
    device: DeviceType = "unknown"
    os: OSType = "unknown"
    country: str = UNKNOWN_COUNTRY

    # Enrichment
    country_code: str | None = Field(default=None, alias="countryCode")
    region: str | None = None
    city: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    isp: str | None = None
    timezone: str | None = None
    browser: str | None = None
    browser_version: str | None = Field(default=None, alias="browserVersion")
    os_version: str | None = Field(default=None, alias="osVersion")
    screen_width: int | None = Field(default=None, alias="screenWidth")
    screen_height: int | None = Field(default=None, alias="screenHeight")
    visitor_id: str | None = Field(default=None, alias="visitorId")

    # Marketing attribution
    utm_source: str | None = None
    utm_medium: str | None = None
    utm_campaign: str | None = None
    utm_term: str | None = None
    utm_content: str | None = None
    trigger_source: str | None = None

    @field_validator("referrer", mode="before")
    @classmethod
    def _referrer(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DIRECT_REFERRER
        return value

    @field_validator("device", mode="before")
    @classmethod
    def _device(cls, value: Any) -> Any:
        return _normalize_enum(value, _DEVICE_VALUES)

    @field_validator("os", mode="before")
    @classmethod
    def _os(cls, value: Any) -> Any:
        return _normalize_enum(value, _OS_VALUES)


class ClickEventWithLinkId(ClickEvent):
    """Click event carrying the owning link identifier."""

    link_id: str = Field(alias="linkId")

    @property
    def dedupe_key(self) -> tuple[str, int]:
        return (self.link_id, self.timestamp)

    def without_link(self) -> ClickEvent:
        data = self.model_dump(exclude={"link_id"}, exclude_unset=True)
        return ClickEvent(**data)


class ClickEventInput(_Entity):
    """
    Raw click record handed to the click store.

    Enrichment fields (device, os, country) are filled at ingestion when
    available; readers fall back to classifying ``user_agent`` otherwise.
    """

    timestamp: Any = None
    referrer: Any = ""
    user_agent: Any = Field(default="", alias="userAgent")
    ip_address: Any = Field(default="", alias="ipAddress")
    utm_source: str | None = None
    utm_medium: str | None = None
    utm_campaign: str | None = None
    utm_term: str | None = None
    utm_content: str | None = None
    trigger_source: str | None = None

    device: DeviceType | None = None
    os: OSType | None = None
    country: str | None = None
    visitor_id: str | None = Field(default=None, alias="visitorId")

    @field_validator("device", mode="before")
    @classmethod
    def _device(cls, value: Any) -> Any:
        return None if value is None else _normalize_enum(value, _DEVICE_VALUES)

    @field_validator("os", mode="before")
    @classmethod
    def _os(cls, value: Any) -> Any:
        return None if value is None else _normalize_enum(value, _OS_VALUES)


# --- Links ---


class SmartRedirects(_Entity):
    """Per-platform redirect targets."""

    ios: str | None = None
    android: str | None = None
    desktop: str | None = None


class AIAnalysis(_Entity):
    """Stored result of an AI content analysis of a link."""

    sentiment: str
    category: str
    predicted_engagement: Literal["High", "Medium", "Low"] = Field(
        alias="predictedEngagement"
    )


class LinkRef(_Entity):
    """Minimal link projection needed by the redirect path."""

    id: str
    original_url: str = Field(alias="originalUrl")


class LinkData(_Entity):
    """A short link and its analytics history."""

    id: str
    original_url: str = Field(alias="originalUrl")
    short_code: str = Field(alias="shortCode")
    title: str = ""
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    created_at: int = Field(default=0, alias="createdAt")
    category: LinkCategory | None = None

    clicks: int = 0
    last_clicked_at: int | None = Field(default=None, alias="lastClickedAt")
    click_history: list[ClickEvent] = Field(default_factory=list, alias="clickHistory")

    smart_redirects: SmartRedirects | None = Field(default=None, alias="smartRedirects")
    geo_redirects: dict[str, str] | None = Field(default=None, alias="geoRedirects")
    expiration_date: int | None = Field(default=None, alias="expirationDate")
    max_clicks: int | None = Field(default=None, alias="maxClicks")
    password: str | None = None
    qr_code_data: str | None = Field(default=None, alias="qrCodeData")
    ai_analysis: AIAnalysis | None = Field(default=None, alias="aiAnalysis")

    def ref(self) -> LinkRef:
        return LinkRef(id=self.id, original_url=self.original_url)

    def events_with_link_id(self) -> list[ClickEventWithLinkId]:
        return [
            ClickEventWithLinkId(
                link_id=self.id, **event.model_dump(exclude_unset=True)
            )
            for event in self.click_history
        ]
