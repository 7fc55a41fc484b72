"""
Clicks component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of structural click validation. Errors are never raised."""

    valid: bool
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ClickRequest:
    """Inbound redirect request data used for click tracking."""

    user_agent: str = ""
    referrer: str = ""
    ip_address: str = ""
    utm_source: str | None = None
    utm_medium: str | None = None
    utm_campaign: str | None = None
    utm_term: str | None = None
    utm_content: str | None = None
    trigger_source: str | None = None
    visitor_id: str | None = None


@dataclass(frozen=True)
class RedirectResult:
    """Redirect decision returned to the HTTP layer."""

    success: bool
    redirect_url: str
    error: str | None = None


@dataclass(frozen=True)
class TrackingConfig:
    """Click tracking configuration."""

    dedupe_on_ingest: bool = False
    dedupe_window_seconds: int = 60
    enrichment_workers: int = 2
    enrichment_timeout_seconds: float = 6.0
