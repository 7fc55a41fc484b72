"""
Clicks component - validation, dedupe and redirect tracking.
"""

from ._impl import (
    ClickTrackingService,
    build_click_event,
    create_click_event_input,
    create_click_tracking_service,
    deduplicate_events,
    normalize_record,
    validate_click_event,
)
from .component import (
    build_tracking_config,
    run_dedupe,
    run_track_click,
    run_validate,
)
from .models import (
    ClickRequest,
    RedirectResult,
    TrackingConfig,
    ValidationResult,
)
from .ports import ClickStorePort, TimePort

__all__ = [
    # Entry points
    "run_dedupe",
    "run_track_click",
    "run_validate",
    # Service
    "ClickTrackingService",
    "build_tracking_config",
    "create_click_tracking_service",
    # Pure functions
    "build_click_event",
    "create_click_event_input",
    "deduplicate_events",
    "normalize_record",
    "validate_click_event",
    # Models
    "ClickRequest",
    "RedirectResult",
    "TrackingConfig",
    "ValidationResult",
    # Ports
    "ClickStorePort",
    "TimePort",
]
