"""
Click event validation endpoint.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body
from pydantic import BaseModel

from linkpulse.components.clicks import run_validate

router = APIRouter()


class ValidationResponse(BaseModel):
    valid: bool
    errors: list[str]


@router.post("/validate", response_model=ValidationResponse)
def validate_click(payload: dict[str, Any] = Body(...)) -> ValidationResponse:
    """
    Validate a click submission without recording it.

    Body: ``{"linkId": ..., "event": {...}}``. Malformed values are reported
    as validation errors, not as HTTP 422.
    """
    event = payload.get("event")
    result = run_validate(
        payload.get("linkId", payload.get("link_id")),
        event if isinstance(event, dict) else None,
    )
    return ValidationResponse(valid=result.valid, errors=list(result.errors))
