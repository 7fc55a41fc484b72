"""
Short link redirect route.

Key behaviors:
- Unknown short codes return 404
- Known codes always redirect (302), whatever happens to the click write
- UTM parameters and the trigger source are taken from the query string
- First-time visitors get a visitor id cookie so repeat clicks count once
"""

from __future__ import annotations

from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse

from linkpulse.api.deps import get_tracking_service
from linkpulse.components.clicks import ClickRequest, ClickTrackingService

router = APIRouter()

VISITOR_COOKIE = "lp_vid"
VISITOR_COOKIE_MAX_AGE = 365 * 24 * 60 * 60


def get_client_ip(request: Request) -> str:
    """Client IP, honouring X-Forwarded-For when behind a proxy."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else ""


def get_visitor_id(request: Request) -> tuple[str, bool]:
    """Visitor id from the cookie, or a fresh one. Second item is True when new."""
    visitor_id = (request.cookies.get(VISITOR_COOKIE) or "").strip()
    if visitor_id:
        return visitor_id, False
    return uuid4().hex, True


def build_click_request(request: Request, visitor_id: str | None = None) -> ClickRequest:
    params = request.query_params
    return ClickRequest(
        user_agent=request.headers.get("user-agent", ""),
        referrer=request.headers.get("referer", ""),
        ip_address=get_client_ip(request),
        utm_source=params.get("utm_source"),
        utm_medium=params.get("utm_medium"),
        utm_campaign=params.get("utm_campaign"),
        utm_term=params.get("utm_term"),
        utm_content=params.get("utm_content"),
        trigger_source=params.get("src"),
        visitor_id=visitor_id,
    )


@router.get("/r/{code}", status_code=status.HTTP_302_FOUND)
def follow_short_link(
    code: str,
    request: Request,
    service: ClickTrackingService = Depends(get_tracking_service),
) -> RedirectResponse:
    """Resolve a short code, record the click and redirect."""
    visitor_id, is_new_visitor = get_visitor_id(request)
    result = service.track(code, build_click_request(request, visitor_id))
    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=result.error or "Link not found",
        )

    response = RedirectResponse(url=result.redirect_url, status_code=status.HTTP_302_FOUND)
    if is_new_visitor:
        response.set_cookie(
            key=VISITOR_COOKIE,
            value=visitor_id,
            httponly=True,
            max_age=VISITOR_COOKIE_MAX_AGE,
            samesite="lax",
        )
    return response
