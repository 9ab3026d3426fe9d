# commission_engine/api/v1/tracking.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.core.bot_filter import detect_bot, extract_ip, extract_referrer, parse_user_agent
from commission_engine.crud.clicks import record_click
from commission_engine.db.session import get_db
from commission_engine.schemas.tracking import ClickTrackedOut

router = APIRouter(prefix="/tracking", tags=["tracking"])

UTM_KEYS = ("utm_source", "utm_medium", "utm_campaign", "utm_term", "utm_content")
META_HEADERS = ("accept", "accept-language", "accept-encoding", "host", "origin")
DEFAULT_REDIRECT = "/dashboard"


def _safe_redirect(url: Optional[str]) -> str:
    if not url:
        return DEFAULT_REDIRECT
    u = url.strip()
    if u.startswith("/") and not u.startswith("//"):
        return u
    if u.lower().startswith(("http://", "https://")):
        return u
    return DEFAULT_REDIRECT


@router.api_route("/click", methods=["GET", "POST"], response_model=None)
async def track_click(
    request: Request,
    affiliate_id: Optional[str] = None,
    campaign_id: Optional[str] = None,
    redirect_url: Optional[str] = None,
    json: bool = False,
    db: AsyncSession = Depends(get_db),
):
    """
    Records a click (bot filter applied) then redirects to redirect_url,
    or returns the click id when json=true (tracking script).
    """
    if not affiliate_id or not campaign_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing required parameters: affiliate_id or campaign_id",
        )

    headers = request.headers
    user_agent = headers.get("user-agent", "")
    referrer = extract_referrer(headers)
    ip_address = extract_ip(headers, request.client.host if request.client else None)

    detection = detect_bot(
        user_agent=user_agent,
        referrer=referrer,
        # reverse-DNS name of the client, when the edge proxy resolved one
        hostname=headers.get("x-remote-host", ""),
    )

    utm = {k: request.query_params[k] for k in UTM_KEYS if request.query_params.get(k)}
    metadata = {h: headers.get(h) for h in META_HEADERS if headers.get(h)}
    metadata["device"] = parse_user_agent(user_agent)
    if utm:
        metadata["utm_parameters"] = utm

    click = await record_click(
        db,
        affiliate_id=affiliate_id,
        campaign_id=campaign_id,
        ip_address=ip_address,
        referrer=referrer,
        user_agent=user_agent,
        detection=detection,
        user_agent_metadata=metadata,
    )

    if json:
        return ClickTrackedOut(click_id=click.click_id, filtered=click.filtered)

    return RedirectResponse(url=_safe_redirect(redirect_url), status_code=status.HTTP_307_TEMPORARY_REDIRECT)
