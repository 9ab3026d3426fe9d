# commission_engine/api/v1/webhooks.py
from __future__ import annotations

import json
import logging
from typing import Any

import stripe
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.core.config import settings
from commission_engine.crud.revenue_ledger import dispatch_event
from commission_engine.db.session import get_db
from commission_engine.schemas.webhooks import WebhookAck

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


def verify_stripe_event(payload: bytes, sig_header: str) -> dict[str, Any]:
    """Verify the Stripe-Signature header and return the decoded event."""
    secret = settings.STRIPE_WEBHOOK_SECRET
    if not secret:
        logger.error("STRIPE_WEBHOOK_SECRET not configured")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Webhook secret not configured")

    if not sig_header:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing Stripe-Signature header")

    try:
        body = payload.decode("utf-8")
        stripe.WebhookSignature.verify_header(body, sig_header, secret, settings.STRIPE_WEBHOOK_TOLERANCE)
    except (UnicodeDecodeError, stripe.SignatureVerificationError) as e:
        logger.warning("Webhook signature verification failed: %s", e)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid webhook signature")

    try:
        event = json.loads(body)
    except json.JSONDecodeError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON payload")

    if not isinstance(event, dict):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid event payload")
    return event


@router.post("/stripe", response_model=WebhookAck)
async def stripe_webhook(request: Request, db: AsyncSession = Depends(get_db)):
    """
    Stripe events -> revenue ledger.

    Once the signature checks out the answer is always 200: processing
    errors are logged, never surfaced, so Stripe does not redeliver.
    """
    payload = await request.body()
    sig_header = request.headers.get("Stripe-Signature", "")

    event = verify_stripe_event(payload, sig_header)
    logger.info("Webhook received: %s (%s)", event.get("type"), event.get("id"))

    result = await dispatch_event(db, event)
    return WebhookAck(**result)
