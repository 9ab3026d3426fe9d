# commission_engine/crud/clicks.py
from __future__ import annotations

import logging
import secrets
import string
import time
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.core.bot_filter import BotDetection
from commission_engine.crud.balances import record_click_activity
from commission_engine.models.click_event import ClickEvent

logger = logging.getLogger(__name__)

ALPHABET = string.ascii_lowercase + string.digits


def generate_click_id() -> str:
    suffix = "".join(secrets.choice(ALPHABET) for _ in range(9))
    return f"click_{int(time.time() * 1000)}_{suffix}"


async def get_click(db: AsyncSession, click_id: Optional[str]) -> Optional[ClickEvent]:
    if not click_id:
        return None
    stmt = select(ClickEvent).where(ClickEvent.click_id == click_id)
    return (await db.execute(stmt)).scalar_one_or_none()


async def record_click(
    db: AsyncSession,
    *,
    affiliate_id: str,
    campaign_id: Optional[str],
    ip_address: Optional[str],
    referrer: Optional[str],
    user_agent: Optional[str],
    detection: BotDetection,
    user_agent_metadata: Optional[dict[str, Any]] = None,
) -> ClickEvent:
    """
    Append a click. Filtered (bot/spam) clicks are kept for the fraud view
    but do not count towards the affiliate's click statistics.
    """
    click = ClickEvent(
        click_id=generate_click_id(),
        affiliate_id=affiliate_id,
        campaign_id=campaign_id,
        ip_address=ip_address,
        referrer=referrer or None,
        user_agent=user_agent or None,
        user_agent_metadata=user_agent_metadata or {},
        filtered=detection.is_bot,
        bot_detection=detection.reason,
        converted=False,
    )
    db.add(click)
    await db.flush()

    if detection.is_bot:
        logger.info(
            "Bot click filtered: click=%s affiliate=%s campaign=%s reason=%s ip=%s",
            click.click_id,
            affiliate_id,
            campaign_id,
            detection.reason,
            ip_address,
        )
    else:
        await record_click_activity(db, affiliate_id)
        logger.info("Valid click recorded: click=%s affiliate=%s campaign=%s", click.click_id, affiliate_id, campaign_id)

    await db.commit()
    return click
