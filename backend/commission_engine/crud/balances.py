# commission_engine/crud/balances.py
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.core.attribution import utcnow
from commission_engine.core.money import ZERO, to_decimal
from commission_engine.models.affiliate_profile import AffiliateProfile

logger = logging.getLogger(__name__)


async def apply_delta(db: AsyncSession, affiliate_id: Optional[str], amount: Decimal) -> bool:
    """
    Move an affiliate's balances by a signed commission delta.

    One UPDATE statement (the increment happens in the database), so
    concurrent deltas for the same affiliate never lose updates. There is
    no lower bound: clawbacks after a payout leave a negative pending
    balance that later earnings pay off.

    Does not commit; the caller commits together with its ledger write.
    Returns False when nothing was updated.
    """
    delta = to_decimal(amount) or ZERO
    if not affiliate_id or delta == ZERO:
        return False

    stmt = (
        update(AffiliateProfile)
        .where(AffiliateProfile.user_id == affiliate_id)
        .values(
            total_earnings=AffiliateProfile.total_earnings + delta,
            pending_payouts=AffiliateProfile.pending_payouts + delta,
            last_earning_date=utcnow(),
        )
    )
    res = await db.execute(stmt)

    if not res.rowcount:
        logger.warning("Balance delta %s dropped: no affiliate profile for %s", delta, affiliate_id)
        return False

    logger.info("Balance delta %s applied to affiliate %s", delta, affiliate_id)
    return True


async def record_click_activity(db: AsyncSession, affiliate_id: str, clicks: int = 1) -> bool:
    stmt = (
        update(AffiliateProfile)
        .where(AffiliateProfile.user_id == affiliate_id)
        .values(
            total_clicks=AffiliateProfile.total_clicks + clicks,
            last_activity=utcnow(),
        )
    )
    res = await db.execute(stmt)
    return bool(res.rowcount)
