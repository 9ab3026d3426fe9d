# commission_engine/crud/affiliates.py
from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.core.attribution import parse_uuid
from commission_engine.models.affiliate_profile import AffiliateProfile
from commission_engine.models.campaign import Campaign
from commission_engine.models.payout_record import PayoutRecord
from commission_engine.models.revenue_record import RevenueRecord


async def get_affiliate_profile(db: AsyncSession, affiliate_id: Optional[str]) -> Optional[AffiliateProfile]:
    if not affiliate_id:
        return None
    stmt = select(AffiliateProfile).where(AffiliateProfile.user_id == affiliate_id)
    return (await db.execute(stmt)).scalar_one_or_none()


async def get_campaign(db: AsyncSession, campaign_id: Optional[str]) -> Optional[Campaign]:
    """
    Attribution carries campaign ids as free strings; anything that is not
    a UUID cannot name a campaign.
    """
    cid: uuid.UUID | None = parse_uuid(campaign_id)
    if cid is None:
        return None
    return await db.get(Campaign, cid)


async def list_recent_revenue(db: AsyncSession, affiliate_id: str, limit: int = 20) -> list[RevenueRecord]:
    stmt = (
        select(RevenueRecord)
        .where(RevenueRecord.affiliate_id == affiliate_id)
        .order_by(RevenueRecord.created_at.desc())
        .limit(limit)
    )
    return list((await db.execute(stmt)).scalars().all())


async def list_recent_payouts(db: AsyncSession, affiliate_id: str, limit: int = 20) -> list[PayoutRecord]:
    stmt = (
        select(PayoutRecord)
        .where(PayoutRecord.affiliate_id == affiliate_id)
        .order_by(PayoutRecord.created_at.desc())
        .limit(limit)
    )
    return list((await db.execute(stmt)).scalars().all())
