# commission_engine/crud/reports.py
from __future__ import annotations

from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.core.attribution import utcnow
from commission_engine.core.money import CENT, ZERO
from commission_engine.models.click_event import ClickEvent
from commission_engine.models.revenue_record import RevenueRecord


async def list_revenue(
    db: AsyncSession,
    *,
    affiliate_id: Optional[str] = None,
    campaign_id: Optional[str] = None,
    status: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[RevenueRecord], int]:
    """Ledger page for the reporting/export layer, newest first."""
    filters = []
    if affiliate_id:
        filters.append(RevenueRecord.affiliate_id == affiliate_id)
    if campaign_id:
        filters.append(RevenueRecord.campaign_id == campaign_id)
    if status:
        filters.append(RevenueRecord.status == status)

    total_stmt = select(func.count()).select_from(RevenueRecord).where(*filters)
    total = (await db.execute(total_stmt)).scalar_one()

    stmt = (
        select(RevenueRecord)
        .where(*filters)
        .order_by(RevenueRecord.created_at.desc(), RevenueRecord.transaction_id)
        .limit(limit)
        .offset(offset)
    )
    rows = (await db.execute(stmt)).scalars().all()
    return list(rows), int(total or 0)


async def revenue_totals(db: AsyncSession, affiliate_id: str) -> dict[str, object]:
    stmt = select(
        func.count(RevenueRecord.id),
        func.coalesce(func.sum(RevenueRecord.amount), 0),
        func.coalesce(func.sum(RevenueRecord.commission_amount), 0),
        func.coalesce(func.sum(RevenueRecord.commission_reversed), 0),
    ).where(RevenueRecord.affiliate_id == affiliate_id)
    count, gross, commission, reversed_ = (await db.execute(stmt)).one()
    return {
        "conversions": int(count or 0),
        "gross_revenue": gross,
        "commission_earned": commission,
        "commission_reversed": reversed_,
    }


async def fraud_report(db: AsyncSession, *, days: int = 30, top: int = 10, recent: int = 50) -> dict[str, object]:
    """Bot-filter effectiveness over the last `days`: totals, reasons, offending IPs, latest flagged clicks."""
    since = utcnow() - timedelta(days=days)
    window = ClickEvent.created_at >= since
    flagged = (window, ClickEvent.filtered.is_(True))

    total_clicks = (await db.execute(select(func.count()).select_from(ClickEvent).where(window))).scalar_one()
    total_filtered = (await db.execute(select(func.count()).select_from(ClickEvent).where(*flagged))).scalar_one()

    hits = func.count(ClickEvent.id).label("hits")

    reasons_stmt = (
        select(ClickEvent.bot_detection, hits)
        .where(*flagged)
        .group_by(ClickEvent.bot_detection)
        .order_by(hits.desc(), ClickEvent.bot_detection)
    )
    by_reason = [{"reason": reason, "count": int(count)} for reason, count in (await db.execute(reasons_stmt)).all()]

    offenders_stmt = (
        select(ClickEvent.ip_address, hits, func.max(ClickEvent.created_at))
        .where(*flagged)
        .group_by(ClickEvent.ip_address)
        .order_by(hits.desc(), ClickEvent.ip_address)
        .limit(top)
    )
    top_offenders = [
        {"ip_address": ip, "count": int(count), "last_seen": last_seen}
        for ip, count, last_seen in (await db.execute(offenders_stmt)).all()
    ]

    recent_stmt = select(ClickEvent).where(*flagged).order_by(ClickEvent.created_at.desc()).limit(recent)
    recent_events = list((await db.execute(recent_stmt)).scalars().all())

    total_clicks = int(total_clicks or 0)
    total_filtered = int(total_filtered or 0)
    block_rate = ZERO
    if total_clicks:
        block_rate = (Decimal(total_filtered) * 100 / Decimal(total_clicks)).quantize(CENT, rounding=ROUND_HALF_UP)

    return {
        "days": days,
        "total_clicks": total_clicks,
        "filtered_clicks": total_filtered,
        "block_rate": block_rate,
        "by_reason": by_reason,
        "top_offenders": top_offenders,
        "recent_events": recent_events,
    }
