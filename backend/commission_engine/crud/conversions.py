# commission_engine/crud/conversions.py
from __future__ import annotations

import logging
import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.core.attribution import utcnow
from commission_engine.core.commission import compute_commission
from commission_engine.core.config import settings
from commission_engine.core.errors import DuplicateTransactionError, NotFoundError, ValidationError
from commission_engine.core.money import ZERO, is_storable_money, round_money, to_decimal
from commission_engine.core.revenue_status import RevenueStatus
from commission_engine.crud.affiliates import get_affiliate_profile, get_campaign
from commission_engine.crud.clicks import get_click
from commission_engine.crud.revenue_ledger import get_revenue_by_transaction, insert_revenue_record
from commission_engine.models.click_event import ClickEvent
from commission_engine.models.revenue_record import RevenueRecord

logger = logging.getLogger(__name__)

SOURCE_MANUAL = "manual"
SOURCE_POSTBACK = "postback"
BASIS_OVERRIDE = "override"


async def record_conversion(
    db: AsyncSession,
    *,
    click_id: str,
    amount: Decimal,
    currency: Optional[str] = None,
    succeeded: bool = True,
    payout_override: Optional[Decimal] = None,
    transaction_id: Optional[str] = None,
    source: str = SOURCE_MANUAL,
) -> RevenueRecord:
    """
    Conversion reported outside the payment provider (admin tool or
    server-to-server postback). The click must exist; its affiliate and
    campaign become the attribution.
    """
    if not click_id:
        raise ValidationError("click_id is required", field="click_id")

    value = to_decimal(amount)
    if not is_storable_money(value):
        raise ValidationError("Valid amount is required", field="amount")

    override = None
    if payout_override is not None:
        override = to_decimal(payout_override)
        if not is_storable_money(override):
            raise ValidationError("Valid payout is required", field="payout")

    click = await get_click(db, click_id)
    if click is None:
        raise NotFoundError("Click not found", click_id=click_id)

    transaction_id = transaction_id or f"{source}_{uuid.uuid4().hex}"
    if await get_revenue_by_transaction(db, transaction_id) is not None:
        raise DuplicateTransactionError("Transaction already recorded", transaction_id=transaction_id)

    if override is not None:
        commission_amount = round_money(override)
        basis = BASIS_OVERRIDE
    else:
        commission = compute_commission(
            value,
            campaign=await get_campaign(db, click.campaign_id),
            affiliate=await get_affiliate_profile(db, click.affiliate_id),
            affiliate_id=click.affiliate_id,
        )
        commission_amount = commission.amount
        basis = commission.basis.value

    now = utcnow()
    status = RevenueStatus.SUCCEEDED if succeeded else RevenueStatus.PENDING

    record = RevenueRecord(
        transaction_id=transaction_id,
        amount=round_money(value),
        currency=(currency or settings.DEFAULT_CURRENCY).upper(),
        status=status.value,
        affiliate_id=click.affiliate_id,
        campaign_id=click.campaign_id,
        click_id=click.click_id,
        commission_amount=commission_amount,
        commission_reversed=ZERO,
        commission_basis=basis,
        refund_amount=ZERO,
        converted_at=now,
        source=source,
        is_renewal=False,
        event_metadata={
            "original_click": {
                "ip_address": click.ip_address,
                "user_agent": click.user_agent,
                "referrer": click.referrer,
                "filtered": click.filtered,
                "bot_detection": click.bot_detection,
                "click_timestamp": click.created_at.isoformat() if click.created_at else None,
            },
        },
    )

    await db.execute(
        update(ClickEvent)
        .where(ClickEvent.id == click.id)
        .values(converted=True, converted_at=now, conversion_amount=round_money(value))
    )

    if not await insert_revenue_record(db, record):
        raise DuplicateTransactionError("Transaction already recorded", transaction_id=transaction_id)

    logger.info(
        "Conversion recorded: click=%s affiliate=%s amount=%s commission=%s source=%s",
        click_id,
        click.affiliate_id,
        record.amount,
        commission_amount,
        source,
    )
    return record
