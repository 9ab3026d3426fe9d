# commission_engine/crud/revenue_ledger.py
"""
Revenue ledger event handlers.

Each handler keys on the provider transaction id, writes the ledger row and
the matching balance delta in ONE database transaction, and returns the
affected RevenueRecord (or None when the event was a no-op: duplicate
delivery, unknown payment, invalid transition, untraceable renewal).

Record updates after creation are conditional on the status and reversal
total the handler read, so two concurrent deliveries of the same refund or
dispute cannot both claw back commission.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Mapping, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.core.attribution import resolve_attribution, utcnow
from commission_engine.core.commission import (
    compute_commission,
    compute_refund_deduction,
    compute_renewal_commission,
)
from commission_engine.core.config import settings
from commission_engine.core.errors import InvalidTransitionError
from commission_engine.core.money import ZERO, from_minor_units
from commission_engine.core.revenue_status import RevenueStatus, ensure_transition
from commission_engine.crud.affiliates import get_affiliate_profile, get_campaign
from commission_engine.crud.balances import apply_delta
from commission_engine.models.revenue_record import RevenueRecord

logger = logging.getLogger(__name__)

SOURCE_STRIPE = "stripe"
SOURCE_STRIPE_RENEWAL = "stripe_renewal"

BILLING_REASON_SUBSCRIPTION_CYCLE = "subscription_cycle"


def stripe_id(value: Any) -> Optional[str]:
    """Stripe references are ids, or expanded objects carrying one."""
    if value is None:
        return None
    if isinstance(value, Mapping):
        value = value.get("id")
    v = str(value).strip() if value is not None else ""
    return v or None


def _currency(obj: Mapping[str, Any], fallback: Optional[str] = None) -> str:
    return str(obj.get("currency") or fallback or settings.DEFAULT_CURRENCY).upper()


async def get_revenue_by_transaction(db: AsyncSession, transaction_id: Optional[str]) -> Optional[RevenueRecord]:
    if not transaction_id:
        return None
    stmt = select(RevenueRecord).where(RevenueRecord.transaction_id == transaction_id)
    return (await db.execute(stmt)).scalar_one_or_none()


async def get_original_subscription_record(db: AsyncSession, subscription_id: Optional[str]) -> Optional[RevenueRecord]:
    if not subscription_id:
        return None
    stmt = (
        select(RevenueRecord)
        .where(RevenueRecord.subscription_id == subscription_id)
        .where(RevenueRecord.is_renewal.is_(False))
        .order_by(RevenueRecord.created_at.asc())
        .limit(1)
    )
    return (await db.execute(stmt)).scalars().first()


async def insert_revenue_record(db: AsyncSession, record: RevenueRecord) -> bool:
    """
    Insert and apply the commission to the affiliate balance, then commit.

    The UNIQUE transaction_id is the last line of idempotency: a concurrent
    duplicate delivery fails here and is rolled back as a no-op.
    """
    db.add(record)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        logger.info("Duplicate transaction %s ignored (unique constraint)", record.transaction_id)
        return False

    if record.affiliate_id and record.commission_amount > ZERO:
        await apply_delta(db, record.affiliate_id, record.commission_amount)

    await db.commit()
    return True


async def _claim_update(
    db: AsyncSession,
    record: RevenueRecord,
    *,
    expected_status: str,
    expected_reversed: Decimal,
    **values: Any,
) -> bool:
    stmt = (
        update(RevenueRecord)
        .where(RevenueRecord.id == record.id)
        .where(RevenueRecord.status == expected_status)
        .where(RevenueRecord.commission_reversed == expected_reversed)
        .values(**values)
        .execution_options(synchronize_session="fetch")
    )
    res = await db.execute(stmt)
    return bool(res.rowcount)


# ---------------------------------------------------------
# checkout.session.completed
# ---------------------------------------------------------
async def record_checkout(db: AsyncSession, session: Mapping[str, Any]) -> Optional[RevenueRecord]:
    transaction_id = stripe_id(session.get("payment_intent")) or stripe_id(session.get("id"))
    if not transaction_id:
        logger.warning("checkout.session.completed without payment id; skipped")
        return None

    if await get_revenue_by_transaction(db, transaction_id) is not None:
        logger.info("Checkout %s already recorded; duplicate delivery ignored", transaction_id)
        return None

    metadata = dict(session.get("metadata") or {})
    client_reference_id = session.get("client_reference_id")
    attribution = resolve_attribution(metadata, client_reference_id)

    currency = _currency(session)
    amount = from_minor_units(session.get("amount_total") or 0, currency)

    campaign = await get_campaign(db, attribution.campaign_id)
    affiliate = await get_affiliate_profile(db, attribution.affiliate_id)
    commission = compute_commission(
        amount,
        campaign=campaign,
        affiliate=affiliate,
        affiliate_id=attribution.affiliate_id,
    )

    payment_status = session.get("payment_status")
    status = RevenueStatus.SUCCEEDED if payment_status == "paid" else RevenueStatus.PENDING
    customer = session.get("customer_details") or {}

    record = RevenueRecord(
        transaction_id=transaction_id,
        session_id=stripe_id(session.get("id")),
        subscription_id=stripe_id(session.get("subscription")),
        amount=amount,
        currency=currency,
        status=status.value,
        affiliate_id=attribution.affiliate_id,
        campaign_id=attribution.campaign_id,
        click_id=attribution.click_id,
        commission_amount=commission.amount,
        commission_reversed=ZERO,
        commission_basis=commission.basis.value,
        refund_amount=ZERO,
        source=SOURCE_STRIPE,
        is_renewal=False,
        event_metadata={
            "customer_email": customer.get("email"),
            "customer_name": customer.get("name"),
            "payment_status": payment_status,
            "payment_method_types": session.get("payment_method_types"),
            "metadata": metadata,
            "client_reference_id": client_reference_id,
            "mode": session.get("mode"),
        },
    )

    if not await insert_revenue_record(db, record):
        return None

    logger.info(
        "Revenue recorded: txn=%s amount=%s %s commission=%s basis=%s affiliate=%s campaign=%s",
        transaction_id,
        amount,
        currency,
        commission.amount,
        commission.basis.value,
        attribution.affiliate_id,
        attribution.campaign_id,
    )
    return record


# ---------------------------------------------------------
# payment_intent.succeeded
# ---------------------------------------------------------
async def confirm_payment(db: AsyncSession, payment_intent: Mapping[str, Any]) -> Optional[RevenueRecord]:
    """Secondary confirmation: status only, commission and balances were settled at checkout."""
    transaction_id = stripe_id(payment_intent.get("id"))
    record = await get_revenue_by_transaction(db, transaction_id)
    if record is None:
        logger.info("payment_intent.succeeded for unknown payment %s; nothing to update", transaction_id)
        return None

    try:
        ensure_transition(record.status, RevenueStatus.SUCCEEDED)
    except InvalidTransitionError as e:
        logger.warning("Payment confirmation for %s skipped: %s", transaction_id, e.message)
        return None

    record.status = RevenueStatus.SUCCEEDED.value
    record.payment_method = stripe_id(payment_intent.get("payment_method"))
    await db.commit()

    logger.info("Payment status updated: %s", transaction_id)
    return record


# ---------------------------------------------------------
# charge.refunded
# ---------------------------------------------------------
async def record_refund(db: AsyncSession, charge: Mapping[str, Any]) -> Optional[RevenueRecord]:
    transaction_id = stripe_id(charge.get("payment_intent"))
    record = await get_revenue_by_transaction(db, transaction_id)
    if record is None:
        logger.warning("Refund received for unknown payment: %s", transaction_id)
        return None

    # amount_refunded is cumulative for the charge
    refunded_minor = charge.get("amount_refunded") or 0
    amount_refunded = from_minor_units(refunded_minor, _currency(charge, record.currency))
    if amount_refunded <= (record.refund_amount or ZERO):
        logger.info("Refund for %s already applied (%s); duplicate delivery ignored", transaction_id, amount_refunded)
        return None

    captured_minor = charge.get("amount_captured")
    fully_refunded = (
        charge.get("refunded") is True
        or (captured_minor is not None and refunded_minor >= captured_minor)
        or amount_refunded >= record.amount
    )
    target = RevenueStatus.REFUNDED if fully_refunded else RevenueStatus.PARTIALLY_REFUNDED

    try:
        ensure_transition(record.status, target)
    except InvalidTransitionError as e:
        logger.warning("Refund for %s skipped: %s", transaction_id, e.message)
        return None

    already_reversed = record.commission_reversed or ZERO
    total_deduction = compute_refund_deduction(
        commission_amount=record.commission_amount,
        original_amount=record.amount,
        amount_refunded=amount_refunded,
    )
    to_deduct = max(total_deduction - already_reversed, ZERO)

    claimed = await _claim_update(
        db,
        record,
        expected_status=record.status,
        expected_reversed=already_reversed,
        status=target.value,
        refund_amount=amount_refunded,
        refunded_at=utcnow(),
        commission_reversed=already_reversed + to_deduct,
    )
    if not claimed:
        await db.rollback()
        logger.info("Refund for %s lost a race with another delivery; ignored", transaction_id)
        return None

    if record.affiliate_id and to_deduct > ZERO:
        logger.info("Deducting commission of %s for refund %s", to_deduct, stripe_id(charge.get("id")))
        await apply_delta(db, record.affiliate_id, -to_deduct)

    await db.commit()
    await db.refresh(record)

    logger.info("Refund processed: txn=%s refunded=%s status=%s", transaction_id, amount_refunded, target.value)
    return record


# ---------------------------------------------------------
# charge.dispute.created
# ---------------------------------------------------------
async def record_dispute(db: AsyncSession, dispute: Mapping[str, Any]) -> Optional[RevenueRecord]:
    """
    Freezes the commission by clawing back whatever has not been reversed
    yet: the full commission for an untouched payment, the remainder after
    an earlier partial refund.
    """
    transaction_id = stripe_id(dispute.get("payment_intent"))
    record = await get_revenue_by_transaction(db, transaction_id)
    if record is None:
        logger.warning("Dispute received for unknown payment: %s", transaction_id)
        return None

    try:
        ensure_transition(record.status, RevenueStatus.DISPUTED)
    except InvalidTransitionError as e:
        logger.warning("Dispute for %s skipped: %s", transaction_id, e.message)
        return None

    already_reversed = record.commission_reversed or ZERO
    to_deduct = max(record.commission_amount - already_reversed, ZERO)

    claimed = await _claim_update(
        db,
        record,
        expected_status=record.status,
        expected_reversed=already_reversed,
        status=RevenueStatus.DISPUTED.value,
        disputed_at=utcnow(),
        commission_reversed=already_reversed + to_deduct,
    )
    if not claimed:
        await db.rollback()
        logger.info("Dispute for %s lost a race with another delivery; ignored", transaction_id)
        return None

    if record.affiliate_id and to_deduct > ZERO:
        logger.info("Deducting commission of %s for dispute %s", to_deduct, stripe_id(dispute.get("id")))
        await apply_delta(db, record.affiliate_id, -to_deduct)

    await db.commit()
    await db.refresh(record)
    return record


# ---------------------------------------------------------
# invoice.payment_succeeded (billing_reason == subscription_cycle)
# ---------------------------------------------------------
async def record_subscription_renewal(db: AsyncSession, invoice: Mapping[str, Any]) -> Optional[RevenueRecord]:
    """
    Recurring commission. Attribution comes only from the subscription's
    original revenue record; renewals without one are dropped.
    """
    subscription_id = stripe_id(invoice.get("subscription"))
    invoice_id = stripe_id(invoice.get("id"))
    transaction_id = stripe_id(invoice.get("payment_intent")) or invoice_id

    original = await get_original_subscription_record(db, subscription_id)
    if original is None:
        logger.info("Subscription renewal without original attribution: %s", subscription_id)
        return None

    if await get_revenue_by_transaction(db, transaction_id) is not None:
        logger.info("Renewal %s already recorded; duplicate delivery ignored", transaction_id)
        return None

    currency = _currency(invoice, original.currency)
    amount = from_minor_units(invoice.get("amount_paid") or 0, currency)

    affiliate = await get_affiliate_profile(db, original.affiliate_id)
    commission = compute_renewal_commission(amount, affiliate=affiliate, affiliate_id=original.affiliate_id)

    record = RevenueRecord(
        transaction_id=transaction_id,
        invoice_id=invoice_id,
        subscription_id=subscription_id,
        amount=amount,
        currency=currency,
        status=RevenueStatus.SUCCEEDED.value,
        affiliate_id=original.affiliate_id,
        campaign_id=original.campaign_id,
        commission_amount=commission.amount,
        commission_reversed=ZERO,
        commission_basis=commission.basis.value,
        refund_amount=ZERO,
        source=SOURCE_STRIPE_RENEWAL,
        is_renewal=True,
        event_metadata={
            "billing_reason": invoice.get("billing_reason"),
            "subscription": subscription_id,
            "customer_email": invoice.get("customer_email"),
            "original_transaction_id": original.transaction_id,
        },
    )

    if not await insert_revenue_record(db, record):
        return None

    logger.info(
        "Subscription renewal recorded: invoice=%s amount=%s commission=%s affiliate=%s",
        invoice_id,
        amount,
        commission.amount,
        original.affiliate_id,
    )
    return record


EVENT_HANDLERS = {
    "checkout.session.completed": record_checkout,
    "payment_intent.succeeded": confirm_payment,
    "charge.refunded": record_refund,
    "charge.dispute.created": record_dispute,
    "invoice.payment_succeeded": record_subscription_renewal,
}


async def dispatch_event(db: AsyncSession, event: Mapping[str, Any]) -> dict[str, Any]:
    """
    Route one provider event to its handler.

    Processing failures are logged and reported in the result but never
    raised: the provider must always get an acknowledgement, otherwise it
    redelivers and retry storms follow.
    """
    event_type = str(event.get("type") or "")
    obj = (event.get("data") or {}).get("object") or {}
    result: dict[str, Any] = {"received": True, "event": event_type, "processed": False}

    handler = EVENT_HANDLERS.get(event_type)
    if handler is None:
        logger.debug("Ignoring provider event type %s", event_type)
        return result

    # only renewals earn recurring commission; the first invoice is covered by checkout
    if event_type == "invoice.payment_succeeded" and obj.get("billing_reason") != BILLING_REASON_SUBSCRIPTION_CYCLE:
        return result

    try:
        record = await handler(db, obj)
    except Exception:
        logger.exception("Error handling %s (event %s)", event_type, event.get("id"))
        await db.rollback()
        return result

    result["processed"] = record is not None
    if record is not None:
        result["transaction_id"] = record.transaction_id
    return result
