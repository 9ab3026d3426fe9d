# commission_engine/models/revenue_record.py
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, Index, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from commission_engine.db.base import Base
from commission_engine.db.types import JSONType


class RevenueRecord(Base):
    """
    One row per attributed provider transaction.

    - transaction_id is the idempotency key (UNIQUE): provider payment id.
    - commission_amount is fixed at creation and never recomputed.
    - commission_reversed is the running total clawed back by refunds and
      disputes; it never exceeds commission_amount.
    - rows are never deleted.

    NOTE:
      - The Python attribute cannot be named "metadata" because SQLAlchemy Declarative uses it.
      - We map attribute `event_metadata` -> DB column name "metadata".
    """

    __tablename__ = "revenue_records"
    __table_args__ = (
        Index("ix_revenue_records_affiliate_created", "affiliate_id", "created_at"),
        Index("ix_revenue_records_status", "status"),
        CheckConstraint("commission_reversed <= commission_amount", name="ck_revenue_records_reversed_le_commission"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    transaction_id: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    session_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    invoice_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    subscription_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)

    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(10), nullable=False, default="INR")

    # pending | succeeded | partially_refunded | refunded | disputed
    status: Mapped[str] = mapped_column(String(30), nullable=False, default="pending")

    affiliate_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    campaign_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    click_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)

    commission_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    commission_reversed: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    # campaign_revshare | campaign_fixed | affiliate_rate | default_rate | attribution_gap | override
    commission_basis: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)

    refund_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    refunded_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    disputed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    converted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    payment_method: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # stripe | stripe_renewal | postback | manual
    source: Mapped[str] = mapped_column(String(20), nullable=False, default="stripe")
    is_renewal: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # customer details, payment status, client reference, billing reason, ...
    event_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata",  # keep DB column name
        JSONType,
        nullable=False,
        default=dict,
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
