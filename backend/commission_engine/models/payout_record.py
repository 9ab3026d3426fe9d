# commission_engine/models/payout_record.py
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import DateTime, Index, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from commission_engine.db.base import Base


class PayoutRecord(Base):
    __tablename__ = "payout_records"
    __table_args__ = (
        Index("ix_payout_records_affiliate_created", "affiliate_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    affiliate_id: Mapped[str] = mapped_column(String(64), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(10), nullable=False, default="INR")

    # bank_transfer | paypal | manual
    method: Mapped[str] = mapped_column(String(40), nullable=False, default="manual")
    # external reference (bank ref id)
    transaction_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    processed_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    # payouts are recorded after the transfer was made, so they start completed
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="completed", index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
