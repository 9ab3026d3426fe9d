# commission_engine/models/balance_adjustment.py
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from commission_engine.db.base import Base


class BalanceAdjustment(Base):
    """Audit row for a manual admin correction."""

    __tablename__ = "balance_adjustments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    affiliate_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    # commission | clicks
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    # can be negative
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False, default="")
    processed_by: Mapped[str] = mapped_column(String(64), nullable=False, default="admin")

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
