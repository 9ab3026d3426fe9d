# commission_engine/models/affiliate_profile.py
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import DateTime, Integer, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from commission_engine.db.base import Base
from commission_engine.db.types import JSONType


class AffiliateProfile(Base):
    """
    One per affiliate user.

    Balances (total_earnings, pending_payouts, total_paid) are only moved by
    crud.balances and crud.payouts, always with single-statement updates.
    pending_payouts may go negative after clawbacks (debt owed back).
    """

    __tablename__ = "affiliate_profiles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # external user id (auth service); also what payment metadata calls affiliate_id
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)

    commission_rate: Mapped[Decimal] = mapped_column(Numeric(5, 4), nullable=False, default=Decimal("0.10"))
    # e.g. [{"min_revenue": 0, "rate": 0.10}, {"min_revenue": 10000, "rate": 0.15}]
    commission_tiers: Mapped[Optional[list[dict[str, Any]]]] = mapped_column(JSONType, nullable=True)

    # active | pending | suspended
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending", index=True)

    total_earnings: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    pending_payouts: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    total_paid: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    total_clicks: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    last_earning_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    last_payout_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    last_activity: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
