# commission_engine/schemas/affiliates.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from commission_engine.schemas.payouts import PayoutOut
from commission_engine.schemas.revenue import RevenueRecordOut


class AffiliateBalanceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    status: str
    commission_rate: Decimal
    commission_tiers: Optional[List[Dict[str, Any]]] = None

    total_earnings: Decimal
    pending_payouts: Decimal
    total_paid: Decimal
    total_clicks: int

    last_earning_date: Optional[datetime] = None
    last_payout_date: Optional[datetime] = None


class AffiliateSummaryOut(BaseModel):
    profile: AffiliateBalanceOut
    current_rate: Decimal
    conversions: int
    gross_revenue: Decimal
    commission_earned: Decimal
    commission_reversed: Decimal
    revenues: List[RevenueRecordOut]
    payouts: List[PayoutOut]


class AdjustmentCreate(BaseModel):
    # commission | clicks
    type: str = Field(pattern=r"^(commission|clicks)$")
    amount: Decimal = Field(max_digits=12, decimal_places=2)
    reason: str = Field(default="", max_length=500)


class AdjustmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    affiliate_id: str
    type: str
    amount: Decimal
    reason: str
    processed_by: str
    created_at: datetime
