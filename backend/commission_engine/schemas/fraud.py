# commission_engine/schemas/fraud.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class FlaggedClickOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    click_id: str
    affiliate_id: str
    campaign_id: Optional[str] = None
    ip_address: Optional[str] = None
    referrer: Optional[str] = None
    user_agent: Optional[str] = None
    bot_detection: str
    created_at: datetime


class ReasonCountOut(BaseModel):
    reason: str
    count: int


class OffenderOut(BaseModel):
    ip_address: Optional[str] = None
    count: int
    last_seen: Optional[datetime] = None


class FraudReportOut(BaseModel):
    days: int
    total_clicks: int
    filtered_clicks: int
    block_rate: Decimal  # percent of clicks filtered
    by_reason: List[ReasonCountOut]
    top_offenders: List[OffenderOut]
    recent_events: List[FlaggedClickOut]
