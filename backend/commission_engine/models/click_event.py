# commission_engine/models/click_event.py
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import Boolean, DateTime, Index, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from commission_engine.db.base import Base
from commission_engine.db.types import JSONType


class ClickEvent(Base):
    """
    Append-only click ledger. Bot/spam clicks are stored too, with
    filtered=True and the detector's reason code.
    """

    __tablename__ = "click_events"
    __table_args__ = (
        Index("ix_click_events_affiliate_created", "affiliate_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    click_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)

    affiliate_id: Mapped[str] = mapped_column(String(64), nullable=False)
    campaign_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)

    ip_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    referrer: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # parsed device info, request headers, utm parameters
    user_agent_metadata: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)

    filtered: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    bot_detection: Mapped[str] = mapped_column(String(120), nullable=False, default="none")

    # stamped by the manual conversion / postback path
    converted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    converted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    conversion_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
