# commission_engine/models/campaign.py
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from commission_engine.db.base import Base
from commission_engine.db.types import JSONType


class Campaign(Base):
    __tablename__ = "campaigns"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    url: Mapped[str] = mapped_column(String(2048), nullable=False)

    # free text ("10% of sales") or structured:
    #   {"type": "CPA" | "Fixed", "amount": 100, "currency": "INR"}
    #   {"type": "RevShare", "percentage": 20}
    payout_rules: Mapped[Any] = mapped_column(JSONType, nullable=False)

    # active | paused | archived
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active", index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
