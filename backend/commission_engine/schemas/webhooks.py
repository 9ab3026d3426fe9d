# commission_engine/schemas/webhooks.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class WebhookAck(BaseModel):
    received: bool = True
    event: str
    processed: bool = False
    transaction_id: Optional[str] = None
