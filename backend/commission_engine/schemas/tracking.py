# commission_engine/schemas/tracking.py
from __future__ import annotations

from pydantic import BaseModel


class ClickTrackedOut(BaseModel):
    success: bool = True
    click_id: str
    filtered: bool = False
